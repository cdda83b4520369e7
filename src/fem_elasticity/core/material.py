from dataclasses import dataclass
from typing import Tuple

from fem_elasticity.core.exceptions import ElementConfigurationError


def lame_parameters(E: float, nu: float) -> Tuple[float, float]:
    """Lame constants (mu, lambda) from Young's modulus and Poisson's ratio.

    Uses:
        λ = Eν / ((1+ν)(1-2ν))
        μ = E / (2(1+ν))

    Raises
    ------
    ElementConfigurationError
        If ``E <= 0`` or ``nu`` is outside (-1, 0.5).
    """
    if not E > 0:
        raise ElementConfigurationError(f"Young's modulus must be positive: {E}")
    if not -1 < nu < 0.5:
        raise ElementConfigurationError(f"Poisson's ratio must be in (-1, 0.5): {nu}")
    mu = E / (2 * (1 + nu))
    lambd = E * nu / ((1 + nu) * (1 - 2 * nu))
    return mu, lambd


@dataclass(frozen=True)
class IsotropicMaterial:
    """
    Class representing an isotropic material with uniform properties in all directions.

    Parameters
    ----------
    name : str
        The name of the material.
    E : float
        Young's Modulus of the material.
    nu : float
        Poisson's ratio of the material.
    rho : float
        Density of the material in the reference configuration.
    """

    name: str
    E: float
    nu: float
    rho: float

    def __post_init__(self):
        lame_parameters(self.E, self.nu)
        if not self.rho > 0:
            raise ElementConfigurationError(f"Density must be positive: {self.rho}")

    @property
    def mu(self) -> float:
        """Shear modulus."""
        return lame_parameters(self.E, self.nu)[0]

    @property
    def lambd(self) -> float:
        """First Lame parameter."""
        return lame_parameters(self.E, self.nu)[1]
