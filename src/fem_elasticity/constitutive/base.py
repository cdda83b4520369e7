"""Constitutive model capability interface.

A constitutive model maps a deformation gradient F to an elastic energy
density Ψ(F) (J/m³, per unit reference volume) and the first Piola-Kirchhoff
stress P = ∂Ψ/∂F (Pa). All evaluations are batched over leading dimensions
and written with torch operations, so they accept plain float64 tensors as
well as forward-mode dual tensors.

Each model owns a matching :class:`DeformationGradientCacheEntry` subclass
(``cache_entry_type``) that holds the quantities derived from F at every
quadrature point, e.g. the rotation of the polar decomposition for the
corotated model. The entry type acts as the capability tag checked when an
element cache is built.
"""

from abc import ABC, abstractmethod
from typing import Type, Union

import numpy as np
import torch

from fem_elasticity.core.dual import pointwise_forward_jacobian, primal
from fem_elasticity.core.exceptions import InvertedElementError
from fem_elasticity.core.material import IsotropicMaterial, lame_parameters

TensorLike = Union[torch.Tensor, np.ndarray]


def identity_like(F: torch.Tensor) -> torch.Tensor:
    """3×3 identity broadcastable against a batch of matrices."""
    return torch.eye(3, dtype=F.dtype, device=F.device)


def transpose(A: torch.Tensor) -> torch.Tensor:
    return A.transpose(-1, -2)


def trace(A: torch.Tensor) -> torch.Tensor:
    return A.diagonal(dim1=-2, dim2=-1).sum(-1)


def double_contraction(A: torch.Tensor, B: torch.Tensor) -> torch.Tensor:
    """A : B over the last two dimensions."""
    return (A * B).sum(dim=(-2, -1))


class DeformationGradientCacheEntry:
    """Deformation gradients and model-specific derived data per quadrature point.

    Parameters
    ----------
    num_quadrature_points : int
        Number of quadrature points the entry stores.
    """

    def __init__(self, num_quadrature_points: int):
        self.num_quadrature_points = num_quadrature_points
        self.deformation_gradient = (
            torch.eye(3, dtype=torch.float64).repeat(num_quadrature_points, 1, 1)
        )

    def __repr__(self):
        return f"<{type(self).__name__} points={self.num_quadrature_points}>"


class ConstitutiveModel(ABC):
    """Base class for hyperelastic material laws.

    Parameters
    ----------
    E : float
        Young's modulus.
    nu : float
        Poisson's ratio.

    Raises
    ------
    ElementConfigurationError
        If the parameters are outside their admissible range.
    """

    name: str = ""
    cache_entry_type: Type[DeformationGradientCacheEntry] = DeformationGradientCacheEntry

    def __init__(self, E: float, nu: float):
        mu, lambd = lame_parameters(E, nu)
        self._E = float(E)
        self._nu = float(nu)
        self._mu = mu
        self._lambda = lambd

    @classmethod
    def from_material(cls, material: IsotropicMaterial) -> "ConstitutiveModel":
        return cls(material.E, material.nu)

    @property
    def E(self) -> float:
        return self._E

    @property
    def nu(self) -> float:
        return self._nu

    @property
    def mu(self) -> float:
        """Shear modulus."""
        return self._mu

    @property
    def lambd(self) -> float:
        """First Lame parameter."""
        return self._lambda

    # -------------------------------------------------------------------------
    # Cache entry protocol
    # -------------------------------------------------------------------------

    def make_cache_entry(self, num_quadrature_points: int) -> DeformationGradientCacheEntry:
        """Build an empty cache entry of this model's type."""
        return self.cache_entry_type(num_quadrature_points)

    def is_compatible(self, entry: DeformationGradientCacheEntry) -> bool:
        return type(entry) is self.cache_entry_type

    def _check_entry(self, entry: DeformationGradientCacheEntry) -> None:
        if not self.is_compatible(entry):
            raise TypeError(
                f"{type(self).__name__} requires {self.cache_entry_type.__name__}, "
                f"got {type(entry).__name__}"
            )

    def update_cache_entry(self, entry: DeformationGradientCacheEntry, F: torch.Tensor) -> None:
        """Store ``F`` (n_points × 3 × 3) and everything the model derives from it."""
        self._check_entry(entry)
        if F.shape != (entry.num_quadrature_points, 3, 3):
            raise ValueError(
                f"Expected deformation gradients of shape "
                f"({entry.num_quadrature_points}, 3, 3), got {tuple(F.shape)}"
            )
        entry.deformation_gradient = F
        self._update_derived(entry, F)

    def calc_energy_density(self, entry: DeformationGradientCacheEntry) -> torch.Tensor:
        """Ψ at every quadrature point of an updated entry (n_points,)."""
        self._check_entry(entry)
        return self._energy_density(entry)

    def calc_first_piola_stress(self, entry: DeformationGradientCacheEntry) -> torch.Tensor:
        """P at every quadrature point of an updated entry (n_points × 3 × 3)."""
        self._check_entry(entry)
        return self._first_piola_stress(entry)

    @abstractmethod
    def _update_derived(self, entry: DeformationGradientCacheEntry, F: torch.Tensor) -> None:
        pass

    @abstractmethod
    def _energy_density(self, entry: DeformationGradientCacheEntry) -> torch.Tensor:
        pass

    @abstractmethod
    def _first_piola_stress(self, entry: DeformationGradientCacheEntry) -> torch.Tensor:
        pass

    # -------------------------------------------------------------------------
    # Direct evaluation from F
    # -------------------------------------------------------------------------

    def _evaluate(self, F: TensorLike, fn) -> torch.Tensor:
        if not isinstance(F, torch.Tensor):
            F = torch.as_tensor(np.asarray(F, dtype=np.float64))
        if F.shape[-2:] != (3, 3):
            raise ValueError(f"Deformation gradient must be 3×3, got {tuple(F.shape)}")
        batch_shape = F.shape[:-2]
        flat = F.reshape(-1, 3, 3)
        det_F = torch.linalg.det(primal(flat).detach())
        inverted = torch.nonzero(det_F <= 0).flatten()
        if inverted.numel():
            raise InvertedElementError(None, inverted.tolist(), det_F[inverted].tolist())
        entry = self.make_cache_entry(flat.shape[0])
        self.update_cache_entry(entry, flat)
        out = fn(entry)
        return out.reshape((*batch_shape, *out.shape[1:]))

    def compute_energy_density(self, F: TensorLike) -> torch.Tensor:
        """Elastic energy density Ψ(F) for one matrix or a batch (..., 3, 3).

        Raises
        ------
        InvertedElementError
            If any matrix has det(F) <= 0. ``quadrature_points`` then holds
            the flat batch indices of the offending matrices.
        """
        return self._evaluate(F, self.calc_energy_density)

    def compute_first_piola_stress(self, F: TensorLike) -> torch.Tensor:
        """First Piola-Kirchhoff stress P(F) = ∂Ψ/∂F."""
        return self._evaluate(F, self.calc_first_piola_stress)

    def compute_first_piola_stress_derivative(self, F: TensorLike) -> torch.Tensor:
        """Fourth-order tangent ``A[..., i, j, k, l] = ∂P_ij / ∂F_kl``.

        Computed exactly by forward-mode differentiation of the stress. Only
        the primal part of a dual ``F`` is used.
        """
        if not isinstance(F, torch.Tensor):
            F = torch.as_tensor(np.asarray(F, dtype=np.float64))
        return pointwise_forward_jacobian(self.compute_first_piola_stress, F)

    def __repr__(self):
        return f"<{type(self).__name__} E={self.E} nu={self.nu}>"
