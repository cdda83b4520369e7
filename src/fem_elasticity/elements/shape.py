"""Isoparametric shape function sets.

Each set is bound at construction to the quadrature points where it will be
evaluated and tabulates the shape function values and their
natural-coordinate gradients there:

    values[q, a]       = N_a(ξ_q)
    gradients[q, a, i] = ∂N_a/∂ξ_i (ξ_q)

Elements supported:
- TRI3: 3-node linear triangle (natural dimension 2)
- QUAD4: 4-node bilinear quadrilateral (natural dimension 2)
- TETRA4: 4-node linear tetrahedron
- TETRA10: 10-node quadratic tetrahedron
- HEXA8: 8-node linear hexahedron
"""

from abc import ABC, abstractmethod

import numpy as np

from fem_elasticity.core.exceptions import ElementConfigurationError
from fem_elasticity.elements.quadrature import (
    CUBE,
    SIMPLEX,
    GaussLegendreQuadrature,
    Quadrature,
    SimplexGaussianQuadrature,
)


class IsoparametricElement(ABC):
    """Base class for shape function sets.

    Subclasses define ``name``, ``num_nodes``, ``natural_dimension``,
    ``domain`` and the two pointwise evaluators.

    Parameters
    ----------
    points : np.ndarray
        Natural coordinates where the functions are tabulated
        (n_points × natural_dimension), usually ``quadrature.points``.
    """

    name: str = ""
    num_nodes: int = 0
    natural_dimension: int = 0
    domain: str = ""

    def __init__(self, points: np.ndarray):
        points = np.atleast_2d(np.asarray(points, dtype=float))
        if points.shape[1] != self.natural_dimension:
            raise ElementConfigurationError(
                f"{self.name} has natural dimension {self.natural_dimension}, "
                f"got points of dimension {points.shape[1]}"
            )
        values = np.array([self.shape_functions(*pt) for pt in points])
        gradients = np.array([self.shape_function_derivatives(*pt) for pt in points])
        for array in (points, values, gradients):
            array.flags.writeable = False
        self._points = points
        self._values = values
        self._gradients = gradients

    @classmethod
    @abstractmethod
    def default_quadrature(cls) -> Quadrature:
        """Quadrature rule used when an element is built without one."""

    @abstractmethod
    def shape_functions(self, *xi: float) -> np.ndarray:
        """Shape function values (n_nodes,) at one natural point."""

    @abstractmethod
    def shape_function_derivatives(self, *xi: float) -> np.ndarray:
        """Natural-coordinate gradients (n_nodes × natural_dimension) at one point."""

    @property
    def num_points(self) -> int:
        return self._points.shape[0]

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def values(self) -> np.ndarray:
        """Tabulated shape functions (n_points × n_nodes)."""
        return self._values

    @property
    def gradients(self) -> np.ndarray:
        """Tabulated gradients (n_points × n_nodes × natural_dimension)."""
        return self._gradients

    def __repr__(self):
        return f"<{self.name} nodes={self.num_nodes} points={self.num_points}>"


# =============================================================================
# Two-dimensional sets
# =============================================================================


class TRI3(IsoparametricElement):
    """3-node linear triangle.

    Natural coordinates: ξ, η ∈ [0, 1] with ξ + η ≤ 1
    """

    name = "TRI3"
    num_nodes = 3
    natural_dimension = 2
    domain = SIMPLEX

    @classmethod
    def default_quadrature(cls) -> Quadrature:
        return SimplexGaussianQuadrature(1, 2)

    def shape_functions(self, xi: float, eta: float) -> np.ndarray:
        return np.array([1 - xi - eta, xi, eta])

    def shape_function_derivatives(self, xi: float, eta: float) -> np.ndarray:
        return np.array([[-1.0, -1.0], [1.0, 0.0], [0.0, 1.0]])


class QUAD4(IsoparametricElement):
    """4-node bilinear quadrilateral.

    Natural coordinates: ξ, η ∈ [-1, 1]
    """

    name = "QUAD4"
    num_nodes = 4
    natural_dimension = 2
    domain = CUBE

    @classmethod
    def default_quadrature(cls) -> Quadrature:
        return GaussLegendreQuadrature(2, 2)

    def shape_functions(self, xi: float, eta: float) -> np.ndarray:
        return 0.25 * np.array(
            [
                (1 - xi) * (1 - eta),
                (1 + xi) * (1 - eta),
                (1 + xi) * (1 + eta),
                (1 - xi) * (1 + eta),
            ]
        )

    def shape_function_derivatives(self, xi: float, eta: float) -> np.ndarray:
        return 0.25 * np.array(
            [
                [-(1 - eta), -(1 - xi)],
                [(1 - eta), -(1 + xi)],
                [(1 + eta), (1 + xi)],
                [-(1 + eta), (1 - xi)],
            ]
        )


# =============================================================================
# TETRAHEDRON sets
# =============================================================================


class TETRA4(IsoparametricElement):
    """4-node linear tetrahedron.

    Node ordering:
            3
           /|\\
          / | \\
         /  |  \\
        /   2   \\
       /  .'  `. \\
      0---------1

    Natural coordinates: ξ, η, ζ ∈ [0, 1] with ξ + η + ζ ≤ 1
    """

    name = "TETRA4"
    num_nodes = 4
    natural_dimension = 3
    domain = SIMPLEX

    @classmethod
    def default_quadrature(cls) -> Quadrature:
        return SimplexGaussianQuadrature(1, 3)

    def shape_functions(self, xi: float, eta: float, zeta: float) -> np.ndarray:
        """Linear tetrahedral shape functions (volume coordinates)."""
        return np.array([1 - xi - eta - zeta, xi, eta, zeta])

    def shape_function_derivatives(self, xi: float, eta: float, zeta: float) -> np.ndarray:
        """Constant derivatives for linear tetrahedron."""
        return np.array(
            [
                [-1.0, -1.0, -1.0],
                [1.0, 0.0, 0.0],
                [0.0, 1.0, 0.0],
                [0.0, 0.0, 1.0],
            ]
        )


class TETRA10(IsoparametricElement):
    """10-node quadratic tetrahedron.

    Node ordering (following Gmsh convention):
        Corners: 0, 1, 2, 3
        Edge midpoints: 4 (0-1), 5 (1-2), 6 (0-2), 7 (0-3), 8 (2-3), 9 (1-3)

    Natural coordinates: ξ, η, ζ ∈ [0, 1] with ξ + η + ζ ≤ 1
    """

    name = "TETRA10"
    num_nodes = 10
    natural_dimension = 3
    domain = SIMPLEX

    @classmethod
    def default_quadrature(cls) -> Quadrature:
        return SimplexGaussianQuadrature(2, 3)

    def shape_functions(self, xi: float, eta: float, zeta: float) -> np.ndarray:
        """Quadratic tetrahedral shape functions."""
        L1 = 1 - xi - eta - zeta
        L2 = xi
        L3 = eta
        L4 = zeta

        return np.array(
            [
                L1 * (2 * L1 - 1),
                L2 * (2 * L2 - 1),
                L3 * (2 * L3 - 1),
                L4 * (2 * L4 - 1),
                4 * L1 * L2,  # edge 0-1
                4 * L2 * L3,  # edge 1-2
                4 * L3 * L1,  # edge 0-2
                4 * L1 * L4,  # edge 0-3
                4 * L3 * L4,  # edge 2-3
                4 * L2 * L4,  # edge 1-3
            ]
        )

    def shape_function_derivatives(self, xi: float, eta: float, zeta: float) -> np.ndarray:
        """Derivatives of quadratic tetrahedral shape functions."""
        L1 = 1 - xi - eta - zeta
        L2 = xi
        L3 = eta
        L4 = zeta

        # dL/d(xi,eta,zeta)
        dL1 = np.array([-1.0, -1.0, -1.0])
        dL2 = np.array([1.0, 0.0, 0.0])
        dL3 = np.array([0.0, 1.0, 0.0])
        dL4 = np.array([0.0, 0.0, 1.0])

        dN = np.zeros((10, 3))

        dN[0] = (4 * L1 - 1) * dL1
        dN[1] = (4 * L2 - 1) * dL2
        dN[2] = (4 * L3 - 1) * dL3
        dN[3] = (4 * L4 - 1) * dL4

        dN[4] = 4 * (L2 * dL1 + L1 * dL2)
        dN[5] = 4 * (L3 * dL2 + L2 * dL3)
        dN[6] = 4 * (L1 * dL3 + L3 * dL1)
        dN[7] = 4 * (L4 * dL1 + L1 * dL4)
        dN[8] = 4 * (L4 * dL3 + L3 * dL4)
        dN[9] = 4 * (L4 * dL2 + L2 * dL4)

        return dN


# =============================================================================
# HEXAHEDRON sets
# =============================================================================


class HEXA8(IsoparametricElement):
    """8-node linear hexahedron (brick).

    Node ordering:
            7-------6
           /|      /|
          / |     / |
         4-------5  |
         |  3----|--2
         | /     | /
         |/      |/
         0-------1

    Natural coordinates: ξ, η, ζ ∈ [-1, 1]
    """

    name = "HEXA8"
    num_nodes = 8
    natural_dimension = 3
    domain = CUBE

    # Natural coordinates of the corner nodes.
    _corners = np.array(
        [
            [-1, -1, -1],
            [1, -1, -1],
            [1, 1, -1],
            [-1, 1, -1],
            [-1, -1, 1],
            [1, -1, 1],
            [1, 1, 1],
            [-1, 1, 1],
        ],
        dtype=float,
    )

    @classmethod
    def default_quadrature(cls) -> Quadrature:
        # 2×2×2 full integration avoids hourglass modes
        return GaussLegendreQuadrature(2, 3)

    def shape_functions(self, xi: float, eta: float, zeta: float) -> np.ndarray:
        """Trilinear shape functions."""
        c = self._corners
        return 0.125 * (1 + c[:, 0] * xi) * (1 + c[:, 1] * eta) * (1 + c[:, 2] * zeta)

    def shape_function_derivatives(self, xi: float, eta: float, zeta: float) -> np.ndarray:
        """Derivatives of trilinear shape functions."""
        c = self._corners
        fx = 1 + c[:, 0] * xi
        fy = 1 + c[:, 1] * eta
        fz = 1 + c[:, 2] * zeta
        return 0.125 * np.stack(
            [c[:, 0] * fy * fz, fx * c[:, 1] * fz, fx * fy * c[:, 2]],
            axis=1,
        )
