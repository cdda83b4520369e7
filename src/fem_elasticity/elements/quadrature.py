"""Quadrature rules on the natural-coordinate domains of isoparametric elements.

Two domains are supported:

- ``simplex``: unit triangle (ξ, η ≥ 0, ξ + η ≤ 1, area 1/2) or unit
  tetrahedron (ξ, η, ζ ≥ 0, ξ + η + ζ ≤ 1, volume 1/6).
- ``cube``: [-1, 1]^d.

Rules are fixed at construction; points and weights are read-only arrays.
"""

import logging
from math import ceil
from typing import Tuple

import numpy as np
from scipy.special import roots_jacobi

from fem_elasticity.core.exceptions import ElementConfigurationError

logger = logging.getLogger(__name__)

SIMPLEX = "simplex"
CUBE = "cube"


class Quadrature:
    """Fixed set of natural-coordinate points and weights.

    Attributes
    ----------
    natural_dimension : int
        Dimension of the natural coordinates (2 or 3).
    domain : str
        ``"simplex"`` or ``"cube"``.
    points : np.ndarray
        Array of natural coordinates (n_points × natural_dimension)
    weights : np.ndarray
        Integration weights (n_points,)
    """

    domain: str = ""

    def __init__(self, points: np.ndarray, weights: np.ndarray):
        points = np.array(points, dtype=float)
        weights = np.array(weights, dtype=float)
        if points.ndim != 2 or points.shape[0] != weights.shape[0]:
            raise ElementConfigurationError(
                f"Inconsistent quadrature: points {points.shape}, weights {weights.shape}"
            )
        points.flags.writeable = False
        weights.flags.writeable = False
        self._points = points
        self._weights = weights

    @property
    def natural_dimension(self) -> int:
        return self._points.shape[1]

    @property
    def num_points(self) -> int:
        return self._points.shape[0]

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    def get_point(self, q: int) -> np.ndarray:
        return self._points[q]

    def get_weight(self, q: int) -> float:
        return float(self._weights[q])

    def __repr__(self):
        return (
            f"<{type(self).__name__} dim={self.natural_dimension} "
            f"points={self.num_points}>"
        )


def _jacobi_rule_01(n: int, alpha: float) -> Tuple[np.ndarray, np.ndarray]:
    """Gauss-Jacobi rule on [0, 1] for the weight (1 - t)^alpha."""
    x, w = roots_jacobi(n, alpha, 0.0)
    return 0.5 * (x + 1.0), w / 2.0 ** (alpha + 1)


def _collapsed_simplex_rule(order: int, dim: int) -> Tuple[np.ndarray, np.ndarray]:
    """Conical product (Duffy) rule exact for polynomials of total degree ``order``.

    The unit simplex is mapped from the unit cube by
        ξ = u, η = v(1 - u), ζ = w(1 - u)(1 - v)
    whose Jacobian (1 - u)^(d-1) (1 - v)^(d-2) is absorbed into Gauss-Jacobi
    weights. All weights are positive.
    """
    n = int(ceil((order + 1) / 2))
    u, wu = _jacobi_rule_01(n, dim - 1)
    v, wv = _jacobi_rule_01(n, dim - 2)
    points = []
    weights = []
    if dim == 2:
        for ui, wui in zip(u, wu):
            for vi, wvi in zip(v, wv):
                points.append([ui, vi * (1 - ui)])
                weights.append(wui * wvi)
    else:
        s, ws = _jacobi_rule_01(n, 0)
        for ui, wui in zip(u, wu):
            for vi, wvi in zip(v, wv):
                for si, wsi in zip(s, ws):
                    points.append([ui, vi * (1 - ui), si * (1 - ui) * (1 - vi)])
                    weights.append(wui * wvi * wsi)
    return np.array(points), np.array(weights)


class SimplexGaussianQuadrature(Quadrature):
    """Gaussian quadrature over the unit triangle or unit tetrahedron.

    Parameters
    ----------
    order : int
        Highest total polynomial degree integrated exactly (1 to 6).
    natural_dimension : int
        2 for triangles, 3 for tetrahedra.

    Orders 1 and 2 use the classic tabulated rules. Higher orders use a
    collapsed Gauss-Jacobi product rule.
    """

    domain = SIMPLEX
    SUPPORTED_ORDERS = (1, 2, 3, 4, 5, 6)

    def __init__(self, order: int, natural_dimension: int = 3):
        if order not in self.SUPPORTED_ORDERS:
            raise ElementConfigurationError(
                f"Unsupported simplex quadrature order {order}; "
                f"supported orders are {self.SUPPORTED_ORDERS}"
            )
        if natural_dimension not in (2, 3):
            raise ElementConfigurationError(
                f"Simplex quadrature requires natural dimension 2 or 3, got {natural_dimension}"
            )
        self.order = order

        if natural_dimension == 2 and order == 1:
            points, weights = np.array([[1 / 3, 1 / 3]]), np.array([0.5])
        elif natural_dimension == 2 and order == 2:
            points = np.array([[1 / 6, 1 / 6], [2 / 3, 1 / 6], [1 / 6, 2 / 3]])
            weights = np.array([1 / 6, 1 / 6, 1 / 6])  # Weights sum to 0.5 (triangle area)
        elif natural_dimension == 3 and order == 1:
            points = np.array([[0.25, 0.25, 0.25]])
            weights = np.array([1 / 6])  # Volume of unit tetrahedron
        elif natural_dimension == 3 and order == 2:
            a = (5 - np.sqrt(5)) / 20
            b = (5 + 3 * np.sqrt(5)) / 20
            points = np.array([[a, a, a], [b, a, a], [a, b, a], [a, a, b]])
            weights = np.array([1, 1, 1, 1]) / 24  # Each = V_tet/4
        else:
            points, weights = _collapsed_simplex_rule(order, natural_dimension)

        super().__init__(points, weights)
        logger.debug(
            "Simplex quadrature order %d, dim %d: %d points",
            order,
            natural_dimension,
            self.num_points,
        )


class GaussLegendreQuadrature(Quadrature):
    """Tensor-product Gauss-Legendre rule on [-1, 1]^d.

    Parameters
    ----------
    num_points_per_axis : int
        Points along each axis; exact for degree 2n - 1 per axis.
    natural_dimension : int
        2 for quadrilaterals, 3 for hexahedra.

    Points are ordered with ξ varying fastest.
    """

    domain = CUBE

    def __init__(self, num_points_per_axis: int, natural_dimension: int = 3):
        if num_points_per_axis < 1:
            raise ElementConfigurationError(
                f"Gauss-Legendre rule needs at least one point per axis, got {num_points_per_axis}"
            )
        if natural_dimension not in (2, 3):
            raise ElementConfigurationError(
                f"Gauss-Legendre quadrature requires natural dimension 2 or 3, got {natural_dimension}"
            )
        self.num_points_per_axis = num_points_per_axis
        pts_1d, w_1d = np.polynomial.legendre.leggauss(num_points_per_axis)

        grids = np.meshgrid(*([pts_1d] * natural_dimension), indexing="ij")
        wgrids = np.meshgrid(*([w_1d] * natural_dimension), indexing="ij")
        # Reverse so that the first natural coordinate varies fastest.
        points = np.stack([g.ravel() for g in grids[::-1]], axis=1)
        weights = np.prod(np.stack([g.ravel() for g in wgrids]), axis=0)

        super().__init__(points, weights)
