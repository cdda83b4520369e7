"""Test suite for quadrature rules on simplex and cube domains.

Integrals of monomials over the reference domains have closed forms:
    unit tetrahedron: ∫ ξ^a η^b ζ^c = a! b! c! / (a + b + c + 3)!
    unit triangle:    ∫ ξ^a η^b     = a! b! / (a + b + 2)!
    [-1, 1]:          ∫ x^k         = 2 / (k + 1) for even k, 0 for odd k
"""

from itertools import product
from math import factorial

import numpy as np
import pytest

from fem_elasticity.core.exceptions import ElementConfigurationError
from fem_elasticity.elements.quadrature import (
    CUBE,
    SIMPLEX,
    GaussLegendreQuadrature,
    SimplexGaussianQuadrature,
)


def simplex_monomial_integral(exponents):
    num = np.prod([factorial(e) for e in exponents])
    return num / factorial(sum(exponents) + len(exponents))


def interval_monomial_integral(k):
    return 0.0 if k % 2 else 2.0 / (k + 1)


# =============================================================================
# Simplex rules
# =============================================================================


class TestSimplexGaussianQuadrature:
    """Tests for Gaussian rules over the unit triangle and tetrahedron."""

    @pytest.mark.parametrize("order", SimplexGaussianQuadrature.SUPPORTED_ORDERS)
    @pytest.mark.parametrize("dim, measure", [(2, 0.5), (3, 1 / 6)])
    def test_weights_sum_to_domain_measure(self, order, dim, measure):
        rule = SimplexGaussianQuadrature(order, dim)
        assert np.isclose(rule.weights.sum(), measure, atol=1e-14), (
            f"Order {order}, dim {dim}: sum(w)={rule.weights.sum()}, expected {measure}"
        )

    @pytest.mark.parametrize("order", SimplexGaussianQuadrature.SUPPORTED_ORDERS)
    @pytest.mark.parametrize("dim", [2, 3])
    def test_weights_positive(self, order, dim):
        rule = SimplexGaussianQuadrature(order, dim)
        assert np.all(rule.weights > 0), f"Non-positive weights: {rule.weights}"

    @pytest.mark.parametrize("order", SimplexGaussianQuadrature.SUPPORTED_ORDERS)
    @pytest.mark.parametrize("dim", [2, 3])
    def test_points_inside_simplex(self, order, dim):
        rule = SimplexGaussianQuadrature(order, dim)
        pts = rule.points
        assert pts.shape == (rule.num_points, dim)
        assert np.all(pts >= -1e-14)
        assert np.all(pts.sum(axis=1) <= 1 + 1e-14)

    @pytest.mark.parametrize("order", SimplexGaussianQuadrature.SUPPORTED_ORDERS)
    @pytest.mark.parametrize("dim", [2, 3])
    def test_integrates_monomials_exactly(self, order, dim):
        """Every monomial of total degree <= order is integrated exactly."""
        rule = SimplexGaussianQuadrature(order, dim)
        for exponents in product(range(order + 1), repeat=dim):
            if sum(exponents) > order:
                continue
            values = np.prod(rule.points ** np.array(exponents), axis=1)
            approx = values @ rule.weights
            exact = simplex_monomial_integral(exponents)
            assert np.isclose(approx, exact, rtol=1e-12, atol=1e-15), (
                f"Order {order}, monomial {exponents}: got {approx}, expected {exact}"
            )

    def test_centroid_rule(self):
        rule = SimplexGaussianQuadrature(1, 3)
        assert rule.num_points == 1
        np.testing.assert_allclose(rule.get_point(0), [0.25, 0.25, 0.25])
        assert rule.get_weight(0) == pytest.approx(1 / 6)
        assert rule.domain == SIMPLEX
        assert rule.natural_dimension == 3
        assert rule.order == 1

    @pytest.mark.parametrize("order", [0, 7, -1])
    def test_unsupported_order(self, order):
        with pytest.raises(ElementConfigurationError, match="Unsupported"):
            SimplexGaussianQuadrature(order, 3)

    def test_unsupported_dimension(self):
        with pytest.raises(ElementConfigurationError):
            SimplexGaussianQuadrature(1, 4)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SimplexGaussianQuadrature(9, 3)

    def test_points_are_read_only(self):
        rule = SimplexGaussianQuadrature(2, 3)
        with pytest.raises(ValueError):
            rule.points[0, 0] = 1.0
        with pytest.raises(ValueError):
            rule.weights[0] = 1.0


# =============================================================================
# Gauss-Legendre rules
# =============================================================================


class TestGaussLegendreQuadrature:
    """Tests for tensor-product Gauss-Legendre rules on [-1, 1]^d."""

    @pytest.mark.parametrize("n", [1, 2, 3, 4])
    @pytest.mark.parametrize("dim", [2, 3])
    def test_weights_sum_to_cube_volume(self, n, dim):
        rule = GaussLegendreQuadrature(n, dim)
        assert rule.num_points == n**dim
        assert np.isclose(rule.weights.sum(), 2.0**dim, atol=1e-13)
        assert rule.domain == CUBE

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_integrates_per_axis_degree_exactly(self, n):
        """Exact for degree 2n - 1 along each axis."""
        rule = GaussLegendreQuadrature(n, 3)
        max_degree = 2 * n - 1
        for exponents in product(range(max_degree + 1), repeat=3):
            values = np.prod(rule.points ** np.array(exponents), axis=1)
            approx = values @ rule.weights
            exact = np.prod([interval_monomial_integral(k) for k in exponents])
            assert np.isclose(approx, exact, atol=1e-13), (
                f"n={n}, monomial {exponents}: got {approx}, expected {exact}"
            )

    def test_first_coordinate_varies_fastest(self):
        rule = GaussLegendreQuadrature(2, 3)
        pts = rule.points
        assert pts[0, 0] != pts[1, 0]
        assert pts[0, 1] == pts[1, 1]
        assert pts[0, 2] == pts[1, 2]
        assert pts[0, 2] == pts[3, 2]
        assert pts[0, 2] != pts[4, 2]

    def test_invalid_point_count(self):
        with pytest.raises(ElementConfigurationError):
            GaussLegendreQuadrature(0, 3)

    def test_invalid_dimension(self):
        with pytest.raises(ElementConfigurationError):
            GaussLegendreQuadrature(2, 1)
