"""Corotated linear elasticity.

With the polar decomposition F = R S:

    Ψ = μ ‖F - R‖² + ½λ (J - 1)²
    P = 2μ (F - R) + λ (J - 1) J F⁻ᵀ

Reference: Stomakhin et al., "Energetically consistent invertible elasticity",
SCA 2012.
"""

import torch

from fem_elasticity.constitutive.base import (
    ConstitutiveModel,
    DeformationGradientCacheEntry,
    double_contraction,
    transpose,
)
from fem_elasticity.core.dual import primal

POLAR_MAX_ITERATIONS = 100
POLAR_TOLERANCE = 1e-14


def polar_rotation(F: torch.Tensor) -> torch.Tensor:
    """Rotation factor R of F = R S for a batch of matrices with det(F) > 0.

    Newton iteration R ← ½(R + R⁻ᵀ), which converges quadratically and is
    differentiable with torch operations (unlike SVD at repeated singular
    values, e.g. F = I).
    """
    R = F
    for _ in range(POLAR_MAX_ITERATIONS):
        R_next = 0.5 * (R + transpose(torch.linalg.inv(R)))
        delta = torch.max(torch.abs(primal(R_next) - primal(R)))
        R = R_next
        if float(delta) < POLAR_TOLERANCE:
            break
    return R


class CorotatedCacheEntry(DeformationGradientCacheEntry):
    """Rotation, volume ratio and cofactor matrix J F⁻ᵀ per quadrature point."""

    def __init__(self, num_quadrature_points: int):
        super().__init__(num_quadrature_points)
        eye = torch.eye(3, dtype=torch.float64).repeat(num_quadrature_points, 1, 1)
        self.rotation = eye
        self.volume_ratio = torch.ones(num_quadrature_points, dtype=torch.float64)
        self.cofactor = eye.clone()


class CorotatedModel(ConstitutiveModel):
    name = "corotated"
    cache_entry_type = CorotatedCacheEntry

    def _update_derived(self, entry: CorotatedCacheEntry, F: torch.Tensor) -> None:
        entry.rotation = polar_rotation(F)
        entry.volume_ratio = torch.linalg.det(F)
        entry.cofactor = entry.volume_ratio[:, None, None] * transpose(torch.linalg.inv(F))

    def _energy_density(self, entry: CorotatedCacheEntry) -> torch.Tensor:
        diff = entry.deformation_gradient - entry.rotation
        return self.mu * double_contraction(diff, diff) + 0.5 * self.lambd * (
            entry.volume_ratio - 1
        ) ** 2

    def _first_piola_stress(self, entry: CorotatedCacheEntry) -> torch.Tensor:
        F = entry.deformation_gradient
        return 2 * self.mu * (F - entry.rotation) + self.lambd * (entry.volume_ratio - 1)[
            :, None, None
        ] * entry.cofactor
