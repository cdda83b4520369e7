"""Compressible Neo-Hookean hyperelasticity.

Strain energy density:
    Ψ = μ/2 (I₁ - 3) - μ ln(J) + λ/2 ln²(J)

First Piola-Kirchhoff stress:
    P = μ (F - F⁻ᵀ) + λ ln(J) F⁻ᵀ

where I₁ = tr(FᵀF) and J = det(F) > 0.

Reference:
- Bonet & Wood, "Nonlinear Continuum Mechanics for Finite Element Analysis"
"""

import torch

from fem_elasticity.constitutive.base import (
    ConstitutiveModel,
    DeformationGradientCacheEntry,
    double_contraction,
    transpose,
)


class NeoHookeanCacheEntry(DeformationGradientCacheEntry):
    def __init__(self, num_quadrature_points: int):
        super().__init__(num_quadrature_points)
        self.log_volume_ratio = torch.zeros(num_quadrature_points, dtype=torch.float64)
        self.inverse_transpose = torch.eye(3, dtype=torch.float64).repeat(
            num_quadrature_points, 1, 1
        )


class NeoHookeanModel(ConstitutiveModel):
    name = "neo_hookean"
    cache_entry_type = NeoHookeanCacheEntry

    def _update_derived(self, entry: NeoHookeanCacheEntry, F: torch.Tensor) -> None:
        entry.log_volume_ratio = torch.log(torch.linalg.det(F))
        entry.inverse_transpose = transpose(torch.linalg.inv(F))

    def _energy_density(self, entry: NeoHookeanCacheEntry) -> torch.Tensor:
        F = entry.deformation_gradient
        logJ = entry.log_volume_ratio
        return (
            0.5 * self.mu * (double_contraction(F, F) - 3)
            - self.mu * logJ
            + 0.5 * self.lambd * logJ**2
        )

    def _first_piola_stress(self, entry: NeoHookeanCacheEntry) -> torch.Tensor:
        F_inv_T = entry.inverse_transpose
        return (
            self.mu * (entry.deformation_gradient - F_inv_T)
            + self.lambd * entry.log_volume_ratio[:, None, None] * F_inv_T
        )
