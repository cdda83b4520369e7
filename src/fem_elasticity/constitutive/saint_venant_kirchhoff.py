"""Saint-Venant-Kirchhoff hyperelasticity.

    E = ½(FᵀF - I)      Green-Lagrange strain
    Ψ = μ E:E + ½λ tr(E)²
    P = F (2μ E + λ tr(E) I)
"""

import torch

from fem_elasticity.constitutive.base import (
    ConstitutiveModel,
    DeformationGradientCacheEntry,
    double_contraction,
    identity_like,
    trace,
    transpose,
)


class SaintVenantKirchhoffCacheEntry(DeformationGradientCacheEntry):
    def __init__(self, num_quadrature_points: int):
        super().__init__(num_quadrature_points)
        self.green_strain = torch.zeros(num_quadrature_points, 3, 3, dtype=torch.float64)
        self.trace_green_strain = torch.zeros(num_quadrature_points, dtype=torch.float64)


class SaintVenantKirchhoffModel(ConstitutiveModel):
    name = "saint_venant_kirchhoff"
    cache_entry_type = SaintVenantKirchhoffCacheEntry

    def _update_derived(self, entry: SaintVenantKirchhoffCacheEntry, F: torch.Tensor) -> None:
        entry.green_strain = 0.5 * (transpose(F) @ F - identity_like(F))
        entry.trace_green_strain = trace(entry.green_strain)

    def _energy_density(self, entry: SaintVenantKirchhoffCacheEntry) -> torch.Tensor:
        E = entry.green_strain
        return self.mu * double_contraction(E, E) + 0.5 * self.lambd * entry.trace_green_strain**2

    def _first_piola_stress(self, entry: SaintVenantKirchhoffCacheEntry) -> torch.Tensor:
        E = entry.green_strain
        S = 2 * self.mu * E + self.lambd * entry.trace_green_strain[:, None, None] * identity_like(E)
        return entry.deformation_gradient @ S
