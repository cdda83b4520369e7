"""Small-strain linear elasticity.

    ε = ½(F + Fᵀ) - I
    Ψ = μ ε:ε + ½λ tr(ε)²
    P = 2μ ε + λ tr(ε) I

The law is linear in F and therefore not invariant under rotations of the
current configuration; use it for small deformations only.
"""

import numpy as np
import torch

from fem_elasticity.constitutive.base import (
    ConstitutiveModel,
    DeformationGradientCacheEntry,
    TensorLike,
    double_contraction,
    identity_like,
    trace,
    transpose,
)


class LinearElasticityCacheEntry(DeformationGradientCacheEntry):
    """Infinitesimal strain and its trace per quadrature point."""

    def __init__(self, num_quadrature_points: int):
        super().__init__(num_quadrature_points)
        self.strain = torch.zeros(num_quadrature_points, 3, 3, dtype=torch.float64)
        self.trace_strain = torch.zeros(num_quadrature_points, dtype=torch.float64)


class LinearElasticityModel(ConstitutiveModel):
    name = "linear"
    cache_entry_type = LinearElasticityCacheEntry

    def _update_derived(self, entry: LinearElasticityCacheEntry, F: torch.Tensor) -> None:
        entry.strain = 0.5 * (F + transpose(F)) - identity_like(F)
        entry.trace_strain = trace(entry.strain)

    def _energy_density(self, entry: LinearElasticityCacheEntry) -> torch.Tensor:
        eps = entry.strain
        return self.mu * double_contraction(eps, eps) + 0.5 * self.lambd * entry.trace_strain**2

    def _first_piola_stress(self, entry: LinearElasticityCacheEntry) -> torch.Tensor:
        eye = identity_like(entry.strain)
        return 2 * self.mu * entry.strain + self.lambd * entry.trace_strain[:, None, None] * eye

    def compute_first_piola_stress_derivative(self, F: TensorLike) -> torch.Tensor:
        """Constant tangent μ(δ_ik δ_jl + δ_il δ_jk) + λ δ_ij δ_kl."""
        if not isinstance(F, torch.Tensor):
            F = torch.as_tensor(np.asarray(F, dtype=np.float64))
        d = torch.eye(3, dtype=torch.float64)
        A = self.mu * (
            torch.einsum("ik,jl->ijkl", d, d) + torch.einsum("il,jk->ijkl", d, d)
        ) + self.lambd * torch.einsum("ij,kl->ijkl", d, d)
        return A.expand(*F.shape[:-2], 3, 3, 3, 3).clone()
