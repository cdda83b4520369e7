"""
Constitutive models package for fem_elasticity.

This package contains the hyperelastic material laws evaluated at the
quadrature points of elasticity elements.
"""

from fem_elasticity.constitutive.base import ConstitutiveModel, DeformationGradientCacheEntry
from fem_elasticity.constitutive.corotated import CorotatedCacheEntry, CorotatedModel
from fem_elasticity.constitutive.linear_elastic import (
    LinearElasticityCacheEntry,
    LinearElasticityModel,
)
from fem_elasticity.constitutive.neo_hookean import NeoHookeanCacheEntry, NeoHookeanModel
from fem_elasticity.constitutive.saint_venant_kirchhoff import (
    SaintVenantKirchhoffCacheEntry,
    SaintVenantKirchhoffModel,
)

CONSTITUTIVE_MODELS = {
    model.name: model
    for model in (
        LinearElasticityModel,
        CorotatedModel,
        SaintVenantKirchhoffModel,
        NeoHookeanModel,
    )
}

__all__ = [
    "CONSTITUTIVE_MODELS",
    "ConstitutiveModel",
    "DeformationGradientCacheEntry",
    "LinearElasticityModel",
    "LinearElasticityCacheEntry",
    "CorotatedModel",
    "CorotatedCacheEntry",
    "SaintVenantKirchhoffModel",
    "SaintVenantKirchhoffCacheEntry",
    "NeoHookeanModel",
    "NeoHookeanCacheEntry",
]
