"""
fem-elasticity: per-element kernel for nonlinear 3D elasticity.

Computes elastic energy, residual, stiffness and mass of isoparametric solid
elements for a pluggable hyperelastic constitutive law, with exact
forward-mode sensitivities through torch dual tensors.
"""

from fem_elasticity.constitutive import (
    CONSTITUTIVE_MODELS,
    ConstitutiveModel,
    CorotatedModel,
    LinearElasticityModel,
    NeoHookeanModel,
    SaintVenantKirchhoffModel,
)
from fem_elasticity.core import (
    ElasticityConfig,
    ElementConfigurationError,
    FemState,
    InvertedElementError,
    IsotropicMaterial,
    StaleCacheError,
    StateAccessError,
)
from fem_elasticity.elements import (
    RESIDUAL_SIGN,
    ElasticityElement,
    ElasticityElementCacheEntry,
    ElementFactory,
)

__version__ = "0.1.0"

__all__ = [
    "CONSTITUTIVE_MODELS",
    "ConstitutiveModel",
    "CorotatedModel",
    "LinearElasticityModel",
    "NeoHookeanModel",
    "SaintVenantKirchhoffModel",
    "ElasticityConfig",
    "ElementConfigurationError",
    "FemState",
    "InvertedElementError",
    "IsotropicMaterial",
    "StaleCacheError",
    "StateAccessError",
    "RESIDUAL_SIGN",
    "ElasticityElement",
    "ElasticityElementCacheEntry",
    "ElementFactory",
]
