"""
Core module for fem-elasticity.

Provides the state container, materials, forward-mode helpers, exceptions
and configuration.
"""

from .config import ConstitutiveModelType, ElasticityConfig, ElementConfig, MaterialConfig
from .dual import dual_level, forward_jacobian, make_dual, make_dual_state, primal, tangent
from .exceptions import (
    ElementConfigurationError,
    InvertedElementError,
    StaleCacheError,
    StateAccessError,
)
from .material import IsotropicMaterial, lame_parameters
from .state import FemState

__all__ = [
    "ConstitutiveModelType",
    "ElasticityConfig",
    "ElementConfig",
    "MaterialConfig",
    "dual_level",
    "forward_jacobian",
    "make_dual",
    "make_dual_state",
    "primal",
    "tangent",
    "ElementConfigurationError",
    "InvertedElementError",
    "StaleCacheError",
    "StateAccessError",
    "IsotropicMaterial",
    "lame_parameters",
    "FemState",
]
