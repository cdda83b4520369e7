from .cache import ElasticityCacheValues, ElasticityElementCacheEntry
from .elasticity import RESIDUAL_SIGN, ElasticityElement
from .elements import ElementFactory, FemElement, make_quadrature
from .quadrature import GaussLegendreQuadrature, Quadrature, SimplexGaussianQuadrature
from .shape import HEXA8, QUAD4, TETRA4, TETRA10, TRI3, IsoparametricElement

__all__ = [
    "ElasticityCacheValues",
    "ElasticityElementCacheEntry",
    "RESIDUAL_SIGN",
    "ElasticityElement",
    "ElementFactory",
    "FemElement",
    "make_quadrature",
    "GaussLegendreQuadrature",
    "Quadrature",
    "SimplexGaussianQuadrature",
    "HEXA8",
    "QUAD4",
    "TETRA4",
    "TETRA10",
    "TRI3",
    "IsoparametricElement",
]
