from abc import ABC, abstractmethod
from math import ceil
from typing import Dict, Optional, Sequence, Tuple, Type

import numpy as np

from fem_elasticity.core.exceptions import ElementConfigurationError
from fem_elasticity.elements.quadrature import (
    SIMPLEX,
    GaussLegendreQuadrature,
    Quadrature,
    SimplexGaussianQuadrature,
)
from fem_elasticity.elements.shape import HEXA8, TETRA4, TETRA10, IsoparametricElement


class FemElement(ABC):
    """Common identity and DOF layout of finite elements.

    Parameters
    ----------
    name : str
        Element type name (e.g., "TETRA4").
    element_index : int
        Global index of the element.
    node_indices : Sequence[int]
        Global node indices. Their order defines the layout of every
        per-node output of the element.
    dofs_per_node : int
        Degrees of freedom carried by each node.
    """

    def __init__(
        self,
        name: str,
        element_index: int,
        node_indices: Sequence[int],
        dofs_per_node: int,
    ):
        if int(element_index) < 0:
            raise ElementConfigurationError(f"Element index must be non-negative: {element_index}")
        node_indices = tuple(int(n) for n in node_indices)
        if any(n < 0 for n in node_indices):
            raise ElementConfigurationError(f"Node indices must be non-negative: {node_indices}")
        if len(set(node_indices)) != len(node_indices):
            raise ElementConfigurationError(f"Node indices must be unique: {node_indices}")
        self.name = name
        self._element_index = int(element_index)
        self._node_indices = node_indices
        self.dofs_per_node = dofs_per_node

    @property
    def element_index(self) -> int:
        return self._element_index

    @property
    def node_indices(self) -> Tuple[int, ...]:
        return self._node_indices

    @property
    def num_nodes(self) -> int:
        return len(self._node_indices)

    @property
    def dofs_count(self) -> int:
        return self.num_nodes * self.dofs_per_node

    @property
    def global_dof_indices(self) -> Dict[int, Tuple[int, ...]]:
        """
        Global degrees of freedom of every node, in element node order.

        Returns:
            Dict[int, Tuple[int, ...]]: node index -> global DOF indices.
        """
        global_dof_indices = {}
        for node_id in self._node_indices:
            start_dof = node_id * self.dofs_per_node
            end_dof = start_dof + self.dofs_per_node
            global_dof_indices[node_id] = tuple(range(start_dof, end_dof))

        return global_dof_indices

    @property
    @abstractmethod
    def num_quadrature_points(self) -> int:
        pass

    @abstractmethod
    def compute_residual(self, state):
        """Element residual in local node order."""

    @abstractmethod
    def make_element_cache_entry(self):
        """Cache entry compatible with this element."""

    def __repr__(self):
        return f"<{type(self).__name__} id={self.element_index} name={self.name}>"


def make_quadrature(shape: Type[IsoparametricElement], order: int) -> Quadrature:
    """Rule on the domain of ``shape`` exact for polynomials of degree ``order``."""
    if shape.domain == SIMPLEX:
        return SimplexGaussianQuadrature(order, shape.natural_dimension)
    return GaussLegendreQuadrature(int(ceil((order + 1) / 2)), shape.natural_dimension)


class ElementFactory:
    SOLID_ELEMENT_MAP: Dict[int, Type[IsoparametricElement]] = {
        4: TETRA4,
        10: TETRA10,
        8: HEXA8,
    }

    @classmethod
    def get_shape(cls, node_count: int) -> Type[IsoparametricElement]:
        try:
            return cls.SOLID_ELEMENT_MAP[node_count]
        except KeyError:
            raise ElementConfigurationError(
                f"No solid element with {node_count} nodes; "
                f"available: {sorted(cls.SOLID_ELEMENT_MAP)}"
            ) from None

    @classmethod
    def get_element(
        cls,
        element_index: int,
        node_indices: Sequence[int],
        density: float,
        constitutive_model,
        reference_positions: np.ndarray,
        quadrature_order: Optional[int] = None,
    ):
        """Build an :class:`ElasticityElement` whose shape is chosen by node count."""
        from .elasticity import ElasticityElement

        shape = cls.get_shape(len(node_indices))
        quadrature = None
        if quadrature_order is not None:
            quadrature = make_quadrature(shape, quadrature_order)
        return ElasticityElement(
            element_index=element_index,
            node_indices=node_indices,
            density=density,
            constitutive_model=constitutive_model,
            reference_positions=reference_positions,
            shape=shape,
            quadrature=quadrature,
        )
