"""Error taxonomy for the elasticity kernel.

Every error subclasses a built-in exception so callers that already catch
``ValueError``, ``IndexError`` or ``ArithmeticError`` keep working.
"""

from typing import Optional, Sequence


class ElementConfigurationError(ValueError):
    """Invalid element, quadrature, shape or material setup.

    Raised while constructing an object; the object is never returned.
    """


class StateAccessError(IndexError):
    """The FEM state cannot provide positions for a requested node.

    Attributes
    ----------
    missing_nodes : tuple of int
        Node indices that are outside the state.
    num_nodes : int
        Number of nodes held by the state.
    """

    def __init__(self, missing_nodes: Sequence[int], num_nodes: int):
        self.missing_nodes = tuple(int(n) for n in missing_nodes)
        self.num_nodes = num_nodes
        super().__init__(
            f"State with {num_nodes} nodes has no positions for nodes {list(self.missing_nodes)}"
        )


class InvertedElementError(ArithmeticError):
    """Deformation gradient with non-positive determinant.

    The configuration is physically invalid (the element is inverted or
    collapsed). Solvers usually react by shrinking the step.

    Attributes
    ----------
    element_index : int or None
        Index of the offending element, None when a model was evaluated
        directly on deformation gradients.
    quadrature_points : tuple of int
        Quadrature points (or flat batch indices) where ``det(F) <= 0``.
    determinants : tuple of float
        ``det(F)`` at those quadrature points.
    """

    def __init__(
        self,
        element_index: Optional[int],
        quadrature_points: Sequence[int],
        determinants: Sequence[float],
    ):
        self.element_index = element_index
        self.quadrature_points = tuple(int(q) for q in quadrature_points)
        self.determinants = tuple(float(d) for d in determinants)
        where = "Deformation gradient" if element_index is None else f"Element {element_index}"
        super().__init__(
            f"{where} is inverted at quadrature points "
            f"{list(self.quadrature_points)}: det(F) = {list(self.determinants)}"
        )


class StaleCacheError(RuntimeError):
    """A cache entry was read before it was ever refreshed."""
