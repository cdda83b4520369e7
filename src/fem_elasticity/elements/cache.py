"""Version-tagged cache of the per-quadrature-point deformation state.

An :class:`ElasticityElementCacheEntry` remembers F, Ψ and P of one element
together with the :attr:`FemState.version` they were computed from.
Refreshing with a state of the same version is a no-op, so energy, residual
and stiffness evaluations at an unchanged state share one constitutive
update.

The entry is a single-writer resource guarded by a lock. Evaluations use
``refresh_and_get``, which refreshes and reads under one acquisition, so a
concurrent refresh with another state cannot slip in between. An entry must
not be shared between elements.
"""

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import torch

from fem_elasticity.constitutive.base import DeformationGradientCacheEntry
from fem_elasticity.core.exceptions import ElementConfigurationError, StaleCacheError
from fem_elasticity.core.state import FemState

if TYPE_CHECKING:
    from fem_elasticity.elements.elasticity import ElasticityElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElasticityCacheValues:
    """Quadrature point values for one state.

    Attributes
    ----------
    deformation_gradient : torch.Tensor
        F at every quadrature point (n_points × 3 × 3).
    energy_density : torch.Tensor
        Ψ(F) (n_points,).
    first_piola_stress : torch.Tensor
        P(F) (n_points × 3 × 3).
    version : int
        Version of the state the values were computed from.
    """

    deformation_gradient: torch.Tensor
    energy_density: torch.Tensor
    first_piola_stress: torch.Tensor
    version: int


def evaluate_quadrature_values(
    element: "ElasticityElement",
    state: FemState,
    entry: DeformationGradientCacheEntry,
) -> ElasticityCacheValues:
    """Compute F, Ψ and P of ``element`` at ``state`` using ``entry`` as scratch."""
    model = element.constitutive_model
    F = element.compute_deformation_gradient(state)
    model.update_cache_entry(entry, F)
    return ElasticityCacheValues(
        deformation_gradient=F,
        energy_density=model.calc_energy_density(entry),
        first_piola_stress=model.calc_first_piola_stress(entry),
        version=state.version,
    )


class ElasticityElementCacheEntry:
    """Cache entry bound to one :class:`ElasticityElement`.

    Parameters
    ----------
    element : ElasticityElement
        Element whose quantities are cached.
    deformation_gradient_cache_entry : DeformationGradientCacheEntry, optional
        Storage for the constitutive model's derived data. Built from the
        element's model when omitted.

    Raises
    ------
    ElementConfigurationError
        If the deformation-gradient entry is not of the exact type required
        by the element's constitutive model, or has the wrong number of
        quadrature points.
    """

    def __init__(
        self,
        element: "ElasticityElement",
        deformation_gradient_cache_entry: Optional[DeformationGradientCacheEntry] = None,
    ):
        model = element.constitutive_model
        if deformation_gradient_cache_entry is None:
            deformation_gradient_cache_entry = model.make_cache_entry(
                element.num_quadrature_points
            )
        if not model.is_compatible(deformation_gradient_cache_entry):
            raise ElementConfigurationError(
                f"{type(model).__name__} of element {element.element_index} requires "
                f"{model.cache_entry_type.__name__}, got "
                f"{type(deformation_gradient_cache_entry).__name__}"
            )
        if deformation_gradient_cache_entry.num_quadrature_points != element.num_quadrature_points:
            raise ElementConfigurationError(
                f"Cache entry has {deformation_gradient_cache_entry.num_quadrature_points} "
                f"quadrature points, element {element.element_index} has "
                f"{element.num_quadrature_points}"
            )
        self._element = element
        self._deformation_gradient_cache_entry = deformation_gradient_cache_entry
        self._values: Optional[ElasticityCacheValues] = None
        self._lock = threading.Lock()

    @property
    def element_index(self) -> int:
        return self._element.element_index

    @property
    def deformation_gradient_cache_entry(self) -> DeformationGradientCacheEntry:
        return self._deformation_gradient_cache_entry

    @property
    def version(self) -> Optional[int]:
        """Version of the state of the cached values, None if never refreshed."""
        values = self._values
        return None if values is None else values.version

    def refresh(self, state: FemState) -> bool:
        """Recompute the cached values unless they already belong to ``state.version``.

        Returns
        -------
        bool
            True if the values were recomputed.
        """
        with self._lock:
            return self._refresh_locked(state)

    def refresh_and_get(self, state: FemState) -> ElasticityCacheValues:
        """Refresh for ``state`` and return the values in one locked step.

        The returned values always belong to ``state.version``, even when
        other threads refresh the entry with other states concurrently.
        """
        with self._lock:
            self._refresh_locked(state)
            return self._values

    def _refresh_locked(self, state: FemState) -> bool:
        if self._values is not None and self._values.version == state.version:
            return False
        self._values = evaluate_quadrature_values(
            self._element, state, self._deformation_gradient_cache_entry
        )
        logger.debug(
            "Refreshed cache of element %d at state version %d",
            self.element_index,
            state.version,
        )
        return True

    def get(self) -> ElasticityCacheValues:
        """Cached values of the last refresh.

        Raises
        ------
        StaleCacheError
            If the entry was never refreshed, or was invalidated.
        """
        with self._lock:
            if self._values is None:
                raise StaleCacheError(
                    f"Cache entry of element {self.element_index} has not been refreshed"
                )
            return self._values

    def invalidate(self) -> None:
        with self._lock:
            self._values = None

    def __repr__(self):
        return f"<ElasticityElementCacheEntry element={self.element_index} version={self.version}>"
