"""Test suite for the version-tagged element cache."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
import torch

from fem_elasticity.constitutive import (
    CorotatedCacheEntry,
    LinearElasticityModel,
    NeoHookeanCacheEntry,
    NeoHookeanModel,
)
from fem_elasticity.core.dual import dual_level, make_dual_state
from fem_elasticity.core.exceptions import ElementConfigurationError, StaleCacheError
from fem_elasticity.core.state import FemState
from fem_elasticity.elements.cache import ElasticityElementCacheEntry
from fem_elasticity.elements.elasticity import ElasticityElement
from fem_elasticity.elements.quadrature import SimplexGaussianQuadrature


class CountingNeoHookeanModel(NeoHookeanModel):
    """Neo-Hookean model that counts constitutive updates."""

    def __init__(self, E, nu):
        super().__init__(E, nu)
        self.update_count = 0

    def update_cache_entry(self, entry, F):
        self.update_count += 1
        super().update_cache_entry(entry, F)


@pytest.fixture
def tetra4_nodes():
    return np.array(
        [
            [0, 0, 0],
            [1, 0, 0],
            [0, 1, 0],
            [0, 0, 1],
        ],
        dtype=float,
    )


@pytest.fixture
def model():
    return CountingNeoHookeanModel(E=1.0, nu=0.3)


@pytest.fixture
def element(tetra4_nodes, model):
    return ElasticityElement(
        element_index=7,
        node_indices=range(4),
        density=1000.0,
        constitutive_model=model,
        reference_positions=tetra4_nodes.T,
        quadrature=SimplexGaussianQuadrature(2, 3),
    )


@pytest.fixture
def state(tetra4_nodes):
    rng = np.random.default_rng(0)
    return FemState(tetra4_nodes + 0.05 * rng.standard_normal(tetra4_nodes.shape))


# =============================================================================
# Unit Tests: Cache entry lifecycle
# =============================================================================


class TestCacheEntry:
    def test_entry_matches_element(self, element):
        entry = element.make_element_cache_entry()
        assert entry.element_index == 7
        assert type(entry.deformation_gradient_cache_entry) is NeoHookeanCacheEntry
        assert entry.deformation_gradient_cache_entry.num_quadrature_points == 4
        assert entry.version is None

    def test_get_before_refresh(self, element):
        entry = element.make_element_cache_entry()
        with pytest.raises(StaleCacheError):
            entry.get()

    def test_refresh_once_per_version(self, element, state, model):
        entry = element.make_element_cache_entry()
        assert entry.refresh(state) is True
        assert entry.refresh(state) is False
        assert model.update_count == 1
        assert entry.version == state.version

        values = entry.get()
        assert values.version == state.version
        assert tuple(values.deformation_gradient.shape) == (4, 3, 3)
        assert tuple(values.energy_density.shape) == (4,)
        assert tuple(values.first_piola_stress.shape) == (4, 3, 3)

    def test_refresh_and_get_returns_values_of_state(self, element, state, tetra4_nodes):
        entry = element.make_element_cache_entry()
        values = entry.refresh_and_get(state)
        assert values.version == state.version
        assert entry.refresh_and_get(state) is values

        other = FemState(tetra4_nodes)
        assert entry.refresh_and_get(other).version == other.version

    def test_refresh_after_state_change(self, element, state, model, tetra4_nodes):
        entry = element.make_element_cache_entry()
        entry.refresh(state)
        old_version = state.version
        state.set_q(tetra4_nodes * 1.01)
        assert state.version != old_version
        assert entry.refresh(state) is True
        assert model.update_count == 2

    def test_invalidate(self, element, state):
        entry = element.make_element_cache_entry()
        entry.refresh(state)
        entry.invalidate()
        assert entry.version is None
        with pytest.raises(StaleCacheError):
            entry.get()
        assert entry.refresh(state) is True

    def test_versions_are_unique_across_states(self, tetra4_nodes):
        a = FemState(tetra4_nodes)
        b = FemState(tetra4_nodes)
        assert a.version != b.version


class TestCacheCompatibility:
    def test_incompatible_entry_type(self, element):
        with pytest.raises(ElementConfigurationError, match="requires NeoHookeanCacheEntry"):
            ElasticityElementCacheEntry(element, CorotatedCacheEntry(4))

    def test_subclassed_entry_type_rejected(self, element):
        class ExtendedEntry(NeoHookeanCacheEntry):
            pass

        with pytest.raises(ElementConfigurationError):
            ElasticityElementCacheEntry(element, ExtendedEntry(4))

    def test_wrong_point_count(self, element):
        with pytest.raises(ElementConfigurationError, match="quadrature points"):
            ElasticityElementCacheEntry(element, NeoHookeanCacheEntry(1))

    def test_attach_entry_of_other_element(self, element, tetra4_nodes, model):
        other = ElasticityElement(8, range(4), 1000.0, model, tetra4_nodes.T)
        with pytest.raises(ElementConfigurationError, match="cannot be attached"):
            element.attach_cache_entry(other.make_element_cache_entry())

    def test_attach_entry_of_other_model(self, element, tetra4_nodes):
        linear = ElasticityElement(
            7,
            range(4),
            1000.0,
            LinearElasticityModel(1.0, 0.3),
            tetra4_nodes.T,
            quadrature=SimplexGaussianQuadrature(2, 3),
        )
        with pytest.raises(ElementConfigurationError, match="does not match"):
            element.attach_cache_entry(linear.make_element_cache_entry())


# =============================================================================
# Unit Tests: Cached element evaluation
# =============================================================================


class TestCachedEvaluation:
    def test_energy_residual_share_one_update(self, element, state, model):
        element.attach_cache_entry(element.make_element_cache_entry())
        energy = element.compute_elastic_energy(state)
        residual = element.compute_residual(state)
        element.compute_elastic_force(state)
        assert model.update_count == 1
        assert element.cache_entry.version == state.version

        element.attach_cache_entry(None)
        assert element.cache_entry is None
        assert torch.allclose(element.compute_elastic_energy(state), energy)
        assert torch.allclose(element.compute_residual(state), residual)

    def test_uncached_evaluation_updates_every_call(self, element, state, model):
        element.compute_elastic_energy(state)
        element.compute_residual(state)
        assert model.update_count == 2

    def test_state_change_triggers_update(self, element, state, model, tetra4_nodes):
        element.attach_cache_entry(element.make_element_cache_entry())
        e0 = float(element.compute_elastic_energy(state))
        state.set_q(tetra4_nodes)
        e1 = float(element.compute_elastic_energy(state))
        assert model.update_count == 2
        assert e0 > 0
        assert e1 == pytest.approx(0.0, abs=1e-14)

    def test_dual_state_bypasses_cache(self, element, state, model):
        element.attach_cache_entry(element.make_element_cache_entry())
        q = state.q.numpy()
        with dual_level():
            element.compute_residual(make_dual_state(q, np.ones_like(q)))
        assert element.cache_entry.version is None
        assert model.update_count == 1

    def test_concurrent_refresh_updates_once(self, element, state, model):
        element.attach_cache_entry(element.make_element_cache_entry())
        with ThreadPoolExecutor(max_workers=8) as pool:
            energies = list(pool.map(lambda _: element.compute_elastic_energy(state), range(32)))
        assert model.update_count == 1
        assert all(torch.equal(e, energies[0]) for e in energies)

    def test_caller_buffer_mutation_does_not_reach_cache(self, element, tetra4_nodes):
        element.attach_cache_entry(element.make_element_cache_entry())
        q = tetra4_nodes.reshape(-1).copy()
        state = FemState(q)
        e0 = float(element.compute_elastic_energy(state))

        q *= 1.1
        e1 = float(element.compute_elastic_energy(state))
        element.attach_cache_entry(None)
        uncached = float(element.compute_elastic_energy(state))

        assert e0 == pytest.approx(0.0, abs=1e-14)
        assert e1 == pytest.approx(0.0, abs=1e-14), "State must not alias the caller's array"
        assert uncached == pytest.approx(e1, abs=1e-14)

    def test_returned_positions_are_a_copy(self, tetra4_nodes):
        state = FemState(tetra4_nodes)
        q = state.q
        q[0] += 1.0
        assert torch.equal(state.get_positions(range(4)), torch.as_tensor(tetra4_nodes.T))

    def test_concurrent_evaluation_of_two_states(self, element, tetra4_nodes):
        states = [FemState(tetra4_nodes), FemState(1.2 * tetra4_nodes)]
        expected = [float(element.compute_elastic_energy(s)) for s in states]
        assert expected[0] == pytest.approx(0.0, abs=1e-14)
        assert expected[1] > 0

        element.attach_cache_entry(element.make_element_cache_entry())
        with ThreadPoolExecutor(max_workers=8) as pool:
            energies = list(
                pool.map(lambda i: float(element.compute_elastic_energy(states[i % 2])), range(64))
            )
        for i, energy in enumerate(energies):
            assert energy == pytest.approx(expected[i % 2], rel=1e-12, abs=1e-14), (
                f"Evaluation {i} returned the energy of the other state"
            )
