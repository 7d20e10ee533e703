"""Tests for the dual-run convergence tracker."""
import pytest

from src.sampling.acceptance import VertexWeights
from src.sampling.dual import HISTORY_SIZE, MIN_HISTORY, DualSimulation


@pytest.fixture
def dual4():
    return DualSimulation(4, seed_a=1)


class TestDualSetup:
    def test_initial_states(self, dual4):
        assert dual4.sim_a.config.initial_state == "dwbc-high"
        assert dual4.sim_b.config.initial_state == "dwbc-low"
        assert (dual4.sim_a.seed, dual4.sim_b.seed) == (1, 2)

    def test_unseeded_chains_get_distinct_seeds(self):
        dual = DualSimulation(4)
        assert dual.sim_b.seed == dual.sim_a.seed + 1
        assert dual.config_a.seed == dual.sim_a.seed

    def test_unseeded_same_start_diverges(self):
        dual = DualSimulation(6, initial_b="dwbc-high")
        dual.step(300)
        assert dual.sim_a.rng.random() != dual.sim_b.rng.random()

    def test_explicit_seed_b_kept(self):
        dual = DualSimulation(4, seed_a=5, seed_b=50)
        assert (dual.sim_a.seed, dual.sim_b.seed) == (5, 50)

    def test_independent_lattices(self, dual4):
        assert dual4.sim_a.lattice is not dual4.sim_b.lattice
        assert dual4.sim_a.rng is not dual4.sim_b.rng

    def test_step_advances_both(self, dual4):
        dual4.step(50)
        assert dual4.sim_a.attempted == 50
        assert dual4.sim_b.attempted == 50


class TestConvergenceMetrics:
    def test_initial_metrics(self, dual4):
        m = dual4.convergence_metrics()
        assert m.volume_difference == 10
        assert m.volume_ratio == pytest.approx(0.75)
        assert m.normalized_difference == pytest.approx(0.25)
        assert m.smoothed_difference == pytest.approx(0.25)
        assert m.average_height_difference == pytest.approx(10 / 16)
        assert m.history_length == 1
        assert not m.is_converged

    def test_history_bounded(self, dual4):
        for _ in range(HISTORY_SIZE + 30):
            dual4.convergence_metrics()
        assert len(dual4.convergence_history()) == HISTORY_SIZE

    def test_converged_needs_history(self):
        dual = DualSimulation(4, seed_a=3, initial_b="dwbc-high")
        for i in range(1, MIN_HISTORY):
            assert not dual.convergence_metrics().is_converged, i
        m = dual.convergence_metrics()
        assert m.volume_ratio == 1.0
        assert m.is_converged

    def test_to_dict(self, dual4):
        data = dual4.convergence_metrics().to_dict()
        assert data["convergence_threshold"] == 0.05
        assert set(data) >= {"volume_difference", "volume_ratio", "is_converged"}


class TestDualControl:
    def test_reset(self, dual4):
        dual4.step(200)
        dual4.convergence_metrics()
        dual4.reset()
        assert dual4.convergence_history() == []
        assert dual4.sim_a.stats().volume == 40
        assert dual4.sim_b.stats().volume == 30
        assert dual4.sim_a.attempted == 0

    def test_set_weights(self, dual4):
        dual4.set_weights(VertexWeights(c1=2.0))
        assert dual4.sim_a.weights.c1 == 2.0
        assert dual4.sim_b.weights.c1 == 2.0
        assert dual4.sim_a.rho == dual4.sim_b.rho
