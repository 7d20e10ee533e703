"""Tests for weights, normalisation and Metropolis / heat-bath acceptance."""
import itertools
import logging

import numpy as np
import pytest

from src.lattices.dwbc import DWBCHighGenerator, DWBCLowGenerator
from src.lattices.vertex_types import VertexType
from src.sampling.acceptance import (
    VertexWeights,
    acceptance_probabilities,
    decide_move,
    heat_bath_probabilities,
    metropolis_probability,
    move_ratio,
    normalizing_constant,
    weight_ratio,
)
from src.sampling.candidates import CandidateSet
from src.sampling.flips import (
    FlipDirection,
    apply_flip,
    plaquette_indices,
    plaquette_types,
    transform_plaquette,
)

A1, A2, B1, B2, C1, C2 = (int(t) for t in VertexType)


class TestVertexWeights:
    def test_defaults(self):
        np.testing.assert_array_equal(VertexWeights().as_array(), np.ones(6))

    def test_order(self):
        w = VertexWeights(a1=1, a2=2, b1=3, b2=4, c1=5, c2=6)
        np.testing.assert_array_equal(w.as_array(), [1, 2, 3, 4, 5, 6])
        assert isinstance(w.a1, float)

    def test_from_mapping(self):
        w = VertexWeights.from_mapping({"c1": 2.0, "c2": 0.5})
        assert w.c1 == 2.0 and w.c2 == 0.5 and w.a1 == 1.0

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown weight keys"):
            VertexWeights.from_mapping({"d1": 1.0})

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "1.0", None, True])
    def test_rejects_non_finite_or_non_numeric(self, bad):
        with pytest.raises(ValueError):
            VertexWeights(a1=bad)

    def test_negative_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.sampling.acceptance"):
            w = VertexWeights(b2=-1.0)
        assert w.b2 == -1.0
        assert "Negative weight b2" in caplog.text

    def test_to_dict(self):
        assert VertexWeights(c2=3.0).to_dict()["c2"] == 3.0

    def test_frozen(self):
        with pytest.raises(Exception):
            VertexWeights().a1 = 2.0


class TestNormalizingConstant:
    def test_unit_weights(self):
        assert normalizing_constant([1.0] * 6) == 1.0

    def test_max_product(self):
        assert normalizing_constant([2.0, 1, 1, 1, 1, 1]) == pytest.approx(1 / 16)
        assert normalizing_constant([0.5] * 6) == pytest.approx(16.0)

    def test_negative_weights_pair_up(self):
        # (-3)^4 beats 1^4
        assert normalizing_constant([-3.0, 1, 1, 1, 1, 1]) == pytest.approx(1 / 81)

    def test_no_positive_product(self):
        assert normalizing_constant([0.0] * 6) == 0.0


class TestProbabilities:
    def test_ratio_zero_before(self):
        w = [1, 1, 1, 1, 1, 0]
        assert weight_ratio(w, (C2, B2, C2, B1), (A2, C2, A1, C2)) == 0.0

    def test_ratio_value(self):
        w = [2.0, 1, 1, 1, 1, 1]
        assert weight_ratio(w, (A1, B2, A2, B1), (C1, C2, C1, C2)) == pytest.approx(0.5)

    def test_negative_ratio_clamped(self):
        w = [1, -1.0, 1, 1, 1, 1]
        assert weight_ratio(w, (C2, C1, C2, C1), (A2, B1, A1, B2)) == 0.0

    @pytest.mark.parametrize("ratio,rho,expected", [
        (0.0, 1.0, 0.0), (0.5, 1.0, 0.5), (4.0, 1.0, 1.0), (4.0, 0.125, 0.5), (3.0, 0.0, 0.0),
    ])
    def test_metropolis(self, ratio, rho, expected):
        assert metropolis_probability(ratio, rho) == pytest.approx(expected)

    def test_heat_bath_sums_to_one(self):
        rng = np.random.default_rng(0)
        for r_up, r_down in rng.exponential(2.0, size=(200, 2)):
            probs = heat_bath_probabilities(r_up, r_down)
            assert sum(probs) == pytest.approx(1.0)
            assert all(0.0 <= p <= 1.0 for p in probs)

    def test_heat_bath_values(self):
        p_up, p_down, p_stay = heat_bath_probabilities(1.0, 2.0)
        assert (p_up, p_down, p_stay) == pytest.approx((0.25, 0.5, 0.25))

    def test_heat_bath_negative_clamped(self):
        assert heat_bath_probabilities(-1.0, 1.0) == pytest.approx((0.0, 0.5, 0.5))


class TestZeroWeight:
    """Zero c2 weight forbids creating c2 and leaves other moves untouched."""

    @staticmethod
    def _legal_moves():
        for types in itertools.product(range(6), repeat=4):
            for direction in (FlipDirection.UP, FlipDirection.DOWN):
                after = transform_plaquette(types, direction)
                if after is not None:
                    yield types, after

    def test_creating_c2_rejected(self):
        w = VertexWeights(c2=0.0).as_array().tolist()
        rho = normalizing_constant(w)
        n_checked = 0
        for before, after in self._legal_moves():
            if C2 in after and C2 not in before:
                assert metropolis_probability(weight_ratio(w, before, after), rho) == 0.0
                n_checked += 1
        assert n_checked > 0

    @pytest.mark.parametrize("base", [
        [1.0] * 6,
        [2.0, 1.5, 1.0, 0.5, 1.2, 0.8],
    ])
    def test_other_moves_unaffected(self, base):
        with_c2 = list(base)
        without_c2 = list(base[:5]) + [0.0]
        rho_a = normalizing_constant(with_c2)
        rho_b = normalizing_constant(without_c2)
        assert rho_a == rho_b
        for before, after in self._legal_moves():
            if C2 in before or C2 in after:
                continue
            p_a = metropolis_probability(weight_ratio(with_c2, before, after), rho_a)
            p_b = metropolis_probability(weight_ratio(without_c2, before, after), rho_b)
            assert p_a == p_b

    @staticmethod
    def _check_biflip_site(lattice, entry, base, without_c2):
        """Check one both-directions site; return how many directions touch c2."""
        n = lattice.width
        probs = acceptance_probabilities(
            lattice.vertices, n, n, entry.row, entry.col, True, True,
            without_c2, normalizing_constant(without_c2),
        )
        free_ratios = {}
        n_blocked = 0
        for direction in (FlipDirection.UP, FlipDirection.DOWN):
            indices = plaquette_indices(n, n, entry.row, entry.col, direction)
            before = plaquette_types(lattice.vertices, indices)
            after = transform_plaquette(before, direction)
            if C2 in before or C2 in after:
                assert probs[direction.value] == 0.0
                n_blocked += 1
            else:
                ratio = move_ratio(lattice.vertices, n, n, entry.row, entry.col, direction, base)
                assert move_ratio(
                    lattice.vertices, n, n, entry.row, entry.col, direction, without_c2,
                ) == ratio
                free_ratios[direction.value] = ratio
        total = 1.0 + sum(free_ratios.values())
        for key, ratio in free_ratios.items():
            assert probs[key] == pytest.approx(ratio / total)
        assert probs["stay"] == pytest.approx(1.0 / total)
        return n_blocked

    def test_both_directions_site(self):
        base = [2.0, 1.5, 1.0, 0.5, 1.2, 0.8]
        without_c2 = base[:5] + [0.0]
        lattice = DWBCHighGenerator().build(4)
        apply_flip(lattice, 3, 0, FlipDirection.UP)
        entry = CandidateSet(lattice).entry(2, 1)
        assert entry.can_flip_up and entry.can_flip_down
        # Both plaquettes at (2, 1) hold or create a c2
        assert self._check_biflip_site(lattice, entry, base, without_c2) == 2

    def test_both_directions_along_walk(self):
        base = [2.0, 1.5, 1.0, 0.5, 1.2, 0.8]
        without_c2 = base[:5] + [0.0]
        rng = np.random.default_rng(17)
        lattice = DWBCHighGenerator().build(6)
        cs = CandidateSet(lattice)
        n_sites = 0
        for _ in range(400):
            for entry in cs.entries():
                if entry.can_flip_up and entry.can_flip_down:
                    self._check_biflip_site(lattice, entry, base, without_c2)
                    n_sites += 1
            e = cs.pick_uniform(rng)
            direction = FlipDirection.UP if e.can_flip_up else FlipDirection.DOWN
            cs.refresh_after(apply_flip(lattice, e.row, e.col, direction))
        assert n_sites > 0


class TestOnLattice:
    def test_probabilities_bounded_along_walk(self):
        rng = np.random.default_rng(5)
        lattice = DWBCLowGenerator().build(6)
        cs = CandidateSet(lattice)
        w = [1.3, 0.7, 1.0, 2.0, 0.4, 1.1]
        rho = normalizing_constant(w)
        for _ in range(300):
            e = cs.pick_uniform(rng)
            probs = acceptance_probabilities(
                lattice.vertices, 6, 6, e.row, e.col, e.can_flip_up, e.can_flip_down, w, rho,
            )
            assert all(0.0 <= p <= 1.0 for p in probs.values())
            assert sum(probs.values()) == pytest.approx(1.0)
            if not e.can_flip_up:
                assert probs["up"] == 0.0
            if not e.can_flip_down:
                assert probs["down"] == 0.0
            direction = FlipDirection.UP if e.can_flip_up else FlipDirection.DOWN
            cs.refresh_after(apply_flip(lattice, e.row, e.col, direction))

    def test_move_ratio_illegal_is_zero(self):
        lattice = DWBCHighGenerator().build(4)
        assert move_ratio(lattice.vertices, 4, 4, 0, 0, FlipDirection.UP, [1.0] * 6) == 0.0

    def test_unit_weights_always_accept(self):
        lattice = DWBCHighGenerator().build(4)
        probs = acceptance_probabilities(lattice.vertices, 4, 4, 3, 0, True, False, [1.0] * 6, 1.0)
        assert probs == {"up": 1.0, "down": 0.0, "stay": 0.0}

    def test_decide_consumes_one_draw(self):
        lattice = DWBCHighGenerator().build(4)
        rng = np.random.default_rng(9)
        reference = np.random.default_rng(9)
        result = decide_move(lattice.vertices, 4, 4, 3, 0, True, False, [1.0] * 6, 1.0, rng)
        reference.random()
        assert result is FlipDirection.UP
        assert rng.random() == reference.random()

    def test_decide_rejects_zero_pre_weight(self):
        # Every DWBC-high move starts from a c2 base
        lattice = DWBCHighGenerator().build(4)
        rng = np.random.default_rng(0)
        w = VertexWeights(c2=0.0).as_array().tolist()
        for _ in range(50):
            assert decide_move(lattice.vertices, 4, 4, 2, 1, True, False, w,
                               normalizing_constant(w), rng) is None
