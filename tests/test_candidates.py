"""Tests for the incrementally maintained candidate set."""
import numpy as np
import pytest

from src.lattices.base import LatticeState
from src.lattices.dwbc import DWBCHighGenerator, DWBCLowGenerator
from src.lattices.vertex_types import VertexType
from src.sampling.candidates import CandidateSet, FlippableEntry
from src.sampling.flips import FlipDirection, apply_flip


@pytest.fixture
def high_4x4():
    return DWBCHighGenerator().build(4)


class TestBuild:
    def test_dwbc_high(self, high_4x4):
        cs = CandidateSet(high_4x4)
        assert cs.entries() == {
            FlippableEntry(1, 2, True, False),
            FlippableEntry(2, 1, True, False),
            FlippableEntry(3, 0, True, False),
        }

    def test_dwbc_low(self):
        cs = CandidateSet(DWBCLowGenerator().build(4))
        assert cs.entries() == {
            FlippableEntry(0, 1, False, True),
            FlippableEntry(1, 2, False, True),
            FlippableEntry(2, 3, False, True),
        }

    @pytest.mark.parametrize("size", [2, 5, 9])
    def test_anti_diagonal_count(self, size):
        assert len(CandidateSet(DWBCHighGenerator().build(size))) == size - 1

    def test_queries(self, high_4x4):
        cs = CandidateSet(high_4x4)
        assert (3, 0) in cs
        assert (0, 0) not in cs
        assert cs.entry(2, 1) == FlippableEntry(2, 1, True, False)
        assert cs.entry(0, 0) is None
        assert cs.count(FlipDirection.UP) == 3
        assert cs.count(FlipDirection.DOWN) == 0


class TestRefresh:
    def test_after_one_flip(self, high_4x4):
        cs = CandidateSet(high_4x4)
        mutated = apply_flip(high_4x4, 3, 0, FlipDirection.UP)
        cs.refresh_after(mutated)
        # (2, 1) becomes a biflip site: a1 with c2 up-right and a2 down-left
        assert cs.entries() == {
            FlippableEntry(1, 2, True, False),
            FlippableEntry(2, 1, True, True),
        }
        assert cs.entries() == CandidateSet.scan(high_4x4)

    @pytest.mark.parametrize("seed", [0, 1, 2])
    @pytest.mark.parametrize("start", [DWBCHighGenerator, DWBCLowGenerator])
    def test_incremental_matches_rebuild(self, start, seed):
        rng = np.random.default_rng(seed)
        lattice = start().build(6)
        cs = CandidateSet(lattice)
        for _ in range(400):
            entry = cs.pick_uniform(rng)
            assert entry is not None
            options = []
            if entry.can_flip_up:
                options.append(FlipDirection.UP)
            if entry.can_flip_down:
                options.append(FlipDirection.DOWN)
            direction = options[int(rng.integers(len(options)))]
            mutated = apply_flip(lattice, entry.row, entry.col, direction)
            assert mutated is not None
            cs.refresh_after(mutated)
            assert cs.entries() == CandidateSet.scan(lattice)
        lattice.validate()

    def test_refresh_idempotent(self, high_4x4):
        cs = CandidateSet(high_4x4)
        before = cs.entries()
        cs.refresh_after(range(16))
        assert cs.entries() == before
        assert len(cs) == 3

    def test_build_resets(self, high_4x4):
        cs = CandidateSet(high_4x4)
        apply_flip(high_4x4, 3, 0, FlipDirection.UP)
        cs.build()
        assert cs.entries() == CandidateSet.scan(high_4x4)


class TestPickUniform:
    def test_empty_returns_none(self):
        cs = CandidateSet(LatticeState.from_grid([[int(VertexType.C2)]]))
        assert len(cs) == 0
        assert cs.pick_uniform(np.random.default_rng(0)) is None

    def test_consumes_one_draw(self, high_4x4):
        cs = CandidateSet(high_4x4)
        rng = np.random.default_rng(11)
        reference = np.random.default_rng(11)
        cs.pick_uniform(rng)
        reference.random()
        assert rng.random() == reference.random()

    def test_roughly_uniform(self, high_4x4):
        cs = CandidateSet(high_4x4)
        rng = np.random.default_rng(3)
        counts = {}
        for _ in range(3000):
            e = cs.pick_uniform(rng)
            counts[(e.row, e.col)] = counts.get((e.row, e.col), 0) + 1
        assert set(counts) == {(1, 2), (2, 1), (3, 0)}
        for n in counts.values():
            assert 850 < n < 1150
