"""Tests for snapshot save/load."""
import json
import os

import numpy as np
import pytest

from src.io.serialize import FORMAT_VERSION, load_snapshot, restore_simulation, save_snapshot
from src.sampling.acceptance import VertexWeights
from src.sampling.simulation import SimulationConfig, SixVertexSimulation


@pytest.fixture
def sim():
    config = SimulationConfig(size=6, weights=VertexWeights(c1=1.5), seed=3,
                              initial_state="dwbc-low")
    s = SixVertexSimulation(config)
    s.run(500)
    return s


class TestSaveLoad:
    def test_files_written(self, sim, tmp_path):
        save_snapshot(sim, str(tmp_path), "run")
        assert os.path.exists(tmp_path / "run.npz")
        assert os.path.exists(tmp_path / "run_meta.json")

    def test_load(self, sim, tmp_path):
        save_snapshot(sim, str(tmp_path), "run")
        data = load_snapshot(str(tmp_path), "run")
        assert data["format_version"] == FORMAT_VERSION
        assert data["config"]["initial_state"] == "dwbc-low"
        assert data["config"]["weights"]["c1"] == 1.5
        assert data["resolved_seed"] == 3
        assert data["stats"]["attempted"] == 500
        np.testing.assert_array_equal(data["vertices"], sim.lattice.grid())

    def test_restore(self, sim, tmp_path):
        save_snapshot(sim, str(tmp_path), "run")
        restored = restore_simulation(str(tmp_path), "run")
        np.testing.assert_array_equal(restored.raw_state(), sim.raw_state())
        assert restored.weights == sim.weights
        assert restored.seed == 3
        assert restored.candidates.entries() == sim.candidates.entries()

    def test_restore_unseeded_reuses_resolved_seed(self, tmp_path):
        sim = SixVertexSimulation(SimulationConfig(size=4))
        save_snapshot(sim, str(tmp_path), "auto")
        restored = restore_simulation(str(tmp_path), "auto")
        assert restored.seed == sim.seed

    def test_version_mismatch(self, sim, tmp_path):
        save_snapshot(sim, str(tmp_path), "run")
        meta_path = tmp_path / "run_meta.json"
        meta = json.loads(meta_path.read_text())
        meta["format_version"] = 99
        meta_path.write_text(json.dumps(meta))
        with pytest.raises(ValueError, match="format version"):
            load_snapshot(str(tmp_path), "run")
