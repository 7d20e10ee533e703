"""Save/load simulation snapshots as .npz + .json files."""
from __future__ import annotations

import json
import logging
import os
from typing import Dict

import numpy as np

from src.sampling.simulation import SimulationConfig, SixVertexSimulation

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class _NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.bool_):
            return bool(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def save_snapshot(sim: SixVertexSimulation, directory: str, name: str) -> None:
    """Save the lattice to <name>.npz and config + stats to <name>_meta.json."""
    os.makedirs(directory, exist_ok=True)

    np.savez_compressed(
        os.path.join(directory, f"{name}.npz"),
        vertices=sim.lattice.grid(),
    )

    meta = {
        "format_version": FORMAT_VERSION,
        "config": sim.config.to_dict(),
        "resolved_seed": sim.seed,
        "stats": sim.stats().to_dict(),
    }
    with open(os.path.join(directory, f"{name}_meta.json"), "w") as f:
        json.dump(meta, f, indent=2, cls=_NumpyEncoder)

    logger.info(f"Saved snapshot '{name}' to {directory}")


def load_snapshot(directory: str, name: str) -> Dict:
    """Load a saved snapshot as a dict with arrays and metadata."""
    meta_path = os.path.join(directory, f"{name}_meta.json")
    with open(meta_path) as f:
        meta = json.load(f)

    version = meta.get("format_version")
    if version != FORMAT_VERSION:
        raise ValueError(
            f"Unsupported snapshot format version {version} in {meta_path} "
            f"(expected {FORMAT_VERSION})"
        )

    npz_path = os.path.join(directory, f"{name}.npz")
    with np.load(npz_path) as data:
        arrays = {key: data[key] for key in data.files}

    return {**meta, **arrays}


def restore_simulation(directory: str, name: str) -> SixVertexSimulation:
    """Rebuild a simulation from a snapshot and install its saved lattice.

    The saved seed is reused so the restored chain is reproducible, but
    counters restart at zero and the RNG stream restarts from that seed.
    """
    snapshot = load_snapshot(directory, name)
    config = SimulationConfig.from_dict(snapshot["config"])
    if config.seed is None:
        config.seed = snapshot["resolved_seed"]
    sim = SixVertexSimulation(config)
    sim.set_state(snapshot["vertices"])
    return sim
