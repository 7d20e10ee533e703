"""Monte Carlo driver for the six-vertex model.

One SixVertexSimulation owns a lattice, its candidate set, a seeded numpy
Generator and the current weight table. A proposal cycle is:

1. pick a flippable site uniformly (one rng draw),
2. decide up / down / stay from the weight ratios (one rng draw),
3. apply the chosen flip and refresh the candidate set around it.

Fixed seed + config gives a bit-identical trajectory. ``run(n)`` is exactly
n calls to ``step()`` without the per-call stats, split into batches at
whose boundaries a caller may stop the run.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from src.lattices.base import LatticeSizeError, LatticeState
from src.lattices.registry import get_generator
from src.lattices.vertex_types import VERTEX_LABELS
from src.observables.height import calculate_height_function
from src.sampling.acceptance import VertexWeights, decide_move, normalizing_constant
from src.sampling.candidates import CandidateSet
from src.sampling.flips import apply_flip
from src.topology.ice_rule import find_local_violations

logger = logging.getLogger(__name__)


def resolve_seed(seed: Optional[int]) -> int:
    """Return seed unchanged, or a 32-bit seed taken from the current time."""
    if seed is None:
        return int(time.time() * 1000) & 0xFFFFFFFF
    return int(seed)


@dataclass
class SimulationConfig:
    """Parameters of one Markov chain.

    Attributes:
        size: Lattice side length N (the lattice is N x N).
        weights: Boltzmann weight of each vertex type.
        seed: RNG seed; None picks one from the clock.
        batch_size: Proposal cycles between cancellation checks in run().
        initial_state: Name of a registered initial-state generator.
        debug_checks: Re-check the ice rule around every accepted move.
    """
    size: int
    weights: VertexWeights = field(default_factory=VertexWeights)
    seed: Optional[int] = None
    batch_size: int = 100
    initial_state: str = "dwbc-high"
    debug_checks: bool = False

    def __post_init__(self):
        if isinstance(self.weights, dict):
            self.weights = VertexWeights.from_mapping(self.weights)

    def validate(self) -> None:
        if int(self.size) < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")
        if int(self.batch_size) < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "weights": self.weights.to_dict(),
            "seed": self.seed,
            "batch_size": self.batch_size,
            "initial_state": self.initial_state,
            "debug_checks": self.debug_checks,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        return cls(
            size=int(data["size"]),
            weights=VertexWeights.from_mapping(data.get("weights", {})),
            seed=data.get("seed"),
            batch_size=int(data.get("batch_size", 100)),
            initial_state=data.get("initial_state", "dwbc-high"),
            debug_checks=bool(data.get("debug_checks", False)),
        )


@dataclass
class SimulationStats:
    """Snapshot of chain statistics, plain data only."""

    step: int
    attempted: int
    accepted: int
    acceptance_rate: float
    vertex_counts: Dict[str, int]
    energy: float
    volume: int
    average_height: float
    candidate_count: int
    seed: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def configuration_energy(counts: Sequence[int], weights: Sequence[float]) -> float:
    """E = -sum_t count_t * log w_t; +inf if a present type has weight <= 0."""
    energy = 0.0
    for count, w in zip(counts, weights):
        if count == 0:
            continue
        if w <= 0:
            return math.inf
        energy -= count * math.log(w)
    return energy


class SixVertexSimulation:
    """Seeded single-site-flip Markov chain on an N x N six-vertex lattice."""

    def __init__(self, config: SimulationConfig):
        config.validate()
        self.config = config
        self._generator = get_generator(config.initial_state)
        self.seed = resolve_seed(config.seed)
        self.set_weights(config.weights)

        # Selected once; the hot path never branches on debug mode
        self._after_move = self._check_move if config.debug_checks else _skip_check

        self._initialize()
        logger.info(
            f"Simulation ready: {config.initial_state} N={config.size}, "
            f"seed={self.seed}, {len(self.candidates)} flippable sites"
        )

    def _initialize(self) -> None:
        self.rng = np.random.default_rng(self.seed)
        self.lattice = self._generator.build(self.config.size)
        self.candidates = CandidateSet(self.lattice)
        self.step_count = 0
        self.attempted = 0
        self.accepted = 0

    @property
    def size(self) -> int:
        return self.config.size

    @property
    def weights(self) -> VertexWeights:
        return self._weights

    @property
    def rho(self) -> float:
        return self._rho

    # --- Configuration ---

    def set_weights(self, weights) -> None:
        """Replace the weight table and recompute the global normaliser."""
        if not isinstance(weights, VertexWeights):
            weights = VertexWeights.from_mapping(weights)
        self._weights = weights
        self.config.weights = weights
        self._weight_array = weights.as_array()
        self._weight_list = self._weight_array.tolist()
        self._rho = normalizing_constant(self._weight_list)
        if self._rho == 0.0:
            logger.warning("No plaquette has positive weight; every move will be rejected")

    # --- Dynamics ---

    def _cycle(self) -> bool:
        """One proposal cycle. Returns False if no move exists anywhere."""
        entry = self.candidates.pick_uniform(self.rng)
        if entry is None:
            return False
        self.attempted += 1
        self.step_count += 1
        direction = decide_move(
            self.lattice.vertices,
            self.lattice.width,
            self.lattice.height,
            entry.row,
            entry.col,
            entry.can_flip_up,
            entry.can_flip_down,
            self._weight_list,
            self._rho,
            self.rng,
        )
        if direction is None:
            return True
        mutated = apply_flip(self.lattice, entry.row, entry.col, direction)
        if mutated is None:
            raise AssertionError(
                f"Candidate ({entry.row}, {entry.col}) could not flip {direction.value}"
            )
        self.accepted += 1
        self.candidates.refresh_after(mutated)
        self._after_move(mutated)
        return True

    def step(self) -> SimulationStats:
        """Perform one proposal cycle (a no-op on a frozen chain)."""
        self._cycle()
        return self.stats()

    def run(
        self,
        n_steps: int,
        should_stop: Optional[Callable[[], bool]] = None,
        on_batch: Optional[Callable[[SimulationStats], None]] = None,
    ) -> int:
        """Perform up to n_steps proposal cycles.

        should_stop is polled before every batch; on_batch receives the stats
        after every batch. Stops early if the chain is frozen.

        Returns:
            Number of proposal cycles actually performed.
        """
        done = 0
        batch_size = self.config.batch_size
        while done < n_steps:
            if should_stop is not None and should_stop():
                logger.debug(f"Run cancelled after {done}/{n_steps} steps")
                break
            batch = min(batch_size, n_steps - done)
            frozen = False
            for _ in range(batch):
                if not self._cycle():
                    frozen = True
                    break
                done += 1
            if on_batch is not None:
                on_batch(self.stats())
            if frozen:
                logger.warning(f"No flippable site left after {done} steps; chain is frozen")
                break
        logger.debug(f"Run finished: {done} steps, {self.accepted}/{self.attempted} accepted")
        return done

    def reset(self) -> None:
        """Return to the configured initial state, RNG seed and zero counters."""
        self._initialize()
        logger.info(f"Simulation reset to {self.config.initial_state} (seed={self.seed})")

    # --- State access ---

    def set_state(self, raw) -> None:
        """Install an external configuration and rebuild the candidate set.

        Raises:
            LatticeSizeError: If raw does not hold size * size vertices.
            IceRuleError: If raw is not a valid ice configuration.
        On failure the current state is left untouched.
        """
        if isinstance(raw, LatticeState):
            raw = raw.vertices
        arr = np.asarray(raw)
        n = self.config.size
        if arr.size != n * n:
            raise LatticeSizeError(
                f"size mismatch: expected {n * n} vertices, got {arr.size}"
            )
        lattice = LatticeState(width=n, height=n, vertices=arr.ravel())
        lattice.validate()
        self.lattice = lattice
        self.candidates = CandidateSet(lattice)
        logger.info(f"Installed external state, {len(self.candidates)} flippable sites")

    def raw_state(self) -> np.ndarray:
        """Copy of the flat int8 vertex array."""
        return self.lattice.vertices.copy()

    def get_state(self) -> LatticeState:
        """Independent copy of the current lattice."""
        return self.lattice.copy()

    def stats(self) -> SimulationStats:
        counts = self.lattice.vertex_counts()
        height = calculate_height_function(self.lattice)
        return SimulationStats(
            step=self.step_count,
            attempted=self.attempted,
            accepted=self.accepted,
            acceptance_rate=self.accepted / self.attempted if self.attempted else 0.0,
            vertex_counts={label: int(c) for label, c in zip(VERTEX_LABELS, counts)},
            energy=configuration_energy(counts.tolist(), self._weight_list),
            volume=height.total_volume,
            average_height=height.average_height,
            candidate_count=len(self.candidates),
            seed=self.seed,
        )

    # --- Debug hook ---

    def _check_move(self, mutated) -> None:
        lat = self.lattice
        w = lat.width
        neighbourhood = set()
        for idx in mutated:
            r, c = divmod(int(idx), w)
            for dr, dc in ((0, 0), (-1, 0), (1, 0), (0, -1), (0, 1)):
                if 0 <= r + dr < lat.height and 0 <= c + dc < w:
                    neighbourhood.add((r + dr) * w + c + dc)
        errors = find_local_violations(lat.vertices, w, lat.height, sorted(neighbourhood))
        if errors:
            raise AssertionError(f"Ice rule broken after move: {errors[0]}")


def _skip_check(mutated) -> None:
    pass
