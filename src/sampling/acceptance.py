"""Boltzmann weights and Metropolis / heat-bath acceptance for plaquette flips.

The weight of a configuration is the product of its vertex weights, so a
flip changes it by the ratio of the four post-move weights to the four
pre-move weights of its plaquette.

Single-direction sites use Metropolis with the global normaliser
rho = 1 / max_{t1..t4} w(t1) w(t2) w(t3) w(t4):

    P(accept) = min(1, rho * r)

Sites where both an Up and a Down move exist use heat-bath over the three
outcomes {up, down, stay}, normalised per site:

    total = 1 + r_up + r_down
    p_up = r_up / total,  p_down = r_down / total,  p_stay = 1 / total

A zero pre-move product never divides: the ratio is 0 and the move is
rejected. Negative ratios (from negative weights) are clamped to 0.
"""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import asdict, dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from src.lattices.vertex_types import VERTEX_LABELS
from src.sampling.flips import (
    FlipDirection,
    plaquette_indices,
    plaquette_types,
    transform_plaquette,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VertexWeights:
    """Boltzmann weight of each of the six vertex types."""

    a1: float = 1.0
    a2: float = 1.0
    b1: float = 1.0
    b2: float = 1.0
    c1: float = 1.0
    c2: float = 1.0

    def __post_init__(self):
        for label in VERTEX_LABELS:
            value = getattr(self, label)
            if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
                raise ValueError(f"Weight '{label}' must be a real number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"Weight '{label}' must be finite, got {value}")
            object.__setattr__(self, label, float(value))
            if value < 0:
                logger.warning(
                    f"Negative weight {label}={value}; moves into this type will never be accepted"
                )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float]) -> "VertexWeights":
        unknown = set(mapping) - set(VERTEX_LABELS)
        if unknown:
            raise ValueError(f"Unknown weight keys: {', '.join(sorted(unknown))}")
        return cls(**{k: mapping[k] for k in mapping})

    def as_array(self) -> np.ndarray:
        """Weights indexed by vertex type code."""
        return np.array([getattr(self, label) for label in VERTEX_LABELS], dtype=np.float64)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def normalizing_constant(weights: Sequence[float]) -> float:
    """rho = 1 / (largest product of four vertex weights over all 6^4 plaquettes).

    Returns 0.0 when no plaquette has a positive weight.
    """
    w = [float(x) for x in weights]
    max_product = max(
        a * b * c * d for a, b, c, d in itertools.product(w, repeat=4)
    )
    if max_product <= 0:
        return 0.0
    return 1.0 / max_product


def weight_ratio(
    weights: Sequence[float],
    before: Sequence[int],
    after: Sequence[int],
) -> float:
    """Post-move over pre-move plaquette weight; 0 if the pre-move weight is 0."""
    w_before = weights[before[0]] * weights[before[1]] * weights[before[2]] * weights[before[3]]
    if w_before == 0:
        return 0.0
    w_after = weights[after[0]] * weights[after[1]] * weights[after[2]] * weights[after[3]]
    return max(0.0, w_after / w_before)


def metropolis_probability(ratio: float, rho: float) -> float:
    """Acceptance probability of the only move available at a site."""
    return min(1.0, max(0.0, rho * ratio))


def heat_bath_probabilities(ratio_up: float, ratio_down: float) -> Tuple[float, float, float]:
    """(p_up, p_down, p_stay) for a site where both moves are legal."""
    ratio_up = max(0.0, ratio_up)
    ratio_down = max(0.0, ratio_down)
    total = 1.0 + ratio_up + ratio_down
    return ratio_up / total, ratio_down / total, 1.0 / total


def move_ratio(
    vertices: np.ndarray,
    width: int,
    height: int,
    row: int,
    col: int,
    direction: FlipDirection,
    weights: Sequence[float],
) -> float:
    """Weight ratio of the move at (row, col); 0 if it is not legal there."""
    indices = plaquette_indices(width, height, row, col, direction)
    if indices is None:
        return 0.0
    before = plaquette_types(vertices, indices)
    after = transform_plaquette(before, direction)
    if after is None:
        return 0.0
    return weight_ratio(weights, before, after)


def acceptance_probabilities(
    vertices: np.ndarray,
    width: int,
    height: int,
    row: int,
    col: int,
    can_flip_up: bool,
    can_flip_down: bool,
    weights: Sequence[float],
    rho: float,
) -> Dict[str, float]:
    """Probabilities of each outcome at a picked site: keys up, down, stay."""
    if can_flip_up and can_flip_down:
        r_up = move_ratio(vertices, width, height, row, col, FlipDirection.UP, weights)
        r_down = move_ratio(vertices, width, height, row, col, FlipDirection.DOWN, weights)
        p_up, p_down, p_stay = heat_bath_probabilities(r_up, r_down)
        return {"up": p_up, "down": p_down, "stay": p_stay}
    if can_flip_up or can_flip_down:
        direction = FlipDirection.UP if can_flip_up else FlipDirection.DOWN
        ratio = move_ratio(vertices, width, height, row, col, direction, weights)
        p = metropolis_probability(ratio, rho)
        probs = {"up": 0.0, "down": 0.0, "stay": 1.0 - p}
        probs[direction.value] = p
        return probs
    return {"up": 0.0, "down": 0.0, "stay": 1.0}


def decide_move(
    vertices: np.ndarray,
    width: int,
    height: int,
    row: int,
    col: int,
    can_flip_up: bool,
    can_flip_down: bool,
    weights: Sequence[float],
    rho: float,
    rng: np.random.Generator,
) -> Optional[FlipDirection]:
    """Draw the outcome at a picked site; None means stay.

    Consumes exactly one uniform draw from rng.
    """
    probs = acceptance_probabilities(
        vertices, width, height, row, col, can_flip_up, can_flip_down, weights, rho,
    )
    u = rng.random()
    if u < probs["up"]:
        return FlipDirection.UP
    if u < probs["up"] + probs["down"]:
        return FlipDirection.DOWN
    return None
