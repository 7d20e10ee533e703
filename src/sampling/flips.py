"""Local plaquette flips for the six-vertex model.

A flip reverses the four arrows around one elementary face of the lattice,
i.e. the inner edges of a 2×2 block of vertices. It is legal only when those
four arrows form a directed cycle; every vertex of the block then changes
exactly the two edges it shares with the block, so the ice rule and the
arrows on all outer edges are preserved.

Two orientations address the block from different corners:

  Up at base (r, c):    base=(r, c)  right=(r, c+1)  upper_right=(r-1, c+1)  upper=(r-1, c)
  Down at base (r, c):  down_left=(r+1, c-1)  down=(r+1, c)  base=(r, c)  left=(r, c-1)

Plaquette tuples are always ordered as above. The directed-cycle condition
reduces to a test on two diagonal corners:

  Up:   base in {a1, c2} and upper_right in {a2, c2}   (clockwise cycle)
  Down: base in {a1, c1} and down_left   in {a2, c1}   (counter-clockwise)

The Up flip at (r, c) turns the clockwise cycle counter-clockwise; the same
face is then addressed as a Down flip at (r-1, c+1), which undoes it.

Each corner transforms through its own fixed substitution table. Codes not
listed for a corner are left unchanged (they never occur once the two-corner
test holds).
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

import numpy as np

from src.lattices.vertex_types import N_VERTEX_TYPES, VertexType

A1, A2, B1, B2, C1, C2 = (int(t) for t in VertexType)

Plaquette = Tuple[int, int, int, int]


class FlipDirection(Enum):
    UP = "up"
    DOWN = "down"


def _substitution(mapping) -> Tuple[int, ...]:
    table = list(range(N_VERTEX_TYPES))
    for src, dst in mapping.items():
        table[src] = dst
    return tuple(table)


def _membership(*types) -> Tuple[bool, ...]:
    return tuple(t in types for t in range(N_VERTEX_TYPES))


# Per-corner substitutions in plaquette order
UP_SUBSTITUTIONS = (
    _substitution({A1: C1, C2: A2}),  # base
    _substitution({B2: C2, C1: B1}),  # right
    _substitution({A2: C1, C2: A1}),  # upper_right
    _substitution({B1: C2, C1: B2}),  # upper
)
DOWN_SUBSTITUTIONS = (
    _substitution({A2: C2, C1: A1}),  # down_left
    _substitution({C2: B2, B1: C1}),  # down
    _substitution({A1: C2, C1: A2}),  # base
    _substitution({C2: B1, B2: C1}),  # left
)

_UP_BASE_OK = _membership(A1, C2)
_UP_UPPER_RIGHT_OK = _membership(A2, C2)
_DOWN_BASE_OK = _membership(A1, C1)
_DOWN_LOWER_LEFT_OK = _membership(A2, C1)


def plaquette_indices(
    width: int,
    height: int,
    row: int,
    col: int,
    direction: FlipDirection,
) -> Optional[Tuple[int, int, int, int]]:
    """Flat indices of the four plaquette cells, or None off the grid."""
    if not (0 <= row < height and 0 <= col < width):
        return None
    base = row * width + col
    if direction is FlipDirection.UP:
        if row == 0 or col == width - 1:
            return None
        return (base, base + 1, base - width + 1, base - width)
    if row == height - 1 or col == 0:
        return None
    return (base + width - 1, base + width, base, base - 1)


def plaquette_allows(types: Plaquette, direction: FlipDirection) -> bool:
    """Directed-cycle test on the four ordered plaquette types."""
    if direction is FlipDirection.UP:
        return _UP_BASE_OK[types[0]] and _UP_UPPER_RIGHT_OK[types[2]]
    return _DOWN_BASE_OK[types[2]] and _DOWN_LOWER_LEFT_OK[types[0]]


def transform_plaquette(types: Plaquette, direction: FlipDirection) -> Optional[Plaquette]:
    """Return the four replacement types, or None if the move is not legal.

    Pure function of the ordered plaquette types; nothing is mutated.
    """
    types = tuple(int(t) for t in types)
    if not plaquette_allows(types, direction):
        return None
    tables = UP_SUBSTITUTIONS if direction is FlipDirection.UP else DOWN_SUBSTITUTIONS
    return (
        tables[0][types[0]],
        tables[1][types[1]],
        tables[2][types[2]],
        tables[3][types[3]],
    )


def is_flip_valid(
    vertices: np.ndarray,
    width: int,
    height: int,
    row: int,
    col: int,
    direction: FlipDirection,
) -> bool:
    """Whether the move at (row, col) is legal on the current vertex array."""
    if not (0 <= row < height and 0 <= col < width):
        return False
    base = row * width + col
    if direction is FlipDirection.UP:
        if row == 0 or col == width - 1:
            return False
        return _UP_BASE_OK[vertices[base]] and _UP_UPPER_RIGHT_OK[vertices[base - width + 1]]
    if row == height - 1 or col == 0:
        return False
    return _DOWN_BASE_OK[vertices[base]] and _DOWN_LOWER_LEFT_OK[vertices[base + width - 1]]


def plaquette_types(vertices: np.ndarray, indices: Tuple[int, int, int, int]) -> Plaquette:
    return tuple(int(vertices[i]) for i in indices)


def apply_flip(lattice, row: int, col: int, direction: FlipDirection) -> Optional[Tuple[int, int, int, int]]:
    """Validate and perform a move in place.

    Returns the flat indices of the four mutated cells, or None (lattice
    untouched) if the move is not legal here.
    """
    indices = plaquette_indices(lattice.width, lattice.height, row, col, direction)
    if indices is None:
        return None
    new_types = transform_plaquette(plaquette_types(lattice.vertices, indices), direction)
    if new_types is None:
        return None
    lattice.assign(indices, new_types)
    return indices
