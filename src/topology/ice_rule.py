"""Ice-rule verification for six-vertex lattices.

Two independent checks are provided:

1. Type-level: every cell holds one of the six legal codes and every pair of
   horizontally or vertically adjacent cells agrees on the arrow of their
   shared edge (one sees it inward, the other outward).
2. Charge-level: the vertex charge Q = B1 @ sigma of the derived arrow view
   is zero at every cell (two arrows in, two out).

The first is what construction and set_state use; the second is an oracle
built from the incidence matrix and is mainly used by the test suite.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Optional

import numpy as np
from scipy import sparse

from src.lattices.base import IceRuleError, LatticeState
from src.lattices.vertex_types import (
    BOTTOM_POINTS_DOWN,
    LEFT_POINTS_RIGHT,
    N_VERTEX_TYPES,
    RIGHT_POINTS_RIGHT,
    TOP_POINTS_DOWN,
)
from src.topology.incidence import build_B1, edge_sigma, square_grid_edges

# Cap on the number of violation messages collected for an error report.
MAX_REPORTED = 20


def find_ice_violations(
    vertices: np.ndarray,
    width: int,
    height: int,
    max_reported: Optional[int] = MAX_REPORTED,
) -> List[str]:
    """List illegal cells and inconsistent shared edges of a vertex grid.

    Returns an empty list for a valid lattice.
    """
    grid = np.asarray(vertices).reshape(height, width)
    errors: List[str] = []

    illegal = (grid < 0) | (grid >= N_VERTEX_TYPES)
    for r, c in zip(*np.nonzero(illegal)):
        errors.append(f"Invalid vertex type {int(grid[r, c])} at ({r}, {c})")
    if errors:
        # Arrow tables cannot be indexed with illegal codes
        return errors[:max_reported] if max_reported else errors

    h_mismatch = RIGHT_POINTS_RIGHT[grid[:, :-1]] != LEFT_POINTS_RIGHT[grid[:, 1:]]
    for r, c in zip(*np.nonzero(h_mismatch)):
        errors.append(f"Horizontal edge between ({r}, {c}) and ({r}, {c + 1}) disagrees")

    v_mismatch = BOTTOM_POINTS_DOWN[grid[:-1, :]] != TOP_POINTS_DOWN[grid[1:, :]]
    for r, c in zip(*np.nonzero(v_mismatch)):
        errors.append(f"Vertical edge between ({r}, {c}) and ({r + 1}, {c}) disagrees")

    return errors[:max_reported] if max_reported else errors


def find_local_violations(
    vertices: np.ndarray,
    width: int,
    height: int,
    indices: Iterable[int],
) -> List[str]:
    """Check only the given cells against their four neighbours."""
    errors: List[str] = []
    for idx in indices:
        r, c = divmod(int(idx), width)
        t = int(vertices[idx])
        if not 0 <= t < N_VERTEX_TYPES:
            errors.append(f"Invalid vertex type {t} at ({r}, {c})")
            continue
        if c > 0 and RIGHT_POINTS_RIGHT[vertices[idx - 1]] != LEFT_POINTS_RIGHT[t]:
            errors.append(f"Left edge of ({r}, {c}) disagrees")
        if c < width - 1 and RIGHT_POINTS_RIGHT[t] != LEFT_POINTS_RIGHT[vertices[idx + 1]]:
            errors.append(f"Right edge of ({r}, {c}) disagrees")
        if r > 0 and BOTTOM_POINTS_DOWN[vertices[idx - width]] != TOP_POINTS_DOWN[t]:
            errors.append(f"Top edge of ({r}, {c}) disagrees")
        if r < height - 1 and BOTTOM_POINTS_DOWN[t] != TOP_POINTS_DOWN[vertices[idx + width]]:
            errors.append(f"Bottom edge of ({r}, {c}) disagrees")
    return errors


def check_ice_rule(lattice: LatticeState) -> None:
    """Raise IceRuleError if the lattice is not a valid ice configuration."""
    errors = find_ice_violations(lattice.vertices, lattice.width, lattice.height)
    if errors:
        raise IceRuleError(
            f"Lattice violates the ice rule ({len(errors)} problem(s), first: {errors[0]})",
            errors,
        )


@lru_cache(maxsize=8)
def grid_incidence(width: int, height: int) -> sparse.csr_matrix:
    """Cached B1 for a width × height grid (boundary edges included)."""
    edges = square_grid_edges(width, height)
    return sparse.csr_matrix(build_B1(width * height, edges))


def vertex_charges(lattice: LatticeState) -> np.ndarray:
    """Net inward-minus-outward arrow count at every cell."""
    B1 = grid_incidence(lattice.width, lattice.height)
    sigma = edge_sigma(*lattice.edge_views())
    return np.asarray(B1 @ sigma).ravel()


def verify_ice_state(
    B1: sparse.spmatrix,
    sigma: np.ndarray,
    tol: float = 0.5,
) -> bool:
    """Verify that sigma satisfies the ice rule at every vertex.

    Returns True if Q_v = 0 for all vertices of the (all z=4) grid.
    """
    charge = np.asarray((sparse.csr_matrix(B1) @ sigma)).ravel()
    return bool(np.all(np.abs(charge) < tol))
