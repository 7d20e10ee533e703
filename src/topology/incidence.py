"""Cell-edge incidence matrix B1 for the open square grid."""
from __future__ import annotations

from typing import List, Tuple

import numpy as np
from scipy import sparse

# Endpoint marker for a boundary edge's missing (outside) cell.
OUTSIDE = -1


def square_grid_edges(width: int, height: int) -> List[Tuple[int, int]]:
    """Enumerate every edge of a width × height grid of vertices.

    Horizontal edges come first, ordered like ``horizontal_edges.ravel()``:
    edge ``r * (width + 1) + c`` lies on the left of cell (r, c). Vertical
    edges follow, ordered like ``vertical_edges.ravel()``: edge
    ``height * (width + 1) + r * width + c`` lies above cell (r, c).

    Each edge is (tail, head) with tail = left/upper cell and head =
    right/lower cell as flat indices; boundary edges use OUTSIDE for the
    missing endpoint.
    """
    edges: List[Tuple[int, int]] = []
    for r in range(height):
        for c in range(width + 1):
            tail = r * width + c - 1 if c > 0 else OUTSIDE
            head = r * width + c if c < width else OUTSIDE
            edges.append((tail, head))
    for r in range(height + 1):
        for c in range(width):
            tail = (r - 1) * width + c if r > 0 else OUTSIDE
            head = r * width + c if r < height else OUTSIDE
            edges.append((tail, head))
    return edges


def build_B1(
    n_vertices: int,
    edge_list: List[Tuple[int, int]],
) -> sparse.csc_matrix:
    """Build the vertex-edge incidence matrix B1.

    B1 is (n_vertices × n_edges) with:
      B1[head, e] = +1
      B1[tail, e] = -1

    Boundary edges have a single nonzero (their endpoint marked OUTSIDE is
    skipped).
    """
    n_edges = len(edge_list)
    rows = []
    cols = []
    data = []

    for e_idx, (u, v) in enumerate(edge_list):
        if u != OUTSIDE:
            rows.append(u)
            cols.append(e_idx)
            data.append(-1.0)  # tail

        if v != OUTSIDE:
            rows.append(v)
            cols.append(e_idx)
            data.append(+1.0)  # head

    B1 = sparse.csc_matrix(
        (data, (rows, cols)),
        shape=(n_vertices, n_edges),
        dtype=np.float64,
    )
    return B1


def edge_sigma(horizontal_edges: np.ndarray, vertical_edges: np.ndarray) -> np.ndarray:
    """Convert an arrow view into +1/-1 orientations in square_grid_edges order.

    +1 means the arrow runs tail -> head (rightward or downward).
    """
    flat = np.concatenate([horizontal_edges.ravel(), vertical_edges.ravel()])
    return np.where(flat, 1.0, -1.0)
