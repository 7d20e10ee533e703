"""Geometry and colour helpers shared by the lattice figures.

Cell (r, c) is drawn at x = c, y = -r so row 0 is at the top. Every edge is
a unit segment between neighbouring cell centres; boundary edges are half
segments sticking out of the grid.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np

from src.lattices.base import LatticeState
from src.lattices.vertex_types import VertexType

# Vertex-type colour scheme (consistent across all figures)
VERTEX_COLORS: Dict[VertexType, str] = {
    VertexType.A1: "#3498db",  # blue
    VertexType.A2: "#1f5f8b",  # dark blue
    VertexType.B1: "#2ecc71",  # green
    VertexType.B2: "#1e8449",  # dark green
    VertexType.C1: "#e74c3c",  # red
    VertexType.C2: "#f39c12",  # orange
}

DEFAULT_EDGE_COLOR = "#7f8c8d"
ARROW_COLOR = "#2c3e50"


def vertex_color(vertex_type: int) -> str:
    """Return color for a vertex type code."""
    return VERTEX_COLORS.get(VertexType(int(vertex_type)), "#34495e")


def vertex_color_array(lattice: LatticeState) -> List[str]:
    """Per-cell colours in row-major order."""
    return [VERTEX_COLORS[VertexType(int(t))] for t in lattice.vertices]


def cell_positions(width: int, height: int) -> np.ndarray:
    """(width * height, 2) drawing coordinates of the cells, row-major."""
    rows, cols = np.indices((height, width))
    return np.column_stack((cols.ravel(), -rows.ravel())).astype(np.float64)


def compute_layout_bounds(
    width: int,
    height: int,
    padding: float = 0.75,
) -> Tuple[float, float, float, float]:
    """Axis bounds (xmin, xmax, ymin, ymax) that include the boundary stubs."""
    return (-padding, width - 1 + padding, -(height - 1) - padding, padding)


def grid_line_segments(width: int, height: int) -> List[np.ndarray]:
    """One polyline per row and per column, including the boundary stubs."""
    lines = []
    for r in range(height):
        lines.append(np.array([[-0.5, -r], [width - 0.5, -r]], dtype=np.float64))
    for c in range(width):
        lines.append(np.array([[c, 0.5], [c, -(height - 0.5)]], dtype=np.float64))
    return lines


def edge_arrows(lattice: LatticeState) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Midpoints and unit directions of every edge arrow, for ``ax.quiver``.

    Returns (x, y, u, v): horizontal edges first, then vertical edges.
    """
    horizontal, vertical = lattice.edge_views()
    h_rows, h_cols = np.indices(horizontal.shape)
    v_rows, v_cols = np.indices(vertical.shape)

    x = np.concatenate([(h_cols - 0.5).ravel(), v_cols.ravel()]).astype(np.float64)
    y = np.concatenate([(-h_rows).ravel(), (-v_rows + 0.5).ravel()]).astype(np.float64)
    u = np.concatenate([np.where(horizontal, 1.0, -1.0).ravel(), np.zeros(vertical.size)])
    v = np.concatenate([np.zeros(horizontal.size), np.where(vertical, -1.0, 1.0).ravel()])
    return x, y, u, v
