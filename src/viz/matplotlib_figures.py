"""Publication-quality matplotlib figures for six-vertex configurations.

All functions only read the lattice; none of them touch simulation state.
"""
from __future__ import annotations

import os
from typing import Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.collections import LineCollection
import numpy as np

from src.lattices.base import LatticeState
from src.lattices.vertex_types import VertexType
from src.observables.height import calculate_height_function
from src.viz.lattice_drawing import (
    ARROW_COLOR,
    DEFAULT_EDGE_COLOR,
    VERTEX_COLORS,
    cell_positions,
    compute_layout_bounds,
    edge_arrows,
    grid_line_segments,
    vertex_color_array,
)

plt.rcParams.update({
    "font.size": 10,
    "axes.titlesize": 12,
    "axes.labelsize": 11,
    "figure.dpi": 150,
    "savefig.dpi": 150,
    "savefig.bbox": "tight",
})


def draw_vertex_grid(ax, lattice: LatticeState, title=None, show_arrows=True, legend=True):
    """Draw grid lines, vertex-type coloured cells and (optionally) edge arrows."""
    width, height = lattice.width, lattice.height

    lc = LineCollection(grid_line_segments(width, height), colors=DEFAULT_EDGE_COLOR,
                        linewidths=0.8, zorder=1)
    ax.add_collection(lc)

    if show_arrows:
        x, y, u, v = edge_arrows(lattice)
        ax.quiver(x, y, u, v, color=ARROW_COLOR, angles="xy", scale_units="xy",
                  scale=2.5, pivot="middle", width=0.006, zorder=2)

    pos = cell_positions(width, height)
    marker_size = max(4.0, 900.0 / max(width, height))
    ax.scatter(pos[:, 0], pos[:, 1], c=vertex_color_array(lattice), s=marker_size,
               zorder=3, edgecolors="white", linewidths=0.3)

    if legend:
        handles = [mpatches.Patch(color=VERTEX_COLORS[t], label=t.label) for t in VertexType]
        ax.legend(handles=handles, loc="upper left", bbox_to_anchor=(1.01, 1.0),
                  framealpha=0.7)

    xmin, xmax, ymin, ymax = compute_layout_bounds(width, height)
    ax.set_xlim(xmin, xmax)
    ax.set_ylim(ymin, ymax)
    ax.set_aspect("equal")
    ax.set_xticks([])
    ax.set_yticks([])
    if title:
        ax.set_title(title, fontweight="bold")


def draw_height_map(ax, lattice: LatticeState, title=None, cmap="viridis"):
    """Heat map of the height function; returns the AxesImage."""
    data = calculate_height_function(lattice)
    im = ax.imshow(data.heights, cmap=cmap, interpolation="nearest", origin="upper")
    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_title(title or f"Height (volume={data.total_volume})", fontweight="bold")
    ax.figure.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    return im


def save_snapshot_figure(
    lattice: LatticeState,
    output_path: str,
    title: Optional[str] = None,
    show_arrows: Optional[bool] = None,
) -> str:
    """Two-panel figure (vertex grid + height map) written to output_path."""
    if show_arrows is None:
        # Arrows become unreadable on large lattices
        show_arrows = max(lattice.width, lattice.height) <= 24

    fig, axes = plt.subplots(1, 2, figsize=(12, 5.5))
    draw_vertex_grid(axes[0], lattice, title="Vertex types", show_arrows=show_arrows)
    draw_height_map(axes[1], lattice)
    if title:
        fig.suptitle(title, fontsize=14, fontweight="bold")
    fig.tight_layout()

    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(output_path)
    plt.close(fig)
    return output_path


def figure_convergence_history(
    history: Sequence[float],
    output_path: str,
    threshold: float = 0.05,
) -> str:
    """Normalised volume gap of a dual run against the measurement index."""
    fig, ax = plt.subplots(figsize=(7, 4))
    values = np.asarray(history, dtype=np.float64)
    ax.plot(np.arange(len(values)), values, color="#3498db", lw=1.5, label="normalised gap")
    ax.axhline(threshold, color="#e74c3c", ls="--", lw=1.0, label=f"threshold={threshold}")
    ax.set_xlabel("Measurement")
    ax.set_ylabel("|V_A - V_B| / max(V_A, V_B)")
    ax.set_ylim(bottom=0)
    ax.legend(framealpha=0.7)
    ax.set_title("Dual-run convergence", fontweight="bold")
    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    return output_path
