"""Lattice state container and the base class for initial-state generators.

LatticeState holds one vertex type per cell of a width × height grid in a
flat row-major int8 array. The explicit arrow view (horizontal and vertical
edge arrays) is derived from the vertex types on demand and cached until the
next mutation.

InitialStateGenerator handles the shared construction logic: subclasses only
describe which vertex type sits at each cell, the base class assembles the
array and validates the ice rule before handing the lattice out.
"""
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from .vertex_types import (
    BOTTOM_POINTS_DOWN,
    LEFT_POINTS_RIGHT,
    N_VERTEX_TYPES,
    RIGHT_POINTS_RIGHT,
    TOP_POINTS_DOWN,
    VertexType,
)

logger = logging.getLogger(__name__)

VERTEX_DTYPE = np.int8


class LatticeSizeError(ValueError):
    """A supplied vertex array does not match the lattice dimensions."""


class IceRuleError(ValueError):
    """A lattice violates the ice rule or has inconsistent shared edges."""

    def __init__(self, message: str, violations: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.violations = list(violations or [])


@dataclass
class LatticeState:
    """Vertex-type grid of the six-vertex model.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        vertices: Flat row-major array of ``width * height`` type codes.
    """
    width: int
    height: int
    vertices: np.ndarray
    _edges: Optional[Tuple[np.ndarray, np.ndarray]] = field(
        default=None, init=False, repr=False, compare=False,
    )

    def __post_init__(self):
        vertices = np.asarray(self.vertices)
        n_cells = self.width * self.height
        if vertices.size != n_cells:
            raise LatticeSizeError(
                f"size mismatch: expected {n_cells} vertices for a "
                f"{self.height}x{self.width} lattice, got {vertices.size}"
            )
        self.vertices = self._checked_codes(vertices.ravel())

    def _checked_codes(self, values: np.ndarray) -> np.ndarray:
        """Cast to the storage dtype, rejecting codes the cast would alter."""
        if values.dtype.kind in "iub":
            bad = (values < 0) | (values >= N_VERTEX_TYPES)
        elif values.dtype.kind == "f":
            with np.errstate(invalid="ignore"):
                bad = ~np.isfinite(values) | (values != np.floor(values))
                bad |= (values < 0) | (values >= N_VERTEX_TYPES)
        else:
            raise IceRuleError(f"vertex codes must be integers, got dtype {values.dtype}")

        if bad.any():
            violations = [
                f"Invalid vertex type {values[idx]} at {divmod(int(idx), self.width)}"
                for idx in np.flatnonzero(bad)
            ]
            raise IceRuleError(
                f"{len(violations)} cells hold invalid vertex codes", violations,
            )
        return values.astype(VERTEX_DTYPE, copy=True)

    @classmethod
    def from_grid(cls, grid) -> "LatticeState":
        """Build from a 2-D (rows × cols) array-like of type codes."""
        arr = np.asarray(grid)
        if arr.ndim != 2:
            raise LatticeSizeError(f"expected a 2-D grid, got shape {arr.shape}")
        return cls(width=arr.shape[1], height=arr.shape[0], vertices=arr)

    @property
    def n_cells(self) -> int:
        return self.width * self.height

    def index(self, row: int, col: int) -> int:
        return row * self.width + col

    def type_at(self, row: int, col: int) -> VertexType:
        return VertexType(int(self.vertices[row * self.width + col]))

    def grid(self) -> np.ndarray:
        """Return a (height, width) copy of the vertex types."""
        return self.vertices.reshape(self.height, self.width).copy()

    def copy(self) -> "LatticeState":
        return LatticeState(self.width, self.height, self.vertices)

    def assign(self, indices: Sequence[int], types: Sequence[int]) -> None:
        """Overwrite the given flat positions and drop the cached edge view."""
        for idx, t in zip(indices, types):
            self.vertices[idx] = t
        self._edges = None

    def vertex_counts(self) -> np.ndarray:
        """Number of cells of each type, indexed by type code."""
        return np.bincount(self.vertices, minlength=N_VERTEX_TYPES)[:N_VERTEX_TYPES]

    # --- Derived arrow view ---

    def edge_views(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(horizontal_edges, vertical_edges)``.

        horizontal_edges has shape (height, width + 1); entry [r, c] is the
        edge on the left of cell (r, c), column ``width`` is the right
        boundary. True means the arrow points right.

        vertical_edges has shape (height + 1, width); entry [r, c] is the edge
        above cell (r, c), row ``height`` is the bottom boundary. True means
        the arrow points down.
        """
        if self._edges is None:
            grid = self.vertices.reshape(self.height, self.width)
            horizontal = np.empty((self.height, self.width + 1), dtype=bool)
            horizontal[:, :-1] = LEFT_POINTS_RIGHT[grid]
            horizontal[:, -1] = RIGHT_POINTS_RIGHT[grid[:, -1]]
            vertical = np.empty((self.height + 1, self.width), dtype=bool)
            vertical[:-1, :] = TOP_POINTS_DOWN[grid]
            vertical[-1, :] = BOTTOM_POINTS_DOWN[grid[-1, :]]
            horizontal.flags.writeable = False
            vertical.flags.writeable = False
            self._edges = (horizontal, vertical)
        return self._edges

    @property
    def horizontal_edges(self) -> np.ndarray:
        return self.edge_views()[0]

    @property
    def vertical_edges(self) -> np.ndarray:
        return self.edge_views()[1]

    def validate(self) -> None:
        """Raise IceRuleError unless every cell and shared edge is legal."""
        from src.topology.ice_rule import check_ice_rule

        check_ice_rule(self)


class InitialStateGenerator(abc.ABC):
    """Base class for generators of deterministic starting lattices."""

    name: str = "base"

    @abc.abstractmethod
    def _fill(self, rows: np.ndarray, cols: np.ndarray, size: int) -> np.ndarray:
        """Return the type code of every cell given its row/col index grids."""
        ...

    def build(self, size: int) -> LatticeState:
        """Construct and validate a size × size lattice.

        Raises:
            ValueError: If size is not positive.
            IceRuleError: If the generated fill is inconsistent.
        """
        if size < 1:
            raise ValueError(f"Lattice size must be positive, got {size}")
        rows, cols = np.indices((size, size))
        lattice = LatticeState.from_grid(self._fill(rows, cols, size))
        lattice.validate()
        logger.debug(f"Built {self.name} lattice of size {size}")
        return lattice
