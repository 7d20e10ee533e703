"""Domain-wall boundary condition (DWBC) initial states.

Both generators produce the same boundary: every horizontal boundary arrow
points into the lattice and every vertical boundary arrow points out of it.
They differ in the interior fill, which places them at the two extremes of
the height function.

DWBC high (N = 4)::

    b1 b1 b1 c2
    b1 b1 c2 b2
    b1 c2 b2 b2
    c2 b2 b2 b2

DWBC low (N = 4)::

    c2 a1 a1 a1
    a2 c2 a1 a1
    a2 a2 c2 a1
    a2 a2 a2 c2
"""
import numpy as np

from .base import InitialStateGenerator
from .vertex_types import VertexType


class DWBCHighGenerator(InitialStateGenerator):
    """c2 on the anti-diagonal, b1 above it, b2 below it.

    Only Up moves along the anti-diagonal are available initially
    (N - 1 candidates).
    """

    name = "dwbc-high"

    def _fill(self, rows: np.ndarray, cols: np.ndarray, size: int) -> np.ndarray:
        anti = rows + cols
        return np.select(
            [anti < size - 1, anti == size - 1],
            [VertexType.B1, VertexType.C2],
            default=VertexType.B2,
        )


class DWBCLowGenerator(InitialStateGenerator):
    """c2 on the main diagonal, a1 above it, a2 below it.

    Only Down moves just above the diagonal are available initially
    (N - 1 candidates).
    """

    name = "dwbc-low"

    def _fill(self, rows: np.ndarray, cols: np.ndarray, size: int) -> np.ndarray:
        return np.select(
            [rows < cols, rows == cols],
            [VertexType.A1, VertexType.C2],
            default=VertexType.A2,
        )
