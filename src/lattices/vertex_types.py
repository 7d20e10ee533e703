"""The six ice-rule vertex configurations of square ice.

Every vertex of the square lattice has four edges (left, right, top, bottom).
A configuration records which of them carry an arrow pointing *into* the
vertex. The ice rule admits exactly the C(4, 2) = 6 configurations with two
inward and two outward arrows:

  type  inward edges     arrows on (left, right, top, bottom)
  a1    right, bottom    ←  ←  ↑  ↑
  a2    left, top        →  →  ↓  ↓
  b1    left, bottom     →  →  ↑  ↑
  b2    right, top       ←  ←  ↓  ↓
  c1    top, bottom      ←  →  ↓  ↑
  c2    left, right      →  ←  ↑  ↓

a- and b-types carry straight-through flow in both directions, c-types turn
the flow (c1 is a horizontal source / vertical sink, c2 the reverse).

Types are stored as small integers (the IntEnum values) in flat int8 arrays.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Dict, NamedTuple, Optional

import numpy as np


class VertexType(IntEnum):
    A1 = 0
    A2 = 1
    B1 = 2
    B2 = 3
    C1 = 4
    C2 = 5

    @property
    def label(self) -> str:
        return self.name.lower()


N_VERTEX_TYPES = len(VertexType)
VERTEX_LABELS = tuple(t.label for t in VertexType)


class VertexConfiguration(NamedTuple):
    """Inward (True) / outward (False) arrow on each edge of one vertex."""

    left: bool
    right: bool
    top: bool
    bottom: bool

    @property
    def n_inward(self) -> int:
        return int(self.left) + int(self.right) + int(self.top) + int(self.bottom)


VERTEX_CONFIGURATIONS: Dict[VertexType, VertexConfiguration] = {
    VertexType.A1: VertexConfiguration(left=False, right=True, top=False, bottom=True),
    VertexType.A2: VertexConfiguration(left=True, right=False, top=True, bottom=False),
    VertexType.B1: VertexConfiguration(left=True, right=False, top=False, bottom=True),
    VertexType.B2: VertexConfiguration(left=False, right=True, top=True, bottom=False),
    VertexType.C1: VertexConfiguration(left=False, right=False, top=True, bottom=True),
    VertexType.C2: VertexConfiguration(left=True, right=True, top=False, bottom=False),
}

_TYPE_BY_CONFIGURATION = {cfg: t for t, cfg in VERTEX_CONFIGURATIONS.items()}

# Absolute arrow directions per type, indexed by the integer code.
# A horizontal edge is True when its arrow points right, a vertical edge is
# True when its arrow points down.
LEFT_POINTS_RIGHT = np.array(
    [VERTEX_CONFIGURATIONS[t].left for t in VertexType], dtype=bool,
)
RIGHT_POINTS_RIGHT = np.array(
    [not VERTEX_CONFIGURATIONS[t].right for t in VertexType], dtype=bool,
)
TOP_POINTS_DOWN = np.array(
    [VERTEX_CONFIGURATIONS[t].top for t in VertexType], dtype=bool,
)
BOTTOM_POINTS_DOWN = np.array(
    [not VERTEX_CONFIGURATIONS[t].bottom for t in VertexType], dtype=bool,
)


def vertex_configuration(vertex_type: int) -> VertexConfiguration:
    """Return the edge configuration of a vertex type (total over all six)."""
    return VERTEX_CONFIGURATIONS[VertexType(vertex_type)]


def type_from_configuration(config: VertexConfiguration) -> Optional[VertexType]:
    """Inverse of :func:`vertex_configuration`.

    Returns None when the configuration does not have exactly two inward
    and two outward arrows, i.e. when no vertex type matches.
    """
    if config.n_inward != 2:
        return None
    return _TYPE_BY_CONFIGURATION.get(VertexConfiguration(*map(bool, config)))


def parse_vertex_type(value) -> VertexType:
    """Accept an int code, a VertexType or a label such as ``"c2"``."""
    if isinstance(value, str):
        try:
            return VertexType[value.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown vertex type '{value}'. Available: {', '.join(VERTEX_LABELS)}"
            ) from None
    return VertexType(int(value))
