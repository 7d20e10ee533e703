"""Incrementally maintained set of lattice sites that admit a legal move.

The legality of an Up move at p depends only on the cells p and p + (-1, +1);
a Down move at p depends only on p and p + (+1, -1). A flip mutates four
cells, so the only sites whose flags can change are, for each mutated cell
m, the sites m, m + (+1, -1) and m + (-1, +1): at most twelve positions,
independent of the lattice size.

Storage is a dense list of flat positions plus a slot table mapping each
position to its index in that list, so insertion, removal (swap with the
last entry) and uniform sampling are all O(1).
"""
from __future__ import annotations

import logging
from typing import Iterable, List, NamedTuple, Optional, Set, Tuple

import numpy as np

from src.lattices.base import LatticeState
from src.sampling.flips import FlipDirection, is_flip_valid

logger = logging.getLogger(__name__)

_ABSENT = -1


class FlippableEntry(NamedTuple):
    row: int
    col: int
    can_flip_up: bool
    can_flip_down: bool


class CandidateSet:
    """Positions where at least one of the Up/Down moves is currently legal."""

    def __init__(self, lattice: LatticeState):
        self._lattice = lattice
        self._width = lattice.width
        self._height = lattice.height
        n_cells = lattice.n_cells
        self._order: List[int] = []
        self._slot: List[int] = [_ABSENT] * n_cells
        self._can_up = bytearray(n_cells)
        self._can_down = bytearray(n_cells)
        self.build()

    # --- Construction ---

    def build(self) -> None:
        """Full O(N^2) scan of the lattice, replacing the current contents."""
        self._order.clear()
        n_cells = self._lattice.n_cells
        self._slot[:] = [_ABSENT] * n_cells
        self._can_up[:] = bytes(n_cells)
        self._can_down[:] = bytes(n_cells)
        for pos in range(n_cells):
            self._evaluate(pos)
        logger.debug(f"Candidate set rebuilt: {len(self._order)} flippable sites")

    @classmethod
    def scan(cls, lattice: LatticeState) -> Set[FlippableEntry]:
        """Entries of a fresh full scan, without keeping any state."""
        return cls(lattice).entries()

    # --- Incremental maintenance ---

    def refresh_after(self, mutated: Iterable[int]) -> None:
        """Re-validate every site whose flags can depend on the mutated cells."""
        width = self._width
        height = self._height
        seen = set()
        for idx in mutated:
            r, c = divmod(int(idx), width)
            for dr, dc in ((0, 0), (1, -1), (-1, 1)):
                rr = r + dr
                cc = c + dc
                if 0 <= rr < height and 0 <= cc < width:
                    pos = rr * width + cc
                    if pos not in seen:
                        seen.add(pos)
                        self._evaluate(pos)

    def _evaluate(self, pos: int) -> None:
        row, col = divmod(pos, self._width)
        vertices = self._lattice.vertices
        up = is_flip_valid(vertices, self._width, self._height, row, col, FlipDirection.UP)
        down = is_flip_valid(vertices, self._width, self._height, row, col, FlipDirection.DOWN)
        self._can_up[pos] = up
        self._can_down[pos] = down
        slot = self._slot[pos]
        if up or down:
            if slot == _ABSENT:
                self._slot[pos] = len(self._order)
                self._order.append(pos)
        elif slot != _ABSENT:
            last = self._order.pop()
            if last != pos:
                self._order[slot] = last
                self._slot[last] = slot
            self._slot[pos] = _ABSENT

    # --- Queries ---

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, position: Tuple[int, int]) -> bool:
        row, col = position
        return self._slot[row * self._width + col] != _ABSENT

    def entry(self, row: int, col: int) -> Optional[FlippableEntry]:
        pos = row * self._width + col
        if self._slot[pos] == _ABSENT:
            return None
        return FlippableEntry(row, col, bool(self._can_up[pos]), bool(self._can_down[pos]))

    def entries(self) -> Set[FlippableEntry]:
        result = set()
        for pos in self._order:
            row, col = divmod(pos, self._width)
            result.add(FlippableEntry(row, col, bool(self._can_up[pos]), bool(self._can_down[pos])))
        return result

    def count(self, direction: Optional[FlipDirection] = None) -> int:
        """Number of sites, optionally only those allowing the given direction."""
        if direction is None:
            return len(self._order)
        flags = self._can_up if direction is FlipDirection.UP else self._can_down
        return sum(flags[pos] for pos in self._order)

    def pick_uniform(self, rng: np.random.Generator) -> Optional[FlippableEntry]:
        """Uniformly random candidate, or None if no legal move exists.

        Consumes exactly one uniform draw from rng when the set is non-empty.
        """
        n = len(self._order)
        if n == 0:
            return None
        slot = min(int(rng.random() * n), n - 1)
        pos = self._order[slot]
        row, col = divmod(pos, self._width)
        return FlippableEntry(row, col, bool(self._can_up[pos]), bool(self._can_down[pos]))
