"""Registry of live grids and closest-grid selection.

One grid per cube face: a query point is snapped onto every registered grid
and the grid whose snapped cell centre lies nearest wins. The registry keeps
weak references only; grids that were destroyed or garbage collected are
skipped during lookup.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from .environment import Point
from .geometry import as_vec3

if TYPE_CHECKING:
    from .grid import FlowGrid


class GridRegistry:
    def __init__(self) -> None:
        self._refs: List[weakref.ReferenceType] = []
        self._primary: Optional[weakref.ReferenceType] = None

    def register(self, grid: "FlowGrid") -> None:
        self._refs = [ref for ref in self._refs if ref() is not None]
        if any(ref() is grid for ref in self._refs):
            return
        self._refs.append(weakref.ref(grid))
        if self.primary is None:
            self._primary = weakref.ref(grid)

    def unregister(self, grid: "FlowGrid") -> None:
        self._refs = [ref for ref in self._refs if ref() is not None and ref() is not grid]
        if self._primary is not None and self._primary() is grid:
            live = self.grids()
            self._primary = weakref.ref(live[0]) if live else None

    def clear(self) -> None:
        self._refs = []
        self._primary = None

    @property
    def primary(self) -> Optional["FlowGrid"]:
        """Legacy single-grid accessor: the first grid ever registered."""
        if self._primary is None:
            return None
        grid = self._primary()
        if grid is None or grid.destroyed:
            return None
        return grid

    def grids(self) -> List["FlowGrid"]:
        out = []
        for ref in self._refs:
            grid = ref()
            if grid is not None and not grid.destroyed:
                out.append(grid)
        return out

    def __len__(self) -> int:
        return len(self.grids())

    def __contains__(self, grid: object) -> bool:
        return any(g is grid for g in self.grids())

    def closest_grid(self, world_pos: Point) -> Optional["FlowGrid"]:
        p = as_vec3(world_pos)
        best = None
        best_d2 = float("inf")
        for grid in self.grids():
            snapped = grid.snap_to_cell_center(p)
            d = snapped - p
            d2 = float(np.dot(d, d))
            if d2 < best_d2:
                best_d2 = d2
                best = grid
        # Fallback to the legacy primary if nothing live was found
        return best if best is not None else self.primary
