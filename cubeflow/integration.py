"""Integration field: Dijkstra distance-to-goal over the cost field.

Single source (the goal cell), 4-connected, edge weight = cost of the cell
being entered. All walkable cells cost 1, so values equal the length of the
shortest 4-connected walk to the goal.
"""

from __future__ import annotations

import heapq
from typing import List, Optional, Tuple

import numpy as np

from .costfield import BLOCKED
from .environment import DIRS_4, Cell, GridLayout

UNREACHABLE = int(np.iinfo(np.int32).max)


def build_integration_field(layout: GridLayout, cost: np.ndarray, goal_cell: Optional[Cell],
                            out: Optional[np.ndarray] = None) -> np.ndarray:
    """Return the flat int32 integration field.

    `goal_cell=None` (no goal, or goal outside the grid) leaves every cell at
    UNREACHABLE. `cost` is only read, so callers may pass a scratch copy.
    """
    n = layout.size
    if out is None or out.shape != (n,):
        out = np.empty(n, dtype=np.int32)
    out.fill(UNREACHABLE)
    if goal_cell is None or not layout.in_bounds(goal_cell):
        return out

    w, h = layout.width, layout.height
    mask: List[bool] = layout.mask.tolist()
    # Plain lists are much faster than numpy scalars in the inner loop.
    cost_l: List[int] = cost.tolist()
    best: List[int] = [UNREACHABLE] * n

    goal_idx = layout.to_index(goal_cell)
    best[goal_idx] = 0
    open_heap: List[Tuple[int, int]] = [(0, goal_idx)]

    while open_heap:
        g, idx = heapq.heappop(open_heap)
        # Skip stale entries
        if g > best[idx]:
            continue
        y, x = divmod(idx, w)
        for dx, dy in DIRS_4:
            nx, ny = x + dx, y + dy
            if not (0 <= nx < w and 0 <= ny < h):
                continue
            nidx = nx + ny * w
            if not mask[nidx]:
                continue
            step = cost_l[nidx]
            if step >= BLOCKED:
                continue
            ng = g + step
            if ng < best[nidx]:
                best[nidx] = ng
                heapq.heappush(open_heap, (ng, nidx))

    out[:] = best
    return out

