"""Reachability guard: would blocking one more cell disconnect a spawn?

The check works on a copy of the cost field and a freshly computed
integration field; the caller's arrays are never written.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .costfield import BLOCKED
from .environment import GridLayout, Point
from .integration import UNREACHABLE, build_integration_field


def spawns_reachable(layout: GridLayout, integration: np.ndarray, spawns: Sequence[Optional[Point]]) -> bool:
    """True if every non-None spawn maps into the grid with a finite distance."""
    for s in spawns:
        if s is None:
            continue
        cell = layout.try_world_to_cell(s)
        if cell is None:
            return False
        if int(integration[layout.to_index(cell)]) == UNREACHABLE:
            return False
    return True


def can_place_without_blocking(
    layout: GridLayout,
    cost: np.ndarray,
    goal: Optional[Point],
    spawns: Sequence[Optional[Point]],
    world_pos: Point,
) -> bool:
    if goal is None:
        return True
    cell = layout.try_world_to_cell(world_pos)
    if cell is None:
        return False
    goal_cell = layout.try_world_to_cell(goal)
    if goal_cell is None:
        return True

    scratch = cost.copy()
    scratch[layout.to_index(cell)] = BLOCKED
    integration = build_integration_field(layout, scratch, goal_cell)
    return spawns_reachable(layout, integration, spawns)
