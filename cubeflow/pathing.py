"""Path sampling: walk the flow field from a start point toward the goal.

Used by movement logic to preview a route and by the diagnostics to draw
spawn -> goal polylines. The walk is bounded by a step cap because a flow
field is not guaranteed to be acyclic under every edit sequence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .environment import Cell, Point
from .geometry import as_vec3, normalize_xz


@dataclass
class PathSample:
    points: List[np.ndarray] = field(default_factory=list)
    cells: List[Cell] = field(default_factory=list)
    reached_goal: bool = False
    reason: str = ""

    def __len__(self) -> int:
        return len(self.points)


def _lift(p: np.ndarray, height: Optional[float]) -> np.ndarray:
    if height is None:
        return p
    return np.array([p[0], height, p[2]])


def _neighbour_along(layout, cell: Cell, fx: float, fz: float) -> Optional[Cell]:
    """Neighbour of `cell` whose world XZ direction best matches the flow."""
    here = layout.cell_center(cell)
    best, best_dot = None, 0.0
    for nc in layout.neighbors4(cell):
        d = layout.cell_center(nc) - here
        ux, uz = normalize_xz(float(d[0]), float(d[2]))
        dot = ux * fx + uz * fz
        if dot > best_dot:
            best, best_dot = nc, dot
    return best


def sample_path(grid, start: Point, max_steps: int = 1000, max_points: int = 100,
                height: Optional[float] = None) -> PathSample:
    """Follow the flow field from `start`.

    Stops when the goal cell is reached ("goal"), the flow is zero ("no_flow"),
    no neighbour lies along the flow ("stuck"), or a cap is hit
    ("max_steps" / "max_points").
    """
    start = as_vec3(start)
    out = PathSample(points=[_lift(start, height)])
    if not grid.is_ready():
        out.reason = "not_built"
        return out
    goal_cell = grid.goal_cell()
    if goal_cell is None:
        out.reason = "no_goal"
        return out

    layout = grid.layout
    cur = layout.world_to_cell(start)
    out.cells.append(cur)

    steps = 0
    while True:
        if cur == goal_cell:
            out.reached_goal = True
            out.reason = "goal"
            break
        if steps >= max_steps:
            out.reason = "max_steps"
            break
        if len(out.points) >= max_points:
            out.reason = "max_points"
            break
        steps += 1

        fx, fz = (float(v) for v in grid.flow_field[layout.to_index(cur)])
        if fx == 0.0 and fz == 0.0:
            out.reason = "no_flow"
            break
        nxt = _neighbour_along(layout, cur, fx, fz)
        if nxt is None:
            out.reason = "stuck"
            break
        out.points.append(_lift(layout.cell_center(nxt), height))
        out.cells.append(nxt)
        cur = nxt

    if out.reached_goal and len(out.points) < max_points:
        out.points.append(_lift(grid.goal, height))
    return out


def sample_spawn_paths(grid, max_steps: int = 1000, max_points: int = 100,
                       height: Optional[float] = None) -> List[PathSample]:
    """One sampled path per live spawn of `grid`."""
    return [sample_path(grid, s, max_steps=max_steps, max_points=max_points, height=height)
            for s in grid.spawns if s is not None]
