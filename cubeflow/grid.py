"""FlowGrid: one navigable grid surface and its cost/integration/flow fields.

The grid owns three flat arrays of length width * height, indexed
x + y * width:

- cost_field        uint8   1 walkable, 255 blocked
- integration_field int32   distance to goal, UNREACHABLE if none
- flow_field        float32 (n, 2) world XZ unit vectors

`rebuild_all` runs cost -> integration -> flow to completion. It runs on
construction and on every `notify_map_changed`; nothing is recomputed per tick.
Queries made before the first build (or after a resize without rebuild)
return neutral defaults instead of failing.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .colliders import Collider, ColliderWorld
from .costfield import BLOCKED, CostFieldSettings, build_cost_field
from .environment import Cell, GridLayout, Point
from .flowfield import best_next_cell, build_flow_field
from .geometry import Bounds, Transform, as_vec3
from .guard import can_place_without_blocking, spawns_reachable
from .integration import UNREACHABLE, build_integration_field
from .pathing import PathSample, sample_path
from .registry import GridRegistry

CELL_BLOCKED = 0
CELL_REACHABLE = 1
CELL_UNREACHABLE = 2


class FlowGrid:
    def __init__(
        self,
        width: int = 64,
        height: int = 64,
        cell_size: float = 1.0,
        origin: Sequence[float] = (0.0, 0.0, 0.0),
        transform: Optional[Transform] = None,
        use_circular_mask: bool = True,
        circular_radius: int = -1,
        goal: Optional[Point] = None,
        spawns: Optional[Sequence[Optional[Point]]] = None,
        world: Optional[ColliderWorld] = None,
        settings: Optional[CostFieldSettings] = None,
        registry: Optional[GridRegistry] = None,
        name: str = "grid",
        auto_build: bool = True,
    ):
        self.name = name
        self.layout = GridLayout(
            width=width,
            height=height,
            cell_size=cell_size,
            origin=np.asarray(origin, dtype=float),
            transform=transform or Transform(),
            use_circular_mask=use_circular_mask,
            circular_radius=circular_radius,
        )
        self.world = world
        self.settings = settings or CostFieldSettings()
        self.goal: Optional[np.ndarray] = None
        self.spawns: List[Optional[np.ndarray]] = []
        self.set_goal(goal)
        self.set_spawns(spawns or [])

        self.cost_field: Optional[np.ndarray] = None
        self.integration_field: Optional[np.ndarray] = None
        self.flow_field: Optional[np.ndarray] = None
        self.built = False
        self.destroyed = False

        self.registry = registry
        if registry is not None:
            registry.register(self)

        self.allocate()
        if auto_build:
            self.rebuild_all()

    def __repr__(self) -> str:
        return f"FlowGrid(name={self.name!r}, {self.width}x{self.height}, cell_size={self.cell_size})"

    # ---- layout passthrough ----

    @property
    def width(self) -> int:
        return self.layout.width

    @property
    def height(self) -> int:
        return self.layout.height

    @property
    def cell_size(self) -> float:
        return self.layout.cell_size

    @property
    def transform(self) -> Transform:
        return self.layout.transform

    # ---- lifecycle ----

    def allocate(self) -> None:
        n = self.layout.size
        if self.cost_field is None or self.cost_field.shape != (n,):
            self.cost_field = np.full(n, BLOCKED, dtype=np.uint8)
            self.built = False
        if self.integration_field is None or self.integration_field.shape != (n,):
            self.integration_field = np.full(n, UNREACHABLE, dtype=np.int32)
            self.built = False
        if self.flow_field is None or self.flow_field.shape != (n, 2):
            self.flow_field = np.zeros((n, 2), dtype=np.float32)
            self.built = False

    def resize(self, width: int, height: int, rebuild: bool = True) -> None:
        """Change dimensions; all three arrays are reallocated together."""
        self.layout = dataclasses.replace(self.layout, width=width, height=height)
        self.allocate()
        if rebuild:
            self.rebuild_all()

    def set_mask(self, use_circular_mask: bool, circular_radius: int = -1, rebuild: bool = True) -> None:
        """Swap the circular mask; the layout is replaced, never edited in place."""
        self.layout = dataclasses.replace(self.layout, use_circular_mask=use_circular_mask,
                                          circular_radius=circular_radius)
        if rebuild:
            self.rebuild_all()

    def rebuild_all(self) -> None:
        self.allocate()
        build_cost_field(self.layout, self.world, self.settings, out=self.cost_field)
        self.build_integration_field()
        build_flow_field(self.layout, self.cost_field, self.integration_field, out=self.flow_field)
        self.built = True

    def notify_map_changed(self) -> None:
        self.rebuild_all()

    def build_integration_field(self) -> None:
        build_integration_field(self.layout, self.cost_field, self.goal_cell(), out=self.integration_field)

    def destroy(self) -> None:
        self.destroyed = True
        if self.registry is not None:
            self.registry.unregister(self)

    # ---- goal / spawns ----

    def set_goal(self, goal: Optional[Point]) -> None:
        """Set the goal point. Takes effect on the next rebuild."""
        self.goal = None if goal is None else as_vec3(goal)

    def set_spawns(self, spawns: Sequence[Optional[Point]]) -> None:
        self.spawns = [None if s is None else as_vec3(s) for s in spawns]

    def goal_cell(self) -> Optional[Cell]:
        if self.goal is None:
            return None
        return self.layout.try_world_to_cell(self.goal)

    def is_ready(self) -> bool:
        n = self.layout.size
        return (
            self.built
            and self.cost_field is not None and self.cost_field.shape == (n,)
            and self.integration_field is not None and self.integration_field.shape == (n,)
            and self.flow_field is not None and self.flow_field.shape == (n, 2)
        )

    # ---- coordinate queries ----

    def world_to_cell(self, world_pos: Point) -> Cell:
        return self.layout.world_to_cell(world_pos)

    def cell_center(self, cell: Cell) -> np.ndarray:
        return self.layout.cell_center(cell)

    def snap_to_cell_center(self, world_pos: Point) -> np.ndarray:
        return self.layout.snap_to_cell_center(world_pos)

    def snap_xz(self, world_pos: Point) -> np.ndarray:
        return self.layout.snap_xz(world_pos)

    def get_cell_world_bounds(self, cell: Cell) -> Bounds:
        return self.layout.cell_world_bounds(cell)

    def get_uniform_scale_to_fit_xz(self, size_x: float, size_z: float) -> float:
        return self.layout.uniform_scale_to_fit_xz(size_x, size_z)

    # ---- field queries ----

    def is_buildable_cell(self, world_pos: Point) -> bool:
        """Cell under `world_pos` is inside the grid and mask and not blocked."""
        if not self.is_ready():
            return False
        cell = self.layout.world_to_cell(world_pos)
        if not self.layout.is_inside_mask(cell):
            return False
        return int(self.cost_field[self.layout.to_index(cell)]) < BLOCKED

    def get_flow_at(self, world_pos: Point) -> np.ndarray:
        """Flow direction (fx, 0, fz) at the cell under `world_pos`."""
        if not self.is_ready():
            return np.zeros(3)
        v = self.flow_field[self.layout.to_index(self.layout.world_to_cell(world_pos))]
        return np.array([float(v[0]), 0.0, float(v[1])])

    def try_get_best_next_cell_center(self, from_world: Point) -> Tuple[bool, np.ndarray]:
        if not self.is_ready():
            return False, np.zeros(3)
        cell = self.layout.world_to_cell(from_world)
        nxt = best_next_cell(self.layout, self.integration_field, cell)
        if nxt is None:
            return False, np.zeros(3)
        return True, self.layout.cell_center(nxt)

    def integration_at(self, cell: Cell) -> int:
        if not self.is_ready() or not self.layout.in_bounds(cell):
            return UNREACHABLE
        return int(self.integration_field[self.layout.to_index(cell)])

    def cell_states(self) -> np.ndarray:
        """Flat int8 array of CELL_BLOCKED / CELL_REACHABLE / CELL_UNREACHABLE."""
        states = np.full(self.layout.size, CELL_UNREACHABLE, dtype=np.int8)
        if not self.is_ready():
            return states
        states[self.integration_field != UNREACHABLE] = CELL_REACHABLE
        states[self.cost_field >= BLOCKED] = CELL_BLOCKED
        return states

    def all_spawns_reachable(self) -> bool:
        if not self.is_ready():
            return False
        return spawns_reachable(self.layout, self.integration_field, self.spawns)

    def sample_path(self, start: Point, max_steps: int = 1000, max_points: int = 100,
                    height: Optional[float] = None) -> PathSample:
        return sample_path(self, start, max_steps=max_steps, max_points=max_points, height=height)

    # ---- placement ----

    def can_place_without_blocking(self, world_pos: Point) -> bool:
        if not self.is_ready():
            return False
        return can_place_without_blocking(self.layout, self.cost_field, self.goal, self.spawns, world_pos)

    def try_place_block(self, world_pos: Point, layer: Optional[str] = None) -> Optional[Collider]:
        """Commit a block on the cell under `world_pos` if the guard allows it.

        Adds a cell-sized collider on the unwalkable layer and rebuilds. Returns
        the collider, or None if the placement was rejected.
        """
        if not self.is_buildable_cell(world_pos) or not self.can_place_without_blocking(world_pos):
            return None
        if self.world is None:
            self.world = ColliderWorld()
        cell = self.layout.world_to_cell(world_pos)
        collider = self.world.add(Collider.from_bounds(self.layout.cell_world_bounds(cell),
                                                       layer or self.settings.unwalkable_layer))
        self.notify_map_changed()
        return collider

    def summary(self) -> Dict[str, Any]:
        states = self.cell_states()
        return {
            "name": self.name,
            "size": [self.width, self.height],
            "cell_size": self.cell_size,
            "goal_cell": self.goal_cell(),
            "blocked": int(np.count_nonzero(states == CELL_BLOCKED)),
            "reachable": int(np.count_nonzero(states == CELL_REACHABLE)),
            "unreachable": int(np.count_nonzero(states == CELL_UNREACHABLE)),
            "spawns_reachable": self.all_spawns_reachable(),
        }
