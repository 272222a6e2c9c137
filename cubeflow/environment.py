"""Grid layout: cell <-> world conversions for one grid surface.

Coordinate conventions:
- Cells are (x, y) with x in [0, width-1], y in [0, height-1].
- Cell (x, y) sits at local (x * cell_size, 0, y * cell_size) + origin, i.e. the
  grid lies in the owner's local XZ plane and cell centres are on the lattice.
- Flat arrays are indexed x + y * width (row-major).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .geometry import Bounds, Transform, as_vec3

Cell = Tuple[int, int]
Point = Sequence[float]


# 4-connected motion model
DIRS_4: List[Tuple[int, int]] = [
    (1, 0),   # 0 right
    (0, 1),   # 1 up
    (-1, 0),  # 2 left
    (0, -1),  # 3 down
]


@dataclass(frozen=True, eq=False)
class GridLayout:
    """Immutable once built; `mask` is derived from the fields exactly once."""

    width: int
    height: int
    cell_size: float = 1.0
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    transform: Transform = field(default_factory=Transform)
    use_circular_mask: bool = True
    circular_radius: int = -1  # <= 0 => auto radius

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"grid dimensions must be positive, got {self.width}x{self.height}")
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))
        object.__setattr__(self, "cell_size", float(self.cell_size))
        object.__setattr__(self, "origin", as_vec3(self.origin))
        mask = self._compute_mask()
        mask.setflags(write=False)
        object.__setattr__(self, "mask", mask)

    @property
    def size(self) -> int:
        return self.width * self.height

    # ---- index math ----

    def in_bounds(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def to_index(self, cell: Cell) -> int:
        x, y = cell
        return x + y * self.width

    def from_index(self, index: int) -> Cell:
        y = index // self.width
        return (index - y * self.width, y)

    def neighbors4(self, cell: Cell) -> Iterator[Cell]:
        """In-bounds orthogonal neighbours (mask not applied)."""
        x, y = cell
        for dx, dy in DIRS_4:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.width and 0 <= ny < self.height:
                yield (nx, ny)

    # ---- circular mask ----

    @property
    def mask_radius(self) -> int:
        if self.circular_radius > 0:
            return int(self.circular_radius)
        return min(self.width, self.height) // 2

    def is_inside_mask(self, cell: Cell) -> bool:
        return self.in_bounds(cell) and bool(self.mask[self.to_index(cell)])

    def _compute_mask(self) -> np.ndarray:
        """Flat bool array, True where the cell is inside the playable disc."""
        if not self.use_circular_mask:
            return np.ones(self.size, dtype=bool)
        ys, xs = np.divmod(np.arange(self.size), self.width)
        dx = xs - (self.width - 1) // 2
        dy = ys - (self.height - 1) // 2
        r = self.mask_radius
        return (dx * dx + dy * dy) <= r * r

    # ---- world <-> cell ----

    def _local_xz(self, world: Point) -> Tuple[float, float]:
        local = self.transform.inverse_point(world) - self.origin
        return (local[0] / self.cell_size, local[2] / self.cell_size)

    def try_world_to_cell(self, world: Point) -> Optional[Cell]:
        """Cell under `world`, or None if it falls outside the grid."""
        gx, gz = self._local_xz(world)
        cell = (int(math.floor(gx + 0.5)), int(math.floor(gz + 0.5)))
        return cell if self.in_bounds(cell) else None

    def world_to_cell(self, world: Point) -> Cell:
        """Cell under `world`, clamped to the nearest boundary cell."""
        gx, gz = self._local_xz(world)
        ix = int(math.floor(gx + 0.5))
        iy = int(math.floor(gz + 0.5))
        ix = max(0, min(self.width - 1, ix))
        iy = max(0, min(self.height - 1, iy))
        return (ix, iy)

    def cell_center(self, cell: Cell) -> np.ndarray:
        """Centre of cell in world coords."""
        x, y = cell
        local = np.array([x * self.cell_size, 0.0, y * self.cell_size]) + self.origin
        return self.transform.point(local)

    def snap_to_cell_center(self, world: Point) -> np.ndarray:
        return self.cell_center(self.world_to_cell(world))

    def snap_xz(self, world: Point) -> np.ndarray:
        """Snap to the cell centre but keep the input's world height."""
        p = as_vec3(world)
        snapped = self.snap_to_cell_center(p)
        return np.array([snapped[0], p[1], snapped[2]])

    def cell_world_bounds(self, cell: Cell) -> Bounds:
        c = self.cell_center(cell)
        return Bounds(center=(float(c[0]), float(c[1]) + 0.5, float(c[2])),
                      size=(self.cell_size, 2.0, self.cell_size))

    def uniform_scale_to_fit_xz(self, size_x: float, size_z: float) -> float:
        """Uniform scale factor that fits an XZ footprint inside one cell."""
        fx = 1.0 if size_x <= 1e-4 else self.cell_size / size_x
        fz = 1.0 if size_z <= 1e-4 else self.cell_size / size_z
        return min(fx, fz)
