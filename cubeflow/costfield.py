"""Cost field: classify every cell as walkable (1) or blocked (255).

A cell is blocked when it lies outside the circular mask, when its shrunk
footprint box overlaps an unwalkable collider, or (in strict mode only) when
no walkable surface is found beneath its centre.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from .environment import GridLayout
from .geometry import UP, clamp

BLOCKED = 255
WALKABLE = 1


@dataclass
class CostFieldSettings:
    cell_overlap_scale_xz: float = 0.95
    cell_overlap_height: float = 3.0
    restrict_to_walkable: bool = False
    unwalkable_layer: str = "unwalkable"
    walkable_layer: str = "walkable"

    def __post_init__(self) -> None:
        self.cell_overlap_scale_xz = clamp(float(self.cell_overlap_scale_xz), 0.5, 1.2)
        self.cell_overlap_height = float(self.cell_overlap_height)

    @classmethod
    def from_cfg(cls, cfg: Dict[str, Any]) -> "CostFieldSettings":
        return cls(
            cell_overlap_scale_xz=float(cfg.get("cell_overlap_scale_xz", 0.95)),
            cell_overlap_height=float(cfg.get("cell_overlap_height", 3.0)),
            restrict_to_walkable=bool(cfg.get("restrict_to_walkable", False)),
            unwalkable_layer=str(cfg.get("unwalkable_layer", "unwalkable")),
            walkable_layer=str(cfg.get("walkable_layer", "walkable")),
        )


def classify_cell(layout: GridLayout, world, settings: CostFieldSettings, x: int, y: int) -> int:
    cell = (x, y)
    if not layout.mask[x + y * layout.width]:
        return BLOCKED
    if world is None:
        # Empty level: nothing overlaps and there is no ground.
        return BLOCKED if settings.restrict_to_walkable else WALKABLE

    center = layout.cell_center(cell)
    b = layout.cell_world_bounds(cell)
    h = settings.cell_overlap_height
    half_ext = 0.5 * np.array([b.size[0] * settings.cell_overlap_scale_xz, h,
                               b.size[2] * settings.cell_overlap_scale_xz])
    if world.check_box(center, half_ext, settings.unwalkable_layer):
        return BLOCKED

    if settings.restrict_to_walkable:
        ray_start = center + UP * (h * 0.5)
        if world.raycast_down(ray_start, h, settings.walkable_layer) is None:
            return BLOCKED
    return WALKABLE


def build_cost_field(layout: GridLayout, world, settings: Optional[CostFieldSettings] = None,
                     out: Optional[np.ndarray] = None) -> np.ndarray:
    """Return the flat uint8 cost field; fills `out` in place when given."""
    settings = settings or CostFieldSettings()
    if out is None or out.shape != (layout.size,):
        out = np.empty(layout.size, dtype=np.uint8)
    for y in range(layout.height):
        for x in range(layout.width):
            out[x + y * layout.width] = classify_cell(layout, world, settings, x, y)
    return out
