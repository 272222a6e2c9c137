"""Collider world: the physical queries the cost field is derived from.

Colliders are vertical prisms: a shapely footprint in the world XZ plane
extruded between y_min and y_max. Every collider belongs to one named layer
(e.g. "unwalkable" for walls/blocks, "walkable" for ground tiles). The world
answers the two queries the grid needs:

- check_box: does a world-aligned box overlap any collider of a layer
- raycast_down: first collider of a layer hit by a downward ray
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon, box
from shapely.strtree import STRtree

from .geometry import Bounds, as_vec3

_ids = itertools.count(1)


@dataclass
class Collider:
    footprint: Polygon  # in (x, z)
    y_min: float
    y_max: float
    layer: str
    cid: str = ""

    def __post_init__(self) -> None:
        if self.y_max < self.y_min:
            raise ValueError(f"collider y_max < y_min ({self.y_max} < {self.y_min})")
        if not self.cid:
            self.cid = f"collider_{next(_ids)}"

    @classmethod
    def box(cls, center: Sequence[float], size: Sequence[float], layer: str, cid: str = "") -> "Collider":
        cx, cy, cz = as_vec3(center)
        hx, hy, hz = (float(s) / 2.0 for s in size)
        return cls(footprint=box(cx - hx, cz - hz, cx + hx, cz + hz),
                   y_min=cy - hy, y_max=cy + hy, layer=layer, cid=cid)

    @classmethod
    def from_bounds(cls, bounds: Bounds, layer: str, cid: str = "") -> "Collider":
        return cls.box(bounds.center, bounds.size, layer, cid=cid)

    @classmethod
    def prism(cls, points_xz: Sequence[Tuple[float, float]], y_min: float, y_max: float,
              layer: str, cid: str = "") -> "Collider":
        return cls(footprint=Polygon([tuple(p) for p in points_xz]),
                   y_min=float(y_min), y_max=float(y_max), layer=layer, cid=cid)

    def overlaps_y(self, lo: float, hi: float) -> bool:
        return self.y_min <= hi and self.y_max >= lo


@dataclass
class RaycastHit:
    point: np.ndarray
    distance: float
    collider: Collider


@dataclass
class _Layer:
    colliders: List[Collider] = field(default_factory=list)
    tree: Optional[STRtree] = None

    def index(self) -> STRtree:
        if self.tree is None:
            self.tree = STRtree([c.footprint for c in self.colliders])
        return self.tree


class ColliderWorld:
    """Layered set of colliders with lazily rebuilt spatial indices."""

    def __init__(self, colliders: Optional[List[Collider]] = None):
        self._layers: Dict[str, _Layer] = {}
        for c in colliders or []:
            self.add(c)

    def add(self, collider: Collider) -> Collider:
        layer = self._layers.setdefault(collider.layer, _Layer())
        layer.colliders.append(collider)
        layer.tree = None
        return collider

    def remove(self, collider_id: str) -> bool:
        for layer in self._layers.values():
            for i, c in enumerate(layer.colliders):
                if c.cid == collider_id:
                    del layer.colliders[i]
                    layer.tree = None
                    return True
        return False

    def colliders(self, layer: Optional[str] = None) -> List[Collider]:
        if layer is not None:
            return list(self._layers.get(layer, _Layer()).colliders)
        return [c for lay in self._layers.values() for c in lay.colliders]

    def __len__(self) -> int:
        return sum(len(lay.colliders) for lay in self._layers.values())

    def _candidates(self, layer: str, geom) -> List[Collider]:
        lay = self._layers.get(layer)
        if lay is None or not lay.colliders:
            return []
        idx = lay.index().query(geom, predicate="intersects")
        return [lay.colliders[int(i)] for i in np.atleast_1d(idx)]

    def check_box(self, center: Sequence[float], half_extents: Sequence[float], layer: str) -> bool:
        """True if the world-aligned box overlaps any collider on `layer`."""
        cx, cy, cz = as_vec3(center)
        hx, hy, hz = (float(h) for h in half_extents)
        query = box(cx - hx, cz - hz, cx + hx, cz + hz)
        return any(c.overlaps_y(cy - hy, cy + hy) for c in self._candidates(layer, query))

    def raycast_down(self, origin: Sequence[float], max_distance: float, layer: str) -> Optional[RaycastHit]:
        """Nearest collider on `layer` below `origin` within `max_distance`."""
        ox, oy, oz = as_vec3(origin)
        best: Optional[RaycastHit] = None
        for c in self._candidates(layer, ShapelyPoint(ox, oz)):
            if not c.overlaps_y(oy - max_distance, oy):
                continue
            d = max(0.0, oy - c.y_max)
            if best is None or d < best.distance:
                best = RaycastHit(point=np.array([ox, oy - d, oz]), distance=d, collider=c)
        return best
