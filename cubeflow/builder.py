"""Build ColliderWorld + GridRegistry + FlowGrids from YAML level and config."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from .colliders import Collider, ColliderWorld
from .costfield import CostFieldSettings
from .geometry import Transform
from .grid import FlowGrid
from .registry import GridRegistry


def _point(value) -> Optional[Tuple[float, float, float]]:
    if value is None:
        return None
    x, y, z = (float(v) for v in value)
    return (x, y, z)


def build_collider(c: Dict[str, Any]) -> Collider:
    shape = str(c.get('shape', 'box'))
    layer = str(c['layer'])
    cid = str(c.get('id', ''))
    if shape == 'box':
        return Collider.box(_point(c['center']), _point(c['size']), layer, cid=cid)
    if shape == 'prism':
        return Collider.prism([tuple(p) for p in c['points']], float(c['y_min']), float(c['y_max']), layer, cid=cid)
    raise ValueError(f"unknown collider shape: {shape!r}")


def build_world(level: Dict[str, Any]) -> ColliderWorld:
    world = ColliderWorld()
    for c in level.get('colliders', []):
        world.add(build_collider(c))
    return world


def build_grid(g: Dict[str, Any], defaults: Dict[str, Any], world: ColliderWorld,
               registry: Optional[GridRegistry]) -> FlowGrid:
    merged = {**defaults, **g.get('overrides', {})}
    t = g.get('transform', {})
    transform = Transform.from_euler(
        position=t.get('position', (0.0, 0.0, 0.0)),
        rotation_deg=t.get('rotation_deg', (0.0, 0.0, 0.0)),
        scale=t.get('scale', (1.0, 1.0, 1.0)),
    )
    return FlowGrid(
        width=int(g['width']),
        height=int(g['height']),
        cell_size=float(g.get('cell_size', merged.get('cell_size', 1.0))),
        origin=g.get('origin', (0.0, 0.0, 0.0)),
        transform=transform,
        use_circular_mask=bool(merged.get('use_circular_mask', True)),
        circular_radius=int(merged.get('circular_radius', -1)),
        goal=_point(g.get('goal')),
        spawns=[_point(s) for s in g.get('spawns', [])],
        world=world,
        settings=CostFieldSettings.from_cfg(merged),
        registry=registry,
        name=str(g.get('name', 'grid')),
    )


def build_from_spec(config: Dict[str, Any], level: Dict[str, Any],
                    registry: Optional[GridRegistry] = None) -> Tuple[ColliderWorld, GridRegistry, List[FlowGrid]]:
    """Build every grid of the level against one shared collider world.

    Each grid is rebuilt on construction, so the returned grids are ready to
    query. A fresh registry is created unless one is passed in.
    """
    registry = registry if registry is not None else GridRegistry()
    world = build_world(level)
    defaults = config.get('grid_defaults', {})
    grids = [build_grid(g, defaults, world, registry) for g in level['grids']]
    return world, registry, grids
