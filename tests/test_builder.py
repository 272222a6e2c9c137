from pathlib import Path

import pytest
import yaml

from cubeflow.builder import build_collider, build_from_spec
from cubeflow.integration import UNREACHABLE

ROOT = Path(__file__).resolve().parents[1]


def _load(name):
    with open(ROOT / 'configs' / name, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


@pytest.fixture
def demo():
    return build_from_spec(_load('demo_config.yaml'), _load('demo_level.yaml'))


def test_demo_level_builds_two_registered_grids(demo):
    world, registry, grids = demo
    assert [g.name for g in grids] == ['top', 'front']
    assert len(registry) == 2
    assert registry.primary is grids[0]
    assert len(world) == 4
    assert all(g.is_ready() for g in grids)


def test_wall_blocks_one_row_and_leaves_a_gap(demo):
    _, _, (top, _) = demo
    assert not top.is_buildable_cell((0.5, 0.0, 2.5))
    assert top.is_buildable_cell((0.5, 0.0, 1.5))
    assert top.is_buildable_cell((5.5, 0.0, 2.5))
    assert top.all_spawns_reachable()


def test_spawn_paths_reach_goal(demo):
    _, _, grids = demo
    for grid in grids:
        for s in grid.spawns:
            assert grid.sample_path(s).reached_goal


def test_front_face_rock_and_strict_ground(demo):
    _, _, (_, front) = demo
    assert front.settings.restrict_to_walkable
    assert not front.is_buildable_cell((36.5, 0.0, 0.5))
    assert front.integration_at(front.world_to_cell((36.5, 0.0, 0.5))) == UNREACHABLE
    assert front.is_buildable_cell((33.5, 0.0, 0.5))


def test_closest_grid_between_faces(demo):
    _, registry, (top, front) = demo
    assert registry.closest_grid((3.0, 0.0, 0.0)) is top
    assert registry.closest_grid((38.0, 0.0, 0.0)) is front


def test_inline_spec_with_rotation_and_defaults():
    config = {'grid_defaults': {'use_circular_mask': False}}
    level = {
        'colliders': [],
        'grids': [{
            'name': 'side',
            'width': 4,
            'height': 4,
            'transform': {'position': [0, 0, 0], 'rotation_deg': [0, 90, 0]},
            'goal': [0, 0, 0],
            'spawns': [[3, 0, -3]],
        }],
    }
    world, registry, (grid,) = build_from_spec(config, level)
    assert len(world) == 0
    assert grid.goal_cell() == (0, 0)
    assert grid.world_to_cell((3.0, 0.0, -3.0)) == (3, 3)
    assert grid.integration_at((3, 3)) == 6


def test_unknown_collider_shape_raises():
    with pytest.raises(ValueError):
        build_collider({'shape': 'sphere', 'layer': 'unwalkable'})
    with pytest.raises(KeyError):
        build_collider({'shape': 'box', 'center': [0, 0, 0], 'size': [1, 1, 1]})
