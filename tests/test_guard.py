import numpy as np

from cubeflow.costfield import BLOCKED, WALKABLE
from cubeflow.environment import GridLayout
from cubeflow.grid import FlowGrid
from cubeflow.guard import can_place_without_blocking, spawns_reachable
from cubeflow.integration import build_integration_field


def _scenario_grid():
    # 5x5, no obstacles, goal at (2, 2), spawn at (0, 0)
    return FlowGrid(width=5, height=5, use_circular_mask=False,
                    goal=(2.0, 0.0, 2.0), spawns=[(0.0, 0.0, 0.0)])


def _snapshot(grid):
    return (grid.cost_field.tobytes(), grid.integration_field.tobytes(), grid.flow_field.tobytes())


def test_each_goal_neighbour_is_individually_placeable():
    grid = _scenario_grid()
    assert grid.can_place_without_blocking((2.0, 0.0, 1.0))
    assert grid.can_place_without_blocking((1.0, 0.0, 2.0))
    assert grid.can_place_without_blocking((3.0, 0.0, 2.0))
    assert grid.can_place_without_blocking((2.0, 0.0, 3.0))


def test_enclosing_the_goal_is_rejected_on_the_last_side():
    grid = _scenario_grid()
    assert grid.try_place_block((2.0, 0.0, 1.0)) is not None
    assert grid.try_place_block((1.0, 0.0, 2.0)) is not None
    assert grid.try_place_block((3.0, 0.0, 2.0)) is not None
    assert grid.all_spawns_reachable()

    assert not grid.can_place_without_blocking((2.0, 0.0, 3.0))
    assert grid.try_place_block((2.0, 0.0, 3.0)) is None
    assert grid.is_buildable_cell((2.0, 0.0, 3.0))
    assert grid.all_spawns_reachable()
    assert len(grid.world) == 3


def test_guard_never_mutates_grid_fields():
    grid = _scenario_grid()
    before = _snapshot(grid)
    for p in [(2.0, 0.0, 1.0), (0.0, 0.0, 0.0), (2.0, 0.0, 2.0), (40.0, 0.0, 40.0), (4.0, 0.0, 4.0)]:
        grid.can_place_without_blocking(p)
        grid.can_place_without_blocking(p)
    assert _snapshot(grid) == before


def test_blocking_a_spawn_cell_is_rejected():
    grid = _scenario_grid()
    assert not grid.can_place_without_blocking((0.0, 0.0, 0.0))


def test_out_of_bounds_placement_is_rejected():
    grid = _scenario_grid()
    assert not grid.can_place_without_blocking((10.0, 0.0, 10.0))
    assert not grid.can_place_without_blocking((-1.0, 0.0, 2.0))


def test_no_goal_allows_any_in_bounds_placement():
    grid = FlowGrid(width=5, height=5, use_circular_mask=False, spawns=[(0.0, 0.0, 0.0)])
    assert grid.can_place_without_blocking((0.0, 0.0, 0.0))
    assert grid.can_place_without_blocking((10.0, 0.0, 10.0))


def test_goal_outside_grid_places_no_constraint():
    grid = FlowGrid(width=5, height=5, use_circular_mask=False,
                    goal=(30.0, 0.0, 0.0), spawns=[(0.0, 0.0, 0.0)])
    assert grid.can_place_without_blocking((0.0, 0.0, 0.0))


def test_pure_guard_on_raw_arrays():
    layout = GridLayout(width=3, height=3, use_circular_mask=False)
    cost = np.full(layout.size, WALKABLE, dtype=np.uint8)
    cost[layout.to_index((1, 0))] = BLOCKED
    goal = (2.0, 0.0, 0.0)
    spawns = [(0.0, 0.0, 0.0), None]
    original = cost.copy()
    # (0, 1) is the last link between the spawn column and the goal
    assert not can_place_without_blocking(layout, cost, goal, spawns, (0.0, 0.0, 1.0))
    assert can_place_without_blocking(layout, cost, goal, spawns, (2.0, 0.0, 2.0))
    assert np.array_equal(cost, original)


def test_spawns_reachable_skips_missing_spawns():
    layout = GridLayout(width=3, height=3, use_circular_mask=False)
    cost = np.full(layout.size, WALKABLE, dtype=np.uint8)
    integ = build_integration_field(layout, cost, (1, 1))
    assert spawns_reachable(layout, integ, [None, (0.0, 0.0, 2.0)])
    assert not spawns_reachable(layout, integ, [(9.0, 0.0, 9.0)])
    assert spawns_reachable(layout, integ, [])
