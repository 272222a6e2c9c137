import gc

from cubeflow.geometry import Transform
from cubeflow.grid import FlowGrid
from cubeflow.registry import GridRegistry


def _centered_grid(x, registry, name):
    # 10x10 cells of size 1 centred on (x, 0, 0)
    return FlowGrid(width=10, height=10, origin=(-4.5, 0.0, -4.5),
                    transform=Transform.from_euler(position=(x, 0.0, 0.0)),
                    registry=registry, name=name)


def test_closest_grid_picks_nearer_of_two_grids():
    reg = GridRegistry()
    a = _centered_grid(0.0, reg, "a")
    b = _centered_grid(100.0, reg, "b")
    assert reg.closest_grid((10.0, 0.0, 0.0)) is a
    assert reg.closest_grid((90.0, 0.0, 0.0)) is b
    assert reg.closest_grid((100.3, 0.0, 2.2)) is b


def test_register_is_idempotent_and_first_grid_is_primary():
    reg = GridRegistry()
    a = _centered_grid(0.0, reg, "a")
    b = _centered_grid(100.0, reg, "b")
    reg.register(a)
    reg.register(b)
    assert len(reg) == 2
    assert reg.primary is a
    assert a in reg and b in reg


def test_destroyed_grid_is_skipped_and_primary_promoted():
    reg = GridRegistry()
    a = _centered_grid(0.0, reg, "a")
    b = _centered_grid(100.0, reg, "b")
    a.destroy()
    assert reg.closest_grid((10.0, 0.0, 0.0)) is b
    assert reg.primary is b
    assert reg.grids() == [b]


def test_collected_grids_are_tombstones():
    reg = GridRegistry()
    keep = _centered_grid(100.0, reg, "keep")
    _centered_grid(0.0, reg, "dropped")
    gc.collect()
    assert reg.grids() == [keep]
    assert reg.closest_grid((0.0, 0.0, 0.0)) is keep


def test_empty_registry_returns_none():
    reg = GridRegistry()
    assert reg.closest_grid((0.0, 0.0, 0.0)) is None
    assert reg.primary is None


def test_grids_only_join_the_registry_they_are_given():
    reg = GridRegistry()
    loose = FlowGrid(width=3, height=3)
    assert loose not in reg
    assert len(reg) == 0


def test_rotated_faces_resolve_by_snapped_distance():
    reg = GridRegistry()
    # top face flat at y=5, front face standing up at z=5
    top = FlowGrid(width=10, height=10, origin=(-4.5, 0.0, -4.5),
                   transform=Transform.from_euler(position=(0.0, 5.0, 0.0)),
                   registry=reg, name="top")
    front = FlowGrid(width=10, height=10, origin=(-4.5, 0.0, -4.5),
                     transform=Transform.from_euler(position=(0.0, 0.0, 5.0), rotation_deg=(90.0, 0.0, 0.0)),
                     registry=reg, name="front")
    assert reg.closest_grid((1.0, 5.2, 0.0)) is top
    assert reg.closest_grid((1.0, 0.0, 5.3)) is front


def test_register_prunes_collected_grids():
    reg = GridRegistry()
    for i in range(5):
        _centered_grid(float(i), reg, f"temp{i}")
    gc.collect()
    keep = _centered_grid(100.0, reg, "keep")
    assert len(reg._refs) == 1
    assert reg.grids() == [keep]
