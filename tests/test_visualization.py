from cubeflow.grid import FlowGrid
from cubeflow.pathing import sample_spawn_paths
from cubeflow.visualization import make_gif, plot_static, save_figure


def _grid():
    return FlowGrid(width=8, height=8, goal=(4.0, 0.0, 4.0), spawns=[(2.0, 0.0, 1.0)])


def test_plot_static_writes_png(tmp_path):
    grid = _grid()
    fig, ax = plot_static(grid, paths=sample_spawn_paths(grid))
    assert ax.get_title().startswith(grid.name)
    out = tmp_path / 'grid.png'
    save_figure(fig, str(out), dpi=60)
    assert out.stat().st_size > 0


def test_make_gif_writes_one_frame_per_threshold(tmp_path):
    grid = _grid()
    out = tmp_path / 'wavefront.gif'
    n = make_gif(grid, str(out), {'frame_every': 2, 'max_frames': 3, 'dpi': 40})
    assert n == 3
    assert out.stat().st_size > 0


def test_plot_unbuilt_grid_does_not_fail(tmp_path):
    grid = FlowGrid(width=4, height=4, auto_build=False)
    fig, _ = plot_static(grid)
    save_figure(fig, str(tmp_path / 'empty.png'), dpi=40)
