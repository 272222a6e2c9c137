"""Visualization utilities: cell states + flow arrows, sampled paths, wavefront GIF.

Everything here is a read-only projection of a grid's fields. Figures are drawn
in the grid's cell coordinates (x right, y up); flow arrows are the world XZ
directions, which coincide with the cell axes for unrotated grids.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

import imageio.v2 as imageio

from .grid import CELL_BLOCKED, CELL_UNREACHABLE, FlowGrid
from .integration import UNREACHABLE
from .pathing import PathSample

# blocked / reachable / unreachable
STATE_COLORS = ListedColormap([
    (1.0, 0.0, 0.0, 0.35),
    (0.2, 0.8, 0.2, 0.25),
    (1.0, 0.9, 0.2, 0.2),
])
GOAL_COLOR = (0.1, 0.6, 1.0)
SPAWN_COLOR = (0.8, 0.3, 1.0)
PATH_COLOR = (1.0, 0.5, 0.0)


def _grid_image(grid: FlowGrid, flat: np.ndarray) -> np.ndarray:
    return flat.reshape(grid.height, grid.width)


def plot_static(
    grid: FlowGrid,
    paths: Optional[List[PathSample]] = None,
    show_flow: bool = True,
    arrow_scale: float = 0.5,
    title: Optional[str] = None,
) -> Tuple[plt.Figure, plt.Axes]:
    fig, ax = plt.subplots(figsize=(7, 7))
    w, h = grid.width, grid.height
    extent = (-0.5, w - 0.5, -0.5, h - 0.5)

    states = _grid_image(grid, grid.cell_states())
    ax.imshow(states, origin='lower', extent=extent, interpolation='nearest',
              cmap=STATE_COLORS, vmin=CELL_BLOCKED, vmax=CELL_UNREACHABLE)

    if show_flow and grid.is_ready():
        flow = grid.flow_field
        moving = np.any(flow != 0.0, axis=1)
        if np.any(moving):
            idx = np.nonzero(moving)[0]
            ys, xs = np.divmod(idx, w)
            ax.quiver(xs, ys, flow[idx, 0], flow[idx, 1], angles='xy', scale_units='xy',
                      scale=1.0 / max(arrow_scale, 1e-6), width=0.004, color='c')

    for sample in paths or []:
        if len(sample.cells) < 2:
            continue
        xs = [c[0] for c in sample.cells]
        ys = [c[1] for c in sample.cells]
        ax.plot(xs, ys, linewidth=2.4, color=PATH_COLOR, alpha=0.8)

    gc = grid.goal_cell()
    if gc is not None:
        ax.scatter([gc[0]], [gc[1]], s=90, color=GOAL_COLOR)
    for s in grid.spawns:
        if s is None:
            continue
        sx, sy = grid.world_to_cell(s)
        ax.scatter([sx], [sy], s=70, color=SPAWN_COLOR)

    ax.set_xlim(extent[0], extent[1])
    ax.set_ylim(extent[2], extent[3])
    ax.set_title(title or f"{grid.name}: cell states + flow")
    ax.set_xlabel("cell x")
    ax.set_ylabel("cell y")
    ax.set_aspect('equal', adjustable='box')
    fig.tight_layout()
    return fig, ax


def save_figure(fig: plt.Figure, path: str, dpi: int = 150) -> None:
    fig.savefig(path, dpi=dpi)
    plt.close(fig)


def _canvas_rgb(fig: plt.Figure) -> np.ndarray:
    fig.canvas.draw()
    return np.asarray(fig.canvas.buffer_rgba())[..., :3].copy()


def make_gif(grid: FlowGrid, out_gif_path: str, cfg: Dict[str, Any]) -> int:
    """Animate the integration wavefront expanding from the goal.

    Frame k shows every cell with integration value <= k * frame_every.
    Returns the number of frames written.
    """
    frame_every = max(1, int(cfg.get('frame_every', 2)))
    max_frames = int(cfg.get('max_frames', 80))
    dpi = int(cfg.get('dpi', 100))

    integ = grid.integration_field if grid.is_ready() else np.full(grid.width * grid.height, UNREACHABLE)
    finite = integ[integ != UNREACHABLE]
    top = int(finite.max()) if finite.size else 0
    thresholds = list(range(0, top + frame_every, frame_every)) or [0]
    if len(thresholds) > max_frames:
        keep = np.linspace(0, len(thresholds) - 1, max_frames).round().astype(int)
        thresholds = [thresholds[i] for i in keep]

    fig, ax = plot_static(grid, show_flow=False, title=str(cfg.get('title', f"{grid.name}: wavefront")))
    w, h = grid.width, grid.height
    front = ax.imshow(np.zeros((h, w)), origin='lower', extent=(-0.5, w - 0.5, -0.5, h - 0.5),
                      interpolation='nearest', cmap='viridis', vmin=0, vmax=max(top, 1), alpha=0.0)
    fig.set_dpi(dpi)

    frames: List[np.ndarray] = []
    for t in thresholds:
        reached = (integ != UNREACHABLE) & (integ <= t)
        img = np.where(reached, integ, 0).reshape(h, w).astype(float)
        front.set_data(np.ma.masked_where(~reached.reshape(h, w), img))
        front.set_alpha(0.6)
        frames.append(_canvas_rgb(fig))

    plt.close(fig)
    imageio.mimsave(out_gif_path, frames, duration=float(cfg.get('duration_s', 0.12)))
    return len(frames)
