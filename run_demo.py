#!/usr/bin/env python
"""Run the cube flow-field demo.

Usage:
  python run_demo.py --config configs/demo_config.yaml --level configs/demo_level.yaml

Builds every grid of the level, samples spawn -> goal paths, runs the
placement guard on the level's probe points and writes outputs to
outputs/<timestamp>/ (report.json, one PNG per grid, optional wavefront GIFs).
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from pathlib import Path

import yaml

from cubeflow.builder import build_from_spec
from cubeflow.pathing import sample_spawn_paths
from cubeflow.visualization import make_gif, plot_static, save_figure


def load_yaml(path: Path):
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument('--config', type=str, default='configs/demo_config.yaml')
    ap.add_argument('--level', type=str, default='configs/demo_level.yaml')
    ap.add_argument('--out', type=str, default=None, help='output directory (default: outputs/<timestamp>)')
    ap.add_argument('--no-gif', action='store_true', help='skip the wavefront GIFs')
    args = ap.parse_args()

    root = Path(__file__).resolve().parent
    try:
        cfg = load_yaml(root / args.config)
        level = load_yaml(root / args.level)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1

    out_dir = Path(args.out) if args.out else (root / 'outputs' / datetime.now().strftime('%Y%m%d_%H%M%S'))
    out_dir.mkdir(parents=True, exist_ok=True)

    world, registry, grids = build_from_spec(cfg, level)

    path_cfg = cfg.get('path', {})
    vis_cfg = cfg.get('visualization', {})
    gif_cfg = vis_cfg.get('gif', {})

    report = {'colliders': len(world), 'grids': [], 'probes': []}
    for grid in grids:
        paths = sample_spawn_paths(
            grid,
            max_steps=int(path_cfg.get('max_steps', 1000)),
            max_points=int(path_cfg.get('max_points', 100)),
            height=path_cfg.get('height'),
        )
        entry = grid.summary()
        entry['paths'] = [
            {'reached_goal': p.reached_goal, 'reason': p.reason, 'cells': len(p.cells)}
            for p in paths
        ]
        report['grids'].append(entry)

        fig, _ = plot_static(
            grid,
            paths=paths,
            show_flow=bool(vis_cfg.get('show_flow', True)),
            arrow_scale=float(vis_cfg.get('arrow_scale', 0.5)),
        )
        save_figure(fig, str(out_dir / f'{grid.name}.png'), dpi=int(vis_cfg.get('output_dpi', 150)))

        if not args.no_gif and bool(gif_cfg.get('enable', True)):
            make_gif(grid, str(out_dir / f'{grid.name}_wavefront.gif'), gif_cfg)

    for p in level.get('probes', []):
        grid = registry.closest_grid(p)
        report['probes'].append({
            'point': [float(v) for v in p],
            'grid': grid.name if grid is not None else None,
            'cell': grid.world_to_cell(p) if grid is not None else None,
            'buildable': grid.is_buildable_cell(p) if grid is not None else False,
            'can_place': grid.can_place_without_blocking(p) if grid is not None else False,
        })

    with open(out_dir / 'report.json', 'w', encoding='utf-8') as f:
        json.dump(report, f, ensure_ascii=False, indent=2)

    print(f"[demo] Output directory: {out_dir}")
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
