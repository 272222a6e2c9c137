"""Flow field: per-cell unit direction toward the strictly best neighbour."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .costfield import BLOCKED
from .environment import Cell, GridLayout
from .geometry import normalize_xz
from .integration import UNREACHABLE


def build_flow_field(layout: GridLayout, cost: np.ndarray, integration: np.ndarray,
                     out: Optional[np.ndarray] = None) -> np.ndarray:
    """Return a flat (n, 2) float32 array of world XZ directions.

    A neighbour is chosen only if its integration value is strictly lower than
    the cell's own, so the goal and every blocked/unreachable cell get zero.
    """
    n = layout.size
    if out is None or out.shape != (n, 2):
        out = np.zeros((n, 2), dtype=np.float32)
    else:
        out.fill(0.0)

    w = layout.width
    mask = layout.mask
    centers = [layout.cell_center(layout.from_index(i)) for i in range(n)]

    for i in range(n):
        if not mask[i] or cost[i] >= BLOCKED or integration[i] == UNREACHABLE:
            continue
        x, y = i % w, i // w
        lowest = int(integration[i])
        best = i
        for nx, ny in layout.neighbors4((x, y)):
            ni = nx + ny * w
            if not mask[ni]:
                continue
            nval = int(integration[ni])
            if nval < lowest:
                lowest = nval
                best = ni
        if best == i:
            continue
        d = centers[best] - centers[i]
        out[i] = normalize_xz(float(d[0]), float(d[2]))
    return out


def best_next_cell(layout: GridLayout, integration: np.ndarray, cell: Cell) -> Optional[Cell]:
    """Movement helper: the in-bounds neighbour with the lowest integration value.

    Falls back to `cell` itself when no neighbour is reachable but the cell is;
    returns None when neither is.
    """
    best_val = UNREACHABLE
    best = cell
    for nc in layout.neighbors4(cell):
        nval = int(integration[layout.to_index(nc)])
        if nval < best_val:
            best_val = nval
            best = nc
    if best_val < UNREACHABLE:
        return best
    if int(integration[layout.to_index(cell)]) < UNREACHABLE:
        return cell
    return None
