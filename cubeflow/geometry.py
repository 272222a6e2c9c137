"""Geometry helpers: transforms, boxes and small vector math.

Conventions follow a Y-up world:
- World points are 3-vectors (x, y, z); y is up.
- A grid lives in the XZ plane of its owner's local frame.
- Euler angles are in degrees and applied Z, then X, then Y.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]

UP = np.array([0.0, 1.0, 0.0])


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def as_vec3(p: Sequence[float]) -> np.ndarray:
    v = np.asarray(p, dtype=float).reshape(-1)
    if v.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {v.shape}")
    return v


def euler_to_matrix(angles_deg: Sequence[float]) -> np.ndarray:
    """Rotation matrix for Euler angles (x, y, z) in degrees.

    Rotation order is Z first, then X, then Y (R = Ry @ Rx @ Rz).
    """
    ax, ay, az = (math.radians(a) for a in angles_deg)
    cx, sx = math.cos(ax), math.sin(ax)
    cy, sy = math.cos(ay), math.sin(ay)
    cz, sz = math.cos(az), math.sin(az)
    rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return ry @ rx @ rz


@dataclass
class Transform:
    """Owner transform: scale, then rotate, then translate."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self) -> None:
        self.position = as_vec3(self.position)
        self.rotation = np.asarray(self.rotation, dtype=float).reshape(3, 3)
        self.scale = as_vec3(self.scale)
        if np.any(np.abs(self.scale) < 1e-12):
            raise ValueError(f"transform scale must be non-zero on every axis, got {self.scale.tolist()}")

    @classmethod
    def from_euler(
        cls,
        position: Sequence[float] = (0.0, 0.0, 0.0),
        rotation_deg: Sequence[float] = (0.0, 0.0, 0.0),
        scale: Sequence[float] = (1.0, 1.0, 1.0),
    ) -> "Transform":
        return cls(position=np.asarray(position, dtype=float),
                   rotation=euler_to_matrix(rotation_deg),
                   scale=np.asarray(scale, dtype=float))

    def point(self, local: Sequence[float]) -> np.ndarray:
        """Local -> world."""
        return self.rotation @ (self.scale * as_vec3(local)) + self.position

    def inverse_point(self, world: Sequence[float]) -> np.ndarray:
        """World -> local."""
        return (self.rotation.T @ (as_vec3(world) - self.position)) / self.scale

    def direction(self, local: Sequence[float]) -> np.ndarray:
        """Rotate and scale a local vector, ignoring translation."""
        return self.rotation @ (self.scale * as_vec3(local))


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box in world space."""

    center: Vec3
    size: Vec3

    @property
    def extents(self) -> Vec3:
        return (self.size[0] / 2.0, self.size[1] / 2.0, self.size[2] / 2.0)

    @property
    def min(self) -> Vec3:
        return tuple(c - e for c, e in zip(self.center, self.extents))  # type: ignore[return-value]

    @property
    def max(self) -> Vec3:
        return tuple(c + e for c, e in zip(self.center, self.extents))  # type: ignore[return-value]


def normalize_xz(dx: float, dz: float, eps_sq: float = 1e-4) -> Tuple[float, float]:
    """Unit vector in the XZ plane, or zero when the input is negligible."""
    n2 = dx * dx + dz * dz
    if n2 <= eps_sq:
        return (0.0, 0.0)
    n = math.sqrt(n2)
    return (dx / n, dz / n)
