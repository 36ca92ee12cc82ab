"""
Planar helpers for the ribbon mesh (XZ plane, Y kept as height).

angle_degree, perpendicular, from_xz and wrap are not used by the mesh
builder itself; they are public helpers for tools that place or orient
nodes (editors, import scripts).
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

# |det| below this is treated as parallel lines
PARALLEL_EPS = 1e-9


def rotate_around_point(v: Sequence[float], origin: Sequence[float], theta: float) -> np.ndarray:
    """
    Rotates a 3D point about origin in the XZ plane, keeping y.
      x' =  px*cos(theta) + pz*sin(theta)
      z' = -px*sin(theta) + pz*cos(theta)
    (clockwise for positive theta when looking down the y axis onto XZ)
    """
    px = float(v[0]) - float(origin[0])
    pz = float(v[2]) - float(origin[2])

    s = math.sin(theta)
    c = math.cos(theta)

    x_new = px * c + pz * s
    z_new = -px * s + pz * c

    return np.array([x_new + float(origin[0]), float(v[1]), z_new + float(origin[2])], dtype=float)


def angle_radian(a: Sequence[float], b: Sequence[float]) -> float:
    """Angle of the 2D vector a->b."""
    return math.atan2(float(b[1]) - float(a[1]), float(b[0]) - float(a[0]))


def angle_degree(a: Sequence[float], b: Sequence[float]) -> float:
    theta = math.degrees(angle_radian(a, b))
    dot = float(b[0]) - float(a[0])
    if dot < 0:
        theta = 180.0 + theta
    return wrap(theta, 0.0, 360.0)


def intercept_point(
    p0: Sequence[float],
    p1: Sequence[float],
    p2: Sequence[float],
    p3: Sequence[float],
    *,
    eps: float = PARALLEL_EPS,
) -> Optional[np.ndarray]:
    """
    Intersection of the infinite 2D lines p0-p1 and p2-p3.
    Returns None if the lines are parallel (or coincident).
    """
    a1 = float(p1[1]) - float(p0[1])
    b1 = float(p0[0]) - float(p1[0])
    c1 = a1 * float(p0[0]) + b1 * float(p0[1])

    a2 = float(p3[1]) - float(p2[1])
    b2 = float(p2[0]) - float(p3[0])
    c2 = a2 * float(p2[0]) + b2 * float(p2[1])

    det = a1 * b2 - a2 * b1
    scale = max(1.0, math.hypot(a1, b1) * math.hypot(a2, b2))
    if abs(det) <= eps * scale:
        return None

    x = (b2 * c1 - b1 * c2) / det
    y = (a1 * c2 - a2 * c1) / det
    return np.array([x, y], dtype=float)


def perpendicular(a: Sequence[float], b: Optional[Sequence[float]] = None) -> np.ndarray:
    """
    perpendicular(dir)  -> dir rotated +90 degrees
    perpendicular(a, b) -> (b - a) rotated +90 degrees
    """
    if b is None:
        return np.array([-float(a[1]), float(a[0])], dtype=float)
    return np.array([-(float(b[1]) - float(a[1])), float(b[0]) - float(a[0])], dtype=float)


def to_xz(v: Sequence[float]) -> np.ndarray:
    return np.array([float(v[0]), float(v[2])], dtype=float)


def from_xz(v: Sequence[float], y: float = 0.0) -> np.ndarray:
    return np.array([float(v[0]), float(y), float(v[1])], dtype=float)


def wrap(value: float, vmin: float, vmax: float) -> float:
    rng = vmax - vmin
    if value > vmax:
        return math.fmod(value, rng)
    if value < vmin:
        return vmax + math.fmod(value, rng)
    return value


def average(points: Sequence[Sequence[float]]) -> np.ndarray:
    if len(points) < 1:
        return np.zeros(3, dtype=float)
    return np.mean(np.asarray(points, dtype=float), axis=0)
