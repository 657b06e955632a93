"""Common vector and voxel helpers shared across the shape engine."""

from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple

epsilon = 1e-9

Vec3 = Tuple[float, float, float]
Voxel = Tuple[int, int, int]

UP: Vec3 = (0.0, 1.0, 0.0)
X_AXIS: Vec3 = (1.0, 0.0, 0.0)


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point-like sequence as a float tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def to_voxel(point_like: Sequence[float]) -> Voxel:
    """Return the voxel containing ``point_like`` (componentwise floor)."""

    return (math.floor(point_like[0]),
            math.floor(point_like[1]),
            math.floor(point_like[2]))


def voxel_center(voxel: Sequence[int]) -> Vec3:
    """Return the center of a unit voxel."""

    return voxel[0] + 0.5, voxel[1] + 0.5, voxel[2] + 0.5


def add(a: Vec3, b: Vec3) -> Vec3:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


def sub(a: Vec3, b: Vec3) -> Vec3:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


def scale(a: Vec3, c: float) -> Vec3:
    return a[0] * c, a[1] * c, a[2] * c


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def mag(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def dist(a: Vec3, b: Vec3) -> float:
    return mag(sub(a, b))


def normalize(a: Vec3, fallback: Vec3 = UP) -> Vec3:
    """Return ``a`` scaled to unit length.

    Vectors shorter than ``epsilon`` have no usable direction; ``fallback``
    is returned instead so callers never see NaN components.
    """

    length = mag(a)
    if length <= epsilon:
        return fallback
    return a[0] / length, a[1] / length, a[2] / length


def voxel_bounds(voxels: Iterable[Sequence[int]]) -> Tuple[Voxel, Voxel] | None:
    """Return the inclusive ``(min, max)`` corners of ``voxels`` or ``None``."""

    it = iter(voxels)
    try:
        first = next(it)
    except StopIteration:
        return None
    lo = [first[0], first[1], first[2]]
    hi = [first[0], first[1], first[2]]
    for v in it:
        for axis in range(3):
            if v[axis] < lo[axis]:
                lo[axis] = v[axis]
            elif v[axis] > hi[axis]:
                hi[axis] = v[axis]
    return (lo[0], lo[1], lo[2]), (hi[0], hi[1], hi[2])


__all__ = [
    "Vec3",
    "Voxel",
    "UP",
    "X_AXIS",
    "epsilon",
    "to_vec3",
    "to_voxel",
    "voxel_center",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "mag",
    "dist",
    "normalize",
    "voxel_bounds",
]
