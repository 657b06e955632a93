"""Catmull-Rom curve helpers for voxshape.

Provides evaluation, sampling, and distance routines for the uniform
Catmull-Rom curve that threads through a tube's control points.  The
first and last control points get phantom neighbours mirrored through
them so every real point has a defined tangent.
"""

from __future__ import annotations

import math
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from voxshape.geometry_utils import (
    UP,
    X_AXIS,
    Vec3,
    add,
    cross,
    dot,
    epsilon,
    normalize,
    scale,
    to_vec3,
)

Window = Tuple[Vec3, Vec3, Vec3, Vec3]

# rows map (1, t, t^2, t^3) onto the weights of (p0, p1, p2, p3)
_BASIS = 0.5 * np.array([
    [0.0, 2.0, 0.0, 0.0],
    [-1.0, 0.0, 1.0, 0.0],
    [2.0, -5.0, 4.0, -1.0],
    [-1.0, 3.0, -3.0, 1.0],
])

# upper bound on query x sample pairs held in memory at once
_CHUNK_ELEMENTS = 1 << 20


def catmull_rom(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3, t: float) -> Vec3:
    """Evaluate the segment between ``p1`` and ``p2`` at ``t`` in ``[0, 1]``."""

    t2 = t * t
    t3 = t2 * t

    def axis(i: int) -> float:
        return 0.5 * ((2 * p1[i])
                      + (-p0[i] + p2[i]) * t
                      + (2 * p0[i] - 5 * p1[i] + 4 * p2[i] - p3[i]) * t2
                      + (-p0[i] + 3 * p1[i] - 3 * p2[i] + p3[i]) * t3)

    return axis(0), axis(1), axis(2)


def catmull_rom_derivative(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3, t: float) -> Vec3:
    """Return the (unnormalised) tangent of the segment at ``t``."""

    t2 = t * t

    def axis(i: int) -> float:
        return 0.5 * ((-p0[i] + p2[i])
                      + 2 * (2 * p0[i] - 5 * p1[i] + 4 * p2[i] - p3[i]) * t
                      + 3 * (-p0[i] + 3 * p1[i] - 3 * p2[i] + p3[i]) * t2)

    return axis(0), axis(1), axis(2)


def extrapolate_start(p0: Vec3, p1: Vec3) -> Vec3:
    """Phantom point before ``p0``: ``p1`` mirrored through ``p0``."""

    return 2 * p0[0] - p1[0], 2 * p0[1] - p1[1], 2 * p0[2] - p1[2]


def extrapolate_end(pn1: Vec3, pn: Vec3) -> Vec3:
    """Phantom point after ``pn``: ``pn1`` mirrored through ``pn``."""

    return 2 * pn[0] - pn1[0], 2 * pn[1] - pn1[1], 2 * pn[2] - pn1[2]


def segment_windows(points: Sequence[Sequence[float]]) -> Iterator[Window]:
    """Yield the four-point window of every segment of the curve."""

    ctrl = [to_vec3(p) for p in points]
    n = len(ctrl)
    if n < 2:
        raise ValueError('curve needs at least 2 control points')
    for i in range(n - 1):
        p0 = extrapolate_start(ctrl[0], ctrl[1]) if i == 0 else ctrl[i - 1]
        p3 = extrapolate_end(ctrl[n - 2], ctrl[n - 1]) if i == n - 2 else ctrl[i + 2]
        yield p0, ctrl[i], ctrl[i + 1], p3


def _check_samples(samples_per_segment: int) -> None:
    if samples_per_segment < 1:
        raise ValueError('samples_per_segment must be >= 1')


def spline_samples(points: Sequence[Sequence[float]],
                   samples_per_segment: int) -> np.ndarray:
    """Return an ``(m, 3)`` array of curve samples.

    Each of the ``n - 1`` segments contributes ``samples_per_segment + 1``
    uniformly spaced samples, endpoints included, so neighbouring segments
    share a sample.
    """

    return spline_frames(points, samples_per_segment)[0]


def spline_frames(points: Sequence[Sequence[float]],
                  samples_per_segment: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return curve samples and their unit tangents as two ``(m, 3)`` arrays.

    Tangents too short to normalise fall back to world up.
    """

    _check_samples(samples_per_segment)
    t = np.arange(samples_per_segment + 1, dtype=float) / samples_per_segment
    powers = np.stack([np.ones_like(t), t, t * t, t * t * t], axis=1)
    dpowers = np.stack([np.zeros_like(t), np.ones_like(t), 2 * t, 3 * t * t], axis=1)

    pts = []
    tangents = []
    for window in segment_windows(points):
        ctrl = np.asarray(window, dtype=float)
        weights = _BASIS @ ctrl
        pts.append(powers @ weights)
        tangents.append(dpowers @ weights)

    samples = np.concatenate(pts)
    tangent = np.concatenate(tangents)
    lengths = np.linalg.norm(tangent, axis=1)
    degenerate = lengths <= epsilon
    tangent[degenerate] = UP
    lengths[degenerate] = 1.0
    return samples, tangent / lengths[:, None]


def sample_spline(points: Sequence[Sequence[float]],
                  samples_per_segment: int) -> List[Vec3]:
    """Sample the curve into a list of XYZ tuples."""

    return [tuple(p) for p in spline_samples(points, samples_per_segment).tolist()]


def min_distances(queries, points: Sequence[Sequence[float]],
                  samples_per_segment: int) -> np.ndarray:
    """Return, per query point, the straight-line distance to the nearest sample."""

    q = np.asarray(queries, dtype=float).reshape(-1, 3)
    samples = spline_samples(points, samples_per_segment)
    return nearest_sample_distances(q, samples)[1]


def nearest_sample_distances(queries: np.ndarray,
                             samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(index, distance)`` of the nearest sample for each query row."""

    count = len(queries)
    idx = np.empty(count, dtype=np.intp)
    dist = np.empty(count, dtype=float)
    step = max(1, _CHUNK_ELEMENTS // max(1, len(samples)))
    for start in range(0, count, step):
        chunk = queries[start:start + step]
        deltas = chunk[:, None, :] - samples[None, :, :]
        d2 = np.einsum('ijk,ijk->ij', deltas, deltas)
        best = np.argmin(d2, axis=1)
        idx[start:start + step] = best
        dist[start:start + step] = np.sqrt(d2[np.arange(len(chunk)), best])
    return idx, dist


def projected_distances(queries: np.ndarray, samples: np.ndarray,
                        tangents: np.ndarray) -> np.ndarray:
    """Distance from each query row to the curve, measured perpendicular to
    the tangent at its nearest sample."""

    idx, _ = nearest_sample_distances(queries, samples)
    offset = queries - samples[idx]
    tangent = tangents[idx]
    along = np.einsum('ij,ij->i', offset, tangent)
    perp = offset - along[:, None] * tangent
    return np.linalg.norm(perp, axis=1)


def sample_min_distance(point: Sequence[float], points: Sequence[Sequence[float]],
                        samples_per_segment: int) -> float:
    """Approximate distance from ``point`` to the curve.

    This is the minimum over ``samples_per_segment + 1`` samples per
    segment, not an exact nearest-point solve.
    """

    return float(min_distances([to_vec3(point)], points, samples_per_segment)[0])


def evaluate_spline(points: Sequence[Sequence[float]], t: float) -> Vec3:
    """Return the point at global parameter ``t`` in ``[0, 1]`` along the curve."""

    ctrl = [to_vec3(p) for p in points]
    n = len(ctrl)
    if n == 0:
        raise ValueError('curve has no control points')
    if n == 1:
        return ctrl[0]
    t = max(0.0, min(1.0, float(t)))
    if n == 2:
        a, b = ctrl
        return (a[0] + (b[0] - a[0]) * t,
                a[1] + (b[1] - a[1]) * t,
                a[2] + (b[2] - a[2]) * t)

    span = t * (n - 1)
    i = min(int(math.floor(span)), n - 2)
    local = span - i
    p0 = extrapolate_start(ctrl[0], ctrl[1]) if i == 0 else ctrl[i - 1]
    p3 = extrapolate_end(ctrl[n - 2], ctrl[n - 1]) if i == n - 2 else ctrl[i + 2]
    return catmull_rom(p0, ctrl[i], ctrl[i + 1], p3, local)


def arc_length(points: Sequence[Sequence[float]], segments_per_span: int) -> float:
    """Polyline approximation of the curve length.

    Fewer than two points have zero length.
    """

    if len(points) < 2:
        return 0.0
    samples = spline_samples(points, segments_per_span)
    return float(np.linalg.norm(np.diff(samples, axis=0), axis=1).sum())


def find_perpendicular(direction: Sequence[float]) -> Vec3:
    """Return a unit vector perpendicular to ``direction``.

    World up is the reference axis unless ``direction`` is within a few
    degrees of vertical, in which case world X is used instead.
    """

    d = normalize(to_vec3(direction))
    reference = X_AXIS if abs(dot(d, UP)) > 0.99 else UP
    return normalize(cross(d, reference), fallback=X_AXIS)


def tube_ring(center: Sequence[float], direction: Sequence[float], radius: float,
              segments: int = 16) -> List[Vec3]:
    """Return the points of the circle of ``radius`` around ``center``
    lying in the plane normal to ``direction``."""

    if segments < 3:
        raise ValueError('segments must be >= 3')
    c = to_vec3(center)
    d = normalize(to_vec3(direction))
    perp1 = find_perpendicular(d)
    perp2 = normalize(cross(d, perp1), fallback=X_AXIS)
    ring = []
    for i in range(segments):
        angle = 2 * math.pi * i / segments
        offset = add(scale(perp1, math.cos(angle) * radius),
                     scale(perp2, math.sin(angle) * radius))
        ring.append(add(c, offset))
    return ring


__all__ = [
    'catmull_rom',
    'catmull_rom_derivative',
    'extrapolate_start',
    'extrapolate_end',
    'segment_windows',
    'spline_samples',
    'spline_frames',
    'sample_spline',
    'min_distances',
    'nearest_sample_distances',
    'projected_distances',
    'sample_min_distance',
    'evaluate_spline',
    'arc_length',
    'find_perpendicular',
    'tube_ring',
]
