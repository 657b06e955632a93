"""Inside/outside classification of voxels against a resolved shape.

:func:`contains` answers the question for one voxel; :func:`iter_volume`
enumerates every member voxel.  Both go through the same per-shape
formulas below, which accept plain numbers or numpy arrays alike, so the
scalar test and the vectorised layer masks always agree.
"""

from __future__ import annotations

import itertools
import logging
import math
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.cost import Budget, VoxelResult
from voxshape.geometry_utils import Voxel, voxel_center
from voxshape.shapes import (
    BoxParams,
    CylinderParams,
    EllipsoidParams,
    ShapeParams,
    TubeParams,
    shape_mode_of,
)
from voxshape.spline import projected_distances, spline_frames, spline_samples

logger = logging.getLogger(__name__)

# tube candidate voxels deduplicated and tested per numpy batch
_TUBE_CANDIDATES = 1 << 16


# per-shape measures

def planar_distance(params: CylinderParams, x, z):
    """Distance in the XZ plane from a voxel center to the cylinder axis."""
    dx = (x + 0.5) - params.center_x
    dz = (z + 0.5) - params.center_z
    return np.sqrt(dx * dx + dz * dz)


def ellipsoid_value(params: EllipsoidParams, x, y, z):
    """Normalised squared distance of a voxel center; 1.0 on the ideal surface."""
    cx, cy, cz = params.center
    nx = ((x + 0.5) - cx) / params.rx
    ny = ((y + 0.5) - cy) / params.ry
    nz = ((z + 0.5) - cz) / params.rz
    return nx * nx + ny * ny + nz * nz


def ellipsoid_tolerance(params: EllipsoidParams) -> float:
    """Upper bound of :func:`ellipsoid_value` for member voxels.

    The term beyond 1.0 admits voxels whose center sits just outside the
    ideal surface by less than half a voxel.
    """
    return 1.0 + 0.5 / params.min_radius


def tube_limit(params: TubeParams) -> float:
    return params.radius + 0.5


# bounds

def enumeration_bounds(params: ShapeParams,
                       config: EngineConfig = DEFAULT_CONFIG) -> Tuple[Voxel, Voxel]:
    """Inclusive integer box that contains every member voxel."""

    shape_mode_of(params)
    if isinstance(params, BoxParams):
        return params.min_corner, params.max_corner
    if isinstance(params, CylinderParams):
        r = params.radius
        return ((math.floor(params.center_x - r - 1), params.min_y,
                 math.floor(params.center_z - r - 1)),
                (math.ceil(params.center_x + r + 1), params.max_y,
                 math.ceil(params.center_z + r + 1)))
    if isinstance(params, EllipsoidParams):
        radii = (params.rx, params.ry, params.rz)
        lo = tuple(math.floor(c - r - 1) for c, r in zip(params.center, radii))
        hi = tuple(math.ceil(c + r + 1) for c, r in zip(params.center, radii))
        return lo, hi
    samples = spline_samples(params.control_points, config.curve_samples)
    lo = np.floor(samples.min(axis=0)).astype(int) - params.radius
    hi = np.floor(samples.max(axis=0)).astype(int) + params.radius
    return tuple(lo.tolist()), tuple(hi.tolist())


def layer_range(lo: int, hi: int, layer_y: Optional[int]) -> range:
    if layer_y is None:
        return range(lo, hi + 1)
    if lo <= layer_y <= hi:
        return range(layer_y, layer_y + 1)
    return range(0)


def layer_grid(lo: Voxel, hi: Voxel) -> Tuple[np.ndarray, np.ndarray]:
    """X and Z coordinate grids of one horizontal layer of the bounds."""
    xs = np.arange(lo[0], hi[0] + 1)
    zs = np.arange(lo[2], hi[2] + 1)
    return np.meshgrid(xs, zs, indexing='ij')


def masked_layer(X: np.ndarray, Z: np.ndarray, y: int, mask: np.ndarray) -> Iterator[Voxel]:
    for x, z in zip(X[mask].tolist(), Z[mask].tolist()):
        yield x, y, z


# membership

def contains(params: ShapeParams, voxel: Sequence[int],
             config: EngineConfig = DEFAULT_CONFIG) -> bool:
    """Return ``True`` if ``voxel`` belongs to the filled shape."""

    shape_mode_of(params)
    x, y, z = voxel
    if isinstance(params, BoxParams):
        lo, hi = params.min_corner, params.max_corner
        return all(lo[i] <= voxel[i] <= hi[i] for i in range(3))
    if isinstance(params, CylinderParams):
        return (params.min_y <= y <= params.max_y
                and bool(planar_distance(params, x, z) <= params.radius + 0.5))
    if isinstance(params, EllipsoidParams):
        return bool(ellipsoid_value(params, x, y, z) <= ellipsoid_tolerance(params))
    if params.radius == 0:
        return (x, y, z) in set(center_line(params, config))
    samples, tangents = spline_frames(params.control_points, config.curve_samples)
    # only voxels within the candidate cube of some sample are ever enumerated
    bases = np.floor(samples).astype(np.int64)
    if not np.any(np.all(np.abs(bases - np.asarray(voxel)) <= params.radius, axis=1)):
        return False
    point = np.asarray([voxel_center(voxel)], dtype=float)
    return bool(projected_distances(point, samples, tangents)[0] <= tube_limit(params))


def center_line(params: TubeParams, config: EngineConfig = DEFAULT_CONFIG,
                layer_y: Optional[int] = None) -> Iterator[Voxel]:
    """Voxels the sampled curve passes through, each once, in curve order."""

    samples = spline_samples(params.control_points, config.curve_samples)
    seen = set()
    for v in np.floor(samples).astype(np.int64).tolist():
        voxel = (v[0], v[1], v[2])
        if voxel in seen or (layer_y is not None and voxel[1] != layer_y):
            continue
        seen.add(voxel)
        yield voxel


def _iter_box(params: BoxParams, layer_y: Optional[int]) -> Iterator[Voxel]:
    lo, hi = params.min_corner, params.max_corner
    for y in layer_range(lo[1], hi[1], layer_y):
        for x, z in itertools.product(range(lo[0], hi[0] + 1), range(lo[2], hi[2] + 1)):
            yield x, y, z


def _iter_cylinder(params: CylinderParams, layer_y: Optional[int]) -> Iterator[Voxel]:
    lo, hi = enumeration_bounds(params)
    X, Z = layer_grid(lo, hi)
    mask = planar_distance(params, X, Z) <= params.radius + 0.5
    for y in layer_range(lo[1], hi[1], layer_y):
        yield from masked_layer(X, Z, y, mask)


def _iter_ellipsoid(params: EllipsoidParams, layer_y: Optional[int]) -> Iterator[Voxel]:
    lo, hi = enumeration_bounds(params)
    X, Z = layer_grid(lo, hi)
    tolerance = ellipsoid_tolerance(params)
    for y in layer_range(lo[1], hi[1], layer_y):
        mask = ellipsoid_value(params, X, y, Z) <= tolerance
        yield from masked_layer(X, Z, y, mask)


def _iter_tube(params: TubeParams, layer_y: Optional[int], config: EngineConfig,
               budget: Budget) -> Iterator[Voxel]:
    if params.radius == 0:
        yield from center_line(params, config, layer_y)
        return

    samples, tangents = spline_frames(params.control_points, config.curve_samples)
    limit = tube_limit(params)
    r = params.radius
    offsets = np.arange(-r, r + 1)
    cube = np.stack(np.meshgrid(offsets, offsets, offsets, indexing='ij'), axis=-1).reshape(-1, 3)
    bases = np.floor(samples).astype(np.int64)

    # voxels are keyed by their flat index in the candidate bounding box
    lo = bases.min(axis=0) - r
    dims = bases.max(axis=0) + r - lo + 1
    step = max(1, _TUBE_CANDIDATES // len(cube))

    seen = np.empty(0, dtype=np.int64)
    for start in range(0, len(bases), step):
        candidates = (bases[start:start + step, None, :] + cube[None, :, :]).reshape(-1, 3)
        if layer_y is not None:
            candidates = candidates[candidates[:, 1] == layer_y]
        rel = candidates - lo
        keys = (rel[:, 0] * dims[1] + rel[:, 1]) * dims[2] + rel[:, 2]
        keys, first = np.unique(keys, return_index=True)
        fresh = ~np.isin(keys, seen, assume_unique=True)
        if not fresh.any():
            continue
        keys = keys[fresh]
        candidates = candidates[first[fresh]]
        seen = np.union1d(seen, keys)
        if not budget.charge(len(keys)):
            logger.info("tube enumeration stopped: %s", budget.reason)
            return
        inside = projected_distances(candidates + 0.5, samples, tangents) <= limit
        for x, y, z in candidates[inside].tolist():
            yield x, y, z


def iter_volume(params: ShapeParams, layer_y: Optional[int] = None, *,
                config: EngineConfig = DEFAULT_CONFIG,
                budget: Optional[Budget] = None) -> Iterator[Voxel]:
    """Yield every member voxel once, optionally only those at ``layer_y``.

    Tubes charge each newly examined candidate voxel to ``budget`` (by
    default a fresh one sized by ``config.volume_limit``) and stop early
    once it is exhausted.
    """

    mode = shape_mode_of(params)
    if isinstance(params, BoxParams):
        return _iter_box(params, layer_y)
    if isinstance(params, CylinderParams):
        return _iter_cylinder(params, layer_y)
    if isinstance(params, EllipsoidParams):
        return _iter_ellipsoid(params, layer_y)
    if budget is None:
        budget = Budget(config.volume_limit)
    logger.debug("%s enumeration, radius %d", mode.value, params.radius)
    return _iter_tube(params, layer_y, config, budget)


def volume_voxels(params: ShapeParams, layer_y: Optional[int] = None, *,
                  config: EngineConfig = DEFAULT_CONFIG) -> VoxelResult:
    """Collect :func:`iter_volume` into a result, flagged if a guard stopped it."""

    budget = Budget(config.volume_limit)
    voxels = frozenset(iter_volume(params, layer_y, config=config, budget=budget))
    return VoxelResult(voxels, budget.exhausted, budget.reason)


__all__ = [
    'planar_distance',
    'ellipsoid_value',
    'ellipsoid_tolerance',
    'tube_limit',
    'enumeration_bounds',
    'layer_range',
    'layer_grid',
    'masked_layer',
    'contains',
    'center_line',
    'iter_volume',
    'volume_voxels',
]
