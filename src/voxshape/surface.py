"""Boundary voxels of a resolved shape.

The surface of a shape is a subset of its filled volume: each test here
first requires volume membership and then narrows it.  Extraction is
guarded by :mod:`voxshape.cost` and always returns a
:class:`~voxshape.cost.VoxelResult`; a limited result is partial or empty,
never a silently wrong full set.
"""

from __future__ import annotations

import itertools
import logging
from typing import Iterable, Iterator, List, Optional, Sequence

import numpy as np

from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.cost import (
    Budget,
    VoxelResult,
    check_surface,
    output_limit_reason,
    refused,
)
from voxshape.geometry_utils import Voxel, voxel_center
from voxshape.shapes import (
    BoxParams,
    CylinderParams,
    EllipsoidParams,
    ShapeParams,
    TubeParams,
    shape_mode_of,
)
from voxshape.spline import min_distances, nearest_sample_distances, spline_samples
from voxshape.volume import (
    center_line,
    contains,
    ellipsoid_tolerance,
    ellipsoid_value,
    enumeration_bounds,
    iter_volume,
    layer_grid,
    layer_range,
    masked_layer,
    planar_distance,
)

logger = logging.getLogger(__name__)

SurfaceResult = VoxelResult

# tube voxels whose curve distance is checked per numpy batch
_TUBE_BATCH = 4096


def shell_threshold(params: EllipsoidParams) -> float:
    """Allowed deviation of :func:`ellipsoid_value` from 1.0 on the shell.

    Wide for small ellipsoids so a shell always exists, narrow for large
    ones so the shell stays thin.
    """
    return max(0.15, min(0.5, 0.5 / params.min_radius))


def is_surface(params: ShapeParams, voxel: Sequence[int],
               config: EngineConfig = DEFAULT_CONFIG) -> bool:
    """Return ``True`` if ``voxel`` lies on the boundary of the shape."""

    shape_mode_of(params)
    if not contains(params, voxel, config):
        return False
    x, y, z = voxel
    if isinstance(params, BoxParams):
        lo, hi = params.min_corner, params.max_corner
        return any(voxel[i] in (lo[i], hi[i]) for i in range(3))
    if isinstance(params, CylinderParams):
        if y in (params.min_y, params.max_y):
            return True
        return bool(planar_distance(params, x, z) >= params.radius - 0.5)
    if isinstance(params, EllipsoidParams):
        return bool(abs(ellipsoid_value(params, x, y, z) - 1.0) <= shell_threshold(params))
    if params.radius == 0:
        return True
    d = min_distances([voxel_center(voxel)], params.control_points, config.distance_samples)
    return bool(d[0] >= params.radius - 0.5)


def _box_shell(params: BoxParams, layer_y: Optional[int]) -> Iterator[Voxel]:
    lo, hi = params.min_corner, params.max_corner
    X, Z = layer_grid(lo, hi)
    sides = (X == lo[0]) | (X == hi[0]) | (Z == lo[2]) | (Z == hi[2])
    full = np.ones_like(sides)
    for y in layer_range(lo[1], hi[1], layer_y):
        yield from masked_layer(X, Z, y, full if y in (lo[1], hi[1]) else sides)


def _cylinder_shell(params: CylinderParams, layer_y: Optional[int]) -> Iterator[Voxel]:
    lo, hi = enumeration_bounds(params)
    X, Z = layer_grid(lo, hi)
    d = planar_distance(params, X, Z)
    disk = d <= params.radius + 0.5
    ring = disk & (d >= params.radius - 0.5)
    for y in layer_range(lo[1], hi[1], layer_y):
        cap = y in (params.min_y, params.max_y)
        yield from masked_layer(X, Z, y, disk if cap else ring)


def _ellipsoid_shell(params: EllipsoidParams, layer_y: Optional[int]) -> Iterator[Voxel]:
    lo, hi = enumeration_bounds(params)
    X, Z = layer_grid(lo, hi)
    tolerance = ellipsoid_tolerance(params)
    threshold = shell_threshold(params)
    for y in layer_range(lo[1], hi[1], layer_y):
        value = ellipsoid_value(params, X, y, Z)
        mask = (value <= tolerance) & (np.abs(value - 1.0) <= threshold)
        yield from masked_layer(X, Z, y, mask)


def _batches(voxels: Iterable[Voxel], size: int) -> Iterator[List[Voxel]]:
    it = iter(voxels)
    while True:
        batch = list(itertools.islice(it, size))
        if not batch:
            return
        yield batch


def _tube_shell(params: TubeParams, layer_y: Optional[int], config: EngineConfig,
                budget: Budget) -> Iterator[Voxel]:
    if params.radius == 0:
        yield from center_line(params, config, layer_y)
        return
    inner = params.radius - 0.5
    samples = spline_samples(params.control_points, config.distance_samples)
    tube = iter_volume(params, layer_y, config=config, budget=budget)
    for batch in _batches(tube, _TUBE_BATCH):
        centers = np.asarray(batch, dtype=float) + 0.5
        dist = nearest_sample_distances(centers, samples)[1]
        for voxel, d in zip(batch, dist.tolist()):
            if d >= inner:
                yield voxel


def iter_surface(params: ShapeParams, layer_y: Optional[int] = None, *,
                 config: EngineConfig = DEFAULT_CONFIG,
                 budget: Optional[Budget] = None) -> Iterator[Voxel]:
    """Yield each surface voxel once, without the up-front size check."""

    shape_mode_of(params)
    if isinstance(params, BoxParams):
        return _box_shell(params, layer_y)
    if isinstance(params, CylinderParams):
        return _cylinder_shell(params, layer_y)
    if isinstance(params, EllipsoidParams):
        return _ellipsoid_shell(params, layer_y)
    if budget is None:
        budget = Budget(config.volume_limit)
    return _tube_shell(params, layer_y, config, budget)


def extract_surface(params: Optional[ShapeParams], layer_y: Optional[int] = None, *,
                    config: EngineConfig = DEFAULT_CONFIG) -> SurfaceResult:
    """Return the boundary voxels of ``params``.

    ``None`` (an unresolvable selection) gives an empty, unlimited result.
    A shape whose estimated surface exceeds ``config.surface_limit`` is
    refused without enumerating anything.  Otherwise enumeration stops
    when a voxel arrives after the set already holds
    ``config.surface_limit`` voxels, or when a tube's candidate count
    exceeds ``config.volume_limit``; either way the partial set comes back
    flagged as limited.
    """

    if params is None:
        return SurfaceResult()
    mode = shape_mode_of(params)
    reason = check_surface(params, config)
    if reason:
        return refused(reason)

    cap = config.surface_limit
    budget = Budget(config.volume_limit)
    voxels = set()
    limited = False
    for voxel in iter_surface(params, layer_y, config=config, budget=budget):
        if len(voxels) >= cap:
            limited = True
            reason = output_limit_reason(cap)
            logger.info("%s surface truncated: %s", mode.value, reason)
            break
        voxels.add(voxel)
    if not limited and budget.exhausted:
        limited = True
        reason = budget.reason

    logger.debug("%s surface: %d voxels (layer %s)", mode.value, len(voxels), layer_y)
    return SurfaceResult(frozenset(voxels), limited, reason or "")


__all__ = [
    'SurfaceResult',
    'shell_threshold',
    'is_surface',
    'iter_surface',
    'extract_surface',
]
