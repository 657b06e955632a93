"""Memoised hollow-surface results for one consumer context.

A :class:`SurfaceCache` holds at most one entry.  The entry is reused
while the cache key of the incoming snapshot matches the stored one; the
key covers the selection bounds and anchor count rather than every
anchor, so edits that keep those unchanged must go through
:meth:`SurfaceCache.invalidate`.  :class:`~voxshape.selection.Selection`
does that for every cache attached to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.cost import EMPTY_RESULT, VoxelResult
from voxshape.selection import SelectionSnapshot
from voxshape.shapes import ShapeMode, resolve_shape
from voxshape.surface import extract_surface

logger = logging.getLogger(__name__)


class CacheKey(NamedTuple):
    mode: ShapeMode
    layer_y: Optional[int]
    selection_hash: int


def selection_hash(snapshot: SelectionSnapshot) -> int:
    """Hash of the selection inputs that shape a surface."""
    return hash((snapshot.min_corner,
                 snapshot.max_corner,
                 len(snapshot.anchors),
                 snapshot.ellipsoid_mode,
                 snapshot.tube_radius))


def cache_key(snapshot: SelectionSnapshot) -> CacheKey:
    return CacheKey(snapshot.shape_mode, snapshot.layer_y, selection_hash(snapshot))


@dataclass(frozen=True)
class CachedSurface:
    key: CacheKey
    result: VoxelResult


class SurfaceCache:
    """Last hollow surface computed for one consumer, keyed by its inputs.

    Separate consumers (live selection outline, placement preview) should
    each own a cache since they are invalidated by different events.
    """

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.entry: Optional[CachedSurface] = None

    @property
    def cached_key(self) -> Optional[CacheKey]:
        return self.entry.key if self.entry is not None else None

    def invalidate(self) -> None:
        if self.entry is not None:
            logger.debug("surface cache invalidated")
        self.entry = None

    def get_hollow_surface(self, snapshot: SelectionSnapshot) -> VoxelResult:
        """Return the surface of ``snapshot``'s shape, computing it on a miss.

        A hit returns the very object stored on the miss that built it.
        """

        key = cache_key(snapshot)
        if self.entry is not None and self.entry.key == key:
            logger.debug("surface cache hit: %s", key.mode.value)
            return self.entry.result

        params = resolve_shape(snapshot)
        if params is None:
            result = EMPTY_RESULT
        else:
            result = extract_surface(params, snapshot.layer_y, config=self.config)
        logger.debug("surface cache miss: %s, %d voxels", key.mode.value, len(result))
        self.entry = CachedSurface(key, result)
        return result


__all__ = [
    'CacheKey',
    'CachedSurface',
    'selection_hash',
    'cache_key',
    'SurfaceCache',
]
