"""Tally the contents of the voxels inside a shape.

Geometry never reads world content; this module is the one place that
does, through the small :class:`VoxelGrid` lookup the host provides.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Hashable, Mapping, Optional, Protocol

from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.cost import Budget, check_volume
from voxshape.geometry_utils import Voxel
from voxshape.selection import SelectionSnapshot
from voxshape.shapes import ShapeParams, resolve_shape, shape_mode_of
from voxshape.volume import iter_volume

logger = logging.getLogger(__name__)


class VoxelGrid(Protocol):
    def content_at(self, voxel: Voxel) -> Optional[Hashable]:
        """Content stored at ``voxel``, or ``None`` where it is empty."""
        ...


class MappingGrid:
    """:class:`VoxelGrid` over a plain ``{voxel: content}`` mapping."""

    def __init__(self, contents: Mapping[Voxel, Hashable]) -> None:
        self.contents = contents

    def content_at(self, voxel: Voxel) -> Optional[Hashable]:
        return self.contents.get(voxel)


@dataclass(frozen=True)
class CountResult:
    """Per-content voxel counts, most common first.

    Truthiness follows ``limited``: a refused or truncated count is false.
    """

    counts: Dict[Hashable, int] = field(default_factory=dict)
    total: int = 0
    limited: bool = False
    reason: str = ""

    def __bool__(self) -> bool:
        return not self.limited


def count_filled_volume(params: Optional[ShapeParams], grid: VoxelGrid, *,
                        layer_y: Optional[int] = None,
                        config: EngineConfig = DEFAULT_CONFIG) -> CountResult:
    """Count non-empty voxels inside ``params`` by content.

    Shapes whose estimated volume exceeds ``config.volume_limit`` are
    refused with zero counts.  A tube that runs over the candidate budget
    mid-walk returns what it counted so far, flagged as limited.
    """

    if params is None:
        return CountResult()
    mode = shape_mode_of(params)
    reason = check_volume(params, config)
    if reason:
        return CountResult(limited=True, reason=reason)

    budget = Budget(config.volume_limit)
    tally = Counter()
    for voxel in iter_volume(params, layer_y, config=config, budget=budget):
        content = grid.content_at(voxel)
        if content is not None:
            tally[content] += 1

    counts = dict(tally.most_common())
    total = sum(counts.values())
    logger.debug("%s count: %d voxels in %d kinds", mode.value, total, len(counts))
    return CountResult(counts, total, budget.exhausted, budget.reason)


def count_selection(snapshot: SelectionSnapshot, grid: VoxelGrid,
                    config: EngineConfig = DEFAULT_CONFIG) -> CountResult:
    """Resolve ``snapshot`` and count its filled volume, honouring its layer."""
    return count_filled_volume(resolve_shape(snapshot), grid,
                               layer_y=snapshot.layer_y, config=config)


__all__ = [
    'VoxelGrid',
    'MappingGrid',
    'CountResult',
    'count_filled_volume',
    'count_selection',
]
