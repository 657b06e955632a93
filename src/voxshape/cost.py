"""Size estimates and enumeration guards.

Enumerating voxels is the only unbounded cost in the engine, so every
extraction is checked twice: once up front against a closed-form
estimate of its output, and again while it runs.  The estimates are
continuous approximations and can miss by tens of percent on small or
eccentric shapes; the running checks catch what they underestimate.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional

from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.geometry_utils import Voxel
from voxshape.shapes import (
    BoxParams,
    CylinderParams,
    EllipsoidParams,
    ShapeParams,
    TubeParams,
    shape_mode_of,
)
from voxshape.spline import arc_length

logger = logging.getLogger(__name__)

# Knud Thomsen's exponent for the ellipsoid surface area approximation
THOMSEN_P = 1.6075


def ellipsoid_area(a: float, b: float, c: float, p: float = THOMSEN_P) -> float:
    ap, bp, cp = a ** p, b ** p, c ** p
    return 4 * math.pi * ((ap * bp + ap * cp + bp * cp) / 3.0) ** (1.0 / p)


def tube_length(params: TubeParams, config: EngineConfig = DEFAULT_CONFIG) -> float:
    return arc_length(params.control_points, config.curve_samples)


def estimate_surface(params: ShapeParams, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Approximate number of surface voxels of a shape."""

    shape_mode_of(params)
    if isinstance(params, BoxParams):
        x, y, z = params.spans
        return float(2 * (x * y + x * z + y * z))
    if isinstance(params, CylinderParams):
        r, h = params.radius, params.height
        return 2 * math.pi * r * r + 2 * math.pi * r * h
    if isinstance(params, EllipsoidParams):
        return ellipsoid_area(params.rx, params.ry, params.rz)
    # zero for a bare center line, which only the output cap bounds
    length = tube_length(params, config)
    r = params.radius
    return 2 * math.pi * r * length + 2 * math.pi * r * r


def estimate_volume(params: ShapeParams, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Approximate number of voxels inside a shape."""

    shape_mode_of(params)
    if isinstance(params, BoxParams):
        x, y, z = params.spans
        return float(x * y * z)
    if isinstance(params, CylinderParams):
        r = params.radius + 0.5
        return math.pi * r * r * params.height
    if isinstance(params, EllipsoidParams):
        return 4.0 / 3.0 * math.pi * params.rx * params.ry * params.rz
    length = tube_length(params, config)
    r = params.radius
    if r == 0:
        return length
    return math.pi * r * r * length


def too_large(estimate: float, limit: int, what: str = "surface") -> str:
    return f"Too large: estimated {int(round(estimate)):,} {what} voxels, max {limit:,}"


def check_surface(params: ShapeParams, config: EngineConfig = DEFAULT_CONFIG) -> Optional[str]:
    """Return a refusal reason if extracting the surface would exceed the limit."""

    estimate = estimate_surface(params, config)
    if estimate > config.surface_limit:
        reason = too_large(estimate, config.surface_limit)
        logger.info("%s surface refused: %s", shape_mode_of(params).value, reason)
        return reason
    return None


def check_volume(params: ShapeParams, config: EngineConfig = DEFAULT_CONFIG) -> Optional[str]:
    """Return a refusal reason if enumerating the filled volume would exceed the limit."""

    estimate = estimate_volume(params, config)
    if estimate > config.volume_limit:
        reason = too_large(estimate, config.volume_limit, "volume")
        logger.info("%s volume refused: %s", shape_mode_of(params).value, reason)
        return reason
    return None


class Budget:
    """Running ceiling on work done during one enumeration.

    ``charge`` records ``n`` more units of work and returns ``False`` once
    the ceiling is crossed; after that ``exhausted`` is set and ``reason``
    explains why.
    """

    def __init__(self, limit: int, what: str = "voxels examined"):
        if limit < 1:
            raise ValueError('budget limit must be >= 1')
        self.limit = limit
        self.what = what
        self.count = 0
        self.exhausted = False

    def charge(self, n: int = 1) -> bool:
        self.count += n
        if self.count > self.limit:
            self.exhausted = True
        return not self.exhausted

    @property
    def reason(self) -> str:
        if not self.exhausted:
            return ""
        return f"Volume limit reached: {self.count:,} {self.what}, max {self.limit:,}"


def output_limit_reason(limit: int) -> str:
    return f"Surface limit reached: stopped at {limit:,} voxels"


@dataclass(frozen=True)
class VoxelResult:
    """A voxel set plus whether a guard cut it short.

    When ``limited`` is set the set is partial or empty and ``reason``
    says which ceiling was hit.
    """

    voxels: FrozenSet[Voxel] = frozenset()
    limited: bool = False
    reason: str = ""

    @property
    def ok(self) -> bool:
        return not self.limited

    def __len__(self) -> int:
        return len(self.voxels)

    def __iter__(self) -> Iterator[Voxel]:
        return iter(self.voxels)

    def __contains__(self, voxel) -> bool:
        return tuple(voxel) in self.voxels

    def sorted(self) -> List[Voxel]:
        """Voxels in (y, x, z) order, layer by layer."""
        return sorted(self.voxels, key=lambda v: (v[1], v[0], v[2]))


EMPTY_RESULT = VoxelResult()


def refused(reason: str) -> VoxelResult:
    return VoxelResult(frozenset(), True, reason)


__all__ = [
    'THOMSEN_P',
    'Budget',
    'VoxelResult',
    'EMPTY_RESULT',
    'refused',
    'ellipsoid_area',
    'tube_length',
    'estimate_surface',
    'estimate_volume',
    'too_large',
    'check_surface',
    'check_volume',
    'output_limit_reason',
]
