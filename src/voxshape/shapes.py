"""Shape kinds and the parameter records resolved from a selection.

The set of shapes is closed: :class:`ShapeMode` names them and each has
one frozen parameter record.  :func:`resolve_shape` turns a selection's
anchors into the record for its mode, or ``None`` when there are too few
anchors to define a shape.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from voxshape.geometry_utils import Vec3, Voxel, voxel_center

MIN_RADIUS = 0.5


class ShapeMode(Enum):
    BOX = "box"
    CYLINDER = "cylinder"
    ELLIPSOID = "ellipsoid"
    TUBE = "tube"


class EllipsoidMode(Enum):
    """How an ellipsoid is derived from anchors."""
    FIT_TO_BOX = "fit_to_box"        # inscribed in the anchors' bounding box
    CENTER_RADIUS = "center_radius"  # first anchor is center, farthest sets XZ radius


def _floor_radius(r: float) -> float:
    return r if r >= MIN_RADIUS else MIN_RADIUS


@dataclass(frozen=True)
class BoxParams:
    """Axis-aligned box between two inclusive voxel corners."""

    min_corner: Voxel
    max_corner: Voxel

    mode = ShapeMode.BOX

    @property
    def spans(self) -> Tuple[int, int, int]:
        """Voxel counts along X, Y and Z."""
        return tuple(hi - lo + 1 for lo, hi in zip(self.min_corner, self.max_corner))


@dataclass(frozen=True)
class CylinderParams:
    """Vertical cylinder; the center is a voxel-center XZ position."""

    center_x: float
    center_z: float
    radius: float
    min_y: int
    max_y: int

    mode = ShapeMode.CYLINDER

    def __post_init__(self) -> None:
        object.__setattr__(self, 'radius', _floor_radius(self.radius))

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1


@dataclass(frozen=True)
class EllipsoidParams:
    center: Vec3
    rx: float
    ry: float
    rz: float

    mode = ShapeMode.ELLIPSOID

    def __post_init__(self) -> None:
        object.__setattr__(self, 'rx', _floor_radius(self.rx))
        object.__setattr__(self, 'ry', _floor_radius(self.ry))
        object.__setattr__(self, 'rz', _floor_radius(self.rz))

    @property
    def min_radius(self) -> float:
        return min(self.rx, self.ry, self.rz)


@dataclass(frozen=True)
class TubeParams:
    """Curve through voxel-center control points, thickened by ``radius``."""

    control_points: Tuple[Vec3, ...]
    radius: int

    mode = ShapeMode.TUBE

    def __post_init__(self) -> None:
        if len(self.control_points) < 2:
            raise ValueError('tube needs at least 2 control points')
        if self.radius < 0:
            raise ValueError('tube radius must be >= 0')


ShapeParams = Union[BoxParams, CylinderParams, EllipsoidParams, TubeParams]


def shape_mode_of(params: ShapeParams) -> ShapeMode:
    """Return the mode of a parameter record, rejecting anything else."""

    if isinstance(params, (BoxParams, CylinderParams, EllipsoidParams, TubeParams)):
        return params.mode
    raise TypeError(f'not a shape parameter record: {type(params).__name__}')


def _bounds(anchors: Sequence[Voxel]) -> Tuple[Voxel, Voxel]:
    xs, ys, zs = zip(*anchors)
    return (min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs))


def max_radius_xz(anchors: Sequence[Voxel]) -> float:
    if len(anchors) < 2:
        return 0.0
    cx, _, cz = anchors[0]
    return max(math.sqrt((x - cx) ** 2 + (z - cz) ** 2) for x, _, z in anchors[1:])


def resolve_box(anchors: Sequence[Voxel]) -> Optional[BoxParams]:
    if not anchors:
        return None
    lo, hi = _bounds(anchors)
    return BoxParams(lo, hi)


def resolve_cylinder(anchors: Sequence[Voxel]) -> Optional[CylinderParams]:
    if not anchors:
        return None
    lo, hi = _bounds(anchors)
    cx, _, cz = anchors[0]
    return CylinderParams(center_x=cx + 0.5, center_z=cz + 0.5,
                          radius=max_radius_xz(anchors),
                          min_y=lo[1], max_y=hi[1])


def resolve_ellipsoid(anchors: Sequence[Voxel],
                      ellipsoid_mode: EllipsoidMode = EllipsoidMode.FIT_TO_BOX
                      ) -> Optional[EllipsoidParams]:
    if not anchors:
        return None
    lo, hi = _bounds(anchors)
    cy = (lo[1] + hi[1] + 1) / 2.0
    ry = (hi[1] - lo[1] + 1) / 2.0
    if EllipsoidMode(ellipsoid_mode) is EllipsoidMode.FIT_TO_BOX:
        center = ((lo[0] + hi[0] + 1) / 2.0, cy, (lo[2] + hi[2] + 1) / 2.0)
        return EllipsoidParams(center,
                               (hi[0] - lo[0] + 1) / 2.0,
                               ry,
                               (hi[2] - lo[2] + 1) / 2.0)
    cx, _, cz = anchors[0]
    rxz = max_radius_xz(anchors)
    return EllipsoidParams((cx + 0.5, cy, cz + 0.5), rxz, ry, rxz)


def resolve_tube(anchors: Sequence[Voxel], radius: int) -> Optional[TubeParams]:
    if len(anchors) < 2:
        return None
    return TubeParams(tuple(voxel_center(a) for a in anchors), int(radius))


def resolve_shape(selection, mode: Optional[ShapeMode] = None) -> Optional[ShapeParams]:
    """Resolve ``selection`` into the parameter record for ``mode``.

    ``selection`` is anything with ``anchors``, ``shape_mode``,
    ``ellipsoid_mode`` and ``tube_radius`` attributes, normally a
    :class:`~voxshape.selection.SelectionSnapshot`.  ``mode`` defaults to
    the selection's own shape mode.  Returns ``None`` when the anchors
    cannot define the shape.
    """

    mode = ShapeMode(mode if mode is not None else selection.shape_mode)
    anchors = list(selection.anchors)
    if mode is ShapeMode.BOX:
        return resolve_box(anchors)
    if mode is ShapeMode.CYLINDER:
        return resolve_cylinder(anchors)
    if mode is ShapeMode.ELLIPSOID:
        return resolve_ellipsoid(anchors, selection.ellipsoid_mode)
    return resolve_tube(anchors, selection.tube_radius)


__all__ = [
    'MIN_RADIUS',
    'ShapeMode',
    'EllipsoidMode',
    'BoxParams',
    'CylinderParams',
    'EllipsoidParams',
    'TubeParams',
    'ShapeParams',
    'shape_mode_of',
    'max_radius_xz',
    'resolve_box',
    'resolve_cylinder',
    'resolve_ellipsoid',
    'resolve_tube',
    'resolve_shape',
]
