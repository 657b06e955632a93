"""Selection state consumed by the shape engine.

:class:`SelectionSnapshot` is the immutable value every engine call
reads.  :class:`Selection` is the small mutable owner of the anchors and
modes; all of its geometry-affecting setters invalidate the caches that
are attached to it, so no cache can outlive the state it was built from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from voxshape.geometry_utils import Voxel
from voxshape.shapes import EllipsoidMode, ShapeMode, max_radius_xz


def _as_voxel(value: Sequence[int]) -> Voxel:
    if len(value) != 3:
        raise ValueError(f'voxel coordinate needs three components, got {value!r}')
    return int(value[0]), int(value[1]), int(value[2])


@dataclass(frozen=True)
class SelectionSnapshot:
    """Read-only view of a selection at one instant."""

    anchors: Tuple[Voxel, ...] = ()
    shape_mode: ShapeMode = ShapeMode.BOX
    ellipsoid_mode: EllipsoidMode = EllipsoidMode.FIT_TO_BOX
    tube_radius: int = 0
    layer_y: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'anchors', tuple(_as_voxel(a) for a in self.anchors))
        object.__setattr__(self, 'shape_mode', ShapeMode(self.shape_mode))
        object.__setattr__(self, 'ellipsoid_mode', EllipsoidMode(self.ellipsoid_mode))
        if self.tube_radius < 0:
            raise ValueError('tube_radius must be >= 0')

    @property
    def has_selection(self) -> bool:
        return bool(self.anchors)

    @property
    def center(self) -> Optional[Voxel]:
        """The first anchor, which centers cylinders and radius ellipsoids."""
        return self.anchors[0] if self.anchors else None

    @property
    def min_corner(self) -> Optional[Voxel]:
        if not self.anchors:
            return None
        xs, ys, zs = zip(*self.anchors)
        return min(xs), min(ys), min(zs)

    @property
    def max_corner(self) -> Optional[Voxel]:
        if not self.anchors:
            return None
        xs, ys, zs = zip(*self.anchors)
        return max(xs), max(ys), max(zs)

    @property
    def min_y(self) -> int:
        return min(a[1] for a in self.anchors) if self.anchors else 0

    @property
    def max_y(self) -> int:
        return max(a[1] for a in self.anchors) if self.anchors else 0

    @property
    def layer_count(self) -> int:
        return self.max_y - self.min_y + 1 if self.anchors else 0

    @property
    def max_radius_xz(self) -> float:
        """Largest planar distance from the first anchor to any other anchor."""
        return max_radius_xz(self.anchors)


class Invalidatable(Protocol):
    def invalidate(self) -> None: ...


class Selection:
    """Mutable anchor list plus the modes that shape it.

    Duplicates are rejected.  Undo history is not kept here.
    """

    def __init__(self, anchors: Iterable[Sequence[int]] = (),
                 shape_mode: ShapeMode = ShapeMode.BOX,
                 ellipsoid_mode: EllipsoidMode = EllipsoidMode.FIT_TO_BOX,
                 tube_radius: int = 0) -> None:
        self._anchors: List[Voxel] = []
        self._shape_mode = ShapeMode(shape_mode)
        self._ellipsoid_mode = EllipsoidMode(ellipsoid_mode)
        self._tube_radius = max(0, int(tube_radius))
        self._caches: List[Invalidatable] = []
        self.layer_mode = False
        self.current_layer = 0
        for a in anchors:
            v = _as_voxel(a)
            if v not in self._anchors:
                self._anchors.append(v)

    def attach(self, cache: Invalidatable) -> None:
        if not any(c is cache for c in self._caches):
            self._caches.append(cache)

    def detach(self, cache: Invalidatable) -> None:
        self._caches = [c for c in self._caches if c is not cache]

    def _changed(self) -> None:
        for cache in self._caches:
            cache.invalidate()

    # anchors

    @property
    def anchors(self) -> Tuple[Voxel, ...]:
        return tuple(self._anchors)

    def add(self, voxel: Sequence[int]) -> bool:
        """Append an anchor; return ``False`` if it is already selected."""
        v = _as_voxel(voxel)
        if v in self._anchors:
            return False
        self._anchors.append(v)
        self._changed()
        return True

    def extend(self, voxels: Iterable[Sequence[int]]) -> int:
        return sum(1 for v in voxels if self.add(v))

    def remove(self, voxel: Sequence[int]) -> bool:
        v = _as_voxel(voxel)
        if v not in self._anchors:
            return False
        self._anchors.remove(v)
        self._changed()
        return True

    def clear(self) -> None:
        if self._anchors:
            self._anchors.clear()
            self._changed()

    # modes

    @property
    def shape_mode(self) -> ShapeMode:
        return self._shape_mode

    @shape_mode.setter
    def shape_mode(self, mode: ShapeMode) -> None:
        mode = ShapeMode(mode)
        if mode != self._shape_mode:
            self._shape_mode = mode
            self._changed()

    @property
    def ellipsoid_mode(self) -> EllipsoidMode:
        return self._ellipsoid_mode

    @ellipsoid_mode.setter
    def ellipsoid_mode(self, mode: EllipsoidMode) -> None:
        mode = EllipsoidMode(mode)
        if mode != self._ellipsoid_mode:
            self._ellipsoid_mode = mode
            self._changed()

    @property
    def tube_radius(self) -> int:
        return self._tube_radius

    @tube_radius.setter
    def tube_radius(self, radius: int) -> None:
        radius = max(0, int(radius))
        if radius != self._tube_radius:
            self._tube_radius = radius
            self._changed()

    # layers

    @property
    def min_y(self) -> int:
        return min(a[1] for a in self._anchors) if self._anchors else 0

    @property
    def max_y(self) -> int:
        return max(a[1] for a in self._anchors) if self._anchors else 0

    @property
    def layer_count(self) -> int:
        return self.max_y - self.min_y + 1 if self._anchors else 0

    def enable_layer_mode(self, enabled: bool = True) -> None:
        """Switch layer mode; turning it on starts at the middle layer."""
        self.layer_mode = enabled
        if enabled:
            self.current_layer = (self.max_y - self.min_y) // 2

    def toggle_layer_mode(self) -> None:
        self.enable_layer_mode(not self.layer_mode)

    def layer_up(self) -> None:
        if self._anchors and self.current_layer < self.max_y - self.min_y:
            self.current_layer += 1

    def layer_down(self) -> None:
        if self.current_layer > 0:
            self.current_layer -= 1

    @property
    def current_layer_y(self) -> int:
        return self.min_y + self.current_layer

    def snapshot(self) -> SelectionSnapshot:
        layer_y = self.current_layer_y if self.layer_mode and self._anchors else None
        return SelectionSnapshot(
            anchors=tuple(self._anchors),
            shape_mode=self._shape_mode,
            ellipsoid_mode=self._ellipsoid_mode,
            tube_radius=self._tube_radius,
            layer_y=layer_y,
        )


__all__ = [
    'SelectionSnapshot',
    'Selection',
]
