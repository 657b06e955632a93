"""Dimension readouts for resolved shapes."""

from __future__ import annotations

from typing import Dict, List, Sequence

from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.cost import tube_length
from voxshape.shapes import (
    BoxParams,
    CylinderParams,
    EllipsoidParams,
    ShapeParams,
    shape_mode_of,
)

# subdivision counts offered when cycling, 0 meaning none
SUBDIVISION_STEPS = (0, 2, 3, 4, 5, 8, 10, 16)


def measure(params: ShapeParams, config: EngineConfig = DEFAULT_CONFIG) -> Dict[str, float]:
    """Return the named dimensions of a shape.

    Boxes report ``width``, ``height`` and ``depth`` as inclusive voxel
    spans; cylinders ``h``, ``r`` and ``d``; ellipsoids ``rx``, ``ry`` and
    ``rz``; tubes the sampled curve length ``len`` and ``r``.
    """

    shape_mode_of(params)
    if isinstance(params, BoxParams):
        w, h, d = params.spans
        return {'width': w, 'height': h, 'depth': d}
    if isinstance(params, CylinderParams):
        return {'h': params.height, 'r': params.radius, 'd': params.radius * 2}
    if isinstance(params, EllipsoidParams):
        return {'rx': params.rx, 'ry': params.ry, 'rz': params.rz}
    return {'len': tube_length(params, config), 'r': params.radius}


def format_labels(params: ShapeParams, config: EngineConfig = DEFAULT_CONFIG) -> List[str]:
    """Return the label strings shown next to a shape."""

    m = measure(params, config)
    if isinstance(params, BoxParams):
        return [f"{m['width']} x {m['height']} x {m['depth']}"]
    if isinstance(params, CylinderParams):
        return [f"h={m['h']:d}", f"r={m['r']:.1f}", f"d={m['d']:.1f}"]
    if isinstance(params, EllipsoidParams):
        labels = [f"rx={m['rx']:.1f}", f"ry={m['ry']:.1f}"]
        # rz only differs from rx for fit-to-box ellipsoids
        if abs(m['rx'] - m['rz']) > 0.1:
            labels.append(f"rz={m['rz']:.1f}")
        return labels
    return [f"len={m['len']:.1f}"]


def subdivision_offsets(start: float, end: float, count: int) -> List[float]:
    """Positions of the ``count - 1`` interior division lines on ``[start, end]``."""

    span = end - start
    if count <= 1 or span < 0.01:
        return []
    size = span / count
    return [start + i * size for i in range(1, count)]


def _step(current: int, delta: int, steps: Sequence[int]) -> int:
    try:
        i = steps.index(current)
    except ValueError:
        i = 0
    return steps[(i + delta) % len(steps)]


def next_subdivision(current: int, steps: Sequence[int] = SUBDIVISION_STEPS) -> int:
    """Cycle forward through ``steps``; unknown values restart from the first."""
    return _step(current, 1, steps)


def previous_subdivision(current: int, steps: Sequence[int] = SUBDIVISION_STEPS) -> int:
    return _step(current, -1, steps)


__all__ = [
    'SUBDIVISION_STEPS',
    'measure',
    'format_labels',
    'subdivision_offsets',
    'next_subdivision',
    'previous_subdivision',
]
