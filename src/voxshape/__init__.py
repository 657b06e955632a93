# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

from voxshape.cache import SurfaceCache
from voxshape.config import DEFAULT_CONFIG, EngineConfig
from voxshape.cost import VoxelResult, estimate_surface, estimate_volume
from voxshape.counting import CountResult, MappingGrid, count_filled_volume, count_selection
from voxshape.selection import Selection, SelectionSnapshot
from voxshape.shapes import (
    BoxParams,
    CylinderParams,
    EllipsoidMode,
    EllipsoidParams,
    ShapeMode,
    TubeParams,
    resolve_shape,
)
from voxshape.surface import extract_surface
from voxshape.volume import contains, iter_volume

try:
    __version__ = version("voxshape")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

__all__ = [
    'SurfaceCache',
    'DEFAULT_CONFIG',
    'EngineConfig',
    'VoxelResult',
    'estimate_surface',
    'estimate_volume',
    'CountResult',
    'MappingGrid',
    'count_filled_volume',
    'count_selection',
    'Selection',
    'SelectionSnapshot',
    'BoxParams',
    'CylinderParams',
    'EllipsoidMode',
    'EllipsoidParams',
    'ShapeMode',
    'TubeParams',
    'resolve_shape',
    'extract_surface',
    'contains',
    'iter_volume',
]
