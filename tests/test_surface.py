import itertools

import pytest

from voxshape.config import EngineConfig
from voxshape.selection import SelectionSnapshot
from voxshape.shapes import (
    BoxParams,
    CylinderParams,
    EllipsoidParams,
    ShapeMode,
    TubeParams,
    resolve_shape,
)
from voxshape.surface import SurfaceResult, extract_surface, is_surface, shell_threshold
from voxshape.volume import center_line, enumeration_bounds, iter_volume

BOX = BoxParams((0, 0, 0), (2, 2, 2))
CYLINDER = CylinderParams(0.5, 0.5, 3.0, 0, 4)
TUBE = TubeParams(((0.5, 0.5, 0.5), (6.5, 3.5, 0.5), (10.5, 3.5, 4.5)), 2)
LINE = TubeParams(((0.5, 0.5, 0.5), (8.5, 5.5, 2.5)), 0)


def _ellipsoid():
    snap = SelectionSnapshot([(-5, -5, -5), (4, 4, 4)], ShapeMode.ELLIPSOID)
    return resolve_shape(snap)


def _layers(voxels):
    layers = {}
    for x, y, z in voxels:
        layers.setdefault(y, set()).add((x, z))
    return layers


def test_box_surface_skips_interior():
    result = extract_surface(BOX)
    assert not result.limited and result.ok
    assert len(result) == 26
    assert (1, 1, 1) not in result
    assert (0, 1, 1) in result


def test_box_middle_layer_is_a_ring():
    result = extract_surface(BOX, 1)
    assert result.voxels == {(x, 1, z) for x in range(3) for z in range(3)} - {(1, 1, 1)}


def test_cylinder_caps_are_filled_and_walls_are_rings():
    layers = _layers(extract_surface(CYLINDER))
    assert len(layers[0]) == len(layers[4]) == 37
    for y in (1, 2, 3):
        assert len(layers[y]) == 16
        assert len(layers[y]) < len(layers[0])
    assert (0, 0) not in layers[2]


def test_ellipsoid_surface_is_symmetric_shell():
    params = _ellipsoid()
    assert params == EllipsoidParams((0.0, 0.0, 0.0), 5.0, 5.0, 5.0)
    voxels = extract_surface(params).voxels
    assert voxels
    for x, y, z in voxels:
        assert (-1 - x, y, z) in voxels
        assert (x, -1 - y, z) in voxels
        assert (x, y, -1 - z) in voxels
        for perm in itertools.permutations((x, y, z)):
            assert perm in voxels
    assert (0, 0, 0) not in voxels
    assert (4, 1, 0) in voxels


def test_shell_threshold_is_clamped():
    assert shell_threshold(EllipsoidParams((0, 0, 0), 0.5, 0.5, 0.5)) == 0.5
    assert shell_threshold(EllipsoidParams((0, 0, 0), 2.0, 9.0, 9.0)) == 0.25
    assert shell_threshold(EllipsoidParams((0, 0, 0), 50.0, 50.0, 50.0)) == 0.15


def test_surface_is_subset_of_volume():
    shapes = [BOX, CYLINDER, _ellipsoid(), TUBE, LINE,
              EllipsoidParams((0.0, 0.0, 0.0), 9.5, 2.5, 4.0),
              CylinderParams(2.5, -1.5, 0.5, 3, 3)]
    for params in shapes:
        volume = set(iter_volume(params))
        surface = extract_surface(params)
        assert surface.voxels, params
        assert surface.voxels <= volume, params
        lo, hi = enumeration_bounds(params)
        for y in range(lo[1], hi[1] + 1):
            layer = extract_surface(params, y)
            assert layer.voxels == {v for v in surface.voxels if v[1] == y}


def test_zero_radius_tube_surface_is_center_line():
    result = extract_surface(LINE)
    assert result.voxels == set(center_line(LINE))
    assert result.voxels == set(iter_volume(LINE))


def test_tube_surface_is_hollow():
    result = extract_surface(TUBE)
    assert not result.limited
    assert len(result) < len(set(iter_volume(TUBE)))
    for voxel in center_line(TUBE):
        assert voxel not in result


def test_is_surface_matches_extraction():
    for params in (BOX, CYLINDER, _ellipsoid(), LINE):
        voxels = extract_surface(params).voxels
        lo, hi = enumeration_bounds(params)
        for v in itertools.product(*(range(a, b + 1) for a, b in zip(lo, hi))):
            assert is_surface(params, v) == (v in voxels), v


@pytest.mark.slow
def test_is_surface_matches_tube_extraction():
    voxels = extract_surface(TUBE).voxels
    for v in set(iter_volume(TUBE)):
        assert is_surface(TUBE, v) == (v in voxels), v


def test_unresolved_selection_is_empty():
    result = extract_surface(None)
    assert len(result) == 0
    assert not result.limited


def test_huge_box_is_refused():
    result = extract_surface(BoxParams((0, 0, 0), (999, 999, 999)))
    assert result.limited
    assert not result.ok
    assert len(result) == 0
    assert result.reason == "Too large: estimated 6,000,000 surface voxels, max 50,000"


def test_output_cap_truncates():
    config = EngineConfig(surface_limit=10)
    result = extract_surface(LINE, config=config)
    assert result.limited
    assert len(result) == 10
    assert result.reason == "Surface limit reached: stopped at 10 voxels"
    assert result.voxels <= set(center_line(LINE))


def test_running_budget_limits_tube_surface():
    result = extract_surface(TUBE, config=EngineConfig(volume_limit=50))
    assert result.limited
    assert result.reason.startswith("Volume limit reached")
    assert len(result) == 0


def test_sorted_orders_by_layer():
    ordered = extract_surface(BOX).sorted()
    assert ordered[0] == (0, 0, 0)
    assert [v[1] for v in ordered] == sorted(v[1] for v in ordered)


def test_long_center_line_is_truncated_not_refused():
    result = extract_surface(LINE, config=EngineConfig(surface_limit=5))
    assert isinstance(result, SurfaceResult)
    assert result.limited
    assert len(result) == 5
    assert result.reason == "Surface limit reached: stopped at 5 voxels"


def test_surface_exactly_at_limit_is_complete():
    size = len(set(center_line(LINE)))
    result = extract_surface(LINE, config=EngineConfig(surface_limit=size))
    assert not result.limited
    assert result.reason == ""
    assert result.voxels == set(center_line(LINE))
    short = extract_surface(LINE, config=EngineConfig(surface_limit=size - 1))
    assert short.limited and len(short) == size - 1
