import math

import pytest

from voxshape.selection import SelectionSnapshot
from voxshape.shapes import (
    MIN_RADIUS,
    BoxParams,
    CylinderParams,
    EllipsoidMode,
    EllipsoidParams,
    ShapeMode,
    TubeParams,
    max_radius_xz,
    resolve_shape,
    shape_mode_of,
)


def _snap(anchors, mode, **kwargs):
    return SelectionSnapshot(anchors=anchors, shape_mode=mode, **kwargs)


def test_every_mode_resolves_nothing_without_anchors():
    for mode in ShapeMode:
        assert resolve_shape(_snap((), mode)) is None


def test_tube_needs_two_anchors():
    assert resolve_shape(_snap([(1, 2, 3)], ShapeMode.TUBE)) is None
    params = resolve_shape(_snap([(0, 0, 0), (4, 0, 0)], ShapeMode.TUBE, tube_radius=2))
    assert isinstance(params, TubeParams)
    assert params.control_points == ((0.5, 0.5, 0.5), (4.5, 0.5, 0.5))
    assert params.radius == 2


def test_box_uses_anchor_bounds():
    params = resolve_shape(_snap([(3, 0, -1), (0, 4, 2), (1, 1, 1)], ShapeMode.BOX))
    assert params == BoxParams((0, 0, -1), (3, 4, 2))
    assert params.spans == (4, 5, 4)


def test_single_anchor_box_is_one_voxel():
    params = resolve_shape(_snap([(2, 2, 2)], ShapeMode.BOX))
    assert params.spans == (1, 1, 1)


def test_cylinder_centered_on_first_anchor():
    params = resolve_shape(_snap([(0, 0, 0), (3, 4, 4), (0, 2, -2)], ShapeMode.CYLINDER))
    assert isinstance(params, CylinderParams)
    assert (params.center_x, params.center_z) == (0.5, 0.5)
    assert params.radius == pytest.approx(5.0)
    assert (params.min_y, params.max_y, params.height) == (0, 4, 5)


def test_single_anchor_radius_is_floored():
    cyl = resolve_shape(_snap([(5, 5, 5)], ShapeMode.CYLINDER))
    assert cyl.radius == MIN_RADIUS
    ell = resolve_shape(_snap([(5, 5, 5)], ShapeMode.ELLIPSOID,
                              ellipsoid_mode=EllipsoidMode.CENTER_RADIUS))
    assert (ell.rx, ell.ry, ell.rz) == (MIN_RADIUS, MIN_RADIUS, MIN_RADIUS)


def test_ellipsoid_fit_to_box():
    params = resolve_shape(_snap([(-5, -5, -5), (4, 4, 4)], ShapeMode.ELLIPSOID))
    assert params == EllipsoidParams((0.0, 0.0, 0.0), 5.0, 5.0, 5.0)


def test_ellipsoid_center_radius():
    snap = _snap([(0, 2, 0), (3, 0, 4), (1, 7, 0)], ShapeMode.ELLIPSOID,
                 ellipsoid_mode=EllipsoidMode.CENTER_RADIUS)
    params = resolve_shape(snap)
    assert params.center == (0.5, 4.0, 0.5)
    assert params.rx == params.rz == pytest.approx(5.0)
    assert params.ry == 4.0


def test_resolve_with_explicit_mode():
    snap = _snap([(0, 0, 0), (2, 2, 2)], ShapeMode.BOX)
    assert isinstance(resolve_shape(snap, ShapeMode.CYLINDER), CylinderParams)


def test_max_radius_xz_ignores_y():
    assert max_radius_xz([(0, 0, 0)]) == 0.0
    assert max_radius_xz([(0, 0, 0), (0, 100, 1), (1, -3, 1)]) == pytest.approx(math.sqrt(2))


def test_parameter_validation():
    with pytest.raises(ValueError):
        TubeParams(((0.5, 0.5, 0.5),), 1)
    with pytest.raises(ValueError):
        TubeParams(((0.5, 0.5, 0.5), (1.5, 0.5, 0.5)), -1)
    with pytest.raises(TypeError):
        shape_mode_of(object())
    assert shape_mode_of(BoxParams((0, 0, 0), (1, 1, 1))) is ShapeMode.BOX
