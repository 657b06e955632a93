import math

from voxshape.geometry_utils import (
    UP,
    X_AXIS,
    cross,
    dist,
    normalize,
    to_vec3,
    to_voxel,
    voxel_bounds,
    voxel_center,
)


def test_to_vec3_drops_extra_components():
    assert to_vec3((1, 2, 3, 1)) == (1.0, 2.0, 3.0)


def test_to_voxel_floors_negative_coordinates():
    assert to_voxel((-0.5, 0.99, -2.0)) == (-1, 0, -2)


def test_voxel_center_is_offset_by_half():
    assert voxel_center((0, -1, 4)) == (0.5, -0.5, 4.5)


def test_cross_and_dist():
    assert cross(X_AXIS, UP) == (0.0, 0.0, 1.0)
    assert math.isclose(dist((0, 0, 0), (3, 4, 0)), 5.0)


def test_normalize_zero_vector_uses_fallback():
    assert normalize((0.0, 0.0, 0.0)) == UP
    assert normalize((0.0, 0.0, 0.0), fallback=X_AXIS) == X_AXIS
    x, y, z = normalize((0.0, 3.0, 4.0))
    assert math.isclose(y, 0.6) and math.isclose(z, 0.8) and x == 0.0


def test_voxel_bounds():
    assert voxel_bounds([]) is None
    assert voxel_bounds([(1, 5, -2), (-3, 0, 4), (2, 2, 2)]) == ((-3, 0, -2), (2, 5, 4))
