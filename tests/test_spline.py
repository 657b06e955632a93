import math

import numpy as np
import pytest

from voxshape.geometry_utils import UP, dot, mag
from voxshape.spline import (
    arc_length,
    catmull_rom,
    catmull_rom_derivative,
    evaluate_spline,
    extrapolate_end,
    extrapolate_start,
    find_perpendicular,
    projected_distances,
    sample_min_distance,
    sample_spline,
    segment_windows,
    spline_frames,
    tube_ring,
)

P0 = (0.0, 0.0, 0.0)
P1 = (1.0, 2.0, 0.0)
P2 = (3.0, 2.0, 1.0)
P3 = (4.0, 0.0, 1.0)

LINE = [(0.0, 0.0, 0.0), (4.0, 0.0, 0.0)]


def _close(a, b, tol=1e-9):
    assert all(abs(x - y) <= tol for x, y in zip(a, b)), (a, b)


def test_catmull_rom_interpolates_inner_points():
    _close(catmull_rom(P0, P1, P2, P3, 0.0), P1)
    _close(catmull_rom(P0, P1, P2, P3, 1.0), P2)


def test_catmull_rom_derivative_at_ends():
    _close(catmull_rom_derivative(P0, P1, P2, P3, 0.0),
           tuple(0.5 * (c - a) for a, c in zip(P0, P2)))
    _close(catmull_rom_derivative(P0, P1, P2, P3, 1.0),
           tuple(0.5 * (d - b) for b, d in zip(P1, P3)))


def test_phantom_points_mirror_neighbours():
    assert extrapolate_start(P1, P2) == (-1.0, 2.0, -1.0)
    assert extrapolate_end(P1, P2) == (5.0, 2.0, 2.0)


def test_segment_windows_needs_two_points():
    with pytest.raises(ValueError):
        list(segment_windows([P0]))
    windows = list(segment_windows([P0, P1, P2]))
    assert len(windows) == 2
    assert windows[0][0] == extrapolate_start(P0, P1)
    assert windows[1][3] == extrapolate_end(P1, P2)


def test_sample_spline_counts_and_endpoints():
    pts = [P0, P1, P2, P3]
    samples = sample_spline(pts, 8)
    assert len(samples) == 3 * 9
    _close(samples[0], P0)
    _close(samples[-1], P3)
    # neighbouring segments share their joint
    _close(samples[8], P1)
    _close(samples[9], P1)


def test_samples_match_evaluator():
    pts = [P0, P1, P2, P3]
    samples = sample_spline(pts, 8)
    for segment in range(3):
        for step in range(9):
            u = (segment + step / 8.0) / 3
            _close(samples[segment * 9 + step], evaluate_spline(pts, u), tol=1e-9)


def test_two_point_curve_is_straight():
    for x, y, z in sample_spline(LINE, 16):
        assert y == pytest.approx(0.0) and z == pytest.approx(0.0)
    assert arc_length(LINE, 32) == pytest.approx(4.0)


def test_arc_length_of_short_input_is_zero():
    assert arc_length([], 32) == 0.0
    assert arc_length([P0], 32) == 0.0


def test_arc_length_bounds():
    pts = [P0, P1, P2, P3]
    chord = sum(math.dist(a, b) for a, b in zip(pts, pts[1:]))
    assert arc_length(pts, 32) >= chord - 1e-9


def test_evaluate_spline_special_cases():
    assert evaluate_spline([P1], 0.7) == P1
    _close(evaluate_spline(LINE, 0.25), (1.0, 0.0, 0.0))
    _close(evaluate_spline(LINE, 2.0), LINE[1])
    _close(evaluate_spline([P0, P1, P2], 0.0), P0)
    _close(evaluate_spline([P0, P1, P2], 0.5), P1)
    _close(evaluate_spline([P0, P1, P2], 1.0), P2)
    with pytest.raises(ValueError):
        evaluate_spline([], 0.5)


def test_sample_min_distance():
    assert sample_min_distance((2.0, 3.0, 0.0), LINE, 16) == pytest.approx(3.0)
    assert sample_min_distance((6.0, 0.0, 0.0), LINE, 16) == pytest.approx(2.0)


def test_projected_distance_ignores_offset_along_tangent():
    samples, tangents = spline_frames(LINE, 16)
    q = np.array([[6.0, 1.0, 0.0], [2.0, 0.0, 2.0]])
    d = projected_distances(q, samples, tangents)
    assert d[0] == pytest.approx(1.0)
    assert d[1] == pytest.approx(2.0)


def test_degenerate_tangents_fall_back_to_up():
    _, tangents = spline_frames([(1.0, 1.0, 1.0), (1.0, 1.0, 1.0)], 4)
    assert np.allclose(tangents, UP)


def test_find_perpendicular():
    for direction in [(1, 0, 0), (0, 1, 0), (0, -1, 0.01), (1, 1, 1), (0, 0, 0)]:
        perp = find_perpendicular(direction)
        assert mag(perp) == pytest.approx(1.0)
        if mag(direction) > 0:
            assert dot(perp, direction) == pytest.approx(0.0, abs=1e-9)


def test_tube_ring_lies_on_circle():
    center = (1.0, 2.0, 3.0)
    direction = (0.0, 0.0, 2.0)
    ring = tube_ring(center, direction, 1.5)
    assert len(ring) == 16
    for p in ring:
        offset = tuple(a - b for a, b in zip(p, center))
        assert mag(offset) == pytest.approx(1.5)
        assert offset[2] == pytest.approx(0.0, abs=1e-9)
    with pytest.raises(ValueError):
        tube_ring(center, direction, 1.0, segments=2)
