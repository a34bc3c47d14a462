"""Tests for geometry.py: line/circle intersection, enclosing circles, sibling packing."""

from __future__ import annotations

import math
import random

import pytest

from infra_canvas.geometry import (
    PackCircle,
    distance,
    enclose,
    line_circle_intersections,
    line_intersects_circle,
    pack_siblings,
    point_in_circle,
)
from infra_canvas.models import Circle, Point

TOLERANCE = 1e-6


def on_circle(x: float, y: float, circle: Circle, epsilon: float = 1e-9) -> bool:
    return abs(math.hypot(x - circle.x, y - circle.y) - circle.r) <= epsilon


# ─── Line / circle ────────────────────────────────────────────────────────────


class TestLineCircleIntersections:
    def test_through_center_gives_two_points(self):
        circle = Circle(0, 0, 5)
        hits = line_circle_intersections(Point(-10, 0), Point(10, 0), circle)
        assert [hit.t for hit in hits] == pytest.approx([0.25, 0.75])
        assert [(hit.x, hit.y) for hit in hits] == [(-5, 0), (5, 0)]
        assert all(on_circle(hit.x, hit.y, circle) for hit in hits)

    def test_tangent_gives_one_point(self):
        hits = line_circle_intersections(Point(-10, 5), Point(10, 5), Circle(0, 0, 5))
        assert len(hits) == 1
        assert hits[0].t == pytest.approx(0.5)
        assert (hits[0].x, hits[0].y) == pytest.approx((0, 5))

    def test_miss_gives_nothing(self):
        assert line_circle_intersections(Point(-10, 10), Point(10, 10), Circle(0, 0, 5)) == []

    def test_segment_ending_inside(self):
        hits = line_circle_intersections(Point(-10, 0), Point(0, 0), Circle(0, 0, 5))
        assert len(hits) == 1
        assert hits[0].t == pytest.approx(0.5)

    def test_segment_fully_inside(self):
        assert line_circle_intersections(Point(-1, 0), Point(1, 0), Circle(0, 0, 5)) == []

    def test_zero_length_segment(self):
        assert line_circle_intersections(Point(5, 0), Point(5, 0), Circle(0, 0, 5)) == []

    @pytest.mark.parametrize("seed", range(10))
    def test_random_hits_lie_on_circle(self, seed):
        rng = random.Random(seed)
        for _ in range(50):
            circle = Circle(rng.uniform(-50, 50), rng.uniform(-50, 50), rng.uniform(1, 40))
            p1 = Point(rng.uniform(-100, 100), rng.uniform(-100, 100))
            p2 = Point(rng.uniform(-100, 100), rng.uniform(-100, 100))
            for hit in line_circle_intersections(p1, p2, circle):
                assert 0 <= hit.t <= 1
                assert on_circle(hit.x, hit.y, circle, epsilon=1e-6)

    def test_intersects_helper(self):
        assert line_intersects_circle(Point(-10, 0), Point(10, 0), Circle(0, 0, 1))
        assert not line_intersects_circle(Point(-10, 5), Point(10, 5.5), Circle(0, 0, 1))


def test_point_in_circle_includes_boundary():
    assert point_in_circle(Point(5, 0), Circle(0, 0, 5))
    assert not point_in_circle(Point(5.01, 0), Circle(0, 0, 5))


def test_distance():
    assert distance(Point(0, 0), Point(3, 4)) == 5


# ─── Enclosing circle ─────────────────────────────────────────────────────────


class TestEnclose:
    def test_empty(self):
        assert enclose([]).r == 0

    def test_single_circle(self):
        e = enclose([PackCircle(3, 4, 2)])
        assert (e.x, e.y, e.r) == (3, 4, 2)

    def test_two_circles(self):
        e = enclose([PackCircle(-5, 0, 5), PackCircle(5, 0, 5)])
        assert (e.x, e.y, e.r) == pytest.approx((0, 0, 10))

    def test_nested_circle_is_absorbed(self):
        e = enclose([PackCircle(0, 0, 10), PackCircle(1, 1, 2)])
        assert (e.x, e.y, e.r) == pytest.approx((0, 0, 10))

    def test_collinear_centers(self):
        circles = [PackCircle(-10, 0, 1), PackCircle(0, 0, 1), PackCircle(10, 0, 1)]
        e = enclose(circles, random.Random(1))
        for c in circles:
            assert math.hypot(c.x - e.x, c.y - e.y) + c.r <= e.r + TOLERANCE

    @pytest.mark.parametrize("seed", range(10))
    def test_random_circles_are_enclosed(self, seed):
        rng = random.Random(seed)
        circles = [PackCircle(rng.uniform(-100, 100), rng.uniform(-100, 100), rng.uniform(0, 30)) for _ in range(25)]
        e = enclose(circles, rng)
        for c in circles:
            assert math.hypot(c.x - e.x, c.y - e.y) + c.r <= e.r + TOLERANCE

    def test_deterministic_for_same_seed(self):
        circles = [PackCircle(i * 3.0, (i % 4) * 5.0, 2 + i % 3) for i in range(12)]
        first = enclose(circles, random.Random(7))
        second = enclose(circles, random.Random(7))
        assert (first.x, first.y, first.r) == (second.x, second.y, second.r)


# ─── Sibling packing ──────────────────────────────────────────────────────────


class TestPackSiblings:
    def test_empty(self):
        assert pack_siblings([]) == 0.0

    def test_single_circle_sits_at_origin(self):
        circle = PackCircle(r=7)
        assert pack_siblings([circle]) == 7
        assert (circle.x, circle.y) == (0, 0)

    def test_two_circles_are_tangent(self):
        a, b = PackCircle(r=3), PackCircle(r=5)
        radius = pack_siblings([a, b])
        assert math.hypot(a.x - b.x, a.y - b.y) == pytest.approx(8)
        assert radius == pytest.approx(8)

    @pytest.mark.parametrize("count", [3, 4, 7, 20, 60])
    def test_no_overlap_and_enclosed(self, count):
        rng = random.Random(count)
        circles = [PackCircle(r=rng.uniform(1, 20)) for _ in range(count)]
        radius = pack_siblings(circles, rng)

        for i, a in enumerate(circles):
            assert math.hypot(a.x, a.y) + a.r <= radius + TOLERANCE
            for b in circles[i + 1:]:
                assert math.hypot(a.x - b.x, a.y - b.y) >= a.r + b.r - TOLERANCE

    def test_equal_circles_pack_tightly(self):
        circles = [PackCircle(r=1) for _ in range(7)]
        radius = pack_siblings(circles, random.Random(0))
        # Hexagonal optimum is 3; a row would need 7
        assert 3 - TOLERANCE <= radius < 4
