"""
Geometry primitives for Infra-Canvas.

Two groups of helpers:

  - **Edge geometry**: parametric line/circle intersection and containment
    tests used by the edge router.  A segment is ``p1 + t * (p2 - p1)`` with
    ``t`` in ``[0, 1]``.
  - **Circle packing**: front-chain sibling packing and the randomized
    incremental minimal enclosing circle, used by both layout algorithms.

All circle packing functions work on ``PackCircle`` records, which are
mutable scratch circles; layouts copy results back into the tree arena.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Circle, Intersection, Point


# ---------------------------------------------------------------------------
# Edge geometry
# ---------------------------------------------------------------------------

def line_circle_intersections(
    p1: Point,
    p2: Point,
    circle: Circle,
    epsilon: float = 0.001,
) -> list[Intersection]:
    """Return the 0, 1 or 2 points where segment p1→p2 crosses the circle.

    Solves ``|p1 + t·d - c|² = r²`` for ``t`` and keeps roots in ``[0, 1]``.
    The second root is dropped when it is within ``epsilon`` of the first
    (tangent lines).  A zero-length segment has no intersections.
    """
    dx = p2.x - p1.x
    dy = p2.y - p1.y
    fx = p1.x - circle.x
    fy = p1.y - circle.y

    a = dx * dx + dy * dy
    if a == 0:
        return []
    b = 2 * (fx * dx + fy * dy)
    c = (fx * fx + fy * fy) - circle.r * circle.r

    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return []

    sqrt_discriminant = math.sqrt(discriminant)
    t1 = (-b - sqrt_discriminant) / (2 * a)
    t2 = (-b + sqrt_discriminant) / (2 * a)

    intersections: list[Intersection] = []
    if 0 <= t1 <= 1:
        intersections.append(Intersection(t=t1, x=p1.x + t1 * dx, y=p1.y + t1 * dy))
    if 0 <= t2 <= 1 and abs(t2 - t1) > epsilon:
        intersections.append(Intersection(t=t2, x=p1.x + t2 * dx, y=p1.y + t2 * dy))
    return intersections


def point_in_circle(point: Point, circle: Circle) -> bool:
    dx = point.x - circle.x
    dy = point.y - circle.y
    return dx * dx + dy * dy <= circle.r * circle.r


def line_intersects_circle(p1: Point, p2: Point, circle: Circle) -> bool:
    """True if segment p1→p2 crosses the circle's boundary."""
    return bool(line_circle_intersections(p1, p2, circle))


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


# ---------------------------------------------------------------------------
# Circle packing
# ---------------------------------------------------------------------------

@dataclass
class PackCircle:
    """Scratch circle mutated in place by the packing routines."""
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0
    key: Optional[str] = None


class _ChainNode:
    """Doubly linked front-chain entry."""

    __slots__ = ("circle", "next", "previous")

    def __init__(self, circle: PackCircle):
        self.circle = circle
        self.next: Optional[_ChainNode] = None
        self.previous: Optional[_ChainNode] = None


def _place(b: PackCircle, a: PackCircle, c: PackCircle) -> None:
    """Place ``c`` tangent to both ``a`` and ``b``."""
    dx = b.x - a.x
    dy = b.y - a.y
    d2 = dx * dx + dy * dy
    if d2:
        a2 = (a.r + c.r) ** 2
        b2 = (b.r + c.r) ** 2
        if a2 > b2:
            x = (d2 + b2 - a2) / (2 * d2)
            y = math.sqrt(max(0.0, b2 / d2 - x * x))
            c.x = b.x - x * dx - y * dy
            c.y = b.y - x * dy + y * dx
        else:
            x = (d2 + a2 - b2) / (2 * d2)
            y = math.sqrt(max(0.0, a2 / d2 - x * x))
            c.x = a.x + x * dx - y * dy
            c.y = a.y + x * dy + y * dx
    else:
        c.x = a.x + c.r
        c.y = a.y


def _intersects(a: PackCircle, b: PackCircle) -> bool:
    dr = a.r + b.r - 1e-6
    dx = b.x - a.x
    dy = b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _score(node: _ChainNode) -> float:
    """Squared distance from the origin to the weighted midpoint of a chain pair."""
    a = node.circle
    b = node.next.circle
    ab = a.r + b.r
    dx = (a.x * b.r + b.x * a.r) / ab
    dy = (a.y * b.r + b.y * a.r) / ab
    return dx * dx + dy * dy


def pack_siblings(circles: Sequence[PackCircle], rng: Optional[random.Random] = None) -> float:
    """Pack circles tangentially around the origin without overlap.

    Circles are placed in the given order using the front-chain algorithm,
    then translated so their minimal enclosing circle is centered at the
    origin.  Returns the enclosing radius.
    """
    n = len(circles)
    if n == 0:
        return 0.0

    a = circles[0]
    a.x = 0.0
    a.y = 0.0
    if n == 1:
        return a.r

    b = circles[1]
    a.x = -b.r
    b.x = a.r
    b.y = 0.0
    if n == 2:
        enclosing = enclose(circles, rng)
        for circle in circles:
            circle.x -= enclosing.x
            circle.y -= enclosing.y
        return enclosing.r

    c = circles[2]
    _place(b, a, c)

    # --- Front chain from the first three circles ---
    na, nb, nc = _ChainNode(a), _ChainNode(b), _ChainNode(c)
    na.next = nc.previous = nb
    nb.next = na.previous = nc
    nc.next = nb.previous = na

    i = 3
    while i < n:
        circle = circles[i]
        _place(na.circle, nb.circle, circle)
        candidate = _ChainNode(circle)

        # Find the closest intersecting circle on the front chain, if any.
        j = nb.next
        k = na.previous
        sj = nb.circle.r
        sk = na.circle.r
        collided = False
        while True:
            if sj <= sk:
                if _intersects(j.circle, candidate.circle):
                    nb = j
                    na.next = nb
                    nb.previous = na
                    collided = True
                    break
                sj += j.circle.r
                j = j.next
            else:
                if _intersects(k.circle, candidate.circle):
                    na = k
                    na.next = nb
                    nb.previous = na
                    collided = True
                    break
                sk += k.circle.r
                k = k.previous
            if j is k.next:
                break
        if collided:
            # Retry the same circle against the shortened chain.
            continue

        # Insert between a and b.
        candidate.previous = na
        candidate.next = nb
        na.next = candidate
        nb.previous = candidate
        nb = candidate

        # New closest pair to the centroid.
        best = _score(na)
        node = candidate.next
        while node is not nb:
            score = _score(node)
            if score < best:
                na = node
                best = score
            node = node.next
        nb = na.next
        i += 1

    chain = [nb.circle]
    node = nb.next
    while node is not nb:
        chain.append(node.circle)
        node = node.next
    enclosing = enclose(chain, rng)

    for circle in circles:
        circle.x -= enclosing.x
        circle.y -= enclosing.y
    return enclosing.r


# --- Minimal enclosing circle ---

def _encloses_not(a: PackCircle, b: PackCircle) -> bool:
    dr = a.r - b.r
    dx = b.x - a.x
    dy = b.y - a.y
    return dr < 0 or dr * dr < dx * dx + dy * dy


def _encloses_weak(a: PackCircle, b: PackCircle) -> bool:
    dr = a.r - b.r + max(a.r, b.r, 1) * 1e-9
    dx = b.x - a.x
    dy = b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _encloses_weak_all(a: PackCircle, basis: Sequence[PackCircle]) -> bool:
    return all(_encloses_weak(a, b) for b in basis)


def _enclose_basis_1(a: PackCircle) -> PackCircle:
    return PackCircle(x=a.x, y=a.y, r=a.r)


def _enclose_basis_2(a: PackCircle, b: PackCircle) -> PackCircle:
    x21 = b.x - a.x
    y21 = b.y - a.y
    r21 = b.r - a.r
    length = math.sqrt(x21 * x21 + y21 * y21)
    if length == 0:
        return _enclose_basis_1(a if a.r >= b.r else b)
    return PackCircle(
        x=(a.x + b.x + x21 / length * r21) / 2,
        y=(a.y + b.y + y21 / length * r21) / 2,
        r=(length + a.r + b.r) / 2,
    )


def _enclose_basis_3(a: PackCircle, b: PackCircle, c: PackCircle) -> Optional[PackCircle]:
    """Circle tangent to three circles; None when the centers are collinear."""
    x1, y1, r1 = a.x, a.y, a.r
    x2, y2, r2 = b.x, b.y, b.r
    x3, y3, r3 = c.x, c.y, c.r
    a2 = x1 - x2
    a3 = x1 - x3
    b2 = y1 - y2
    b3 = y1 - y3
    c2 = r2 - r1
    c3 = r3 - r1
    d1 = x1 * x1 + y1 * y1 - r1 * r1
    d2 = d1 - x2 * x2 - y2 * y2 + r2 * r2
    d3 = d1 - x3 * x3 - y3 * y3 + r3 * r3
    ab = a3 * b2 - a2 * b3
    if ab == 0:
        return None
    xa = (b2 * d3 - b3 * d2) / (ab * 2) - x1
    xb = (b3 * c2 - b2 * c3) / ab
    ya = (a3 * d2 - a2 * d3) / (ab * 2) - y1
    yb = (a2 * c3 - a3 * c2) / ab
    qa = xb * xb + yb * yb - 1
    qb = 2 * (r1 + xa * xb + ya * yb)
    qc = xa * xa + ya * ya - r1 * r1
    if abs(qa) > 1e-6:
        r = -(qb + math.sqrt(max(0.0, qb * qb - 4 * qa * qc))) / (2 * qa)
    elif qb != 0:
        r = -qc / qb
    else:
        return None
    return PackCircle(x=x1 + xa + xb * r, y=y1 + ya + yb * r, r=r)


def _enclose_basis(basis: Sequence[PackCircle]) -> Optional[PackCircle]:
    if len(basis) == 1:
        return _enclose_basis_1(basis[0])
    if len(basis) == 2:
        return _enclose_basis_2(basis[0], basis[1])
    return _enclose_basis_3(basis[0], basis[1], basis[2])


def _extend_basis(basis: list[PackCircle], p: PackCircle) -> Optional[list[PackCircle]]:
    if _encloses_weak_all(p, basis):
        return [p]

    for b in basis:
        if _encloses_not(p, b) and _encloses_weak_all(_enclose_basis_2(b, p), basis):
            return [b, p]

    for i in range(len(basis) - 1):
        for j in range(i + 1, len(basis)):
            bi, bj = basis[i], basis[j]
            if (
                _encloses_not(_enclose_basis_2(bi, bj), p)
                and _encloses_not(_enclose_basis_2(bi, p), bj)
                and _encloses_not(_enclose_basis_2(bj, p), bi)
            ):
                candidate = _enclose_basis_3(bi, bj, p)
                if candidate is not None and _encloses_weak_all(candidate, basis):
                    return [bi, bj, p]
    return None


def _bounding_circle(circles: Sequence[PackCircle]) -> PackCircle:
    """Non-minimal but always valid enclosing circle around the centroid."""
    cx = sum(c.x for c in circles) / len(circles)
    cy = sum(c.y for c in circles) / len(circles)
    r = max(math.hypot(c.x - cx, c.y - cy) + c.r for c in circles)
    return PackCircle(x=cx, y=cy, r=r)


def enclose(circles: Sequence[PackCircle], rng: Optional[random.Random] = None) -> PackCircle:
    """Smallest circle enclosing every circle in ``circles``.

    Randomized incremental construction; shuffling uses ``rng`` so results
    are reproducible.  Falls back to a centroid bounding circle when the
    basis cannot be extended (numerically degenerate inputs).
    """
    if not circles:
        return PackCircle()
    shuffled = list(circles)
    (rng or random.Random(0)).shuffle(shuffled)

    basis: list[PackCircle] = []
    e: Optional[PackCircle] = None
    i = 0
    while i < len(shuffled):
        p = shuffled[i]
        if e is not None and _encloses_weak(e, p):
            i += 1
            continue
        extended = _extend_basis(basis, p)
        e = _enclose_basis(extended) if extended is not None else None
        if e is None:
            return _bounding_circle(circles)
        basis = extended
        i = 0
    return e
