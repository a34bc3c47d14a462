"""
Edge routing for Infra-Canvas.

Edges are drawn as straight lines between node centers, but a line that runs
through a container owned by neither endpoint is misleading: it looks like
the relationship lives inside that container.  The router clips every edge
against every containment boundary and labels the pieces:

  1. **Intersections**: solve the line/circle quadratic against each
     boundary circle and keep roots with ``t`` in ``[0, 1]``.
  2. **Ordering**: sort the endpoints and intersections by ``t`` and merge
     points closer than ``edge_epsilon``.  Consecutive points form the
     sub-segments of the polyline.
  3. **Classification**: per tier, sample each sub-segment's midpoint.  It
     is *home* if it lies inside a tier circle owned by one of the endpoints
     (a group containing the endpoint), *foreign* if it lies inside any other
     tier circle, and home by default otherwise.  A sub-segment is home only
     if no tier calls it foreign.

Edges whose endpoints are unknown are skipped and reported; a zero-length
edge routes to a single zero-length home segment.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .geometry import line_circle_intersections, point_in_circle
from .hierarchy import HierarchyTree
from .models import (
    BoundaryCircle,
    Circle,
    Edge,
    HierarchyNode,
    Intersection,
    Point,
    RoutedEdge,
    RoutedSegment,
    RoutingResult,
    SkippedEdge,
)
from .options import LayoutOptions

logger = logging.getLogger(__name__)


class EdgeRouter:
    """Clips edges against the containment boundaries of a laid-out tree."""

    def __init__(
        self,
        tree: HierarchyTree,
        options: Optional[LayoutOptions] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.tree = tree
        self.options = options or LayoutOptions()
        self.log = log or logger
        self._boundaries: Optional[dict[str, BoundaryCircle]] = None

    # --- Boundaries ---

    def boundaries(self) -> list[BoundaryCircle]:
        """Group circles tagged with their tier (the group type).

        Served from a cache keyed by group id.  The cache is built on first
        use and refreshed by ``route_edges``; callers that move groups in
        between keep it current with ``update_boundaries``.
        """
        if self._boundaries is None:
            self.refresh_boundaries()
        return list(self._boundaries.values())

    def refresh_boundaries(self) -> None:
        """Rebuild the boundary cache from every group in the tree."""
        self._boundaries = {}
        for group in self.tree.groups():
            boundary = self._boundary_for(group)
            if boundary is not None:
                self._boundaries[group.id] = boundary

    def update_boundaries(self, nodes: Iterable[HierarchyNode]) -> None:
        """Refresh cached circles for ``nodes`` only; non-boundaries are ignored."""
        if self._boundaries is None:
            self.refresh_boundaries()
            return
        for node in nodes:
            if node.id in self._boundaries:
                self._boundaries[node.id] = self._boundary_for(node)

    def _boundary_for(self, group: HierarchyNode) -> Optional[BoundaryCircle]:
        tiers = self.options.tiers
        if tiers is not None and group.type not in tiers:
            return None
        return BoundaryCircle(
            id=group.id,
            tier=group.type,
            x=group.x,
            y=group.y,
            r=max(group.r, self.options.min_radius),
        )

    def home_group_ids(self, edge: Edge) -> set[str]:
        """Groups that contain either endpoint (an endpoint group owns itself)."""
        home: set[str] = set()
        for endpoint in (edge.source_id, edge.target_id):
            for node in self.tree.ancestors(endpoint, include_self=True):
                if node.is_group:
                    home.add(node.id)
        return home

    # --- Routing ---

    def missing_endpoints(self, edge: Edge) -> tuple[str, ...]:
        """Endpoint ids that name no input vertex (the synthetic root is not one)."""
        missing = []
        for endpoint in (edge.source_id, edge.target_id):
            known = endpoint in self.tree and not self.tree.node(endpoint).is_virtual
            if not known and endpoint not in missing:
                missing.append(endpoint)
        return tuple(missing)

    def route_edge(
        self,
        edge: Edge,
        boundaries: Optional[list[BoundaryCircle]] = None,
    ) -> Optional[RoutedEdge]:
        """Split one edge into classified sub-segments.

        Returns None when an endpoint is not a vertex of the tree.
        """
        if self.missing_endpoints(edge):
            return None
        if boundaries is None:
            boundaries = self.boundaries()

        source = self.tree.node(edge.source_id)
        target = self.tree.node(edge.target_id)
        p1 = Point(source.x, source.y)
        p2 = Point(target.x, target.y)

        if p1 == p2:
            self.log.debug(f"Edge {edge.key} has zero length; routing as a single home segment")
            return RoutedEdge(edge=edge, segments=[RoutedSegment(p1.x, p1.y, p2.x, p2.y, is_home=True)])

        points = self._ordered_points(p1, p2, boundaries)
        home_ids = self.home_group_ids(edge)

        segments: list[RoutedSegment] = []
        for start, end in zip(points, points[1:]):
            mid_t = (start.t + end.t) / 2
            midpoint = Point(p1.x + mid_t * (p2.x - p1.x), p1.y + mid_t * (p2.y - p1.y))
            foreign = self._foreign_tiers(midpoint, boundaries, home_ids)
            segments.append(RoutedSegment(
                x1=start.x,
                y1=start.y,
                x2=end.x,
                y2=end.y,
                is_home=not foreign,
                foreign_tiers=foreign,
            ))
        return RoutedEdge(edge=edge, segments=segments)

    def route_edges(self, edges: Optional[Iterable[Edge]] = None) -> RoutingResult:
        """Route ``edges`` (default: every edge of the tree) against fresh boundaries."""
        self.refresh_boundaries()
        boundaries = self.boundaries()
        result = RoutingResult()
        for edge in (self.tree.edges if edges is None else edges):
            missing = self.missing_endpoints(edge)
            if missing:
                self.log.warning(f"Skipping edge {edge.key}: unknown vertex id(s) {', '.join(missing)}")
                result.skipped.append(SkippedEdge(edge=edge, missing_ids=missing))
                continue
            result.routed.append(self.route_edge(edge, boundaries))
        return result

    # --- Internals ---

    def _ordered_points(
        self,
        p1: Point,
        p2: Point,
        boundaries: list[BoundaryCircle],
    ) -> list[Intersection]:
        epsilon = self.options.edge_epsilon
        crossings: list[Intersection] = []
        for boundary in boundaries:
            circle = Circle(boundary.x, boundary.y, boundary.r)
            crossings.extend(line_circle_intersections(p1, p2, circle, epsilon))
        crossings.sort(key=lambda point: point.t)

        points = [Intersection(t=0.0, x=p1.x, y=p1.y)]
        for crossing in crossings:
            if crossing.t - points[-1].t > epsilon and 1.0 - crossing.t > epsilon:
                points.append(crossing)
        points.append(Intersection(t=1.0, x=p2.x, y=p2.y))
        return points

    @staticmethod
    def _foreign_tiers(
        midpoint: Point,
        boundaries: list[BoundaryCircle],
        home_ids: set[str],
    ) -> tuple[str, ...]:
        home_tiers: set[str] = set()
        foreign_tiers: list[str] = []
        for boundary in boundaries:
            if boundary.id in home_ids and point_in_circle(midpoint, Circle(boundary.x, boundary.y, boundary.r)):
                home_tiers.add(boundary.tier)

        for boundary in boundaries:
            if boundary.tier in home_tiers or boundary.tier in foreign_tiers:
                continue
            if boundary.id in home_ids:
                continue
            if point_in_circle(midpoint, Circle(boundary.x, boundary.y, boundary.r)):
                foreign_tiers.append(boundary.tier)
        return tuple(foreign_tiers)
