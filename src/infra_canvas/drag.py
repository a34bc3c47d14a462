"""
Interactive drag of a single node or a whole sub-hierarchy.

States: ``IDLE → DRAGGING → IDLE``.

  - ``start`` anchors the element's current absolute position.
  - ``move`` applies ``pointer - anchor`` to the element.  Dragging a group
    moves the group and every descendant by the same step, so the inner
    layout is preserved.
  - ``end`` commits the final positions (they already live in the tree
    arena) and returns to ``IDLE``.

Each call re-routes only the edges incident to the moved subtree, so cost is
proportional to the subtree and its edges rather than the whole graph.

Only one drag is active per engine.  Starting a new drag while one is active
ends the previous drag first, keeping wherever it had moved to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .hierarchy import HierarchyTree
from .models import Circle, HierarchyNode, Point, RoutedEdge
from .options import LayoutOptions
from .routing import EdgeRouter

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass
class DragUpdate:
    """Incremental result of a drag step: moved circles and re-routed edges."""
    positions: dict[str, Circle] = field(default_factory=dict)
    routed_edges: list[RoutedEdge] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.positions and not self.routed_edges


class DragEngine:
    """Drag state machine bound to one tree instance."""

    def __init__(
        self,
        tree: HierarchyTree,
        router: Optional[EdgeRouter] = None,
        options: Optional[LayoutOptions] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.tree = tree
        self.options = options or (router.options if router else LayoutOptions())
        self.log = log or logger
        self.router = router or EdgeRouter(tree, self.options, log=self.log)
        # Cache boundaries once; drag steps patch only the moved groups
        self.router.refresh_boundaries()
        self.state = DragState.IDLE
        self.active_id: Optional[str] = None
        self.anchor: Optional[Point] = None

    # --- Policy ---

    def is_draggable(self, element_id: str) -> bool:
        if element_id not in self.tree:
            return False
        node = self.tree.node(element_id)
        return not node.is_virtual and element_id not in self.options.locked_ids

    # --- Transitions ---

    def start(self, element_id: str) -> DragUpdate:
        """Anchor a drag on ``element_id``; nothing moves yet."""
        if not self.is_draggable(element_id):
            self.log.warning(f"Ignoring drag start on {element_id!r}: unknown or locked element")
            return DragUpdate()

        if self.state is DragState.DRAGGING:
            self.log.warning(f"Drag of {self.active_id!r} still active; ending it before dragging {element_id!r}")
            self.end(self.active_id)

        node = self.tree.node(element_id)
        self.anchor = Point(node.x, node.y)
        self.active_id = element_id
        self.state = DragState.DRAGGING
        return DragUpdate()

    def move(self, element_id: str, pointer: Point) -> DragUpdate:
        """Move the active element so it sits at ``anchor + (pointer - anchor)``."""
        if self.state is not DragState.DRAGGING or element_id != self.active_id:
            self.log.warning(f"Ignoring drag move on {element_id!r}: not the active drag")
            return DragUpdate()

        delta = Point(pointer.x - self.anchor.x, pointer.y - self.anchor.y)
        node = self.tree.node(element_id)
        step = Point(self.anchor.x + delta.x - node.x, self.anchor.y + delta.y - node.y)

        moved = self._translate_subtree(node, step)
        return self._update_for(moved)

    def end(self, element_id: str) -> DragUpdate:
        """Finish the drag; positions stay where the last move left them."""
        if self.state is not DragState.DRAGGING or element_id != self.active_id:
            self.log.warning(f"Ignoring drag end on {element_id!r}: not the active drag")
            return DragUpdate()

        moved = [self.tree.node(element_id)] + self.tree.descendants(element_id)
        update = self._update_for(moved)
        self.cancel()
        return update

    def cancel(self) -> None:
        """Drop drag state without touching positions."""
        self.state = DragState.IDLE
        self.active_id = None
        self.anchor = None

    def reset_positions(self) -> DragUpdate:
        """Put every element back where layout placed it and re-route everything."""
        self.cancel()
        self.tree.restore_original_positions()
        visible = self.tree.visible_nodes()
        return DragUpdate(
            positions={node.id: node.circle() for node in visible},
            routed_edges=self.router.route_edges().routed,
        )

    # --- Internals ---

    def _translate_subtree(self, node: HierarchyNode, step: Point) -> list[HierarchyNode]:
        moved = [node] + self.tree.descendants(node.id)
        if step.x or step.y:
            for member in moved:
                member.x += step.x
                member.y += step.y
        return moved

    def _update_for(self, moved: list[HierarchyNode]) -> DragUpdate:
        self.router.update_boundaries(moved)
        positions = {member.id: member.circle() for member in moved}
        edges = self.tree.edges_touching(member.id for member in moved)
        if not edges:
            return DragUpdate(positions=positions)

        boundaries = self.router.boundaries()
        routed = []
        for edge in edges:
            result = self.router.route_edge(edge, boundaries)
            if result is not None:
                routed.append(result)
        return DragUpdate(positions=positions, routed_edges=routed)
