"""
Bottom-up, level-by-level layout.

An alternative to recursive circle packing that processes the tree one depth
level at a time, deepest level first:

  1. ``build_levels`` partitions every node (groups and leaves, across all
     branches) by depth.
  2. For each level, groups take their provisional circle from the children
     positioned at the previous (deeper) level: the center and radius of the
     children's enclosing circle, plus padding.  Leaves get ``node_radius``.
  3. ``position_elements_at_level`` packs the level so that no two elements
     overlap, regardless of branch: siblings are packed together first, then
     each sibling set is packed against the others as one cluster.
  4. When an element moves away from its provisional position, the same
     offset cascades to all of its (already positioned) descendants, so the
     relative arrangement inside the group is preserved.

Finally the whole tree is shifted so the root sits at the layout center.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from .geometry import PackCircle, enclose, pack_siblings
from .hierarchy import HierarchyTree
from .models import Edge, HierarchyNode, Point
from .options import LayoutOptions
from .sizing import estimate_canvas_size

logger = logging.getLogger(__name__)


@dataclass
class Level:
    """All nodes that share one depth."""
    depth: int
    elements: list[HierarchyNode] = field(default_factory=list)


@dataclass
class BottomUpResult:
    """Positioned (non-virtual) nodes and the edges that connect them."""
    nodes: list[HierarchyNode]
    edges: list[Edge]


class BottomUpLayout:
    """Depth-ordered layout with cascading offsets."""

    id = "bottom-up"

    def __init__(self, options: Optional[LayoutOptions] = None, log: Optional[logging.Logger] = None):
        self.options = options or LayoutOptions()
        self.log = log or logger
        self._rng = random.Random(self.options.seed)

    # --- Depth ---

    def depth(self, tree: HierarchyTree, node_id: str) -> int:
        """0 for the root, otherwise one more than the parent's depth."""
        depth = 0
        parent_id = tree.node(node_id).parent_id
        while parent_id is not None:
            depth += 1
            parent_id = tree.node(parent_id).parent_id
        return depth

    def calculate_group_depth(self, tree: HierarchyTree, group_id: str) -> int:
        return self.depth(tree, group_id)

    def calculate_leaf_depth(self, tree: HierarchyTree, leaf_id: str) -> int:
        """A leaf sits one level below its containing group; a parentless leaf is at 0."""
        parent_id = tree.node(leaf_id).parent_id
        if parent_id is None:
            return 0
        return self.calculate_group_depth(tree, parent_id) + 1

    # --- Levels ---

    def build_levels(self, tree: HierarchyTree) -> list[Level]:
        """Partition every node by depth, deepest level first."""
        by_depth: dict[int, Level] = {}
        for node in tree.walk():
            depth = self.depth(tree, node.id)
            by_depth.setdefault(depth, Level(depth=depth)).elements.append(node)
        return [by_depth[depth] for depth in sorted(by_depth, reverse=True)]

    # --- Positioning ---

    def _provisional_circle(self, tree: HierarchyTree, element: HierarchyNode) -> None:
        """Size a group from its already positioned children; size a leaf as a leaf."""
        opts = self.options
        if not element.children:
            element.r = opts.childless_radius(element.is_collapsed)
            return

        children = tree.children_of(element.id)
        padding = opts.padding_for(any(child.is_group for child in children))
        circles = [PackCircle(x=child.x, y=child.y, r=child.r + padding) for child in children]
        enclosing = enclose(circles, self._rng)
        element.x = enclosing.x
        element.y = enclosing.y
        element.r = max(enclosing.r + padding, opts.min_radius)

    def position_elements_at_level(self, elements: list[HierarchyNode]) -> None:
        """Place every element of one level so no two circles overlap.

        Siblings (same parent) are packed together around a local origin,
        then every sibling set is packed as a single cluster circle.
        """
        if not elements:
            return

        sibling_sets: dict[Optional[str], list[HierarchyNode]] = {}
        for element in elements:
            sibling_sets.setdefault(element.parent_id, []).append(element)

        clusters: list[PackCircle] = []
        members: list[list[tuple[HierarchyNode, PackCircle]]] = []
        for siblings in sibling_sets.values():
            padding = self.options.padding_for(any(s.is_group for s in siblings))
            circles = [PackCircle(r=s.r + padding, key=s.id) for s in siblings]
            radius = pack_siblings(circles, self._rng)
            clusters.append(PackCircle(r=radius))
            members.append(list(zip(siblings, circles)))

        pack_siblings(clusters, self._rng)

        for cluster, placed in zip(clusters, members):
            for element, circle in placed:
                element.x = cluster.x + circle.x
                element.y = cluster.y + circle.y

    def cascade_position_to_descendants(self, tree: HierarchyTree, node_id: str, offset: Point) -> None:
        """Shift every strict descendant of ``node_id`` by ``offset``."""
        for descendant in tree.descendants(node_id):
            descendant.x += offset.x
            descendant.y += offset.y

    # --- Driver ---

    def execute(self, tree: HierarchyTree) -> BottomUpResult:
        """Lay out the whole tree, deepest level first.

        The solver is reseeded on every call, so repeated runs agree.  The
        final geometry is recorded as the tree's reset baseline.
        """
        self._rng = random.Random(self.options.seed)
        levels = self.build_levels(tree)
        self.log.debug(f"Bottom-up layout over {len(levels)} levels")

        for level in levels:
            provisional: dict[str, tuple[float, float]] = {}
            for element in level.elements:
                self._provisional_circle(tree, element)
                provisional[element.id] = (element.x, element.y)

            self.position_elements_at_level(level.elements)

            for element in level.elements:
                px, py = provisional[element.id]
                dx = element.x - px
                dy = element.y - py
                if (dx or dy) and element.children:
                    self.cascade_position_to_descendants(tree, element.id, Point(dx, dy))

        # --- Center the root ---
        if self.options.center is not None:
            center_x, center_y = self.options.center
        else:
            canvas = estimate_canvas_size(tree, self.options, log=self.log)
            center_x, center_y = canvas.width / 2, canvas.height / 2

        root = tree.root
        shift = Point(center_x - root.x, center_y - root.y)
        root.x = center_x
        root.y = center_y
        self.cascade_position_to_descendants(tree, root.id, shift)
        tree.capture_original_positions()

        return BottomUpResult(nodes=tree.visible_nodes(), edges=list(tree.edges))
