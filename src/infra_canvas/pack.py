"""
Recursive circle-packing layout.

Works leaves-to-root over the containment tree:

  1. Every leaf is a circle of ``node_radius`` with weight 1 (a collapsed
     group uses ``collapsed_radius``).
  2. A group packs its children (heaviest first) tangentially around its own
     local origin, each child radius inflated by the group's padding so that
     siblings keep a gap and stay clear of the group's rim.
  3. The group's radius is the minimal enclosing radius of the packed
     children plus the padding.

A second, root-to-leaves pass turns the local offsets into absolute canvas
coordinates, with the root centered on the estimated canvas.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from .geometry import PackCircle, pack_siblings
from .hierarchy import HierarchyTree
from .options import LayoutOptions
from .sizing import estimate_canvas_size

logger = logging.getLogger(__name__)


def compute_weights(tree: HierarchyTree) -> dict[str, float]:
    """Leaf weight is 1; a group weighs the sum of its children."""
    weights: dict[str, float] = {}
    for node in reversed(list(tree.walk())):
        if node.children:
            weights[node.id] = sum(weights[child_id] for child_id in node.children)
        else:
            weights[node.id] = 1.0
    return weights


def pack_layout(
    tree: HierarchyTree,
    options: Optional[LayoutOptions] = None,
    log: Optional[logging.Logger] = None,
) -> HierarchyTree:
    """Assign every node an absolute circle using recursive circle packing.

    The tree is mutated in place and returned for chaining; the result is
    also recorded as the tree's reset baseline.
    """
    opts = options or LayoutOptions()
    log = log or logger
    rng = random.Random(opts.seed)
    weights = compute_weights(tree)

    # --- Pass 1: pack children around each group's local origin ---
    offsets: dict[str, tuple[float, float]] = {tree.root_id: (0.0, 0.0)}
    for node in reversed(list(tree.walk())):
        if not node.children:
            node.r = opts.childless_radius(node.is_collapsed)
            continue

        children = tree.children_of(node.id)
        padding = opts.padding_for(any(child.is_group for child in children))
        ordered = sorted(children, key=lambda child: -weights[child.id])
        circles = [PackCircle(r=child.r + padding, key=child.id) for child in ordered]

        enclosing = pack_siblings(circles, rng)
        for circle in circles:
            offsets[circle.key] = (circle.x, circle.y)
        node.r = max(enclosing + padding, opts.min_radius)

    # --- Pass 2: local offsets to absolute coordinates ---
    if opts.center is not None:
        center_x, center_y = opts.center
    else:
        canvas = estimate_canvas_size(tree, opts, log=log)
        center_x, center_y = canvas.width / 2, canvas.height / 2

    for node in tree.walk():
        dx, dy = offsets[node.id]
        if node.parent_id is None:
            node.x = center_x + dx
            node.y = center_y + dy
        else:
            parent = tree.node(node.parent_id)
            node.x = parent.x + dx
            node.y = parent.y + dy

    tree.capture_original_positions()
    log.debug(f"Pack layout: root r={tree.root.r:.1f} at ({tree.root.x:.1f}, {tree.root.y:.1f})")
    return tree
