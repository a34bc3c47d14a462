"""Canvas size heuristic based on hierarchy complexity."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .hierarchy import HierarchyTree
from .models import CanvasSize
from .options import LayoutOptions

logger = logging.getLogger(__name__)

# Per-decade growth for leaf and group counts.
LOG_FACTOR = 0.1
# Growth per hierarchy level.
DEPTH_FACTOR = 0.05
# Padding contributes padding / PADDING_DIVISOR to the scale.
PADDING_DIVISOR = 200


@dataclass(frozen=True)
class HierarchyStats:
    leaf_count: int
    group_count: int
    max_depth: int
    max_children: int


def collect_stats(tree: HierarchyTree) -> HierarchyStats:
    """Count leaves and groups and measure depth.

    A node without children counts as a leaf.  The virtual root is not a
    group for counting purposes but it does occupy depth 0.
    """
    leaves = 0
    groups = 0
    max_depth = 0
    max_children = 0
    for node in tree.walk():
        max_depth = max(max_depth, node.depth)
        if not node.children:
            if not node.is_virtual:
                leaves += 1
            continue
        max_children = max(max_children, len(node.children))
        if not node.is_virtual:
            groups += 1
    return HierarchyStats(
        leaf_count=leaves,
        group_count=groups,
        max_depth=max_depth,
        max_children=max_children,
    )


def estimate_canvas_size(
    tree: HierarchyTree,
    options: Optional[LayoutOptions] = None,
    log: Optional[logging.Logger] = None,
) -> CanvasSize:
    """Scale the base canvas by ``max(1, 1 + leaf + group + depth + padding)``.

    Leaf and group terms are logarithmic so very large graphs don't blow up
    the canvas, while deep or wide hierarchies still get breathing room.
    """
    opts = options or LayoutOptions()
    log = log or logger
    stats = collect_stats(tree)

    leaf_factor = math.log10(stats.leaf_count + 1) * LOG_FACTOR
    group_factor = math.log10(stats.group_count + 1) * LOG_FACTOR
    depth_factor = stats.max_depth * DEPTH_FACTOR
    padding_factor = opts.node_padding / PADDING_DIVISOR

    scale = max(1.0, 1 + leaf_factor + group_factor + depth_factor + padding_factor)

    log.debug(
        f"Canvas scaling: {stats.leaf_count} leaves, {stats.group_count} groups, "
        f"depth {stats.max_depth} -> leaf({leaf_factor:.2f}) + group({group_factor:.2f}) "
        f"+ depth({depth_factor:.2f}) + padding({padding_factor:.2f}) = {scale:.2f}x"
    )
    return CanvasSize(width=opts.width * scale, height=opts.height * scale, scale=scale)
