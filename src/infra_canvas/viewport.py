"""Fit a positioned tree into a bounded viewport."""

from __future__ import annotations

import logging
from typing import Optional

from .hierarchy import HierarchyTree
from .models import ViewportTransform
from .options import LayoutOptions

logger = logging.getLogger(__name__)


def content_bounds(tree: HierarchyTree) -> Optional[tuple[float, float, float, float]]:
    """Bounding box ``(min_x, min_y, max_x, max_y)`` of all visible circles."""
    nodes = tree.visible_nodes()
    if not nodes:
        return None
    min_x = min(node.x - node.r for node in nodes)
    min_y = min(node.y - node.r for node in nodes)
    max_x = max(node.x + node.r for node in nodes)
    max_y = max(node.y + node.r for node in nodes)
    return (min_x, min_y, max_x, max_y)


def fit_to_viewport(
    tree: HierarchyTree,
    viewport_size: tuple[float, float],
    options: Optional[LayoutOptions] = None,
    log: Optional[logging.Logger] = None,
) -> ViewportTransform:
    """Scale and translate so the content is centered in the viewport.

    The scale never exceeds 1, so small graphs are centered rather than magnified.
    An empty tree yields the identity transform.
    """
    opts = options or LayoutOptions()
    log = log or logger

    bounds = content_bounds(tree)
    if bounds is None:
        return ViewportTransform()

    min_x, min_y, max_x, max_y = bounds
    margin = opts.viewport_margin
    content_width = max(max_x - min_x + 2 * margin, opts.min_radius)
    content_height = max(max_y - min_y + 2 * margin, opts.min_radius)
    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2

    viewport_width, viewport_height = viewport_size
    scale = min(viewport_width / content_width, viewport_height / content_height, 1.0)
    scale = max(scale, 0.0)

    transform = ViewportTransform(
        scale=scale,
        translate_x=viewport_width / 2 - center_x * scale,
        translate_y=viewport_height / 2 - center_y * scale,
    )
    log.debug(f"Fit to view: scale={scale:.2f}, translate=({transform.translate_x:.0f}, {transform.translate_y:.0f})")
    return transform
