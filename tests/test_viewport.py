"""Tests for viewport.py: fit-to-view never magnifies and always centers."""

from __future__ import annotations

import pytest

from infra_canvas.engine import build, layout
from infra_canvas.hierarchy import build_hierarchy
from infra_canvas.models import ViewportTransform
from infra_canvas.viewport import content_bounds, fit_to_viewport


def test_empty_tree_is_identity():
    assert fit_to_viewport(build_hierarchy({}), (800, 600)) == ViewportTransform()


def test_small_content_is_centered_not_magnified(place_circles):
    tree = build_hierarchy({"a": {}})
    place_circles(tree, {"a": (0, 0, 15)})
    transform = fit_to_viewport(tree, (800, 600))
    assert transform.scale == 1.0
    assert transform.apply(0, 0) == (400, 300)


def test_large_content_is_scaled_down(place_circles):
    tree = build_hierarchy({"a": {}})
    place_circles(tree, {"a": (500, -200, 1000)})
    transform = fit_to_viewport(tree, (800, 600))

    # Content is 2000 across plus a 50 margin on each side
    assert transform.scale == pytest.approx(600 / 2100)
    assert transform.apply(500, -200) == pytest.approx((400, 300))


def test_virtual_root_is_ignored(infra_vertices):
    tree = build_hierarchy(infra_vertices)
    for node in tree.visible_nodes():
        node.x, node.y, node.r = 0.0, 0.0, 10.0
    tree.root.r = 1e6
    assert content_bounds(tree) == (-10, -10, 10, 10)
    assert fit_to_viewport(tree, (800, 600)).scale == 1.0


@pytest.mark.parametrize("viewport", [(800, 600), (300, 900), (120, 80)])
def test_laid_out_graph_fits_viewport(viewport, infra_vertices):
    tree = layout(build(infra_vertices))
    transform = fit_to_viewport(tree, viewport)
    width, height = viewport

    assert 0 < transform.scale <= 1
    for node in tree.visible_nodes():
        x1, y1 = transform.apply(node.x - node.r, node.y - node.r)
        x2, y2 = transform.apply(node.x + node.r, node.y + node.r)
        assert x1 >= -1e-6 and y1 >= -1e-6
        assert x2 <= width + 1e-6 and y2 <= height + 1e-6
