"""Tests for sizing.py: hierarchy statistics and the canvas scale heuristic."""

from __future__ import annotations

import math

import pytest

from infra_canvas.hierarchy import build_hierarchy
from infra_canvas.options import LayoutOptions
from infra_canvas.sizing import collect_stats, estimate_canvas_size


def test_stats_for_infra_graph(infra_vertices):
    stats = collect_stats(build_hierarchy(infra_vertices))
    assert stats.leaf_count == 6
    assert stats.group_count == 5
    assert stats.max_depth == 4
    assert stats.max_children == 3


def test_single_leaf_scale():
    size = estimate_canvas_size(build_hierarchy({"a": {}}))
    expected = 1 + math.log10(2) * 0.1 + 5 / 200
    assert size.scale == pytest.approx(expected)
    assert size.width == pytest.approx(800 * expected)
    assert size.height == pytest.approx(600 * expected)


def test_empty_tree_is_base_size():
    size = estimate_canvas_size(build_hierarchy({}), LayoutOptions(node_padding=0))
    assert size.scale == 1.0
    assert (size.width, size.height) == (800, 600)


def test_scale_never_below_one():
    size = estimate_canvas_size(build_hierarchy({}), LayoutOptions(node_padding=-1000))
    assert size.scale == 1.0


def test_scale_grows_with_leaves():
    small = {f"n{i}": {"parentId": "g"} for i in range(3)}
    small["g"] = {"isGroup": True}
    large = {f"n{i}": {"parentId": "g"} for i in range(300)}
    large["g"] = {"isGroup": True}
    assert estimate_canvas_size(build_hierarchy(large)).scale > estimate_canvas_size(build_hierarchy(small)).scale


def test_scale_grows_with_depth(chain_vertices):
    shallow = estimate_canvas_size(build_hierarchy({"root": {}, "leaf": {"parentId": "root"}}))
    deep = estimate_canvas_size(build_hierarchy(chain_vertices))
    assert deep.scale > shallow.scale


def test_custom_base_size():
    size = estimate_canvas_size(build_hierarchy({"a": {}}), LayoutOptions(width=100, height=50))
    assert size.width / size.height == pytest.approx(2.0)
