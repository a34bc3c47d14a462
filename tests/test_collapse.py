"""Tests for collapse.py: folding groups into single circles and redirecting their edges."""

from __future__ import annotations

import logging

import pytest

from infra_canvas.collapse import collapse_groups
from infra_canvas.engine import GraphSession, build, layout, route
from infra_canvas.options import LayoutOptions


# ─── Helpers ──────────────────────────────────────────────────────────────────


def endpoints(edges) -> list[tuple[str, str]]:
    return [(edge.source_id, edge.target_id) for edge in edges]


# ─── collapse_groups ──────────────────────────────────────────────────────────


class TestCollapseGroups:
    def test_descendants_are_hidden(self, infra_vertices, infra_edges):
        vertices, _ = collapse_groups(infra_vertices, infra_edges, {"app1"})
        assert "node1-1" not in vertices
        assert "node1-2" not in vertices
        assert {"app1", "app2", "node2-1"} <= set(vertices)

    def test_collapsed_group_is_flagged(self, infra_vertices, infra_edges):
        vertices, _ = collapse_groups(infra_vertices, infra_edges, {"app1"})
        assert vertices["app1"].is_collapsed
        assert vertices["app1"].is_group
        assert not vertices["app2"].is_collapsed

    def test_edges_redirect_to_collapsed_group(self, infra_vertices, infra_edges):
        _, edges = collapse_groups(infra_vertices, infra_edges, {"app1"})
        assert endpoints(edges) == [("app1", "node2-1"), ("public1", "app1")]
        assert [edge.id for edge in edges] == ["e1", "e2"]

    def test_edges_inside_collapsed_group_are_dropped(self, infra_vertices, infra_edges):
        # e1 joins two devices that both live inside cluster1
        _, edges = collapse_groups(infra_vertices, infra_edges, {"cluster1"})
        assert endpoints(edges) == [("public1", "cluster1")]

    def test_input_self_loops_are_kept(self, infra_vertices):
        loop = [{"id": "loop", "sourceId": "public1", "targetId": "public1"}]
        _, edges = collapse_groups(infra_vertices, loop, {"cluster1"})
        assert endpoints(edges) == [("public1", "public1")]

    def test_nested_collapse_folds_into_outermost(self, infra_vertices, infra_edges):
        vertices, edges = collapse_groups(infra_vertices, infra_edges, {"app1", "private-network"})
        assert "app1" not in vertices
        assert "cluster1" not in vertices
        assert endpoints(edges) == [("public1", "private-network")]

    def test_unknown_endpoints_pass_through(self, infra_vertices):
        dangling = [{"id": "d", "sourceId": "node1-1", "targetId": "ghost"}]
        _, edges = collapse_groups(infra_vertices, dangling, {"app1"})
        assert endpoints(edges) == [("app1", "ghost")]

    @pytest.mark.parametrize("group_id", ["nope", "node1-1"])
    def test_unknown_or_leaf_ids_are_ignored(self, group_id, infra_vertices, infra_edges, caplog):
        with caplog.at_level(logging.WARNING):
            vertices, edges = collapse_groups(infra_vertices, infra_edges, {group_id})
        assert set(vertices) == set(infra_vertices)
        assert endpoints(edges) == [("node1-1", "node2-1"), ("public1", "node1-1")]
        assert group_id in caplog.text

    def test_parent_cycles_do_not_hang(self):
        cyclic = {"a": {"parentId": "b"}, "b": {"parentId": "a"}}
        vertices, _ = collapse_groups(cyclic, [], {"a"})
        assert "a" in vertices


# ─── Through the pipeline ─────────────────────────────────────────────────────


class TestCollapsedLayout:
    @pytest.mark.parametrize("algorithm", ["pack", "bottomUp"])
    def test_collapsed_group_gets_collapsed_radius(self, algorithm, infra_vertices, infra_edges):
        vertices, edges = collapse_groups(infra_vertices, infra_edges, {"app1"})
        tree = layout(build(vertices, edges), algorithm, LayoutOptions(collapsed_radius=30))
        assert tree.node("app1").r == 30
        assert tree.node("app1").children == []
        assert tree.node("app1").is_collapsed

    def test_redirected_edges_route(self, infra_vertices, infra_edges):
        vertices, edges = collapse_groups(infra_vertices, infra_edges, {"app1"})
        tree = layout(build(vertices, edges))
        result = route(tree)
        assert not result.skipped
        assert [routed.edge.id for routed in result.routed] == ["e1", "e2"]


class TestSessionCollapse:
    def test_collapsed_ids_option(self, infra_vertices, infra_edges):
        session = GraphSession(infra_vertices, infra_edges, LayoutOptions(collapsed_ids=frozenset({"app1"})))
        assert "node1-1" not in session.tree
        assert session.tree.node("app1").is_collapsed

    def test_toggle_collapse_round_trip(self, infra_vertices, infra_edges):
        session = GraphSession(infra_vertices, infra_edges)

        session.toggle_collapse("cluster1")
        assert "app1" not in session.tree
        assert [routed.edge.id for routed in session.route().routed] == ["e2"]

        session.toggle_collapse("cluster1")
        assert "app1" in session.tree
        assert not session.tree.node("cluster1").is_collapsed
        assert [routed.edge.id for routed in session.route().routed] == ["e1", "e2"]

    def test_toggle_unknown_vertex(self, infra_vertices):
        session = GraphSession(infra_vertices)
        with pytest.raises(KeyError):
            session.toggle_collapse("nope")
