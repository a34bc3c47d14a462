"""Shared fixtures: a small hand-built infrastructure graph and a random graph factory."""

from __future__ import annotations

import itertools
import random

import pytest

from infra_canvas.hierarchy import HierarchyTree


# ─── Graph data ───────────────────────────────────────────────────────────────


def make_infra_vertices() -> dict[str, dict]:
    """private-network → cluster1 → app1..app3 → devices, plus two public IPs at the top."""
    return {
        "private-network": {"type": "network", "isGroup": True, "label": "Private Network"},
        "cluster1": {"type": "cluster", "parentId": "private-network", "isGroup": True},
        "app1": {"type": "application", "parentId": "cluster1", "isGroup": True},
        "app2": {"type": "application", "parentId": "cluster1", "isGroup": True},
        "app3": {"type": "application", "parentId": "cluster1", "isGroup": True},
        "node1-1": {"type": "device", "parentId": "app1"},
        "node1-2": {"type": "device", "parentId": "app1"},
        "node2-1": {"type": "device", "parentId": "app2"},
        "node3-1": {"type": "device", "parentId": "app3"},
        "public1": {"type": "public-ip", "label": "Public IP 1"},
        "public2": {"type": "public-ip", "label": "Public IP 2"},
    }


def make_infra_edges() -> list[dict]:
    return [
        {"id": "e1", "sourceId": "node1-1", "targetId": "node2-1"},
        {"id": "e2", "sourceId": "public1", "targetId": "node1-1"},
    ]


def make_chain_vertices() -> dict[str, dict]:
    """Single-rooted chain root → cluster → app → leaf."""
    return {
        "root": {"type": "network", "isGroup": True},
        "cluster": {"type": "cluster", "parentId": "root", "isGroup": True},
        "app": {"type": "application", "parentId": "cluster", "isGroup": True},
        "leaf": {"type": "device", "parentId": "app"},
    }


GROUP_TYPES = ["network", "cluster", "application"]


def make_random_graph(seed: int, max_depth: int = 4, max_children: int = 4) -> tuple[dict, list]:
    """Random forest of groups and devices with random cross edges."""
    rng = random.Random(seed)
    counter = itertools.count()
    vertices: dict[str, dict] = {}

    def grow(parent_id, depth):
        for _ in range(rng.randint(1, max_children)):
            vertex_id = f"v{next(counter)}"
            is_group = depth < max_depth - 1 and rng.random() < 0.5
            vertex = {
                "type": GROUP_TYPES[min(depth, len(GROUP_TYPES) - 1)] if is_group else "device",
                "isGroup": is_group,
            }
            if parent_id is not None:
                vertex["parentId"] = parent_id
            vertices[vertex_id] = vertex
            if is_group:
                grow(vertex_id, depth + 1)

    grow(None, 0)

    ids = list(vertices)
    edges = []
    for index in range(len(ids) // 2):
        source, target = rng.choice(ids), rng.choice(ids)
        edges.append({"id": f"r{index}", "sourceId": source, "targetId": target})
    return vertices, edges


def place(tree: HierarchyTree, circles: dict[str, tuple[float, float, float]]) -> None:
    """Set absolute ``(x, y, r)`` circles by node id."""
    for node_id, (x, y, r) in circles.items():
        node = tree.node(node_id)
        node.x, node.y, node.r = x, y, r


# ─── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def infra_vertices() -> dict[str, dict]:
    return make_infra_vertices()


@pytest.fixture
def infra_edges() -> list[dict]:
    return make_infra_edges()


@pytest.fixture
def chain_vertices() -> dict[str, dict]:
    return make_chain_vertices()


@pytest.fixture
def random_graph():
    return make_random_graph


@pytest.fixture
def place_circles():
    return place
