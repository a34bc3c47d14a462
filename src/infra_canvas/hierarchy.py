"""
Hierarchy builder for Infra-Canvas.

Turns the flat vertex map into a rooted containment tree:

  1. Every vertex becomes an arena record keyed by its id.
  2. Each vertex is attached under its ``parent_id`` when that parent exists.
     A parent id that names no vertex is treated as "no parent".
  3. Parent chains are walked once to reject cycles (``StructuralError``).
  4. Parentless vertices are root candidates.  Exactly one candidate becomes
     the root; zero or several are adopted by a synthetic ``virtual-root``
     group that is counted for depth but never rendered or weighed.
  5. Depths are assigned top-down (root = 0).

The resulting ``HierarchyTree`` is the only owner of node geometry.  All
lookups go through the arena by id; nothing else holds node references.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from .errors import StructuralError
from .models import Edge, HierarchyNode, Vertex

logger = logging.getLogger(__name__)

VIRTUAL_ROOT_ID = "virtual-root"


class HierarchyTree:
    """An id-indexed arena of ``HierarchyNode`` records plus the edge list."""

    def __init__(self, nodes: dict[str, HierarchyNode], root_id: str, edges: list[Edge]):
        self.nodes = nodes
        self.root_id = root_id
        self.edges = edges
        self._incidence: Optional[dict[str, list[int]]] = None

    # --- Lookup ---

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> HierarchyNode:
        return self.nodes[node_id]

    @property
    def root(self) -> HierarchyNode:
        return self.nodes[self.root_id]

    def children_of(self, node_id: str) -> list[HierarchyNode]:
        return [self.nodes[child_id] for child_id in self.nodes[node_id].children]

    def parent_of(self, node_id: str) -> Optional[HierarchyNode]:
        parent_id = self.nodes[node_id].parent_id
        return self.nodes[parent_id] if parent_id is not None else None

    # --- Traversal ---

    def walk(self, start_id: Optional[str] = None) -> Iterator[HierarchyNode]:
        """Pre-order traversal from ``start_id`` (default: the root)."""
        stack = [start_id if start_id is not None else self.root_id]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def descendants(self, node_id: str) -> list[HierarchyNode]:
        """All strict descendants of ``node_id`` in pre-order."""
        nodes = list(self.walk(node_id))
        return nodes[1:]

    def ancestors(self, node_id: str, include_self: bool = False) -> list[HierarchyNode]:
        """Ancestors from the nearest parent up to the root."""
        result = [self.nodes[node_id]] if include_self else []
        parent_id = self.nodes[node_id].parent_id
        while parent_id is not None:
            parent = self.nodes[parent_id]
            result.append(parent)
            parent_id = parent.parent_id
        return result

    def visible_nodes(self) -> list[HierarchyNode]:
        return [node for node in self.walk() if not node.is_virtual]

    def groups(self) -> list[HierarchyNode]:
        return [node for node in self.walk() if node.is_group and not node.is_virtual]

    def leaves(self) -> list[HierarchyNode]:
        return [node for node in self.walk() if not node.is_group]

    @property
    def max_depth(self) -> int:
        return max(node.depth for node in self.nodes.values())

    # --- Edges ---

    def edges_touching(self, node_ids: Iterable[str]) -> list[Edge]:
        """Edges with at least one endpoint in ``node_ids``, in edge-list order."""
        if self._incidence is None:
            incidence: dict[str, list[int]] = defaultdict(list)
            for index, edge in enumerate(self.edges):
                incidence[edge.source_id].append(index)
                if edge.target_id != edge.source_id:
                    incidence[edge.target_id].append(index)
            self._incidence = dict(incidence)

        indices: set[int] = set()
        for node_id in node_ids:
            indices.update(self._incidence.get(node_id, ()))
        return [self.edges[index] for index in sorted(indices)]

    # --- Geometry snapshots ---

    def capture_original_positions(self) -> None:
        """Remember current geometry as the post-layout baseline."""
        for node in self.nodes.values():
            node.original_x = node.x
            node.original_y = node.y
            node.original_r = node.r

    def restore_original_positions(self) -> None:
        for node in self.nodes.values():
            node.x = node.original_x
            node.y = node.original_y
            node.r = node.original_r


VertexInput = Union[Vertex, Mapping[str, Any]]
EdgeInput = Union[Edge, Mapping[str, Any]]


def coerce_vertex(data: VertexInput) -> Vertex:
    if isinstance(data, Vertex):
        return data
    return Vertex.model_validate(dict(data))


def coerce_edge(data: EdgeInput, index: int) -> Edge:
    edge = data if isinstance(data, Edge) else Edge.model_validate(dict(data))
    if not edge.id:
        edge = edge.model_copy(update={"id": f"edge-{index}"})
    return edge


def _check_for_cycles(parents: Mapping[str, Optional[str]]) -> None:
    """Raise ``StructuralError`` if any parent chain loops back on itself."""
    done: set[str] = set()
    for start in parents:
        if start in done:
            continue
        path: list[str] = []
        on_path: set[str] = set()
        current: Optional[str] = start
        while current is not None and current not in done:
            if current in on_path:
                cycle = path[path.index(current):] + [current]
                raise StructuralError(cycle)
            path.append(current)
            on_path.add(current)
            current = parents.get(current)
        done.update(path)


def build_hierarchy(
    vertices: Mapping[str, VertexInput],
    edges: Iterable[EdgeInput] = (),
    log: Optional[logging.Logger] = None,
) -> HierarchyTree:
    """Build the containment tree from a flat vertex map.

    Args:
        vertices: Mapping of vertex id to ``Vertex`` (or a plain dict).
        edges:    Edges to carry along for routing; unknown endpoints are kept
                  here and reported later by the router.
        log:      Logger to report recoverable inconsistencies on.

    Returns:
        HierarchyTree with depths assigned and all geometry zeroed.

    Raises:
        StructuralError: If the parent relation contains a cycle.
    """
    log = log or logger

    records: dict[str, HierarchyNode] = {}
    for vertex_id, data in vertices.items():
        vertex = coerce_vertex(data)
        records[vertex_id] = HierarchyNode(
            id=vertex_id,
            vertex=vertex,
            is_group=vertex.is_group or vertex.type == "group",
        )

    # --- Step 1: Resolve parents (dangling references mean "no parent") ---
    parents: dict[str, Optional[str]] = {}
    for vertex_id, record in records.items():
        parent_id = record.vertex.parent_id
        if parent_id is not None and parent_id not in records:
            log.warning(f"Vertex {vertex_id!r} names unknown parent {parent_id!r}; treating it as a root")
            parent_id = None
        parents[vertex_id] = parent_id

    # --- Step 2: Reject cycles before linking anything ---
    _check_for_cycles(parents)

    # --- Step 3: Link children and collect root candidates ---
    candidates: list[str] = []
    for vertex_id, parent_id in parents.items():
        if parent_id is None:
            candidates.append(vertex_id)
            continue
        parent = records[parent_id]
        parent.children.append(vertex_id)
        parent.is_group = True
        records[vertex_id].parent_id = parent_id

    # --- Step 4: Pick or synthesize the root ---
    if len(candidates) == 1:
        root_id = candidates[0]
    else:
        root_id = VIRTUAL_ROOT_ID
        while root_id in records:
            root_id = f"_{root_id}"
        records[root_id] = HierarchyNode(
            id=root_id,
            vertex=None,
            children=list(candidates),
            is_group=True,
            is_virtual=True,
        )
        for candidate in candidates:
            records[candidate].parent_id = root_id
        log.debug(f"Synthesized {root_id!r} over {len(candidates)} root candidates")

    tree = HierarchyTree(
        nodes=records,
        root_id=root_id,
        edges=[coerce_edge(edge, index) for index, edge in enumerate(edges)],
    )

    # --- Step 5: Depths, top-down ---
    for node in tree.walk():
        if node.parent_id is not None:
            node.depth = records[node.parent_id].depth + 1

    log.debug(f"Built hierarchy: {len(records)} nodes, root {root_id!r}, max depth {tree.max_depth}")
    return tree
