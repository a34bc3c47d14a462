"""
Group collapsing for Infra-Canvas.

Collapsing a group folds its whole sub-hierarchy into the group itself.  It is
a pure transform on the input data, applied before the tree is built:

  1. Every strict descendant of a collapsed group is hidden.
  2. The collapsed group stays a group (it is still a routing boundary) but
     is flagged ``is_collapsed`` and has no children left, so the layouts
     size it as a single circle of ``collapsed_radius``.
  3. Edge endpoints that were hidden are redirected to their nearest visible
     ancestor, which is the outermost collapsed group above them.
  4. Edges that collapse onto a single vertex this way are internal to the
     group and dropped.  Self-loops present in the input are kept.

Unknown ids and ids that are not groups are ignored with a warning.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from .hierarchy import EdgeInput, VertexInput, coerce_edge, coerce_vertex
from .models import Edge, Vertex

logger = logging.getLogger(__name__)


def _parent_chain(vertex_id: str, vertices: Mapping[str, Vertex]) -> list[str]:
    """Ancestor ids from the nearest parent upward; stops at dangling or repeated ids."""
    chain: list[str] = []
    seen = {vertex_id}
    parent_id = vertices[vertex_id].parent_id
    while parent_id is not None and parent_id in vertices and parent_id not in seen:
        chain.append(parent_id)
        seen.add(parent_id)
        parent_id = vertices[parent_id].parent_id
    return chain


def collapse_groups(
    vertices: Mapping[str, VertexInput],
    edges: Iterable[EdgeInput],
    collapsed_ids: Iterable[str],
    log: Optional[logging.Logger] = None,
) -> tuple[dict[str, Vertex], list[Edge]]:
    """Fold the given groups into single vertices and redirect their edges.

    Args:
        vertices:      Mapping of vertex id to ``Vertex`` (or a plain dict).
        edges:         Edges between those vertices.
        collapsed_ids: Groups to collapse.
        log:           Logger for ignored ids and dropped edges.

    Returns:
        ``(vertices, edges)`` ready for ``build_hierarchy``.
    """
    log = log or logger
    source = {vertex_id: coerce_vertex(data) for vertex_id, data in vertices.items()}

    parent_ids = {v.parent_id for v in source.values() if v.parent_id is not None}
    collapsed: set[str] = set()
    for group_id in collapsed_ids:
        vertex = source.get(group_id)
        if vertex is None:
            log.warning(f"Cannot collapse {group_id!r}: unknown vertex")
        elif not (vertex.is_group or vertex.type == "group" or group_id in parent_ids):
            log.warning(f"Cannot collapse {group_id!r}: not a group")
        else:
            collapsed.add(group_id)

    # --- Step 1: Hide descendants; remember where each one folds to ---
    folded_into: dict[str, str] = {}
    for vertex_id in source:
        chain = _parent_chain(vertex_id, source)
        outermost = next((a for a in reversed(chain) if a in collapsed), None)
        if outermost is not None:
            folded_into[vertex_id] = outermost

    # --- Step 2: Keep visible vertices, flag the collapsed ones ---
    result: dict[str, Vertex] = {}
    for vertex_id, vertex in source.items():
        if vertex_id in folded_into:
            continue
        if vertex_id in collapsed:
            vertex = vertex.model_copy(update={"is_group": True, "is_collapsed": True})
        result[vertex_id] = vertex

    # --- Step 3: Redirect edges to visible ancestors ---
    redirected: list[Edge] = []
    dropped = 0
    for index, data in enumerate(edges):
        edge = coerce_edge(data, index)
        source_id = folded_into.get(edge.source_id, edge.source_id)
        target_id = folded_into.get(edge.target_id, edge.target_id)
        if (source_id, target_id) == (edge.source_id, edge.target_id):
            redirected.append(edge)
            continue
        if source_id == target_id:
            dropped += 1
            continue
        redirected.append(edge.model_copy(update={"source_id": source_id, "target_id": target_id}))

    log.debug(
        f"Collapsed {len(collapsed)} group(s): hid {len(folded_into)} vertices, "
        f"dropped {dropped} internal edge(s)"
    )
    return result, redirected
