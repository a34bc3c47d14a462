"""YAML graph documents for Infra-Canvas.

Supports two input formats:
1. Flat vertex map, the shape collaborators hand over (``vertices:`` keyed by
   id, containment through ``parentId``)
2. Nested tree format (``tree:`` list of vertices with ``children:``), which is
   flattened into the vertex map

Both may carry ``title``, ``theme``, ``algorithm``, ``options`` and ``edges``.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import DocumentError
from .hierarchy import HierarchyTree
from .models import Edge, GraphDocument, RoutingResult, Vertex, ViewportTransform


def parse_yaml(yaml_str: str) -> GraphDocument:
    """Parse a YAML string into a GraphDocument."""
    data = yaml.safe_load(yaml_str)
    if not data:
        raise DocumentError("Empty YAML input")
    if not isinstance(data, dict):
        raise DocumentError(f"Expected a mapping at the top level, got {type(data).__name__}")

    if "tree" in data:
        vertices = _flatten_tree(data["tree"])
    else:
        vertices = _parse_vertex_map(data.get("vertices") or {})

    return GraphDocument(
        title=data.get("title", "Untitled Graph"),
        theme=data.get("theme", "dark"),
        algorithm=data.get("algorithm", "pack"),
        options=data.get("options") or {},
        vertices=vertices,
        edges=[Edge.model_validate(edge) for edge in data.get("edges") or []],
    )


def parse_file(path: str) -> GraphDocument:
    """Parse a YAML file into a GraphDocument."""
    content = Path(path).read_text()
    return parse_yaml(content)


def _parse_vertex_map(data: Any) -> dict[str, Vertex]:
    if isinstance(data, list):
        # A list of vertices, each carrying its own id
        result = {}
        for item in data:
            if "id" not in item:
                raise DocumentError(f"Vertex without an id: {item!r}")
            fields = {k: v for k, v in item.items() if k != "id"}
            result[str(item["id"])] = Vertex.model_validate(fields)
        return result
    if not isinstance(data, dict):
        raise DocumentError("'vertices' must be a mapping of id to vertex")
    return {str(vertex_id): Vertex.model_validate(fields or {}) for vertex_id, fields in data.items()}


def _flatten_tree(items: list[dict], parent_id: Optional[str] = None) -> dict[str, Vertex]:
    """Flatten the nested format; nesting sets ``parentId`` and ``isGroup``."""
    result: dict[str, Vertex] = {}
    for item in items or []:
        if "id" not in item:
            raise DocumentError(f"Tree entry without an id: {item!r}")
        vertex_id = str(item["id"])
        if vertex_id in result:
            raise DocumentError(f"Duplicate vertex id: {vertex_id!r}")

        children = item.get("children") or []
        fields = {k: v for k, v in item.items() if k not in ("id", "children")}
        if parent_id is not None:
            fields["parentId"] = parent_id
        if children:
            fields["isGroup"] = True
        result[vertex_id] = Vertex.model_validate(fields)

        for child_id, child in _flatten_tree(children, vertex_id).items():
            if child_id in result:
                raise DocumentError(f"Duplicate vertex id: {child_id!r}")
            result[child_id] = child
    return result


def document_to_yaml(document: GraphDocument) -> str:
    """Serialize a GraphDocument back to the flat YAML format."""
    data: dict[str, Any] = {
        "title": document.title,
        "theme": document.theme,
        "algorithm": document.algorithm,
    }
    if document.options:
        data["options"] = document.options

    data["vertices"] = {}
    for vertex_id, vertex in document.vertices.items():
        data["vertices"][vertex_id] = _compact(vertex.model_dump(by_alias=True))

    data["edges"] = [_compact(edge.model_dump(by_alias=True)) for edge in document.edges]
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


_FLAGS = ("isGroup", "isCollapsed")


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop unset or empty fields so the YAML stays readable."""
    return {
        k: v for k, v in values.items()
        if v is not None and v != {} and not (k in _FLAGS and v is False) and not (k == "type" and v == "default")
    }


def layout_to_yaml(
    tree: HierarchyTree,
    routing: Optional[RoutingResult] = None,
    transform: Optional[ViewportTransform] = None,
    title: Optional[str] = None,
) -> str:
    """Serialize layout results: node circles, routed segments, skipped edges, viewport."""
    data: dict[str, Any] = {}
    if title:
        data["title"] = title

    data["nodes"] = {}
    for node in tree.visible_nodes():
        parent = tree.parent_of(node.id)
        data["nodes"][node.id] = {
            "type": node.type,
            "group": node.is_group,
            "parent": parent.id if parent is not None and not parent.is_virtual else None,
            "depth": node.depth,
            "x": round(node.x, 3),
            "y": round(node.y, 3),
            "r": round(node.r, 3),
            **({"collapsed": True} if node.is_collapsed else {}),
        }

    if routing is not None:
        data["edges"] = []
        for routed in routing.routed:
            data["edges"].append({
                "id": routed.edge.key,
                "source": routed.edge.source_id,
                "target": routed.edge.target_id,
                "segments": [
                    {
                        "from": [round(seg.x1, 3), round(seg.y1, 3)],
                        "to": [round(seg.x2, 3), round(seg.y2, 3)],
                        "home": seg.is_home,
                        **({"foreign_tiers": list(seg.foreign_tiers)} if seg.foreign_tiers else {}),
                    }
                    for seg in routed.segments
                ],
            })
        if routing.skipped:
            data["skipped_edges"] = [
                {"id": skipped.edge.key, "missing": list(skipped.missing_ids)}
                for skipped in routing.skipped
            ]

    if transform is not None:
        data["viewport"] = {
            "scale": round(transform.scale, 6),
            "translate": [round(transform.translate_x, 3), round(transform.translate_y, 3)],
        }

    return yaml.dump(data, default_flow_style=False, sort_keys=False)
