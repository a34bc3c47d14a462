"""
Data models for Infra-Canvas: the containment graph.

Infrastructure graphs arrive as a flat collection of vertices whose
``parentId`` links describe a strict containment hierarchy:

    network          a network boundary (the broadest scope)
    └── cluster          a compute cluster
        └── application      a deployed application
            └── device           a single node, pod or service (the atomic unit)

Vertices that contain other vertices are **groups** and are drawn as
enclosing circles.  Vertices without children are **leaves**.  Directed
**edges** connect any two vertices and may cross containment boundaries.

Two families of models live here:

* Input models (pydantic): ``Vertex`` and ``Edge``, exactly as collaborators
  hand them over.  Wire names (``parentId``, ``isGroup``, ``sourceId``,
  ``targetId``) are accepted as aliases next to the snake_case field names.
* Layout records (dataclasses): ``HierarchyNode`` is the arena record owned by
  a ``HierarchyTree``; only its ``x``, ``y`` and ``r`` change after the tree is
  built.  The remaining dataclasses are results handed back to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------

class Vertex(BaseModel):
    """A vertex of the infrastructure graph.

    Attributes:
        type:       Semantic tag ("network", "cluster", "application", "device", ...).
                    For groups the type doubles as the routing tier.
        parent_id:  Id of the containing vertex, if any.
        is_group:   True when the vertex is a container.
        is_collapsed: True when the group has been folded into a single circle.
        label:      Optional display label; ``get_label()`` falls back to the id.
        attributes: Opaque display attributes, carried through untouched.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: str = "default"
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    is_group: bool = Field(default=False, alias="isGroup")
    is_collapsed: bool = Field(default=False, alias="isCollapsed")
    label: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class Edge(BaseModel):
    """A directed relationship between two vertices."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    source_id: str = Field(alias="sourceId")
    target_id: str = Field(alias="targetId")
    type: str = "default"
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        """Stable identifier used to index routed results."""
        return self.id if self.id else f"{self.source_id}->{self.target_id}"


# ---------------------------------------------------------------------------
# Arena record
# ---------------------------------------------------------------------------

@dataclass
class HierarchyNode:
    """A node of the containment tree.

    Structure (``parent_id``, ``children``, ``depth``) is fixed once the tree
    is built.  Geometry (``x``, ``y``, ``r``) is absolute canvas space after
    layout and is the only state mutated by layout and drag.
    """
    id: str
    vertex: Optional[Vertex]
    parent_id: Optional[str] = None
    children: list[str] = field(default_factory=list)
    depth: int = 0
    is_group: bool = False
    is_virtual: bool = False
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0
    original_x: float = 0.0
    original_y: float = 0.0
    original_r: float = 0.0

    @property
    def type(self) -> str:
        if self.vertex is None:
            return "virtual"
        return self.vertex.type

    @property
    def is_collapsed(self) -> bool:
        return self.vertex is not None and self.vertex.is_collapsed

    def get_label(self) -> str:
        if self.vertex is not None and self.vertex.label:
            return self.vertex.label
        return self.id

    def circle(self) -> Circle:
        return Circle(x=self.x, y=self.y, r=self.r)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Circle:
    """A circle in canvas coordinates."""
    x: float
    y: float
    r: float


@dataclass(frozen=True)
class Intersection:
    """A point where an edge crosses a circle, with its line parameter ``t``."""
    t: float
    x: float
    y: float


@dataclass(frozen=True)
class BoundaryCircle:
    """A group circle used as a containment boundary while routing."""
    id: str
    tier: str
    x: float
    y: float
    r: float


@dataclass(frozen=True)
class RoutedSegment:
    """One piece of a routed edge.

    ``is_home`` is False when the piece runs through a boundary owned by
    neither endpoint; ``foreign_tiers`` names the tiers where that happens.
    """
    x1: float
    y1: float
    x2: float
    y2: float
    is_home: bool = True
    foreign_tiers: tuple[str, ...] = ()

    @property
    def length(self) -> float:
        return ((self.x2 - self.x1) ** 2 + (self.y2 - self.y1) ** 2) ** 0.5


@dataclass(frozen=True)
class RoutedEdge:
    edge: Edge
    segments: list[RoutedSegment]

    @property
    def foreign_count(self) -> int:
        return sum(1 for seg in self.segments if not seg.is_home)


@dataclass(frozen=True)
class SkippedEdge:
    """An edge dropped from routing because an endpoint is unknown."""
    edge: Edge
    missing_ids: tuple[str, ...]


@dataclass
class RoutingResult:
    routed: list[RoutedEdge] = field(default_factory=list)
    skipped: list[SkippedEdge] = field(default_factory=list)

    def by_key(self) -> dict[str, RoutedEdge]:
        return {routed.edge.key: routed for routed in self.routed}


@dataclass(frozen=True)
class CanvasSize:
    width: float
    height: float
    scale: float


@dataclass(frozen=True)
class ViewportTransform:
    """Uniform scale followed by translation, applied without animation."""
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.scale + self.translate_x, y * self.scale + self.translate_y)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class GraphDocument(BaseModel):
    """A graph as read from YAML: vertices, edges and layout settings."""
    title: str = "Untitled Graph"
    theme: str = "dark"
    algorithm: str = "pack"
    options: dict[str, Any] = Field(default_factory=dict)
    vertices: dict[str, Vertex] = Field(default_factory=dict)
    edges: list[Edge] = Field(default_factory=list)
