"""
Top-level operations for Infra-Canvas.

The pipeline is ``build → layout → route → fit``:

  - ``build``           vertex map + edges → ``HierarchyTree``
  - ``layout``          positions every node with the chosen algorithm
  - ``route``           clips edges against containment boundaries
  - ``fit_to_viewport`` scale/translate for a bounded viewport

``GraphSession`` bundles the pipeline with a drag engine for interactive
use.  A session owns exactly one tree; ``refresh`` replaces it wholesale and
discards any drag in progress.  Groups named in ``options.collapsed_ids`` are
folded before the tree is built, and ``toggle_collapse`` re-runs the pipeline
from the original input.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from .bottom_up import BottomUpLayout
from .collapse import collapse_groups
from .drag import DragEngine, DragUpdate
from .errors import UnknownAlgorithmError
from .hierarchy import EdgeInput, HierarchyTree, VertexInput, build_hierarchy
from .models import Edge, Point, RoutingResult, ViewportTransform
from .options import LayoutOptions
from .pack import pack_layout
from .routing import EdgeRouter
from .viewport import fit_to_viewport as _fit_to_viewport

logger = logging.getLogger(__name__)

PACK = "pack"
BOTTOM_UP = "bottomUp"

# Accepted spellings for each algorithm.
ALGORITHMS = {
    "pack": PACK,
    "bottomUp": BOTTOM_UP,
    "bottom-up": BOTTOM_UP,
    "bottom_up": BOTTOM_UP,
}


def build(
    vertices: Mapping[str, VertexInput],
    edges: Iterable[EdgeInput] = (),
    log: Optional[logging.Logger] = None,
) -> HierarchyTree:
    return build_hierarchy(vertices, edges, log=log)


def layout(
    tree: HierarchyTree,
    algorithm: str = PACK,
    options: Optional[LayoutOptions] = None,
    log: Optional[logging.Logger] = None,
) -> HierarchyTree:
    """Position every node and record the result as the reset baseline.

    Raises:
        UnknownAlgorithmError: If ``algorithm`` is not a known layout.
    """
    name = ALGORITHMS.get(algorithm)
    if name is None:
        raise UnknownAlgorithmError(f"Unknown layout algorithm: {algorithm!r} (expected 'pack' or 'bottomUp')")

    opts = options or LayoutOptions()
    log = log or logger
    if name == PACK:
        pack_layout(tree, opts, log=log)
    else:
        BottomUpLayout(opts, log=log).execute(tree)

    log.info(f"Laid out {len(tree)} nodes with {name!r}")
    return tree


def route(
    tree: HierarchyTree,
    edges: Optional[Iterable[Edge]] = None,
    options: Optional[LayoutOptions] = None,
    log: Optional[logging.Logger] = None,
) -> RoutingResult:
    return EdgeRouter(tree, options, log=log).route_edges(edges)


def fit_to_viewport(
    tree: HierarchyTree,
    viewport_size: tuple[float, float],
    options: Optional[LayoutOptions] = None,
    log: Optional[logging.Logger] = None,
) -> ViewportTransform:
    return _fit_to_viewport(tree, viewport_size, options, log=log)


class GraphSession:
    """One laid-out graph plus the drag state bound to it."""

    def __init__(
        self,
        vertices: Mapping[str, VertexInput],
        edges: Iterable[EdgeInput] = (),
        options: Optional[LayoutOptions] = None,
        algorithm: str = PACK,
        log: Optional[logging.Logger] = None,
    ):
        self.options = options or LayoutOptions()
        self.algorithm = algorithm
        self.log = log or logger
        self.vertices: dict[str, VertexInput] = {}
        self.edges: list[EdgeInput] = []
        self.tree: Optional[HierarchyTree] = None
        self.drag: Optional[DragEngine] = None
        self.refresh(vertices, edges)

    def refresh(self, vertices: Mapping[str, VertexInput], edges: Iterable[EdgeInput] = ()) -> HierarchyTree:
        """Rebuild and re-lay out from new input; any active drag is dropped."""
        raw_vertices = dict(vertices)
        raw_edges = list(edges)
        if self.options.collapsed_ids:
            vertices, edges = collapse_groups(raw_vertices, raw_edges, self.options.collapsed_ids, log=self.log)
        else:
            vertices, edges = raw_vertices, raw_edges

        tree = build(vertices, edges, log=self.log)
        layout(tree, self.algorithm, self.options, log=self.log)
        self.vertices = raw_vertices
        self.edges = raw_edges

        if self.drag is not None and self.drag.active_id is not None:
            self.log.info(f"Discarding drag of {self.drag.active_id!r} on refresh")
        self.tree = tree
        self.drag = DragEngine(tree, options=self.options, log=self.log)
        return tree

    def toggle_collapse(self, group_id: str) -> HierarchyTree:
        """Collapse ``group_id`` if it is expanded, expand it otherwise, and re-lay out.

        Raises:
            KeyError: If ``group_id`` is not one of the session's input vertices.
        """
        if group_id not in self.vertices:
            raise KeyError(f"Unknown vertex: {group_id}")
        collapsed = set(self.options.collapsed_ids) ^ {group_id}
        self.options = replace(self.options, collapsed_ids=frozenset(collapsed))
        return self.refresh(self.vertices, self.edges)

    # --- Read side ---

    def route(self) -> RoutingResult:
        return self.drag.router.route_edges()

    def fit(self, viewport_size: tuple[float, float]) -> ViewportTransform:
        return fit_to_viewport(self.tree, viewport_size, self.options, log=self.log)

    # --- Drag ---

    def drag_start(self, element_id: str) -> DragUpdate:
        return self.drag.start(element_id)

    def drag_move(self, element_id: str, x: float, y: float) -> DragUpdate:
        return self.drag.move(element_id, Point(x, y))

    def drag_end(self, element_id: str) -> DragUpdate:
        return self.drag.end(element_id)

    def reset_positions(self) -> DragUpdate:
        return self.drag.reset_positions()
