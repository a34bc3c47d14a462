"""
Layout options for Infra-Canvas.

A single ``LayoutOptions`` instance travels through every stage of the
pipeline (build → layout → route → fit).  Defaults reproduce the renderer
settings the layouts were tuned against:

  - Canvas: 800 x 600 base size (scaled up by the canvas size estimator)
  - Leaves: radius 15
  - Padding: 5 between leaf siblings, 20 between group siblings
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional


# --- Defaults ---

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
DEFAULT_NODE_RADIUS = 15
DEFAULT_NODE_PADDING = 5
DEFAULT_GROUP_PADDING = 20
DEFAULT_COLLAPSED_RADIUS = 30

# Floor applied to any circle that would otherwise collapse to radius 0.
MIN_RADIUS = 1.0

# Margin added around the content bounds when fitting to a viewport.
VIEWPORT_MARGIN = 50

# Two intersection parameters closer than this are the same point.
EDGE_EPSILON = 0.001

# Seed for the randomized enclosing-circle solver (layouts are deterministic).
PACK_SEED = 0x5EED


@dataclass
class LayoutOptions:
    """Tunable settings for layout, routing and viewport fitting.

    Attributes:
        width, height:   Base canvas size before complexity scaling.
        node_radius:     Radius of every leaf circle.
        collapsed_radius: Radius of a collapsed group.
        node_padding:    Padding used by a parent whose children are all leaves.
        group_padding:   Padding used by a parent with at least one group child.
        min_radius:      Floor for degenerate (zero radius) circles.
        viewport_margin: Margin around content when fitting to a viewport.
        edge_epsilon:    Tolerance for merging near-equal intersection parameters.
        tiers:           Group types treated as routing boundaries.  ``None``
                         means every group type is its own tier.
        locked_ids:      Elements that cannot be dragged.
        collapsed_ids:   Groups folded into a single circle before layout.
        center:          Where the root is placed; defaults to the canvas center.
        seed:            Seed for the enclosing-circle solver.
    """
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    node_radius: float = DEFAULT_NODE_RADIUS
    collapsed_radius: float = DEFAULT_COLLAPSED_RADIUS
    node_padding: float = DEFAULT_NODE_PADDING
    group_padding: float = DEFAULT_GROUP_PADDING
    min_radius: float = MIN_RADIUS
    viewport_margin: float = VIEWPORT_MARGIN
    edge_epsilon: float = EDGE_EPSILON
    tiers: Optional[tuple[str, ...]] = None
    locked_ids: frozenset[str] = field(default_factory=frozenset)
    collapsed_ids: frozenset[str] = field(default_factory=frozenset)
    center: Optional[tuple[float, float]] = None
    seed: int = PACK_SEED

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> LayoutOptions:
        """Build options from a plain mapping (e.g. a YAML ``options:`` block).

        Unknown keys are rejected.
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown layout options: {', '.join(sorted(unknown))}")

        values = dict(data)
        if values.get("tiers") is not None:
            values["tiers"] = tuple(values["tiers"])
        for key in ("locked_ids", "collapsed_ids"):
            if key in values:
                values[key] = frozenset(values[key] or ())
        if values.get("center") is not None:
            cx, cy = values["center"]
            values["center"] = (float(cx), float(cy))
        return cls(**values)

    def padding_for(self, has_group_children: bool) -> float:
        return self.group_padding if has_group_children else self.node_padding

    def childless_radius(self, is_collapsed: bool) -> float:
        """Radius of a node with nothing inside it: a leaf or a collapsed group."""
        radius = self.collapsed_radius if is_collapsed else self.node_radius
        return max(radius, self.min_radius)
