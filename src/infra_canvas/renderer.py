"""Preview renderer using Pillow: draws a laid-out tree and its routed edges to PNG."""

from __future__ import annotations

import logging
import math
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from .hierarchy import HierarchyTree
from .models import HierarchyNode, RoutedEdge, RoutingResult, ViewportTransform
from .options import LayoutOptions
from .themes import ThemePalette, get_theme
from .viewport import fit_to_viewport

logger = logging.getLogger(__name__)


# --- Font handling ---

def _load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font, falling back to Pillow's default if none available."""
    suffix = "-Bold" if bold else ""
    font_paths = [
        f"/usr/share/fonts/truetype/dejavu/DejaVuSans{suffix}.ttf",
        f"/usr/share/fonts/truetype/liberation/LiberationSans{suffix or '-Regular'}.ttf",
        f"/usr/share/fonts/TTF/DejaVuSans{suffix}.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, size)
    return ImageFont.load_default()


# --- Color helpers ---

def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert hex color to RGB tuple. Supports both 3-char and 6-char hex."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = hex_color[0]*2 + hex_color[1]*2 + hex_color[2]*2
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def _hex_to_rgba(hex_color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    r, g, b = _hex_to_rgb(hex_color)
    return (r, g, b, alpha)


# --- Main renderer ---

class GraphRenderer:
    """Renders a positioned ``HierarchyTree`` to a PNG image.

    Coordinates go through a ``ViewportTransform``; when none is given the
    tree is fitted to the image size first.
    """

    EDGE_WIDTH = 2
    FOREIGN_EDGE_WIDTH = 1
    ARROW_SIZE = 8

    def __init__(self, width: int = 800, height: int = 600, theme: str = "dark"):
        self.width = width
        self.height = height
        self.theme: ThemePalette = get_theme(theme)
        self.font_label = _load_font(12)
        self.font_group = _load_font(13, bold=True)
        self.font_title = _load_font(20, bold=True)

    def render(
        self,
        tree: HierarchyTree,
        routing: Optional[RoutingResult] = None,
        transform: Optional[ViewportTransform] = None,
        title: Optional[str] = None,
        output_path: Optional[str] = None,
        options: Optional[LayoutOptions] = None,
    ) -> bytes:
        """Render to PNG bytes. Optionally save to file."""
        if transform is None:
            transform = fit_to_viewport(tree, (self.width, self.height), options)

        img = Image.new("RGBA", (self.width, self.height), _hex_to_rgba(self.theme.background))
        draw = ImageDraw.Draw(img, "RGBA")

        # Groups outermost first so inner groups paint over their parents
        for node in tree.visible_nodes():
            if node.is_group:
                self._draw_group(draw, node, transform)

        # Edges behind leaves
        if routing is not None:
            for routed in routing.routed:
                self._draw_edge(draw, routed, transform)

        for node in tree.visible_nodes():
            if not node.is_group:
                self._draw_leaf(draw, node, transform)

        if title:
            self._draw_title(draw, title)

        buf = BytesIO()
        img.save(buf, format="PNG", optimize=True)
        png_bytes = buf.getvalue()

        if output_path:
            Path(output_path).write_bytes(png_bytes)
            logger.info(f"Rendered {len(tree)} nodes to {output_path}")

        return png_bytes

    # --- Drawing ---

    def _bbox(self, node: HierarchyNode, transform: ViewportTransform) -> tuple[float, float, float, float]:
        cx, cy = transform.apply(node.x, node.y)
        r = max(node.r * transform.scale, 1.0)
        return (cx - r, cy - r, cx + r, cy + r)

    def _draw_group(self, draw: ImageDraw.ImageDraw, node: HierarchyNode, transform: ViewportTransform):
        fills = self.theme.group_fills
        fill = fills[node.depth % len(fills)]
        x1, y1, x2, y2 = self._bbox(node, transform)
        draw.ellipse(
            (x1, y1, x2, y2),
            fill=_hex_to_rgba(fill, self.theme.group_fill_alpha),
            outline=self.theme.group_border,
            width=1,
        )

        label = node.get_label()
        bbox = self.font_group.getbbox(label)
        tw = bbox[2] - bbox[0]
        draw.text(((x1 + x2 - tw) / 2, y1 + 4), label, fill=self.theme.muted_text_color, font=self.font_group)

    def _draw_leaf(self, draw: ImageDraw.ImageDraw, node: HierarchyNode, transform: ViewportTransform):
        x1, y1, x2, y2 = self._bbox(node, transform)
        draw.ellipse((x1, y1, x2, y2), fill=self.theme.leaf_fill, outline=self.theme.leaf_border, width=1)

        label = node.get_label()
        bbox = self.font_label.getbbox(label)
        tw = bbox[2] - bbox[0]
        draw.text(((x1 + x2 - tw) / 2, y2 + 2), label, fill=self.theme.label_color, font=self.font_label)

    def _draw_edge(self, draw: ImageDraw.ImageDraw, routed: RoutedEdge, transform: ViewportTransform):
        for seg in routed.segments:
            start = transform.apply(seg.x1, seg.y1)
            end = transform.apply(seg.x2, seg.y2)
            if seg.is_home:
                draw.line([start, end], fill=self.theme.edge_home, width=self.EDGE_WIDTH)
            else:
                draw.line([start, end], fill=self.theme.edge_foreign, width=self.FOREIGN_EDGE_WIDTH)

        if routed.segments:
            last = routed.segments[-1]
            color = self.theme.edge_home if last.is_home else self.theme.edge_foreign
            self._draw_arrowhead(draw, transform.apply(last.x1, last.y1), transform.apply(last.x2, last.y2), color)

    def _draw_arrowhead(
        self,
        draw: ImageDraw.ImageDraw,
        start: tuple[float, float],
        end: tuple[float, float],
        color: str,
    ):
        dx = end[0] - start[0]
        dy = end[1] - start[1]
        length = math.sqrt(dx * dx + dy * dy)
        if length == 0:
            return

        udx = dx / length
        udy = dy / length
        size = self.ARROW_SIZE
        ax = end[0] - size * udx + (size / 2) * udy
        ay = end[1] - size * udy - (size / 2) * udx
        bx = end[0] - size * udx - (size / 2) * udy
        by = end[1] - size * udy + (size / 2) * udx
        draw.polygon([(end[0], end[1]), (ax, ay), (bx, by)], fill=color)

    def _draw_title(self, draw: ImageDraw.ImageDraw, title: str):
        bbox = self.font_title.getbbox(title)
        tw = bbox[2] - bbox[0]
        draw.text(((self.width - tw) / 2, 10), title, fill=self.theme.title_color, font=self.font_title)
