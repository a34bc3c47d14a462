"""Tests for renderer.py and themes.py: PNG previews of laid-out graphs."""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from infra_canvas.engine import GraphSession, build
from infra_canvas.renderer import GraphRenderer
from infra_canvas.themes import DARK_THEME, LIGHT_THEME, get_theme

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def session(infra_vertices, infra_edges):
    return GraphSession(infra_vertices, infra_edges)


def test_render_returns_png_of_requested_size(session):
    png = GraphRenderer(width=640, height=480).render(session.tree, session.route(), title="Infra")
    assert png.startswith(PNG_MAGIC)
    assert Image.open(BytesIO(png)).size == (640, 480)


def test_render_writes_output_file(session, tmp_path):
    output = tmp_path / "graph.png"
    png = GraphRenderer(theme="light").render(session.tree, session.route(), output_path=str(output))
    assert output.read_bytes() == png


def test_background_uses_theme(session):
    png = GraphRenderer(width=200, height=200, theme="light").render(session.tree)
    corner = Image.open(BytesIO(png)).convert("RGB").getpixel((0, 0))
    assert corner == (255, 255, 255)


def test_render_without_routing_or_nodes():
    png = GraphRenderer().render(build({}))
    assert png.startswith(PNG_MAGIC)


def test_render_after_drag(session):
    session.drag_start("cluster1")
    session.drag_move("cluster1", 0.0, 0.0)
    png = GraphRenderer().render(session.tree, session.route(), session.fit((800, 600)))
    assert png.startswith(PNG_MAGIC)


class TestThemes:
    def test_lookup(self):
        assert get_theme("dark") is DARK_THEME
        assert get_theme("light") is LIGHT_THEME

    def test_unknown_theme(self):
        with pytest.raises(ValueError, match="neon"):
            get_theme("neon")

    def test_renderer_rejects_unknown_theme(self):
        with pytest.raises(ValueError):
            GraphRenderer(theme="neon")
