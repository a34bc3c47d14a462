"""Infra-Canvas server: MCP tools for laying out, dragging and previewing infrastructure graphs."""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .drag import DragUpdate
from .engine import GraphSession
from .models import RoutedEdge
from .options import LayoutOptions
from .parser import layout_to_yaml, parse_yaml
from .renderer import GraphRenderer

logger = logging.getLogger(__name__)


# --- Constants ---
OUTPUT_DIR = Path(os.environ.get("INFRA_CANVAS_OUTPUT_DIR", Path.home() / ".infra-canvas"))
DEFAULT_VIEWPORT = (800, 600)

server = Server("infra-canvas")

# Laid-out graphs by session id, kept for the lifetime of the process
SESSIONS: dict[str, GraphSession] = {}
SESSION_TITLES: dict[str, str] = {}
SESSION_THEMES: dict[str, str] = {}


def _ensure_output_dir():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


# --- Tool definitions ---

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="layout_graph",
            description=(
                "Lay out an infrastructure graph from a YAML document. Vertices nest "
                "through parentId (network > cluster > application > device); groups "
                "become enclosing circles. Edges are routed against group boundaries "
                "and split into home/foreign segments. Returns a session id plus the "
                "positions, routed edges and viewport transform as YAML."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "yaml_document": {
                        "type": "string",
                        "description": (
                            "YAML graph document. Example:\n"
                            "title: Production\n"
                            "vertices:\n"
                            "  net: {type: network, isGroup: true}\n"
                            "  c1: {type: cluster, parentId: net, isGroup: true}\n"
                            "  web-1: {type: device, parentId: c1}\n"
                            "  db-1: {type: device, parentId: net}\n"
                            "edges:\n"
                            "  - {sourceId: web-1, targetId: db-1}\n"
                        ),
                    },
                    "algorithm": {
                        "type": "string",
                        "enum": ["pack", "bottomUp"],
                        "description": "Layout algorithm. Overrides the document's 'algorithm' key. Default: pack.",
                    },
                    "session_id": {
                        "type": "string",
                        "description": "Replace the graph of an existing session instead of creating a new one.",
                    },
                    "viewport_width": {"type": "number", "default": DEFAULT_VIEWPORT[0]},
                    "viewport_height": {"type": "number", "default": DEFAULT_VIEWPORT[1]},
                },
                "required": ["yaml_document"],
            },
        ),
        Tool(
            name="drag_element",
            description=(
                "Drag a node or a whole group in a laid-out session. Call with phase "
                "'start', then any number of 'move' calls with the pointer position, "
                "then 'end'. Dragging a group moves all of its descendants. Returns the "
                "moved circles and the re-routed edges touching them."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": {"type": "string"},
                    "element_id": {"type": "string"},
                    "phase": {"type": "string", "enum": ["start", "move", "end"]},
                    "x": {"type": "number", "description": "Pointer x (required for 'move')."},
                    "y": {"type": "number", "description": "Pointer y (required for 'move')."},
                },
                "required": ["session_id", "element_id", "phase"],
            },
        ),
        Tool(
            name="reset_positions",
            description="Restore every element of a session to its laid-out position.",
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": {"type": "string"},
                },
                "required": ["session_id"],
            },
        ),
        Tool(
            name="toggle_collapse",
            description=(
                "Collapse a group of a session into a single circle, or expand it again. "
                "Edges of hidden descendants are redirected to the collapsed group; edges "
                "that end up inside it are dropped. Returns the new layout like layout_graph."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": {"type": "string"},
                    "group_id": {"type": "string"},
                    "viewport_width": {"type": "number", "default": DEFAULT_VIEWPORT[0]},
                    "viewport_height": {"type": "number", "default": DEFAULT_VIEWPORT[1]},
                },
                "required": ["session_id", "group_id"],
            },
        ),
        Tool(
            name="render_graph",
            description=(
                "Render a session (or a YAML document, laid out on the fly) to a PNG "
                "preview of group and leaf circles plus routed edges, with foreign "
                "segments muted. Returns the path to the PNG."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": {"type": "string"},
                    "yaml_document": {"type": "string"},
                    "theme": {"type": "string", "enum": ["dark", "light"]},
                    "width": {"type": "integer", "default": DEFAULT_VIEWPORT[0]},
                    "height": {"type": "integer", "default": DEFAULT_VIEWPORT[1]},
                    "filename": {
                        "type": "string",
                        "description": "Output filename (without extension). Default: auto-generated UUID.",
                    },
                },
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    if name == "layout_graph":
        return await _layout_graph(arguments)
    elif name == "drag_element":
        return await _drag_element(arguments)
    elif name == "reset_positions":
        return await _reset_positions(arguments)
    elif name == "toggle_collapse":
        return await _toggle_collapse(arguments)
    elif name == "render_graph":
        return await _render_graph(arguments)
    else:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]


# --- Payload helpers ---

def _routed_payload(routed: RoutedEdge) -> dict:
    return {
        "id": routed.edge.key,
        "segments": [
            {
                "from": [seg.x1, seg.y1],
                "to": [seg.x2, seg.y2],
                "home": seg.is_home,
                "foreign_tiers": list(seg.foreign_tiers),
            }
            for seg in routed.segments
        ],
    }


def _update_payload(session_id: str, update: DragUpdate) -> str:
    return json.dumps({
        "status": "success",
        "session_id": session_id,
        "positions": {
            node_id: {"x": circle.x, "y": circle.y, "r": circle.r}
            for node_id, circle in update.positions.items()
        },
        "edges": [_routed_payload(routed) for routed in update.routed_edges],
    })


def _get_session(args: dict) -> GraphSession:
    session_id = args.get("session_id")
    if session_id not in SESSIONS:
        raise KeyError(f"Unknown session: {session_id}")
    return SESSIONS[session_id]


# --- Tool handlers ---

async def _layout_graph(args: dict) -> list[TextContent]:
    """Parse a document, lay it out and open (or refresh) a session."""
    try:
        document = parse_yaml(args["yaml_document"])
        options = LayoutOptions.from_mapping(document.options)
    except Exception as e:
        return [TextContent(type="text", text=f"Failed to parse YAML document: {e}")]

    algorithm = args.get("algorithm") or document.algorithm
    session_id = args.get("session_id") or str(uuid.uuid4())[:8]
    viewport = (
        args.get("viewport_width", DEFAULT_VIEWPORT[0]),
        args.get("viewport_height", DEFAULT_VIEWPORT[1]),
    )

    try:
        if session_id in SESSIONS and SESSIONS[session_id].algorithm == algorithm:
            session = SESSIONS[session_id]
            session.options = options
            session.refresh(document.vertices, document.edges)
        else:
            session = GraphSession(document.vertices, document.edges, options=options, algorithm=algorithm)
        routing = session.route()
        transform = session.fit(viewport)
    except Exception as e:
        logger.exception(f"Layout failed for session {session_id}")
        return [TextContent(type="text", text=f"Layout failed: {e}")]

    SESSIONS[session_id] = session
    SESSION_TITLES[session_id] = document.title
    SESSION_THEMES[session_id] = document.theme

    summary = json.dumps({
        "status": "success",
        "session_id": session_id,
        "title": document.title,
        "algorithm": algorithm,
        "nodes": len(session.tree.visible_nodes()),
        "edges_routed": len(routing.routed),
        "edges_skipped": len(routing.skipped),
    })
    return [
        TextContent(type="text", text=summary),
        TextContent(type="text", text=layout_to_yaml(session.tree, routing, transform, title=document.title)),
    ]


async def _drag_element(args: dict) -> list[TextContent]:
    """Drive one drag transition."""
    try:
        session = _get_session(args)
    except KeyError as e:
        return [TextContent(type="text", text=str(e))]

    element_id = args["element_id"]
    phase = args["phase"]

    if phase == "start":
        update = session.drag_start(element_id)
    elif phase == "move":
        if "x" not in args or "y" not in args:
            return [TextContent(type="text", text="Drag move requires pointer coordinates x and y")]
        update = session.drag_move(element_id, float(args["x"]), float(args["y"]))
    elif phase == "end":
        update = session.drag_end(element_id)
    else:
        return [TextContent(type="text", text=f"Unknown drag phase: {phase}")]

    return [TextContent(type="text", text=_update_payload(args["session_id"], update))]


async def _reset_positions(args: dict) -> list[TextContent]:
    try:
        session = _get_session(args)
    except KeyError as e:
        return [TextContent(type="text", text=str(e))]
    return [TextContent(type="text", text=_update_payload(args["session_id"], session.reset_positions()))]


async def _toggle_collapse(args: dict) -> list[TextContent]:
    """Collapse or expand one group of a session and re-lay it out."""
    try:
        session = _get_session(args)
    except KeyError as e:
        return [TextContent(type="text", text=str(e))]

    session_id = args["session_id"]
    group_id = args["group_id"]
    viewport = (
        args.get("viewport_width", DEFAULT_VIEWPORT[0]),
        args.get("viewport_height", DEFAULT_VIEWPORT[1]),
    )

    try:
        session.toggle_collapse(group_id)
        routing = session.route()
        transform = session.fit(viewport)
    except KeyError as e:
        return [TextContent(type="text", text=str(e))]
    except Exception as e:
        logger.exception(f"Collapse toggle failed for session {session_id}")
        return [TextContent(type="text", text=f"Layout failed: {e}")]

    title = SESSION_TITLES.get(session_id)
    summary = json.dumps({
        "status": "success",
        "session_id": session_id,
        "group_id": group_id,
        "collapsed": group_id in session.options.collapsed_ids,
        "nodes": len(session.tree.visible_nodes()),
        "edges_routed": len(routing.routed),
        "edges_skipped": len(routing.skipped),
    })
    return [
        TextContent(type="text", text=summary),
        TextContent(type="text", text=layout_to_yaml(session.tree, routing, transform, title=title)),
    ]


async def _render_graph(args: dict) -> list[TextContent]:
    """Render a session or an ad-hoc document to PNG."""
    _ensure_output_dir()

    width = int(args.get("width", DEFAULT_VIEWPORT[0]))
    height = int(args.get("height", DEFAULT_VIEWPORT[1]))
    filename = args.get("filename", str(uuid.uuid4())[:8])

    if args.get("session_id"):
        try:
            session = _get_session(args)
        except KeyError as e:
            return [TextContent(type="text", text=str(e))]
        title = SESSION_TITLES.get(args["session_id"])
        theme = args.get("theme") or SESSION_THEMES.get(args["session_id"], "dark")
    elif args.get("yaml_document"):
        try:
            document = parse_yaml(args["yaml_document"])
            options = LayoutOptions.from_mapping(document.options)
            session = GraphSession(document.vertices, document.edges, options=options, algorithm=document.algorithm)
        except Exception as e:
            return [TextContent(type="text", text=f"Failed to lay out YAML document: {e}")]
        title = document.title
        theme = args.get("theme") or document.theme
    else:
        return [TextContent(type="text", text="render_graph needs either session_id or yaml_document")]

    output_path = str(OUTPUT_DIR / f"{filename}.png")
    try:
        renderer = GraphRenderer(width=width, height=height, theme=theme)
        renderer.render(
            session.tree,
            routing=session.route(),
            transform=session.fit((width, height)),
            title=title,
            output_path=output_path,
        )
    except Exception as e:
        return [TextContent(type="text", text=f"Rendering failed: {e}")]

    return [TextContent(
        type="text",
        text=json.dumps({
            "status": "success",
            "path": output_path,
            "title": title,
            "nodes": len(session.tree.visible_nodes()),
            "edges": len(session.tree.edges),
        }),
    )]


def main():
    """Entry point for the MCP server."""
    import asyncio

    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    asyncio.run(_run())


async def _run():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    main()
