"""
Theme definitions for Infra-Canvas previews.

Each theme defines colors for:
- Canvas background and labels
- Group circles, shaded by depth
- Leaf circles
- Home and foreign edge segments
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class ThemePalette:
    """Color palette for a theme."""

    # Canvas
    background: str
    title_color: str
    label_color: str
    muted_text_color: str

    # Groups (fills cycle by depth)
    group_fills: tuple[str, ...]
    group_fill_alpha: int
    group_border: str

    # Leaves
    leaf_fill: str
    leaf_border: str

    # Edges
    edge_home: str
    edge_foreign: str


# Catppuccin Mocha
DARK_THEME = ThemePalette(
    background="#11111b",
    title_color="#cdd6f4",
    label_color="#cdd6f4",
    muted_text_color="#6c7086",
    group_fills=("#181825", "#1e1e2e", "#313244"),
    group_fill_alpha=140,
    group_border="#45475a",
    leaf_fill="#89b4fa",
    leaf_border="#b4befe",
    edge_home="#a6adc8",
    edge_foreign="#45475a",
)


# Catppuccin Latte
LIGHT_THEME = ThemePalette(
    background="#ffffff",
    title_color="#1e1e2e",
    label_color="#1e1e2e",
    muted_text_color="#6c6f85",
    group_fills=("#e6e9ef", "#dce0e8", "#ccd0da"),
    group_fill_alpha=180,
    group_border="#9ca0b0",
    leaf_fill="#1e66f5",
    leaf_border="#7287fd",
    edge_home="#4c4f69",
    edge_foreign="#bcc0cc",
)


THEMES: dict[str, ThemePalette] = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}


def get_theme(name: str) -> ThemePalette:
    """Get a theme palette by name.

    Raises:
        ValueError: If theme name is not recognized
    """
    if name not in THEMES:
        valid = ", ".join(THEMES.keys())
        raise ValueError(f"Unknown theme '{name}'. Valid themes: {valid}")
    return THEMES[name]
