"""Exceptions raised by Infra-Canvas.

Only structural problems are fatal.  Unknown edge endpoints and degenerate
geometry are recovered where they occur and never surface as exceptions.
"""

from __future__ import annotations


class StructuralError(ValueError):
    """The parent relation contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cycle in parent relation: {' -> '.join(cycle)}")


class UnknownAlgorithmError(ValueError):
    """A layout algorithm name that is neither "pack" nor "bottomUp"."""


class DocumentError(ValueError):
    """A YAML graph document that cannot be read."""
