"""Base renderer protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from semgraph.graph import SemGraph


class Renderer(Protocol):
    """Protocol that all renderers must implement."""

    def render(self, graph: SemGraph) -> str:
        """Render a prepared graph to an output string."""
        ...
