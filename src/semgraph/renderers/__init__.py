from semgraph.renderers.base import Renderer
from semgraph.renderers.svg import SvgRenderer

__all__ = ["Renderer", "SvgRenderer"]
