"""Graph geometry settings.

All sizes are in data units: one grid cell is ``spacing_x`` wide and
``spacing_y`` tall once a layout is scaled.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

SIDES: tuple[str, ...] = ("top", "bottom", "left", "right")
ARROWS: tuple[str, ...] = ("none", "last", "both")
SHAPES: tuple[str, ...] = ("rect", "oval")

SIG_LEVEL: float = 0.05
COVARIANCE_CURVATURE: float = 60.0

# Aesthetic defaults used when a column is first created.
NODE_AESTHETICS: dict[str, object] = {
    "fill": "white",
    "colour": "black",
    "linetype": "solid",
    "size": 0.5,
    "alpha": 1.0,
}
EDGE_AESTHETICS: dict[str, object] = {
    "colour": "black",
    "linetype": "solid",
    "size": 0.5,
    "alpha": 1.0,
}
LABEL_AESTHETICS: dict[str, object] = {
    "label_colour": "black",
    "label_fill": "white",
    "label_size": 4.0,
    "label_alpha": 1.0,
}


@dataclass(frozen=True)
class GraphSettings:
    """Geometry and formatting knobs for preparing a graph."""

    spacing_x: float = 2.0
    spacing_y: float = 2.0
    rect_width: float = 1.2
    rect_height: float = 0.8
    ellipses_width: float = 1.0
    ellipses_height: float = 1.0
    variance_diameter: float = 0.8
    text_size: float = 4.0
    digits: int = 2
    angle: float | None = None
    curvature: float = COVARIANCE_CURVATURE

    def __post_init__(self) -> None:
        for name in ("spacing_x", "spacing_y", "rect_width", "rect_height", "ellipses_width", "ellipses_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.digits < 0:
            raise ValueError(f"digits must be non-negative, got {self.digits!r}")
        if self.angle is not None and not 0 <= self.angle <= 180:
            raise ValueError(f"angle must lie in [0, 180], got {self.angle!r}")

    def replace(self, **overrides: object) -> GraphSettings:
        """Return a copy with ``overrides`` applied (validated again)."""
        return dataclasses.replace(self, **overrides)

    def node_size(self, shape: str) -> tuple[float, float]:
        """(width, height) of a node with the given shape."""
        if shape == "oval":
            return (self.ellipses_width, self.ellipses_height)
        return (self.rect_width, self.rect_height)


DEFAULT_SETTINGS = GraphSettings()
