"""Exception hierarchy for semgraph."""

from __future__ import annotations


class SemGraphError(Exception):
    """Base class for all semgraph errors."""


class ModelFormatError(SemGraphError):
    """Raised when a model or parameter table has an unrecognised shape."""


class LabelFormatError(SemGraphError):
    """Raised when a label formatter name or template is not known."""


class LayoutError(SemGraphError, ValueError):
    """Raised when a layout cannot be resolved to one coordinate per node."""


class GraphValidationError(SemGraphError, ValueError):
    """Raised when the node and edge tables are inconsistent."""
