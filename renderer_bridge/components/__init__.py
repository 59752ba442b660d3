"""Host components and server-side renderers."""

from .grid import Column, Grid, KeyMapper
from .renderer import Rendering, TemplateRenderer

__all__ = [
    "TemplateRenderer",
    "Rendering",
    "Grid",
    "Column",
    "KeyMapper",
]
