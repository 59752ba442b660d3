"""
Renderer Bridge - template-driven per-row rendering for host components.

This package lets a server-side host component (such as a grid column)
delegate the rendering of each row to a Jinja2 template, tracks which
renderer owns each rendered node, and forwards client calls from rendered
rows back to server-side handlers.
"""

from .components.grid import Column, Grid, KeyMapper
from .components.renderer import Rendering, TemplateRenderer
from .core.dom import Element, HostElement, SyntheticEvent, UIEvent
from .core.errors import RendererNotInstalledError, TemplateCompileError
from .core.registry import get_compiler_class, register_compiler
from .rendering.bridge import (
    ItemModel,
    RendererBridge,
    get_default_bridge,
    reset_default_bridge,
)
from .rendering.display import get_session_bridge, render_grid

__version__ = "0.1.0"

__all__ = [
    # Core
    "RendererBridge",
    "ItemModel",
    "Element",
    "HostElement",
    "UIEvent",
    "SyntheticEvent",
    "register_compiler",
    "get_compiler_class",
    "TemplateCompileError",
    "RendererNotInstalledError",
    # Components
    "TemplateRenderer",
    "Rendering",
    "Grid",
    "Column",
    "KeyMapper",
    # Utilities
    "get_default_bridge",
    "reset_default_bridge",
    "get_session_bridge",
    "render_grid",
]
