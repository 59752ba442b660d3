"""Rendering: template compilation, the renderer bridge and Streamlit display."""

from .bridge import (
    ItemModel,
    RendererBridge,
    RenderSlot,
    get_default_bridge,
    reset_default_bridge,
)
from .compiler import compile_template, get_template_environment, h

__all__ = [
    "RendererBridge",
    "RenderSlot",
    "ItemModel",
    "get_default_bridge",
    "reset_default_bridge",
    "compile_template",
    "get_template_environment",
    "h",
]
