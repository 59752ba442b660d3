"""Core infrastructure for renderer_bridge."""

from .dom import Element, HostElement, Registration, SyntheticEvent, UIEvent
from .errors import RendererNotInstalledError, TemplateCompileError
from .registry import get_compiler_class, register_compiler
from .roots import MountedRoot, UIElement
from .state import Binding, BindingTable

__all__ = [
    "Element",
    "HostElement",
    "Registration",
    "UIEvent",
    "SyntheticEvent",
    "MountedRoot",
    "UIElement",
    "Binding",
    "BindingTable",
    "register_compiler",
    "get_compiler_class",
    "TemplateCompileError",
    "RendererNotInstalledError",
]
