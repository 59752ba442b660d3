"""Exceptions raised by the renderer bridge.

This module provides:
- TemplateCompileError: a template could not be turned into a render function
- RendererNotInstalledError: a render was requested through an empty slot
"""


class TemplateCompileError(Exception):
    """Raised when a template source cannot be compiled.

    The bridge never lets this escape to the host: it logs the error and
    substitutes a render function that draws a visible placeholder.

    Attributes:
        source: The template source that failed
        mode: The compiler mode that was used ('markup' or 'expression')
    """

    def __init__(self, message: str, source: str = "", mode: str = ""):
        super().__init__(message)
        self.source = source
        self.mode = mode


class RendererNotInstalledError(KeyError):
    """Raised when rendering through a renderer name with no installed slot."""

    pass
