"""Template compilation into reusable render functions.

Two modes are registered:

- ``markup``: the source is Jinja2 template markup, e.g.
  ``<span class="name">{{ item.firstName }} {{ item.lastName }}</span>``
- ``expression``: the source is a single Jinja2 expression that builds the
  output with the ``h(tag, attrs, *children)`` helper, e.g.
  ``h('a', {'href': 'mailto:' ~ item.email}, item.email)``

Both compile once and return a function taking the props dict.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from jinja2 import Environment, StrictUndefined, Undefined
from markupsafe import Markup, escape

from ..core.errors import TemplateCompileError
from ..core.registry import get_compiler_class, register_compiler
from ..core.roots import RenderFunction

logger = logging.getLogger(__name__)

# Shared Jinja2 environment, created on first use
_template_environment: Optional[Environment] = None

FALLBACK_MARKUP = Markup("<div>Render Error</div>")


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def h(tag: str, attrs: Optional[Dict[str, Any]] = None, *children: Any) -> Markup:
    """
    Build a single element as markup.

    Attribute values and non-markup children are escaped. Attributes whose
    value is None or False are omitted; True renders a bare attribute.

    Args:
        tag: Element tag name
        attrs: Optional attribute mapping
        *children: Child content (strings, numbers, or markup from nested h() calls)

    Returns:
        Markup for the element
    """
    parts = []
    for name, value in (attrs or {}).items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(Markup(" {}").format(name))
        else:
            parts.append(Markup(' {}="{}"').format(name, value))

    body = Markup("").join(
        child if isinstance(child, Markup) else escape(child)
        for child in children
        if child is not None
    )
    return Markup("<{0}{1}>{2}</{0}>").format(
        escape(tag), Markup("").join(parts), body
    )


def get_template_environment() -> Environment:
    """
    Get the shared Jinja2 environment.

    Configuration is read from the environment on first use:

    - ``RB_STRICT_UNDEFINED``: raise on undefined names instead of
      rendering them empty (default false)
    - ``RB_AUTOESCAPE``: autoescape template output (default true)

    Returns:
        The Jinja2 Environment
    """
    global _template_environment

    if _template_environment is None:
        strict = _env_flag("RB_STRICT_UNDEFINED", False)
        autoescape = _env_flag("RB_AUTOESCAPE", True)

        _template_environment = Environment(
            autoescape=autoescape,
            undefined=StrictUndefined if strict else Undefined,
        )
        _template_environment.globals["h"] = h

    return _template_environment


def reset_template_environment() -> None:
    """Drop the shared environment so configuration is re-read (useful for testing)."""
    global _template_environment
    _template_environment = None


class TemplateCompiler(ABC):
    """Turns template source into a render function for one mode."""

    mode: str = ""

    def __init__(self, environment: Optional[Environment] = None):
        self._environment = environment or get_template_environment()

    @abstractmethod
    def compile(self, source: str) -> RenderFunction:
        """
        Compile ``source`` into a render function.

        Raises:
            TemplateCompileError: If the source is malformed or cannot be parsed
        """
        pass


@register_compiler("markup")
class MarkupCompiler(TemplateCompiler):
    """Compiles Jinja2 template markup."""

    def compile(self, source: str) -> RenderFunction:
        # Parser failures include RecursionError on deeply nested input
        try:
            template = self._environment.from_string(source)
        except Exception as err:
            raise TemplateCompileError(str(err), source, self.mode) from err

        def render(props: Dict[str, Any]) -> Markup:
            return Markup(template.render(props))

        return render


@register_compiler("expression")
class ExpressionCompiler(TemplateCompiler):
    """Compiles a single Jinja2 expression."""

    def compile(self, source: str) -> RenderFunction:
        try:
            expression = self._environment.compile_expression(source)
        except Exception as err:
            raise TemplateCompileError(str(err), source, self.mode) from err

        def render(props: Dict[str, Any]) -> Any:
            return expression(**props)

        return render


def compile_template(source: str, mode: str) -> RenderFunction:
    """
    Compile template source with the compiler registered for ``mode``.

    Args:
        source: Template source
        mode: Compilation mode ('markup' or 'expression')

    Returns:
        Render function taking a props dict

    Raises:
        TemplateCompileError: If the source is not a string or is malformed
        KeyError: If no compiler is registered for ``mode``
    """
    if not isinstance(source, str):
        raise TemplateCompileError(
            f"Template source must be a string, got {type(source).__name__}",
            mode=mode,
        )

    compiler = get_compiler_class(mode)()
    return compiler.compile(source)


def fallback_render_function(props: Dict[str, Any]) -> Markup:
    """Render function used when a template failed to compile."""
    return FALLBACK_MARKUP


def compile_or_fallback(source: str, transpile: bool) -> RenderFunction:
    """
    Compile a template, substituting the fallback on failure.

    Args:
        source: Template source
        transpile: True for template markup, False for a plain expression

    Returns:
        The compiled render function, or the fallback render function
    """
    mode = "markup" if transpile else "expression"
    try:
        return compile_template(source, mode)
    except TemplateCompileError:
        logger.exception("Error creating render function from %s template", mode)
        return fallback_render_function
