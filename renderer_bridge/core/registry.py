"""Template modes and the compiler class that handles each one."""

from typing import TYPE_CHECKING, Dict, Type

if TYPE_CHECKING:
    from ..rendering.compiler import TemplateCompiler

_compilers_by_mode: Dict[str, Type["TemplateCompiler"]] = {}


def register_compiler(mode: str):
    """
    Class decorator binding a TemplateCompiler subclass to ``mode``.

    The decorated class gets ``mode`` set as a class attribute. A mode can
    be bound once; binding it to a second class raises ValueError.

    Example:
        @register_compiler("markup")
        class MarkupCompiler(TemplateCompiler):
            ...
    """

    def bind(cls: Type["TemplateCompiler"]) -> Type["TemplateCompiler"]:
        bound = _compilers_by_mode.setdefault(mode, cls)
        if bound is not cls:
            raise ValueError(
                f"Template mode '{mode}' is already registered to {bound.__name__}"
            )
        cls.mode = mode
        return cls

    return bind


def get_compiler_class(mode: str) -> Type["TemplateCompiler"]:
    """
    Look up the compiler class for a template mode.

    Raises:
        KeyError: If no compiler handles ``mode``; the message lists the
            available modes
    """
    try:
        return _compilers_by_mode[mode]
    except KeyError:
        raise KeyError(
            f"No compiler registered for mode '{mode}'. "
            f"Available modes: {sorted(_compilers_by_mode)}"
        ) from None
