"""Minimal DOM-like element tree used as the rendering surface."""

from typing import Any, Callable, Dict, List, Optional

from markupsafe import Markup, escape


class Registration:
    """Handle returned by listener/renderer registrations."""

    def __init__(self, remover: Callable[[], None]):
        self._remover = remover
        self._removed = False

    def remove(self) -> None:
        """Run the remover once; further calls do nothing."""
        if self._removed:
            return
        self._removed = True
        self._remover()

    @property
    def removed(self) -> bool:
        return self._removed


class UIEvent:
    """A native UI event (the Python stand-in for a browser ``Event``)."""

    def __init__(self, type: str, target: Optional["Element"] = None, **detail: Any):
        self.type = type
        self.target = target
        self.detail = detail

    def __repr__(self) -> str:
        return f"UIEvent(type='{self.type}')"


class SyntheticEvent:
    """Wrapper event produced by a UI library around a native event."""

    def __init__(self, native_event: UIEvent):
        self.native_event = native_event
        self.type = native_event.type
        self.target = native_event.target

    def __repr__(self) -> str:
        return f"SyntheticEvent(type='{self.type}')"


class Element:
    """
    A node in a DOM-like tree.

    Nodes are hashed by identity so they can key weak side tables.
    Rendered content lives in ``inner_html``; structural children are
    kept separately and serialized after the rendered content.
    """

    def __init__(self, tag: str = "div", attributes: Optional[Dict[str, str]] = None):
        self.tag = tag
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.children: List["Element"] = []
        self.parent: Optional["Element"] = None
        self.inner_html: Markup = Markup("")

    def append_child(self, child: "Element") -> "Element":
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: "Element") -> None:
        self.children.remove(child)
        child.parent = None

    def clear(self) -> None:
        """Drop rendered content (``innerHTML = ''``)."""
        self.inner_html = Markup("")

    def contains(self, other: "Element") -> bool:
        """Return True if ``other`` is this element or one of its descendants."""
        node: Optional[Element] = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def to_html(self) -> Markup:
        attrs = Markup("").join(
            Markup(' {}="{}"').format(name, value)
            for name, value in self.attributes.items()
        )
        body = self.inner_html + Markup("").join(
            child.to_html() for child in self.children
        )
        return Markup("<{0}{1}>{2}</{0}>").format(escape(self.tag), attrs, body)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(tag='{self.tag}', children={len(self.children)})"


class HostElement(Element):
    """
    Element that owns named renderer slots.

    Host components (grid columns, lists) expose their renderer functions
    through ``renderers``. The host also tracks whether it is attached to an
    application instance, identified by ``app_id``.
    """

    def __init__(self, tag: str = "div", attributes: Optional[Dict[str, str]] = None):
        super().__init__(tag, attributes)
        self.renderers: Dict[str, Callable[..., None]] = {}
        self.app_id: Optional[str] = None
        self._attach_listeners: List[Callable[["HostElement"], None]] = []

    @property
    def is_attached(self) -> bool:
        return self.app_id is not None

    def attach(self, app_id: str) -> None:
        """Attach to an application instance and notify attach listeners."""
        self.app_id = app_id
        for listener in list(self._attach_listeners):
            listener(self)

    def detach(self) -> None:
        self.app_id = None

    def add_attach_listener(
        self, listener: Callable[["HostElement"], None]
    ) -> Registration:
        self._attach_listeners.append(listener)

        def remove() -> None:
            if listener in self._attach_listeners:
                self._attach_listeners.remove(listener)

        return Registration(remove)
