"""Render roots bound to a single DOM-like node."""

import weakref
from typing import Any, Callable, Dict, Optional

from markupsafe import Markup, escape

from .dom import Element

# A compiled template: props in, markup out
RenderFunction = Callable[[Dict[str, Any]], Any]


class UIElement:
    """
    A component paired with the props it should be drawn with.

    This is what ``root.render()`` receives; the component is only called
    when the root draws it.
    """

    def __init__(self, component: RenderFunction, props: Dict[str, Any]):
        self.component = component
        self.props = props

    def draw(self) -> Markup:
        result = self.component(self.props)
        if result is None:
            return Markup("")
        if isinstance(result, Markup):
            return result
        return escape(str(result))

    def __repr__(self) -> str:
        return f"UIElement(props={sorted(self.props)})"


class MountedRoot:
    """
    Live render root bound to one node.

    The root only keeps a weak reference to its node, so it never keeps a
    discarded node alive. Once unmounted, a root cannot be rendered into.

    Attributes:
        element: The last UIElement drawn, or None
        render_count: Number of completed renders
        unmount_count: Number of times unmount() ran
    """

    def __init__(self, node: Element):
        self._node_ref = weakref.ref(node)
        self.element: Optional[UIElement] = None
        self.render_count = 0
        self.unmount_count = 0

    @property
    def node(self) -> Optional[Element]:
        return self._node_ref()

    @property
    def is_mounted(self) -> bool:
        return self.unmount_count == 0

    def render(self, element: UIElement) -> None:
        if not self.is_mounted:
            raise RuntimeError("Cannot render into a root that has been unmounted")

        node = self.node
        if node is None:
            return

        node.inner_html = element.draw()
        self.element = element
        self.render_count += 1

    def unmount(self) -> None:
        if not self.is_mounted:
            return
        self.unmount_count += 1
        self.element = None
        node = self.node
        if node is not None:
            node.clear()

    def __repr__(self) -> str:
        return (
            f"MountedRoot(mounted={self.is_mounted}, "
            f"render_count={self.render_count})"
        )


def create_root(node: Element) -> MountedRoot:
    """Create a root for ``node``."""
    return MountedRoot(node)
