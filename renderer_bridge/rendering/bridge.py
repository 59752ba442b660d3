"""Bridge between server-side renderers and rendered nodes.

The bridge installs compiled render functions on host elements, draws rows
into nodes through one MountedRoot per node, and forwards client calls from
rendered rows back to the server-side owner through a return channel.

Node ownership is tracked in a BindingTable owned by the bridge. Each node
moves through these states:

    UNBOUND -> BOUND(A)              first render
    BOUND(A) -> BOUND(B)             render by another slot (A's root unmounted first)
    BOUND(A) -> UNBOUND              uninstall of A, or release of the node
"""

import logging
import weakref
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from ..core.dom import Element, HostElement
from ..core.errors import RendererNotInstalledError
from ..core.roots import MountedRoot, RenderFunction, UIElement, create_root
from ..core.serialization import filter_client_args
from ..core.state import Binding, BindingTable
from .compiler import compile_or_fallback, fallback_render_function

logger = logging.getLogger(__name__)

# Receives (callable name, item key, filtered arguments)
ReturnChannel = Callable[[str, str, list], None]

# Module-level default bridge
_default_bridge: Optional["RendererBridge"] = None


def get_default_bridge() -> "RendererBridge":
    """
    Get or create the default shared RendererBridge.

    Returns:
        The default RendererBridge instance
    """
    global _default_bridge
    if _default_bridge is None:
        _default_bridge = RendererBridge()
    return _default_bridge


def reset_default_bridge() -> None:
    """Reset the default bridge (useful for testing)."""
    global _default_bridge
    _default_bridge = None


class ItemModel:
    """
    Per-row data handed to a renderer.

    Attributes:
        item: Mapping of (namespaced) field names to values; the opaque
            item key is stored under ``"key"``
        index: Row index
    """

    def __init__(self, item: Mapping[str, Any], index: int):
        self.item = item
        self.index = index

    @property
    def key(self) -> Optional[str]:
        return self.item.get("key")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ItemModel):
            return NotImplemented
        return self.item == other.item and self.index == other.index

    def __repr__(self) -> str:
        return f"ItemModel(index={self.index}, item={dict(self.item)})"


class RenderSlot:
    """
    A compiled renderer installed on a host under a renderer name.

    The slot itself is the renderer function the host framework calls:
    ``slot(node, host, model)``. Its identity is what a node binding
    records; ``renderer_id`` (the property namespace) is used to find the
    slot's nodes at teardown.
    """

    def __init__(
        self,
        bridge: "RendererBridge",
        host: HostElement,
        renderer_name: str,
        renderer_id: str,
        render_function: RenderFunction,
        return_channel: ReturnChannel,
        callable_names: Tuple[str, ...],
        app_id: Optional[str],
    ):
        self._bridge = bridge
        self._host_ref = weakref.ref(host)
        self.renderer_name = renderer_name
        self.renderer_id = renderer_id
        self.render_function = render_function
        self.return_channel = return_channel
        self.callable_names = callable_names
        self.app_id = app_id

    @property
    def host(self) -> Optional[HostElement]:
        return self._host_ref()

    def create_callables(self, item_key: Optional[str]) -> Dict[str, Callable[..., None]]:
        """Build one forwarder per callable name, bound to ``item_key``."""
        return {
            name: self._make_forwarder(name, item_key)
            for name in self.callable_names
        }

    def _make_forwarder(
        self, name: str, item_key: Optional[str]
    ) -> Callable[..., None]:
        return_channel = self.return_channel

        def forward(*args: Any) -> None:
            if item_key is None:
                return
            # Events hold references back to their targets and won't serialize
            return_channel(name, item_key, filter_client_args(args))

        forward.__name__ = name
        return forward

    def remap_item(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        """Keep fields in this slot's namespace, with the prefix stripped."""
        prefix = self.renderer_id
        return {
            key[len(prefix):]: value
            for key, value in item.items()
            if key.startswith(prefix)
        }

    def __call__(self, node: Element, host: HostElement, model: ItemModel) -> None:
        self._bridge.render_with(self, node, model)

    def __repr__(self) -> str:
        return (
            f"RenderSlot(renderer_name='{self.renderer_name}', "
            f"renderer_id='{self.renderer_id}')"
        )


class RendererBridge:
    """
    Owns render slots, node bindings and client call forwarding.

    Example:
        bridge = RendererBridge()
        bridge.install_renderer(
            column, "renderer", "<b>{{ item.name }}</b>", True,
            return_channel, ["handleClick"], "rr_ab12_", app_id="app-1",
        )
        bridge.render(cell, column, ItemModel({"rr_ab12_name": "Ada", "key": "1"}, 0),
                      "renderer")
    """

    def __init__(self, root_factory: Callable[[Element], MountedRoot] = create_root):
        """
        Initialize the bridge.

        Args:
            root_factory: Creates the root for a node on its first render.
        """
        self._root_factory = root_factory
        self._bindings = BindingTable()

    def install_renderer(
        self,
        host: HostElement,
        renderer_name: str,
        template_source: str,
        transpile: bool,
        return_channel: ReturnChannel,
        callable_names: Iterable[str],
        property_namespace: str,
        app_id: Optional[str] = None,
    ) -> None:
        """
        Compile a template and install it on ``host`` under ``renderer_name``.

        A template that fails to compile is replaced by a render function
        drawing a "Render Error" placeholder; the failure is logged, never
        raised. A previously installed slot with the same name is replaced.

        Args:
            host: Host element owning the renderer slot
            renderer_name: Slot name on the host
            template_source: Template markup (transpile=True) or a plain
                expression (transpile=False)
            transpile: Whether the source is template markup
            return_channel: Called with (name, item_key, args) on client calls
            callable_names: Names the rendered rows may call back into
            property_namespace: Prefix of the item fields this renderer sees;
                also the slot's identity tag
            app_id: Owning application instance
        """
        render_function = compile_or_fallback(template_source, transpile)

        # dict.fromkeys keeps the first occurrence of each name, in order
        names = tuple(dict.fromkeys(callable_names))

        host.renderers[renderer_name] = RenderSlot(
            bridge=self,
            host=host,
            renderer_name=renderer_name,
            renderer_id=property_namespace,
            render_function=render_function,
            return_channel=return_channel,
            callable_names=names,
            app_id=app_id,
        )
        logger.debug(
            "Installed renderer '%s' (%s) with callables %s",
            renderer_name,
            property_namespace,
            list(names),
        )

    def render(
        self,
        node: Element,
        host: HostElement,
        model: ItemModel,
        renderer_name: str,
    ) -> None:
        """
        Draw ``model`` into ``node`` with the slot installed at ``renderer_name``.

        Raises:
            RendererNotInstalledError: If the host has no such slot
        """
        slot = host.renderers.get(renderer_name)
        if slot is None:
            raise RendererNotInstalledError(
                f"No renderer installed at '{renderer_name}' on {host!r}"
            )
        slot(node, host, model)

    def render_with(self, slot: RenderSlot, node: Element, model: ItemModel) -> None:
        """
        Draw ``model`` into ``node`` with ``slot``.

        If the node is owned by another slot, that slot's root is unmounted
        and the node cleared before this slot claims it. Rendering again
        with the same slot only updates the existing root. A render function
        that raises is logged and the node shows the "Render Error"
        placeholder instead.
        """
        binding = self._claim(node, slot)

        if binding.root is None:
            binding.root = self._root_factory(node)
            logger.debug("Created root for %r (%s)", node, slot.renderer_id)

        mapped_item = slot.remap_item(model.item)
        item_key = model.key

        props: Dict[str, Any] = {
            "item": mapped_item,
            "index": model.index,
            "app_id": slot.app_id,
            "item_key": item_key,
            "model": ItemModel(mapped_item, model.index),
            **slot.create_callables(item_key),
        }
        try:
            binding.root.render(UIElement(slot.render_function, props))
        except Exception:
            # One failing row must not abort the host's remaining renders
            logger.exception(
                "Error rendering %s into %r at index %s",
                slot.renderer_id,
                node,
                model.index,
            )
            binding.root.render(UIElement(fallback_render_function, props))

    def _claim(self, node: Element, slot: RenderSlot) -> Binding:
        binding = self._bindings.get(node)
        if binding is not None and binding.slot is slot:
            return binding

        if binding is not None:
            if binding.root is not None:
                binding.root.unmount()
                logger.debug(
                    "Unmounted root of %s on %r, claimed by %s",
                    binding.renderer_id,
                    node,
                    slot.renderer_id,
                )
            node.clear()

        return self._bindings.bind(node, slot, slot.renderer_id)

    def uninstall_renderer(
        self, host: HostElement, renderer_name: str, renderer_id: str
    ) -> None:
        """
        Tear down the slot at ``renderer_name`` if it carries ``renderer_id``.

        A mismatched ``renderer_id`` means a newer renderer has been
        installed since; the call is ignored.
        """
        slot = host.renderers.get(renderer_name)
        if slot is None or getattr(slot, "renderer_id", None) != renderer_id:
            logger.debug(
                "Ignoring uninstall of '%s' (%s): slot not owned by that renderer",
                renderer_name,
                renderer_id,
            )
            return

        for node in self._bindings.tagged_within(host, renderer_id):
            binding = self._bindings.unbind(node)
            if binding is None or binding.root is None:
                continue
            binding.root.unmount()

        del host.renderers[renderer_name]
        logger.debug("Uninstalled renderer '%s' (%s)", renderer_name, renderer_id)

    def release(self, node: Element) -> None:
        """Unmount and unbind ``node``, e.g. when its row is discarded."""
        binding = self._bindings.unbind(node)
        if binding is not None and binding.root is not None:
            binding.root.unmount()

    def binding_for(self, node: Element) -> Optional[Binding]:
        return self._bindings.get(node)

    def root_for(self, node: Element) -> Optional[MountedRoot]:
        binding = self._bindings.get(node)
        return binding.root if binding is not None else None

    def dispatch_client_call(self, node: Element, name: str, *args: Any) -> None:
        """
        Invoke a callable of the row drawn into ``node``, as the rendered UI would.

        Args:
            node: A node currently drawn by a renderer
            name: Callable name
            *args: Client-side arguments (events included)

        Raises:
            LookupError: If the node has no live root or the callable is unknown
        """
        root = self.root_for(node)
        if root is None or root.element is None:
            raise LookupError(f"No rendered row in {node!r}")

        forwarder = root.element.props.get(name)
        if name not in root.element.props or not callable(forwarder):
            raise LookupError(f"Row in {node!r} has no callable '{name}'")
        forwarder(*args)
