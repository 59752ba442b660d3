"""Side table tracking which renderer owns each rendered node."""

import weakref
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple

from .dom import Element
from .roots import MountedRoot

if TYPE_CHECKING:
    from ..rendering.bridge import RenderSlot


class Binding:
    """
    Ownership record for one node.

    Attributes:
        slot: The RenderSlot that last claimed the node
        renderer_id: Property namespace of that slot
        root: The MountedRoot drawing into the node, or None
    """

    __slots__ = ("slot", "renderer_id", "root")

    def __init__(
        self,
        slot: "RenderSlot",
        renderer_id: str,
        root: Optional[MountedRoot] = None,
    ):
        self.slot = slot
        self.renderer_id = renderer_id
        self.root = root

    def __repr__(self) -> str:
        return f"Binding(renderer_id='{self.renderer_id}', root={self.root!r})"


class BindingTable:
    """
    Maps nodes to their Binding without touching the nodes themselves.

    Nodes are held weakly: dropping the last reference to a node drops its
    binding too. At most one binding (and so at most one root) exists per
    node.
    """

    def __init__(self):
        self._bindings: "weakref.WeakKeyDictionary[Element, Binding]" = (
            weakref.WeakKeyDictionary()
        )

    def get(self, node: Element) -> Optional[Binding]:
        return self._bindings.get(node)

    def bind(self, node: Element, slot: "RenderSlot", renderer_id: str) -> Binding:
        """Tag ``node`` as owned by ``slot``, replacing any previous binding."""
        binding = Binding(slot, renderer_id)
        self._bindings[node] = binding
        return binding

    def unbind(self, node: Element) -> Optional[Binding]:
        return self._bindings.pop(node, None)

    def tagged_within(self, host: Element, renderer_id: str) -> List[Element]:
        """
        Find nodes under ``host`` tagged with ``renderer_id``.

        Args:
            host: Element whose subtree is searched (the host itself included)
            renderer_id: Property namespace to match

        Returns:
            List of matching nodes
        """
        return [
            node
            for node, binding in self.items()
            if binding.renderer_id == renderer_id and host.contains(node)
        ]

    def items(self) -> Iterator[Tuple[Element, Binding]]:
        # Snapshot so callers may unbind while iterating
        return iter(list(self._bindings.items()))

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, node: Any) -> bool:
        return node in self._bindings
