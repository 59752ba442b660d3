"""Server-side template renderer with value providers and client callables."""

import logging
import re
import uuid
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Union

from ..core.dom import HostElement, Registration
from ..core.serialization import to_json_value

if TYPE_CHECKING:
    from ..rendering.bridge import RendererBridge
    from .grid import KeyMapper

logger = logging.getLogger(__name__)

_ALPHANUMERIC_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")

# A value provider is either a callable taking the item, or a field name
ValueProvider = Union[Callable[[Any], Any], str]


class Rendering:
    """
    Result of attaching a renderer to a container.

    Attributes:
        data_generator: Adds this renderer's namespaced fields to a row's data
        registration: Removing it tears the renderer down on the client
    """

    def __init__(
        self,
        data_generator: Callable[[Any, Dict[str, Any]], None],
        registration: Registration,
    ):
        self.data_generator = data_generator
        self.registration = registration


class TemplateRenderer:
    """
    Renders items of a host component (grid, list) through a template.

    Two template modes are supported:

    - ``TemplateRenderer.markup(source)``: Jinja2 template markup
    - ``TemplateRenderer.of(source)``: a single Jinja2 expression, usually
      built with the ``h(tag, attrs, *children)`` helper

    Properties registered with ``with_property`` are available in the
    template as ``item.<name>``. Functions registered with ``with_function``
    are available by name; when the rendered row calls one, the handler runs
    on the server with the row's item.

    Example:
        renderer = (
            TemplateRenderer.markup("<b>{{ item.name }}</b>")
            .with_property("name", lambda person: person["name"])
            .with_function("handleClick", lambda person: print(person["name"]))
        )
    """

    def __init__(self, template_source: str, transpile: bool):
        if template_source is None:
            raise TypeError("template_source must not be None")

        self.template_source = template_source
        self.transpile = transpile
        self.property_namespace = f"rr_{uuid.uuid4().hex[:16]}_"

        self._value_providers: Dict[str, ValueProvider] = {}
        self._client_callables: Dict[str, Callable[[Any, List[Any]], None]] = {}

    @classmethod
    def of(cls, template_source: str, transpile: bool = False) -> "TemplateRenderer":
        """
        Create a renderer for a template.

        Args:
            template_source: Template source, not None
            transpile: True if the source is template markup, False if it is
                a plain expression

        Returns:
            A new TemplateRenderer
        """
        return cls(template_source, transpile)

    @classmethod
    def markup(cls, template_source: str) -> "TemplateRenderer":
        """Create a renderer for Jinja2 template markup."""
        return cls(template_source, True)

    def with_property(self, name: str, provider: ValueProvider) -> "TemplateRenderer":
        """
        Make a property available to the template as ``item.<name>``.

        Args:
            name: Property name used in the template
            provider: Callable computing the value from the item, or the
                name of a field to read from the item

        Returns:
            This renderer, for chaining
        """
        if name is None or provider is None:
            raise TypeError("Property name and provider must not be None")

        self._value_providers[name] = provider
        return self

    def with_function(
        self, name: str, handler: Callable[[Any], None]
    ) -> "TemplateRenderer":
        """
        Register a client callable whose handler only needs the item.

        Args:
            name: Callable name, alphanumeric
            handler: Called with the row's item

        Returns:
            This renderer, for chaining
        """
        return self.with_function_args(name, lambda item, _args: handler(item))

    def with_function_args(
        self, name: str, handler: Callable[[Any, List[Any]], None]
    ) -> "TemplateRenderer":
        """
        Register a client callable whose handler receives client arguments.

        Args:
            name: Callable name, alphanumeric
            handler: Called with the row's item and the list of arguments
                sent by the client (event objects removed)

        Returns:
            This renderer, for chaining

        Raises:
            ValueError: If ``name`` is not alphanumeric
        """
        if name is None or handler is None:
            raise TypeError("Function name and handler must not be None")
        if not _ALPHANUMERIC_PATTERN.match(name):
            raise ValueError(f"Function name must be alphanumeric: {name}")

        self._client_callables[name] = handler
        return self

    def get_value_providers(self) -> Mapping[str, ValueProvider]:
        """Return a read-only view of the registered value providers."""
        return MappingProxyType(self._value_providers)

    def get_function_names(self) -> List[str]:
        return list(self._client_callables.keys())

    def generate_data(self, item: Any) -> Dict[str, Any]:
        """
        Compute this renderer's namespaced fields for one item.

        Args:
            item: The source item

        Returns:
            Dict mapping ``namespace + property`` to JSON-safe values
        """
        data = {}
        for name, provider in self._value_providers.items():
            if callable(provider):
                value = provider(item)
            else:
                value = item[provider]
            data[self.property_namespace + name] = to_json_value(value)
        return data

    def render(
        self,
        container: HostElement,
        key_mapper: "KeyMapper",
        renderer_name: str,
        bridge: Optional["RendererBridge"] = None,
    ) -> Rendering:
        """
        Attach this renderer to ``container`` under ``renderer_name``.

        The renderer is installed on the bridge right away if the container
        is attached, and again every time it is re-attached.

        Args:
            container: Host element receiving the renderer
            key_mapper: Maps item keys sent by the client back to items
            renderer_name: Slot name on the container
            bridge: Bridge to install on; the default bridge if None

        Returns:
            Rendering with the data generator and the teardown registration
        """
        if bridge is None:
            from ..rendering.bridge import get_default_bridge

            bridge = get_default_bridge()

        def data_generator(item: Any, row: Dict[str, Any]) -> None:
            row.update(self.generate_data(item))

        return_channel = self._create_return_channel(key_mapper)
        callable_names = self.get_function_names()

        def install(host: HostElement) -> None:
            bridge.install_renderer(
                host,
                renderer_name,
                self.template_source,
                self.transpile,
                return_channel,
                callable_names,
                self.property_namespace,
                host.app_id,
            )

        registrations = [container.add_attach_listener(install)]
        if container.is_attached:
            install(container)

        def remove() -> None:
            for registration in registrations:
                registration.remove()
            bridge.uninstall_renderer(
                container, renderer_name, self.property_namespace
            )

        return Rendering(data_generator, Registration(remove))

    def _create_return_channel(
        self, key_mapper: "KeyMapper"
    ) -> Callable[[str, str, List[Any]], None]:
        def return_channel(name: str, item_key: str, args: List[Any]) -> None:
            handler = self._client_callables.get(name)
            if handler is None:
                logger.warning("Client called unknown function '%s'", name)
                return

            item = key_mapper.get(item_key)
            if item is not None:
                handler(item, [to_json_value(arg) for arg in args])

        return return_channel

    def __repr__(self) -> str:
        return (
            f"TemplateRenderer(namespace='{self.property_namespace}', "
            f"transpile={self.transpile}, "
            f"properties={list(self._value_providers)}, "
            f"functions={self.get_function_names()})"
        )
