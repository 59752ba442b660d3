"""Tests for the server-side TemplateRenderer."""

import re

import numpy as np
import pytest

from renderer_bridge.components.grid import KeyMapper
from renderer_bridge.components.renderer import TemplateRenderer
from renderer_bridge.core.dom import Element, HostElement, UIEvent
from renderer_bridge.rendering.bridge import ItemModel, get_default_bridge


def _row(renderer, key_mapper, item):
    row = {"key": key_mapper.key(item)}
    row.update(renderer.generate_data(item))
    return row


class TestConfiguration:
    def test_factories_set_mode(self):
        assert TemplateRenderer.markup("<b/>").transpile is True
        assert TemplateRenderer.of("1").transpile is False
        assert TemplateRenderer.of("<b/>", transpile=True).transpile is True

    def test_none_template_rejected(self):
        with pytest.raises(TypeError):
            TemplateRenderer.of(None)

    def test_namespace_is_unique_per_renderer(self):
        first, second = TemplateRenderer.of("1"), TemplateRenderer.of("1")

        assert re.fullmatch(r"rr_[0-9a-f]{16}_", first.property_namespace)
        assert first.property_namespace != second.property_namespace

    @pytest.mark.parametrize("name", ["handle-click", "", "on click", "näme"])
    def test_function_names_must_be_alphanumeric(self, name):
        with pytest.raises(ValueError, match="alphanumeric"):
            TemplateRenderer.of("1").with_function(name, lambda item: None)

    def test_value_providers_are_read_only(self):
        renderer = TemplateRenderer.of("1").with_property("name", "name")

        providers = renderer.get_value_providers()
        assert dict(providers) == {"name": "name"}
        with pytest.raises(TypeError):
            providers["other"] = "x"

    def test_generate_data_namespaces_and_converts(self):
        renderer = (
            TemplateRenderer.of("1")
            .with_property("name", "first_name")
            .with_property("age", lambda person: np.int64(person["age"]))
        )
        ns = renderer.property_namespace

        data = renderer.generate_data({"first_name": "Ada", "age": 36})

        assert data == {f"{ns}name": "Ada", f"{ns}age": 36}
        assert type(data[f"{ns}age"]) is int


class TestAttachment:
    def test_installs_only_when_attached(self, bridge):
        host = HostElement()
        renderer = TemplateRenderer.markup("<b>{{ item.name }}</b>")

        renderer.render(host, KeyMapper(), "renderer", bridge=bridge)
        assert "renderer" not in host.renderers

        host.attach("app-9")
        slot = host.renderers["renderer"]
        assert slot.renderer_id == renderer.property_namespace
        assert slot.app_id == "app-9"

    def test_reattach_installs_new_slot(self, bridge, host):
        renderer = TemplateRenderer.markup("x")
        renderer.render(host, KeyMapper(), "renderer", bridge=bridge)
        first = host.renderers["renderer"]

        host.attach("app-test")

        assert host.renderers["renderer"] is not first
        assert host.renderers["renderer"].renderer_id == first.renderer_id

    def test_registration_removal_uninstalls(self, bridge, host):
        renderer = TemplateRenderer.markup("<b>{{ item.name }}</b>").with_property("name", "name")
        key_mapper = KeyMapper()
        rendering = renderer.render(host, key_mapper, "renderer", bridge=bridge)
        cell = host.children[0]
        bridge.render(cell, host, ItemModel(_row(renderer, key_mapper, {"name": "Ada"}), 0),
                      "renderer")
        root = bridge.root_for(cell)

        rendering.registration.remove()

        assert "renderer" not in host.renderers
        assert root.unmount_count == 1

        # The attach listener is gone too
        host.attach("app-test")
        assert "renderer" not in host.renderers

    def test_stale_registration_does_not_remove_newer_renderer(self, bridge, host):
        old = TemplateRenderer.markup("old")
        new = TemplateRenderer.markup("new")
        old_rendering = old.render(host, KeyMapper(), "renderer", bridge=bridge)
        new.render(host, KeyMapper(), "renderer", bridge=bridge)

        old_rendering.registration.remove()

        assert host.renderers["renderer"].renderer_id == new.property_namespace

    def test_uses_default_bridge(self, host):
        renderer = TemplateRenderer.markup("x")
        renderer.render(host, KeyMapper(), "renderer")

        cell = host.children[0]
        get_default_bridge().render(cell, host, ItemModel({"key": "1"}, 0), "renderer")
        assert cell.inner_html == "x"


class TestClientCalls:
    def _setup(self, bridge, host, renderer, item):
        key_mapper = KeyMapper()
        renderer.render(host, key_mapper, "renderer", bridge=bridge)
        cell = host.children[0]
        bridge.render(cell, host, ItemModel(_row(renderer, key_mapper, item), 0), "renderer")
        return key_mapper, cell

    def test_handler_receives_item(self, bridge, host):
        clicked = []
        renderer = TemplateRenderer.markup("x").with_function("handleClick", clicked.append)
        person = {"name": "Ada"}
        _, cell = self._setup(bridge, host, renderer, person)

        bridge.dispatch_client_call(cell, "handleClick", UIEvent("click"))

        assert clicked == [person]
        assert clicked[0] is person

    def test_handler_receives_filtered_args(self, bridge, host):
        calls = []
        renderer = TemplateRenderer.markup("x").with_function_args(
            "onSort", lambda item, args: calls.append((item["name"], args))
        )
        _, cell = self._setup(bridge, host, renderer, {"name": "Ada"})

        bridge.dispatch_client_call(cell, "onSort", "name", UIEvent("click"), np.int32(1))

        assert calls == [("Ada", ["name", 1])]

    def test_unknown_item_key_is_ignored(self, bridge, host):
        clicked = []
        renderer = TemplateRenderer.markup("x").with_function("handleClick", clicked.append)
        key_mapper, cell = self._setup(bridge, host, renderer, {"name": "Ada"})

        key_mapper.remove_all()
        bridge.dispatch_client_call(cell, "handleClick")

        assert clicked == []

    def test_functions_are_exposed_to_template(self, bridge, host):
        renderer = (
            TemplateRenderer.markup("{{ 'yes' if handleClick is defined else 'no' }}")
            .with_function("handleClick", lambda item: None)
        )
        _, cell = self._setup(bridge, host, renderer, {"name": "Ada"})

        assert cell.inner_html == "yes"


def test_repr_lists_configuration():
    renderer = TemplateRenderer.of("1").with_property("a", "a").with_function("b", print)
    text = repr(renderer)
    assert "properties=['a']" in text
    assert "functions=['b']" in text


def test_key_mapper_round_trip():
    key_mapper = KeyMapper()
    first, second = {"id": 1}, {"id": 2}

    assert key_mapper.key(first) == key_mapper.key(first)
    assert key_mapper.key(first) != key_mapper.key(second)
    assert key_mapper.get(key_mapper.key(second)) is second
    assert key_mapper.get("missing") is None
    assert key_mapper.get(None) is None


def test_key_mapper_keys_scalars_by_value_and_rows_by_identity():
    key_mapper = KeyMapper()
    built = "".join(["ab", "c"])

    assert key_mapper.key("abc") == key_mapper.key(built)
    assert key_mapper.key(1) != key_mapper.key(True)
    assert key_mapper.key(1) != key_mapper.key(1.0)
    assert key_mapper.key({"id": 1}) != key_mapper.key({"id": 1})
    assert key_mapper.get(key_mapper.key(True)) is True
