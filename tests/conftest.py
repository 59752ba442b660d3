"""Pytest configuration and shared fixtures for renderer-bridge tests."""

from typing import Any, List, Tuple
from unittest.mock import patch

import polars as pl
import pytest

from renderer_bridge.core.dom import Element, HostElement
from renderer_bridge.rendering.bridge import RendererBridge, reset_default_bridge
from renderer_bridge.rendering.compiler import reset_template_environment


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""
    pass


class RecordingChannel:
    """Return channel that records every (name, item_key, args) call."""

    def __init__(self):
        self.calls: List[Tuple[str, str, List[Any]]] = []

    def __call__(self, name: str, item_key: str, args: List[Any]) -> None:
        self.calls.append((name, item_key, args))


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing the display helpers.

    This fixture patches st.session_state to allow testing without running
    a full Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch('streamlit.session_state', mock_session_state):
        yield mock_session_state


@pytest.fixture(autouse=True)
def fresh_globals(monkeypatch):
    """Reset module-level singletons and config between tests."""
    monkeypatch.delenv("RB_STRICT_UNDEFINED", raising=False)
    monkeypatch.delenv("RB_AUTOESCAPE", raising=False)
    reset_template_environment()
    reset_default_bridge()
    yield
    reset_template_environment()
    reset_default_bridge()


@pytest.fixture
def bridge() -> RendererBridge:
    return RendererBridge()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def host() -> HostElement:
    """A host element with three cell nodes."""
    host = HostElement("grid-column")
    for _ in range(3):
        host.append_child(Element("div", {"part": "cell"}))
    host.attach("app-test")
    return host


@pytest.fixture
def people_data() -> pl.DataFrame:
    """Sample people, as in a typical grid."""
    return pl.DataFrame({
        "first_name": ["John", "Jane", "Bob"],
        "last_name": ["Doe", "Smith", "Johnson"],
        "email": ["john.doe@example.com", "jane.smith@example.com", "bob.johnson@example.com"],
        "status": ["Active", "Active", "Inactive"],
        "age": [41, 36, 43],
    })
