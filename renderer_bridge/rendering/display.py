"""Paint grids into a Streamlit page."""

import uuid
from typing import TYPE_CHECKING, Optional

import streamlit as st

from .bridge import RendererBridge

if TYPE_CHECKING:
    from ..components.grid import Grid

# Session state key for the per-session bridge
_SESSION_BRIDGE_KEY = "_rb_session_bridge"

# Session state key for the application instance id of this session
_SESSION_APP_ID_KEY = "_rb_app_id"


def get_session_bridge() -> RendererBridge:
    """
    Get the RendererBridge of the current Streamlit session.

    Each browser session gets its own bridge, so node bindings never leak
    between sessions. Create grids with ``Grid(bridge=get_session_bridge())``.
    """
    if _SESSION_BRIDGE_KEY not in st.session_state:
        st.session_state[_SESSION_BRIDGE_KEY] = RendererBridge()
    return st.session_state[_SESSION_BRIDGE_KEY]


def get_session_app_id() -> str:
    """Get the application instance id of the current session."""
    if _SESSION_APP_ID_KEY not in st.session_state:
        st.session_state[_SESSION_APP_ID_KEY] = f"app-{uuid.uuid4().hex[:12]}"
    return st.session_state[_SESSION_APP_ID_KEY]


def clear_session_bridge() -> None:
    """Drop the session bridge, e.g. after loading a new dataset."""
    if _SESSION_BRIDGE_KEY in st.session_state:
        del st.session_state[_SESSION_BRIDGE_KEY]


def render_grid(grid: "Grid", height: Optional[int] = None) -> str:
    """
    Render a grid in Streamlit.

    This function:
    1. Attaches the grid to the session's app id if it is not attached yet
    2. Redraws every cell through the grid's renderers
    3. Writes the resulting table to the page

    Args:
        grid: The grid to render
        height: Optional height in pixels. When given, the table is written
            into a scrolling iframe of that height.

    Returns:
        The HTML that was written
    """
    if not grid.is_attached:
        grid.attach(get_session_app_id())

    grid.refresh()
    html = str(grid.to_html())

    if height is None:
        st.markdown(html, unsafe_allow_html=True)
    else:
        import streamlit.components.v1 as st_components

        st_components.html(html, height=height, scrolling=True)

    return html
