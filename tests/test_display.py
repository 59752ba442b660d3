"""Tests for painting grids into Streamlit."""

from unittest.mock import patch

from renderer_bridge.components.grid import Grid
from renderer_bridge.components.renderer import TemplateRenderer
from renderer_bridge.rendering.display import (
    _SESSION_APP_ID_KEY,
    _SESSION_BRIDGE_KEY,
    clear_session_bridge,
    get_session_app_id,
    get_session_bridge,
    render_grid,
)


def _status_grid(people_data):
    grid = Grid(people_data, bridge=get_session_bridge())
    grid.add_column(
        TemplateRenderer.markup("<span>{{ item.status }}</span>").with_property("status", "status"),
        header="Status",
    )
    return grid


def test_session_bridge_is_reused(mock_streamlit):
    bridge = get_session_bridge()

    assert get_session_bridge() is bridge
    assert mock_streamlit[_SESSION_BRIDGE_KEY] is bridge

    clear_session_bridge()
    assert _SESSION_BRIDGE_KEY not in mock_streamlit
    assert get_session_bridge() is not bridge


def test_session_app_id_is_stable(mock_streamlit):
    app_id = get_session_app_id()

    assert app_id.startswith("app-")
    assert get_session_app_id() == app_id
    assert mock_streamlit[_SESSION_APP_ID_KEY] == app_id


def test_render_grid_writes_markdown(mock_streamlit, people_data):
    grid = _status_grid(people_data)

    with patch("renderer_bridge.rendering.display.st.markdown") as markdown:
        html = render_grid(grid)

    markdown.assert_called_once_with(html, unsafe_allow_html=True)
    assert "<td><span>Inactive</span></td>" in html
    assert grid.app_id == get_session_app_id()


def test_render_grid_with_height_uses_iframe(mock_streamlit, people_data):
    grid = _status_grid(people_data)

    with patch("streamlit.components.v1.html") as components_html:
        html = render_grid(grid, height=300)

    components_html.assert_called_once_with(html, height=300, scrolling=True)


def test_rerender_keeps_roots(mock_streamlit, people_data):
    grid = _status_grid(people_data)

    with patch("renderer_bridge.rendering.display.st.markdown"):
        render_grid(grid)
        root = get_session_bridge().root_for(grid.cell(0, 0))
        render_grid(grid)

    assert get_session_bridge().root_for(grid.cell(0, 0)) is root
    assert root.render_count == 2
