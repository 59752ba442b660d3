"""Grid host component that draws its cells through template renderers."""

from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
import polars as pl
from markupsafe import Markup, escape

from ..core.dom import Element, HostElement
from ..rendering.bridge import ItemModel, RendererBridge, get_default_bridge
from .renderer import Rendering, TemplateRenderer

GridItems = Union[pl.DataFrame, pl.LazyFrame, pd.DataFrame, List[Dict[str, Any]], None]


def _to_rows(items: GridItems) -> List[Any]:
    """Convert supported item sources to a list of row items."""
    if items is None:
        return []
    if isinstance(items, pd.DataFrame):
        items = pl.from_pandas(items)
    if isinstance(items, pl.LazyFrame):
        items = items.collect()
    if isinstance(items, pl.DataFrame):
        return list(items.iter_rows(named=True))
    return list(items)


class KeyMapper:
    """
    Assigns opaque string keys to items and resolves them back.

    Keys are handed to the client with each row; client calls come back
    with the key only.

    Scalar items (strings, numbers, booleans, None) are keyed by value, so
    equal scalars share a key. Any other item, such as a row dict, is keyed
    by identity: two equal but distinct dicts get distinct keys.
    """

    _VALUE_KEYED = (str, bytes, int, float, bool, type(None))

    def __init__(self):
        self._keys: Dict[Tuple[str, Any], str] = {}
        self._items: Dict[str, Any] = {}
        self._next_key = 1

    def _lookup(self, item: Any) -> Tuple[str, Any]:
        if isinstance(item, self._VALUE_KEYED):
            # type is part of the key: 1, 1.0 and True compare equal
            return ("value", (type(item), item))
        return ("id", id(item))

    def key(self, item: Any) -> str:
        lookup = self._lookup(item)
        key = self._keys.get(lookup)
        if key is None:
            key = str(self._next_key)
            self._next_key += 1
            self._keys[lookup] = key
            self._items[key] = item
        return key

    def get(self, key: Optional[str]) -> Optional[Any]:
        if key is None:
            return None
        return self._items.get(key)

    def remove_all(self) -> None:
        self._keys.clear()
        self._items.clear()


class Column(HostElement):
    """
    A grid column: renderer host for its cells.

    The column's cells are its children, one per row.
    """

    RENDERER_NAME = "renderer"

    def __init__(
        self, grid: "Grid", renderer: TemplateRenderer, header: Optional[str] = None
    ):
        super().__init__("grid-column")
        self.header = header
        self._grid = grid
        self.renderer = renderer
        self.rendering: Rendering = renderer.render(
            self, grid.key_mapper, self.RENDERER_NAME, bridge=grid.bridge
        )

    @property
    def cells(self) -> List[Element]:
        return list(self.children)

    def set_renderer(self, renderer: TemplateRenderer) -> None:
        """Replace the column renderer, tearing down the current one."""
        self.rendering.registration.remove()
        self.renderer = renderer
        self.rendering = renderer.render(
            self, self._grid.key_mapper, self.RENDERER_NAME, bridge=self._grid.bridge
        )

    def _sync_cells(self, row_count: int) -> None:
        while len(self.children) < row_count:
            self.append_child(Element("div", {"part": "cell"}))
        while len(self.children) > row_count:
            cell = self.children[-1]
            self._grid.bridge.release(cell)
            self.remove_child(cell)

    def _render_cells(self, rows: List[Dict[str, Any]]) -> None:
        self._sync_cells(len(rows))

        renderer = self.renderers.get(self.RENDERER_NAME)
        if renderer is None:
            return

        for index, (cell, row) in enumerate(zip(self.children, rows)):
            renderer(cell, self, ItemModel(row, index))


class Grid(HostElement):
    """
    Tabular host component whose columns render through TemplateRenderers.

    Items can be a polars DataFrame or LazyFrame, a pandas DataFrame, or a
    list of items. Each row sent to the renderers is a dict holding the
    item key under ``"key"`` plus every column's namespaced fields.

    Example:
        grid = Grid(people_df, app_id="app-1")
        grid.add_column(
            TemplateRenderer.markup("<b>{{ item.name }}</b>")
            .with_property("name", "name")
            .with_function("handleClick", on_click),
            header="Name",
        )
        grid.refresh()
        grid.invoke(0, 0, "handleClick")
    """

    def __init__(
        self,
        items: GridItems = None,
        app_id: Optional[str] = None,
        bridge: Optional[RendererBridge] = None,
    ):
        super().__init__("grid")
        self.bridge = bridge if bridge is not None else get_default_bridge()
        self.key_mapper = KeyMapper()
        self.columns: List[Column] = []
        self._items: List[Any] = []
        self.set_items(items)

        if app_id is not None:
            self.attach(app_id)

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    def set_items(self, items: GridItems) -> None:
        """Replace the grid items; call refresh() to redraw."""
        self.key_mapper.remove_all()
        self._items = _to_rows(items)

    def attach(self, app_id: str) -> None:
        super().attach(app_id)
        for column in self.columns:
            column.attach(app_id)

    def detach(self) -> None:
        super().detach()
        for column in self.columns:
            column.detach()

    def add_column(
        self, renderer: TemplateRenderer, header: Optional[str] = None
    ) -> Column:
        column = Column(self, renderer, header)
        self.append_child(column)
        self.columns.append(column)
        if self.is_attached:
            column.attach(self.app_id)
        return column

    def remove_column(self, column: Column) -> None:
        column.rendering.registration.remove()
        for cell in column.cells:
            self.bridge.release(cell)
        self.columns.remove(column)
        self.remove_child(column)

    def generate_rows(self) -> List[Dict[str, Any]]:
        """Build the per-row data sent to the renderers."""
        rows = []
        for item in self._items:
            row: Dict[str, Any] = {"key": self.key_mapper.key(item)}
            for column in self.columns:
                column.rendering.data_generator(item, row)
            rows.append(row)
        return rows

    def refresh(self) -> None:
        """Redraw every cell of every column."""
        rows = self.generate_rows()
        for column in self.columns:
            column._render_cells(rows)

    def cell(self, row: int, column: int) -> Element:
        return self.columns[column].cells[row]

    def invoke(self, row: int, column: int, name: str, *args: Any) -> None:
        """Call ``name`` from the rendered cell, as a user interaction would."""
        self.bridge.dispatch_client_call(self.cell(row, column), name, *args)

    def to_html(self) -> Markup:
        """Serialize the grid as an HTML table of rendered cells."""
        header = Markup("").join(
            Markup("<th>{}</th>").format(column.header or "")
            for column in self.columns
        )
        row_count = min((len(c.children) for c in self.columns), default=0)
        body = Markup("").join(
            Markup("<tr>{}</tr>").format(
                Markup("").join(
                    Markup("<td>{}</td>").format(column.children[index].inner_html)
                    for column in self.columns
                )
            )
            for index in range(row_count)
        )
        return Markup('<table class="{}"><thead><tr>{}</tr></thead><tbody>{}</tbody></table>').format(
            escape("renderer-bridge-grid"), header, body
        )
