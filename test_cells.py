#!/usr/bin/env python3
"""
Tests for the cell-marker text model and cell navigation.

Run with: uv run python test_cells.py  (or: pytest test_cells.py)
"""
import sys
sys.path.insert(0, '.')

from document.buffer import TextBuffer
from document.cell import (
    CellKind, cell_at, decomment, markdown_body, recomment, scan_cells, toggle_marker
)
from document.errors import NoCellMarkerError
from document.notebook import cell_index, cells, current_cell, cycle_cell_type, next_cell, previous_cell

THREE_CELLS = (
    "# %%\n"
    "a = 1\n"
    "\n"
    "# %% [markdown]\n"
    "# # Title\n"
    "#\n"
    "# Some text\n"
    "\n"
    "# %%\n"
    "b = 2\n"
)


def test_scan_cells():
    cells = scan_cells(THREE_CELLS)
    assert [c.kind for c in cells] == [CellKind.CODE, CellKind.MARKDOWN, CellKind.CODE]
    assert all(c.has_marker for c in cells)
    assert cells[0].start == 0
    assert cells[0].end == cells[1].start
    assert cells[-1].end == len(THREE_CELLS)
    assert THREE_CELLS[cells[1].body_start:].startswith("# # Title")


def test_scan_preamble_and_empty():
    cells = scan_cells("import os\n# %%\nx\n")
    assert len(cells) == 2
    assert not cells[0].has_marker
    assert cells[0].end == len("import os\n")

    cells = scan_cells("")
    assert len(cells) == 1
    assert (cells[0].start, cells[0].end) == (0, 0)


def test_cell_at():
    cells = scan_cells(THREE_CELLS)
    second = cells[1]
    # On the marker line itself
    assert cell_at(THREE_CELLS, second.start + 3).index == 1
    # In the body
    assert cell_at(THREE_CELLS, second.body_start + 2).index == 1
    # Blank line before the next marker still belongs to the markdown cell
    assert cell_at(THREE_CELLS, cells[2].start - 1).index == 1
    assert cell_at(THREE_CELLS, len(THREE_CELLS)).index == 2


def test_current_cell_and_index():
    buf = TextBuffer(THREE_CELLS, point=THREE_CELLS.index("b = 2"))
    assert len(cells(buf)) == 3
    assert cell_index(buf) == 2
    assert current_cell(buf).kind == CellKind.CODE
    buf.goto(THREE_CELLS.index("Some"))
    assert current_cell(buf).is_markdown


def test_advancing_through_all_cells_creates_one():
    buf = TextBuffer(THREE_CELLS, point=2)
    created = [next_cell(buf) for _ in range(3)]
    assert created == [False, False, True]
    assert len(scan_cells(buf.text)) == 4
    assert buf.point == len(buf.text)
    assert buf.text == THREE_CELLS + "\n# %%\n"


def test_next_cell_lands_on_body():
    buf = TextBuffer(THREE_CELLS)
    next_cell(buf)
    assert buf.text[buf.point:].startswith("# # Title")


def test_next_cell_edge_buffers():
    buf = TextBuffer("")
    assert next_cell(buf)
    assert buf.text == "# %%\n"
    assert buf.point == len(buf.text)

    buf = TextBuffer("# %%\nx")
    assert next_cell(buf)
    assert buf.text == "# %%\nx\n\n# %%\n"


def test_previous_cell():
    buf = TextBuffer(THREE_CELLS, point=len(THREE_CELLS) - 2)
    assert previous_cell(buf)
    assert buf.text[buf.point:].startswith("# # Title")
    assert previous_cell(buf)
    assert buf.text[buf.point:].startswith("a = 1")

    # No cell before the first one
    point = buf.point
    assert not previous_cell(buf)
    assert buf.point == point


def test_previous_cell_skips_preamble():
    text = "import os\n# %%\nx = 1\n"
    buf = TextBuffer(text, point=len(text) - 1)
    assert not previous_cell(buf)


def test_toggle_marker_twice_is_identity():
    for line in ["# %%", "# %% Title", "# %% [markdown]", "# %% [markdown] Notes"]:
        toggled = toggle_marker(line)
        assert toggled != line
        assert toggle_marker(toggled) == line
    assert toggle_marker("# %%") == "# %% [markdown]"
    assert toggle_marker("# %% [markdown]") == "# %%"


def test_cycle_cell_type():
    buf = TextBuffer(THREE_CELLS, point=THREE_CELLS.index("a = 1") + 2)
    rest = buf.text[buf.point:]

    assert cycle_cell_type(buf) == CellKind.MARKDOWN
    assert buf.text.startswith("# %% [markdown]\na = 1")
    assert buf.text[buf.point:] == rest

    assert cycle_cell_type(buf) == CellKind.CODE
    assert buf.text == THREE_CELLS
    assert len(buf.undo_stack) == 2


def test_cycle_cell_type_on_marker_line():
    buf = TextBuffer(THREE_CELLS, point=2)
    cycle_cell_type(buf)
    assert buf.point == 2


def test_cycle_cell_type_without_marker():
    buf = TextBuffer("import os\n# %%\n", point=1)
    try:
        cycle_cell_type(buf)
    except NoCellMarkerError:
        pass
    else:
        raise AssertionError("a preamble has no marker to toggle")
    assert buf.text == "import os\n# %%\n"


def test_markdown_body():
    cells = scan_cells(THREE_CELLS)
    start, end = markdown_body(THREE_CELLS, cells[1])
    assert THREE_CELLS[start:end] == "# # Title\n#\n# Some text"
    assert decomment(THREE_CELLS[start:end]) == "# Title\n\nSome text"


def test_markdown_body_stops_at_code_and_whitespace():
    text = "# %% [markdown]\n# a  \n   \n# b\n"
    cell = scan_cells(text)[0]
    start, end = markdown_body(text, cell)
    assert text[start:end] == "# a  "
    assert decomment(text[start:end]) == "a  "

    text = "# %% [markdown]\n# a\nx = 1\n# b\n"
    cell = scan_cells(text)[0]
    start, end = markdown_body(text, cell)
    assert text[start:end] == "# a"


def test_markdown_body_empty():
    text = "# %% [markdown]\n\n# %%\n"
    start, end = markdown_body(text, scan_cells(text)[0])
    assert start == end == len("# %% [markdown]\n")

    text = "# %%\nx\n# %% [markdown]"
    start, end = markdown_body(text, scan_cells(text)[1])
    assert start == end == len(text)


def test_decomment_recomment_round_trip():
    body = "# Title\n# \n# - item\n#     indented"
    assert decomment(body) == "Title\n\n- item\n    indented"
    assert recomment(decomment(body)) == body
    assert decomment("#") == ""
    assert decomment("#x") == "x"


if __name__ == '__main__':
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn):
            fn()
            print(f"{name} PASSED")
