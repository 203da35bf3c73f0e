"""Cell navigation and editing on a text buffer."""
from typing import List

from .buffer import TextBuffer
from .cell import Cell, CellKind, MARKER, cell_at, marker_kind, scan_cells, toggle_marker
from .errors import NoCellMarkerError


def cells(buffer: TextBuffer) -> List[Cell]:
    """All cells of the buffer, in order."""
    return scan_cells(buffer.text)


def current_cell(buffer: TextBuffer) -> Cell:
    """The cell containing point."""
    return cell_at(buffer.text, buffer.point)


def cell_index(buffer: TextBuffer) -> int:
    return current_cell(buffer).index


def next_cell(buffer: TextBuffer) -> bool:
    """
    Move point to the body of the following cell.

    When point is in the last cell a new empty code cell is appended and
    point moves to the end of the buffer. Returns True if a cell was created.
    """
    text = buffer.text
    cell = cell_at(text, buffer.point)
    if cell.end < len(text):
        following = cell_at(text, cell.end)
        buffer.goto(following.body_start)
        return False

    if not text:
        insertion = f"{MARKER}\n"
    elif text.endswith("\n"):
        insertion = f"\n{MARKER}\n"
    else:
        insertion = f"\n\n{MARKER}\n"
    buffer.replace(len(text), len(text), insertion)
    buffer.goto(len(buffer.text))
    return True


def previous_cell(buffer: TextBuffer) -> bool:
    """Move point to the body of the preceding cell. Returns False if there is none."""
    text = buffer.text
    cell = cell_at(text, buffer.point)
    if cell.start == 0:
        return False
    previous = cell_at(text, cell.start - 1)
    if not previous.has_marker:
        return False
    buffer.goto(previous.body_start)
    return True


def cycle_cell_type(buffer: TextBuffer) -> CellKind:
    """Toggle the current cell between code and markdown by rewriting its marker."""
    cell = current_cell(buffer)
    if not cell.has_marker:
        raise NoCellMarkerError("Point is above the first cell marker")

    old_marker = cell.marker
    new_marker = toggle_marker(old_marker)
    marker_end = cell.start + len(old_marker)
    point = buffer.point

    buffer.replace(cell.start, marker_end, new_marker)

    if point < marker_end:
        buffer.goto(cell.start + min(point - cell.start, len(new_marker)))
    return marker_kind(new_marker)
