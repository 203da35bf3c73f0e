"""Cell marker convention for percent-format scripts."""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple
import re

MARKER = "# %%"
MARKDOWN_TAG = "[markdown]"
COMMENT = "#"
COMMENT_PREFIX = "# "

_MARKDOWN_RE = re.compile(r"^# %%(\s*\[markdown\])")


class CellKind(str, Enum):
    """Type of cell content."""
    CODE = "code"
    MARKDOWN = "markdown"


@dataclass
class Cell:
    """
    A run of lines between two markers.

    Cells are recomputed by scanning and carry no identity beyond their
    position. A cell without a marker is the preamble above the first marker.
    """
    kind: CellKind
    start: int
    end: int
    marker: Optional[str] = None
    body_start: int = 0
    index: int = 0

    @property
    def is_markdown(self) -> bool:
        return self.kind == CellKind.MARKDOWN

    @property
    def has_marker(self) -> bool:
        return self.marker is not None


def iter_lines(text: str, start: int = 0) -> Iterator[Tuple[int, str, int]]:
    """Yield (offset, line without newline, offset of next line) from `start`."""
    pos = start
    size = len(text)
    while pos < size:
        nl = text.find("\n", pos)
        if nl == -1:
            yield pos, text[pos:], size
            return
        yield pos, text[pos:nl], nl + 1
        pos = nl + 1


def is_marker(line: str) -> bool:
    return line.startswith(MARKER)


def is_commented(line: str) -> bool:
    return line.startswith(COMMENT) and not is_marker(line)


def marker_kind(line: str) -> CellKind:
    return CellKind.MARKDOWN if _MARKDOWN_RE.match(line) else CellKind.CODE


def toggle_marker(line: str) -> str:
    """Switch a marker line between code and markdown."""
    match = _MARKDOWN_RE.match(line)
    if match:
        return line[:match.start(1)] + line[match.end(1):]
    return f"{MARKER} {MARKDOWN_TAG}{line[len(MARKER):]}"


def scan_cells(text: str) -> List[Cell]:
    """Split text into cells at marker lines."""
    cells: List[Cell] = []
    for offset, line, next_offset in iter_lines(text):
        if not is_marker(line):
            continue
        if cells:
            cells[-1].end = offset
        elif offset > 0:
            cells.append(Cell(kind=CellKind.CODE, start=0, end=offset))
        cells.append(Cell(
            kind=marker_kind(line),
            start=offset,
            end=len(text),
            marker=line,
            body_start=next_offset,
        ))
    if not cells:
        cells.append(Cell(kind=CellKind.CODE, start=0, end=len(text)))
    for i, cell in enumerate(cells):
        cell.index = i
    return cells


def cell_at(text: str, pos: int) -> Cell:
    """The cell whose lines contain `pos`."""
    line_start = text.rfind("\n", 0, pos) + 1
    cells = scan_cells(text)
    for cell in reversed(cells):
        if cell.start <= line_start:
            return cell
    return cells[0]


def markdown_body(text: str, cell: Cell) -> Tuple[int, int]:
    """
    Region holding a markdown cell's commented lines.

    Runs from the first line after the marker through the last contiguous
    commented line. The end excludes that line's newline. A cell whose first
    line is blank or code has the empty region at its body start.
    """
    start = cell.body_start
    end = start
    for offset, line, _ in iter_lines(text, start):
        if not is_commented(line):
            break
        end = offset + len(line)
    return start, end


def _decomment_line(line: str) -> str:
    if line.startswith(COMMENT_PREFIX):
        return line[len(COMMENT_PREFIX):]
    if line.startswith(COMMENT):
        return line[len(COMMENT):]
    return line


def decomment(text: str) -> str:
    """Strip one comment prefix per line. Blank lines are kept."""
    return "\n".join(_decomment_line(line) for line in text.split("\n"))


def recomment(text: str) -> str:
    """Prefix every line with the comment-and-space convention."""
    return "\n".join(COMMENT_PREFIX + line for line in text.split("\n"))
