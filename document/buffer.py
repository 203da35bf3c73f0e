"""
Text buffer with a point, an undo history and edit-aware ranges.

A TextBuffer stands in for an editor buffer: commands read and move the
point and every change goes through replace(), which records one undo
entry and keeps tracked Ranges pointing at the same text.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
import logging
import uuid

from .errors import BufferKilledError, NoFileError

logger = logging.getLogger(__name__)


def _adjust_position(pos: int, start: int, end: int, length: int, stick_to_end: bool) -> int:
    """Move `pos` for a replacement of [start, end) by `length` characters."""
    if pos < start:
        return pos
    if pos == start == end:
        # Pure insertion at pos
        return pos + length if stick_to_end else pos
    if pos >= end:
        return pos + length - (end - start)
    # Inside the replaced span
    return start + length if stick_to_end else start


@dataclass
class Range:
    """
    A (start, end) offset pair that follows edits of its buffer.

    Text inserted exactly at either boundary stays outside the range, and an
    empty range stays where it is. Killing the buffer invalidates the range.
    """
    start: int
    end: int
    valid: bool = True

    def adjust(self, start: int, end: int, length: int):
        if start == end:
            # Insertion
            if self.start > start or (self.start == start < self.end):
                self.start += length
            if self.end > start:
                self.end += length
            return
        old_end = self.end
        self.start = _adjust_position(self.start, start, end, length, stick_to_end=False)
        if old_end != start:
            self.end = _adjust_position(old_end, start, end, length, stick_to_end=True)
        if self.end < self.start:
            self.end = self.start

    def overlaps(self, other: "Range") -> bool:
        """True if the ranges share text, or are the same empty position."""
        if self.start == self.end or other.start == other.end:
            return self.start <= other.end and other.start <= self.end
        return self.start < other.end and other.start < self.end

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class Edit:
    """One undoable replacement."""
    start: int
    old_text: str
    new_text: str
    point_before: int


class TextBuffer:
    """An editable text with a cursor, optionally visiting a file."""

    def __init__(
        self,
        text: str = "",
        name: str = "*scratch*",
        path: Optional[Union[str, Path]] = None,
        point: int = 0
    ):
        self.id: str = uuid.uuid4().hex[:8]
        self.name = name
        self.path: Optional[Path] = Path(path) if path else None
        self._text = text
        self.point = max(0, min(point, len(text)))
        self.modified: bool = False
        self.alive: bool = True
        self.undo_stack: List[Edit] = []
        self._ranges: List[Range] = []

    @classmethod
    def load(cls, path: Union[str, Path]) -> "TextBuffer":
        """Visit a file. A missing file gives an empty buffer for that path."""
        path = Path(path)
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        return cls(text=text, name=path.name, path=path)

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"TextBuffer(name={self.name!r}, id={self.id!r}, point={self.point}, len={len(self._text)})"

    def _check_alive(self):
        if not self.alive:
            raise BufferKilledError(f"Buffer {self.name} has been killed")

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _apply(self, start: int, end: int, text: str):
        self._text = self._text[:start] + text + self._text[end:]
        for rng in self._ranges:
            rng.adjust(start, end, len(text))
        self.point = _adjust_position(self.point, start, end, len(text), stick_to_end=True)
        self.modified = True

    def replace(self, start: int, end: int, text: str) -> Edit:
        """Replace [start, end) with `text` as a single undoable edit."""
        self._check_alive()
        if not 0 <= start <= end <= len(self._text):
            raise ValueError(f"Invalid region {start}..{end} for buffer of length {len(self._text)}")
        edit = Edit(start=start, old_text=self._text[start:end], new_text=text, point_before=self.point)
        self._apply(start, end, text)
        self.undo_stack.append(edit)
        return edit

    def insert(self, text: str) -> Edit:
        """Insert at point, leaving point after the inserted text."""
        return self.replace(self.point, self.point, text)

    def set_text(self, text: str) -> Optional[Edit]:
        """Replace the whole contents. No edit is recorded when nothing changed."""
        if text == self._text:
            return None
        return self.replace(0, len(self._text), text)

    def undo(self) -> bool:
        """Revert the most recent edit. Returns False when there is nothing to undo."""
        self._check_alive()
        if not self.undo_stack:
            return False
        edit = self.undo_stack.pop()
        self._apply(edit.start, edit.start + len(edit.new_text), edit.old_text)
        self.point = min(edit.point_before, len(self._text))
        return True

    # ------------------------------------------------------------------
    # Point and lines
    # ------------------------------------------------------------------

    def goto(self, offset: int) -> int:
        self.point = max(0, min(offset, len(self._text)))
        return self.point

    def line_start(self, offset: Optional[int] = None) -> int:
        offset = self.point if offset is None else offset
        return self._text.rfind("\n", 0, offset) + 1

    def line_end(self, offset: Optional[int] = None) -> int:
        offset = self.point if offset is None else offset
        nl = self._text.find("\n", offset)
        return len(self._text) if nl == -1 else nl

    def line_number(self, offset: Optional[int] = None) -> int:
        """1-based number of the line containing `offset` (default: point)."""
        offset = self.point if offset is None else offset
        return self._text.count("\n", 0, offset) + 1

    def goto_line(self, number: int) -> int:
        """Move point to the start of 1-based line `number`, clamped to the buffer."""
        pos = 0
        for _ in range(max(number, 1) - 1):
            nl = self._text.find("\n", pos)
            if nl == -1:
                pos = len(self._text)
                break
            pos = nl + 1
        return self.goto(pos)

    # ------------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------------

    def track(self, start: int, end: int) -> Range:
        """Register a range that follows subsequent edits."""
        self._check_alive()
        rng = Range(start, end)
        self._ranges.append(rng)
        return rng

    def untrack(self, rng: Range):
        if rng in self._ranges:
            self._ranges.remove(rng)

    # ------------------------------------------------------------------
    # Files and lifetime
    # ------------------------------------------------------------------

    def save(self) -> Path:
        """Write the text to the visited file."""
        self._check_alive()
        if self.path is None:
            raise NoFileError(f"Buffer {self.name} is not visiting a file")
        self.path.write_text(self._text, encoding="utf-8")
        self.modified = False
        logger.debug(f"Saved {self.name} to {self.path}")
        return self.path

    def kill(self):
        """Kill the buffer. Tracked ranges become invalid."""
        if not self.alive:
            return
        self.alive = False
        for rng in self._ranges:
            rng.valid = False
        self._ranges = []
        logger.debug(f"Killed buffer {self.name}")
