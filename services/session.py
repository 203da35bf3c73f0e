"""
Markdown sub-editing sessions.

A markdown cell lives in the script as commented lines. Editing it opens a
scratch buffer holding the plain text; finishing writes the text back,
commented, over the tracked region of the source buffer as one undoable
edit. The session object is handed between the two buffers' owners and
ends on finish or abort.

    idle --enter--> editing --finish--> finished
                            --abort---> aborted
"""
import logging
from enum import Enum
from typing import List, Optional, Tuple

from document.buffer import Range, TextBuffer
from document.cell import decomment, markdown_body, recomment
from document.errors import (
    BufferKilledError, NotInMarkdownCellError, PreconditionError, SessionActiveError
)
from document.notebook import current_cell

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle of an edit session."""
    IDLE = "idle"
    EDITING = "editing"
    FINISHED = "finished"
    ABORTED = "aborted"


class MarkdownEditSession:
    """Edit one markdown cell of `source` in a scratch buffer."""

    def __init__(self, source: TextBuffer):
        self.source = source
        self.state = SessionState.IDLE
        self.region: Optional[Range] = None
        self.saved_point: Optional[int] = None
        self.scratch: Optional[TextBuffer] = None
        self.original_text: str = ""
        self.was_empty: bool = False

    def locate(self) -> Tuple[int, int]:
        """Body region of the markdown cell at the source buffer's point."""
        if not self.source.alive:
            raise BufferKilledError(f"Buffer {self.source.name} has been killed")
        cell = current_cell(self.source)
        if not cell.is_markdown:
            raise NotInMarkdownCellError("Point is not in a markdown cell")
        return markdown_body(self.source.text, cell)

    def begin(self, start: int, end: int) -> TextBuffer:
        """Track [start, end) and open the scratch buffer with its decommented text."""
        if self.state != SessionState.IDLE:
            raise SessionActiveError(f"Session is already {self.state.value}")
        self.saved_point = self.source.point
        self.region = self.source.track(start, end)
        self.was_empty = start == end
        body = self.source.text[start:end]
        self.original_text = decomment(body)
        self.scratch = TextBuffer(self.original_text, name=f"*markdown: {self.source.name}*")
        self.state = SessionState.EDITING
        logger.debug(f"Editing markdown {start}..{end} of {self.source.name}")
        return self.scratch

    def enter(self) -> TextBuffer:
        return self.begin(*self.locate())

    def _check_editing(self):
        if self.state != SessionState.EDITING:
            raise PreconditionError(f"No markdown edit in progress (session is {self.state.value})")

    def _replacement(self) -> str:
        """Commented form of the scratch text, fitted into the source region."""
        body = self.scratch.text
        start = self.region.start
        if not self.was_empty:
            return recomment(body)
        if not body:
            return ""
        text = self.source.text
        replacement = recomment(body)
        if start < len(text):
            # A following line starts at `start`
            return replacement + "\n"
        if text and not text.endswith("\n"):
            # The marker is the last line
            return "\n" + replacement
        return replacement

    def finish(self) -> TextBuffer:
        """
        Write the scratch text back and close the scratch buffer.

        If the source buffer was killed in the meantime nothing is written,
        the session stays open and BufferKilledError is raised.
        """
        self._check_editing()
        if not self.source.alive or not self.region.valid:
            raise BufferKilledError(f"Buffer {self.source.name} was killed, abort the edit")

        start, end = self.region.start, self.region.end
        if self.was_empty:
            # An empty body is only ever inserted into
            end = start
        # An untouched scratch buffer writes nothing back
        if self.scratch.text != self.original_text:
            replacement = self._replacement()
            self.source.replace(start, end, replacement)
        self.source.untrack(self.region)
        self.source.goto(start)

        self.scratch.kill()
        self.state = SessionState.FINISHED
        logger.debug(f"Finished markdown edit of {self.source.name}")
        return self.source

    def abort(self) -> TextBuffer:
        """Close the scratch buffer without writing anything back."""
        self._check_editing()
        self.scratch.kill()
        if self.source.alive:
            self.source.untrack(self.region)
            self.source.goto(self.saved_point)
        self.state = SessionState.ABORTED
        logger.debug(f"Aborted markdown edit of {self.source.name}")
        return self.source


class SessionRegistry:
    """Active sessions. At most one session per region of a buffer."""

    def __init__(self):
        self._sessions: List[MarkdownEditSession] = []

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def active(self) -> List[MarkdownEditSession]:
        return list(self._sessions)

    def enter(self, source: TextBuffer) -> MarkdownEditSession:
        """Start a session on the markdown cell at point in `source`."""
        session = MarkdownEditSession(source)
        start, end = session.locate()
        candidate = Range(start, end)
        for other in self.for_source(source):
            if other.region.valid and other.region.overlaps(candidate):
                raise SessionActiveError("This markdown cell is already being edited")
        session.begin(start, end)
        self._sessions.append(session)
        return session

    def for_scratch(self, buffer: TextBuffer) -> Optional[MarkdownEditSession]:
        return next((s for s in self._sessions if s.scratch is buffer), None)

    def for_source(self, buffer: TextBuffer) -> List[MarkdownEditSession]:
        return [s for s in self._sessions if s.source is buffer]

    def finish(self, session: MarkdownEditSession) -> TextBuffer:
        source = session.finish()
        self._sessions.remove(session)
        return source

    def abort(self, session: MarkdownEditSession) -> TextBuffer:
        source = session.abort()
        self._sessions.remove(session)
        return source
