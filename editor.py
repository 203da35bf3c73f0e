"""
Cellsync editor - interactive commands for editing notebooks as text.

Features:
- Buffers visiting `.sync.py` scripts paired with `.sync.ipynb` notebooks
- Cell navigation and code/markdown toggling on `# %%` markers
- Sync, execute line, execute all and restart sent to the notebook tools
- Markdown cells edited as plain text in a scratch buffer
- Pair creation and notebook conversion
- Emacs-style key bindings (see KEYMAP and MARKDOWN_KEYMAP)
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from document import notebook
from document.buffer import TextBuffer
from document.errors import EditorError, PreconditionError
from document.serialization import is_sync_script
from services.config import CellsyncConfig, get_config
from services.dispatcher import CommandDispatcher
from services.notify import ERROR, INFO, WARNING, Notification
from services.pairing import convert_notebook as _convert_notebook
from services.pairing import create_pair as _create_pair
from services.session import MarkdownEditSession, SessionRegistry

logger = logging.getLogger(__name__)

# ============================================================================
# Key bindings
# ============================================================================

# Buffers visiting .sync.py files
KEYMAP = {
    "C-c C-s": "sync",
    "C-c C-c": "execute_line",
    "C-c C-a": "execute_all",
    "C-c C-r": "restart",
    "C-c C-n": "next_cell",
    "C-c C-p": "previous_cell",
    "C-c C-t": "cycle_cell_type",
    "C-c '": "edit_markdown_cell",
    "C-x C-s": "save",
}

# Scratch buffers of markdown edit sessions
MARKDOWN_KEYMAP = {
    "C-c C-c": "finish_markdown_edit",
    "C-c '": "finish_markdown_edit",
    "C-c C-k": "abort_markdown_edit",
}

# Browser host (Jupyter-style chords)
WEB_KEYMAP = {
    "Ctrl+Enter": "execute_line",
    "Ctrl+Shift+Enter": "execute_all",
    "Alt+ArrowDown": "next_cell",
    "Alt+ArrowUp": "previous_cell",
    "Ctrl+Shift+M": "cycle_cell_type",
    "Ctrl+Shift+E": "edit_markdown_cell",
    "Ctrl+Shift+Y": "sync",
    "Ctrl+Shift+R": "restart",
    "Ctrl+S": "save",
}

WEB_MARKDOWN_KEYMAP = {
    "Ctrl+Enter": "finish_markdown_edit",
    "Escape": "abort_markdown_edit",
}

# Commands that take no arguments and act on the current buffer
BUFFER_COMMANDS = (
    "sync", "execute_line", "execute_all", "restart",
    "next_cell", "previous_cell", "cycle_cell_type",
    "edit_markdown_cell", "finish_markdown_edit", "abort_markdown_edit",
    "save", "kill_buffer",
)

# Commands taking a file or base name
FILE_COMMANDS = ("open", "create_pair", "convert_notebook")

SYNC_MODE = "cellsync"
MARKDOWN_MODE = "cellsync-markdown"
FUNDAMENTAL_MODE = "fundamental"


class Editor:
    """
    Buffers, the current buffer and the commands acting on it.

    Tool commands (sync, execute_line, execute_all, restart) return the
    asyncio Task of the invocation and must run inside an event loop.
    """

    def __init__(
        self,
        config: Optional[CellsyncConfig] = None,
        notifier: Optional[Callable[[Notification], None]] = None
    ):
        self.config = config or get_config()
        self.buffers: Dict[str, TextBuffer] = {}
        self.current: Optional[TextBuffer] = None
        self.messages: List[Notification] = []
        self._notifier = notifier
        self.dispatcher = CommandDispatcher(self.config, notify=self.notify)
        self.sessions = SessionRegistry()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def notify(self, message: str, level: str = INFO):
        """Record a message for the user."""
        note = Notification(message=message, level=level)
        self.messages.append(note)
        if level == ERROR:
            logger.error(message)
        elif level == WARNING:
            logger.warning(message)
        else:
            logger.info(message)
        if self._notifier is not None:
            self._notifier(note)

    @property
    def last_message(self) -> Optional[Notification]:
        return self.messages[-1] if self.messages else None

    # ------------------------------------------------------------------
    # Buffers
    # ------------------------------------------------------------------

    def add_buffer(self, buffer: TextBuffer, select: bool = True) -> TextBuffer:
        self.buffers[buffer.id] = buffer
        if select:
            self.current = buffer
        return buffer

    def get_buffer(self, buffer_id: str) -> TextBuffer:
        if buffer_id not in self.buffers:
            raise PreconditionError(f"No buffer {buffer_id}")
        return self.buffers[buffer_id]

    def find_file_buffer(self, path: Union[str, Path]) -> Optional[TextBuffer]:
        path = Path(path).resolve()
        return next((b for b in self.buffers.values()
                     if b.path is not None and b.path.resolve() == path), None)

    def switch_to(self, buffer: TextBuffer) -> TextBuffer:
        if buffer.id not in self.buffers:
            self.add_buffer(buffer, select=False)
        self.current = buffer
        return buffer

    def mode(self, buffer: Optional[TextBuffer] = None) -> str:
        """Major mode of a buffer: markdown session, sync script or plain text."""
        buffer = buffer or self.current
        if buffer is None:
            return FUNDAMENTAL_MODE
        if self.sessions.for_scratch(buffer) is not None:
            return MARKDOWN_MODE
        if buffer.path is not None and is_sync_script(buffer.path):
            return SYNC_MODE
        return FUNDAMENTAL_MODE

    def keymap(self, buffer: Optional[TextBuffer] = None) -> Dict[str, str]:
        mode = self.mode(buffer)
        if mode == MARKDOWN_MODE:
            return MARKDOWN_KEYMAP
        if mode == SYNC_MODE:
            return KEYMAP
        return {}

    def web_keymap(self, buffer: Optional[TextBuffer] = None) -> Dict[str, str]:
        mode = self.mode(buffer)
        if mode == MARKDOWN_MODE:
            return WEB_MARKDOWN_KEYMAP
        if mode == SYNC_MODE:
            return WEB_KEYMAP
        return {}

    def _require_current(self) -> TextBuffer:
        if self.current is None:
            raise PreconditionError("No current buffer")
        return self.current

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def run_command(self, name: str, *args, **kwargs) -> Any:
        """
        Run a command by name.

        Precondition and tool failures become error notifications and the
        command returns None. File-system errors propagate.
        """
        if name not in BUFFER_COMMANDS and name not in FILE_COMMANDS:
            self.notify(f"Unknown command {name}", WARNING)
            return None
        try:
            return getattr(self, name)(*args, **kwargs)
        except EditorError as e:
            self.notify(str(e), ERROR)
            return None

    def run_key(self, chord: str) -> Any:
        """Run the command bound to `chord` in the current buffer's keymap."""
        command = self.keymap().get(chord)
        if command is None:
            self.notify(f"{chord} is undefined", WARNING)
            return None
        return self.run_command(command)

    # ------------------------------------------------------------------
    # File commands
    # ------------------------------------------------------------------

    def open(self, path: Union[str, Path]) -> TextBuffer:
        """Visit a file, reusing its buffer if it is already open."""
        buffer = self.find_file_buffer(path)
        if buffer is None:
            buffer = TextBuffer.load(path)
            self.add_buffer(buffer, select=False)
        return self.switch_to(buffer)

    def save(self) -> Path:
        """Save the current buffer; sync a .sync.py file afterwards when configured."""
        buffer = self._require_current()
        path = buffer.save()
        self.notify(f"Wrote {path}")
        if self.config.sync_on_save and self.mode(buffer) == SYNC_MODE:
            self._sync_after_save(buffer)
        return path

    def _sync_after_save(self, buffer: TextBuffer):
        """Send sync for a saved buffer. The save stands even when sync cannot run."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.notify(f"Saved {buffer.name} without sync: no event loop is running", WARNING)
            return None
        try:
            return self.dispatcher.sync(buffer)
        except PreconditionError as e:
            self.notify(f"Saved {buffer.name} without sync: {e}", WARNING)
            return None

    def kill_buffer(self, buffer: Optional[TextBuffer] = None) -> bool:
        """Kill a buffer (default: current). A session's scratch buffer aborts its session."""
        buffer = buffer or self._require_current()
        session = self.sessions.for_scratch(buffer)
        if session is not None:
            self.sessions.abort(session)
        buffer.kill()
        self.buffers.pop(buffer.id, None)
        if self.current is buffer:
            self.current = next(iter(self.buffers.values()), None)
        return True

    def create_pair(self, base: str, directory: Union[str, Path] = ".") -> TextBuffer:
        """Create `<base>.sync.py` / `<base>.sync.ipynb` and visit the script."""
        status = _create_pair(base, directory, self.config)
        self.notify(f"Created {status.script.name} and {status.notebook.name}")
        return self.open(status.script)

    def convert_notebook(self, path: Union[str, Path]) -> TextBuffer:
        """Convert a notebook into a sync pair and visit the script."""
        status = _convert_notebook(path, self.config)
        self.notify(f"Converted {Path(path).name} into {status.script.name} ({status.describe()})")
        return self.open(status.script)

    # ------------------------------------------------------------------
    # Tool commands
    # ------------------------------------------------------------------

    def sync(self):
        return self.dispatcher.sync(self._require_current())

    def execute_line(self):
        return self.dispatcher.execute(self._require_current())

    def execute_all(self):
        return self.dispatcher.execute_all(self._require_current())

    def restart(self):
        return self.dispatcher.restart(self._require_current())

    # ------------------------------------------------------------------
    # Cell commands
    # ------------------------------------------------------------------

    def next_cell(self) -> bool:
        return notebook.next_cell(self._require_current())

    def previous_cell(self) -> bool:
        moved = notebook.previous_cell(self._require_current())
        if not moved:
            self.notify("No previous cell")
        return moved

    def cycle_cell_type(self):
        kind = notebook.cycle_cell_type(self._require_current())
        self.notify(f"Cell is now {kind.value}")
        return kind

    # ------------------------------------------------------------------
    # Markdown editing
    # ------------------------------------------------------------------

    def edit_markdown_cell(self) -> MarkdownEditSession:
        """Open the markdown cell at point in a scratch buffer and switch to it."""
        session = self.sessions.enter(self._require_current())
        self.add_buffer(session.scratch)
        return session

    def _current_session(self) -> MarkdownEditSession:
        session = self.sessions.for_scratch(self._require_current())
        if session is None:
            raise PreconditionError("Not in a markdown edit buffer")
        return session

    def finish_markdown_edit(self) -> TextBuffer:
        session = self._current_session()
        source = self.sessions.finish(session)
        self.buffers.pop(session.scratch.id, None)
        return self.switch_to(source)

    def abort_markdown_edit(self) -> TextBuffer:
        session = self._current_session()
        source = self.sessions.abort(session)
        self.buffers.pop(session.scratch.id, None)
        if source.alive and source.id in self.buffers:
            return self.switch_to(source)
        self.current = next(iter(self.buffers.values()), None)
        return source
