"""
Command dispatcher - sends editor actions to the notebook tools.

Each action becomes one `python -m <requests module>.<command>` invocation
with `--filename` (and `--linenumber` for execute). Invocations run in the
background; their outcome is reported through the notifier when the
process ends. Nothing is retried, queued or cancelled.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from document.buffer import TextBuffer
from document.errors import BufferKilledError, NoFileError, NoNotebookFileError
from document.serialization import paired_notebook
from .config import CellsyncConfig, get_config
from .notify import ERROR, INFO, Notifier, log_notifier
from .process import ProcessResult, launch

logger = logging.getLogger(__name__)

SYNC = "sync"
EXECUTE = "execute"
EXECUTE_ALL = "execute_all"
RESTART = "restart"

COMMANDS = (SYNC, EXECUTE, EXECUTE_ALL, RESTART)

# Longest slice of tool output included in a failure message
MAX_OUTPUT_CHARS = 2000


@dataclass
class Invocation:
    """A dispatched tool invocation."""
    command: str
    filename: Path
    task: "asyncio.Task[ProcessResult]"
    linenumber: Optional[int] = None
    started: datetime = field(default_factory=datetime.now)

    @property
    def done(self) -> bool:
        return self.task.done()


@dataclass
class DispatchStatus:
    """Current status of the dispatcher."""
    running_count: int
    running_commands: List[str]
    completed_count: int


class CommandDispatcher:
    """
    Launches notebook tool requests for file-visiting buffers.

    Several invocations may be in flight at once; a later sync can overtake
    an earlier execute.
    """

    def __init__(self, config: Optional[CellsyncConfig] = None, notify: Optional[Notifier] = None):
        """
        Initialize the dispatcher.

        Args:
            config: Tool settings. Defaults to the loaded cellsync_config.json
            notify: Called with (message, level) when an invocation ends
        """
        self.config = config or get_config()
        self.notify = notify or log_notifier
        self.in_flight: List[Invocation] = []
        self.history: List[ProcessResult] = []

    def build_argv(self, command: str, filename: str, linenumber: Optional[int] = None) -> List[str]:
        """Argument vector for one request."""
        if command not in COMMANDS:
            raise ValueError(f"Unknown command {command!r}, expected one of {', '.join(COMMANDS)}")
        argv = self.config.python_argv(f"{self.config.requests_module}.{command}")
        argv += ["--filename", str(filename)]
        if command == EXECUTE:
            if linenumber is None:
                raise ValueError("execute needs a line number")
            argv += ["--linenumber", str(linenumber)]
        return argv

    def check_buffer(self, buffer: TextBuffer) -> Path:
        """Return the buffer's file, or raise if the tools cannot work on it."""
        if not buffer.alive:
            raise BufferKilledError(f"Buffer {buffer.name} has been killed")
        if buffer.path is None:
            raise NoFileError(f"Buffer {buffer.name} is not visiting a file")
        notebook = paired_notebook(buffer.path)
        if notebook is None:
            raise NoNotebookFileError(f"{buffer.path.name} is not a .sync.py file")
        if not notebook.exists():
            raise NoNotebookFileError(f"No notebook {notebook.name} next to {buffer.path.name}")
        return buffer.path.resolve()

    def dispatch(
        self,
        buffer: TextBuffer,
        command: str,
        linenumber: Optional[int] = None
    ) -> "asyncio.Task[ProcessResult]":
        """
        Launch one request for `buffer`.

        Returns immediately - the task resolves to the ProcessResult after the
        notifier has been called. Must be called from a running event loop.

        Raises:
            PreconditionError subclasses when the buffer has no paired notebook
        """
        path = self.check_buffer(buffer)
        argv = self.build_argv(command, str(path), linenumber)

        # The tools read the file, not the buffer
        if self.config.save_before_run and buffer.modified:
            buffer.save()

        logger.info(f"Dispatching {command} for {path.name}" + (f" line {linenumber}" if linenumber else ""))

        def on_done(result: ProcessResult):
            self._report(command, path, result)

        task = launch(argv, cwd=path.parent, on_done=on_done)
        invocation = Invocation(command=command, filename=path, task=task, linenumber=linenumber)
        self.in_flight.append(invocation)
        task.add_done_callback(lambda _t: self._forget(invocation))
        return task

    def _report(self, command: str, path: Path, result: ProcessResult):
        self.history.append(result)
        logger.info(f"{command} for {path.name} exited {result.returncode} after {result.duration:.2f}s")
        if result.ok:
            self.notify(f"{command} finished: {path.name}", INFO)
            return
        output = result.output.strip()
        if len(output) > MAX_OUTPUT_CHARS:
            output = output[-MAX_OUTPUT_CHARS:]
        self.notify(f"{command} failed (exit {result.returncode}): {output}", ERROR)

    def _forget(self, invocation: Invocation):
        if invocation in self.in_flight:
            self.in_flight.remove(invocation)

    def sync(self, buffer: TextBuffer) -> "asyncio.Task[ProcessResult]":
        return self.dispatch(buffer, SYNC)

    def execute(self, buffer: TextBuffer, linenumber: Optional[int] = None) -> "asyncio.Task[ProcessResult]":
        """Execute the cell containing `linenumber` (default: the line of point)."""
        if linenumber is None:
            linenumber = buffer.line_number()
        return self.dispatch(buffer, EXECUTE, linenumber)

    def execute_all(self, buffer: TextBuffer) -> "asyncio.Task[ProcessResult]":
        return self.dispatch(buffer, EXECUTE_ALL)

    def restart(self, buffer: TextBuffer) -> "asyncio.Task[ProcessResult]":
        return self.dispatch(buffer, RESTART)

    def get_status(self) -> DispatchStatus:
        return DispatchStatus(
            running_count=len(self.in_flight),
            running_commands=[i.command for i in self.in_flight],
            completed_count=len(self.history),
        )

    async def wait_all(self) -> List[ProcessResult]:
        """Wait for every invocation currently in flight."""
        tasks = [i.task for i in self.in_flight]
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))
