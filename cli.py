"""
Console scripts.

    cellsync-make-pair BASE [--directory DIR]
    cellsync-convert NOTEBOOK
    cellsync-run COMMAND FILENAME [--linenumber N]
    cellsync-serve [--port PORT]
"""
import asyncio
import sys
from typing import Optional

from fastcore.script import call_parse, Param

from document.buffer import TextBuffer
from document.errors import EditorError
from services.config import CellsyncConfig, get_config
from services.dispatcher import EXECUTE, CommandDispatcher
from services.pairing import convert_notebook, create_pair
from services.process import ProcessResult


def print_notifier(message: str, level: str = "info") -> None:
    tag = "ERROR" if level == "error" else level.upper()
    print(f"[{tag}] {message}", file=sys.stderr if level == "error" else sys.stdout)


async def run_request(
    command: str,
    filename: str,
    linenumber: Optional[int] = None,
    config: Optional[CellsyncConfig] = None
) -> ProcessResult:
    """Dispatch one request for a file and wait for its result."""
    buffer = TextBuffer.load(filename)
    dispatcher = CommandDispatcher(config or get_config(), notify=print_notifier)
    if command == EXECUTE and linenumber is None:
        linenumber = 1
    task = dispatcher.dispatch(buffer, command, linenumber if command == EXECUTE else None)
    return await task


@call_parse
def make_pair(
    base: Param("Base name, creates BASE.sync.py and BASE.sync.ipynb", str),
    directory: Param("Directory to create the files in", str) = ".",
):
    "Create a new sync pair."
    try:
        status = create_pair(base, directory)
    except EditorError as e:
        print(f"[PAIR] {e}", file=sys.stderr)
        sys.exit(1)
    print(f"[PAIR] Created {status.script} and {status.notebook}")


@call_parse
def convert(
    notebook: Param("Notebook to turn into a sync pair", str),
):
    "Convert an existing notebook into a sync pair."
    try:
        status = convert_notebook(notebook)
    except EditorError as e:
        print(f"[CONVERT] {e}", file=sys.stderr)
        sys.exit(1)
    print(f"[CONVERT] {status.script.name} / {status.notebook.name}: {status.describe()}")


@call_parse
def run(
    command: Param("Request to send", str, choices=["sync", "execute", "execute_all", "restart"]),
    filename: Param("The .sync.py file", str),
    linenumber: Param("Line of the cell to execute", int) = None,
):
    "Send one request to the notebook tools and wait for it."
    try:
        result = asyncio.run(run_request(command, filename, linenumber))
    except EditorError as e:
        print(f"[{command.upper()}] {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0 if result.ok else 1)


@call_parse
def serve_app(
    port: Param("Port to listen on", int) = 8000,
):
    "Start the browser-hosted editor in the current directory."
    from app import main
    main(port)
