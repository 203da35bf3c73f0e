"""Errors raised by buffer, cell and tool operations."""
from typing import Optional


class EditorError(RuntimeError):
    """Base class for every error reported to the user as a notification."""


class PreconditionError(EditorError):
    """A command was issued in a state where it cannot run. Nothing was changed."""


class NoFileError(PreconditionError):
    """The buffer is not visiting a file."""


class NoNotebookFileError(PreconditionError):
    """The buffer has no paired .sync.ipynb notebook."""


class NotInMarkdownCellError(PreconditionError):
    """Point is not inside a markdown cell."""


class NoCellMarkerError(PreconditionError):
    """Point is above the first cell marker."""


class BufferKilledError(PreconditionError):
    """The buffer was killed."""


class SessionActiveError(PreconditionError):
    """The region is already being edited in another session."""


class ToolError(EditorError):
    """An external tool exited unsuccessfully or did not produce its files."""

    def __init__(self, message: str, result: Optional[object] = None):
        super().__init__(message)
        self.result = result
