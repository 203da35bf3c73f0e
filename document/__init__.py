"""Document layer - Text buffers, cell markers and sync-pair files."""
from .buffer import TextBuffer, Range, Edit
from .cell import Cell, CellKind, MARKER, scan_cells, cell_at, markdown_body, decomment, recomment, toggle_marker
from .errors import (
    EditorError, PreconditionError, NoFileError, NoNotebookFileError,
    NotInMarkdownCellError, NoCellMarkerError, BufferKilledError,
    SessionActiveError, ToolError
)
from .notebook import current_cell, next_cell, previous_cell, cycle_cell_type
from .serialization import sync_paths, paired_notebook, is_sync_script, read_notebook_cells, pair_status, PairStatus

__all__ = [
    'TextBuffer', 'Range', 'Edit',
    'Cell', 'CellKind', 'MARKER', 'scan_cells', 'cell_at', 'markdown_body',
    'decomment', 'recomment', 'toggle_marker',
    'EditorError', 'PreconditionError', 'NoFileError', 'NoNotebookFileError',
    'NotInMarkdownCellError', 'NoCellMarkerError', 'BufferKilledError',
    'SessionActiveError', 'ToolError',
    'current_cell', 'next_cell', 'previous_cell', 'cycle_cell_type',
    'sync_paths', 'paired_notebook', 'is_sync_script', 'read_notebook_cells',
    'pair_status', 'PairStatus',
]
