"""
Cellsync UI - Buffer Components

The editable buffer, its cell outline and the status line.
"""

import json
from fasthtml.common import *

from document.cell import cell_at, scan_cells
from .base import get_level_class
from .controls import Toolbar


def StatusLine(note=None):
    """Last notification, shown under the editor.

    Args:
        note: Notification instance or None

    Returns:
        Div with id="status"
    """
    if note is None:
        return Div(id="status")
    return Div(note.message, id="status", cls=get_level_class(note.level))


def CellOutline(buffer, regions=()):
    """Numbered list of the buffer's cells with the current one highlighted.

    Cells whose markdown body is open in an edit session get an "editing"
    badge.

    Args:
        buffer: TextBuffer instance
        regions: Ranges of the buffer being edited in markdown sessions

    Returns:
        Ol listing marker cells by kind and first body line
    """
    text = buffer.text
    current = cell_at(text, buffer.point).index
    edited = {cell_at(text, r.start).index for r in regions if r.valid}
    items = []
    for cell in scan_cells(text):
        if not cell.has_marker:
            continue
        first_line = text[cell.body_start:cell.end].split("\n", 1)[0]
        classes = [c for c in ("current" if cell.index == current else "",
                               "editing" if cell.index in edited else "") if c]
        items.append(Li(
            Span(cell.kind.value, cls=f"cell-badge {cell.kind.value}"),
            Span("editing", cls="cell-badge editing") if cell.index in edited else None,
            Span(first_line[:60], cls="cell-preview"),
            cls=" ".join(classes)
        ))
    return Ol(*items, cls="cell-outline", id="outline")


def RegionNote(session):
    """Where the scratch buffer's text will be written back.

    Args:
        session: MarkdownEditSession being edited

    Returns:
        Div naming the source buffer and the lines of the edited body
    """
    source, region = session.source, session.region
    if not source.alive or not region.valid:
        return Div(f"{source.name} was killed, abort to close this buffer", cls="status error")
    first = source.line_number(region.start)
    last = source.line_number(region.end)
    lines = f"line {first}" if first == last else f"lines {first}-{last}"
    return Div(f"Editing {lines} of {source.name}", cls="cell-meta region-note")


def BufferView(editor, buffer):
    """Render a buffer as a textarea with its command toolbar.

    The textarea carries the buffer id, point and browser key bindings as
    data attributes; the page script posts commands with its current text.

    Args:
        editor: Editor instance
        buffer: TextBuffer to show, or None when no buffer is left

    Returns:
        Div with id="editor" (swapped by every command)
    """
    if buffer is None:
        return Div(P("No buffer is open."), A("Back to files", href="/"), id="editor")

    mode = editor.mode(buffer)
    keys = editor.web_keymap(buffer)
    session = editor.sessions.for_scratch(buffer)
    regions = [s.region for s in editor.sessions.for_source(buffer)]

    return Div(
        Div(
            Span(buffer.name, cls="title"),
            Span(mode, cls="mode-badge"),
            Span("modified", cls="cell-meta") if buffer.modified else None,
            cls="header"
        ),
        RegionNote(session) if session is not None else None,
        Toolbar(buffer.id, keys),
        Form(
            Textarea(buffer.text, name="source", id="source", rows="30", spellcheck="false",
                     data_buffer=buffer.id, data_point=str(buffer.point),
                     data_keys=json.dumps(keys),
                     onkeyup="syncPoint()", onclick="syncPoint()"),
            Hidden(value=str(buffer.point), name="point", id="point"),
            id="buffer-form", onsubmit="return false;"
        ),
        None if session is not None else CellOutline(buffer, regions),
        StatusLine(editor.last_message),
        Script("restoreCaret();"),
        id="editor"
    )
