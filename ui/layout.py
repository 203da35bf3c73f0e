"""
Cellsync UI - Layout Components

Page layout and container components.
"""

from fasthtml.common import *
from typing import List
from urllib.parse import quote
from .base import get_level_class
from .buffer_view import BufferView
from .controls import PairForms

# Entries shown in the message log
MESSAGE_LOG_SIZE = 20


def MessageLog(messages: list):
    """Recent notifications, newest first, polled for async tool results.

    Args:
        messages: List of Notification instances

    Returns:
        Div with id="messages" that refreshes itself every 2 seconds
    """
    recent = list(reversed(messages[-MESSAGE_LOG_SIZE:]))
    return Div(
        *[Div(Span(f"{m.timestamp:%H:%M:%S}", cls="cell-meta"), " ", m.message,
              cls=get_level_class(m.level)) for m in recent],
        id="messages", cls="message-log",
        hx_get="/messages", hx_trigger="every 2s", hx_swap="outerHTML"
    )


def FileList(scripts: List[tuple], notebooks: list):
    """Sync scripts (with pair status) and unpaired notebooks in the directory.

    Args:
        scripts: List of (Path, PairStatus) tuples
        notebooks: List of notebook Paths that can be converted

    Returns:
        Div with links opening each script
    """
    return Div(
        *[A(Span(path.name), Span(status.describe(), cls="cell-meta"),
            href=f"/open?path={quote(str(path))}", cls="file-item")
          for path, status in scripts],
        *[Span(path.name, cls="file-item unpaired", title="Not paired - use Convert notebook")
          for path in notebooks],
        cls="file-list"
    )


def IndexPage(scripts: List[tuple], notebooks: list, messages: list):
    """Render the start page.

    Args:
        scripts: List of (Path, PairStatus) tuples
        notebooks: Unpaired notebook Paths
        messages: Notification log

    Returns:
        Complete page with Titled wrapper
    """
    return Titled(
        "cellsync",
        Div(
            FileList(scripts, notebooks),
            PairForms(),
            MessageLog(messages),
            cls="container"
        )
    )


def EditorPage(editor, buffer):
    """Render the editing page for a buffer.

    Args:
        editor: Editor instance
        buffer: TextBuffer being edited

    Returns:
        Complete page with Titled wrapper
    """
    return Titled(
        f"{buffer.name} - cellsync",
        Div(
            A("← Files", href="/", cls="file-item"),
            BufferView(editor, buffer),
            MessageLog(editor.messages),
            cls="container"
        )
    )
