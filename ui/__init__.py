"""
Cellsync UI Package

FastHTML components for the browser-hosted editor.

Usage:
    from ui import EditorPage, IndexPage, BufferView, MessageLog
"""

# Base utilities
from .base import get_level_class, command_url, label_for

# Controls
from .controls import CommandButton, Toolbar, PairForms

# Buffer
from .buffer_view import BufferView, CellOutline, StatusLine

# Layout
from .layout import EditorPage, IndexPage, FileList, MessageLog

__all__ = [
    # Base
    'get_level_class',
    'command_url',
    'label_for',
    # Controls
    'CommandButton',
    'Toolbar',
    'PairForms',
    # Buffer
    'BufferView',
    'CellOutline',
    'StatusLine',
    # Layout
    'EditorPage',
    'IndexPage',
    'FileList',
    'MessageLog',
]
