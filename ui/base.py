"""
Cellsync UI - Base Utilities

Common utilities shared across UI components.
"""

from fasthtml.common import *


def get_level_class(level: str) -> str:
    """Get CSS class for a notification level.

    Args:
        level: Notification level ("info", "warning" or "error")

    Returns:
        CSS class string for the status line
    """
    if level == "error":
        return "status error"
    if level == "warning":
        return "status warning"
    return "status success"


def command_url(buffer_id: str, command: str) -> str:
    """URL running `command` on a buffer."""
    return f"/buffer/{buffer_id}/command/{command}"


def label_for(command: str) -> str:
    """Button label for a command name."""
    return command.replace("_", " ").capitalize()
