"""
Cellsync UI - Control Components

Command buttons and the pair/convert forms.
"""

from fasthtml.common import *
from .base import command_url, label_for


def CommandButton(buffer_id: str, command: str, chord: str = ""):
    """Button running a command on a buffer.

    The surrounding form's textarea and point are posted with it.

    Args:
        buffer_id: Target buffer ID
        command: Editor command name
        chord: Key chord shown in the tooltip

    Returns:
        Button posting to the command route
    """
    return Button(
        label_for(command),
        cls="btn btn-sm",
        type="button",
        hx_post=command_url(buffer_id, command),
        hx_include="#buffer-form",
        hx_target="#editor",
        hx_swap="outerHTML",
        title=f"{label_for(command)} ({chord})" if chord else label_for(command)
    )


def Toolbar(buffer_id: str, keys: dict):
    """Buttons for every command bound in `keys`.

    Args:
        buffer_id: Target buffer ID
        keys: Mapping of key chord to command name

    Returns:
        Div with one button per distinct command
    """
    seen = {}
    for chord, command in keys.items():
        seen.setdefault(command, chord)
    return Div(*[CommandButton(buffer_id, cmd, chord) for cmd, chord in seen.items()],
               cls="toolbar")


def PairForms():
    """Forms creating a new sync pair and converting an existing notebook.

    Returns:
        Div containing both forms
    """
    return Div(
        Form(
            Input(name="base", placeholder="base name", required=True),
            Button("Create pair", cls="btn btn-sm", type="submit"),
            action="/pair", method="post", cls="pair-form"
        ),
        Form(
            Input(name="path", placeholder="notebook.ipynb", required=True),
            Button("Convert notebook", cls="btn btn-sm", type="submit"),
            action="/convert", method="post", cls="pair-form"
        ),
        cls="pair-forms"
    )
