#!/usr/bin/env python3
"""
Tests for the editor: key bindings, command errors and markdown editing.

Run with: uv run python test_editor.py  (or: pytest test_editor.py)
"""
import asyncio
import sys
import tempfile
from pathlib import Path
sys.path.insert(0, '.')

from document.buffer import TextBuffer
from editor import FUNDAMENTAL_MODE, KEYMAP, MARKDOWN_MODE, SYNC_MODE, Editor
from services.config import CellsyncConfig
from test_dispatcher import _calls, _config, _workspace
from test_pairing import STUB_PAIR

SCRIPT = (
    "# %%\n"
    "import math\n"
    "\n"
    "# %% [markdown]\n"
    "# ## Notes\n"
    "# Plain words\n"
    "\n"
    "# %%\n"
    "math.pi\n"
)


def _editor(tmp: str, text: str = SCRIPT, **config):
    """Editor visiting demo.sync.py (with its notebook) in `tmp`."""
    root = Path(tmp)
    (root / "demo.sync.py").write_text(text)
    (root / "demo.sync.ipynb").write_text("{}")
    settings = dict(sync_on_save=False)
    settings.update(config)
    editor = Editor(CellsyncConfig(**settings))
    editor.open(root / "demo.sync.py")
    return editor


def _goto_markdown(editor: Editor):
    buffer = editor.current
    buffer.goto(buffer.text.index("Plain"))
    return buffer


def test_modes_and_keymaps():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        assert editor.mode() == SYNC_MODE
        assert editor.keymap() is KEYMAP

        plain = editor.add_buffer(TextBuffer("notes"))
        assert editor.current is plain
        assert editor.mode() == FUNDAMENTAL_MODE
        assert editor.keymap() == {}
        assert editor.web_keymap() == {}


def test_open_reuses_buffer():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        first = editor.current
        editor.add_buffer(TextBuffer("other"))
        again = editor.open(Path(tmp) / "demo.sync.py")
        assert again is first
        assert editor.current is first
        assert len(editor.buffers) == 2


def test_cell_keys():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        buffer = editor.current

        assert editor.run_key("C-c C-n") is False
        assert buffer.text[buffer.point:].startswith("# ## Notes")

        assert editor.run_key("C-c C-p") is True
        assert editor.run_key("C-c C-p") is False
        assert editor.last_message.message == "No previous cell"

        editor.run_key("C-c C-t")
        assert buffer.text.startswith("# %% [markdown]\nimport math")
        assert editor.last_message.message == "Cell is now markdown"


def test_undefined_key_and_unknown_command():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        assert editor.run_key("C-x C-f") is None
        assert editor.last_message.message == "C-x C-f is undefined"
        assert editor.last_message.level == "warning"

        assert editor.run_command("shutdown") is None
        assert editor.last_message.level == "warning"


def test_command_errors_become_notifications():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        # Point is in the first code cell
        assert editor.run_command("edit_markdown_cell") is None
        assert editor.last_message.is_error
        assert "markdown" in editor.last_message.message

        editor.add_buffer(TextBuffer("x = 1\n"))
        assert editor.run_command("sync") is None
        assert "not visiting a file" in editor.last_message.message

        assert editor.run_command("finish_markdown_edit") is None
        assert editor.last_message.message == "Not in a markdown edit buffer"


def test_markdown_edit_finish():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        source = _goto_markdown(editor)

        session = editor.run_key("C-c '")
        scratch = editor.current
        assert scratch is session.scratch
        assert editor.mode() == MARKDOWN_MODE
        assert scratch.text == "## Notes\nPlain words"

        scratch.set_text("## Notes\nPlain words, edited")
        assert editor.run_key("C-c C-c") is source
        assert editor.current is source
        assert scratch.id not in editor.buffers
        assert source.text == SCRIPT.replace("# Plain words", "# Plain words, edited")
        assert source.modified
        assert len(editor.sessions) == 0


def test_markdown_edit_abort():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        source = _goto_markdown(editor)
        point = source.point

        editor.run_key("C-c '")
        editor.current.set_text("thrown away")
        editor.run_key("C-c C-k")

        assert editor.current is source
        assert source.text == SCRIPT
        assert source.point == point


def test_killing_scratch_aborts_session():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        source = _goto_markdown(editor)
        editor.run_key("C-c '")
        editor.current.set_text("gone")

        editor.run_command("kill_buffer")
        assert len(editor.sessions) == 0
        assert editor.current is source
        assert source.text == SCRIPT


def test_killing_source_during_session():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        source = _goto_markdown(editor)
        editor.run_key("C-c '")
        scratch = editor.current

        editor.kill_buffer(source)
        assert editor.current is scratch

        # Finishing fails and leaves the session open
        assert editor.run_key("C-c C-c") is None
        assert editor.last_message.is_error
        assert "killed" in editor.last_message.message
        assert editor.mode() == MARKDOWN_MODE

        editor.run_key("C-c C-k")
        assert len(editor.sessions) == 0
        assert editor.current is None
        assert editor.buffers == {}


def test_save_without_sync():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp)
        editor.current.insert("# header\n")
        path = editor.run_key("C-x C-s")
        assert path.read_text().startswith("# header\n# %%")
        assert editor.last_message.message == f"Wrote {path}"
        assert editor.dispatcher.get_status().running_count == 0


def test_save_outside_event_loop_skips_sync():
    with tempfile.TemporaryDirectory() as tmp:
        editor = _editor(tmp, sync_on_save=True)
        editor.current.insert("# header\n")
        path = editor.run_command("save")
        assert path.read_text().startswith("# header\n")
        assert not editor.current.modified
        note = editor.last_message
        assert note.level == "warning"
        assert "no event loop" in note.message


def test_save_without_notebook_warns():
    with tempfile.TemporaryDirectory() as tmp:
        script = Path(tmp) / "lonely.sync.py"
        script.write_text("# %%\n")
        editor = Editor(_config(sync_on_save=True))

        async def main():
            editor.open(script)
            editor.current.insert("x = 1\n")
            return editor.run_key("C-x C-s")

        assert asyncio.run(main()) == script
        assert script.read_text() == "x = 1\n# %%\n"
        assert editor.last_message.level == "warning"
        assert "lonely.sync.ipynb" in editor.last_message.message
        assert not any(m.is_error for m in editor.messages)


def test_save_then_sync():
    with tempfile.TemporaryDirectory() as tmp:
        script = _workspace(tmp)
        config = _config(sync_on_save=True)
        editor = Editor(config)

        async def main():
            editor.open(script)
            editor.current.insert("# saved\n")
            editor.run_key("C-x C-s")
            await editor.dispatcher.wait_all()

        asyncio.run(main())
        assert script.read_text().startswith("# saved\n")
        assert _calls(script) == [f"sync --filename {script.resolve()}"]
        assert editor.last_message.message == "sync finished: demo.sync.py"


def test_execute_line_key():
    with tempfile.TemporaryDirectory() as tmp:
        script = _workspace(tmp)
        editor = Editor(_config())

        async def main():
            editor.open(script)
            editor.current.goto_line(2)
            task = editor.run_key("C-c C-c")
            return await task

        assert asyncio.run(main()).ok
        assert _calls(script) == [f"execute --filename {script.resolve()} --linenumber 2"]


def test_create_pair_visits_script():
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        (root / "stubpair.py").write_text(STUB_PAIR)
        editor = Editor(CellsyncConfig(python=sys.executable, pair_module="stubpair", sync_on_save=False))

        buffer = editor.run_command("create_pair", "fresh", root)
        assert editor.current is buffer
        assert buffer.name == "fresh.sync.py"
        assert editor.mode() == SYNC_MODE
        assert editor.last_message.message == "Created fresh.sync.py and fresh.sync.ipynb"

        assert editor.run_command("create_pair", "fresh", root) is None
        assert "already exists" in editor.last_message.message


if __name__ == '__main__':
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn):
            fn()
            print(f"{name} PASSED")
