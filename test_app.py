#!/usr/bin/env python3
"""
Tests for the browser host routes.

Run with: uv run python test_app.py  (or: pytest test_app.py)
"""
import os
import sys
import tempfile
from pathlib import Path
sys.path.insert(0, '.')

from starlette.testclient import TestClient

import app as cellsync_app
from editor import MARKDOWN_MODE, Editor
from services.config import CellsyncConfig

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
NOTEBOOK = '{"cells": [], "metadata": {}, "nbformat": 4, "nbformat_minor": 5}'


def _setup(tmp: str):
    root = Path(tmp)
    (root / "demo.sync.py").write_text(SCRIPT)
    (root / "demo.sync.ipynb").write_text(NOTEBOOK)
    editor = Editor(CellsyncConfig(sync_on_save=False))
    cellsync_app.set_editor(editor)
    return editor, TestClient(cellsync_app.app), root / "demo.sync.py"


def test_index_lists_pairs_and_notebooks():
    with tempfile.TemporaryDirectory() as tmp:
        _, client, _ = _setup(tmp)
        (Path(tmp) / "legacy.ipynb").write_text(NOTEBOOK)
        cwd = os.getcwd()
        os.chdir(tmp)
        try:
            response = client.get("/")
        finally:
            os.chdir(cwd)
        assert response.status_code == 200
        assert "demo.sync.py" in response.text
        assert "legacy.ipynb" in response.text
        assert "demo.sync.ipynb</span>" not in response.text


def test_open_redirects_to_buffer():
    with tempfile.TemporaryDirectory() as tmp:
        editor, client, script = _setup(tmp)
        response = client.get("/open", params={"path": str(script)}, follow_redirects=False)
        assert response.status_code == 303
        buffer = editor.current
        assert response.headers["location"] == f"/buffer/{buffer.id}"

        page = client.get(f"/buffer/{buffer.id}")
        assert page.status_code == 200
        assert 'id="source"' in page.text
        assert "Plain words" in page.text


def test_unknown_buffer_redirects_home():
    with tempfile.TemporaryDirectory() as tmp:
        _, client, _ = _setup(tmp)
        response = client.get("/buffer/nope", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"


def test_command_uses_posted_text_and_point():
    with tempfile.TemporaryDirectory() as tmp:
        editor, client, script = _setup(tmp)
        buffer = editor.open(script)
        edited = SCRIPT.replace("import math", "import math, os").replace("\n", "\r\n")

        response = client.post(f"/buffer/{buffer.id}/command/next_cell",
                               data={"source": edited, "point": "0"})
        assert response.status_code == 200
        assert 'id="editor"' in response.text
        assert "\r" not in buffer.text
        assert buffer.text.startswith("# %%\nimport math, os\n")
        assert buffer.text[buffer.point:].startswith("# ## Notes")


def test_markdown_edit_round_trip():
    with tempfile.TemporaryDirectory() as tmp:
        editor, client, script = _setup(tmp)
        source = editor.open(script)

        response = client.post(f"/buffer/{source.id}/command/edit_markdown_cell",
                               data={"source": SCRIPT, "point": str(SCRIPT.index("Plain"))})
        scratch = editor.current
        assert scratch is not source
        assert editor.mode(scratch) == MARKDOWN_MODE
        assert MARKDOWN_MODE in response.text
        assert "## Notes" in response.text

        client.post(f"/buffer/{scratch.id}/command/finish_markdown_edit",
                    data={"source": "## Notes\r\nPlain words\r\nMore", "point": "0"})
        assert editor.current is source
        assert source.text == SCRIPT.replace("# Plain words\n", "# Plain words\n# More\n")


def test_command_errors_show_in_status():
    with tempfile.TemporaryDirectory() as tmp:
        editor, client, script = _setup(tmp)
        buffer = editor.open(script)

        response = client.post(f"/buffer/{buffer.id}/command/edit_markdown_cell",
                               data={"source": SCRIPT, "point": "0"})
        assert response.status_code == 200
        assert "status error" in response.text
        assert editor.current is buffer

        client.post("/buffer/nope/command/next_cell", data={"point": "0"})
        assert editor.last_message.message == "Buffer nope is gone"

        messages = client.get("/messages")
        assert "Buffer nope is gone" in messages.text


def test_edited_region_is_marked_in_both_views():
    with tempfile.TemporaryDirectory() as tmp:
        editor, client, script = _setup(tmp)
        source = editor.open(script)

        client.post(f"/buffer/{source.id}/command/edit_markdown_cell",
                    data={"source": SCRIPT, "point": str(SCRIPT.index("Plain"))})
        scratch = editor.current

        page = client.get(f"/buffer/{scratch.id}")
        assert "Editing lines 5-6 of demo.sync.py" in page.text
        assert 'id="outline"' not in page.text

        page = client.get(f"/buffer/{source.id}")
        assert page.text.count('class="cell-badge editing"') == 1
        assert "## Notes" in page.text

        client.post(f"/buffer/{scratch.id}/command/abort_markdown_edit", data={"point": "0"})
        page = client.get(f"/buffer/{source.id}")
        assert "cell-badge editing" not in page.text


def test_file_commands_are_refused_on_buffers():
    with tempfile.TemporaryDirectory() as tmp:
        editor, client, script = _setup(tmp)
        buffer = editor.open(script)

        for command in ["open", "create_pair", "convert_notebook"]:
            response = client.post(f"/buffer/{buffer.id}/command/{command}",
                                   data={"source": SCRIPT, "point": "0"})
            assert response.status_code == 200
            assert "status error" in response.text
            assert editor.last_message.message == f"{command} cannot run on a buffer"
        assert editor.current is buffer
        assert buffer.text == SCRIPT


if __name__ == '__main__':
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn):
            fn()
            print(f"{name} PASSED")
