"""
Cellsync - edit Jupyter notebooks as percent-format text in the browser

Features:
- Lists the `.sync.py` / `.sync.ipynb` pairs in the working directory
- Create new pairs, convert existing notebooks into pairs
- Plain textarea editor with Jupyter-style keyboard shortcuts
- Sync, execute line, execute all and restart via the notebook tools
- Markdown cells edited as plain text, written back commented
- Message log polled for tool results that arrive after a request
"""

from fasthtml.common import *
from pathlib import Path
from typing import Optional
import logging

from document.serialization import is_sync_notebook, pair_status
from editor import BUFFER_COMMANDS, Editor, WEB_KEYMAP, WEB_MARKDOWN_KEYMAP
from services.config import load_config, print_config_status
from ui import BufferView, EditorPage, IndexPage, MessageLog

logger = logging.getLogger(__name__)

# ============================================================================
# Editor state
# ============================================================================

_editor: Optional[Editor] = None


def get_editor() -> Editor:
    """The editor shared by all requests, created on first use."""
    global _editor
    if _editor is None:
        _editor = Editor(load_config())
    return _editor


def set_editor(editor: Optional[Editor]) -> None:
    """Replace the shared editor (useful for testing)."""
    global _editor
    _editor = editor


def list_pairs(directory: Path):
    """(scripts with pair status, unpaired notebooks) in `directory`."""
    scripts = [(p, pair_status(p)) for p in sorted(directory.glob("*.sync.py"))]
    notebooks = [p for p in sorted(directory.glob("*.ipynb")) if not is_sync_notebook(p)]
    return scripts, notebooks

# ============================================================================
# CSS and JS
# ============================================================================

css = """
:root {
    --bg-primary: #0d1117; --bg-secondary: #161b22; --bg-cell: #1c2128;
    --border: #30363d; --text-primary: #e6edf3; --text-muted: #8b949e;
    --accent-blue: #58a6ff; --accent-green: #3fb950; --accent-red: #f85149;
    --accent-orange: #d29922;
}
body { background: var(--bg-primary); color: var(--text-primary); font-family: system-ui, sans-serif; }
.container { max-width: 1100px; margin: 0 auto; padding: 16px; }
.header { display: flex; gap: 12px; align-items: center; margin-bottom: 8px; }
.title { font-weight: 600; }
.mode-badge, .cell-badge {
    font-size: 0.75rem; padding: 2px 8px; border-radius: 10px;
    background: var(--bg-secondary); border: 1px solid var(--border);
}
.cell-badge.markdown { color: var(--accent-orange); }
.cell-badge.code { color: var(--accent-blue); }
.cell-meta { color: var(--text-muted); font-size: 0.8rem; }
.toolbar { display: flex; flex-wrap: wrap; gap: 6px; margin-bottom: 8px; }
.btn { background: var(--bg-cell); color: var(--text-primary); border: 1px solid var(--border);
       border-radius: 4px; padding: 4px 10px; cursor: pointer; }
.btn:hover { border-color: var(--accent-blue); }
textarea#source {
    width: 100%; font-family: ui-monospace, monospace; font-size: 0.9rem;
    background: var(--bg-cell); color: var(--text-primary);
    border: 1px solid var(--border); border-radius: 6px; padding: 8px;
}
.cell-outline { font-size: 0.85rem; color: var(--text-muted); }
.cell-outline li.current { color: var(--text-primary); font-weight: 600; }
.cell-outline li.editing { border-left: 2px solid var(--accent-orange); padding-left: 4px; }
.cell-badge.editing { color: var(--accent-orange); margin-left: 4px; }
.cell-preview { margin-left: 8px; font-family: ui-monospace, monospace; }
.status { padding: 6px 10px; border-radius: 4px; margin: 4px 0; font-size: 0.85rem; }
.status.success { background: rgba(63, 185, 80, 0.15); }
.status.warning { background: rgba(210, 153, 34, 0.2); }
.status.error { background: rgba(248, 81, 73, 0.2); color: var(--accent-red); white-space: pre-wrap; }
.file-list {
    display: flex; flex-wrap: wrap; gap: 8px;
    padding: 12px; background: var(--bg-secondary);
    border-radius: 6px; margin-bottom: 16px;
}
.file-item {
    display: inline-flex; gap: 8px; padding: 6px 12px; background: var(--bg-cell);
    border: 1px solid var(--border); border-radius: 4px;
    font-size: 0.85rem; text-decoration: none; color: var(--text-primary);
}
.file-item:hover { border-color: var(--accent-blue); }
.file-item.unpaired { color: var(--text-muted); }
.pair-forms { display: flex; gap: 16px; margin-bottom: 16px; }
.pair-form { display: flex; gap: 6px; }
.message-log { margin-top: 16px; max-height: 240px; overflow-y: auto; }
"""

js = """
function syncPoint() {
    const ta = document.getElementById('source');
    const point = document.getElementById('point');
    if (ta && point) point.value = ta.selectionStart;
}

function restoreCaret() {
    const ta = document.getElementById('source');
    if (!ta) return;
    const p = parseInt(ta.dataset.point || '0', 10);
    ta.focus();
    ta.setSelectionRange(p, p);
}

function chordOf(e) {
    const parts = [];
    if (e.ctrlKey || e.metaKey) parts.push('Ctrl');
    if (e.altKey) parts.push('Alt');
    if (e.shiftKey) parts.push('Shift');
    parts.push(e.key.length === 1 ? e.key.toUpperCase() : e.key);
    return parts.join('+');
}

document.addEventListener('keydown', (e) => {
    const ta = document.getElementById('source');
    if (!ta || document.activeElement !== ta) return;
    const keys = JSON.parse(ta.dataset.keys || '{}');
    const command = keys[chordOf(e)];
    if (!command) return;
    e.preventDefault();
    htmx.ajax('POST', `/buffer/${ta.dataset.buffer}/command/${command}`, {
        target: '#editor', swap: 'outerHTML',
        values: {source: ta.value, point: ta.selectionStart}
    });
});
"""

# ============================================================================
# FastHTML App
# ============================================================================

app, rt = fast_app(
    pico=False,
    hdrs=(
        Style(css),
        Script(js),
    )
)


@rt("/")
def get():
    editor = get_editor()
    scripts, notebooks = list_pairs(Path.cwd())
    return IndexPage(scripts, notebooks, editor.messages)


@rt("/open")
def get(path: str):
    editor = get_editor()
    buffer = editor.run_command("open", path)
    if buffer is None:
        return RedirectResponse("/", status_code=303)
    return RedirectResponse(f"/buffer/{buffer.id}", status_code=303)


@rt("/buffer/{buffer_id}")
def get(buffer_id: str):
    editor = get_editor()
    buffer = editor.buffers.get(buffer_id)
    if buffer is None:
        return RedirectResponse("/", status_code=303)
    editor.switch_to(buffer)
    return EditorPage(editor, buffer)


@rt("/buffer/{buffer_id}/command/{command}")
async def post(buffer_id: str, command: str, source: str = None, point: int = None):
    """Run an editor command after copying the textarea into the buffer."""
    editor = get_editor()
    buffer = editor.buffers.get(buffer_id)
    if buffer is None or not buffer.alive:
        editor.notify(f"Buffer {buffer_id} is gone", "error")
        return BufferView(editor, editor.current)

    if command not in BUFFER_COMMANDS:
        # File commands have their own routes
        editor.notify(f"{command} cannot run on a buffer", "error")
        return BufferView(editor, buffer)

    if source is not None:
        # Browsers submit textarea line breaks as CRLF
        buffer.set_text(source.replace("\r\n", "\n"))
    if point is not None:
        buffer.goto(point)

    editor.switch_to(buffer)
    editor.run_command(command)
    return BufferView(editor, editor.current)


@rt("/pair")
def post(base: str):
    editor = get_editor()
    buffer = editor.run_command("create_pair", base, Path.cwd())
    if buffer is None:
        return RedirectResponse("/", status_code=303)
    return RedirectResponse(f"/buffer/{buffer.id}", status_code=303)


@rt("/convert")
def post(path: str):
    editor = get_editor()
    buffer = editor.run_command("convert_notebook", Path.cwd() / path)
    if buffer is None:
        return RedirectResponse("/", status_code=303)
    return RedirectResponse(f"/buffer/{buffer.id}", status_code=303)


@rt("/messages")
def get():
    return MessageLog(get_editor().messages)

# ============================================================================
# Run
# ============================================================================


def main(port: int = 8000):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print(f"🚀 cellsync starting at http://localhost:{port}")
    print(f"   Working directory: {Path.cwd()}")
    print("")
    print_config_status(get_editor().config)
    print("")
    print("   Keyboard shortcuts (in the editor):")
    for chord, command in WEB_KEYMAP.items():
        print(f"   • {chord:<18} - {command}")
    print("   Markdown edit buffers:")
    for chord, command in WEB_MARKDOWN_KEYMAP.items():
        print(f"   • {chord:<18} - {command}")
    serve(appname="app", app="app", port=port, reload=False)


if __name__ == "__main__":
    main()
