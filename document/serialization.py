"""
Sync-pair file naming and notebook reading.

A sync pair is `<base>.sync.py` (percent-format script) next to
`<base>.sync.ipynb`. The external tools keep the two in step; this module
only knows the names and can read a notebook with execnb.nbio to compare
it with its script.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from execnb.nbio import read_nb

from .cell import CellKind, scan_cells

SYNC_INFIX = ".sync"
SCRIPT_SUFFIX = ".py"
NOTEBOOK_SUFFIX = ".ipynb"

PathLike = Union[str, Path]


def sync_paths(base: str, directory: PathLike = ".") -> Tuple[Path, Path]:
    """(script, notebook) paths of the sync pair for `base`."""
    directory = Path(directory)
    return (
        directory / f"{base}{SYNC_INFIX}{SCRIPT_SUFFIX}",
        directory / f"{base}{SYNC_INFIX}{NOTEBOOK_SUFFIX}",
    )


def is_sync_script(path: PathLike) -> bool:
    return Path(path).name.endswith(SYNC_INFIX + SCRIPT_SUFFIX)


def is_sync_notebook(path: PathLike) -> bool:
    return Path(path).name.endswith(SYNC_INFIX + NOTEBOOK_SUFFIX)


def paired_notebook(path: PathLike) -> Optional[Path]:
    """The notebook paired with a `.sync.py` script, or None for other files."""
    path = Path(path)
    if not is_sync_script(path):
        return None
    return path.with_name(path.name[:-len(SCRIPT_SUFFIX)] + NOTEBOOK_SUFFIX)


def read_notebook_cells(path: PathLike) -> List[Tuple[CellKind, str]]:
    """
    Read an .ipynb file into (kind, source) pairs.

    Markdown cells map to MARKDOWN, everything else (code, raw) to CODE.
    """
    nb = read_nb(Path(path))
    result = []
    for cell in nb.cells:
        source = cell.get('source', '')
        # Handle source as list or string
        if not isinstance(source, str):
            source = ''.join(source)
        kind = CellKind.MARKDOWN if cell.get('cell_type') == 'markdown' else CellKind.CODE
        result.append((kind, source))
    return result


@dataclass
class PairStatus:
    """Existence and cell counts of both halves of a sync pair."""
    script: Path
    notebook: Path
    script_exists: bool = False
    notebook_exists: bool = False
    script_cells: int = 0
    notebook_cells: int = 0

    @property
    def complete(self) -> bool:
        return self.script_exists and self.notebook_exists

    @property
    def in_step(self) -> bool:
        """Both files exist and hold the same number of cells."""
        return self.complete and self.script_cells == self.notebook_cells

    def describe(self) -> str:
        if not self.complete:
            missing = [p.name for p, ok in ((self.script, self.script_exists),
                                            (self.notebook, self.notebook_exists)) if not ok]
            return f"missing {', '.join(missing)}"
        return f"{self.script_cells} script cells, {self.notebook_cells} notebook cells"


def pair_status(script: PathLike) -> PairStatus:
    """Inspect the pair of a `.sync.py` script."""
    script = Path(script)
    notebook = paired_notebook(script) or script.with_suffix(NOTEBOOK_SUFFIX)
    status = PairStatus(script=script, notebook=notebook)

    if script.exists():
        status.script_exists = True
        text = script.read_text(encoding="utf-8")
        status.script_cells = sum(1 for c in scan_cells(text) if c.has_marker)

    if notebook.exists():
        status.notebook_exists = True
        status.notebook_cells = len(read_notebook_cells(notebook))

    return status
