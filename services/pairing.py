"""
Sync-pair creation and notebook conversion.

Both operations shell out and wait: the files they produce are opened
straight afterwards.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from document.errors import PreconditionError, ToolError
from document.serialization import (
    NOTEBOOK_SUFFIX, SCRIPT_SUFFIX, PairStatus, is_sync_notebook, pair_status, sync_paths
)
from .config import CellsyncConfig, get_config
from .process import ProcessResult, run_tool_sync

logger = logging.getLogger(__name__)


def _failure(action: str, result: ProcessResult) -> ToolError:
    output = result.output.strip()
    return ToolError(f"{action} failed (exit {result.returncode}): {output}", result)


def _checked_status(script: Path, result: ProcessResult, action: str) -> PairStatus:
    try:
        status = pair_status(script)
    except ValueError as e:
        # The notebook is not valid JSON
        raise ToolError(f"{action} produced an unreadable notebook: {e}", result) from e
    if not status.complete:
        raise ToolError(f"{action} did not produce the pair: {status.describe()}", result)
    return status


def create_pair(
    base: str,
    directory: Union[str, Path] = ".",
    config: Optional[CellsyncConfig] = None
) -> PairStatus:
    """
    Create `<base>.sync.py` and `<base>.sync.ipynb` in `directory`.

    Runs the pairing module with `--base <base>`.

    Raises:
        PreconditionError: base is empty or one of the files already exists
        ToolError: the tool failed or did not leave both files behind
    """
    config = config or get_config()
    base = base.strip()
    if not base:
        raise PreconditionError("A base name is required")
    directory = Path(directory)
    script, notebook = sync_paths(base, directory)
    for existing in (script, notebook):
        if existing.exists():
            raise PreconditionError(f"{existing.name} already exists")

    argv = config.python_argv(config.pair_module) + ["--base", base]
    logger.info(f"Creating pair {script.name} / {notebook.name} in {directory}")
    result = run_tool_sync(argv, cwd=directory)
    if not result.ok:
        raise _failure("Pair creation", result)
    return _checked_status(script, result, "Pair creation")


def convert_notebook(path: Union[str, Path], config: Optional[CellsyncConfig] = None) -> PairStatus:
    """
    Turn an existing notebook into a sync pair.

    The conversion command writes `<stem>.py` next to `<stem>.ipynb`; both
    are then renamed to carry the `.sync` infix. File-system errors during
    the renames propagate and stop the remaining steps.

    Raises:
        PreconditionError: not an .ipynb, already paired, or targets exist
        ToolError: the conversion command failed or wrote no script
    """
    config = config or get_config()
    path = Path(path)
    if path.suffix != NOTEBOOK_SUFFIX:
        raise PreconditionError(f"{path.name} is not a notebook")
    if is_sync_notebook(path):
        raise PreconditionError(f"{path.name} is already part of a sync pair")
    if not path.exists():
        raise PreconditionError(f"{path} does not exist")

    stem = path.name[:-len(NOTEBOOK_SUFFIX)]
    converted = path.with_name(stem + SCRIPT_SUFFIX)
    script, notebook = sync_paths(stem, path.parent)
    for existing in (script, notebook):
        if existing.exists():
            raise PreconditionError(f"{existing.name} already exists")

    argv = list(config.convert_command) + [str(path)]
    logger.info(f"Converting {path.name}")
    result = run_tool_sync(argv, cwd=path.parent)
    if not result.ok:
        raise _failure("Conversion", result)
    if not converted.exists():
        raise ToolError(f"Conversion did not write {converted.name}", result)

    converted.rename(script)
    path.rename(notebook)
    logger.info(f"Converted {path.name} into {script.name} / {notebook.name}")
    return _checked_status(script, result, "Conversion")
