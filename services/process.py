"""
External tool processes.

This module runs the notebook tools as subprocesses and hands back a
structured ProcessResult (exit status + captured output) instead of a raw
process event. launch() is fire and forget: it returns the asyncio Task
whose result is the ProcessResult, and calls an optional callback first.
"""
import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

# Exit status reported when the executable cannot be started (as a shell would)
MISSING_EXECUTABLE = 127


@dataclass
class ProcessResult:
    """Outcome of one tool invocation."""
    argv: List[str]
    returncode: int
    output: str = ""
    started: datetime = field(default_factory=datetime.now)
    finished: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        """The process finished normally."""
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.argv)

    @property
    def duration(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started).total_seconds()


def _cwd(cwd: Optional[Union[str, Path]]) -> Optional[str]:
    return str(cwd) if cwd is not None else None


async def run_tool(argv: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> ProcessResult:
    """
    Run a tool and collect its output.

    stdout and stderr are merged, as a user would see them in a terminal.
    An executable that cannot be started gives a failed result, not an error.
    """
    argv = [str(a) for a in argv]
    started = datetime.now()
    logger.debug(f"Running {' '.join(argv)} in {cwd or '.'}")
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=_cwd(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.error(f"Could not start {argv[0]}: {e}")
        return ProcessResult(argv=argv, returncode=MISSING_EXECUTABLE, output=str(e),
                             started=started, finished=datetime.now())

    stdout, _ = await proc.communicate()
    return ProcessResult(
        argv=argv,
        returncode=proc.returncode,
        output=stdout.decode("utf-8", errors="replace") if stdout else "",
        started=started,
        finished=datetime.now(),
    )


async def _run_and_report(
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]],
    on_done: Optional[Callable[[ProcessResult], None]]
) -> ProcessResult:
    result = await run_tool(argv, cwd)
    if on_done is not None:
        on_done(result)
    return result


def launch(
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    on_done: Optional[Callable[[ProcessResult], None]] = None
) -> "asyncio.Task[ProcessResult]":
    """
    Start a tool without waiting for it.

    Must be called from a running event loop. `on_done` runs before the
    returned task completes, so awaiting the task also means the callback ran.
    """
    loop = asyncio.get_running_loop()
    return loop.create_task(_run_and_report(argv, cwd, on_done))


def run_tool_sync(argv: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> ProcessResult:
    """Blocking variant for tools whose files are needed right away."""
    argv = [str(a) for a in argv]
    started = datetime.now()
    try:
        completed = subprocess.run(
            argv,
            cwd=_cwd(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as e:
        logger.error(f"Could not start {argv[0]}: {e}")
        return ProcessResult(argv=argv, returncode=MISSING_EXECUTABLE, output=str(e),
                             started=started, finished=datetime.now())
    return ProcessResult(
        argv=argv,
        returncode=completed.returncode,
        output=completed.stdout.decode("utf-8", errors="replace") if completed.stdout else "",
        started=started,
        finished=datetime.now(),
    )
