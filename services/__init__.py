"""Services layer - Tool processes, command dispatch, pairing and edit sessions."""

from .config import CellsyncConfig, load_config, get_config, parse_config, reset_config_cache
from .dispatcher import CommandDispatcher, COMMANDS, SYNC, EXECUTE, EXECUTE_ALL, RESTART
from .notify import Notification, Notifier, log_notifier, INFO, WARNING, ERROR
from .pairing import create_pair, convert_notebook
from .process import ProcessResult, run_tool, run_tool_sync, launch
from .session import MarkdownEditSession, SessionRegistry, SessionState

__all__ = [
    # config
    "CellsyncConfig",
    "load_config",
    "get_config",
    "parse_config",
    "reset_config_cache",
    # dispatcher
    "CommandDispatcher",
    "COMMANDS",
    "SYNC",
    "EXECUTE",
    "EXECUTE_ALL",
    "RESTART",
    # notify
    "Notification",
    "Notifier",
    "log_notifier",
    "INFO",
    "WARNING",
    "ERROR",
    # pairing
    "create_pair",
    "convert_notebook",
    # process
    "ProcessResult",
    "run_tool",
    "run_tool_sync",
    "launch",
    # session
    "MarkdownEditSession",
    "SessionRegistry",
    "SessionState",
]
