"""
Cellsync Configuration Service - Manages tool settings from cellsync_config.json.

This module handles loading, creating, and accessing the cellsync_config.json file
which controls which interpreter and modules run the external notebook tools, the
conversion command, and editor behaviour around saving.

On first load, if cellsync_config.json doesn't exist, it creates one with sensible
defaults. Users can modify this file to customize their setup. A few settings can
also be overridden from the environment or a .env file.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "cellsync_config.json"

# Default configuration - used when creating new config file
DEFAULT_CONFIG = {
    "python": {
        "executable": "python",
        "comment": "Interpreter used to run the notebook tools (must have jupyter_ascending installed)"
    },
    "requests": {
        "module": "jupyter_ascending.requests",
        "comment": "Package holding the sync, execute, execute_all and restart request modules"
    },
    "pairing": {
        "module": "jupyter_ascending.scripts.make_pair",
        "comment": "Module run with --base NAME to create NAME.sync.py and NAME.sync.ipynb"
    },
    "conversion": {
        "command": ["jupytext", "--to", "py:percent"],
        "comment": "Command converting NOTEBOOK.ipynb into NOTEBOOK.py (notebook path is appended)"
    },
    "editor": {
        "save_before_run": True,
        "sync_on_save": True,
        "comment": "save_before_run writes the buffer before each request; sync_on_save sends sync after saving a .sync.py file"
    }
}

# Environment variables overriding config values
ENV_PYTHON = "CELLSYNC_PYTHON"
ENV_REQUESTS_MODULE = "CELLSYNC_REQUESTS_MODULE"


@dataclass
class CellsyncConfig:
    """Parsed cellsync configuration."""
    python: str = "python"
    requests_module: str = "jupyter_ascending.requests"
    pair_module: str = "jupyter_ascending.scripts.make_pair"
    convert_command: List[str] = field(default_factory=lambda: ["jupytext", "--to", "py:percent"])

    save_before_run: bool = True
    sync_on_save: bool = True

    # Raw config for reference
    raw_config: Dict[str, Any] = field(default_factory=dict)

    def python_argv(self, module: str) -> List[str]:
        """Command prefix running `module` with the configured interpreter."""
        return [self.python, "-m", module]


# Module-level cached config
_config: Optional[CellsyncConfig] = None
_config_path: Optional[Path] = None


def parse_config(raw: Dict[str, Any]) -> CellsyncConfig:
    """Parse raw JSON config into CellsyncConfig."""
    config = CellsyncConfig(raw_config=raw)

    config.python = raw.get("python", {}).get("executable", config.python)
    config.requests_module = raw.get("requests", {}).get("module", config.requests_module)
    config.pair_module = raw.get("pairing", {}).get("module", config.pair_module)

    command = raw.get("conversion", {}).get("command")
    if isinstance(command, str):
        command = command.split()
    if command:
        config.convert_command = list(command)

    editor = raw.get("editor", {})
    for key in ("save_before_run", "sync_on_save"):
        if key not in editor:
            continue
        value = editor[key]
        if isinstance(value, bool):
            setattr(config, key, value)
        else:
            logger.warning(f"Ignoring editor.{key} = {value!r}, expected true or false")

    return config


def _apply_env_overrides(config: CellsyncConfig) -> CellsyncConfig:
    """Apply CELLSYNC_* environment variables on top of the file settings."""
    python = os.environ.get(ENV_PYTHON)
    if python:
        logger.info(f"Using interpreter from {ENV_PYTHON}: {python}")
        config.python = python
    module = os.environ.get(ENV_REQUESTS_MODULE)
    if module:
        logger.info(f"Using requests module from {ENV_REQUESTS_MODULE}: {module}")
        config.requests_module = module
    return config


def _create_default_config(config_path: Path) -> Dict[str, Any]:
    """Create default config file and return the config dict."""
    logger.info(f"Creating default {CONFIG_FILENAME} at {config_path}")

    # Write with nice formatting
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(DEFAULT_CONFIG, f, indent=2)

    return DEFAULT_CONFIG


def load_config(
    config_path: Optional[Path] = None,
    force_reload: bool = False,
    dotenv_path: Optional[Path] = None
) -> CellsyncConfig:
    """
    Load cellsync configuration from JSON file.

    Creates default config if file doesn't exist, then applies environment
    overrides (a .env file next to the config is loaded first, without
    replacing variables that are already set).

    Args:
        config_path: Path to config file. Defaults to ./cellsync_config.json
        force_reload: If True, reload from disk even if cached
        dotenv_path: .env file to load. Defaults to .env next to the config

    Returns:
        Parsed CellsyncConfig
    """
    global _config, _config_path

    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
    config_path = Path(config_path)

    # Return cached if available and path matches
    if _config is not None and not force_reload and _config_path == config_path:
        return _config

    _config_path = config_path

    dotenv_path = dotenv_path or config_path.parent / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)
        logger.info(f"Loaded environment from {dotenv_path}")

    # Create default if doesn't exist
    if not config_path.exists():
        raw = _create_default_config(config_path)
    else:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            logger.info(f"Loaded {CONFIG_FILENAME} from {config_path}")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {config_path}: {e}")
            print(f"   Warning: Invalid {CONFIG_FILENAME}, using defaults")
            raw = DEFAULT_CONFIG

    _config = _apply_env_overrides(parse_config(raw))
    return _config


def get_config() -> CellsyncConfig:
    """Get the current config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def reset_config_cache() -> None:
    """Reset cached config (useful for testing)."""
    global _config, _config_path
    _config = None
    _config_path = None


def print_config_status(config: CellsyncConfig) -> None:
    """Print config status for startup logging."""
    print(f"   Config: {CONFIG_FILENAME}")
    print(f"      Interpreter:      {config.python}")
    print(f"      Requests module:  {config.requests_module}")
    print(f"      Pairing module:   {config.pair_module}")
    print(f"      Convert command:  {' '.join(config.convert_command)}")
    print(f"      Sync on save:     {config.sync_on_save}")
