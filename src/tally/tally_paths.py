"""
Locations of the TALLY configuration and history files.

Lookup order for the config directory:
    1. $TALLY_CONFIG_DIR
    2. $XDG_CONFIG_HOME/tally
    3. ~/.config/tally

Lookup order for the state (history) directory:
    1. $TALLY_STATE_DIR
    2. $XDG_STATE_HOME/tally
    3. ~/.local/state/tally
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "aliases.json"
HISTORY_FILE_NAME = "history"


def _home_dir() -> Path | None:
    try:
        return Path.home()
    except RuntimeError:
        return None


def get_config_dir() -> Path | None:
    env_dir = os.environ.get("TALLY_CONFIG_DIR")
    if env_dir:
        return Path(env_dir)
    xdg_dir = os.environ.get("XDG_CONFIG_HOME")
    if xdg_dir:
        return Path(xdg_dir) / "tally"
    home = _home_dir()
    if home is None:
        return None
    return home / ".config" / "tally"


def get_config_file_location() -> Path | None:
    config_dir = get_config_dir()
    return config_dir / CONFIG_FILE_NAME if config_dir else None


def get_history_dir() -> Path | None:
    env_dir = os.environ.get("TALLY_STATE_DIR")
    if env_dir:
        return Path(env_dir)
    xdg_dir = os.environ.get("XDG_STATE_HOME")
    if xdg_dir:
        return Path(xdg_dir) / "tally"
    home = _home_dir()
    if home is None:
        return None
    return home / ".local" / "state" / "tally"


def get_history_file_location() -> Path | None:
    """Returns the history file path, creating its directory; None if that fails."""
    history_dir = get_history_dir()
    if history_dir is None:
        return None
    try:
        history_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("cannot create history directory %s: %s", history_dir, e)
        return None
    return history_dir / HISTORY_FILE_NAME


__all__ = [
    "CONFIG_FILE_NAME",
    "HISTORY_FILE_NAME",
    "get_config_dir",
    "get_config_file_location",
    "get_history_dir",
    "get_history_file_location",
]
