# config.py - Steam grid manager configuration and logging

import logging
import os
from pathlib import Path


def _log_file_path() -> str:
    log_dir = (os.getenv("DECKY_PLUGIN_LOG_DIR") or "").strip() or "/tmp"
    return os.path.join(log_dir, "steam-grid-manager.log")


def setup_logger() -> logging.Logger:
    """Initialise the plugin logger. The log file is truncated on every start."""
    try:
        logging.basicConfig(
            level=logging.INFO,
            filename=_log_file_path(),
            format="[%(asctime)s | %(filename)s:%(lineno)s:%(funcName)s] %(levelname)s: %(message)s",
            filemode="w",
            force=True,
        )
    except Exception:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s | %(filename)s:%(lineno)s:%(funcName)s] %(levelname)s: %(message)s",
            force=True,
        )
    return logging.getLogger("steam-grid-manager")


logger = setup_logger()
logger.setLevel(logging.INFO)

# Paths
HOME_DIR = str(Path.home())
STEAM_ROOT_ENV = "STEAM_GRID_STEAM_ROOT"
STEAM_ROOT_CANDIDATES = (
    os.path.join(HOME_DIR, ".steam", "steam"),
    os.path.join(HOME_DIR, ".local", "share", "Steam"),
    os.path.join(HOME_DIR, ".var", "app", "com.valvesoftware.Steam", "data", "steam"),
)

# Grids
REMOVE_SENTINEL = "REMOVE"
GRID_CAPSULE = "Capsule"
GRID_WIDE_CAPSULE = "Wide Capsule"
GRID_HERO = "Hero"
GRID_LOGO = "Logo"
GRID_ICON = "Icon"

# Downloads
DOWNLOAD_TIMEOUT_SECONDS = 12
DOWNLOAD_USER_AGENT = "Mozilla/5.0 (SteamGridManager/1.0)"
