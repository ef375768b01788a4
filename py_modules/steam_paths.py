# steam_paths.py - locations of the Steam files this plugin reads and writes

import os
from typing import Optional

import config
from utils import normalize_slashes


def find_steam_root() -> str:
    override = (os.getenv(config.STEAM_ROOT_ENV) or "").strip()
    if override:
        if os.path.isdir(override):
            return normalize_slashes(os.path.realpath(override))
        config.logger.warning("%s points at a missing directory: %s", config.STEAM_ROOT_ENV, override)

    for item in config.STEAM_ROOT_CANDIDATES:
        if os.path.isdir(os.path.join(item, "userdata")):
            return normalize_slashes(os.path.realpath(item))
    return ""


def _user_config_dir(steam_root: str, user_id: str) -> str:
    return os.path.join(steam_root, "userdata", str(user_id), "config")


def grids_dir(steam_root: str, user_id: str) -> str:
    return normalize_slashes(os.path.join(_user_config_dir(steam_root, user_id), "grid"))


def shortcuts_path(steam_root: str, user_id: str) -> str:
    return normalize_slashes(os.path.join(_user_config_dir(steam_root, user_id), "shortcuts.vdf"))


def localconfig_path(steam_root: str, user_id: str) -> str:
    return normalize_slashes(os.path.join(_user_config_dir(steam_root, user_id), "localconfig.vdf"))


def appinfo_path(steam_root: str) -> str:
    return normalize_slashes(os.path.join(steam_root, "appcache", "appinfo.vdf"))


def library_cache_dir(steam_root: str) -> str:
    return normalize_slashes(os.path.join(steam_root, "appcache", "librarycache"))


def require_steam_root(steam_root: Optional[str]) -> str:
    root = str(steam_root or "").strip()
    if not root:
        raise FileNotFoundError("Steam installation directory not found")
    return root
