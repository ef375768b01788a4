# grid_service.py - grid artwork orchestration
#
# Resolves the Steam directories, reads the VDF files and applies saved grid
# changes. Blocking file work runs in worker threads.

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional, Union

import config
import steam_paths
from appinfo_vdf import open_appinfo_vdf
from grid_download import download_grid
from grid_reconciler import ChangedPath, apply_changed_paths, check_for_shortcut_changes, filter_paths
from localconfig_vdf import read_localconfig_apps
from steam_shortcuts import (
    link_shortcut_icons,
    load_shortcuts_tree,
    merge_record_icons,
    merge_shortcut_records,
    open_shortcuts_vdf,
    write_shortcuts_vdf,
)
from vdf_errors import GridError, SerializationError, VdfError

SaveResult = Union[List[Dict[str, str]], Dict[str, str]]


def _load_json_arg(value: Any, name: str) -> Any:
    """Accept either a JSON string from the frontend or an already decoded value."""
    if value is None or value == "":
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"{name} is not valid JSON: {exc}") from exc
    if isinstance(value, (dict, list)):
        return value
    raise SerializationError(f"{name} must be JSON, got {type(value).__name__}")


def _load_grid_cache(value: Any, name: str) -> Dict[str, Dict[str, str]]:
    payload = _load_json_arg(value, name)
    if not isinstance(payload, dict):
        raise SerializationError(f"{name} must be an object of app id -> grids")
    cache: Dict[str, Dict[str, str]] = {}
    for app_id, grids in payload.items():
        if grids is None:
            continue
        if not isinstance(grids, dict):
            raise SerializationError(f"{name}[{app_id}] must be an object of grid type -> path")
        cache[str(app_id)] = {str(k): "" if v is None else str(v) for k, v in grids.items()}
    return cache


def _load_icon_map(value: Any, name: str) -> Dict[str, str]:
    payload = _load_json_arg(value, name)
    if not isinstance(payload, dict):
        raise SerializationError(f"{name} must be an object of shortcut id -> icon")
    return {str(k): "" if v is None else str(v) for k, v in payload.items()}


class GridService:
    """Entry point for every grid and VDF operation the frontend calls."""

    def __init__(self, steam_root: Optional[str] = None, logger: Optional[logging.Logger] = None):
        self._steam_root = str(steam_root or "").strip()
        self.logger = logger or config.logger
        self._save_lock = asyncio.Lock()

    # ------------------------- paths -------------------------

    @property
    def steam_root(self) -> str:
        if not self._steam_root:
            self._steam_root = steam_paths.find_steam_root()
            if self._steam_root:
                self.logger.info("Using Steam root %s", self._steam_root)
        return steam_paths.require_steam_root(self._steam_root)

    def get_grids_directory(self, user_id: str) -> str:
        return steam_paths.grids_dir(self.steam_root, user_id)

    def get_library_cache_directory(self) -> str:
        return steam_paths.library_cache_dir(self.steam_root)

    def get_appinfo_path(self) -> str:
        return steam_paths.appinfo_path(self.steam_root)

    def get_shortcuts_path(self, user_id: str) -> str:
        return steam_paths.shortcuts_path(self.steam_root, user_id)

    def get_localconfig_path(self, user_id: str) -> str:
        return steam_paths.localconfig_path(self.steam_root, user_id)

    # ------------------------- readers -------------------------

    async def read_appinfo_vdf(self) -> Dict[str, Any]:
        """App id -> appinfo subtree. A missing file yields an empty mapping."""
        path = self.get_appinfo_path()
        if not os.path.isfile(path):
            self.logger.warning("appinfo.vdf not found at %s", path)
            return {}
        data = await asyncio.to_thread(open_appinfo_vdf, path, self.logger)
        self.logger.info("Loaded appinfo.vdf with %s apps", len(data))
        return data

    async def read_shortcuts_vdf(self, user_id: str) -> Dict[str, Any]:
        """Ordinal -> shortcut record. A missing file yields an empty mapping."""
        path = self.get_shortcuts_path(user_id)
        if not os.path.isfile(path):
            self.logger.info("No shortcuts.vdf for user %s", user_id)
            return {}
        data = await asyncio.to_thread(open_shortcuts_vdf, path)
        self.logger.info("Loaded %s shortcuts for user %s", len(data), user_id)
        return data

    async def read_localconfig_vdf(self, user_id: str) -> Union[List[str], Dict[str, Any]]:
        """App ids under Software/Valve/Steam/apps; ``{}`` if the file is absent."""
        path = self.get_localconfig_path(user_id)
        if not os.path.isfile(path):
            self.logger.info("No localconfig.vdf for user %s", user_id)
            return {}
        apps = await asyncio.to_thread(read_localconfig_apps, path)
        self.logger.info("Found %s apps in localconfig.vdf for user %s", len(apps), user_id)
        return apps

    # ------------------------- writers -------------------------

    async def save_changes(
        self,
        user_id: str,
        current_art: Any,
        original_art: Any,
        shortcuts: Any = None,
        shortcut_icons: Any = None,
        original_shortcut_icons: Any = None,
        changed_logo_positions: Any = None,
    ) -> SaveResult:
        """Apply grid edits and return the applied changes, or ``{"error": ...}``."""
        async with self._save_lock:
            return await asyncio.to_thread(
                self._save_changes_sync,
                user_id,
                current_art,
                original_art,
                shortcuts,
                shortcut_icons,
                original_shortcut_icons,
                changed_logo_positions,
            )

    def _save_changes_sync(
        self,
        user_id: str,
        current_art: Any,
        original_art: Any,
        shortcuts: Any,
        shortcut_icons: Any,
        original_shortcut_icons: Any,
        changed_logo_positions: Any,
    ) -> SaveResult:
        self.logger.info("Starting grid save for user %s", user_id)
        try:
            current = _load_grid_cache(current_art, "current_art")
            original = _load_grid_cache(original_art, "original_art")
            icons = _load_icon_map(shortcut_icons, "shortcut_icons")
            original_icons = _load_icon_map(original_shortcut_icons, "original_shortcut_icons")
            records = _load_json_arg(shortcuts, "shortcuts")
        except SerializationError as exc:
            self.logger.error("Rejected save request: %s", exc)
            return {"error": str(exc)}

        grids = self.get_grids_directory(user_id)
        try:
            changes = filter_paths(current, original, grids)
        except GridError as exc:
            self.logger.error("Could not compute grid changes: %s", exc)
            return {"error": str(exc)}
        self.logger.info("%s grid slots changed", len(changes))

        try:
            os.makedirs(grids, exist_ok=True)
            apply_changed_paths(changes, grids, logger=self.logger)
        except (GridError, OSError) as exc:
            self.logger.error("Grid save failed: %s", exc)
            return {"error": str(exc)}

        if check_for_shortcut_changes(icons, original_icons):
            try:
                self._write_shortcut_icons(user_id, records, changes)
            except (VdfError, SerializationError, OSError) as exc:
                self.logger.error("Updating shortcut icons failed: %s", exc)
                return {"error": str(exc)}
        else:
            self.logger.info("No shortcut icons changed")

        if changed_logo_positions:
            self.logger.debug("Logo position changes are not written: %s", changed_logo_positions)

        self.logger.info("Grid save for user %s finished", user_id)
        return [change.to_dict() for change in changes]

    def _write_shortcut_icons(self, user_id: str, records: Any, changes: List[ChangedPath]) -> None:
        path = self.get_shortcuts_path(user_id)
        tree = load_shortcuts_tree(path)
        if records:
            merge_record_icons(tree, records)
        link_shortcut_icons(tree, changes, logger=self.logger)
        write_shortcuts_vdf(path, tree)
        self.logger.info("Wrote shortcut icons to %s", path)

    async def write_shortcuts(self, user_id: str, shortcuts: Any) -> bool:
        """Merge the full shortcut record set into shortcuts.vdf."""
        try:
            records = _load_json_arg(shortcuts, "shortcuts")
            path = self.get_shortcuts_path(user_id)
            async with self._save_lock:
                await asyncio.to_thread(self._write_shortcuts_sync, path, records)
        except (VdfError, SerializationError, OSError) as exc:
            self.logger.error("Writing shortcuts.vdf failed: %s", exc)
            return False
        return True

    def _write_shortcuts_sync(self, path: str, records: Any) -> None:
        tree = load_shortcuts_tree(path)
        merge_shortcut_records(tree, records)
        write_shortcuts_vdf(path, tree)
        self.logger.info("Wrote shortcuts.vdf at %s", path)

    async def download_grid(self, url: str, dest_path: str) -> bool:
        return await download_grid(url, dest_path, logger=self.logger)
