# grid_reconciler.py - turn edited grid assignments into file operations
#
# filter_paths() is pure: it compares the desired assignments with the ones
# applied at the last save and returns the changes. apply_changed_paths()
# performs them against the grid directory.

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import config
from utils import atomic_write_bytes, is_under_directory, normalize_slashes
from vdf_errors import GridError, GridFilesystemError, UnknownGridTypeError

# app id -> grid type -> source path (or REMOVE)
GridImageCache = Mapping[str, Mapping[str, str]]

GRID_FILENAME_TEMPLATES = {
    config.GRID_CAPSULE: "{app_id}p{ext}",
    config.GRID_WIDE_CAPSULE: "{app_id}{ext}",
    config.GRID_HERO: "{app_id}_hero{ext}",
    config.GRID_LOGO: "{app_id}_logo{ext}",
    config.GRID_ICON: "{app_id}_icon{ext}",
}

# Steam's grid folder keeps webp art under a .jpg name.
WEBP_EXTENSION = ".webp"
WEBP_TARGET_EXTENSION = ".jpg"


@dataclass
class ChangedPath:
    """One grid slot whose assignment changed since the last save."""

    app_id: str
    grid_type: str
    old_path: str
    target_path: str
    source_path: str

    @property
    def is_removal(self) -> bool:
        return self.target_path == config.REMOVE_SENTINEL

    def to_dict(self) -> Dict[str, str]:
        """Exchange format used by the frontend."""
        data = asdict(self)
        return {
            "appId": data["app_id"],
            "gridType": data["grid_type"],
            "oldPath": data["old_path"],
            "targetPath": data["target_path"],
            "sourcePath": data["source_path"],
        }


def get_grid_filename(app_id: str, grid_type: str, extension: str) -> str:
    template = GRID_FILENAME_TEMPLATES.get(grid_type)
    if template is None:
        raise UnknownGridTypeError(grid_type)
    return template.format(app_id=app_id, ext=extension)


def adjust_path(app_id: str, source_path: str, grid_type: str) -> str:
    """Grid filename for ``source_path``, keeping the source's extension."""
    name = posixpath.basename(normalize_slashes(source_path))
    _, extension = posixpath.splitext(name)
    if not extension:
        raise GridError(f"Grid source {source_path} has no file extension")
    return get_grid_filename(app_id, grid_type, extension)


def filter_paths(current_paths: GridImageCache, original_paths: GridImageCache, grids_dir: str) -> List[ChangedPath]:
    """Return a ChangedPath for every slot whose source differs from the last save."""
    grids_root = normalize_slashes(grids_dir)
    changes: List[ChangedPath] = []

    for app_id, grids in current_paths.items():
        originals = original_paths.get(app_id) or {}
        for grid_type, source_path in grids.items():
            old_path = str(originals.get(grid_type, "") or "")
            source = str(source_path or "")
            if source == old_path:
                continue

            if source == config.REMOVE_SENTINEL:
                target = config.REMOVE_SENTINEL
            else:
                target = posixpath.join(grids_root, adjust_path(app_id, source, grid_type))
                if target.endswith(WEBP_EXTENSION):
                    target = target[: -len(WEBP_EXTENSION)] + WEBP_TARGET_EXTENSION

            changes.append(
                ChangedPath(
                    app_id=str(app_id),
                    grid_type=str(grid_type),
                    old_path=normalize_slashes(old_path),
                    target_path=target,
                    source_path=normalize_slashes(source),
                )
            )

    return changes


reconcile = filter_paths


def _remove_grid(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        raise GridFilesystemError(f"Failed to remove {path}: {exc}", path=path) from exc


def _copy_grid(source: str, target: str) -> None:
    try:
        with open(source, "rb") as src:
            data = src.read()
    except OSError as exc:
        raise GridFilesystemError(f"Failed to read {source}: {exc}", path=source) from exc
    try:
        atomic_write_bytes(target, data)
    except OSError as exc:
        raise GridFilesystemError(f"Failed to write {target}: {exc}", path=target) from exc


def apply_changed_paths(
    changes: Iterable[ChangedPath],
    grids_dir: str,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Apply changes in order. Stops at the first failure; earlier records stay applied."""
    log = logger or config.logger
    for change in changes:
        if change.old_path and is_under_directory(change.old_path, grids_dir):
            _remove_grid(change.old_path)
            log.info("Removed grid %s.", change.old_path)

        if change.is_removal:
            continue

        try:
            _copy_grid(change.source_path, change.target_path)
        except GridFilesystemError:
            log.error("Failed to copy %s to %s.", change.source_path, change.target_path)
            raise
        log.info("Copied %s to %s.", change.source_path, change.target_path)


def check_for_shortcut_changes(shortcut_icons: Mapping[str, Any], original_shortcut_icons: Mapping[str, Any]) -> bool:
    """True when any shortcut's submitted icon differs from the last known one."""
    for shortcut_id, icon in shortcut_icons.items():
        original_icon = original_shortcut_icons.get(shortcut_id, "")
        if str(icon or "") != str(original_icon or ""):
            return True
    return False
