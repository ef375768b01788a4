"""Read and rewrite Steam's per-user shortcuts.vdf.

The file is decoded into a plain tree and every write goes through that same
tree, so fields this plugin does not know about are written back unchanged.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import vdf

import config
from grid_reconciler import ChangedPath
from utils import (
    atomic_write_bytes,
    caseless_get,
    caseless_key,
    to_signed_appid,
    to_unsigned_appid,
)
from vdf_binary import WideString, decode, encode
from vdf_errors import MissingKeyError, SerializationError, VdfFormatError

SHORTCUTS_ROOT_KEY = "shortcuts"
ICON_KEY = "icon"
APPID_KEY = "appid"

_INT32_MAX = 2 ** 31 - 1
_INT32_MIN = -(2 ** 31)
_WRAPPED_INT_TYPES = (vdf.UINT_64, vdf.INT_64, vdf.POINTER, vdf.COLOR)


def _empty_tree() -> Dict[str, Any]:
    return {SHORTCUTS_ROOT_KEY: {}}


def shortcut_entries(tree: Dict[str, Any]) -> Dict[str, Any]:
    """The ordinal -> shortcut mapping inside a decoded tree."""
    key = caseless_key(tree, SHORTCUTS_ROOT_KEY)
    if key not in tree:
        raise MissingKeyError(SHORTCUTS_ROOT_KEY, path="shortcuts.vdf")
    entries = tree[key]
    if not isinstance(entries, dict):
        raise VdfFormatError("shortcuts.vdf: 'shortcuts' is not an object")
    return entries


def load_shortcuts_tree(path: str) -> Dict[str, Any]:
    """Decode shortcuts.vdf; a missing or empty file yields an empty tree."""
    if not os.path.isfile(path):
        return _empty_tree()
    with open(path, "rb") as fp:
        raw = fp.read()
    if not raw:
        return _empty_tree()
    tree = decode(raw)
    shortcut_entries(tree)
    return tree


def open_shortcuts_vdf(path: str) -> Dict[str, Any]:
    """Ordinal -> shortcut record, ready for JSON."""
    return shortcut_entries(load_shortcuts_tree(path))


def write_shortcuts_vdf(path: str, tree: Dict[str, Any]) -> None:
    atomic_write_bytes(path, encode(tree))


# ------------------------- record merging -------------------------


def _int_value(value: Any, key: str) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
    raise SerializationError(f"Field '{key}' expects an integer, got {value!r}")


def _fold_int32(value: int, key: str) -> int:
    if _INT32_MIN <= value <= _INT32_MAX:
        return value
    if 0 <= value <= 0xFFFFFFFF:
        # Unsigned app ids come back from the frontend; Steam stores them signed.
        return to_signed_appid(value)
    raise SerializationError(f"Field '{key}' value {value} does not fit in int32")


def _list_to_object(values: List[Any]) -> Dict[str, Any]:
    return {str(idx): item for idx, item in enumerate(values)}


def _infer_node(value: Any, key: str) -> Any:
    """VDF node for a value with no decoded counterpart."""
    if isinstance(value, dict):
        return {str(k): _infer_node(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return _infer_node(_list_to_object(list(value)), key)
    if value is None:
        return ""
    if isinstance(value, (_WRAPPED_INT_TYPES, WideString)):
        return value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        if value <= 0xFFFFFFFF and value >= _INT32_MIN:
            return _fold_int32(value, key)
        if value < 0:
            return vdf.INT_64(value)
        return vdf.UINT_64(value)
    if isinstance(value, (str, float)):
        return value
    raise SerializationError(f"Cannot store {type(value).__name__} in shortcuts.vdf field '{key}'")


def _coerce_like(existing: Any, value: Any, key: str) -> Any:
    """Convert ``value`` to the VDF type of ``existing``, keeping ``existing`` when equal."""
    if isinstance(existing, dict):
        if isinstance(value, (list, tuple)):
            value = _list_to_object(list(value))
        if not isinstance(value, dict):
            raise SerializationError(f"Field '{key}' expects an object, got {value!r}")
        return _merge_object(existing, value)

    if isinstance(existing, str):
        if value is None:
            text = ""
        elif isinstance(value, bool):
            text = str(int(value))
        elif isinstance(value, (dict, list, tuple)):
            raise SerializationError(f"Field '{key}' expects a string, got {value!r}")
        else:
            text = str(value)
        if text == existing:
            return existing
        return WideString(text) if isinstance(existing, WideString) else text

    if isinstance(existing, float) and not isinstance(value, (dict, list, tuple)):
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Field '{key}' expects a number, got {value!r}") from exc
        return existing if number == existing else number

    if isinstance(existing, _WRAPPED_INT_TYPES):
        number = _int_value(value, key)
        return existing if number == existing else type(existing)(number)

    if isinstance(existing, int):
        number = _fold_int32(_int_value(value, key), key)
        return existing if number == existing else number

    return _infer_node(value, key)


def _merge_object(existing: Dict[str, Any], submitted: Mapping[str, Any]) -> Dict[str, Any]:
    """Submitted keys win; decoded key order and leaf types are kept."""
    submitted = {str(k): v for k, v in submitted.items()}
    merged: Dict[str, Any] = {}
    for key, node in existing.items():
        if key in submitted:
            merged[key] = _coerce_like(node, submitted[key], key)
    for key, value in submitted.items():
        if key not in merged:
            merged[key] = _infer_node(value, key)
    return merged


def _submitted_entries(records: Any) -> Dict[str, Any]:
    if isinstance(records, list):
        return _list_to_object(records)
    if not isinstance(records, dict):
        raise SerializationError("Shortcuts must be a JSON object")
    key = caseless_key(records, SHORTCUTS_ROOT_KEY)
    if key in records and isinstance(records[key], (dict, list)):
        return _submitted_entries(records[key])
    return records


def _reindex_shortcuts(shortcuts: Dict[str, Any]) -> Dict[str, Any]:
    """Rebuild ordinal keys contiguously from zero."""
    rows: List[Tuple[int, Dict[str, Any]]] = []
    for key, value in shortcuts.items():
        if not isinstance(value, dict):
            continue
        try:
            idx = int(str(key))
        except ValueError:
            idx = 10**9
        rows.append((idx, value))
    rows.sort(key=lambda item: item[0])
    rebuilt: Dict[str, Any] = {}
    for idx, (_, item) in enumerate(rows):
        rebuilt[str(idx)] = item
    return rebuilt


def merge_shortcut_records(tree: Dict[str, Any], records: Any) -> Dict[str, Any]:
    """Apply the frontend's full shortcut record set onto a decoded tree, in place."""
    root_key = caseless_key(tree, SHORTCUTS_ROOT_KEY)
    existing = shortcut_entries(tree)
    submitted = _submitted_entries(records)

    merged: Dict[str, Any] = {}
    for key, record in submitted.items():
        key = str(key)
        if not isinstance(record, dict):
            raise SerializationError(f"Shortcut {key} must be an object")
        current = existing.get(key)
        if isinstance(current, dict):
            merged[key] = _merge_object(current, record)
        else:
            merged[key] = _infer_node(record, key)

    tree[root_key] = _reindex_shortcuts(merged)
    return tree


# ------------------------- icon linkage -------------------------


def _appid_keys(entry: Dict[str, Any]) -> set:
    app_id = caseless_get(entry, APPID_KEY)
    if isinstance(app_id, bool) or not isinstance(app_id, (int, str)):
        return set()
    try:
        number = int(app_id)
    except ValueError:
        return set()
    return {str(number), str(to_unsigned_appid(number)), str(to_signed_appid(number))}


def _set_icon(entry: Dict[str, Any], icon: str) -> bool:
    key = caseless_key(entry, ICON_KEY)
    current = entry.get(key)
    value = str(icon or "")
    if isinstance(current, str) and current == value:
        return False
    entry[key] = WideString(value) if isinstance(current, WideString) else value
    return True


def merge_record_icons(tree: Dict[str, Any], records: Any) -> int:
    """Copy only the icon field of each submitted shortcut into the decoded tree."""
    submitted = _submitted_entries(records)
    updated = 0
    for ordinal, entry in shortcut_entries(tree).items():
        record = submitted.get(ordinal)
        if not isinstance(entry, dict) or not isinstance(record, dict):
            continue
        icon_key = caseless_key(record, ICON_KEY)
        if icon_key in record and _set_icon(entry, record[icon_key]):
            updated += 1
    return updated


def link_shortcut_icons(
    tree: Dict[str, Any],
    changes: Iterable[ChangedPath],
    logger: Optional[logging.Logger] = None,
) -> int:
    """Point each shortcut's icon at its newly applied Icon grid."""
    log = logger or config.logger
    icon_changes = {change.app_id: change for change in changes if change.grid_type == config.GRID_ICON}
    if not icon_changes:
        return 0

    updated = 0
    for ordinal, entry in shortcut_entries(tree).items():
        if not isinstance(entry, dict):
            continue
        for app_key in _appid_keys(entry):
            change = icon_changes.get(app_key)
            if change is None:
                continue
            # A removed icon clears the field rather than storing the REMOVE sentinel.
            icon = "" if change.is_removal else change.target_path
            if _set_icon(entry, icon):
                updated += 1
                log.info("Shortcut %s icon set to %s", ordinal, icon or "<none>")
            break
    return updated
