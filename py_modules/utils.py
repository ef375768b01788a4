# utils.py - shared helpers for file writes, app ids and path formatting

import os
import struct
import tempfile
from typing import Any, Dict


def to_unsigned_appid(app_id: int) -> int:
    """Steam stores shortcut app ids as signed int32; grid filenames use the unsigned form."""
    return int(app_id) & 0xFFFFFFFF


def to_signed_appid(app_id: int) -> int:
    return struct.unpack("<i", struct.pack("<I", int(app_id) & 0xFFFFFFFF))[0]


def normalize_slashes(path: str) -> str:
    """Use forward slashes everywhere so paths compare the same on every platform."""
    return str(path or "").replace("\\", "/")


def is_under_directory(path: str, directory: str) -> bool:
    """Whether ``path`` lives inside ``directory`` (string check, no filesystem access)."""
    target = normalize_slashes(path)
    root = normalize_slashes(directory).rstrip("/")
    if not target or not root:
        return False
    return target.startswith(root + "/")


def caseless_get(d: Dict[str, Any], key: str, default: Any = None) -> Any:
    if key in d:
        return d[key]
    lowered = key.lower()
    for k, v in d.items():
        if str(k).lower() == lowered:
            return v
    return default


def caseless_key(d: Dict[str, Any], key: str) -> str:
    """Return the key as spelled in ``d``, or ``key`` itself if absent."""
    if key in d:
        return key
    lowered = key.lower()
    for k in d.keys():
        if str(k).lower() == lowered:
            return k
    return key


def atomic_write_bytes(path: str, data: bytes) -> None:
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    with tempfile.NamedTemporaryFile(prefix=".steamgrid_", suffix=".tmp", dir=directory, delete=False) as fp:
        fp.write(data)
        fp.flush()
        os.fsync(fp.fileno())
        temp_path = fp.name
    try:
        os.replace(temp_path, path)
    except OSError:
        os.unlink(temp_path)
        raise
