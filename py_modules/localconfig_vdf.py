# localconfig_vdf.py - app ids listed in a user's localconfig.vdf
#
# Only the Software/Valve/Steam/apps subtree is consulted.

from __future__ import annotations

from typing import Any, Dict, List

import vdf

from utils import caseless_get
from vdf_errors import MissingKeyError, VdfFormatError

APPS_KEY_PATH = ("Software", "Valve", "Steam", "apps")


def _document_root(payload: Dict[str, Any]) -> Dict[str, Any]:
    """The object under the file's single top-level key (UserLocalConfigStore)."""
    if len(payload) == 1:
        only = next(iter(payload.values()))
        if isinstance(only, dict):
            return only
    return payload


def parse_localconfig_apps(text: str) -> List[str]:
    try:
        payload = vdf.loads(text)
    except (SyntaxError, ValueError) as exc:
        raise VdfFormatError(f"localconfig.vdf is not valid text VDF: {exc}") from exc

    node: Any = _document_root(payload)
    walked: List[str] = []
    for key in APPS_KEY_PATH:
        child = caseless_get(node, key) if isinstance(node, dict) else None
        if not isinstance(child, dict):
            raise MissingKeyError(key, path="/".join(walked) or "localconfig.vdf")
        walked.append(key)
        node = child

    return [str(app_id) for app_id in node.keys()]


def read_localconfig_apps(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8", errors="ignore") as fp:
        return parse_localconfig_apps(fp.read())
