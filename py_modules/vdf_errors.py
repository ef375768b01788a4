# vdf_errors.py - error types shared by the VDF codec, mappers and grid reconciliation

from __future__ import annotations

from typing import Optional


class VdfError(Exception):
    """Base class for VDF decode/encode failures."""


class TruncatedInputError(VdfError):
    """The buffer ended in the middle of a value or an object."""

    def __init__(self, message: str, *, offset: int = -1):
        super().__init__(message)
        self.offset = offset


class MalformedHeaderError(VdfError):
    """The appinfo.vdf header does not carry a supported magic number."""

    def __init__(self, message: str, *, magic: Optional[int] = None):
        super().__init__(message)
        self.magic = magic


class UnknownTypeTagError(VdfError):
    """A type tag byte outside the known enumeration was read."""

    def __init__(self, tag: int, offset: int):
        super().__init__(f"Unknown VDF type tag 0x{tag:02x} at offset {offset}")
        self.tag = tag
        self.offset = offset


class VdfFormatError(VdfError):
    """Structurally invalid data: duplicate keys, bad string indices, trailing bytes."""


class MissingKeyError(VdfError, KeyError):
    """An expected structural key is absent."""

    def __init__(self, key: str, *, path: str = ""):
        location = f" under {path}" if path else ""
        super().__init__(f"Missing key '{key}'{location}")
        self.key = key
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0])


class SerializationError(Exception):
    """A record could not be converted to or from the exchange format."""


class GridError(Exception):
    """Base class for grid reconciliation failures."""


class UnknownGridTypeError(GridError, ValueError):
    """A grid type outside the fixed enumeration reached reconciliation."""

    def __init__(self, grid_type: str):
        super().__init__(f"Unexpected grid type {grid_type}")
        self.grid_type = grid_type


class GridFilesystemError(GridError):
    """Copying, removing or creating a grid file failed."""

    def __init__(self, message: str, *, path: str = ""):
        super().__init__(message)
        self.path = path
