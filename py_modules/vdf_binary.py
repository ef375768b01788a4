# vdf_binary.py - binary KeyValues codec used by shortcuts.vdf and appinfo.vdf
#
# A decoded tree is built from plain Python values so it can be handed to the
# frontend as JSON and also fed to vdf.binary_dumps:
#
#   dict          object (insertion ordered, unique keys)
#   str           string
#   WideString    UTF-16 string
#   int           signed int32
#   float         float32
#   vdf.UINT_64 / vdf.INT_64 / vdf.POINTER / vdf.COLOR

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Any, Callable, Dict, Optional, Sequence, Union

import vdf

from vdf_errors import SerializationError, UnknownTypeTagError, VdfFormatError
from vdf_reader import (
    STRING_ENCODING,
    STRING_ERRORS,
    WIDE_STRING_ENCODING,
    WIDE_STRING_ERRORS,
    BinaryReader,
)


class BinaryType(IntEnum):
    OBJECT = 0x00
    STRING = 0x01
    INT32 = 0x02
    FLOAT32 = 0x03
    POINTER = 0x04
    WIDESTRING = 0x05
    COLOR = 0x06
    UINT64 = 0x07
    END = 0x08
    INT64 = 0x0A


class WideString(str):
    """A string stored with the UTF-16 wide string tag."""


VdfNode = Union[Dict[str, Any], str, WideString, int, float, vdf.UINT_64, vdf.INT_64, vdf.POINTER, vdf.COLOR]

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_UINT64 = struct.Struct("<Q")
_FLOAT32 = struct.Struct("<f")

_INT32_MIN = -(2 ** 31)
_INT32_MAX = 2 ** 31 - 1


class BinaryDecoder:
    """Recursive decoder over a BinaryReader.

    When a string table is given (appinfo.vdf v29) keys are stored as uint32
    indices into it instead of inline strings.
    """

    def __init__(self, reader: BinaryReader, string_table: Optional[Sequence[str]] = None):
        self.reader = reader
        self.string_table = string_table

    def _read_key(self) -> str:
        if self.string_table is None:
            return self.reader.read_string()
        index = self.reader.read_u32()
        if index >= len(self.string_table):
            raise VdfFormatError(f"Key index {index} outside string table of {len(self.string_table)} entries")
        return self.string_table[index]

    def read_object(self) -> Dict[str, Any]:
        """Read key/value records up to and including this level's END tag."""
        result: Dict[str, Any] = {}
        while True:
            tag_offset = self.reader.offset
            tag = self.reader.read_byte()
            if tag == BinaryType.END:
                return result
            if tag not in _VALUE_READERS:
                raise UnknownTypeTagError(tag, tag_offset)
            key = self._read_key()
            if key in result:
                raise VdfFormatError(f"Duplicate key '{key}' at offset {tag_offset}")
            result[key] = self.read_value(tag)

    def read_value(self, tag: int) -> VdfNode:
        handler = _VALUE_READERS.get(tag)
        if handler is None:
            raise UnknownTypeTagError(tag, self.reader.offset)
        return handler(self)


_VALUE_READERS: Dict[int, Callable[[BinaryDecoder], VdfNode]] = {
    BinaryType.OBJECT: lambda d: d.read_object(),
    BinaryType.STRING: lambda d: d.reader.read_string(),
    BinaryType.INT32: lambda d: d.reader.read_i32(),
    BinaryType.FLOAT32: lambda d: d.reader.read_f32(),
    BinaryType.POINTER: lambda d: vdf.POINTER(d.reader.read_i32()),
    BinaryType.WIDESTRING: lambda d: WideString(d.reader.read_wide_string()),
    BinaryType.COLOR: lambda d: vdf.COLOR(d.reader.read_i32()),
    BinaryType.UINT64: lambda d: vdf.UINT_64(d.reader.read_u64()),
    BinaryType.INT64: lambda d: vdf.INT_64(d.reader.read_i64()),
}


def decode(buffer: bytes) -> Dict[str, Any]:
    """Decode a headerless binary VDF buffer (implicit root object)."""
    reader = BinaryReader(buffer)
    root = BinaryDecoder(reader).read_object()
    if not reader.at_end:
        raise VdfFormatError(f"{reader.remaining} trailing bytes after root object")
    return root


def _encode_key(key: Any) -> bytes:
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise SerializationError(f"VDF keys must be strings, got {type(key).__name__}")
    text = str(key)
    if "\x00" in text:
        raise SerializationError(f"VDF key {text!r} contains a NUL character")
    return text.encode(STRING_ENCODING, STRING_ERRORS) + b"\x00"


def _encode_string(value: str) -> bytes:
    if "\x00" in value:
        raise SerializationError(f"VDF string {value!r} contains a NUL character")
    return value.encode(STRING_ENCODING, STRING_ERRORS) + b"\x00"


def _pack(fmt: struct.Struct, value: Any, key: str) -> bytes:
    try:
        return fmt.pack(value)
    except (struct.error, OverflowError) as exc:
        raise SerializationError(f"Value {value!r} for key '{key}' does not fit: {exc}") from exc


def _append_record(key: Any, value: Any, out: bytearray) -> None:
    name = _encode_key(key)

    # Wrapper types first: they subclass int / str.
    if isinstance(value, dict):
        out.append(BinaryType.OBJECT)
        out += name
        _append_object(value, out)
    elif isinstance(value, WideString):
        if "\x00" in value:
            raise SerializationError(f"VDF string {value!r} contains a NUL character")
        out.append(BinaryType.WIDESTRING)
        out += name
        out += value.encode(WIDE_STRING_ENCODING, WIDE_STRING_ERRORS) + b"\x00\x00"
    elif isinstance(value, str):
        out.append(BinaryType.STRING)
        out += name
        out += _encode_string(value)
    elif isinstance(value, vdf.UINT_64):
        out.append(BinaryType.UINT64)
        out += name
        out += _pack(_UINT64, value, key)
    elif isinstance(value, vdf.INT_64):
        out.append(BinaryType.INT64)
        out += name
        out += _pack(_INT64, value, key)
    elif isinstance(value, vdf.POINTER):
        out.append(BinaryType.POINTER)
        out += name
        out += _pack(_INT32, value, key)
    elif isinstance(value, vdf.COLOR):
        out.append(BinaryType.COLOR)
        out += name
        out += _pack(_INT32, value, key)
    elif isinstance(value, int):
        if not _INT32_MIN <= int(value) <= _INT32_MAX:
            raise SerializationError(f"Value {value} for key '{key}' is outside the int32 range")
        out.append(BinaryType.INT32)
        out += name
        out += _INT32.pack(int(value))
    elif isinstance(value, float):
        out.append(BinaryType.FLOAT32)
        out += name
        out += _pack(_FLOAT32, value, key)
    else:
        raise SerializationError(f"Cannot encode {type(value).__name__} value for key '{key}'")


def _append_object(obj: Dict[str, Any], out: bytearray) -> None:
    for key, value in obj.items():
        _append_record(key, value, out)
    out.append(BinaryType.END)


def encode(node: Dict[str, Any]) -> bytes:
    """Encode a tree produced by ``decode`` back to its exact byte layout."""
    if not isinstance(node, dict):
        raise SerializationError(f"Root VDF node must be an object, got {type(node).__name__}")
    out = bytearray()
    _append_object(node, out)
    return bytes(out)
