# vdf_reader.py - cursor over a binary VDF buffer
#
# Decodes primitive values only. Type tags and nesting belong to vdf_binary.

from __future__ import annotations

import struct

from vdf_errors import TruncatedInputError

_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")
_INT64 = struct.Struct("<q")
_UINT64 = struct.Struct("<Q")
_FLOAT32 = struct.Struct("<f")

STRING_ENCODING = "utf-8"
STRING_ERRORS = "surrogateescape"
WIDE_STRING_ENCODING = "utf-16-le"
WIDE_STRING_ERRORS = "surrogatepass"


class BinaryReader:
    """Little-endian token reader with an explicit cursor."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.offset = int(offset)

    @property
    def remaining(self) -> int:
        return max(0, len(self.data) - self.offset)

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self.data):
            raise TruncatedInputError(f"Cannot seek to {offset}, buffer is {len(self.data)} bytes", offset=offset)
        self.offset = offset

    def _take(self, size: int, what: str) -> bytes:
        end = self.offset + size
        if size < 0 or end > len(self.data):
            raise TruncatedInputError(
                f"Expected {size} bytes for {what} at offset {self.offset}, {self.remaining} left",
                offset=self.offset,
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def _unpack(self, fmt: struct.Struct, what: str):
        return fmt.unpack(self._take(fmt.size, what))[0]

    def skip(self, size: int) -> None:
        self._take(size, "skip")

    def peek_byte(self) -> int:
        if self.at_end:
            raise TruncatedInputError(f"Expected a byte at offset {self.offset}", offset=self.offset)
        return self.data[self.offset]

    def read_byte(self) -> int:
        return self._take(1, "type tag")[0]

    def read_bytes(self, size: int) -> bytes:
        """Read an opaque blob of exactly ``size`` bytes."""
        return self._take(size, "blob")

    def read_string(self) -> str:
        end = self.data.find(b"\x00", self.offset)
        if end < 0:
            raise TruncatedInputError(f"Unterminated string at offset {self.offset}", offset=self.offset)
        raw = self.data[self.offset:end]
        self.offset = end + 1
        return raw.decode(STRING_ENCODING, STRING_ERRORS)

    def read_wide_string(self) -> str:
        end = self.offset
        while True:
            if end + 2 > len(self.data):
                raise TruncatedInputError(f"Unterminated wide string at offset {self.offset}", offset=self.offset)
            if self.data[end:end + 2] == b"\x00\x00":
                break
            end += 2
        raw = self.data[self.offset:end]
        self.offset = end + 2
        return raw.decode(WIDE_STRING_ENCODING, WIDE_STRING_ERRORS)

    def read_i32(self) -> int:
        return self._unpack(_INT32, "int32")

    def read_u32(self) -> int:
        return self._unpack(_UINT32, "uint32")

    def read_i64(self) -> int:
        return self._unpack(_INT64, "int64")

    def read_u64(self) -> int:
        return self._unpack(_UINT64, "uint64")

    def read_f32(self) -> float:
        return self._unpack(_FLOAT32, "float32")
