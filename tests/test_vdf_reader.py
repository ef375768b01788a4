from __future__ import annotations

import struct

import pytest

from vdf_errors import TruncatedInputError
from vdf_reader import BinaryReader


def test_reads_little_endian_scalars() -> None:
    data = (
        struct.pack("<i", -2)
        + struct.pack("<I", 0xFFFFFFFE)
        + struct.pack("<q", -5)
        + struct.pack("<Q", 2 ** 63 + 1)
        + struct.pack("<f", 1.5)
    )
    reader = BinaryReader(data)
    assert reader.read_i32() == -2
    assert reader.read_u32() == 0xFFFFFFFE
    assert reader.read_i64() == -5
    assert reader.read_u64() == 2 ** 63 + 1
    assert reader.read_f32() == 1.5
    assert reader.at_end


def test_read_string_stops_at_nul() -> None:
    reader = BinaryReader(b"appname\x00Half-Life\x00")
    assert reader.read_string() == "appname"
    assert reader.read_string() == "Half-Life"
    assert reader.remaining == 0


def test_read_string_keeps_invalid_utf8() -> None:
    reader = BinaryReader(b"caf\xe9\x00")
    value = reader.read_string()
    assert value.encode("utf-8", "surrogateescape") == b"caf\xe9"


def test_read_wide_string() -> None:
    payload = "Dödel".encode("utf-16-le") + b"\x00\x00"
    reader = BinaryReader(payload + b"\x08")
    assert reader.read_wide_string() == "Dödel"
    assert reader.read_byte() == 0x08


def test_unterminated_string_raises() -> None:
    with pytest.raises(TruncatedInputError):
        BinaryReader(b"no terminator").read_string()


def test_short_int_raises_with_offset() -> None:
    reader = BinaryReader(b"\x01\x02\x03")
    with pytest.raises(TruncatedInputError) as info:
        reader.read_u32()
    assert info.value.offset == 0
    # A failed read does not move the cursor.
    assert reader.offset == 0


def test_read_bytes_and_seek() -> None:
    reader = BinaryReader(b"abcdef")
    reader.seek(2)
    assert reader.read_bytes(3) == b"cde"
    assert reader.peek_byte() == ord("f")
    with pytest.raises(TruncatedInputError):
        reader.read_bytes(2)
    with pytest.raises(TruncatedInputError):
        reader.seek(7)
