from __future__ import annotations

import struct

import pytest
import vdf

from vdf_binary import BinaryType, WideString, decode, encode
from vdf_errors import SerializationError, TruncatedInputError, UnknownTypeTagError, VdfFormatError


def _shortcut_bytes() -> bytes:
    return (
        b"\x00shortcuts\x00"
        b"\x000\x00"
        b"\x02appid\x00" + struct.pack("<i", -1234567890)
        + b"\x01AppName\x00Game\x00"
        + b"\x01icon\x00\x00"
        + b"\x00tags\x00\x010\x00fav\x00\x08"
        + b"\x08"
        + b"\x08"
        + b"\x08"
    )


def test_decode_shortcuts_layout() -> None:
    tree = decode(_shortcut_bytes())
    assert tree == {
        "shortcuts": {
            "0": {
                "appid": -1234567890,
                "AppName": "Game",
                "icon": "",
                "tags": {"0": "fav"},
            }
        }
    }


def test_encode_reproduces_input_bytes() -> None:
    raw = _shortcut_bytes()
    assert encode(decode(raw)) == raw


def test_typed_values_survive_round_trip() -> None:
    tree = {
        "root": {
            "u64": vdf.UINT_64(2 ** 64 - 1),
            "i64": vdf.INT_64(-(2 ** 63)),
            "ptr": vdf.POINTER(7),
            "color": vdf.COLOR(-1),
            "wide": WideString("Ünïcødé"),
            "float": 0.5,
            "int": 2 ** 31 - 1,
        }
    }
    decoded = decode(encode(tree))
    assert decoded == tree
    values = decoded["root"]
    assert isinstance(values["u64"], vdf.UINT_64)
    assert isinstance(values["i64"], vdf.INT_64)
    assert isinstance(values["ptr"], vdf.POINTER)
    assert isinstance(values["color"], vdf.COLOR)
    assert isinstance(values["wide"], WideString)
    assert type(values["int"]) is int


def test_key_order_is_preserved() -> None:
    tree = {"b": "1", "a": "2", "c": {"z": 1, "y": 2}}
    decoded = decode(encode(tree))
    assert list(decoded) == ["b", "a", "c"]
    assert list(decoded["c"]) == ["z", "y"]


def test_matches_vdf_library_output() -> None:
    tree = {
        "shortcuts": {
            "0": {
                "appid": 123,
                "AppName": "Test Game",
                "LastPlayTime": 0,
                "tags": {"0": "a", "1": "b"},
                "size": vdf.UINT_64(99),
            }
        }
    }
    raw = vdf.binary_dumps(tree)
    assert encode(tree) == raw
    assert decode(raw) == vdf.binary_loads(raw)


def test_unknown_tag_reports_tag_and_offset() -> None:
    raw = b"\x01a\x00b\x00\x09bad\x00\x08"
    with pytest.raises(UnknownTypeTagError) as info:
        decode(raw)
    assert info.value.tag == 0x09
    assert info.value.offset == 5


def test_end_alt_tag_is_not_accepted() -> None:
    with pytest.raises(UnknownTypeTagError):
        decode(b"\x01a\x00b\x00\x0b")


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"\x00shortcuts\x00",
        b"\x02appid\x00\x01\x02",
        b"\x01name\x00value",
        b"\x05w\x00a\x00",
    ],
)
def test_truncated_input(raw: bytes) -> None:
    with pytest.raises(TruncatedInputError):
        decode(raw)


def test_duplicate_key_rejected() -> None:
    raw = b"\x01a\x00x\x00\x01a\x00y\x00\x08"
    with pytest.raises(VdfFormatError):
        decode(raw)


def test_trailing_bytes_rejected() -> None:
    with pytest.raises(VdfFormatError):
        decode(b"\x08\x00")


def test_encode_empty_root() -> None:
    assert encode({}) == bytes([BinaryType.END])
    assert decode(encode({})) == {}


@pytest.mark.parametrize(
    "tree",
    [
        {"n": 2 ** 31},
        {"n": vdf.UINT_64(-1)},
        {"n": "bad\x00value"},
        {"bad\x00key": "v"},
        {"n": [1, 2]},
        {"n": None},
        {"n": 1e300},
    ],
)
def test_encode_rejects_unrepresentable_values(tree) -> None:
    with pytest.raises(SerializationError):
        encode(tree)


def test_encode_requires_object_root() -> None:
    with pytest.raises(SerializationError):
        encode("not an object")  # type: ignore[arg-type]
