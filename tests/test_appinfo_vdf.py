from __future__ import annotations

import hashlib
import struct
from pathlib import Path
from typing import List, Optional

import pytest

from appinfo_vdf import (
    APPINFO_V27,
    APPINFO_V28,
    APPINFO_V29,
    load_appinfo,
    open_appinfo_vdf,
    parse_appinfo,
)
from vdf_binary import encode
from vdf_errors import MalformedHeaderError


def _record(app_id: int, payload: bytes, magic: int, *, binary_sha: Optional[bytes] = None) -> bytes:
    body = struct.pack("<IIQ", 2, 1700000000, 0) + b"\x11" * 20 + struct.pack("<I", 99)
    if magic >= APPINFO_V28:
        body += binary_sha if binary_sha is not None else hashlib.sha1(payload).digest()
    body += payload
    return struct.pack("<II", app_id, len(body)) + body


def _file(magic: int, records: List[bytes]) -> bytes:
    return struct.pack("<II", magic, 1) + b"".join(records) + struct.pack("<I", 0)


def _app_payload(app_id: int, name: str) -> bytes:
    return encode({"appinfo": {"appid": app_id, "common": {"name": name}}})


@pytest.mark.parametrize("magic", [APPINFO_V27, APPINFO_V28])
def test_parse_inline_key_versions(magic: int) -> None:
    raw = _file(magic, [_record(10, _app_payload(10, "Counter-Strike"), magic), _record(730, _app_payload(730, "CS2"), magic)])
    parsed = parse_appinfo(raw)

    assert parsed.version == magic & 0xFF
    assert parsed.universe == 1
    assert sorted(parsed.records) == [10, 730]
    record = parsed.records[730]
    assert record.change_number == 99
    assert record.last_updated == 1700000000
    assert record.data == {"appinfo": {"appid": 730, "common": {"name": "CS2"}}}


def test_parse_v29_string_table() -> None:
    table = ["appinfo", "appid", "common", "name"]
    payload = (
        b"\x00" + struct.pack("<I", 0)
        + b"\x02" + struct.pack("<I", 1) + struct.pack("<i", 440)
        + b"\x00" + struct.pack("<I", 2)
        + b"\x01" + struct.pack("<I", 3) + b"Team Fortress 2\x00"
        + b"\x08\x08\x08"
    )
    records = _record(440, payload, APPINFO_V29) + struct.pack("<I", 0)
    header_size = 4 + 4 + 8
    table_offset = header_size + len(records)
    string_table = struct.pack("<I", len(table)) + b"".join(s.encode() + b"\x00" for s in table)
    raw = struct.pack("<IIq", APPINFO_V29, 1, table_offset) + records + string_table

    assert load_appinfo(raw) == {"440": {"appinfo": {"appid": 440, "common": {"name": "Team Fortress 2"}}}}


def test_bad_magic_raises() -> None:
    with pytest.raises(MalformedHeaderError) as info:
        parse_appinfo(struct.pack("<II", 0x07564426, 1))
    assert info.value.magic == 0x07564426


def test_corrupt_payload_is_skipped() -> None:
    broken = b"\x01name\x00x\x00\x09oops\x00\x08"
    raw = _file(
        APPINFO_V27,
        [_record(5, broken, APPINFO_V27), _record(6, _app_payload(6, "Fine"), APPINFO_V27)],
    )
    parsed = parse_appinfo(raw)
    assert parsed.skipped == [5]
    assert list(parsed.records) == [6]


def test_payload_checksum_is_kept_not_verified() -> None:
    payload = _app_payload(7, "Mismatched")
    raw = _file(
        APPINFO_V28,
        [_record(7, payload, APPINFO_V28, binary_sha=b"\x00" * 20), _record(8, _app_payload(8, "Ok"), APPINFO_V28)],
    )
    parsed = parse_appinfo(raw)
    assert parsed.skipped == []
    assert sorted(parsed.records) == [7, 8]
    assert parsed.records[7].binary_checksum == b"\x00" * 20
    assert load_appinfo(raw)["7"]["appinfo"]["common"]["name"] == "Mismatched"


def test_size_past_end_stops_with_earlier_records() -> None:
    good = _record(1, _app_payload(1, "First"), APPINFO_V27)
    truncated = struct.pack("<II", 2, 10_000) + b"\x00" * 8
    raw = struct.pack("<II", APPINFO_V27, 1) + good + truncated
    parsed = parse_appinfo(raw)
    assert list(parsed.records) == [1]


def test_open_appinfo_vdf_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "appinfo.vdf"
    path.write_bytes(_file(APPINFO_V28, [_record(20, _app_payload(20, "Ricochet"), APPINFO_V28)]))
    data = open_appinfo_vdf(str(path))
    assert data["20"]["appinfo"]["common"]["name"] == "Ricochet"
