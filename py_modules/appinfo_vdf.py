# appinfo_vdf.py - read-only access to Steam's appcache/appinfo.vdf
#
# Layout (little-endian):
#   magic u32, universe u32, [v29: string table offset i64]
#   repeated: app id u32 (0 ends the list), size u32, then ``size`` bytes:
#     state u32, last_updated u32, access_token u64, sha1 (20), change_number u32,
#     [v28+: sha1 of the payload (20), stored but not verified], binary VDF payload
#   [v29: string table: count u32, NUL-terminated strings]
#
# Every record carries its own length, so a record that fails to decode is
# skipped and the rest of the file is still returned.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import config
from vdf_binary import BinaryDecoder
from vdf_errors import MalformedHeaderError, TruncatedInputError, VdfError, VdfFormatError
from vdf_reader import BinaryReader

APPINFO_V27 = 0x07564427
APPINFO_V28 = 0x07564428
APPINFO_V29 = 0x07564429
SUPPORTED_MAGICS = (APPINFO_V27, APPINFO_V28, APPINFO_V29)

SHA1_SIZE = 20


@dataclass
class AppInfoRecord:
    """One decoded app entry."""

    app_id: int
    size: int
    state: int
    last_updated: int
    access_token: int
    checksum: bytes
    change_number: int
    binary_checksum: bytes
    data: Dict[str, Any]


@dataclass
class AppInfoFile:
    magic: int
    universe: int
    records: Dict[int, AppInfoRecord] = field(default_factory=dict)
    skipped: List[int] = field(default_factory=list)

    @property
    def version(self) -> int:
        return self.magic & 0xFF


def _read_string_table(buffer: bytes, offset: int) -> List[str]:
    if offset < 0 or offset > len(buffer):
        raise MalformedHeaderError(f"String table offset {offset} is outside the file")
    reader = BinaryReader(buffer, offset)
    count = reader.read_u32()
    return [reader.read_string() for _ in range(count)]


def _parse_record(app_id: int, body: bytes, magic: int, string_table: Optional[List[str]]) -> AppInfoRecord:
    reader = BinaryReader(body)
    state = reader.read_u32()
    last_updated = reader.read_u32()
    access_token = reader.read_u64()
    checksum = reader.read_bytes(SHA1_SIZE)
    change_number = reader.read_u32()
    binary_checksum = b""
    if magic >= APPINFO_V28:
        binary_checksum = reader.read_bytes(SHA1_SIZE)

    data = BinaryDecoder(reader, string_table).read_object()
    if not reader.at_end:
        raise VdfFormatError(f"{reader.remaining} trailing bytes in record for app {app_id}")

    return AppInfoRecord(
        app_id=app_id,
        size=len(body),
        state=state,
        last_updated=last_updated,
        access_token=access_token,
        checksum=checksum,
        change_number=change_number,
        binary_checksum=binary_checksum,
        data=data,
    )


def parse_appinfo(buffer: bytes, logger: Optional[logging.Logger] = None) -> AppInfoFile:
    """Decode the header and every well-formed app record."""
    log = logger or config.logger
    reader = BinaryReader(buffer)

    magic = reader.read_u32()
    if magic not in SUPPORTED_MAGICS:
        raise MalformedHeaderError(f"Unsupported appinfo.vdf magic 0x{magic:08x}", magic=magic)
    universe = reader.read_u32()

    string_table: Optional[List[str]] = None
    records_end = len(buffer)
    if magic == APPINFO_V29:
        table_offset = reader.read_i64()
        string_table = _read_string_table(buffer, table_offset)
        records_end = table_offset

    result = AppInfoFile(magic=magic, universe=universe)
    while True:
        if reader.offset + 4 > records_end:
            log.warning("appinfo.vdf ended without a terminating app id at offset %s", reader.offset)
            break
        app_id = reader.read_u32()
        if app_id == 0:
            break

        try:
            size = reader.read_u32()
        except TruncatedInputError:
            log.warning("appinfo.vdf truncated in the size of app %s", app_id)
            break
        start = reader.offset
        end = start + size
        if end > records_end:
            log.warning("Record for app %s claims %s bytes past the end of appinfo.vdf; stopping", app_id, size)
            break
        reader.seek(end)

        try:
            record = _parse_record(app_id, buffer[start:end], magic, string_table)
        except VdfError as exc:
            log.warning("Skipping unreadable appinfo record %s: %s", app_id, exc)
            result.skipped.append(app_id)
            continue
        result.records[app_id] = record

    log.info(
        "Parsed appinfo.vdf v%s: apps=%s skipped=%s",
        result.version,
        len(result.records),
        len(result.skipped),
    )
    return result


def load_appinfo(buffer: bytes, logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """Map app id (as a string) to its decoded VDF subtree."""
    parsed = parse_appinfo(buffer, logger=logger)
    return {str(app_id): record.data for app_id, record in parsed.records.items()}


def open_appinfo_vdf(path: str, logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    with open(path, "rb") as fp:
        raw = fp.read()
    return load_appinfo(raw, logger=logger)
