"""Struct packers for the fixed-size header and catalog records."""

from __future__ import annotations
import struct
from typing import Iterable

from .constants import (
    CATALOG_ENTRY_FORMAT,
    CATALOG_ENTRY_SIZE,
    ENTRY_ATTRIBUTES,
    HEADER_FORMAT,
    HEADER_SIZE,
    MAX_UINT32,
    SIGNATURE,
)
from .errors import archive_too_large
from .layout import pack_comment, pack_name_string
from .models import ArchiveHeader, CatalogRecord

__all__ = ["pack_header", "pack_catalog_record", "pack_catalog"]


def _u32(label: str, value: int) -> int:
    if value < 0 or value > MAX_UINT32:
        raise archive_too_large(label, value, MAX_UINT32)
    return value


def pack_header(header: ArchiveHeader) -> bytes:
    data = struct.pack(
        HEADER_FORMAT,
        pack_comment(header.comment),
        SIGNATURE,
        _u32("entry_count", header.entry_count),
        _u32("file_count", header.file_count),
        _u32("timestamp", header.timestamp),
        _u32("data_size", header.data_size),
        _u32("catalog_offset", header.catalog_offset),
        _u32("catalog_entry_size", header.catalog_entry_size),
    )
    if len(data) != HEADER_SIZE:  # pragma: no cover
        raise RuntimeError("Header size mismatch")
    return data


def pack_catalog_record(record: CatalogRecord) -> bytes:
    return struct.pack(
        CATALOG_ENTRY_FORMAT,
        pack_name_string(record.name),
        _u32(f"offset of '{record.path}'", record.child_or_data_offset),
        _u32(f"size of '{record.path}'", record.size),
        record.type_flags,
        ENTRY_ATTRIBUTES,
    )


def pack_catalog(records: Iterable[CatalogRecord]) -> bytes:
    out = b"".join(pack_catalog_record(r) for r in records)
    if len(out) % CATALOG_ENTRY_SIZE:  # pragma: no cover
        raise RuntimeError("Catalog size is not a multiple of the entry size")
    return out
