"""Binary format constants for VDFS volumes (PSVDSC_V2.00)."""

from __future__ import annotations

import struct

COMMENT_SIZE = 256
COMMENT_PAD_BYTE = b"\x1a"
SIGNATURE = b"PSVDSC_V2.00\n\r\n\r"
SIGNATURE_SIZE = 16

# comment, signature, entry_count, file_count, timestamp, data_size,
# catalog_offset, catalog_entry_size
HEADER_FORMAT = f"<{COMMENT_SIZE}s{SIGNATURE_SIZE}s6I"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 296

ENTRY_NAME_SIZE = 64
ENTRY_NAME_PAD_BYTE = b" "
# name, child_or_data_offset, size, type, attributes
CATALOG_ENTRY_FORMAT = f"<{ENTRY_NAME_SIZE}s4I"
CATALOG_ENTRY_SIZE = struct.calcsize(CATALOG_ENTRY_FORMAT)  # 80

ENTRY_TYPE_DIRECTORY = 0x80000000
ENTRY_TYPE_LAST = 0x40000000
ENTRY_ATTRIBUTES = 0

NAME_ENCODING = "utf-8"

MAX_UINT32 = 0xFFFFFFFF
# The data region offset (header plus catalog) must still fit 32 bits
MAX_CATALOG_ENTRIES = (MAX_UINT32 - HEADER_SIZE) // CATALOG_ENTRY_SIZE

# Data packing
READ_CHUNK_SIZE = 1024 * 1024
PREFETCH_WINDOW_PER_WORKER = 2

DOS_EPOCH_YEAR = 1980
# 7-bit year field
DOS_MAX_YEAR = DOS_EPOCH_YEAR + 0x7F

__all__ = [
    "COMMENT_SIZE",
    "COMMENT_PAD_BYTE",
    "SIGNATURE",
    "SIGNATURE_SIZE",
    "HEADER_FORMAT",
    "HEADER_SIZE",
    "ENTRY_NAME_SIZE",
    "ENTRY_NAME_PAD_BYTE",
    "CATALOG_ENTRY_FORMAT",
    "CATALOG_ENTRY_SIZE",
    "ENTRY_TYPE_DIRECTORY",
    "ENTRY_TYPE_LAST",
    "ENTRY_ATTRIBUTES",
    "NAME_ENCODING",
    "MAX_UINT32",
    "MAX_CATALOG_ENTRIES",
    "READ_CHUNK_SIZE",
    "PREFETCH_WINDOW_PER_WORKER",
    "DOS_EPOCH_YEAR",
    "DOS_MAX_YEAR",
]
