"""Low-level layout helpers: name normalization, fixed fields, DOS time."""

from __future__ import annotations
from datetime import datetime, timezone

from .constants import (
    COMMENT_PAD_BYTE,
    COMMENT_SIZE,
    DOS_EPOCH_YEAR,
    DOS_MAX_YEAR,
    ENTRY_NAME_PAD_BYTE,
    ENTRY_NAME_SIZE,
    NAME_ENCODING,
)

__all__ = [
    "normalize_name",
    "encoded_name_length",
    "pack_name_string",
    "pack_comment",
    "dos_timestamp",
    "from_dos_timestamp",
    "DOS_EPOCH",
]

DOS_EPOCH = datetime(DOS_EPOCH_YEAR, 1, 1, tzinfo=timezone.utc)

_ASCII_UPPER = {c: c - 32 for c in range(ord("a"), ord("z") + 1)}


def normalize_name(name: str) -> str:
    """Upper-case ASCII letters only; other characters are kept as-is.

    ``str.upper`` is not used because it can change the encoded length of
    non-ASCII names (``"ß".upper() == "SS"``).
    """
    return name.translate(_ASCII_UPPER)


def encoded_name_length(name: str) -> int:
    return len(name.encode(NAME_ENCODING))


def pack_name_string(name: str, size: int = ENTRY_NAME_SIZE) -> bytes:
    name_bytes = normalize_name(name).encode(NAME_ENCODING)
    if len(name_bytes) > size:
        raise ValueError(f"Name '{name}' exceeds {size} bytes")
    return name_bytes + ENTRY_NAME_PAD_BYTE * (size - len(name_bytes))


def pack_comment(comment: str, size: int = COMMENT_SIZE) -> bytes:
    # Truncation is silent; the field is always exactly ``size`` bytes.
    raw = comment.encode("utf-8")[:size]
    return raw + COMMENT_PAD_BYTE * (size - len(raw))


def dos_timestamp(moment: datetime) -> int:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    if not DOS_EPOCH_YEAR <= moment.year <= DOS_MAX_YEAR:
        raise ValueError(
            f"DOS timestamps cover {DOS_EPOCH_YEAR}-{DOS_MAX_YEAR},"
            f" got {moment.year}"
        )
    return (
        ((moment.year - DOS_EPOCH_YEAR) << 25)
        | (moment.month << 21)
        | (moment.day << 16)
        | (moment.hour << 11)
        | (moment.minute << 5)
        | (moment.second // 2)
    )


def from_dos_timestamp(value: int) -> datetime:
    return datetime(
        DOS_EPOCH_YEAR + ((value >> 25) & 0x7F),
        (value >> 21) & 0x0F,
        (value >> 16) & 0x1F,
        (value >> 11) & 0x1F,
        (value >> 5) & 0x3F,
        (value & 0x1F) * 2,
        tzinfo=timezone.utc,
    )
