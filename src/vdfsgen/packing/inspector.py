"""Read-only volume inspection and structural validation.

Public functions:
- parse_header(data) -> dict
- parse_catalog(data, header) -> list[dict]
- inspect_archive(path) -> dict
- validate_archive(info) -> list[str]

Nothing is extracted; the inspector only decodes the header and catalog and
checks the invariants a ZenGin reader relies on.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple
import struct

from .constants import (
    CATALOG_ENTRY_FORMAT,
    CATALOG_ENTRY_SIZE,
    COMMENT_PAD_BYTE,
    ENTRY_NAME_PAD_BYTE,
    ENTRY_TYPE_DIRECTORY,
    ENTRY_TYPE_LAST,
    HEADER_FORMAT,
    HEADER_SIZE,
    NAME_ENCODING,
    SIGNATURE,
)
from .errors import io_error
from .layout import from_dos_timestamp

__all__ = [
    "parse_header",
    "parse_catalog",
    "inspect_archive",
    "validate_archive",
]


def _read_exact(data: bytes, offset: int, size: int, label: str) -> bytes:
    end = offset + size
    if end > len(data):
        raise ValueError(
            f"Out of range read for {label}: {offset}+{size}>{len(data)}"
        )
    return data[offset:end]


def parse_header(data: bytes) -> Dict[str, Any]:
    raw = _read_exact(data, 0, HEADER_SIZE, "header")
    (
        comment,
        signature,
        entry_count,
        file_count,
        timestamp,
        data_size,
        catalog_offset,
        catalog_entry_size,
    ) = struct.unpack(HEADER_FORMAT, raw)
    try:
        when = from_dos_timestamp(timestamp).isoformat()
    except ValueError:
        when = None
    return {
        "comment": comment.rstrip(COMMENT_PAD_BYTE).decode(
            "utf-8", errors="replace"
        ),
        "signature_ok": signature == SIGNATURE,
        "entry_count": entry_count,
        "file_count": file_count,
        "timestamp": timestamp,
        "timestamp_iso": when,
        "data_size": data_size,
        "catalog_offset": catalog_offset,
        "catalog_entry_size": catalog_entry_size,
    }


def parse_catalog(data: bytes, header: Dict[str, Any]) -> List[Dict[str, Any]]:
    entries = []
    base = header["catalog_offset"]
    for i in range(header["entry_count"]):
        raw = _read_exact(
            data,
            base + i * CATALOG_ENTRY_SIZE,
            CATALOG_ENTRY_SIZE,
            f"entry[{i}]",
        )
        name, offset, size, type_flags, attributes = struct.unpack(
            CATALOG_ENTRY_FORMAT, raw
        )
        entries.append(
            {
                "index": i,
                "name": name.rstrip(ENTRY_NAME_PAD_BYTE).decode(
                    NAME_ENCODING, errors="replace"
                ),
                "offset": offset,
                "size": size,
                "is_directory": bool(type_flags & ENTRY_TYPE_DIRECTORY),
                "is_last": bool(type_flags & ENTRY_TYPE_LAST),
                "attributes": attributes,
            }
        )
    return entries


def _walk(entries: List[Dict[str, Any]]) -> List[Tuple[str, Dict[str, Any]]]:
    """(path, entry) pairs in depth-first order; stops at malformed ranges."""
    out: List[Tuple[str, Dict[str, Any]]] = []
    root_len = next(
        (e["index"] + 1 for e in entries if e["is_last"]), len(entries)
    )
    stack: List[Tuple[int, int, str]] = [(0, root_len, "")]
    seen = set()
    while stack:
        start, count, prefix = stack.pop()
        if count <= 0 or start >= len(entries) or start in seen:
            continue
        seen.add(start)
        stack.append((start + 1, count - 1, prefix))
        entry = entries[start]
        path = prefix + entry["name"]
        out.append((path, entry))
        if entry["is_directory"]:
            stack.append((entry["offset"], entry["size"], path + "/"))
    return out


def inspect_archive(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise io_error(f"Cannot read '{p}'", exc, path=str(p)) from exc
    try:
        header = parse_header(data)
        entries = parse_catalog(data, header)
    except ValueError as exc:
        raise io_error(f"Truncated volume '{p}'", exc, path=str(p)) from exc
    files = [
        {"path": fpath, "offset": e["offset"], "size": e["size"]}
        for fpath, e in _walk(entries)
        if not e["is_directory"]
    ]
    return {
        "file_size": len(data),
        "header": header,
        "entries": entries,
        "files": files,
    }


def validate_archive(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    header = info["header"]
    entries = info["entries"]
    if not header["signature_ok"]:
        issues.append("Signature mismatch")
    if header["catalog_entry_size"] != CATALOG_ENTRY_SIZE:
        issues.append("Unexpected catalog entry size")
    if header["catalog_offset"] != HEADER_SIZE:
        issues.append("Unexpected catalog offset")
    n = len(entries)
    if n != header["entry_count"]:
        issues.append("Catalog entry count mismatch")
    file_entries = [e for e in entries if not e["is_directory"]]
    if len(file_entries) != header["file_count"]:
        issues.append("File count mismatch")

    # Sibling runs: root run plus one run per non-empty directory.
    runs: List[Tuple[str, int, int]] = []
    root_len = next((e["index"] + 1 for e in entries if e["is_last"]), 0)
    if n and root_len == 0:
        issues.append("Root run has no last-sibling terminator")
    runs.append(("<root>", 0, root_len))
    for e in entries:
        if e["is_directory"] and e["size"]:
            runs.append((e["name"], e["offset"], e["size"]))
    covered = 0
    for name, start, count in runs:
        if start + count > n:
            issues.append(f"Children of {name} out of range")
            continue
        covered += count
        run = entries[start : start + count]
        flags = [c["is_last"] for c in run]
        if count and (not flags[-1] or any(flags[:-1])):
            issues.append(f"Bad last-sibling flags in children of {name}")
        names = [c["name"] for c in run]
        if names != sorted(names) or len(set(names)) != len(names):
            issues.append(f"Children of {name} not sorted/unique")
    if covered != n:
        issues.append("Catalog records not covered exactly once by runs")
    terminators = sum(1 for e in entries if e["is_last"])
    if terminators != sum(1 for _, _, count in runs if count):
        issues.append("Last-sibling count does not match non-empty runs")

    data_start = header["catalog_offset"] + n * CATALOG_ENTRY_SIZE
    cursor = data_start
    for f in info["files"]:
        if f["offset"] < cursor:
            issues.append(f"File {f['path']} overlaps previous data")
        cursor = max(cursor, f["offset"] + f["size"])
    if sum(e["size"] for e in file_entries) != header["data_size"]:
        issues.append("Sum of file sizes differs from data_size")
    if data_start + header["data_size"] != info["file_size"]:
        issues.append("File size does not match header")
    return issues
