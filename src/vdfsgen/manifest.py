"""Build manifest: an optional JSON summary written next to the volume.

Only produced when explicitly requested (``--emit-manifest``). Contains the
header fields, file hashes of the whole volume and one line per packed file
with its data offset and size, in data-region order.
"""

from __future__ import annotations

from pathlib import Path
import hashlib
import json
import zlib
from typing import Any

from .packing.catalog import iter_file_records
from .packing.writer import WriteResult

__all__ = ["build_manifest", "manifest_dict", "MANIFEST_VERSION"]

MANIFEST_VERSION = 1


def _digests(path: Path) -> tuple[str, int]:
    sha = hashlib.sha256()
    crc = 0
    with path.open("rb") as f:
        for block in iter(lambda: f.read(1024 * 1024), b""):
            sha.update(block)
            crc = zlib.crc32(block, crc)
    return sha.hexdigest(), crc & 0xFFFFFFFF


def manifest_dict(result: WriteResult) -> dict[str, Any]:
    sha256, crc32 = _digests(result.output_file)
    header = result.header
    return {
        "version": MANIFEST_VERSION,
        "volume": result.output_file.name,
        "file_size": result.bytes_written,
        "sha256": sha256,
        "crc32": f"{crc32:08x}",
        "header": {
            "comment": header.comment,
            "entry_count": header.entry_count,
            "file_count": header.file_count,
            "timestamp": header.timestamp,
            "data_size": header.data_size,
            "catalog_offset": header.catalog_offset,
            "catalog_entry_size": header.catalog_entry_size,
        },
        "files": [
            {"path": r.path, "offset": r.child_or_data_offset, "size": r.size}
            for r in iter_file_records(result.records)
        ],
    }


def build_manifest(result: WriteResult, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = manifest_dict(result)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")
    return output_path
