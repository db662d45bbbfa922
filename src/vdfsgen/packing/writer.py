"""Binary writer emitting a complete volume from a flattened catalog.

The archive is assembled in a temporary file next to the destination:

1. header and catalog space is reserved (the plan is authoritative for where
   the data region starts),
2. the data packer streams file contents and back-patches the records,
3. the header is computed last and written, followed by the catalog,
4. the file is synced and atomically renamed over the destination.

Any failure, including interruption, removes the temporary file and leaves
the destination untouched.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
import os
import tempfile

from ..logging import get_logger, section
from ..reporting import task
from .errors import config_error, io_error
from .layout import dos_timestamp
from .models import ArchiveHeader, BuildConfig, CatalogRecord
from .packer import PackResult, pack_data
from .packers import pack_catalog, pack_header
from .planner import ArchivePlan, compute_archive_plan

__all__ = ["WriteResult", "build_header", "header_timestamp", "write_archive"]

_DEFAULT_MODE = 0o644


@dataclass(slots=True)
class WriteResult:
    output_file: Path
    bytes_written: int
    header: ArchiveHeader
    records: List[CatalogRecord]


def header_timestamp(config: BuildConfig) -> int:
    moment = config.timestamp or datetime.now(timezone.utc)
    try:
        return dos_timestamp(moment)
    except ValueError as exc:
        raise config_error(str(exc), {"timestamp": moment.isoformat()}) from exc


def build_header(
    config: BuildConfig,
    plan: ArchivePlan,
    packed: PackResult,
    timestamp: Optional[int] = None,
) -> ArchiveHeader:
    if timestamp is None:
        timestamp = header_timestamp(config)
    return ArchiveHeader(
        comment=config.comment,
        entry_count=plan.entry_count,
        file_count=packed.file_count,
        timestamp=timestamp,
        data_size=packed.data_size,
        catalog_offset=plan.catalog_offset,
    )


def _pad_to(f, target_offset: int) -> None:
    """Write zero padding until file position reaches ``target_offset``."""
    pos = f.tell()
    if pos > target_offset:
        raise RuntimeError(
            f"Writer position {pos} surpassed planned offset {target_offset}"
        )
    if pos < target_offset:
        f.write(b"\x00" * (target_offset - pos))


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        get_logger().warning(
            "Could not remove temporary file %s: %s", path, exc
        )


def _target_mode(destination: Path) -> int:
    try:
        return destination.stat().st_mode & 0o777
    except OSError:
        return _DEFAULT_MODE


def write_archive(
    config: BuildConfig,
    records: List[CatalogRecord],
    destination: Path,
    plan: Optional[ArchivePlan] = None,
) -> WriteResult:
    """Write a volume strictly following ``plan``; return bytes written."""
    logger = get_logger()
    destination = Path(destination)
    if plan is None:
        plan = compute_archive_plan(records, resolve_sizes=False)
    timestamp = header_timestamp(config)

    with section(f"Write {destination.name}"):
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{destination.name}.",
                suffix=".tmp",
                dir=destination.parent,
            )
        except OSError as exc:
            raise io_error(
                f"Cannot create temporary file next to '{destination}'",
                exc,
                path=str(destination),
            ) from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w+b") as f:
                _pad_to(f, plan.data_offset)
                packed = pack_data(
                    records, f, plan.data_offset, workers=config.workers
                )
                with task("archive.write", "Write header and catalog") as stats:
                    header = build_header(config, plan, packed, timestamp)
                    f.seek(0)
                    f.write(pack_header(header))
                    f.write(pack_catalog(records))
                    if f.tell() != plan.data_offset:
                        raise RuntimeError(
                            f"Catalog ends at {f.tell()}, plan expects "
                            f"{plan.data_offset}"
                        )
                    f.flush()
                    os.fsync(f.fileno())
                    stats["entries"] = header.entry_count
            size = tmp_path.stat().st_size
            if size != plan.data_offset + packed.data_size:
                raise RuntimeError(
                    f"File size mismatch: expected "
                    f"{plan.data_offset + packed.data_size} actual={size}"
                )
            os.chmod(tmp_path, _target_mode(destination))
            os.replace(tmp_path, destination)
        except OSError as exc:
            _discard(tmp_path)
            raise io_error(
                f"Cannot write '{destination}'", exc, path=str(destination)
            ) from exc
        except BaseException:
            _discard(tmp_path)
            raise

    logger.info(
        "Wrote %s size=%d entries=%d files=%d",
        destination.name,
        size,
        header.entry_count,
        header.file_count,
    )
    return WriteResult(
        output_file=destination,
        bytes_written=size,
        header=header,
        records=records,
    )
