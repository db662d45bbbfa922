"""Data packing: stream file contents into the data region.

Files are laid out in catalog traversal order. Each file record is
back-patched with its absolute offset and the number of bytes actually read.

With ``workers > 1`` small sources are read by a thread pool while the
calling thread remains the only writer. Reads are submitted through a bounded
window and consumed strictly in traversal order, so completions that arrive
early wait in their futures and the output is identical to a sequential
build. Sources larger than one chunk are streamed by the writer thread when
their turn comes.
"""

from __future__ import annotations
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from typing import BinaryIO, Deque, Iterator, List, Optional, Tuple

from ..logging import get_logger
from ..reporting import get_reporter, task
from .catalog import iter_file_records
from .constants import MAX_UINT32, PREFETCH_WINDOW_PER_WORKER, READ_CHUNK_SIZE
from .errors import archive_too_large, io_error
from .models import CatalogRecord

__all__ = ["PackResult", "pack_data"]


@dataclass(slots=True)
class PackResult:
    records: List[CatalogRecord]
    data_size: int
    file_count: int


def _source_label(record: CatalogRecord) -> str:
    return record.source.describe() if record.source else "<none>"


def _write(sink: BinaryIO, chunk: bytes, record: CatalogRecord) -> None:
    try:
        sink.write(chunk)
    except OSError as exc:
        raise io_error(
            f"Cannot write data of '{record.path}'", exc, path=record.path
        ) from exc


def _stream_into(
    record: CatalogRecord, sink: BinaryIO, chunk_size: int
) -> int:
    written = 0
    try:
        stream = record.source.open()  # type: ignore[union-attr]
    except OSError as exc:
        raise io_error(
            f"Cannot open '{record.path}'",
            exc,
            path=record.path,
            source=_source_label(record),
        ) from exc
    with stream:
        while True:
            try:
                chunk = stream.read(chunk_size)
            except OSError as exc:
                raise io_error(
                    f"Cannot read '{record.path}'",
                    exc,
                    path=record.path,
                    source=_source_label(record),
                ) from exc
            if not chunk:
                break
            _write(sink, chunk, record)
            written += len(chunk)
    return written


def _prefetchable(record: CatalogRecord, chunk_size: int) -> bool:
    """Only sources known to fit in one chunk are read ahead."""
    try:
        return record.source.size() <= chunk_size  # type: ignore[union-attr]
    except (OSError, NotImplementedError):
        return False


def _read_small(record: CatalogRecord, chunk_size: int) -> bytes:
    buffer = BytesIO()
    _stream_into(record, buffer, chunk_size)
    return buffer.getvalue()


def _ordered_reads(
    records: List[CatalogRecord], workers: int, chunk_size: int
) -> Iterator[Tuple[CatalogRecord, Optional[bytes]]]:
    """Yield ``(record, data)`` in order.

    ``data`` is ``None`` for sources larger than ``chunk_size``; the caller
    streams those itself, so at most ``window`` chunks are ever buffered.
    """
    window = max(1, workers * PREFETCH_WINDOW_PER_WORKER)
    pending: Deque[Tuple[CatalogRecord, Optional[Future]]] = deque()
    upcoming = iter(records)
    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="vdfsgen-read"
    ) as pool:

        def submit(record: CatalogRecord) -> None:
            future = None
            if _prefetchable(record, chunk_size):
                future = pool.submit(_read_small, record, chunk_size)
            pending.append((record, future))

        try:
            for record in upcoming:
                submit(record)
                if len(pending) >= window:
                    break
            while pending:
                record, future = pending.popleft()
                data = future.result() if future is not None else None
                following = next(upcoming, None)
                if following is not None:
                    submit(following)
                yield record, data
        finally:
            for _, future in pending:
                if future is not None:
                    future.cancel()


def pack_data(
    records: List[CatalogRecord],
    sink: BinaryIO,
    data_offset: int,
    workers: int = 1,
    chunk_size: int = READ_CHUNK_SIZE,
) -> PackResult:
    """Append every file's bytes to ``sink`` and back-patch its record.

    ``sink`` must be positioned at ``data_offset``. Any read or write failure
    raises :class:`~vdfsgen.packing.errors.ArchiveIOError` immediately.
    """
    logger = get_logger()
    rep = get_reporter()
    files = list(iter_file_records(records))
    running = 0

    def place(record: CatalogRecord, size: int) -> None:
        nonlocal running
        offset = data_offset + running
        if offset + size > MAX_UINT32:
            raise archive_too_large(
                "Data region end", offset + size, MAX_UINT32
            )
        record.child_or_data_offset = offset
        record.size = size
        running += size
        rep.advance("data.pack", current_item=record.path, size=size)

    with task("data.pack", "Pack file data", total=len(files)) as stats:
        if workers > 1:
            reads = _ordered_reads(files, workers, chunk_size)
            try:
                for record, data in reads:
                    if data is None:
                        place(record, _stream_into(record, sink, chunk_size))
                        continue
                    _write(sink, data, record)
                    place(record, len(data))
            finally:
                reads.close()
        else:
            for record in files:
                place(record, _stream_into(record, sink, chunk_size))
        stats["files"] = len(files)
        stats["bytes"] = running

    logger.debug(
        "Packed %d files (%d bytes) at offset %d workers=%d",
        len(files),
        running,
        data_offset,
        workers,
    )
    return PackResult(records=records, data_size=running, file_count=len(files))
