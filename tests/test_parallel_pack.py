from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path

from vdfsgen.api import assemble_archive
from vdfsgen.packing.catalog import flatten
from vdfsgen.packing.constants import READ_CHUNK_SIZE
from vdfsgen.packing.models import (
    BuildConfig,
    BytesSource,
    ContentSource,
    FileSource,
    LogicalEntry,
)
from vdfsgen.packing.packer import pack_data
from vdfsgen.packing.tree import build_tree

WHEN = datetime(2023, 3, 3, 3, 3, 4, tzinfo=timezone.utc)


def _entries(tmp_path: Path):
    entries = []
    for i in range(25):
        src = tmp_path / "src" / f"d{i % 4}" / f"file{i:02d}.bin"
        src.parent.mkdir(parents=True, exist_ok=True)
        src.write_bytes(bytes([i]) * (i * 37 + 1))
        entries.append(
            LogicalEntry.file(f"d{i % 4}/file{i:02d}.bin", FileSource(src))
        )
    return tuple(entries)


def test_parallel_build_is_byte_identical(tmp_path: Path):
    entries = _entries(tmp_path)
    outputs = []
    for workers in (1, 2, 8):
        out = tmp_path / f"W{workers}.VDF"
        assemble_archive(
            BuildConfig(entries=entries, timestamp=WHEN, workers=workers), out
        )
        outputs.append(out.read_bytes())
    assert outputs[0] == outputs[1] == outputs[2]


def test_small_chunks_do_not_change_layout():
    entries = [
        LogicalEntry.file("x/a.bin", BytesSource(b"0123456789")),
        LogicalEntry.file("b.bin", BytesSource(b"abc")),
    ]
    records = flatten(build_tree(entries))
    sink = BytesIO()
    result = pack_data(records, sink, data_offset=1000, chunk_size=3)
    # root run: B.BIN precedes X, whose subtree follows
    assert sink.getvalue() == b"abc0123456789"
    assert result.data_size == 13
    assert result.file_count == 2
    by_path = {r.path: r for r in records}
    assert by_path["b.bin"].child_or_data_offset == 1000
    assert by_path["x/a.bin"].child_or_data_offset == 1003
    assert by_path["x/a.bin"].size == 10


class _RecordingStream(BytesIO):
    def __init__(self, data: bytes, reads: list):
        super().__init__(data)
        self.reads = reads

    def read(self, n=-1):
        self.reads.append(n)
        return super().read(n)


class _RecordingSource(ContentSource):
    def __init__(self, data: bytes, reads: list):
        self.data = data
        self.reads = reads

    def open(self):
        return _RecordingStream(self.data, self.reads)

    def size(self) -> int:
        return len(self.data)

    def describe(self) -> str:
        return "<recording>"


def test_parallel_reads_stay_chunked():
    reads: list = []
    big = bytes(range(256)) * (3 * 4096)  # 3 MiB
    entries = [
        LogicalEntry.file("big.bin", _RecordingSource(big, reads)),
        LogicalEntry.file("small.bin", _RecordingSource(b"tiny", reads)),
    ]
    records = flatten(build_tree(entries))
    sink = BytesIO()
    result = pack_data(records, sink, data_offset=0, workers=2)
    assert sink.getvalue() == big + b"tiny"
    assert result.data_size == len(big) + 4
    assert reads
    assert all(0 < n <= READ_CHUNK_SIZE for n in reads)
