from datetime import datetime, timezone
from pathlib import Path

import pytest

from vdfsgen.api import assemble_archive, validate_archive
from vdfsgen.packing.errors import ArchiveIOError
from vdfsgen.packing.inspector import inspect_archive
from vdfsgen.packing.models import BuildConfig, BytesSource, LogicalEntry

WHEN = datetime(2020, 2, 29, 23, 59, 58, tzinfo=timezone.utc)


def _build(tmp_path: Path) -> Path:
    entries = (
        LogicalEntry.file("_work/data/scripts/a.dat", BytesSource(b"1" * 7)),
        LogicalEntry.file("_work/data/scripts/B.dat", BytesSource(b"2" * 3)),
        LogicalEntry.file("_work/data/music/theme.sgt", BytesSource(b"3")),
        LogicalEntry.directory("_work/data/empty"),
        LogicalEntry.file("readme.txt", BytesSource(b"hi")),
    )
    out = tmp_path / "MOD.VDF"
    assemble_archive(
        BuildConfig(entries=entries, comment="My mod", timestamp=WHEN), out
    )
    return out


def test_inspect_reports_header_and_files(tmp_path: Path):
    info = inspect_archive(_build(tmp_path))
    header = info["header"]
    assert header["comment"] == "My mod"
    assert header["signature_ok"]
    assert header["entry_count"] == 9
    assert header["file_count"] == 4
    assert header["data_size"] == 13
    assert header["timestamp_iso"] == WHEN.isoformat()
    assert [f["path"] for f in info["files"]] == [
        "README.TXT",
        "_WORK/DATA/MUSIC/THEME.SGT",
        "_WORK/DATA/SCRIPTS/A.DAT",
        "_WORK/DATA/SCRIPTS/B.DAT",
    ]
    offsets = [f["offset"] for f in info["files"]]
    assert offsets == sorted(offsets)


def test_built_volume_validates(tmp_path: Path):
    assert validate_archive(_build(tmp_path)) == []


def test_truncated_volume_is_io_error(tmp_path: Path):
    path = tmp_path / "short.vdf"
    path.write_bytes(b"\x00" * 100)
    with pytest.raises(ArchiveIOError):
        inspect_archive(path)
