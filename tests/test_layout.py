from datetime import datetime, timedelta, timezone

import pytest

from vdfsgen.packing.layout import (
    DOS_EPOCH,
    dos_timestamp,
    from_dos_timestamp,
    normalize_name,
    pack_comment,
    pack_name_string,
)
from vdfsgen.packing.packers import pack_catalog_record
from vdfsgen.packing.errors import ArchiveTooLargeError
from vdfsgen.packing.models import CatalogRecord, EntryKind


def test_comment_is_padded_with_0x1a():
    packed = pack_comment("Mod v1")
    assert len(packed) == 256
    assert packed == b"Mod v1" + b"\x1a" * 250


def test_long_comment_is_truncated():
    packed = pack_comment("x" * 300)
    assert packed == b"x" * 256


def test_empty_comment():
    assert pack_comment("") == b"\x1a" * 256


def test_name_is_space_padded_and_upper_cased():
    assert pack_name_string("file.txt") == b"FILE.TXT" + b" " * 56


def test_name_over_limit_raises():
    with pytest.raises(ValueError):
        pack_name_string("n" * 65)


def test_normalize_name_keeps_non_ascii():
    assert normalize_name("árbol.tex") == "áRBOL.TEX"


def test_dos_timestamp_encoding():
    when = datetime(2024, 5, 17, 13, 45, 30, tzinfo=timezone.utc)
    assert dos_timestamp(when) == 0x58B16DAF
    assert from_dos_timestamp(0x58B16DAF) == when


def test_dos_timestamp_uses_utc():
    local = datetime(
        2024, 5, 17, 15, 45, 30, tzinfo=timezone(timedelta(hours=2))
    )
    assert dos_timestamp(local) == 0x58B16DAF


def test_dos_epoch():
    assert dos_timestamp(DOS_EPOCH) == 0x00210000


def test_dos_timestamp_before_epoch_raises():
    with pytest.raises(ValueError):
        dos_timestamp(datetime(1979, 12, 31, tzinfo=timezone.utc))


def test_catalog_offsets_must_fit_32_bits():
    record = CatalogRecord(
        name="BIG.BIN", kind=EntryKind.FILE, child_or_data_offset=2**32
    )
    with pytest.raises(ArchiveTooLargeError):
        pack_catalog_record(record)


def test_dos_timestamp_after_last_year_raises():
    with pytest.raises(ValueError):
        dos_timestamp(datetime(2108, 1, 1, tzinfo=timezone.utc))
    assert from_dos_timestamp(
        dos_timestamp(datetime(2107, 12, 31, 23, 59, 58, tzinfo=timezone.utc))
    ).year == 2107
