import pytest

from vdfsgen.packing.catalog import flatten, root_run_length, traversal_order
from vdfsgen.packing.constants import (
    CATALOG_ENTRY_SIZE,
    HEADER_SIZE,
    MAX_CATALOG_ENTRIES,
    MAX_UINT32,
)
from vdfsgen.packing.errors import TooManyEntriesError
from vdfsgen.packing.models import BytesSource, EntryKind, LogicalEntry
from vdfsgen.packing.tree import build_tree


def _files(*paths):
    return [LogicalEntry.file(p, BytesSource(b"-")) for p in paths]


def _runs(records):
    runs = [(0, root_run_length(records))]
    runs += [
        (r.child_or_data_offset, r.size)
        for r in records
        if r.is_directory and r.size
    ]
    return runs


def test_nested_scenario_layout():
    records = flatten(build_tree(_files("a/one.txt", "a/two.txt", "root.txt")))
    assert [r.name for r in records] == ["A", "ROOT.TXT", "ONE.TXT", "TWO.TXT"]
    a = records[0]
    assert a.kind is EntryKind.DIRECTORY
    assert (a.child_or_data_offset, a.size) == (2, 2)
    assert [r.is_last_sibling for r in records] == [False, True, False, True]
    assert [r.path for r in records] == [
        "a",
        "root.txt",
        "a/one.txt",
        "a/two.txt",
    ]


def test_children_sorted_case_insensitively():
    records = flatten(build_tree(_files("b.txt", "A.txt", "a1.txt", "_x")))
    assert [r.name for r in records] == ["A.TXT", "A1.TXT", "B.TXT", "_X"]


def test_empty_directory_points_at_current_record_count():
    entries = [LogicalEntry.directory("empty")] + _files("z.txt")
    records = flatten(build_tree(entries))
    assert [r.name for r in records] == ["EMPTY", "Z.TXT"]
    assert records[0].child_or_data_offset == 2
    assert records[0].size == 0


def test_empty_tree_has_no_records():
    assert flatten(build_tree([])) == []


def test_runs_cover_every_record_exactly_once():
    paths = [
        "a/b/c/d.txt",
        "a/b/e.txt",
        "a/f.txt",
        "g/h.txt",
        "g/i/j.txt",
        "k.txt",
        "l/m/n/o/p.txt",
    ]
    records = flatten(build_tree(_files(*paths)))
    covered = []
    for start, count in _runs(records):
        assert start + count <= len(records)
        run = records[start : start + count]
        assert [r.is_last_sibling for r in run] == [False] * (count - 1) + [
            True
        ]
        names = [r.name for r in run]
        assert names == sorted(names)
        covered.extend(range(start, start + count))
    assert sorted(covered) == list(range(len(records)))
    assert sum(r.is_last_sibling for r in records) == len(_runs(records))


def test_traversal_order_is_depth_first():
    records = flatten(build_tree(_files("a/one.txt", "a/two.txt", "root.txt")))
    order = [records[i].path for i in traversal_order(records)]
    assert order == ["a", "a/one.txt", "a/two.txt", "root.txt"]


def test_entry_limit():
    with pytest.raises(TooManyEntriesError):
        flatten(build_tree(_files("a", "b", "c")), max_entries=2)
    assert len(flatten(build_tree(_files("a", "b")), max_entries=2)) == 2


def test_default_entry_limit_keeps_data_offset_in_32_bits():
    end = HEADER_SIZE + MAX_CATALOG_ENTRIES * CATALOG_ENTRY_SIZE
    assert end <= MAX_UINT32
    assert end + CATALOG_ENTRY_SIZE > MAX_UINT32
