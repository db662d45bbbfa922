"""Catalog flattening: tree -> index-addressed record list.

The catalog has no parent pointers. A directory record points at the index of
its first child and stores its child count; the children form one contiguous
run whose final record carries the last-sibling flag.

Flattening is queue driven (level order). Each dequeued directory appends all
of its children at once, so the index of its first child is simply the record
count at that moment and can be stored immediately.
"""

from __future__ import annotations
from collections import deque
from typing import Deque, Iterator, List, Optional, Tuple

from ..logging import get_logger
from .constants import MAX_CATALOG_ENTRIES
from .errors import too_many_entries
from .models import CatalogRecord, EntryKind
from .tree import TreeNode

__all__ = [
    "flatten",
    "sorted_children",
    "root_run_length",
    "traversal_order",
    "iter_file_records",
]


def sorted_children(node: TreeNode) -> List[TreeNode]:
    # Names are already upper-cased, ordinal order is case-insensitive order.
    return [node.children[name] for name in sorted(node.children)]


def flatten(
    root: TreeNode, max_entries: int = MAX_CATALOG_ENTRIES
) -> List[CatalogRecord]:
    records: List[CatalogRecord] = []
    # (directory node, index of its own record or None for the root, path)
    queue: Deque[Tuple[TreeNode, Optional[int], str]] = deque()
    queue.append((root, None, ""))

    while queue:
        node, record_index, prefix = queue.popleft()
        children = sorted_children(node)
        if record_index is not None:
            own = records[record_index]
            own.child_or_data_offset = len(records)
            own.size = len(children)
        if len(records) + len(children) > max_entries:
            raise too_many_entries(len(records) + len(children), max_entries)
        for position, child in enumerate(children):
            path = f"{prefix}{child.display_name}"
            record = CatalogRecord(
                name=child.name,
                kind=child.kind,
                is_last_sibling=position == len(children) - 1,
                source=child.source,
                path=path,
            )
            records.append(record)
            if child.is_directory:
                queue.append((child, len(records) - 1, path + "/"))

    get_logger().debug("Flattened catalog: %d records", len(records))
    return records


def root_run_length(records: List[CatalogRecord]) -> int:
    """Number of root children; the root's run always starts at index 0."""
    for index, record in enumerate(records):
        if record.is_last_sibling:
            return index + 1
    return 0


def traversal_order(records: List[CatalogRecord]) -> List[int]:
    """Catalog indices in depth-first (pre-order) traversal order.

    This is the order in which file contents are laid out in the data region.
    """
    order: List[int] = []
    stack: List[Tuple[int, int]] = [(0, root_run_length(records))]
    while stack:
        start, count = stack.pop()
        if count == 0:
            continue
        # Resume the rest of this run after the current subtree.
        stack.append((start + 1, count - 1))
        order.append(start)
        record = records[start]
        if record.is_directory:
            stack.append((record.child_or_data_offset, record.size))
    return order


def iter_file_records(records: List[CatalogRecord]) -> Iterator[CatalogRecord]:
    """File records in traversal order."""
    for index in traversal_order(records):
        if records[index].kind is EntryKind.FILE:
            yield records[index]
