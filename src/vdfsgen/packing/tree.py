"""Tree building: logical paths -> in-memory directory hierarchy.

Entries are inserted in the order the input resolver produced them. Names are
normalized (ASCII upper-case) on insertion, so lookups and conflict checks are
case-insensitive. Conflicts are always fatal; a later entry never replaces an
earlier one.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..logging import get_logger
from .constants import ENTRY_NAME_SIZE
from .errors import config_error, duplicate_entry, kind_conflict, name_too_long
from .layout import encoded_name_length, normalize_name
from .models import ContentSource, EntryKind, LogicalEntry

__all__ = ["TreeNode", "TreeBuilder", "build_tree", "normalize_segment"]

_FORBIDDEN_SEGMENTS = {"", ".", ".."}


@dataclass(slots=True)
class TreeNode:
    name: str
    kind: EntryKind
    display_name: str = ""
    children: Dict[str, "TreeNode"] = field(default_factory=dict)
    source: Optional[ContentSource] = None
    origin: str = ""

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


def normalize_segment(segment: str, path: str = "") -> str:
    if segment in _FORBIDDEN_SEGMENTS or "/" in segment or "\\" in segment:
        raise config_error(
            f"Invalid path segment '{segment}' in '{path}'",
            {"path": path, "segment": segment},
        )
    normalized = normalize_name(segment)
    if encoded_name_length(normalized) > ENTRY_NAME_SIZE:
        raise name_too_long(segment, ENTRY_NAME_SIZE, path)
    return normalized


class TreeBuilder:
    """Incrementally builds the archive tree from one or more sources."""

    def __init__(self) -> None:
        self.root = TreeNode(name="", kind=EntryKind.DIRECTORY, origin="root")
        self.file_count = 0
        self.directory_count = 0

    def add(
        self, entry: LogicalEntry, origin: Optional[str] = None
    ) -> TreeNode:
        origin = origin or entry.origin
        path = entry.display_path
        if not entry.path:
            raise config_error("Empty logical path", {"origin": origin})
        if entry.kind is EntryKind.FILE and entry.source is None:
            raise config_error(
                f"File entry '{path}' has no content source",
                {"path": path, "origin": origin},
            )
        normalized = [normalize_segment(s, path) for s in entry.path]

        node = self.root
        walked: List[str] = []
        last = len(normalized) - 1
        for i, (segment, name) in enumerate(zip(entry.path, normalized)):
            walked.append(segment)
            wanted = entry.kind if i == last else EntryKind.DIRECTORY
            child = node.children.get(name)
            if child is None:
                child = TreeNode(
                    name=name,
                    kind=wanted,
                    display_name=segment,
                    source=entry.source if wanted is EntryKind.FILE else None,
                    origin=origin,
                )
                node.children[name] = child
                if wanted is EntryKind.FILE:
                    self.file_count += 1
                else:
                    self.directory_count += 1
            elif child.kind is not wanted:
                raise kind_conflict(
                    "/".join(walked),
                    child.kind.value,
                    wanted.value,
                    (child.origin, origin),
                )
            elif wanted is EntryKind.FILE:
                raise duplicate_entry(path, (child.origin, origin))
            node = child
        return node

    def add_all(
        self, entries: Iterable[LogicalEntry], origin: Optional[str] = None
    ) -> "TreeBuilder":
        count = 0
        for entry in entries:
            self.add(entry, origin)
            count += 1
        get_logger().debug("Merged %d entries", count)
        return self


def build_tree(entries: Iterable[LogicalEntry]) -> TreeNode:
    return TreeBuilder().add_all(entries).root
