"""Data model shared by the archive assembly stages."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from .constants import (
    CATALOG_ENTRY_SIZE,
    ENTRY_TYPE_DIRECTORY,
    ENTRY_TYPE_LAST,
    HEADER_SIZE,
)

__all__ = [
    "EntryKind",
    "ContentSource",
    "FileSource",
    "BytesSource",
    "LogicalEntry",
    "BuildConfig",
    "CatalogRecord",
    "ArchiveHeader",
    "split_logical_path",
]


class EntryKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"


class ContentSource:
    """Opaque handle to the bytes of one archived file."""

    def open(self) -> BinaryIO:
        raise NotImplementedError

    def size(self) -> int:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class FileSource(ContentSource):
    path: Path

    def open(self) -> BinaryIO:
        return self.path.open("rb")

    def size(self) -> int:
        return self.path.stat().st_size

    def describe(self) -> str:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class BytesSource(ContentSource):
    data: bytes
    label: str = "<memory>"

    def open(self) -> BinaryIO:
        return BytesIO(self.data)

    def size(self) -> int:
        return len(self.data)

    def describe(self) -> str:
        return self.label


def split_logical_path(path: str) -> Tuple[str, ...]:
    """Split ``a/b\\c.txt`` into segments; both separators are accepted."""
    return tuple(path.replace("\\", "/").split("/"))


@dataclass(frozen=True, slots=True)
class LogicalEntry:
    path: Tuple[str, ...]
    kind: EntryKind = EntryKind.FILE
    source: Optional[ContentSource] = None
    # Label of the input source (base directory, glob list, ...) for errors.
    origin: str = "input"

    @classmethod
    def file(
        cls, path: str, source: ContentSource, origin: str = "input"
    ) -> "LogicalEntry":
        return cls(split_logical_path(path), EntryKind.FILE, source, origin)

    @classmethod
    def directory(cls, path: str, origin: str = "input") -> "LogicalEntry":
        return cls(split_logical_path(path), EntryKind.DIRECTORY, None, origin)

    @property
    def display_path(self) -> str:
        return "/".join(self.path)


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Validated input of the assembly engine.

    ``timestamp`` pins the header time (reproducible builds); when ``None``
    the current UTC time is used.
    """

    entries: Tuple[LogicalEntry, ...] = ()
    comment: str = ""
    timestamp: Optional[datetime] = None
    workers: int = 1


@dataclass(slots=True)
class CatalogRecord:
    name: str
    kind: EntryKind
    # First child index for directories, absolute data offset for files.
    child_or_data_offset: int = 0
    # Child count for directories, byte count for files.
    size: int = 0
    is_last_sibling: bool = False
    source: Optional[ContentSource] = None
    path: str = ""

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def type_flags(self) -> int:
        flags = ENTRY_TYPE_DIRECTORY if self.is_directory else 0
        if self.is_last_sibling:
            flags |= ENTRY_TYPE_LAST
        return flags


@dataclass(frozen=True, slots=True)
class ArchiveHeader:
    comment: str
    entry_count: int
    file_count: int
    timestamp: int
    data_size: int
    catalog_offset: int = HEADER_SIZE
    catalog_entry_size: int = CATALOG_ENTRY_SIZE
