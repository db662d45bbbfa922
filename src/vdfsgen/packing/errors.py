"""Error definitions for vdfsgen.

Every failure of a build is fatal: stages raise one of the typed errors below
and the caller aborts without producing an archive.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_CONFIG = "E_CONFIG"
E_NAME_TOO_LONG = "E_NAME_TOO_LONG"
E_KIND_CONFLICT = "E_KIND_CONFLICT"
E_DUPLICATE_ENTRY = "E_DUPLICATE_ENTRY"
E_TOO_MANY_ENTRIES = "E_TOO_MANY_ENTRIES"
E_ARCHIVE_TOO_LARGE = "E_ARCHIVE_TOO_LARGE"
E_IO = "E_IO"


@dataclass
class VdfsError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class ConfigError(VdfsError):
    pass


class NameTooLongError(VdfsError):
    pass


class KindConflictError(VdfsError):
    pass


class DuplicateEntryError(VdfsError):
    pass


class TooManyEntriesError(VdfsError):
    pass


class ArchiveTooLargeError(VdfsError):
    pass


class ArchiveIOError(VdfsError):
    pass


def config_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ConfigError:
    return ConfigError(code=E_CONFIG, message=message, context=context)


def name_too_long(name: str, limit: int, path: str = "") -> NameTooLongError:
    return NameTooLongError(
        code=E_NAME_TOO_LONG,
        message=f"Entry name '{name}' exceeds {limit} bytes",
        context={"name": name, "limit": limit, "path": path},
    )


def kind_conflict(
    path: str, existing: str, requested: str, origins: tuple[str, str]
) -> KindConflictError:
    return KindConflictError(
        code=E_KIND_CONFLICT,
        message=f"'{path}' is a {existing} but was added as a {requested}",
        context={"path": path, "origins": list(origins)},
    )


def duplicate_entry(
    path: str, origins: tuple[str, str]
) -> DuplicateEntryError:
    return DuplicateEntryError(
        code=E_DUPLICATE_ENTRY,
        message=f"Duplicate file entry '{path}'",
        context={"path": path, "origins": list(origins)},
    )


def too_many_entries(count: int, limit: int) -> TooManyEntriesError:
    return TooManyEntriesError(
        code=E_TOO_MANY_ENTRIES,
        message=f"Catalog has {count} entries, limit is {limit}",
        context={"count": count, "limit": limit},
    )


def archive_too_large(
    what: str, value: int, limit: int
) -> ArchiveTooLargeError:
    return ArchiveTooLargeError(
        code=E_ARCHIVE_TOO_LARGE,
        message=f"{what} {value} does not fit in 32 bits",
        context={"value": value, "limit": limit},
    )


def io_error(
    message: str, exc: BaseException | None = None, **context: Any
) -> ArchiveIOError:
    if exc is not None:
        context["reason"] = str(exc)
    return ArchiveIOError(code=E_IO, message=message, context=context or None)


__all__ = [
    "VdfsError",
    "ConfigError",
    "NameTooLongError",
    "KindConflictError",
    "DuplicateEntryError",
    "TooManyEntriesError",
    "ArchiveTooLargeError",
    "ArchiveIOError",
    "config_error",
    "name_too_long",
    "kind_conflict",
    "duplicate_entry",
    "too_many_entries",
    "archive_too_large",
    "io_error",
    "E_CONFIG",
    "E_NAME_TOO_LONG",
    "E_KIND_CONFLICT",
    "E_DUPLICATE_ENTRY",
    "E_TOO_MANY_ENTRIES",
    "E_ARCHIVE_TOO_LARGE",
    "E_IO",
]
