"""Reporter interface shared by the CLI backends.

A build reports three kinds of output:

- tasks (``tree.build``, ``catalog.flatten``, ``data.pack``,
  ``archive.write``) with optional per-item progress,
- one-line stage summaries (``Build summary: file=X bytes=N``),
- free-form status, warning and error messages.

Backends only decide how these are rendered.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
    "format_task_stats",
    "format_summary",
]

# Task meta keys rendered as ``[key=value ...]`` on completion lines.
STAT_KEYS = ("entries", "files", "directories", "bytes")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time) if self.end_time else 0.0

    def finish(self, status: TaskStatus, **final_meta: Any) -> "TaskRecord":
        self.status = status
        self.end_time = time.time()
        self.meta.update(final_meta)
        return self


def format_task_stats(rec: TaskRecord) -> str:
    stats = [f"{k}={rec.meta[k]}" for k in STAT_KEYS if k in rec.meta]
    return f" [{' '.join(stats)}]" if stats else ""


def format_summary(kind: str, fields: Dict[str, Any]) -> str:
    pairs = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{kind.capitalize()} summary: {pairs}"


_VERBOSITY = 0  # -v count from the CLI


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    # Tasks

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        raise NotImplementedError

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        raise NotImplementedError

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        raise NotImplementedError

    # Messages

    def status(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def summary(self, kind: str, **fields: Any) -> None:
        """Stage summary; rendered as a ``<Kind> summary: k=v`` line."""
        self.status(format_summary(kind, fields))

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        pass

    def warning(self, message: str, **fields: Any) -> None:
        self.status(message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def section(self, title: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass


_ACTIVE_REPORTER: Reporter | None = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE_REPORTER
    _ACTIVE_REPORTER = rep


def get_reporter() -> Reporter:
    global _ACTIVE_REPORTER
    if _ACTIVE_REPORTER is None:
        from .plain import PlainReporter  # local import to avoid cycle

        _ACTIVE_REPORTER = PlainReporter(stream=sys.stderr)
    return _ACTIVE_REPORTER


@contextmanager
def task(
    task_id: str, name: str, total: int | None = None, **meta: Any
) -> Iterator[Dict[str, Any]]:
    """Run a block as a reported task.

    Yields a dict; keys stored in it are attached to the task when it ends
    successfully (e.g. ``stats["entries"] = 12``). Any exception, including
    ``KeyboardInterrupt``, marks the task failed and propagates.
    """
    rep = get_reporter()
    rep.start_task(task_id, name, total, **meta)
    stats: Dict[str, Any] = {}
    try:
        yield stats
    except BaseException:
        rep.end_task(task_id, TaskStatus.FAILED)
        raise
    rep.end_task(task_id, TaskStatus.SUCCESS, **stats)
