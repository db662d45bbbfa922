from __future__ import annotations

import sys
from typing import Any, Dict

from .base import (
    Reporter,
    TaskRecord,
    TaskStatus,
    format_task_stats,
    get_verbosity,
)

ICONS = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
}

_LEVEL_COLORS = {"INFO": "32", "WARN": "33", "ERROR": "31"}


class PlainReporter(Reporter):
    """Line-oriented reporter for terminals and log files.

    One line per finished task; per-file progress lines only with ``-v``.
    """

    def __init__(self, stream=None, use_color: bool | None = None):
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color
        self._tasks: Dict[str, TaskRecord] = {}

    def _line(self, text: str) -> None:
        self.stream.write(text + "\n")

    def _tagged(self, tag: str, message: str, color: str | None = None):
        color = color or _LEVEL_COLORS.get(tag)
        if self.use_color and color:
            tag = f"\x1b[{color}m{tag}\x1b[0m"
        self._line(f"{tag}: {message}")

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        if get_verbosity() < 1:
            return
        item = meta.get("current_item") or f"item#{rec.completed}"
        if "size" in meta:
            item = f"{item} ({meta['size']} bytes)"
        total = rec.total if rec.total is not None else "?"
        self._line(f"   · [{rec.completed}/{total}] {item}")

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.finish(status, **final_meta)
        progress = ""
        if rec.total is not None:
            progress = f" {rec.completed}/{rec.total}"
        self._line(
            f" {ICONS.get(status, '?')} {rec.name}{progress}"
            f" ({rec.duration:.2f}s){format_task_stats(rec)}"
        )

    def status(self, message: str, **fields: Any) -> None:
        self._tagged("INFO", message)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._tagged(f"VERB{level}", message, "36")

    def warning(self, message: str, **fields: Any) -> None:
        self._tagged("WARN", message)

    def error(self, message: str, **fields: Any) -> None:
        self._tagged("ERROR", message)

    def section(self, title: str) -> None:
        self._line(f"\n[{title}]")
