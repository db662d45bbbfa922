"""JSON lines reporter: one event object per line, for CI and tooling.

Events: ``task_start``, ``task_progress``, ``task_end``, ``summary``,
``status`` and ``section``. Summary fields keep their types, so
``{"event": "summary", "summary_type": "build", "bytes": 621, ...}``.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity


class JsonLinesReporter(Reporter):
    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._tasks: Dict[str, TaskRecord] = {}

    def _emit(self, event: str, **payload: Any) -> None:
        payload["event"] = event
        self.stream.write(
            json.dumps(payload, sort_keys=True, default=str) + "\n"
        )

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        self._emit("task_start", id=task_id, name=name, total=total, **meta)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        self._emit(
            "task_progress", id=task_id, completed=rec.completed, **meta
        )

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
        self._emit(
            "task_end",
            **{
                **rec.meta,
                "id": task_id,
                "status": status.name.lower(),
                "completed": rec.completed,
                "total": rec.total,
                "duration_seconds": rec.duration,
            },
        )

    def summary(self, kind: str, **fields: Any) -> None:
        self._emit("summary", summary_type=kind, **fields)

    def status(self, message: str, **fields: Any) -> None:
        self._emit("status", message=message, level="info", **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._emit(
            "status",
            message=message,
            level=f"verbose{level}",
            vlevel=level,
            **fields,
        )

    def warning(self, message: str, **fields: Any) -> None:
        self._emit("status", message=message, level="warning", **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit("status", message=message, level="error", **fields)

    def section(self, title: str) -> None:
        self._emit("section", title=title)
