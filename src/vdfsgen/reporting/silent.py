from __future__ import annotations

from typing import Any

from .base import Reporter


class SilentReporter(Reporter):
    """Drops every event; used by ``-r silent`` and library callers."""

    def _ignore(self, *args: Any, **kwargs: Any) -> None:
        return None

    # summary, warning and verbose fall back to status in the base class
    start_task = advance = end_task = _ignore
    status = error = section = _ignore
