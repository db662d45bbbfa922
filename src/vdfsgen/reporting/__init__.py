"""Progress and message reporting for the CLI and the build pipeline.

The active reporter is process-wide: ``set_reporter`` installs one backend,
``get_reporter`` and ``task`` use it.
"""

from .base import (
    Reporter,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "Reporter",
    "get_reporter",
    "set_reporter",
    "get_verbosity",
    "set_verbosity",
    "task",
    "JsonLinesReporter",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
]
