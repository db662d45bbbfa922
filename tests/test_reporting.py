import io
import json

import pytest

from vdfsgen.logging import configure_logging, get_logger
from vdfsgen.reporting import (
    JsonLinesReporter,
    PlainReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
    task,
)


def test_plain_task_line_includes_stats():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    with task("catalog.flatten", "Flatten catalog") as stats:
        stats["entries"] = 12
    out = stream.getvalue()
    assert "✔ Flatten catalog" in out
    assert "[entries=12]" in out


def test_failed_task_is_marked_and_reraised():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    with pytest.raises(RuntimeError):
        with task("data.pack", "Pack file data", total=2):
            raise RuntimeError("boom")
    assert "✖ Pack file data 0/2" in stream.getvalue()


def test_log_records_are_routed_to_reporter():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    configure_logging(0)
    logger = get_logger()
    logger.warning("Glob matched nothing: %s", "*.dat")
    logger.debug("hidden")
    out = stream.getvalue()
    assert "WARN: Glob matched nothing: *.dat" in out
    assert "hidden" not in out


def test_verbose_logging_shows_debug():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    set_verbosity(1)
    configure_logging(1)
    get_logger().debug("Packed %d files", 3)
    assert "VERB1: Packed 3 files" in stream.getvalue()
    configure_logging(0)


def test_summary_renders_as_status_line():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    get_reporter().summary("build", file="OUT.VDF", bytes=621)
    assert stream.getvalue() == "INFO: Build summary: file=OUT.VDF bytes=621\n"


def test_json_summary_keeps_types():
    stream = io.StringIO()
    set_reporter(JsonLinesReporter(stream=stream))
    get_reporter().summary("validate", file="OUT.VDF", issues=0)
    event = json.loads(stream.getvalue())
    assert event == {
        "event": "summary",
        "summary_type": "validate",
        "file": "OUT.VDF",
        "issues": 0,
    }


def test_silent_reporter_accepts_every_event(capsys):
    set_reporter(SilentReporter())
    rep = get_reporter()
    with task("t", "Silent", total=1) as stats:
        rep.advance("t", current_item="a")
        stats["files"] = 1
    rep.summary("build", bytes=1)
    rep.warning("careful")
    rep.error("broken")
    rep.section("Section")
    captured = capsys.readouterr()
    assert captured.out == captured.err == ""
