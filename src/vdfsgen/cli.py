"""Command line interface for vdfsgen."""

from __future__ import annotations

import argparse
import json
import signal
import sys
from pathlib import Path

from .logging import configure_logging, get_logger
from .packing.errors import VdfsError
from .reporting import (
    set_reporter,
    get_reporter,
    PlainReporter,
    JsonLinesReporter,
    SilentReporter,
    RichReporter,
    set_verbosity,
)
from .api import (
    BuildOptions,
    build_archive,
    inspect_archive,
    plan_dry_run,
    validate_archive,
)


def _build_cmd(args: argparse.Namespace) -> int:
    opts = BuildOptions(
        input_path=args.input,
        output_path=args.output,
        base_dir=args.base_dir,
        comment=args.comment,
        manifest_path=args.emit_manifest,
        deterministic=args.deterministic,
        workers=args.workers,
    )
    build_archive(opts)
    return 0


def _plan_cmd(args: argparse.Namespace) -> int:
    plan, plan_dict = plan_dry_run(args.input, base_dir=args.base_dir)
    # Finalize any active progress UI before emitting output
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(plan_dict, indent=2, sort_keys=True))
    else:
        regions_summary = ",".join(
            f"{r.name}@{r.offset}+{r.size}" for r in plan.regions if r.size
        )
        rep.summary(
            "plan",
            entries=plan.entry_count,
            files=plan.file_count,
            file_size=plan.expected_file_size,
            regions=regions_summary,
        )
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_archive(args.archive)
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
        return 0
    header = info["header"]
    rep = get_reporter()
    rep.section(f"Inspect {args.archive.name}")
    rep.summary(
        "header",
        entries=header["entry_count"],
        files=header["file_count"],
        data_size=header["data_size"],
        timestamp=header["timestamp_iso"],
    )
    if header["comment"]:
        rep.status(f"Comment: {header['comment']}")
    for f in info["files"]:
        rep.status(f"{f['offset']:>10} {f['size']:>10}  {f['path']}")
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    issues = validate_archive(args.archive)
    rep = get_reporter()
    for issue in issues:
        rep.error(issue)
    rep.summary("validate", file=args.archive.name, issues=len(issues))
    return 1 if issues else 0


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "input", type=Path, help="Directory to pack or volume script"
    )
    p.add_argument(
        "-b",
        "--base-dir",
        dest="base_dir",
        type=Path,
        help="Override the script's base directory",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vdfsgen", description="VDFS volume generation tool"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, "
        "json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Build a volume")
    _add_input_args(b)
    b.add_argument(
        "-o", "--output", type=Path, help="Override the output volume path"
    )
    b.add_argument("-c", "--comment", help="Override the volume comment")
    b.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of threads reading source files (default: 1)",
    )
    b.add_argument(
        "--deterministic",
        action="store_true",
        help="Pin the timestamp to SOURCE_DATE_EPOCH or 1980-01-01",
    )
    b.add_argument(
        "--emit-manifest",
        dest="emit_manifest",
        type=Path,
        help="Optional path to write manifest JSON (opt-in)",
    )
    b.set_defaults(func=_build_cmd)

    pl = sub.add_parser("plan", help="Compute layout (dry run, no write)")
    _add_input_args(pl)
    pl.add_argument("--json", action="store_true", help="Emit JSON plan")
    pl.set_defaults(func=_plan_cmd)

    i = sub.add_parser("inspect", help="Inspect a volume")
    i.add_argument("archive", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON")
    i.set_defaults(func=_inspect_cmd)

    v = sub.add_parser("validate", help="Check a volume's structure")
    v.add_argument("archive", type=Path)
    v.set_defaults(func=_validate_cmd)

    return p


def _select_reporter(requested: str) -> None:
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # Plain, or rich without a TTY
        set_reporter(PlainReporter())


def _terminate(signum, frame) -> None:  # pragma: no cover - signal path
    raise SystemExit(128 + signum)


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    _select_reporter(args.reporter)
    # Apply verbosity globally for reporters (verbose gating)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    # SIGTERM takes the same cleanup path as Ctrl-C
    signal.signal(signal.SIGTERM, _terminate)
    try:
        return args.func(args)
    except VdfsError as exc:
        get_logger().debug("Failure context: %s", exc.to_dict())
        get_reporter().error(str(exc), code=exc.code)
        return 1
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
