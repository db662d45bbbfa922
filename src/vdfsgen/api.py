"""High-level API for vdfsgen.

``assemble_archive`` is the archive assembly engine: it takes a validated
:class:`BuildConfig` and runs tree building, catalog flattening, data packing
and container writing in sequence. ``build_archive`` adds input resolution
(directories, volume scripts, overrides) and the optional manifest on top.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
import os

from .logging import get_logger, step
from .manifest import build_manifest
from .packing.catalog import flatten
from .packing.errors import config_error
from .packing.inspector import (
    inspect_archive as _inspect_archive_impl,
    validate_archive as _validate_archive_impl,
)
from .packing.layout import DOS_EPOCH
from .packing.models import ArchiveHeader, BuildConfig
from .packing.planner import ArchivePlan, compute_archive_plan, to_plan_dict
from .packing.tree import TreeBuilder
from .packing.writer import WriteResult, write_archive
from .reporting import get_reporter, task
from .script.resolver import ResolvedInput, resolve_input

__all__ = [
    "BuildOptions",
    "BuildResult",
    "BuildConfig",
    "assemble_archive",
    "build_archive",
    "make_config",
    "deterministic_timestamp",
    "plan_dry_run",
    "inspect_archive",
    "validate_archive",
]


@dataclass(slots=True)
class BuildOptions:
    input_path: Path
    output_path: Path | None = None
    base_dir: Path | None = None
    comment: str | None = None
    # Optional path; when provided a manifest JSON is emitted next to the volume
    manifest_path: Path | None = None
    # Pin the header timestamp so identical inputs give identical bytes
    deterministic: bool = False
    workers: int = 1


@dataclass(slots=True)
class BuildResult:
    output_file: Path
    bytes_written: int
    header: ArchiveHeader
    manifest_file: Path | None = None


def deterministic_timestamp() -> datetime:
    """``SOURCE_DATE_EPOCH`` when set, otherwise the DOS epoch."""
    raw = os.environ.get("SOURCE_DATE_EPOCH")
    if not raw:
        return DOS_EPOCH
    try:
        moment = datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as exc:
        raise config_error(
            f"Invalid SOURCE_DATE_EPOCH: {raw!r}", {"value": raw}
        ) from exc
    return max(moment, DOS_EPOCH)


def make_config(
    resolved: ResolvedInput, deterministic: bool = False, workers: int = 1
) -> BuildConfig:
    if workers < 1:
        raise config_error(f"workers must be >= 1, got {workers}")
    return BuildConfig(
        entries=resolved.entries,
        comment=resolved.comment,
        timestamp=deterministic_timestamp() if deterministic else None,
        workers=workers,
    )


def _catalog(config: BuildConfig):
    rep = get_reporter()
    with task("tree.build", "Build tree") as stats:
        builder = TreeBuilder().add_all(config.entries)
        stats["files"] = builder.file_count
        stats["directories"] = builder.directory_count
    rep.summary(
        "tree",
        files=builder.file_count,
        directories=builder.directory_count,
    )
    with task("catalog.flatten", "Flatten catalog") as stats:
        records = flatten(builder.root)
        stats["entries"] = len(records)
    return records


def assemble_archive(config: BuildConfig, destination: Path) -> WriteResult:
    """Build one volume from ``config`` and write it atomically."""
    rep = get_reporter()
    records = _catalog(config)
    plan = compute_archive_plan(records, resolve_sizes=False)
    rep.summary(
        "catalog",
        entries=plan.entry_count,
        files=plan.file_count,
        directories=plan.directory_count,
        data_offset=plan.data_offset,
    )
    result = write_archive(config, records, Path(destination), plan)
    rep.summary(
        "write",
        file=result.output_file.name,
        bytes=result.bytes_written,
        data_size=result.header.data_size,
    )
    return result


def build_archive(options: BuildOptions) -> BuildResult:
    logger = get_logger()
    rep = get_reporter()
    step(f"Resolving {options.input_path}")
    resolved = resolve_input(
        options.input_path,
        base_dir_override=options.base_dir,
        output_override=options.output_path,
        comment_override=options.comment,
    )
    for source in resolved.sources:
        logger.debug(
            "Input source %s: %d entries", source.name, len(source.entries)
        )
    config = make_config(
        resolved, deterministic=options.deterministic, workers=options.workers
    )
    result = assemble_archive(config, resolved.output_path)
    manifest_file = None
    if options.manifest_path is not None:
        with task("manifest.emit", "Emit manifest"):
            manifest_file = build_manifest(result, options.manifest_path)
        rep.summary("manifest", file=manifest_file.name)
    header = result.header
    rep.summary(
        "build",
        file=result.output_file.name,
        bytes=result.bytes_written,
        entries=header.entry_count,
        files=header.file_count,
    )
    return BuildResult(
        output_file=result.output_file,
        bytes_written=result.bytes_written,
        header=header,
        manifest_file=manifest_file,
    )


def plan_dry_run(
    input_path: str | Path,
    base_dir: Optional[Path] = None,
) -> tuple[ArchivePlan, dict[str, Any]]:
    """Compute the layout of a volume without writing anything.

    Returns (ArchivePlan, plan_dict) where plan_dict is JSON-serialisable.
    """
    step(f"Planning {input_path}")
    resolved = resolve_input(Path(input_path), base_dir_override=base_dir)
    records = _catalog(make_config(resolved))
    plan = compute_archive_plan(records, resolve_sizes=True)
    plan_dict = to_plan_dict(plan)
    plan_dict["output_path"] = str(resolved.output_path)
    return plan, plan_dict


def inspect_archive(path: str | Path) -> dict:
    return _inspect_archive_impl(path)


def validate_archive(path: str | Path) -> list[str]:
    return _validate_archive_impl(_inspect_archive_impl(path))
