"""Input resolution: directories, globs and scripts -> logical entries.

The resolver is the only part of vdfsgen that looks at the filesystem layout.
Its output is an ordered list of :class:`LogicalEntry` per input source; the
archive assembly engine never sees raw script data.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple
import glob
import os

from ..logging import get_logger
from ..packing.errors import config_error
from ..packing.models import EntryKind, FileSource, LogicalEntry
from ..utils.paths import safe_relative_parts
from .loader import load_script
from .models import VolumeScript

__all__ = [
    "DEFAULT_VOLUME_NAME",
    "InputSource",
    "ResolvedInput",
    "case_insensitive_globify",
    "resolve_directory",
    "resolve_globs",
    "resolve_files",
    "resolve_script",
    "resolve_input",
]

DEFAULT_VOLUME_NAME = "DEFAULT.VDF"


@dataclass(slots=True)
class InputSource:
    name: str
    entries: List[LogicalEntry] = field(default_factory=list)


@dataclass(slots=True)
class ResolvedInput:
    sources: List[InputSource]
    output_path: Path
    comment: str = ""

    @property
    def entries(self) -> Tuple[LogicalEntry, ...]:
        return tuple(e for s in self.sources for e in s.entries)


def case_insensitive_globify(pattern: str) -> str:
    """Turn every letter outside ``[...]`` into a ``[xX]`` class."""
    out: List[str] = []
    in_class = False
    for ch in pattern:
        if in_class:
            out.append(ch)
            if ch == "]":
                in_class = False
        elif ch == "[":
            in_class = True
            out.append(ch)
        elif ch.isalpha() and ch.lower() != ch.upper():
            out.append(f"[{ch.lower()}{ch.upper()}]")
        else:
            out.append(ch)
    return "".join(out)


def _require_dir(base: Path, label: str) -> Path:
    if not base.is_dir():
        raise config_error(
            f"{label} is not a directory: {base}", {"path": str(base)}
        )
    return base


def resolve_directory(
    base: Path, exclude: Iterable[Path] = (), origin: Optional[str] = None
) -> List[LogicalEntry]:
    """Walk ``base`` recursively in sorted order.

    Every directory is listed (so empty ones survive), followed by its files.
    Symlinked directories are followed unless they point back at a directory
    already on the current walk path.
    """
    logger = get_logger()
    base = _require_dir(Path(base), "Base directory")
    origin = origin or str(base)
    skipped = {Path(p).resolve() for p in exclude}
    entries: List[LogicalEntry] = []
    # walk root -> real paths of the directories leading to it
    chains: Dict[str, frozenset] = {
        os.fspath(base): frozenset({base.resolve()})
    }
    for root, dirs, files in os.walk(base, followlinks=True):
        chain = chains.pop(root)
        followed = []
        for name in sorted(dirs):
            real = (Path(root) / name).resolve()
            if real in chain:
                logger.warning(
                    "Skipping %s: link loops back to %s",
                    Path(root) / name,
                    real,
                )
                continue
            chains[os.path.join(root, name)] = chain | {real}
            followed.append(name)
        dirs[:] = followed
        rel = Path(root).relative_to(base).parts
        if rel:
            entries.append(
                LogicalEntry(rel, EntryKind.DIRECTORY, None, origin)
            )
        for name in sorted(files):
            full = Path(root) / name
            if full.resolve() in skipped:
                continue
            entries.append(
                LogicalEntry(
                    rel + (name,), EntryKind.FILE, FileSource(full), origin
                )
            )
    get_logger().debug("Resolved %d entries from %s", len(entries), base)
    return entries


def resolve_globs(
    base: Path,
    patterns: Iterable[str],
    exclude: Iterable[Path] = (),
    origin: Optional[str] = None,
) -> List[LogicalEntry]:
    """Expand include globs case-insensitively relative to ``base``.

    A file matched by several globs is listed once. Matched directories are
    listed as (possibly empty) directories; their contents are only included
    when matched themselves.
    """
    base = _require_dir(Path(base), "Base directory")
    origin = origin or "file_include_globs"
    skipped = {Path(p).resolve() for p in exclude}
    escaped_base = glob.escape(str(base))
    seen: Set[Path] = set()
    entries: List[LogicalEntry] = []
    for pattern in patterns:
        normalized = pattern.replace("\\", "/").lstrip("/")
        full_pattern = os.path.join(
            escaped_base, case_insensitive_globify(normalized)
        )
        matches = sorted(
            glob.glob(full_pattern, recursive=True, include_hidden=True)
        )
        if not matches:
            get_logger().warning("Glob matched nothing: %s", pattern)
        for match in matches:
            path = Path(match)
            try:
                parts = safe_relative_parts(base, path)
            except ValueError as exc:
                raise config_error(
                    f"Glob '{pattern}' escapes the base directory: {match}",
                    {"pattern": pattern, "match": match},
                ) from exc
            physical = path.resolve()
            # The same file matched by two globs is one entry.
            if not parts or physical in skipped or physical in seen:
                continue
            seen.add(physical)
            if path.is_dir():
                entries.append(
                    LogicalEntry(parts, EntryKind.DIRECTORY, None, origin)
                )
            else:
                entries.append(
                    LogicalEntry(
                        parts, EntryKind.FILE, FileSource(path), origin
                    )
                )
    return entries


def resolve_files(
    mapping: Dict[str, Path], origin: str = "files"
) -> List[LogicalEntry]:
    entries = []
    for logical, source in mapping.items():
        if not Path(source).is_file():
            raise config_error(
                f"Source of '{logical}' is not a file: {source}",
                {"logical_path": logical, "source": str(source)},
            )
        entries.append(
            LogicalEntry.file(logical, FileSource(Path(source)), origin)
        )
    return entries


def resolve_script(
    script: VolumeScript,
    base_dir_override: Optional[Path] = None,
    output_override: Optional[Path] = None,
    comment_override: Optional[str] = None,
) -> ResolvedInput:
    base_dir = base_dir_override or script.base_dir
    output = output_override or script.file_path
    if base_dir is None:
        raise config_error(
            "Empty base directory path in script and no override was provided"
        )
    if output is None:
        raise config_error(
            "Empty output path in script and no override was provided"
        )
    exclude = [output]
    sources: List[InputSource] = []
    if script.file_include_globs:
        sources.append(
            InputSource(
                "file_include_globs",
                resolve_globs(
                    base_dir, script.file_include_globs, exclude=exclude
                ),
            )
        )
    else:
        sources.append(
            InputSource(
                str(base_dir), resolve_directory(base_dir, exclude=exclude)
            )
        )
    if script.files:
        sources.append(InputSource("files", resolve_files(script.files)))
    return ResolvedInput(
        sources=sources,
        output_path=output,
        comment=comment_override
        if comment_override is not None
        else script.comment,
    )


def resolve_input(
    input_path: Path,
    base_dir_override: Optional[Path] = None,
    output_override: Optional[Path] = None,
    comment_override: Optional[str] = None,
) -> ResolvedInput:
    """Resolve a CLI input: a directory to pack or a volume script."""
    input_path = Path(input_path)
    if input_path.is_dir():
        output = output_override or input_path / DEFAULT_VOLUME_NAME
        return ResolvedInput(
            sources=[
                InputSource(
                    str(input_path),
                    resolve_directory(input_path, exclude=[output]),
                )
            ],
            output_path=output,
            comment=comment_override or "",
        )
    if input_path.is_file():
        return resolve_script(
            load_script(input_path),
            base_dir_override=base_dir_override,
            output_override=output_override,
            comment_override=comment_override,
        )
    raise config_error(
        f"Input is neither a directory nor a script: {input_path}",
        {"path": str(input_path)},
    )
