"""Path utilities (safe resolution, logical paths)."""

from __future__ import annotations
import os
from pathlib import Path
from typing import Tuple

__all__ = ["safe_relative_parts", "resolve_against"]


def safe_relative_parts(base_dir: Path, file_path: Path) -> Tuple[str, ...]:
    """Components of ``file_path`` relative to ``base_dir``.

    The comparison is lexical so symlinked content inside the base directory
    is allowed. Raises ValueError if the path escapes the base directory.
    """
    base = Path(os.path.normpath(os.path.abspath(base_dir)))
    target = Path(os.path.normpath(os.path.abspath(file_path)))
    return target.relative_to(base).parts


def resolve_against(anchor: Path, value: str | Path) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else anchor / p
