"""Dataclass models for volume scripts."""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional


@dataclass(slots=True)
class VolumeScript:
    """A parsed volume script; paths are already resolved against its folder."""

    comment: str = ""
    base_dir: Optional[Path] = None
    file_path: Optional[Path] = None
    file_include_globs: List[str] = field(default_factory=list)
    # logical path -> filesystem path, merged as a second input source
    files: Dict[str, Path] = field(default_factory=dict)
    script_path: Optional[Path] = None
