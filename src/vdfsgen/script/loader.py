"""Volume script loading (YAML/JSON).

Example::

    comment: "My mod"
    base_dir: ../build
    file_path: ../out/MYMOD.MOD
    file_include_globs:
      - _work/data/scripts/**/*.dat
      - _work/data/textures/_compiled/*
    files:
      _work/data/music/theme.sgt: assets/theme.sgt
"""

from __future__ import annotations
from pathlib import Path
from typing import Any
import json

import yaml

from ..packing.errors import config_error
from ..utils.paths import resolve_against
from .models import VolumeScript
from .validator import format_errors, validate_script_dict


def load_script(path: str | Path) -> VolumeScript:
    p = Path(path)
    if not p.is_file():
        raise config_error(f"Script not found: {p}", {"path": str(p)})
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() == ".json":
            data: Any = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise config_error(
            f"Cannot parse script {p.name}: {exc}", {"path": str(p)}
        ) from exc
    if data is None:
        data = {}
    errors = validate_script_dict(data)
    if errors:
        raise config_error(
            "Script validation failed: " + format_errors(errors),
            {"path": str(p), "errors": [e.to_dict() for e in errors]},
        )
    return _parse_script_dict(data, p.resolve().parent, p)


def _parse_script_dict(
    data: dict[str, Any], anchor: Path, script_path: Path | None = None
) -> VolumeScript:
    base_dir = data.get("base_dir")
    file_path = data.get("file_path")
    return VolumeScript(
        comment=data.get("comment") or "",
        base_dir=resolve_against(anchor, base_dir) if base_dir else None,
        file_path=resolve_against(anchor, file_path) if file_path else None,
        file_include_globs=list(data.get("file_include_globs") or []),
        files={
            logical: resolve_against(anchor, source)
            for logical, source in (data.get("files") or {}).items()
        },
        script_path=script_path,
    )


__all__ = ["load_script"]
