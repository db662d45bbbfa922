"""Volume script validation.

Structural and type checks run on the raw mapping before it is turned into a
:class:`~vdfsgen.script.models.VolumeScript`. Returns a list of
ValidationErrorRecord; an empty list means success.
"""

from __future__ import annotations
from typing import Any, List

_KNOWN_KEYS = {
    "comment",
    "base_dir",
    "file_path",
    "file_include_globs",
    "files",
}


class ValidationErrorRecord:
    def __init__(self, code: str, message: str, path: str = "") -> None:
        self.code = code
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "path": self.path}

    def __repr__(self) -> str:  # convenience for tests
        return (
            f"ValidationErrorRecord(code={self.code}, path={self.path}, "
            f"message={self.message})"
        )


def _err(
    errors: List[ValidationErrorRecord], code: str, message: str, path: str
):
    errors.append(ValidationErrorRecord(code, message, path))


def validate_script_dict(data: Any) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    if not isinstance(data, dict):
        _err(errors, "E_TYPE", "Script root must be a mapping", "")
        return errors
    for key in data:
        if key not in _KNOWN_KEYS:
            _err(errors, "E_KEY", f"Unknown key '{key}'", str(key))
    for key in ("comment", "base_dir", "file_path"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            _err(errors, "E_TYPE", f"'{key}' must be a string", key)
    globs = data.get("file_include_globs")
    if globs is not None:
        if not isinstance(globs, list):
            _err(
                errors,
                "E_TYPE",
                "'file_include_globs' must be a list",
                "file_include_globs",
            )
        else:
            for i, g in enumerate(globs):
                path = f"file_include_globs[{i}]"
                if not isinstance(g, str) or not g.strip():
                    _err(
                        errors,
                        "E_FIELD",
                        "Glob must be a non-empty string",
                        path,
                    )
    files = data.get("files")
    if files is not None:
        if not isinstance(files, dict):
            _err(errors, "E_TYPE", "'files' must be a mapping", "files")
        else:
            for logical, source in files.items():
                path = f"files[{logical!r}]"
                if not isinstance(logical, str) or not logical.strip():
                    _err(
                        errors,
                        "E_FIELD",
                        "Logical path must be a non-empty string",
                        path,
                    )
                if not isinstance(source, str) or not source.strip():
                    _err(
                        errors,
                        "E_FIELD",
                        "Source path must be a non-empty string",
                        path,
                    )
    return errors


def format_errors(errors: List[ValidationErrorRecord]) -> str:
    return "; ".join(f"{e.code}:{e.path}:{e.message}" for e in errors)


__all__ = ["ValidationErrorRecord", "validate_script_dict", "format_errors"]
