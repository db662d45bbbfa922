from .loader import load_script
from .models import VolumeScript
from .resolver import (
    DEFAULT_VOLUME_NAME,
    InputSource,
    ResolvedInput,
    resolve_directory,
    resolve_files,
    resolve_globs,
    resolve_input,
    resolve_script,
)
from .validator import ValidationErrorRecord, validate_script_dict

__all__ = [
    "load_script",
    "VolumeScript",
    "DEFAULT_VOLUME_NAME",
    "InputSource",
    "ResolvedInput",
    "resolve_directory",
    "resolve_files",
    "resolve_globs",
    "resolve_input",
    "resolve_script",
    "ValidationErrorRecord",
    "validate_script_dict",
]
