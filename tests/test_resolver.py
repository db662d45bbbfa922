from pathlib import Path

import pytest

from vdfsgen.packing.errors import ConfigError
from vdfsgen.packing.models import EntryKind
from vdfsgen.script.models import VolumeScript
from vdfsgen.script.resolver import (
    DEFAULT_VOLUME_NAME,
    case_insensitive_globify,
    resolve_directory,
    resolve_globs,
    resolve_input,
    resolve_script,
)


def _touch(path: Path, data: bytes = b"x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def _paths(entries):
    return ["/".join(e.path) for e in entries]


def test_globify_leaves_classes_alone():
    assert case_insensitive_globify("a[0-9]*.Dat") == "[aA][0-9]*.[dD][aA][tT]"


def test_directory_walk_is_sorted_and_keeps_empty_dirs(tmp_path: Path):
    _touch(tmp_path / "b.txt")
    _touch(tmp_path / "a" / "z.txt")
    _touch(tmp_path / "a" / "c.txt")
    (tmp_path / "empty").mkdir()
    entries = resolve_directory(tmp_path)
    assert _paths(entries) == ["b.txt", "a", "a/c.txt", "a/z.txt", "empty"]
    assert entries[1].kind is EntryKind.DIRECTORY


def test_directory_walk_excludes_output(tmp_path: Path):
    _touch(tmp_path / "a.txt")
    out = _touch(tmp_path / DEFAULT_VOLUME_NAME)
    assert _paths(resolve_directory(tmp_path, exclude=[out])) == ["a.txt"]


def test_globs_match_case_insensitively(tmp_path: Path):
    _touch(tmp_path / "Data" / "Scripts" / "A.DAT")
    _touch(tmp_path / "Data" / "Scripts" / "deep" / "b.dat")
    _touch(tmp_path / "Data" / "Scripts" / "c.txt")
    entries = resolve_globs(tmp_path, ["data/scripts/**/*.dat"])
    assert _paths(entries) == [
        "Data/Scripts/A.DAT",
        "Data/Scripts/deep/b.dat",
    ]


def test_file_matched_by_two_globs_is_listed_once(tmp_path: Path):
    _touch(tmp_path / "tex" / "wood.tex")
    entries = resolve_globs(tmp_path, ["tex/*", "TEX/*.TEX"])
    assert _paths(entries) == ["tex/wood.tex"]


def test_glob_escaping_base_is_rejected(tmp_path: Path):
    base = tmp_path / "base"
    base.mkdir()
    _touch(tmp_path / "outside" / "secret.txt")
    with pytest.raises(ConfigError):
        resolve_globs(base, ["../outside/*"])


def test_script_without_base_dir_is_rejected(tmp_path: Path):
    script = VolumeScript(file_path=tmp_path / "out.vdf")
    with pytest.raises(ConfigError):
        resolve_script(script)


def test_script_overrides_apply(tmp_path: Path):
    _touch(tmp_path / "other" / "x.txt")
    script = VolumeScript(
        comment="orig", base_dir=tmp_path / "missing", file_path=None
    )
    resolved = resolve_script(
        script,
        base_dir_override=tmp_path / "other",
        output_override=tmp_path / "o.vdf",
        comment_override="new",
    )
    assert resolved.comment == "new"
    assert resolved.output_path == tmp_path / "o.vdf"
    assert _paths(resolved.entries) == ["x.txt"]


def test_explicit_files_form_second_source(tmp_path: Path):
    _touch(tmp_path / "base" / "a.txt")
    extra = _touch(tmp_path / "extra.bin")
    script = VolumeScript(
        base_dir=tmp_path / "base",
        file_path=tmp_path / "o.vdf",
        files={"music/theme.sgt": extra},
    )
    resolved = resolve_script(script)
    assert [s.name for s in resolved.sources][1] == "files"
    assert _paths(resolved.entries) == ["a.txt", "music/theme.sgt"]


def test_directory_input_defaults_output(tmp_path: Path):
    _touch(tmp_path / "a.txt")
    resolved = resolve_input(tmp_path)
    assert resolved.output_path == tmp_path / DEFAULT_VOLUME_NAME


def test_unknown_input_is_rejected(tmp_path: Path):
    with pytest.raises(ConfigError):
        resolve_input(tmp_path / "nothing")


def test_directory_walk_follows_links_without_looping(tmp_path: Path):
    base = tmp_path / "base"
    _touch(base / "real" / "x.txt")
    try:
        (base / "alias").symlink_to(base / "real", target_is_directory=True)
        (base / "real" / "up").symlink_to(base, target_is_directory=True)
    except OSError:
        pytest.skip("symlinks not available")
    assert _paths(resolve_directory(base)) == [
        "alias",
        "alias/x.txt",
        "real",
        "real/x.txt",
    ]
