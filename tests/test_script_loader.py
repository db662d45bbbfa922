import json
from pathlib import Path

import pytest

from vdfsgen.packing.errors import ConfigError
from vdfsgen.script.loader import load_script
from vdfsgen.script.validator import validate_script_dict


def test_yaml_script_paths_resolve_against_script_dir(tmp_path: Path):
    script = tmp_path / "scripts" / "mod.yaml"
    script.parent.mkdir()
    script.write_text(
        "\n".join(
            [
                'comment: "My mod"',
                "base_dir: ../build",
                "file_path: ../out/MYMOD.MOD",
                "file_include_globs:",
                "  - _work/data/scripts/**/*.dat",
                "files:",
                "  music/theme.sgt: assets/theme.sgt",
            ]
        ),
        encoding="utf-8",
    )
    vs = load_script(script)
    anchor = script.resolve().parent
    assert vs.comment == "My mod"
    assert vs.base_dir == anchor / "../build"
    assert vs.file_path == anchor / "../out/MYMOD.MOD"
    assert vs.file_include_globs == ["_work/data/scripts/**/*.dat"]
    assert vs.files == {"music/theme.sgt": anchor / "assets/theme.sgt"}


def test_json_script(tmp_path: Path):
    script = tmp_path / "mod.json"
    script.write_text(json.dumps({"base_dir": str(tmp_path)}))
    vs = load_script(script)
    assert vs.base_dir == tmp_path
    assert vs.file_path is None


def test_empty_script_is_valid(tmp_path: Path):
    script = tmp_path / "empty.yml"
    script.write_text("")
    assert load_script(script).comment == ""


def test_unknown_key_fails_validation(tmp_path: Path):
    script = tmp_path / "bad.yaml"
    script.write_text("base_dir: .\nfile_paths: out.vdf\n")
    with pytest.raises(ConfigError) as ei:
        load_script(script)
    errors = ei.value.context["errors"]
    assert errors[0]["code"] == "E_KEY"
    assert errors[0]["path"] == "file_paths"


def test_malformed_yaml_is_config_error(tmp_path: Path):
    script = tmp_path / "broken.yaml"
    script.write_text("base_dir: [unterminated\n")
    with pytest.raises(ConfigError):
        load_script(script)


def test_validator_reports_type_errors():
    errors = validate_script_dict(
        {"comment": 3, "file_include_globs": "*.dat", "files": {"a": ""}}
    )
    assert sorted((e.code, e.path) for e in errors) == [
        ("E_FIELD", "files['a']"),
        ("E_TYPE", "comment"),
        ("E_TYPE", "file_include_globs"),
    ]


def test_validator_rejects_non_mapping_root():
    errors = validate_script_dict(["base_dir"])
    assert [e.code for e in errors] == ["E_TYPE"]
