import json

import pytest
import yaml

from oasdelta.cli import build_parser, config_from_args, main

from tests.units.oasdelta_tests.helpers import PETSTORE, mk_raw


@pytest.fixture
def specs(tmp_path):
    revision = mk_raw()
    revision["paths"]["/pets"]["delete"] = {"responses": {"204": {"description": "gone"}}}
    del revision["paths"]["/pets/{petId}"]

    base_path = tmp_path / "base.yaml"
    revision_path = tmp_path / "revision.yaml"
    base_path.write_text(yaml.safe_dump(PETSTORE), encoding="utf-8")
    revision_path.write_text(yaml.safe_dump(revision), encoding="utf-8")
    return str(base_path), str(revision_path)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # keep a developer's .env and OASDELTA_* settings out of the tests
    monkeypatch.chdir(tmp_path)
    for name in ("BREAKING_ONLY", "PATH_PREFIX", "PATH_FILTER", "SINGLE_MEDIA_TYPE"):
        monkeypatch.delenv(f"OASDELTA_{name}", raising=False)


def test_config_from_args_keeps_unset_flags():
    args = build_parser().parse_args(
        ["--base", "a.yaml", "--revision", "b.yaml", "--breaking-only", "--filter", "^/p"]
    )
    config = config_from_args(args)
    assert config.breaking_only
    assert config.path_filter == "^/p"
    assert not config.include_examples


def test_yaml_output(specs, capsys):
    base, revision = specs
    assert main(["--base", base, "--revision", revision]) == 0

    data = yaml.safe_load(capsys.readouterr().out)
    assert data["paths"]["deleted"] == ["/pets/{petId}"]
    assert data["paths"]["modified"]["/pets"]["operations"]["added"] == ["DELETE"]


def test_json_summary(specs, capsys):
    base, revision = specs
    assert main(["--base", base, "--revision", revision, "--format", "json", "--summary"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["diff"] is True
    assert data["components"]["paths"] == {"added": 0, "deleted": 1, "modified": 1}


def test_breaking_only(specs, capsys):
    base, revision = specs
    assert main(["--base", base, "--revision", revision, "--breaking-only"]) == 0

    data = yaml.safe_load(capsys.readouterr().out)
    assert data["paths"]["deleted"] == ["/pets/{petId}"]
    assert "modified" not in data["paths"]


def test_html_output(specs, capsys):
    base, revision = specs
    assert main(["--base", base, "--revision", revision, "--format", "html"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("<!DOCTYPE html>")
    assert "/pets/{petId}" in out


def test_fail_on_diff(specs, capsys):
    base, revision = specs
    assert main(["--base", base, "--revision", revision, "--fail-on-diff"]) == 1
    assert main(["--base", base, "--revision", base, "--fail-on-diff"]) == 0
    assert capsys.readouterr().out.strip().splitlines()[-1] == "{}"


def test_missing_file(tmp_path, specs, caplog):
    base, _ = specs
    assert main(["--base", base, "--revision", str(tmp_path / "nope.yaml")]) == 1
    assert "failed to load revision spec" in caplog.text


def test_invalid_filter(specs, caplog):
    base, revision = specs
    assert main(["--base", base, "--revision", revision, "--filter", "(["]) == 1
    assert "invalid path filter" in caplog.text


def test_broken_reference(tmp_path, specs, caplog):
    base, _ = specs
    broken = mk_raw()
    broken["paths"]["/pets"]["post"]["requestBody"] = {
        "$ref": "#/components/requestBodies/Missing"
    }
    path = tmp_path / "broken.yaml"
    path.write_text(yaml.safe_dump(broken), encoding="utf-8")

    assert main(["--base", base, "--revision", str(path)]) == 1
    assert "Missing" in caplog.text
