from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

from featurebuild import actions
from featurebuild.run import main
from featurebuild.utils import CommandError


def _setup(tmp_path: Path) -> List[str]:
    (tmp_path / "base").mkdir()
    (tmp_path / "app").mkdir()
    (tmp_path / "base" / "Dockerfile").write_text("FROM scratch\n")
    (tmp_path / "app" / "Dockerfile").write_text("FROM base\n")
    config = tmp_path / "builder.yaml"
    config.write_text(
        f"""
features:
  base:
    inputs: ["{tmp_path / 'base'}"]
    command: c1
  app:
    inputs: ["{tmp_path / 'app'}"]
    command: c2
    depends_on: [base]
"""
    )
    return ["--config", str(config), "--cache-dir", str(tmp_path / "cache")]


@pytest.fixture
def docker_calls(monkeypatch: pytest.MonkeyPatch) -> List[List[str]]:
    calls: List[List[str]] = []
    monkeypatch.setattr(actions, "run_command", lambda command, **kwargs: calls.append(list(command)))
    return calls


def test_build_prints_decisions(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], docker_calls: List[List[str]]
) -> None:
    base_args = _setup(tmp_path)
    assert main([*base_args, "build", "--feature", "app"]) == 0
    assert capsys.readouterr().out.splitlines() == ["BUILD base", "BUILD app"]
    assert [call[3].split(":")[0] for call in docker_calls] == ["base", "app"]

    assert main([*base_args, "build", "--feature", "app"]) == 0
    assert capsys.readouterr().out.splitlines() == ["SKIP base", "SKIP app"]
    assert len(docker_calls) == 2


def test_build_json_report(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], docker_calls: List[List[str]]
) -> None:
    base_args = _setup(tmp_path)
    assert main([*base_args, "build", "--feature", "base", "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["order"] == ["base"]
    assert report["decisions"][0]["action"] == "BUILD"


def test_plan_and_status_do_not_build(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], docker_calls: List[List[str]]
) -> None:
    base_args = _setup(tmp_path)
    assert main([*base_args, "plan", "--feature", "app"]) == 0
    assert capsys.readouterr().out.splitlines() == ["BUILD base", "BUILD app"]

    assert main([*base_args, "status", "--feature", "app"]) == 0
    statuses = json.loads(capsys.readouterr().out)
    assert statuses["base"]["cached"] is None
    assert statuses["app"]["up_to_date"] is False
    assert docker_calls == []
    assert not (tmp_path / "cache").exists()


def test_order_and_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    base_args = _setup(tmp_path)
    assert main([*base_args, "order", "--feature", "app"]) == 0
    assert capsys.readouterr().out.splitlines() == ["base", "app"]

    assert main([*base_args, "list"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[0] for line in lines] == ["base", "app"]
    assert lines[1].endswith("\tbase")


def test_cycle_exits_non_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "builder.yaml"
    config.write_text("features:\n  a:\n    depends_on: [b]\n  b:\n    depends_on: [a]\n")
    assert main(["--config", str(config), "build", "--feature", "a"]) == 1
    assert "Cycle detected" in capsys.readouterr().err


def test_missing_config_exits_non_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--config", str(tmp_path / "nope.yaml"), "order", "--feature", "a"]) == 1
    assert "error:" in capsys.readouterr().err


def test_failed_build_keeps_earlier_decision_lines(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    base_args = _setup(tmp_path)

    def _docker(command, **kwargs):
        if command[3].startswith("app:"):
            raise CommandError(command, 1, "", "boom")

    monkeypatch.setattr(actions, "run_command", _docker)
    assert main([*base_args, "build", "--feature", "app"]) == 1
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["BUILD base", "BUILD app"]
    assert "Build failed for app" in captured.err
    assert (tmp_path / "cache" / "base" / "hash").exists()
    assert not (tmp_path / "cache" / "app" / "hash").exists()


def test_status_follows_build_order_and_lists_dependents(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "builder.yaml"
    (tmp_path / "z").mkdir()
    config.write_text(
        f"""
features:
  zeta:
    inputs: ["{tmp_path / 'z'}"]
  alpha:
    depends_on: [zeta]
"""
    )
    args = ["--config", str(config), "--cache-dir", str(tmp_path / "cache")]
    assert main([*args, "status", "--feature", "alpha"]) == 0
    statuses = json.loads(capsys.readouterr().out)
    assert list(statuses) == ["zeta", "alpha"]
    assert statuses["zeta"]["dependents"] == ["alpha"]
    assert statuses["alpha"]["dependents"] == []


def test_clean_removes_cached_records(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], docker_calls: List[List[str]]
) -> None:
    base_args = _setup(tmp_path)
    assert main([*base_args, "build", "--feature", "app"]) == 0
    capsys.readouterr()

    assert main([*base_args, "clean", "--feature", "base"]) == 0
    assert capsys.readouterr().out.splitlines() == ["CLEAN base"]
    assert main([*base_args, "plan", "--feature", "app"]) == 0
    assert capsys.readouterr().out.splitlines() == ["BUILD base", "SKIP app"]

    assert main([*base_args, "clean"]) == 0
    assert capsys.readouterr().out.splitlines() == ["CLEAN app"]
    assert not (tmp_path / "cache" / "app" / "hash").exists()
