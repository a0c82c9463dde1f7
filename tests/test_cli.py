# tests/test_cli.py

from __future__ import annotations

import json

import pytest

from taskmaster.cli import main as cli_main
from taskmaster.core.errors import ErrorCode
from taskmaster.tasks.expand import OperationResult


@pytest.fixture()
def patched_cli(monkeypatch, make_settings, tmp_path):
    calls: list[dict] = []
    settings = make_settings(DATA_DIR=tmp_path / "logs", TASKS_PATH=tmp_path / "tasks.json")

    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kw: None)

    def fake_expand(args):
        calls.append(dict(args))
        if args["id"] == "404":
            return OperationResult.fail(ErrorCode.TASK_NOT_FOUND, "Task with ID 404 not found")
        return OperationResult.ok(subtasksAdded=2)

    monkeypatch.setattr(cli_main, "expand_task", fake_expand)
    return calls, tmp_path


def test_cli_maps_flags_and_prints_json(patched_cli, capsys) -> None:
    calls, tmp_path = patched_cli

    rc = cli_main.main(["--id", "3", "-n", "2", "--research", "-p", "Use FastAPI"])

    assert rc == 0
    assert calls == [
        {
            "file": str(tmp_path / "tasks.json"),
            "id": "3",
            "num": "2",
            "research": True,
            "prompt": "Use FastAPI",
            "force": False,
            "primaryOverloaded": False,
        }
    ]
    out = json.loads(capsys.readouterr().out)
    assert out == {"success": True, "data": {"subtasksAdded": 2}}


def test_cli_returns_nonzero_on_failure(patched_cli, capsys) -> None:
    rc = cli_main.main(["--id", "404", "--force"])

    assert rc == 1
    out = json.loads(capsys.readouterr().out)
    assert out["error"]["code"] == "TASK_NOT_FOUND"
