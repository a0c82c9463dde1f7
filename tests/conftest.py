# tests/conftest.py

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from taskmaster.config import Settings


@pytest.fixture()
def make_settings() -> Callable[..., Settings]:
    """
    Build Settings from an explicit env mapping.

    We intentionally never read os.environ/.env here, to keep unit tests
    isolated and deterministic.
    """

    def _make(**env: object) -> Settings:
        return Settings.from_env({k: str(v) for k, v in env.items()})

    return _make


@pytest.fixture()
def all_keys_settings(make_settings) -> Settings:
    return make_settings(
        ANTHROPIC_API_KEY="sk-ant",
        GOOGLE_API_KEY="g-key",
        PERPLEXITY_API_KEY="pplx-key",
        LLM_TIMEOUT_SECONDS=5,
    )


SAMPLE_TASKS = {
    "meta": {"projectName": "demo", "version": "1.0.0"},
    "tasks": [
        {
            "id": 3,
            "title": "Build API",
            "description": "Expose the REST API",
            "details": "FastAPI app with CRUD endpoints",
            "status": "pending",
            "priority": "high",
            "dependencies": [],
            "subtasks": [],
        },
        {
            "id": 4,
            "title": "Ship v1",
            "description": "Release",
            "details": "",
            "status": "done",
            "subtasks": [],
        },
        {
            "id": 5,
            "title": "Write docs",
            "description": "User guide",
            "details": "mkdocs",
            "status": "in-progress",
            "subtasks": [
                {
                    "id": 1,
                    "title": "Outline",
                    "description": "Table of contents",
                    "dependencies": [],
                    "details": "",
                    "status": "done",
                },
                {
                    "id": 2,
                    "title": "Draft",
                    "description": "First draft",
                    "dependencies": [1],
                    "details": "",
                    "status": "pending",
                },
            ],
        },
    ],
}


@pytest.fixture()
def tasks_file(tmp_path: Path) -> Path:
    path = tmp_path / "tasks" / "tasks.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(SAMPLE_TASKS, indent=2), "utf-8")
    return path
