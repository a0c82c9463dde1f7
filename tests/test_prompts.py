# tests/test_prompts.py

from __future__ import annotations

from taskmaster.tasks.prompts import DEFAULT_SUBTASK_COUNT, build_expansion_prompt
from taskmaster.tasks.task_models import Subtask, Task


def _task(n_subtasks: int = 0) -> Task:
    return Task(
        id=3,
        title="Build API",
        description="Expose the REST API",
        details="",
        subtasks=[Subtask(id=i, title=f"s{i}", description="") for i in range(1, n_subtasks + 1)],
    )


def test_prompt_defaults_to_five_subtasks_starting_at_one() -> None:
    p = build_expansion_prompt(_task())

    assert p.subtask_count == DEFAULT_SUBTASK_COUNT == 5
    assert p.next_id == 1
    assert "Return exactly 5 subtasks" in p.system
    assert '"id": 1' in p.system
    assert "Respond ONLY with the JSON array" in p.system
    assert "Task ID: 3" in p.user
    assert "Title: Build API" in p.user
    assert "Details: N/A" in p.user
    assert "Additional context" not in p.user


def test_prompt_continues_after_existing_subtasks() -> None:
    p = build_expansion_prompt(_task(n_subtasks=2), subtask_count=3, extra_context="Use FastAPI")

    assert p.next_id == 3
    assert "numerical IDs starting from 3" in p.system
    assert "Return exactly 3 subtasks" in p.system
    assert p.user.endswith("Additional context: Use FastAPI")
    assert p.combined.startswith(p.system)
    assert p.combined.endswith(p.user)


def test_prompt_is_deterministic() -> None:
    assert build_expansion_prompt(_task(), 4, "ctx") == build_expansion_prompt(_task(), 4, "ctx")
