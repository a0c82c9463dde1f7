# src/taskmaster/tasks/parser.py

"""
Model output -> Subtask records.

All tolerance lives here (code fences, prose around the array, numeric ids
sent as strings). Past this module the pipeline only sees validated data:
either a complete, well-formed list or a MalformedResponseError.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ..core.errors import MalformedResponseError
from .task_models import Subtask, TaskStatus

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "title", "description", "dependencies", "details")

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)

_decoder = json.JSONDecoder()


def _candidate_texts(raw: str) -> list[str]:
    """Fenced blocks first (most likely the payload), then the raw text."""
    out = [m.group(1) for m in _FENCE_RE.finditer(raw)]
    out.append(raw)
    return out


def _first_json_array(text: str) -> list[Any] | None:
    pos = text.find("[")
    while pos != -1:
        try:
            value, _ = _decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        pos = text.find("[", pos + 1)
    return None


def extract_json_array(raw_text: str) -> list[Any]:
    raw = (raw_text or "").strip()
    if not raw:
        raise MalformedResponseError("AI response is empty")
    for candidate in _candidate_texts(raw):
        found = _first_json_array(candidate)
        if found is not None:
            return found
    raise MalformedResponseError(f"No JSON array found in AI response: {raw[:200]!r}")


def _as_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and raw.strip().isdecimal():
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def _as_str(raw: Any, field_name: str, index: int) -> str:
    if not isinstance(raw, str):
        raise MalformedResponseError(
            f"Subtask #{index + 1}: '{field_name}' must be a string, got {type(raw).__name__}"
        )
    return raw


def parse_subtasks(
    raw_text: str,
    start_id: int,
    expected_count: int | None,
    parent_id: int,
) -> list[Subtask]:
    """
    Validate and convert model output into subtasks of task `parent_id`.

    Checks:
    - the array is non-empty and every element is an object with the five fields,
    - ids are numeric, start at start_id and step by exactly 1,
    - dependencies are numeric ids that point to earlier subtasks (>= 1, < own id).

    expected_count is advisory: a different length is logged, not rejected.
    """
    items = extract_json_array(raw_text)
    if not items:
        raise MalformedResponseError(f"AI returned an empty subtask list for task {parent_id}")

    subtasks: list[Subtask] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedResponseError(
                f"Subtask #{i + 1}: expected an object, got {type(item).__name__}"
            )

        missing = [f for f in REQUIRED_FIELDS if f not in item]
        if missing:
            raise MalformedResponseError(f"Subtask #{i + 1}: missing fields {', '.join(missing)}")

        sub_id = _as_int(item["id"])
        if sub_id is None:
            raise MalformedResponseError(f"Subtask #{i + 1}: id {item['id']!r} is not numeric")
        expected_id = start_id + i
        if sub_id != expected_id:
            raise MalformedResponseError(
                f"Subtask #{i + 1}: expected id {expected_id}, got {sub_id}"
            )

        deps_raw = item["dependencies"]
        if not isinstance(deps_raw, list):
            raise MalformedResponseError(f"Subtask {sub_id}: dependencies must be an array")
        deps: list[int] = []
        for d in deps_raw:
            dep = _as_int(d)
            if dep is None:
                raise MalformedResponseError(f"Subtask {sub_id}: dependency {d!r} is not numeric")
            if dep < 1 or dep >= sub_id:
                raise MalformedResponseError(
                    f"Subtask {sub_id}: dependency {dep} must reference an earlier subtask"
                )
            if dep not in deps:
                deps.append(dep)

        subtasks.append(
            Subtask(
                id=sub_id,
                title=_as_str(item["title"], "title", i).strip(),
                description=_as_str(item["description"], "description", i).strip(),
                details=_as_str(item["details"], "details", i).strip(),
                dependencies=deps,
                status=TaskStatus.PENDING.value,
            )
        )

    if expected_count and len(subtasks) != expected_count:
        logger.warning(
            "Task %s: expected %d subtasks, AI returned %d",
            parent_id,
            expected_count,
            len(subtasks),
        )

    logger.debug(
        "Parsed %d subtasks for task %s (ids %d..%d)",
        len(subtasks),
        parent_id,
        start_id,
        subtasks[-1].id,
    )
    return subtasks
