# tests/test_parser.py

from __future__ import annotations

import json

import pytest

from taskmaster.core.errors import ErrorCode, MalformedResponseError
from taskmaster.tasks.parser import parse_subtasks

from .fakes import subtasks_json


def test_parses_clean_array() -> None:
    subs = parse_subtasks(subtasks_json(1, 3), start_id=1, expected_count=3, parent_id=3)

    assert [s.id for s in subs] == [1, 2, 3]
    assert subs[1].dependencies == [1]
    assert subs[0].title == "Subtask 1"
    assert all(s.status == "pending" for s in subs)


def test_ids_continue_after_existing_subtasks() -> None:
    # Parent already has 4 subtasks -> new ids are exactly 5..7.
    subs = parse_subtasks(subtasks_json(5, 3), start_id=5, expected_count=3, parent_id=1)
    assert [s.id for s in subs] == [5, 6, 7]


def test_tolerates_prose_and_code_fences() -> None:
    raw = (
        "Sure! Here is the breakdown [as requested]:\n\n"
        "```json\n" + subtasks_json(1, 2) + "\n```\n"
        "Let me know if you need anything else."
    )
    subs = parse_subtasks(raw, start_id=1, expected_count=2, parent_id=9)
    assert [s.id for s in subs] == [1, 2]


def test_tolerates_prose_without_fences() -> None:
    raw = "Here you go: " + subtasks_json(1, 2) + " -- done"
    assert len(parse_subtasks(raw, 1, 2, 9)) == 2


def test_numeric_strings_are_normalized() -> None:
    raw = json.dumps(
        [
            {"id": "1", "title": "a", "description": "b", "dependencies": [], "details": "c"},
            {"id": 2.0, "title": "d", "description": "e", "dependencies": ["1"], "details": "f"},
        ]
    )
    subs = parse_subtasks(raw, 1, 2, 9)
    assert [s.id for s in subs] == [1, 2]
    assert subs[1].dependencies == [1]


def test_count_mismatch_is_not_an_error() -> None:
    subs = parse_subtasks(subtasks_json(1, 2), start_id=1, expected_count=5, parent_id=3)
    assert len(subs) == 2


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "I cannot help with that.",
        "[]",
        json.dumps([{"id": 1, "title": "a", "description": "b", "details": "c"}]),  # no dependencies
        json.dumps([{"id": "x", "title": "a", "description": "b", "dependencies": [], "details": "c"}]),
        json.dumps(["just a string"]),
        json.dumps([{"id": 1, "title": 5, "description": "b", "dependencies": [], "details": "c"}]),
        json.dumps([{"id": 1, "title": "a", "description": "b", "dependencies": "2", "details": "c"}]),
    ],
)
def test_rejects_malformed_output(raw: str) -> None:
    with pytest.raises(MalformedResponseError) as ei:
        parse_subtasks(raw, start_id=1, expected_count=3, parent_id=3)
    assert ei.value.code is ErrorCode.MALFORMED_RESPONSE


def test_rejects_wrong_start_gap_and_duplicate_ids() -> None:
    with pytest.raises(MalformedResponseError, match="expected id 3"):
        parse_subtasks(subtasks_json(1, 2), start_id=3, expected_count=2, parent_id=1)

    gap = json.loads(subtasks_json(1, 3, deps=False))
    gap[2]["id"] = 4
    with pytest.raises(MalformedResponseError, match="expected id 3, got 4"):
        parse_subtasks(json.dumps(gap), 1, 3, 1)

    dup = json.loads(subtasks_json(1, 2, deps=False))
    dup[1]["id"] = 1
    with pytest.raises(MalformedResponseError, match="expected id 2, got 1"):
        parse_subtasks(json.dumps(dup), 1, 2, 1)


@pytest.mark.parametrize("bad_dep", [2, 3, 0])
def test_rejects_self_and_forward_dependencies(bad_dep: int) -> None:
    items = json.loads(subtasks_json(1, 3, deps=False))
    items[1]["dependencies"] = [bad_dep]
    with pytest.raises(MalformedResponseError, match="earlier subtask"):
        parse_subtasks(json.dumps(items), 1, 3, 1)


def test_dependencies_may_reference_existing_subtasks() -> None:
    items = json.loads(subtasks_json(3, 2, deps=False))
    items[0]["dependencies"] = [1, 2]
    subs = parse_subtasks(json.dumps(items), start_id=3, expected_count=2, parent_id=1)
    assert subs[0].dependencies == [1, 2]


def test_superscript_digit_id_is_rejected_not_raised() -> None:
    raw = json.dumps([{"id": "²", "title": "a", "description": "b", "dependencies": ["¹"], "details": "c"}])
    with pytest.raises(MalformedResponseError, match="not numeric"):
        parse_subtasks(raw, start_id=1, expected_count=1, parent_id=5)
