# src/taskmaster/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..core.errors import InvalidTasksFileError


class TaskStatus(StrEnum):
    """
    Well-known task statuses.

    Notes:
    - The status set is open: task files may carry any string, and Task.status
      keeps the raw value. Only DONE and COMPLETED are terminal for expansion.
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DEFERRED = "deferred"
    CANCELLED = "cancelled"
    DONE = "done"
    COMPLETED = "completed"


TERMINAL_STATUSES = frozenset({TaskStatus.DONE.value, TaskStatus.COMPLETED.value})

_SUBTASK_KEYS = ("id", "title", "description", "dependencies", "details", "status")
_TASK_KEYS = ("id", "title", "description", "details", "status", "subtasks")


def _as_id(raw: Any, what: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        raise InvalidTasksFileError(f"{what} must be a positive integer, got {raw!r}")
    return raw


def _as_text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def _emit(
    known: dict[str, Any],
    extra: dict[str, Any],
    source_keys: tuple[str, ...] | None,
    defaults: dict[str, Any],
) -> dict[str, Any]:
    """
    Serialize a record.

    Records read from a file keep that file's shape: optional keys the source
    did not have are left out while they still hold their default, and the
    source key order comes first. Records built in code emit every key.
    """
    out = {**known, **extra}
    if source_keys is None:
        return out
    out = {
        k: v
        for k, v in out.items()
        if k in source_keys or k not in defaults or v != defaults[k]
    }
    ordered = {k: out[k] for k in source_keys if k in out}
    ordered.update((k, v) for k, v in out.items() if k not in ordered)
    return ordered


@dataclass(slots=True)
class Subtask:
    id: int
    title: str
    description: str
    details: str = ""
    dependencies: list[int] = field(default_factory=list)
    status: str = TaskStatus.PENDING.value
    extra: dict[str, Any] = field(default_factory=dict)
    # Keys (in order) of the object this record was read from; None when built in code.
    source_keys: tuple[str, ...] | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_dict(cls, raw: Any) -> Subtask:
        if not isinstance(raw, dict):
            raise InvalidTasksFileError(f"subtask must be an object, got {type(raw).__name__}")
        deps = raw.get("dependencies") or []
        if not isinstance(deps, list):
            raise InvalidTasksFileError(f"subtask {raw.get('id')!r}: dependencies must be a list")
        return cls(
            id=_as_id(raw.get("id"), "subtask id"),
            title=_as_text(raw.get("title")),
            description=_as_text(raw.get("description")),
            details=_as_text(raw.get("details")),
            # Dependencies may reference other tasks as "3.1" strings; keep them verbatim.
            dependencies=list(deps),
            status=_as_text(raw.get("status") or TaskStatus.PENDING.value),
            extra={k: v for k, v in raw.items() if k not in _SUBTASK_KEYS},
            source_keys=tuple(raw),
        )

    def to_dict(self) -> dict[str, Any]:
        return _emit(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "dependencies": list(self.dependencies),
                "details": self.details,
                "status": self.status,
            },
            self.extra,
            self.source_keys,
            {"description": "", "dependencies": [], "details": "", "status": TaskStatus.PENDING.value},
        )


@dataclass(slots=True)
class Task:
    id: int
    title: str
    description: str = ""
    details: str = ""
    status: str = TaskStatus.PENDING.value
    subtasks: list[Subtask] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    source_keys: tuple[str, ...] | None = field(default=None, compare=False, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_dict(cls, raw: Any) -> Task:
        if not isinstance(raw, dict):
            raise InvalidTasksFileError(f"task must be an object, got {type(raw).__name__}")
        subtasks_raw = raw.get("subtasks") or []
        if not isinstance(subtasks_raw, list):
            raise InvalidTasksFileError(f"task {raw.get('id')!r}: subtasks must be a list")
        return cls(
            id=_as_id(raw.get("id"), "task id"),
            title=_as_text(raw.get("title")),
            description=_as_text(raw.get("description")),
            details=_as_text(raw.get("details")),
            status=_as_text(raw.get("status") or TaskStatus.PENDING.value),
            subtasks=[Subtask.from_dict(s) for s in subtasks_raw],
            extra={k: v for k, v in raw.items() if k not in _TASK_KEYS},
            source_keys=tuple(raw),
        )

    def to_dict(self) -> dict[str, Any]:
        return _emit(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "details": self.details,
                "status": self.status,
                "subtasks": [s.to_dict() for s in self.subtasks],
            },
            self.extra,
            self.source_keys,
            {"description": "", "details": "", "status": TaskStatus.PENDING.value, "subtasks": []},
        )


@dataclass(slots=True)
class TaskCollection:
    """The whole task file: ordered tasks plus any other top-level keys (e.g. "meta")."""

    tasks: list[Task] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    source_keys: tuple[str, ...] | None = field(default=None, compare=False, repr=False)

    def find(self, task_id: int) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    @classmethod
    def from_dict(cls, raw: Any) -> TaskCollection:
        if not isinstance(raw, dict):
            raise InvalidTasksFileError("task file must contain a JSON object")
        tasks_raw = raw.get("tasks")
        if not isinstance(tasks_raw, list):
            raise InvalidTasksFileError("task file has no 'tasks' list")

        tasks = [Task.from_dict(t) for t in tasks_raw]
        seen: set[int] = set()
        for t in tasks:
            if t.id in seen:
                raise InvalidTasksFileError(f"duplicate task id {t.id}")
            seen.add(t.id)

        return cls(
            tasks=tasks,
            extra={k: v for k, v in raw.items() if k != "tasks"},
            source_keys=tuple(raw),
        )

    def to_dict(self) -> dict[str, Any]:
        return _emit(
            {"tasks": [t.to_dict() for t in self.tasks]},
            self.extra,
            self.source_keys,
            {},
        )
