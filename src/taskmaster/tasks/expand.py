# src/taskmaster/tasks/expand.py

"""
Task expansion use case.

One call walks: Loading -> Validating -> Preparing -> Generating -> Committing -> Done,
or stops in Failed. Every failure is returned as a structured result;
nothing raises past ExpansionOrchestrator.expand().

Store safety:
- a backup sibling (<file>.bak) is taken right before the first write,
- it is discarded only after the final write succeeded,
- if anything fails after the first write, the store is restored from the
  backup (byte copy) and the backup is kept for inspection.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.errors import (
    ErrorCode,
    InputValidationError,
    MalformedResponseError,
    NoProviderAvailableError,
    ProviderInvocationError,
    StoreIOError,
    TaskmasterError,
)
from ..core.ports import LogSink
from ..llm.invoker import CompletionInvoker
from ..llm.resolver import LiveSignals, ProviderRequirements, ProviderResolver
from ..logging_setup import OperationLog
from .parser import parse_subtasks
from .prompts import DEFAULT_SUBTASK_COUNT, build_expansion_prompt
from .task_models import Subtask, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(raw)


def _as_positive_int(raw: Any, what: str) -> int:
    if isinstance(raw, bool):
        raise InputValidationError(f"{what} must be a positive integer, got {raw!r}")
    try:
        value = int(str(raw).strip())
    except ValueError as e:
        raise InputValidationError(f"{what} must be a positive integer, got {raw!r}") from e
    if value < 1:
        raise InputValidationError(f"{what} must be a positive integer, got {raw!r}")
    return value


@dataclass(frozen=True, slots=True)
class ExpansionRequest:
    store_path: Path
    task_id: int
    subtask_count: int | None = None
    needs_research: bool = False
    extra_context: str = ""
    force: bool = False
    primary_overloaded: bool = False

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> ExpansionRequest:
        """
        Validate raw caller input (tool/CLI arguments). No I/O happens here.

        Accepts both the request names (storePath, taskId, subtaskCount, ...)
        and the short tool names (tasksJsonPath/file, id, num, research, prompt).
        """
        store_path = args.get("storePath") or args.get("tasksJsonPath") or args.get("file")
        if not store_path or not str(store_path).strip():
            raise TaskmasterError("tasksJsonPath is required", code=ErrorCode.MISSING_ARGUMENT)

        raw_id = args.get("taskId", args.get("id"))
        if raw_id is None or str(raw_id).strip() == "":
            raise InputValidationError("Task ID is required")
        task_id = _as_positive_int(raw_id, "Task ID")

        raw_num = args.get("subtaskCount", args.get("num"))
        subtask_count = None
        if raw_num is not None and str(raw_num).strip() != "":
            subtask_count = _as_positive_int(raw_num, "Number of subtasks")

        extra_context = args.get("extraContext", args.get("prompt")) or ""

        return cls(
            store_path=Path(str(store_path)),
            task_id=task_id,
            subtask_count=subtask_count,
            needs_research=_as_bool(args.get("needsResearch", args.get("research", False))),
            extra_context=str(extra_context),
            force=_as_bool(args.get("force", False)),
            primary_overloaded=_as_bool(args.get("primaryOverloaded", False)),
        )


@dataclass(slots=True)
class OperationResult:
    success: bool
    data: dict[str, Any] | None = None
    error: dict[str, str] | None = None

    @classmethod
    def ok(cls, **data: Any) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode | str, message: str) -> OperationResult:
        return cls(success=False, error={"code": str(code), "message": message})

    @property
    def error_code(self) -> str | None:
        return self.error["code"] if self.error else None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data or {}}
        return {"success": False, "error": self.error or {}}


@dataclass(slots=True)
class _WriteState:
    """Mutable bookkeeping for one expand() call."""

    backup_path: Path | None = None
    store_written: bool = False


class ExpansionOrchestrator:
    def __init__(
        self,
        resolver: ProviderResolver,
        invoker: CompletionInvoker,
        *,
        sink: LogSink | None = None,
        default_subtasks: int = DEFAULT_SUBTASK_COUNT,
    ) -> None:
        self._resolver = resolver
        self._invoker = invoker
        self._log: LogSink = sink if sink is not None else OperationLog(logger)
        self._default_subtasks = default_subtasks if default_subtasks > 0 else DEFAULT_SUBTASK_COUNT

    def expand(self, request: ExpansionRequest) -> OperationResult:
        try:
            return self._expand(request)
        except Exception as e:
            # Last line of defence: the public contract never raises.
            self._log.exception("Unexpected error expanding task %s", request.task_id)
            return OperationResult.fail(ErrorCode.CORE_FUNCTION_ERROR, str(e) or "Failed to expand task")

    def _expand(self, request: ExpansionRequest) -> OperationResult:
        task_id = request.task_id
        store = TaskStore(request.store_path)
        count = request.subtask_count or self._default_subtasks

        self._log.info(
            "Expanding task %s into %s subtasks (research=%s, force=%s) store=%s",
            task_id,
            count,
            request.needs_research,
            request.force,
            store.path,
        )

        # ---- Loading ----
        try:
            data = store.read()
        except TaskmasterError as e:
            self._log.error("Failed to load tasks: %s", e.message)
            return OperationResult.fail(ErrorCode.INVALID_TASKS_FILE, e.message)

        # ---- Validating ----
        task = data.find(task_id)
        if task is None:
            return OperationResult.fail(ErrorCode.TASK_NOT_FOUND, f"Task with ID {task_id} not found")

        if task.is_terminal:
            return OperationResult.fail(
                ErrorCode.TASK_COMPLETED,
                f"Task {task_id} is already marked as {task.status} and cannot be expanded",
            )

        has_existing = bool(task.subtasks)
        if has_existing and not request.force:
            self._log.info(
                "Task %s already has %d subtasks. Use force to overwrite.",
                task_id,
                len(task.subtasks),
            )
            return OperationResult.ok(
                message=f"Task {task_id} already has subtasks. Expansion skipped.",
                task=task.to_dict(),
                subtasksAdded=0,
                hasExistingSubtasks=True,
            )

        # ---- Preparing ----
        if has_existing:
            self._log.info("Force flag set. Clearing existing subtasks for task %s.", task_id)
            task.subtasks = []

        original_task = copy.deepcopy(task)
        state = _WriteState()

        try:
            state.backup_path = store.backup()
            store.write(data)
            state.store_written = True
        except StoreIOError as e:
            self._log.error("Failed to prepare task store: %s", e.message)
            return self._fail_after_write(store, state, ErrorCode.CORE_FUNCTION_ERROR, e.message)

        # ---- Generating ----
        try:
            new_subtasks = self._generate(task, count, request)
        except NoProviderAvailableError as e:
            self._log.error("Provider resolution failed: %s", e.message)
            return self._fail_after_write(
                store, state, ErrorCode.CORE_FUNCTION_ERROR, f"AI Error: {e.message}"
            )
        except ProviderInvocationError as e:
            self._log.error("AI provider call failed: %s", e.message)
            return self._fail_after_write(
                store, state, ErrorCode.CORE_FUNCTION_ERROR, f"AI Error: {e.message}"
            )
        except MalformedResponseError as e:
            self._log.error("AI response could not be parsed: %s", e.message)
            return self._fail_after_write(
                store,
                state,
                ErrorCode.CORE_FUNCTION_ERROR,
                f"AI did not return valid subtasks: {e.message}",
            )
        except Exception as e:
            self._log.exception("Unexpected error generating subtasks for task %s", task_id)
            return self._fail_after_write(
                store, state, ErrorCode.CORE_FUNCTION_ERROR, str(e) or e.__class__.__name__
            )

        # ---- Committing ----
        target = data.find(task_id)
        if target is None:
            return self._fail_after_write(
                store, state, ErrorCode.CORE_FUNCTION_ERROR, "Task disappeared unexpectedly!"
            )
        target.subtasks = [*target.subtasks, *new_subtasks]

        try:
            store.write(data)
        except StoreIOError as e:
            self._log.error("Failed to save expanded task: %s", e.message)
            return self._fail_after_write(store, state, ErrorCode.CORE_FUNCTION_ERROR, e.message)
        except Exception as e:
            self._log.exception("Unexpected error saving task %s", task_id)
            return self._fail_after_write(
                store, state, ErrorCode.CORE_FUNCTION_ERROR, str(e) or e.__class__.__name__
            )

        try:
            store.discard_backup(state.backup_path)
        except StoreIOError as e:
            # Commit already succeeded; a stale backup is harmless.
            self._log.warning("%s", e.message)

        added = len(new_subtasks)
        self._log.info("Successfully expanded task %s with %d subtasks.", task_id, added)

        # ---- Done ----
        return OperationResult.ok(
            message=f"Task {task_id} expanded successfully with {added} subtasks.",
            task=original_task.to_dict(),
            newSubtasks=[s.to_dict() for s in new_subtasks],
            subtasksAdded=added,
            totalSubtasks=len(target.subtasks),
        )

    def _generate(self, task: Task, count: int, request: ExpansionRequest) -> list[Subtask]:
        prompt = build_expansion_prompt(task, count, request.extra_context)

        profile = self._resolver.resolve(
            ProviderRequirements(needs_research=request.needs_research),
            LiveSignals(primary_overloaded=request.primary_overloaded),
        )

        self._log.info(
            "Calling AI provider %s (research=%s) to generate subtasks...",
            profile.describe(),
            request.needs_research,
        )
        raw = self._invoker.invoke(profile, prompt)

        return parse_subtasks(raw, prompt.next_id, prompt.subtask_count, task.id)

    def _fail_after_write(
        self,
        store: TaskStore,
        state: _WriteState,
        code: ErrorCode,
        message: str,
    ) -> OperationResult:
        """
        Failure once Preparing may have touched the file.

        The store is put back to its pre-operation bytes; the backup stays on disk.
        """
        if state.backup_path is None:
            return OperationResult.fail(code, message)

        if state.store_written:
            try:
                store.restore(state.backup_path)
            except StoreIOError as e:
                self._log.error("Restore failed: %s", e.message)
                return OperationResult.fail(
                    code,
                    f"{message} Task file could not be restored automatically; "
                    f"recover it manually from the backup at {state.backup_path}.",
                )

        return OperationResult.fail(
            code,
            f"{message} Task file left unchanged; backup kept at {state.backup_path}.",
        )


def expand_task(
    args: Mapping[str, Any],
    *,
    orchestrator: ExpansionOrchestrator | None = None,
    session_env: Mapping[str, str] | None = None,
) -> OperationResult:
    """
    Validate raw arguments and run one expansion.

    Input errors fail fast (no I/O). Without an explicit orchestrator the
    default collaborators are wired from settings (session_env overrides the
    process environment).
    """
    try:
        request = ExpansionRequest.from_args(args)
    except TaskmasterError as e:
        logger.error("Invalid expand request: %s", e.message)
        return OperationResult.fail(e.code, e.message)

    if orchestrator is None:
        from ..cli.bootstrap import build_orchestrator
        from ..config import Settings

        orchestrator = build_orchestrator(settings=Settings.with_overrides(session_env))

    return orchestrator.expand(request)
