# src/taskmaster/core/errors.py

"""
Error taxonomy.

Every failure carries a stable ErrorCode for programmatic handling and a
human-readable message. Components raise these; only the expansion
orchestrator converts them into the structured result shape.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    # Input errors
    MISSING_ARGUMENT = "MISSING_ARGUMENT"
    INPUT_VALIDATION_ERROR = "INPUT_VALIDATION_ERROR"

    # Store errors
    INVALID_TASKS_FILE = "INVALID_TASKS_FILE"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    TASK_COMPLETED = "TASK_COMPLETED"

    # Provider / generation errors
    NO_PROVIDER_AVAILABLE = "NO_PROVIDER_AVAILABLE"
    CORE_FUNCTION_ERROR = "CORE_FUNCTION_ERROR"

    # Internal codes (mapped to CORE_FUNCTION_ERROR at the orchestrator boundary)
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    IO_ERROR = "IO_ERROR"


class TaskmasterError(Exception):
    """Root of all taskmaster errors."""

    code: ErrorCode = ErrorCode.CORE_FUNCTION_ERROR

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


class InputValidationError(TaskmasterError):
    code = ErrorCode.INPUT_VALIDATION_ERROR


class InvalidTasksFileError(TaskmasterError):
    code = ErrorCode.INVALID_TASKS_FILE


class StoreIOError(TaskmasterError):
    code = ErrorCode.IO_ERROR


class ProviderUnavailableError(TaskmasterError):
    """A single provider kind could not be bound (missing credentials, client init failure)."""

    code = ErrorCode.NO_PROVIDER_AVAILABLE


class NoProviderAvailableError(TaskmasterError):
    """The whole fallback policy was exhausted."""

    code = ErrorCode.NO_PROVIDER_AVAILABLE


class ProviderInvocationError(TaskmasterError):
    """The completion call failed, timed out or returned nothing."""

    code = ErrorCode.CORE_FUNCTION_ERROR

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        overloaded: bool = False,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.overloaded = overloaded
        self.timed_out = timed_out


class MalformedResponseError(TaskmasterError):
    code = ErrorCode.MALFORMED_RESPONSE
