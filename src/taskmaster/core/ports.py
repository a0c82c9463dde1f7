# src/taskmaster/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps LLM backends swappable and makes testing easier.
"""

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..config import Settings
    from ..tasks.prompts import RenderedPrompt


class CompletionClient(Protocol):
    """
    One text-completion capability shared by every backend.

    Each backend (Anthropic, Gemini, Perplexity) hides its native SDK shape
    behind this single method.
    """

    def complete(
            self,
            prompt: RenderedPrompt,
            *,
            model: str,
            max_tokens: int,
            temperature: float,
    ) -> str: ...


class ClientFactory(Protocol):
    """Build a client for one backend from its API key and the app settings."""

    def __call__(self, api_key: str, settings: Settings) -> CompletionClient: ...


class LogSink(Protocol):
    """
    Logging facade handed explicitly to the invoker/orchestrator.

    muted() opens a suppression window that only affects this sink.
    """

    def debug(self, msg: str, *args: object) -> None: ...
    def info(self, msg: str, *args: object) -> None: ...
    def warning(self, msg: str, *args: object) -> None: ...
    def error(self, msg: str, *args: object) -> None: ...
    def exception(self, msg: str, *args: object) -> None: ...
    def muted(self) -> AbstractContextManager[None]: ...
