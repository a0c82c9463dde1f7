# tests/fakes.py

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

from taskmaster.llm.client import ProviderKind
from taskmaster.tasks.prompts import RenderedPrompt


@dataclass(slots=True)
class CompletionCall:
    prompt: RenderedPrompt
    model: str
    max_tokens: int
    temperature: float


class FakeCompletionClient:
    """
    Deterministic completion client for unit tests.

    - Captures calls for assertions
    - Returns a predefined text, or raises a predefined error
    """

    def __init__(
        self,
        next_text: str = "[]",
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.next_text = next_text
        self.error = error
        self.delay = delay
        self.calls: list[CompletionCall] = []

    def complete(
        self,
        prompt: RenderedPrompt,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.calls.append(CompletionCall(prompt, model, max_tokens, temperature))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.next_text


@dataclass(slots=True)
class FakeFactories:
    """
    Client factory table for ProviderCatalog.

    clients: kind -> client to hand out (defaults to a fresh FakeCompletionClient)
    failing: kinds whose construction raises
    """

    clients: dict[ProviderKind, Any] = field(default_factory=dict)
    failing: set[ProviderKind] = field(default_factory=set)
    built: list[ProviderKind] = field(default_factory=list)

    def mapping(self) -> dict[ProviderKind, Any]:
        return {kind: self._factory(kind) for kind in ProviderKind}

    def _factory(self, kind: ProviderKind):
        def build(api_key: str, settings) -> Any:
            self.built.append(kind)
            if kind in self.failing:
                raise RuntimeError(f"{kind.value} client init failed")
            return self.clients.setdefault(kind, FakeCompletionClient())

        return build


class OverloadedError(Exception):
    """Mimics the Anthropic SDK error raised on HTTP 529."""

    status_code = 529


def subtasks_json(start: int, count: int, *, deps: bool = True) -> str:
    items = []
    for i in range(start, start + count):
        items.append(
            {
                "id": i,
                "title": f"Subtask {i}",
                "description": f"Do part {i}",
                "dependencies": [i - 1] if deps and i > start else [],
                "details": f"Details for {i}",
            }
        )
    return json.dumps(items, indent=2)
