# tests/test_invoker.py

from __future__ import annotations

import logging

import pytest

from taskmaster.core.errors import ProviderInvocationError
from taskmaster.llm.client import ProviderKind, ProviderProfile
from taskmaster.llm.invoker import CompletionInvoker
from taskmaster.logging_setup import OperationLog
from taskmaster.tasks.prompts import RenderedPrompt

from .fakes import FakeCompletionClient, OverloadedError

PROMPT = RenderedPrompt(system="sys", user="usr", next_id=1, subtask_count=2)


def _profile(client: FakeCompletionClient, kind: ProviderKind = ProviderKind.CLAUDE) -> ProviderProfile:
    return ProviderProfile(
        kind=kind,
        model_name="test-model",
        max_tokens=123,
        temperature=0.2,
        client=client,
    )


def test_invoke_returns_stripped_text_and_passes_params() -> None:
    client = FakeCompletionClient("  [1, 2]\n")

    text = CompletionInvoker(timeout_seconds=5).invoke(_profile(client), PROMPT)

    assert text == "[1, 2]"
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call.prompt is PROMPT
    assert (call.model, call.max_tokens, call.temperature) == ("test-model", 123, 0.2)


def test_timeout_is_reported_as_failure() -> None:
    client = FakeCompletionClient("[]", delay=0.5)
    invoker = CompletionInvoker(timeout_seconds=0.05)

    with pytest.raises(ProviderInvocationError) as ei:
        invoker.invoke(_profile(client), PROMPT)

    assert ei.value.timed_out is True
    assert "timed out" in ei.value.message


def test_overloaded_error_is_flagged() -> None:
    client = FakeCompletionClient(error=OverloadedError("overloaded_error"))

    with pytest.raises(ProviderInvocationError) as ei:
        CompletionInvoker(timeout_seconds=5).invoke(_profile(client), PROMPT)

    assert ei.value.overloaded is True
    assert ei.value.provider == "claude"
    assert "overloaded" in ei.value.message


def test_generic_error_gets_friendly_message() -> None:
    client = FakeCompletionClient(error=ValueError("boom"))

    with pytest.raises(ProviderInvocationError) as ei:
        CompletionInvoker(timeout_seconds=5).invoke(_profile(client, ProviderKind.GOOGLE), PROMPT)

    assert ei.value.message == "Error communicating with Gemini: boom"
    assert ei.value.overloaded is False


def test_empty_reply_is_a_failure() -> None:
    with pytest.raises(ProviderInvocationError, match="no content"):
        CompletionInvoker(timeout_seconds=5).invoke(_profile(FakeCompletionClient("   ")), PROMPT)


def test_sink_is_muted_only_during_the_call(caplog) -> None:
    sink = OperationLog(logging.getLogger("taskmaster.test.invoker"))
    seen: list[bool] = []

    class _Probe(FakeCompletionClient):
        def complete(self, prompt, **kw):
            seen.append(sink.is_muted)
            sink.info("inside call")
            return "ok"

    caplog.set_level(logging.DEBUG, logger="taskmaster.test.invoker")
    CompletionInvoker(timeout_seconds=5, sink=sink).invoke(_profile(_Probe()), PROMPT)

    assert seen == [True]
    assert sink.is_muted is False
    inside = [r for r in caplog.records if r.getMessage() == "inside call"]
    assert inside and inside[0].levelno == logging.DEBUG
    assert any(r.levelno == logging.INFO and "answered" in r.getMessage() for r in caplog.records)
