# src/taskmaster/llm/invoker.py

from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import TYPE_CHECKING

from ..core.errors import ProviderInvocationError
from ..core.ports import LogSink
from ..logging_setup import OperationLog
from .client import ProviderProfile, friendly_provider_error_message, is_overloaded_error

if TYPE_CHECKING:
    from ..tasks.prompts import RenderedPrompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0


class CompletionInvoker:
    """
    Issue one prompt to a resolved provider and return raw text.

    - The call runs under an overall deadline; on timeout the worker is
      abandoned and the call counts as an ordinary failure.
    - The sink is muted for the duration of the call: records sent through
      it meanwhile, from any thread, go to the file log only. The backends
      do not log through the sink; SDK loggers are quieted by setup_logging().
    - No retries here: fallback is decided by the resolver/caller.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        sink: LogSink | None = None,
    ) -> None:
        self._timeout = float(timeout_seconds)
        self._sink: LogSink = sink if sink is not None else OperationLog(logger)

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def invoke(self, profile: ProviderProfile, prompt: RenderedPrompt) -> str:
        kind = profile.kind.value
        self._sink.info(
            "LLM: calling %s (max_tokens=%d, temperature=%.2f, timeout=%.0fs)",
            profile.describe(),
            profile.max_tokens,
            profile.temperature,
            self._timeout,
        )
        t0 = time.monotonic()

        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"llm-{kind}"
        )
        try:
            with self._sink.muted():
                future = executor.submit(profile.complete, prompt)
                try:
                    text = future.result(timeout=self._timeout)
                except concurrent.futures.TimeoutError as e:
                    future.cancel()
                    raise ProviderInvocationError(
                        f"The request to {kind} timed out after {self._timeout:.0f}s.",
                        provider=kind,
                        timed_out=True,
                    ) from e
                except ProviderInvocationError:
                    raise
                except Exception as e:
                    self._sink.debug("LLM: %s raised %s: %s", kind, e.__class__.__name__, e)
                    raise ProviderInvocationError(
                        friendly_provider_error_message(kind, e),
                        provider=kind,
                        overloaded=is_overloaded_error(e),
                    ) from e
        finally:
            # Never block on an abandoned (timed-out) worker.
            executor.shutdown(wait=False, cancel_futures=True)

        text = (text or "").strip()
        if not text:
            raise ProviderInvocationError(f"Model returned no content: {profile.describe()}", provider=kind)

        self._sink.info(
            "LLM: %s answered in %.2fs (%d chars)",
            profile.describe(),
            time.monotonic() - t0,
            len(text),
        )
        return text
