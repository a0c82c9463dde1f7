# src/taskmaster/llm/client.py

"""
Backend clients behind one completion capability.

Each backend family keeps its own SDK:
- claude      -> anthropic (Messages API, streamed)
- google      -> google-genai (generate_content)
- perplexity  -> openai SDK pointed at the Perplexity OpenAI-compatible endpoint (streamed)

The rest of the app only sees ProviderProfile.complete(prompt).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import anthropic
import httpx
import openai
from google import genai
from google.genai import types as genai_types

from ..config import Settings
from ..core.ports import CompletionClient

if TYPE_CHECKING:
    from ..tasks.prompts import RenderedPrompt

# Larger output budget for Claude 3.7 models.
ANTHROPIC_BETA_HEADERS = {"anthropic-beta": "output-128k-2025-02-19"}


class ProviderKind(StrEnum):
    CLAUDE = "claude"  # primary-conversational (anthropic family)
    GOOGLE = "google"  # secondary-conversational (google family)
    PERPLEXITY = "perplexity"  # research-augmented


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    """A resolved, bound provider. Never mutated after resolution."""

    kind: ProviderKind
    model_name: str
    max_tokens: int
    temperature: float
    client: CompletionClient
    reason: str = "default"

    def complete(self, prompt: RenderedPrompt) -> str:
        return self.client.complete(
            prompt,
            model=self.model_name,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    def describe(self) -> str:
        return f"{self.kind.value}:{self.model_name}"


# ---- error classification ----


def _status_code(exc: Exception) -> int | None:
    for attr in ("status_code", "code"):
        v = getattr(exc, attr, None)
        if isinstance(v, int):
            return v
    return None


def is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (anthropic.AuthenticationError, openai.AuthenticationError)):
        return True
    if _status_code(exc) in {401, 403}:
        return True
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, (anthropic.RateLimitError, openai.RateLimitError)):
        return True
    if _status_code(exc) == 429:
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def is_overloaded_error(exc: Exception) -> bool:
    # Anthropic answers 529 "overloaded_error"; Gemini answers 503 "model is overloaded".
    if _status_code(exc) in {529, 503}:
        return True
    if exc.__class__.__name__ in {"OverloadedError", "ServiceUnavailableError"}:
        return True
    return "overloaded" in str(exc).lower()


def is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, TimeoutError)):
        return True
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def is_not_found_error(exc: Exception) -> bool:
    if _status_code(exc) == 404:
        return True
    return exc.__class__.__name__ in {"NotFoundError"}


def friendly_provider_error_message(kind: str, err: Exception) -> str:
    """User-facing message for a failed completion call."""
    name = {"claude": "Claude", "google": "Gemini", "perplexity": "Perplexity"}.get(kind, kind)
    if is_overloaded_error(err):
        return (
            f"{name} is currently experiencing high demand and is overloaded. "
            "Please wait a few minutes and try again."
        )
    if is_rate_limit_error(err):
        return "You have exceeded the rate limit. Please wait a few minutes before making more requests."
    if is_auth_error(err):
        return f"{name} authentication failed. Check the API key for this provider."
    if is_not_found_error(err):
        return f"{name} model is not available: {err}"
    if isinstance(err, TimeoutError) or "timeout" in str(err).lower() or "timed out" in str(err).lower():
        return f"The request to {name} timed out. Please try again."
    if is_connection_error(err) or "network" in str(err).lower():
        return (
            f"There was a network error connecting to {name}. "
            "Please check your internet connection and try again."
        )
    msg = str(err).strip() or err.__class__.__name__
    return f"Error communicating with {name}: {msg}"


# ---- timeouts ----


def _make_timeout(settings: Settings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=settings.llm_connect_timeout_seconds,
        read=settings.llm_timeout_seconds,
        write=30.0,
        pool=settings.llm_connect_timeout_seconds,
    )


# ---- backends ----


class AnthropicCompletionClient:
    def __init__(self, sdk_client: Any) -> None:
        self._client = sdk_client

    def complete(
        self,
        prompt: RenderedPrompt,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        parts: list[str] = []
        with self._client.messages.stream(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=prompt.system,
            messages=[{"role": "user", "content": prompt.user}],
        ) as stream:
            for text in stream.text_stream:
                if text:
                    parts.append(text)
        return "".join(parts)


class GoogleCompletionClient:
    def __init__(self, sdk_client: Any) -> None:
        self._client = sdk_client

    def complete(
        self,
        prompt: RenderedPrompt,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = self._client.models.generate_content(
            model=model,
            contents=prompt.user,
            config=genai_types.GenerateContentConfig(
                system_instruction=prompt.system,
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )
        return getattr(response, "text", None) or ""


class PerplexityCompletionClient:
    """OpenAI-compatible chat completions, streamed like the other chat backends."""

    def __init__(self, sdk_client: Any) -> None:
        self._client = sdk_client

    def complete(
        self,
        prompt: RenderedPrompt,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        stream = self._client.chat.completions.create(
            model=model,
            stream=True,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
        )
        parts: list[str] = []
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = getattr(chunk.choices[0], "delta", None)
                content = getattr(delta, "content", None) if delta is not None else None
                if content:
                    parts.append(content)
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()
        return "".join(parts)


# ---- factories (api_key, settings) -> CompletionClient ----


def make_anthropic_client(api_key: str, settings: Settings) -> CompletionClient:
    sdk = anthropic.Anthropic(
        api_key=api_key,
        timeout=_make_timeout(settings),
        # No SDK-level retries: fallback across providers is handled by the resolver/caller.
        max_retries=0,
        default_headers=ANTHROPIC_BETA_HEADERS,
    )
    return AnthropicCompletionClient(sdk)


def make_google_client(api_key: str, settings: Settings) -> CompletionClient:
    sdk = genai.Client(
        api_key=api_key,
        http_options=genai_types.HttpOptions(timeout=int(settings.llm_timeout_seconds * 1000)),
    )
    return GoogleCompletionClient(sdk)


def make_perplexity_client(api_key: str, settings: Settings) -> CompletionClient:
    sdk = openai.OpenAI(
        base_url=settings.perplexity_base_url,
        api_key=api_key,
        timeout=_make_timeout(settings),
        max_retries=0,
    )
    return PerplexityCompletionClient(sdk)


DEFAULT_CLIENT_FACTORIES = {
    ProviderKind.CLAUDE: make_anthropic_client,
    ProviderKind.GOOGLE: make_google_client,
    ProviderKind.PERPLEXITY: make_perplexity_client,
}
