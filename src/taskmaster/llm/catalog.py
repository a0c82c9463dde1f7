# src/taskmaster/llm/catalog.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ..config import Settings
from ..core.errors import ProviderUnavailableError
from ..core.ports import ClientFactory
from .client import DEFAULT_CLIENT_FACTORIES, ProviderKind, ProviderProfile

logger = logging.getLogger(__name__)

# AI_PROVIDER values -> conversational family
_FAMILY_BY_SETTING = {
    "anthropic": ProviderKind.CLAUDE,
    "google": ProviderKind.GOOGLE,
}


@dataclass(frozen=True, slots=True)
class ModelParams:
    model_name: str
    max_tokens: int
    temperature: float


class ProviderCatalog:
    """
    What the environment offers: which backends have credentials and their
    default generation parameters. Binding a kind builds a fresh client handle.
    """

    def __init__(
        self,
        settings: Settings,
        factories: Mapping[ProviderKind, ClientFactory] | None = None,
    ) -> None:
        self._settings = settings
        self._factories: dict[ProviderKind, ClientFactory] = dict(
            DEFAULT_CLIENT_FACTORIES if factories is None else factories
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def primary_family(self) -> ProviderKind:
        return _FAMILY_BY_SETTING.get(self._settings.primary_provider, ProviderKind.CLAUDE)

    @property
    def alternate_family(self) -> ProviderKind:
        if self.primary_family is ProviderKind.CLAUDE:
            return ProviderKind.GOOGLE
        return ProviderKind.CLAUDE

    def api_key(self, kind: ProviderKind) -> str | None:
        s = self._settings
        key = {
            ProviderKind.CLAUDE: s.anthropic_api_key,
            ProviderKind.GOOGLE: s.google_api_key,
            ProviderKind.PERPLEXITY: s.perplexity_api_key,
        }[kind]
        return key or None

    def is_configured(self, kind: ProviderKind) -> bool:
        return self.api_key(kind) is not None

    def model_params(self, kind: ProviderKind) -> ModelParams:
        s = self._settings
        if kind is ProviderKind.CLAUDE:
            return ModelParams(s.claude_model, s.max_tokens, s.temperature)
        if kind is ProviderKind.GOOGLE:
            return ModelParams(s.gemini_model, s.max_tokens, s.temperature)
        return ModelParams(s.perplexity_model, s.perplexity_max_tokens, s.temperature)

    def configured_kinds(self) -> list[ProviderKind]:
        return [k for k in ProviderKind if self.is_configured(k)]

    def bind(self, kind: ProviderKind, *, reason: str = "default") -> ProviderProfile:
        """
        Build a ProviderProfile for `kind`.

        Raises ProviderUnavailableError when credentials are missing or the
        client handle cannot be constructed.
        """
        api_key = self.api_key(kind)
        if api_key is None:
            raise ProviderUnavailableError(f"{kind.value}: API key is not configured")

        factory = self._factories.get(kind)
        if factory is None:
            raise ProviderUnavailableError(f"{kind.value}: no client factory registered")

        try:
            client = factory(api_key, self._settings)
        except Exception as e:
            raise ProviderUnavailableError(f"{kind.value}: failed to initialize client: {e}") from e

        params = self.model_params(kind)
        logger.debug("Bound provider kind=%s model=%s reason=%s", kind.value, params.model_name, reason)
        return ProviderProfile(
            kind=kind,
            model_name=params.model_name,
            max_tokens=params.max_tokens,
            temperature=params.temperature,
            client=client,
            reason=reason,
        )
