# src/taskmaster/llm/resolver.py

"""
Provider resolution with multi-tier fallback.

Policy (first bindable tier wins):
1. research needed + research provider configured      -> research provider
2. research needed + research provider NOT configured  -> primary family
3. primary overloaded -> alternate family, then research provider as a
   plain completion source, then the overloaded primary anyway
4. default -> primary family, then the other family
5. nothing bound -> NoProviderAvailableError

A tier that cannot bind is logged as a warning and the walk continues.
A kind is attempted at most once per resolution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.errors import NoProviderAvailableError, ProviderUnavailableError
from ..core.ports import LogSink
from .catalog import ProviderCatalog
from .client import ProviderKind, ProviderProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderRequirements:
    needs_research: bool = False


@dataclass(frozen=True, slots=True)
class LiveSignals:
    primary_overloaded: bool = False


@dataclass(frozen=True, slots=True)
class ResolutionTier:
    kind: ProviderKind
    reason: str
    # Only attempted when credentials exist; otherwise skipped silently.
    requires_credentials: bool = True


class ProviderResolver:
    def __init__(self, catalog: ProviderCatalog, sink: LogSink | None = None) -> None:
        self._catalog = catalog
        self._log: LogSink | logging.Logger = sink if sink is not None else logger

    def plan(self, requirements: ProviderRequirements, signals: LiveSignals) -> list[ResolutionTier]:
        """Ordered tiers for this request (before deduplication)."""
        cat = self._catalog
        primary = cat.primary_family
        alternate = cat.alternate_family
        research = ProviderKind.PERPLEXITY

        tiers: list[ResolutionTier] = []

        if requirements.needs_research:
            if cat.is_configured(research):
                tiers.append(ResolutionTier(research, "research"))
            else:
                tiers.append(ResolutionTier(primary, "research-fallback"))

        if signals.primary_overloaded:
            tiers.append(ResolutionTier(alternate, "overload-alternate"))
            tiers.append(ResolutionTier(research, "overload-research"))
            tiers.append(ResolutionTier(primary, "overload-best-effort", requires_credentials=False))

        tiers.append(ResolutionTier(primary, "primary", requires_credentials=False))
        tiers.append(ResolutionTier(alternate, "primary-fallback"))
        return tiers

    def resolve(
        self,
        requirements: ProviderRequirements | None = None,
        signals: LiveSignals | None = None,
    ) -> ProviderProfile:
        requirements = requirements or ProviderRequirements()
        signals = signals or LiveSignals()

        if requirements.needs_research and not self._catalog.is_configured(ProviderKind.PERPLEXITY):
            self._log.warning(
                "Perplexity not available for research, falling back to primary provider (%s)",
                self._catalog.primary_family.value,
            )
        if signals.primary_overloaded:
            self._log.warning(
                "Primary provider (%s) is overloaded. Attempting fallback...",
                self._catalog.primary_family.value,
            )

        tried: set[ProviderKind] = set()
        failures: list[str] = []

        for tier in self.plan(requirements, signals):
            if tier.kind in tried:
                continue
            if tier.requires_credentials and not self._catalog.is_configured(tier.kind):
                continue
            tried.add(tier.kind)
            try:
                profile = self._catalog.bind(tier.kind, reason=tier.reason)
            except ProviderUnavailableError as e:
                failures.append(e.message)
                self._log.warning("Provider tier %s failed: %s", tier.reason, e.message)
                continue
            self._log.info(
                "Resolved provider %s (tier=%s)",
                profile.describe(),
                tier.reason,
            )
            return profile

        detail = "; ".join(failures) if failures else "no provider credentials configured"
        raise NoProviderAvailableError(
            "No AI models available. Please check your API keys and AI_PROVIDER setting "
            f"({detail})."
        )
