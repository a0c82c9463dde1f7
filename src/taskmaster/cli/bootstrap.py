# src/taskmaster/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- wires the provider catalog, resolver, invoker and orchestrator,
- hands one OperationLog sink to every component of a pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..config import Settings, get_settings
from ..core.ports import ClientFactory
from ..llm.catalog import ProviderCatalog
from ..llm.client import ProviderKind
from ..llm.invoker import CompletionInvoker
from ..llm.resolver import ProviderResolver
from ..logging_setup import OperationLog
from ..tasks.expand import ExpansionOrchestrator

logger = logging.getLogger(__name__)


def build_orchestrator(
    *,
    settings: Settings | None = None,
    sink: OperationLog | None = None,
    factories: Mapping[ProviderKind, ClientFactory] | None = None,
) -> ExpansionOrchestrator:
    """
    Create an ExpansionOrchestrator from the provided settings.

    Keeping settings/factories injectable makes the pipeline easy to test and
    avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()
    if sink is None:
        sink = OperationLog(logging.getLogger("taskmaster.expand"))

    catalog = ProviderCatalog(settings, factories)
    configured = ", ".join(k.value for k in catalog.configured_kinds()) or "none"
    logger.debug(
        "Providers configured: %s (primary=%s)",
        configured,
        catalog.primary_family.value,
    )

    return ExpansionOrchestrator(
        ProviderResolver(catalog, sink),
        CompletionInvoker(timeout_seconds=settings.llm_timeout_seconds, sink=sink),
        sink=sink,
        default_subtasks=settings.default_subtasks,
    )
