# src/taskmaster/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every variable accepts the TASKMASTER_ prefix or the bare name
  (ANTHROPIC_API_KEY, MODEL, ...) used by existing task-master setups.
- Per-session environments (e.g. an MCP client's env block) can override
  the process environment without touching os.environ.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKMASTER"

DEFAULT_CLAUDE_MODEL = "claude-3-7-sonnet-20250219"
DEFAULT_GEMINI_MODEL = "gemini-2.5-pro"
DEFAULT_PERPLEXITY_MODEL = "sonar-pro"
DEFAULT_PERPLEXITY_BASE_URL = "https://api.perplexity.ai"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _first_env(env: Mapping[str, str], *names: str, default: str | None = None) -> str | None:
    for n in names:
        v = env.get(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env(env: Mapping[str, str], suffix: str, default: str = "") -> str:
    """Prefixed name wins over the bare one."""
    v = _first_env(env, _k(suffix), suffix)
    return default if v is None else v.strip()


def _env_int(env: Mapping[str, str], suffix: str, default: int) -> int:
    raw = _first_env(env, _k(suffix), suffix)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], suffix: str, default: float) -> float:
    raw = _first_env(env, _k(suffix), suffix)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_path(env: Mapping[str, str], suffix: str, default: Path) -> Path:
    raw = _first_env(env, _k(suffix), suffix)
    if raw is None:
        return default
    return Path(raw.strip()).expanduser()


def _secret(env: Mapping[str, str], name: str) -> str | None:
    v = _first_env(env, _k(name), name)
    return v.strip() if v is not None else None


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Task store ----
    tasks_path: Path
    default_subtasks: int

    # ---- Provider credentials (presence == "configured") ----
    anthropic_api_key: str | None
    google_api_key: str | None
    perplexity_api_key: str | None

    # ---- Provider selection / model parameters ----
    primary_provider: str
    claude_model: str
    gemini_model: str
    perplexity_model: str
    perplexity_base_url: str
    max_tokens: int
    perplexity_max_tokens: int
    temperature: float

    # ---- Timeouts ----
    llm_timeout_seconds: float
    llm_connect_timeout_seconds: float

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        app_name = _env(env, "APP_NAME", "taskmaster") or "taskmaster"
        log_level = _env(env, "LOG_LEVEL", "INFO").upper()
        data_dir = _env_path(env, "DATA_DIR", Path(".local/taskmaster"))

        tasks_path = _env_path(env, "TASKS_PATH", Path("tasks/tasks.json"))
        default_subtasks = _env_int(env, "DEFAULT_SUBTASKS", 5)
        if default_subtasks < 1:
            default_subtasks = 5

        primary_provider = _env(env, "AI_PROVIDER", "anthropic").lower()
        if primary_provider not in {"anthropic", "google"}:
            primary_provider = "anthropic"

        max_tokens = _env_int(env, "MAX_TOKENS", 64000)
        perplexity_max_tokens = _env_int(env, "PERPLEXITY_MAX_TOKENS", 8000)

        llm_timeout_seconds = _env_float(env, "LLM_TIMEOUT_SECONDS", 300.0)
        llm_connect_timeout_seconds = _env_float(env, "LLM_CONNECT_TIMEOUT_SECONDS", 10.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            default_subtasks=default_subtasks,
            anthropic_api_key=_secret(env, "ANTHROPIC_API_KEY"),
            google_api_key=_secret(env, "GOOGLE_API_KEY"),
            perplexity_api_key=_secret(env, "PERPLEXITY_API_KEY"),
            primary_provider=primary_provider,
            claude_model=_env(env, "MODEL", DEFAULT_CLAUDE_MODEL),
            gemini_model=_env(env, "GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            perplexity_model=_env(env, "PERPLEXITY_MODEL", DEFAULT_PERPLEXITY_MODEL),
            perplexity_base_url=_env(env, "PERPLEXITY_BASE_URL", DEFAULT_PERPLEXITY_BASE_URL),
            max_tokens=max_tokens if max_tokens > 0 else 64000,
            perplexity_max_tokens=perplexity_max_tokens if perplexity_max_tokens > 0 else 8000,
            temperature=_env_float(env, "TEMPERATURE", 0.2),
            llm_timeout_seconds=max(1.0, llm_timeout_seconds),
            llm_connect_timeout_seconds=max(1.0, llm_connect_timeout_seconds),
        )

    @staticmethod
    def with_overrides(session_env: Mapping[str, str] | None) -> "Settings":
        """Settings where session-provided variables win over the process environment."""
        if not session_env:
            return Settings.from_env()
        merged = dict(os.environ)
        merged.update({k: str(v) for k, v in session_env.items() if v is not None})
        return Settings.from_env(merged)


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
