from __future__ import annotations

import os
from dataclasses import dataclass


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _parse_optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    ai_provider: str
    openai_api_key: str
    openai_model: str
    openai_base_url: str
    openrouter_api_key: str
    openrouter_model: str
    openrouter_base_url: str
    openrouter_site_url: str
    openrouter_app_name: str
    mock_failure_rate: float
    mock_latency_seconds: float
    mock_seed: int | None
    enrichment_max_attempts: int
    enrichment_timeout_seconds: float
    backoff_initial_seconds: float
    backoff_max_seconds: float
    backoff_multiplier: float
    enrichment_workers: int
    database_url: str
    log_level: str
    json_logs: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            ai_provider=os.getenv("AI_PROVIDER", "auto").strip().lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
            openrouter_model=os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini"),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
            openrouter_site_url=os.getenv(
                "OPENROUTER_SITE_URL",
                "https://github.com/stephenusselman/incident-service",
            ),
            openrouter_app_name=os.getenv("OPENROUTER_APP_NAME", "incident_service"),
            mock_failure_rate=_parse_float("MOCK_FAILURE_RATE", 0.0),
            mock_latency_seconds=_parse_float("MOCK_LATENCY_SECONDS", 0.0),
            mock_seed=_parse_optional_int("MOCK_SEED"),
            enrichment_max_attempts=_parse_int("ENRICHMENT_MAX_ATTEMPTS", 3),
            enrichment_timeout_seconds=_parse_float("ENRICHMENT_TIMEOUT_SECONDS", 10.0),
            backoff_initial_seconds=_parse_float("ENRICHMENT_BACKOFF_INITIAL_SECONDS", 1.0),
            backoff_max_seconds=_parse_float("ENRICHMENT_BACKOFF_MAX_SECONDS", 10.0),
            backoff_multiplier=_parse_float("ENRICHMENT_BACKOFF_MULTIPLIER", 2.0),
            enrichment_workers=_parse_int("ENRICHMENT_WORKERS", 4),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./data/incidents.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            json_logs=_parse_bool("LOG_FORMAT_JSON", False),
        )
