from __future__ import annotations

import logging
import os
import random
from pathlib import Path

from incident_service.ai.chat_client import ChatCompletionEnrichmentClient
from incident_service.ai.mock_client import MockEnrichmentClient
from incident_service.config import Settings
from incident_service.enrichment.backoff import BackoffPolicy
from incident_service.enrichment.coordinator import EnrichmentClient, EnrichmentCoordinator
from incident_service.service import IncidentService
from incident_service.storage.repository import IncidentRepository

logger = logging.getLogger(__name__)


def load_dotenv(path: str = ".env") -> None:
    """Fills missing environment variables from a dotenv file; set ones win."""
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            os.environ.setdefault(key, value)


def resolve_provider(settings: Settings) -> str:
    provider = settings.ai_provider
    if provider != "auto":
        return provider
    if settings.openai_api_key:
        return "openai"
    if settings.openrouter_api_key:
        return "openrouter"
    return "mock"


def build_enrichment_client(settings: Settings) -> EnrichmentClient:
    provider = resolve_provider(settings)

    if provider == "mock":
        logger.info(
            "AI provider: mock | failure_rate=%.2f latency=%.1fs seed=%s",
            settings.mock_failure_rate,
            settings.mock_latency_seconds,
            settings.mock_seed,
        )
        return MockEnrichmentClient(
            failure_rate=settings.mock_failure_rate,
            latency_seconds=settings.mock_latency_seconds,
            rng=random.Random(settings.mock_seed),
        )

    if provider == "openrouter":
        api_key = settings.openrouter_api_key
        model = settings.openrouter_model
        base_url = settings.openrouter_base_url
        extra_headers = {
            "HTTP-Referer": settings.openrouter_site_url,
            "X-Title": settings.openrouter_app_name,
        }
    elif provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        base_url = settings.openai_base_url
        extra_headers = {}
    else:
        raise ValueError(f"Unknown AI_PROVIDER: {provider}")

    if not api_key:
        logger.warning("AI_PROVIDER=%s but its API key is empty; every enrichment will fail.", provider)

    logger.info("AI provider: %s | model=%s base_url=%s", provider, model, base_url)
    return ChatCompletionEnrichmentClient(
        api_key=api_key,
        model=model,
        base_url=base_url,
        provider_name=provider,
        extra_headers=extra_headers,
        request_timeout=settings.enrichment_timeout_seconds,
    )


def build_coordinator(settings: Settings, repository: IncidentRepository) -> EnrichmentCoordinator:
    return EnrichmentCoordinator(
        client=build_enrichment_client(settings),
        repository=repository,
        max_attempts=settings.enrichment_max_attempts,
        timeout_seconds=settings.enrichment_timeout_seconds,
        backoff=BackoffPolicy(
            initial_delay=settings.backoff_initial_seconds,
            multiplier=settings.backoff_multiplier,
            max_delay=settings.backoff_max_seconds,
        ),
        max_workers=settings.enrichment_workers,
    )


def build_service(settings: Settings) -> tuple[IncidentService, EnrichmentCoordinator]:
    repository = IncidentRepository(settings.database_url)
    coordinator = build_coordinator(settings, repository)
    return IncidentService(repository, coordinator), coordinator
