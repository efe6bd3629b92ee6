import random

import pytest

from incident_service.ai.mock_client import DEFAULT_RESULT, MockEnrichmentClient
from incident_service.domain.models import EnrichmentRequest
from incident_service.enrichment.cancellation import CancelToken
from incident_service.enrichment.errors import EnrichmentCancelled, EnrichmentClientError

REQUEST = EnrichmentRequest("1", "Disk full", "oncall", "2026-01-19T18:00:00Z")


def _outcomes(client: MockEnrichmentClient, n: int) -> list[bool]:
    results = []
    for _ in range(n):
        try:
            client.enrich_incident(REQUEST)
            results.append(True)
        except EnrichmentClientError:
            results.append(False)
    return results


def test_default_result() -> None:
    client = MockEnrichmentClient()

    assert client.enrich_incident(REQUEST) == DEFAULT_RESULT
    assert client.calls == 1


def test_always_failing() -> None:
    with pytest.raises(EnrichmentClientError):
        MockEnrichmentClient(failure_rate=1.0).enrich_incident(REQUEST)


def test_seeded_failures_are_repeatable() -> None:
    first = _outcomes(MockEnrichmentClient(failure_rate=0.5, rng=random.Random(42)), 20)
    second = _outcomes(MockEnrichmentClient(failure_rate=0.5, rng=random.Random(42)), 20)

    assert first == second
    assert True in first and False in first


def test_latency_aborts_on_cancelled_token() -> None:
    token = CancelToken()
    token.cancel()

    with pytest.raises(EnrichmentCancelled):
        MockEnrichmentClient(latency_seconds=5.0).enrich_incident(REQUEST, token)
