from __future__ import annotations

import logging
import random
import time

from incident_service.domain.models import EnrichmentRequest, EnrichmentResult
from incident_service.enrichment.cancellation import CancelToken
from incident_service.enrichment.errors import EnrichmentClientError

logger = logging.getLogger(__name__)

DEFAULT_RESULT = EnrichmentResult(
    severity="HIGH",
    category="SECURITY",
    summary="Mock summary of the incident",
    recommended_action="Take immediate action",
)


class MockEnrichmentClient:
    """
    Offline stand-in for the AI provider.

    Returns a fixed result. `failure_rate` and `latency_seconds` simulate an
    unreliable model; both draw from the injected rng so runs are repeatable.
    """

    def __init__(
        self,
        result: EnrichmentResult | None = None,
        failure_rate: float = 0.0,
        latency_seconds: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._result = result or DEFAULT_RESULT
        self._failure_rate = failure_rate
        self._latency_seconds = latency_seconds
        self._rng = rng or random.Random()
        self.calls = 0

    def enrich_incident(
        self,
        request: EnrichmentRequest,
        cancel_token: CancelToken | None = None,
    ) -> EnrichmentResult:
        self.calls += 1

        if self._latency_seconds > 0:
            delay = self._rng.uniform(0, self._latency_seconds)
            if cancel_token is not None:
                if cancel_token.wait(delay):
                    cancel_token.raise_if_cancelled()
            else:
                time.sleep(delay)

        if self._failure_rate and self._rng.random() < self._failure_rate:
            logger.debug("mock client simulated failure | id=%s", request.incident_id)
            raise EnrichmentClientError("mock AI provider unavailable")

        return self._result
