from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

from incident_service.ai.validator import describe_violations, validate_request, validate_result
from incident_service.domain.factory import build_enrichment_request
from incident_service.domain.models import AiStatus, EnrichmentRequest, EnrichmentResult, Incident
from incident_service.enrichment.backoff import BackoffPolicy
from incident_service.enrichment.cancellation import CancelToken
from incident_service.enrichment.clock import Clock, SystemClock
from incident_service.enrichment.errors import RequestValidationError
from incident_service.enrichment.outcome import ErrorKind, Outcome
from incident_service.enrichment.timeout import call_with_timeout

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
TIMEOUT_SECONDS = 10.0


class EnrichmentClient(Protocol):
    def enrich_incident(
        self,
        request: EnrichmentRequest,
        cancel_token: CancelToken | None = None,
    ) -> EnrichmentResult: ...


class IncidentStore(Protocol):
    def save(self, incident: Incident) -> None: ...


class EnrichmentCoordinator:
    """
    Drives one incident from PENDING to ENRICHED or FAILED.

    enrich() validates the outgoing request, calls the AI client under a
    per-attempt timeout, retries with exponential backoff, validates the
    result and writes the incident to the store exactly once. AI failures are
    recorded on the incident, never raised; only a malformed request raises.
    """

    def __init__(
        self,
        client: EnrichmentClient,
        repository: IncidentStore,
        max_attempts: int = MAX_ATTEMPTS,
        timeout_seconds: float = TIMEOUT_SECONDS,
        backoff: BackoffPolicy | None = None,
        clock: Clock | None = None,
        max_workers: int = 4,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._client = client
        self._repository = repository
        self._max_attempts = max_attempts
        self._timeout_seconds = timeout_seconds
        self._backoff = backoff or BackoffPolicy()
        self._clock = clock or SystemClock()
        self._task_executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="enrichment",
        )

    def __enter__(self) -> "EnrichmentCoordinator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def shutdown(self, wait: bool = True) -> None:
        self._task_executor.shutdown(wait=wait)

    def enrich_incident_async(self, incident: Incident) -> Future[None]:
        """Schedules enrich() off the caller's thread and returns its future."""
        return self._task_executor.submit(self._run_task, incident)

    def _run_task(self, incident: Incident) -> None:
        try:
            self.enrich(incident)
        except RequestValidationError as exc:
            logger.error("enrichment rejected | id=%s error=%s", incident.incident_id, exc)
            raise
        except Exception:
            logger.exception("enrichment task crashed | id=%s", incident.incident_id)
            raise

    def enrich(self, incident: Incident) -> None:
        request = build_enrichment_request(incident)
        violations = validate_request(request)
        if violations:
            raise RequestValidationError(violations)

        if incident.ai_status is not AiStatus.PENDING:
            logger.info(
                "re-enriching incident | id=%s previous_status=%s",
                incident.incident_id,
                incident.ai_status.value,
            )

        delays = self._backoff.delays()
        for attempt in range(1, self._max_attempts + 1):
            outcome = self._attempt(request)

            if outcome.ok:
                self._apply_result(incident, outcome.value)
                logger.info(
                    "incident enriched | id=%s attempt=%d severity=%s category=%s",
                    incident.incident_id,
                    attempt,
                    incident.severity,
                    incident.category,
                )
                break

            logger.warning(
                "enrichment attempt failed | id=%s attempt=%d/%d kind=%s error=%s",
                incident.incident_id,
                attempt,
                self._max_attempts,
                outcome.error.kind.value,
                outcome.error.message,
            )

            if attempt == self._max_attempts:
                incident.ai_status = AiStatus.FAILED
                incident.ai_error_message = (
                    f"AI enrichment failed after {attempt} attempt(s): {outcome.error.message}"
                )
                logger.error(
                    "incident enrichment failed | id=%s attempts=%d",
                    incident.incident_id,
                    attempt,
                )
                break

            self._clock.sleep(next(delays))

        self._repository.save(incident)

    def _attempt(self, request: EnrichmentRequest) -> Outcome[EnrichmentResult]:
        outcome = call_with_timeout(
            self._client.enrich_incident,
            request,
            self._timeout_seconds,
            self._clock,
        )
        if not outcome.ok:
            return outcome
        if outcome.value is None:
            return Outcome.failure(ErrorKind.VALIDATION, "invalid AI result: empty response")
        violations = validate_result(outcome.value)
        if violations:
            return Outcome.failure(
                ErrorKind.VALIDATION,
                f"invalid AI result: {describe_violations(violations)}",
            )
        return outcome

    @staticmethod
    def _apply_result(incident: Incident, result: EnrichmentResult) -> None:
        incident.severity = result.severity
        incident.category = result.category
        incident.ai_summary = result.summary
        incident.recommended_action = result.recommended_action
        incident.ai_status = AiStatus.ENRICHED
        incident.ai_error_message = None
