from __future__ import annotations

import logging
from concurrent.futures import Future, wait
from dataclasses import dataclass, replace
from typing import Protocol

from incident_service.ai.validator import validate_new_incident
from incident_service.domain.factory import new_incident
from incident_service.domain.models import AiStatus, Incident
from incident_service.enrichment.errors import RequestValidationError

logger = logging.getLogger(__name__)


class EnrichmentTrigger(Protocol):
    def enrich_incident_async(self, incident: Incident) -> Future[None]: ...


class IncidentReader(Protocol):
    def save(self, incident: Incident) -> None: ...

    def find_by_id(self, incident_id: str) -> Incident | None: ...

    def find_by_status(self, status: AiStatus, limit: int | None = None) -> list[Incident]: ...

    def count_by_status(self) -> dict[str, int]: ...


@dataclass
class BatchStats:
    """Counters for one re-enrichment batch."""
    selected: int = 0
    enriched: int = 0
    failed: int = 0
    rejected: int = 0

    def summary(self) -> str:
        return (
            f"selected={self.selected} | enriched={self.enriched} | "
            f"failed={self.failed} | rejected={self.rejected}"
        )


class IncidentService:
    def __init__(self, repository: IncidentReader, coordinator: EnrichmentTrigger) -> None:
        self._repository = repository
        self._coordinator = coordinator

    def create_incident(
        self,
        description: str,
        reported_by: str,
        wait_seconds: float | None = None,
    ) -> Incident:
        """
        Stores a new PENDING incident and schedules its enrichment.

        Blank or oversized input raises RequestValidationError before anything
        is stored.

        Returns without waiting unless `wait_seconds` is given, in which case
        the stored state is re-read once the task finishes or the wait runs
        out, whichever comes first.
        """
        incident = new_incident(description, reported_by)
        violations = validate_new_incident(incident)
        if violations:
            raise RequestValidationError(violations)
        self._repository.save(incident)
        logger.info("incident created | id=%s reported_by=%s", incident.incident_id, incident.reported_by)

        # The task mutates its own copy; the caller's instance stays PENDING.
        future = self._coordinator.enrich_incident_async(replace(incident))

        if wait_seconds is None:
            return incident

        done, _ = wait([future], timeout=wait_seconds)
        if not done:
            logger.info("enrichment still running | id=%s waited=%.1fs", incident.incident_id, wait_seconds)
        return self._repository.find_by_id(incident.incident_id) or incident

    def get_incident(self, incident_id: str) -> Incident | None:
        return self._repository.find_by_id(incident_id)

    def count_by_status(self) -> dict[str, int]:
        return self._repository.count_by_status()

    def reenrich(self, status: AiStatus, limit: int | None = None) -> BatchStats:
        stats = BatchStats()
        incidents = self._repository.find_by_status(status, limit=limit)
        stats.selected = len(incidents)

        futures = {
            self._coordinator.enrich_incident_async(incident): incident for incident in incidents
        }
        for future, incident in futures.items():
            try:
                future.result()
            except RequestValidationError:
                stats.rejected += 1
                continue
            except Exception:
                logger.exception("re-enrichment task failed | id=%s", incident.incident_id)
                stats.failed += 1
                continue
            if incident.ai_status is AiStatus.ENRICHED:
                stats.enriched += 1
            else:
                stats.failed += 1

        logger.info("re-enrichment complete | status=%s | %s", status.value, stats.summary())
        return stats
