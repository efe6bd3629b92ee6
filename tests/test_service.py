from concurrent.futures import Future

import pytest

from incident_service.ai.mock_client import MockEnrichmentClient
from incident_service.domain.models import AiStatus, Incident
from incident_service.enrichment.coordinator import EnrichmentCoordinator
from incident_service.enrichment.errors import RequestValidationError
from incident_service.service import BatchStats, IncidentService
from incident_service.storage.repository import IncidentRepository


class _NoSleepClock:
    def __init__(self) -> None:
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return 0.0

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


class _RecordingTrigger:
    def __init__(self) -> None:
        self.incidents: list[Incident] = []

    def enrich_incident_async(self, incident: Incident) -> Future:
        self.incidents.append(incident)
        future: Future = Future()
        future.set_result(None)
        return future


@pytest.fixture
def repo(tmp_path) -> IncidentRepository:
    return IncidentRepository(f"sqlite:///{tmp_path}/service.db")


def test_create_incident_saves_pending_and_triggers_enrichment(repo) -> None:
    trigger = _RecordingTrigger()
    service = IncidentService(repo, trigger)

    incident = service.create_incident("Test incident", "user123")

    assert incident.incident_id
    assert incident.description == "Test incident"
    assert incident.reported_by == "user123"
    assert incident.ai_status is AiStatus.PENDING
    assert incident.created_at.endswith("Z")
    assert repo.find_by_id(incident.incident_id).ai_status is AiStatus.PENDING

    assert len(trigger.incidents) == 1
    assert trigger.incidents[0] == incident
    assert trigger.incidents[0] is not incident


def test_create_incident_with_wait_returns_enriched_state(repo) -> None:
    with EnrichmentCoordinator(MockEnrichmentClient(), repo, clock=_NoSleepClock()) as coordinator:
        service = IncidentService(repo, coordinator)
        incident = service.create_incident("Database outage", "Tester", wait_seconds=5.0)

    assert incident.ai_status is AiStatus.ENRICHED
    assert incident.severity == "HIGH"
    assert incident.category == "SECURITY"
    assert service.get_incident(incident.incident_id) == incident


def test_create_incident_never_raises_for_failed_enrichment(repo) -> None:
    client = MockEnrichmentClient(failure_rate=1.0)
    with EnrichmentCoordinator(client, repo, clock=_NoSleepClock()) as coordinator:
        service = IncidentService(repo, coordinator)
        incident = service.create_incident("Database outage", "Tester", wait_seconds=5.0)

    assert incident.ai_status is AiStatus.FAILED
    assert "mock AI provider unavailable" in incident.ai_error_message
    assert client.calls == 3


def test_create_incident_rejects_blank_input_without_storing(repo) -> None:
    trigger = _RecordingTrigger()
    service = IncidentService(repo, trigger)

    with pytest.raises(RequestValidationError, match="description: must not be blank"):
        service.create_incident("   ", "Tester")
    with pytest.raises(RequestValidationError, match="reported_by: must not be blank"):
        service.create_incident("Database outage", "")

    assert repo.count_by_status() == {}
    assert trigger.incidents == []


def test_create_incident_rejects_oversized_description(repo) -> None:
    trigger = _RecordingTrigger()
    service = IncidentService(repo, trigger)

    with pytest.raises(RequestValidationError, match="size must be at most 500"):
        service.create_incident("x" * 501, "Tester")

    assert repo.count_by_status() == {}
    assert trigger.incidents == []
    assert service.create_incident("x" * 500, "Tester").ai_status is AiStatus.PENDING


def test_reenrich_pending_and_rejected(repo) -> None:
    for incident_id, description in [("a", "Disk full"), ("b", "CPU at 100%"), ("c", "")]:
        repo.save(Incident(incident_id, description, "oncall", "2026-01-15T10:00:00Z"))

    with EnrichmentCoordinator(MockEnrichmentClient(), repo, clock=_NoSleepClock()) as coordinator:
        stats = IncidentService(repo, coordinator).reenrich(AiStatus.PENDING)

    assert stats == BatchStats(selected=3, enriched=2, failed=0, rejected=1)
    assert repo.count_by_status() == {"ENRICHED": 2, "PENDING": 1}


def test_reenrich_failed_incidents_counts_failures(repo) -> None:
    failed = Incident("a", "Disk full", "oncall", "2026-01-15T10:00:00Z")
    failed.ai_status = AiStatus.FAILED
    failed.ai_error_message = "timed out"
    repo.save(failed)

    clock = _NoSleepClock()
    with EnrichmentCoordinator(MockEnrichmentClient(failure_rate=1.0), repo, clock=clock) as coordinator:
        stats = IncidentService(repo, coordinator).reenrich(AiStatus.FAILED, limit=10)

    assert stats.selected == 1
    assert stats.failed == 1
    assert clock.sleeps == [1.0, 2.0]
    assert "selected=1" in stats.summary()


def test_reenrich_counts_crashed_task_as_failed(repo, caplog) -> None:
    class _BrokenStoreTrigger:
        def enrich_incident_async(self, incident: Incident) -> Future:
            future: Future = Future()
            if incident.incident_id == "b":
                future.set_exception(RuntimeError("disk full"))
            else:
                incident.ai_status = AiStatus.ENRICHED
                future.set_result(None)
            return future

    for incident_id in ("a", "b", "c"):
        repo.save(Incident(incident_id, "Disk full", "oncall", "2026-01-15T10:00:00Z"))

    stats = IncidentService(repo, _BrokenStoreTrigger()).reenrich(AiStatus.PENDING)

    assert stats == BatchStats(selected=3, enriched=2, failed=1, rejected=0)
    assert "re-enrichment task failed | id=b" in caplog.text
