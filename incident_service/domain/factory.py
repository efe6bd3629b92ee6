from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from incident_service.domain.models import AiStatus, EnrichmentRequest, Incident


def _safe_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def new_incident(
    description: str,
    reported_by: str,
    now: datetime | None = None,
    id_factory: Callable[[], Any] = uuid.uuid4,
) -> Incident:
    """
    Builds a freshly reported incident in the PENDING state.

    Input is only stripped here; callers check it with
    ai.validator.validate_new_incident before storing.
    """
    created = now or datetime.now(timezone.utc)
    return Incident(
        incident_id=str(id_factory()),
        description=_safe_text(description),
        reported_by=_safe_text(reported_by),
        created_at=created.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        ai_status=AiStatus.PENDING,
    )


def build_enrichment_request(incident: Incident) -> EnrichmentRequest:
    return EnrichmentRequest(
        incident_id=incident.incident_id,
        description=incident.description,
        reported_by=incident.reported_by,
        created_at=incident.created_at,
    )
