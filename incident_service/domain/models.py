from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class AiStatus(str, Enum):
    PENDING = "PENDING"
    ENRICHED = "ENRICHED"
    FAILED = "FAILED"


@dataclass
class Incident:
    incident_id: str
    description: str
    reported_by: str
    created_at: str
    severity: str | None = None
    category: str | None = None
    ai_summary: str | None = None
    recommended_action: str | None = None
    ai_status: AiStatus = AiStatus.PENDING
    ai_error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["ai_status"] = self.ai_status.value
        return data


@dataclass(frozen=True)
class EnrichmentRequest:
    incident_id: str
    description: str
    reported_by: str
    created_at: str


@dataclass(frozen=True)
class EnrichmentResult:
    severity: str
    category: str
    summary: str
    recommended_action: str
