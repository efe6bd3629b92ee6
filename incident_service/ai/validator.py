from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Iterable

from incident_service.domain.models import EnrichmentRequest, EnrichmentResult, Incident

MAX_DESCRIPTION_LENGTH = 500


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


def validate_required(obj: Any, field_names: Iterable[str]) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    for name in field_names:
        value = getattr(obj, name, None)
        if value is None:
            violations.append(FieldViolation(name, "must not be null"))
        elif isinstance(value, str) and not value.strip():
            violations.append(FieldViolation(name, "must not be blank"))
    return violations


def validate_request(request: EnrichmentRequest) -> list[FieldViolation]:
    return validate_required(request, [f.name for f in fields(EnrichmentRequest)])


def validate_result(result: EnrichmentResult) -> list[FieldViolation]:
    return validate_required(result, [f.name for f in fields(EnrichmentResult)])


def validate_new_incident(incident: Incident) -> list[FieldViolation]:
    """Rules for user-supplied input, checked before an incident is stored."""
    violations = validate_required(incident, ("description", "reported_by"))
    if incident.description and len(incident.description) > MAX_DESCRIPTION_LENGTH:
        violations.append(FieldViolation("description", f"size must be at most {MAX_DESCRIPTION_LENGTH}"))
    return violations


def describe_violations(violations: Iterable[FieldViolation]) -> str:
    return "; ".join(str(v) for v in violations)
