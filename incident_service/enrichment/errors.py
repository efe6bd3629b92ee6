from __future__ import annotations

from incident_service.ai.validator import FieldViolation, describe_violations


class EnrichmentClientError(RuntimeError):
    """Any failure of a single AI call: network, HTTP status, parse, refusal."""


class EnrichmentCancelled(EnrichmentClientError):
    pass


class RequestValidationError(ValueError):
    def __init__(self, violations: list[FieldViolation]) -> None:
        self.violations = list(violations)
        super().__init__(f"Validation failed: {describe_violations(self.violations)}")
