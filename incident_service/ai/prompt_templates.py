from __future__ import annotations

from incident_service.domain.models import EnrichmentRequest

SEVERITY_LEVELS = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

SYSTEM_PROMPT = (
    "You are an incident triage assistant for an operations team. "
    "Classify each reported incident and suggest a remediation. "
    "Answer with a single JSON object and nothing else, using exactly these keys:\n"
    '  "severity": one of ' + ", ".join(SEVERITY_LEVELS) + ",\n"
    '  "category": one short upper-case word such as NETWORK, DATABASE, SECURITY, PERFORMANCE, APPLICATION,\n'
    '  "summary": one or two sentences describing the incident,\n'
    '  "recommendedAction": the next concrete step an on-call engineer should take.\n'
    "Never leave a value empty."
)

ENRICHMENT_PROMPT_TEMPLATE = """\
Incident ID: {incident_id}
Reported by: {reported_by}
Created at: {created_at}

Description:
{description}
"""


def build_user_prompt(request: EnrichmentRequest) -> str:
    return ENRICHMENT_PROMPT_TEMPLATE.format(
        incident_id=request.incident_id,
        reported_by=request.reported_by,
        created_at=request.created_at,
        description=request.description,
    )
