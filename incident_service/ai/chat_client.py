from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from incident_service.ai.prompt_templates import SYSTEM_PROMPT, build_user_prompt
from incident_service.domain.models import EnrichmentRequest, EnrichmentResult
from incident_service.enrichment.cancellation import CancelToken
from incident_service.enrichment.errors import EnrichmentClientError

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def parse_enrichment_result(text: str) -> EnrichmentResult:
    """
    Parses the model's reply into an EnrichmentResult.

    Models sometimes wrap the object in a ```json fence or add a sentence
    around it; the first {...} block is used in that case. Missing keys are
    left as empty strings so the coordinator's result validation reports them.
    """
    raw = (text or "").strip()
    fenced = _FENCED_JSON.search(raw)
    if fenced:
        raw = fenced.group(1)
    elif not raw.startswith("{"):
        start, end = raw.find("{"), raw.rfind("}")
        if start != -1 and end > start:
            raw = raw[start:end + 1]

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise EnrichmentClientError(f"Failed to parse AI enrichment response: {exc}") from exc
    if not isinstance(data, dict):
        raise EnrichmentClientError("Failed to parse AI enrichment response: expected a JSON object")

    def _text(*keys: str) -> str:
        for key in keys:
            value = data.get(key)
            if value is not None:
                return str(value).strip()
        return ""

    return EnrichmentResult(
        severity=_text("severity").upper(),
        category=_text("category").upper(),
        summary=_text("summary"),
        recommended_action=_text("recommendedAction", "recommended_action"),
    )


class ChatCompletionEnrichmentClient:
    """Single-shot enrichment over an OpenAI-compatible /chat/completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        provider_name: str = "openai",
        extra_headers: dict[str, str] | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._provider_name = provider_name
        self._extra_headers = extra_headers or {}
        self._request_timeout = request_timeout

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def enrich_incident(
        self,
        request: EnrichmentRequest,
        cancel_token: CancelToken | None = None,
    ) -> EnrichmentResult:
        if not self._api_key:
            raise EnrichmentClientError(f"{self._provider_name} API key is not configured")

        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(request)},
            ],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            **self._extra_headers,
        }
        endpoint = f"{self._base_url}/chat/completions"

        timeout = self._request_timeout
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
            remaining = cancel_token.remaining()
            if remaining is not None:
                timeout = min(timeout, max(remaining, 0.1))

        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(endpoint, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            details = self._extract_error_details(exc.response)
            raise EnrichmentClientError(
                f"{self._provider_name} API error: status={exc.response.status_code} details={details}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise EnrichmentClientError(f"{self._provider_name} request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise EnrichmentClientError(f"{self._provider_name} unavailable: {exc}") from exc
        except ValueError as exc:
            raise EnrichmentClientError(f"{self._provider_name} returned non-JSON body: {exc}") from exc

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        content = self._extract_content(data)
        logger.debug("%s replied | id=%s chars=%d", self._provider_name, request.incident_id, len(content))
        return parse_enrichment_result(content)

    def _extract_content(self, data: Any) -> str:
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise EnrichmentClientError(f"{self._provider_name} response has no choices") from exc
        if not isinstance(message, dict):
            raise EnrichmentClientError(f"{self._provider_name} response message is malformed")

        refusal = message.get("refusal")
        if refusal:
            raise EnrichmentClientError(f"{self._provider_name} refused: {refusal}")

        content = (message.get("content") or "").strip()
        if not content:
            raise EnrichmentClientError(f"{self._provider_name} returned empty content")
        return content

    @staticmethod
    def _extract_error_details(response: httpx.Response) -> str:
        try:
            data = response.json()
            if isinstance(data, dict):
                for key in ("error", "message", "detail"):
                    if key in data:
                        return str(data[key])
        except Exception:  # noqa: BLE001
            pass
        return response.text.strip() or f"status={response.status_code}"
