from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable

from incident_service.domain.models import EnrichmentRequest, EnrichmentResult
from incident_service.enrichment.cancellation import CancelToken
from incident_service.enrichment.clock import Clock
from incident_service.enrichment.outcome import ErrorKind, Outcome

logger = logging.getLogger(__name__)

AiCall = Callable[[EnrichmentRequest, CancelToken], EnrichmentResult]


def _start_call(call: AiCall, request: EnrichmentRequest, token: CancelToken) -> Future[EnrichmentResult]:
    """Runs `call` on its own daemon thread; a call stuck past its timeout holds no shared worker."""
    future: Future[EnrichmentResult] = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(call(request, token))
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)

    thread = threading.Thread(target=_run, daemon=True, name=f"ai-call-{request.incident_id}")
    thread.start()
    return future


def call_with_timeout(
    call: AiCall,
    request: EnrichmentRequest,
    timeout_seconds: float,
    clock: Clock,
) -> Outcome[EnrichmentResult]:
    """
    Runs one AI call and waits at most `timeout_seconds` for it.

    On timeout the token is cancelled and the call abandoned; the caller gets
    a TIMEOUT outcome right away even if the call keeps ignoring the token.
    """
    token = CancelToken(deadline=clock.monotonic() + timeout_seconds, clock=clock)
    future = _start_call(call, request, token)
    try:
        result = future.result(timeout=timeout_seconds)
    except FutureTimeoutError:
        token.cancel()
        logger.debug("AI call abandoned | id=%s timeout=%.1fs", request.incident_id, timeout_seconds)
        return Outcome.failure(
            ErrorKind.TIMEOUT,
            f"AI enrichment timed out after {timeout_seconds:g}s",
        )
    except Exception as exc:  # noqa: BLE001
        return Outcome.failure(ErrorKind.TRANSIENT, str(exc) or exc.__class__.__name__)
    return Outcome.success(result)
