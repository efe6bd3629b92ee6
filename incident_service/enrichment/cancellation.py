from __future__ import annotations

import threading

from incident_service.enrichment.clock import Clock, SystemClock
from incident_service.enrichment.errors import EnrichmentCancelled


class CancelToken:
    """
    Cooperative cancellation handle passed into an AI client call.

    The coordinator cancels it once the per-attempt timeout elapses. Clients
    check it before and after blocking work and bound their own I/O by
    remaining() so an abandoned call cleans itself up instead of lingering.
    """

    def __init__(self, deadline: float | None = None, clock: Clock | None = None) -> None:
        self._event = threading.Event()
        self._deadline = deadline
        self._clock = clock or SystemClock()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock.monotonic())

    def wait(self, seconds: float | None) -> bool:
        """Blocks up to `seconds`; returns True if the token was cancelled meanwhile."""
        return self._event.wait(seconds)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise EnrichmentCancelled("AI call cancelled after timeout")
