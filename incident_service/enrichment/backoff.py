from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class BackoffPolicy:
    """
    Exponential backoff: initial_delay, doubled (by `multiplier`) after every
    failure and capped at max_delay. With the defaults: 1, 2, 4, 8, 10, 10...

    `jitter` is a +/- fraction drawn from the injected rng; zero keeps the
    sequence exact.
    """

    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 10.0
    jitter: float = 0.0
    rng: random.Random = field(default_factory=random.Random)

    def delays(self) -> Iterator[float]:
        delay = min(self.initial_delay, self.max_delay)
        while True:
            yield self._apply_jitter(delay)
            delay = min(delay * self.multiplier, self.max_delay)

    def _apply_jitter(self, delay: float) -> float:
        if not self.jitter:
            return delay
        spread = self.rng.uniform(-self.jitter, self.jitter)
        return min(max(0.0, delay * (1 + spread)), self.max_delay)
