from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from aprovamed.core.config import CheckoutConfig


@dataclass(frozen=True)
class InvoicePollPolicy:
    """Bounded schedule for looking up the invoice Asaas generates after a subscription.

    Asaas does not document how long the first charge takes to appear, so the
    bound is configuration rather than a guess; the default is a single lookup
    after 1.5 seconds.
    """

    max_attempts: int = 1
    initial_delay: float = 1.5
    max_delay: float = 5.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")

    @classmethod
    def from_config(cls, config: CheckoutConfig) -> "InvoicePollPolicy":
        return cls(
            max_attempts=config.poll_attempts,
            initial_delay=config.poll_delay_seconds,
            max_delay=config.poll_max_delay_seconds,
            multiplier=config.poll_multiplier,
        )

    def delays(self) -> Iterator[float]:
        delay = min(self.initial_delay, self.max_delay)
        for _ in range(self.max_attempts):
            yield delay
            delay = min(delay * self.multiplier, self.max_delay)
