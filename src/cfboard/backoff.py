from __future__ import annotations

from dataclasses import dataclass

from .errors import RateLimitError

MAX_BACKOFF_MULTIPLIER = 32
RATE_LIMIT_DEFAULT_MULTIPLIER = 2


@dataclass
class BackoffState:
    consecutive_errors: int = 0
    skip_until: float = 0.0

    def should_skip(self, now: float) -> bool:
        return now < self.skip_until

    def reset(self) -> None:
        self.consecutive_errors = 0
        self.skip_until = 0.0

    def record_success(self) -> None:
        self.reset()

    def record_failure(self, now: float, interval: float, error: BaseException | None = None) -> float:
        """Register one failed fetch and return the cooldown applied (seconds)."""
        self.consecutive_errors += 1
        if isinstance(error, RateLimitError):
            hint = error.retry_after_seconds
            if hint is not None and hint > 0:
                delay = float(hint)
            else:
                delay = interval * RATE_LIMIT_DEFAULT_MULTIPLIER
        else:
            delay = interval * self.multiplier(self.consecutive_errors)
        self.skip_until = now + delay
        return delay

    def reset_for_manual_refresh(self) -> None:
        # a failing manual refresh then counts as the first failure (+2I)
        self.reset()

    @staticmethod
    def multiplier(consecutive_errors: int) -> int:
        if consecutive_errors <= 0:
            return 0
        # cap the exponent before computing the power
        exponent = min(consecutive_errors, MAX_BACKOFF_MULTIPLIER.bit_length() - 1)
        return min(2 ** exponent, MAX_BACKOFF_MULTIPLIER)
