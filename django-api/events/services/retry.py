"""Bounded retry with exponential backoff for transient store failures."""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Self, TypeVar

from django.conf import settings

from events.domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    base_backoff_ms: int = 20
    max_backoff_ms: int = 500

    @classmethod
    def from_settings(cls) -> Self:
        return cls(
            max_attempts=getattr(settings, "ENROLLMENT_MAX_ATTEMPTS", cls.max_attempts),
            base_backoff_ms=getattr(settings, "ENROLLMENT_BACKOFF_BASE_MS", cls.base_backoff_ms),
            max_backoff_ms=getattr(settings, "ENROLLMENT_BACKOFF_MAX_MS", cls.max_backoff_ms),
        )

    def backoff_seconds(self, attempt: int) -> float:
        # 2^(attempt-1) * base, capped, with full jitter
        ceiling = min(self.max_backoff_ms, (2 ** max(0, attempt - 1)) * self.base_backoff_ms)
        return random.uniform(0, ceiling) / 1000


def run_with_retry(
    operation: str,
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``fn``, retrying transient StoreUnavailableError up to the policy limit.

    Domain errors and non-transient store failures propagate immediately.
    """
    attempt = 1
    while True:
        try:
            return fn()
        except StoreUnavailableError as exc:
            if not exc.transient or attempt >= policy.max_attempts:
                logger.error(
                    "[retry] giving up op=%s attempt=%s transient=%s error=%s",
                    operation,
                    attempt,
                    exc.transient,
                    exc,
                )
                raise
            delay = policy.backoff_seconds(attempt)
            logger.warning(
                "[retry] op=%s attempt=%s/%s delay_ms=%.0f reason=%s",
                operation,
                attempt,
                policy.max_attempts,
                delay * 1000,
                exc.message,
            )
            sleep(delay)
            attempt += 1
