"""
Retry policy shared by the Shopify and CustomsCity clients.

Two kinds of retry:
- Rate limiting (RateLimitedError): wait for the advertised delay and try
  again. These waits do not count against the attempt budget.
- Transient failures (TransientUpstreamError): exponential backoff,
  ``backoff_base * 2**attempt`` seconds, up to ``max_attempts`` tries.

Anything else raised by the operation propagates untouched.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from pn_filer.errors import RateLimitedError, RetryExhaustedError, TransientUpstreamError

logger = logging.getLogger("pnfiler.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_base: float = 1.0
    default_retry_after: float = 2.0
    max_rate_limit_waits: int = 10
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return self.backoff_base * (2 ** attempt)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "request") -> T:
        attempt = 0
        rate_limit_waits = 0

        while True:
            try:
                return await operation()
            except RateLimitedError as e:
                rate_limit_waits += 1
                if rate_limit_waits > self.max_rate_limit_waits:
                    raise RetryExhaustedError(
                        f"{description}: still rate limited after {self.max_rate_limit_waits} waits",
                        e.service,
                        e.status_code,
                    ) from e
                delay = e.retry_after if e.retry_after is not None else self.default_retry_after
                logger.warning("%s rate limited, waiting %.1fs", description, delay)
                await self.sleep(delay)
            except TransientUpstreamError as e:
                if attempt + 1 >= self.max_attempts:
                    raise RetryExhaustedError(
                        f"{description}: failed after {self.max_attempts} attempts: {e.message}",
                        e.service,
                        e.status_code,
                    ) from e
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s, retrying in %.1fs",
                    description, attempt + 1, self.max_attempts, e.message, delay,
                )
                attempt += 1
                await self.sleep(delay)
