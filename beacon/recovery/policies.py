"""Retry and backoff policies for external calls."""

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DURATION_TOKEN = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_MS = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000}


class RetryableError(Exception):
    """Transient failure worth retrying.

    Carries the HTTP status and response headers when the failure came from
    a response, so the policy can honor server retry hints.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.headers = headers or {}


@dataclass
class RetryConfig:
    """Retry configuration."""

    max_retries: int = 3
    base_backoff_ms: int = 400
    max_backoff_ms: int = 12_000
    max_server_delay_ms: int = 60_000
    max_jitter_ms: int = 250


def is_retryable_status(status: int) -> bool:
    """Rate limits and server errors are retryable."""
    return status == 429 or status >= 500


def parse_retry_after_ms(value: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """Parse a Retry-After header (seconds or HTTP date) into milliseconds."""
    if value is None or not value.strip():
        return None

    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        seconds = None
    if seconds is not None:
        return round(seconds * 1000) if seconds >= 0 else None

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0, round((when - now).total_seconds() * 1000))


def parse_duration_ms(value: Optional[str]) -> Optional[int]:
    """Parse rate-limit reset durations such as ``1m30s``, ``250ms`` or ``2``."""
    if value is None:
        return None

    text = re.sub(r"\s+", "", value).lower()
    if not text:
        return None

    if re.fullmatch(r"\d+(\.\d+)?", text):
        return round(float(text) * 1000)

    total = 0.0
    consumed = 0
    for match in _DURATION_TOKEN.finditer(text):
        total += float(match.group(1)) * _UNIT_MS[match.group(2)]
        consumed += len(match.group(0))

    if consumed == 0 or consumed != len(text):
        return None
    return round(total)


class RetryPolicy:
    """Bounded retries with exponential backoff and server hints."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        jitter: Optional[Callable[[int], int]] = None,
    ):
        """Initialize retry policy.

        Args:
            config: Retry configuration
            jitter: Returns a jitter in [0, max] ms; random by default
        """
        self.config = config or RetryConfig()
        self._jitter = jitter or (lambda upper: random.randint(0, upper))

    def should_retry(self, attempt: int) -> bool:
        """Check if another attempt is allowed.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            True if should retry
        """
        return attempt < self.config.max_retries

    def server_suggested_delay_ms(self, headers: Mapping[str, str]) -> Optional[int]:
        """Largest delay the server asked for, capped."""
        lowered = {k.lower(): v for k, v in headers.items()}
        hints = [
            parse_retry_after_ms(lowered.get("retry-after")),
            parse_duration_ms(lowered.get("x-ratelimit-reset-requests")),
            parse_duration_ms(lowered.get("x-ratelimit-reset-tokens")),
        ]
        values = [hint for hint in hints if hint is not None]
        if not values:
            return None
        return min(self.config.max_server_delay_ms, max(values))

    def compute_delay_ms(
        self,
        attempt: int,
        status: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Delay before the next attempt.

        Args:
            attempt: Attempt that just failed (0-indexed)
            status: HTTP status of the failure, if any
            headers: Response headers of the failure, if any

        Returns:
            Delay in milliseconds
        """
        exponential = min(
            self.config.max_backoff_ms, self.config.base_backoff_ms * 2**attempt
        )
        delay = exponential + self._jitter(self.config.max_jitter_ms)

        if status == 429 and headers:
            server_delay = self.server_suggested_delay_ms(headers)
            if server_delay is not None:
                return max(delay, server_delay)

        return delay


async def retry_with_backoff(
    operation: str,
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``func`` until it succeeds or retries are exhausted.

    Only RetryableError triggers a retry; anything else propagates at once.

    Args:
        operation: Name used in log messages
        func: Async callable to run
        policy: Retry policy
        sleep: Async sleep (seconds), injectable for tests

    Returns:
        Result of ``func``

    Raises:
        RetryableError: If the last allowed attempt still failed
    """
    attempt = 0
    while True:
        try:
            return await func()
        except RetryableError as e:
            if not policy.should_retry(attempt):
                logger.error(f"Retries exhausted for {operation} (attempt {attempt + 1})")
                raise
            delay_ms = policy.compute_delay_ms(attempt, e.status, e.headers)
            logger.warning(
                f"{operation} attempt {attempt + 1} failed: {e}; retrying in {delay_ms}ms"
            )
            await sleep(delay_ms / 1000)
            attempt += 1
