"""
Retry Controller

Bounded retry loop with exponential backoff around a single upstream fetch.
Used by the image route, the one upstream observed to fail transiently.

State machine per request:
    IDLE -> ATTEMPTING(k) -> SUCCESS | NOT_FOUND | ATTEMPTING(k+1) | EXHAUSTED
with k <= max_attempts.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field

from ..core.exceptions import NetworkError, ProxyError, RetryExhaustedError, UpstreamError
from ..models.upstream import AttemptRecord, UpstreamRequest, UpstreamResult

logger = logging.getLogger("tmdb_proxy.retry")

RequestFactory = Callable[[int, float], UpstreamRequest]
Sender = Callable[[UpstreamRequest], Awaitable[UpstreamResult]]
Sleeper = Callable[[float], Awaitable[None]]


class RetryState(str, Enum):
    """Terminal state of a retry run."""

    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    EXHAUSTED = "EXHAUSTED"


class RetryPolicy(BaseModel):
    """Retry bounds. All durations in seconds."""

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=0.5, ge=0)
    max_delay: float = Field(default=5.0, ge=0)
    attempt_timeout: float = Field(default=10.0, gt=0)
    timeout_step: float = Field(default=0.0, ge=0)
    deadline: float = Field(default=35.0, gt=0)

    @classmethod
    def from_config(cls, app_config) -> "RetryPolicy":
        return cls(
            max_attempts=app_config.IMAGE_RETRY_MAX_ATTEMPTS,
            base_delay=app_config.IMAGE_RETRY_BASE_DELAY,
            max_delay=app_config.IMAGE_RETRY_MAX_DELAY,
            attempt_timeout=app_config.IMAGE_ATTEMPT_TIMEOUT,
            timeout_step=app_config.IMAGE_ATTEMPT_TIMEOUT_STEP,
            deadline=app_config.IMAGE_REQUEST_DEADLINE,
        )

    def delay_for(self, attempt: int) -> float:
        """Wait before the attempt that follows ``attempt`` (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    def timeout_for(self, attempt: int) -> float:
        return self.attempt_timeout + self.timeout_step * (attempt - 1)


class RetryOutcome(BaseModel):
    """Terminal result of a retry run that did not exhaust its attempts."""

    state: RetryState
    result: UpstreamResult
    attempts: List[AttemptRecord]


class RetryController:
    """
    Runs an upstream fetch until it succeeds, hits a terminal 404, or runs
    out of attempts.

    2xx and 404 end the loop. Any other status and any NetworkError are
    retried. The whole run is additionally bounded by ``policy.deadline``.
    """

    def __init__(self, policy: RetryPolicy, sleep: Optional[Sleeper] = None):
        self.policy = policy
        self._sleep = sleep or asyncio.sleep

    async def run(self, build_request: RequestFactory, send: Sender) -> RetryOutcome:
        """
        Args:
            build_request: called as (attempt, timeout) for every attempt
            send: performs one call and returns the fully-read result

        Returns:
            RetryOutcome in state SUCCESS or NOT_FOUND

        Raises:
            RetryExhaustedError: attempts (or the deadline) ran out
        """
        attempts: List[AttemptRecord] = []
        failures: List[ProxyError] = []
        try:
            return await asyncio.wait_for(
                self._attempt_loop(build_request, send, attempts, failures),
                timeout=self.policy.deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Retry deadline exceeded",
                extra={
                    "deadline": self.policy.deadline,
                    "attempts": [a.describe() for a in attempts],
                },
            )
            raise RetryExhaustedError(
                attempts, NetworkError(TimeoutError("request deadline exceeded"))
            )

    async def _attempt_loop(
        self,
        build_request: RequestFactory,
        send: Sender,
        attempts: List[AttemptRecord],
        failures: List[ProxyError],
    ) -> RetryOutcome:
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            timeout = self.policy.timeout_for(attempt)
            record = AttemptRecord(number=attempt, timeout=timeout)
            attempts.append(record)

            try:
                result = await send(build_request(attempt, timeout))
            except NetworkError as e:
                record.error = type(e.cause).__name__
                failures.append(e)
                logger.info(f"Fetch error on attempt {attempt}/{max_attempts}: {record.error}")
            else:
                record.status_code = result.status_code
                if result.ok:
                    logger.debug(f"Fetch succeeded on attempt {attempt}")
                    return RetryOutcome(state=RetryState.SUCCESS, result=result, attempts=attempts)
                if result.status_code == 404:
                    return RetryOutcome(state=RetryState.NOT_FOUND, result=result, attempts=attempts)
                failures.append(UpstreamError(result.status_code))
                logger.info(
                    f"Fetch failed on attempt {attempt}/{max_attempts}, "
                    f"status: {result.status_code}"
                )

            if attempt < max_attempts:
                await self._sleep(self.policy.delay_for(attempt))

        logger.warning(
            f"All {max_attempts} fetch attempts failed",
            extra={"state": RetryState.EXHAUSTED.value, "attempts": [a.describe() for a in attempts]},
        )
        raise RetryExhaustedError(attempts, failures[-1] if failures else None)
