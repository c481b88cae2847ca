"""Reconnect poller: waits for the device to come back after its self-reboot."""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

import httpx

from fwupdate.models.config import UpdaterConfig
from fwupdate.models.reconnect import PollResult, PollStatus, ProbeResult, ReconnectAttempt

AttemptCallback = Callable[[ReconnectAttempt], None]


class ReconnectPoller:
    """Probes the device liveness endpoint with a bounded number of attempts."""

    def __init__(
        self,
        config: Optional[UpdaterConfig] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize reconnect poller.

        Args:
            config: Updater configuration (defaults if None)
            http_transport: Custom httpx transport (tests use httpx.MockTransport)
            sleep: Delay coroutine between attempts (tests pass a no-op)
        """
        self.logger = logging.getLogger("fwupdate.poller")
        self.config = config or UpdaterConfig()
        self._http_transport = http_transport
        self._sleep = sleep

    async def poll(self) -> AsyncIterator[ReconnectAttempt]:
        """Probe until the device answers or the attempt budget is spent.

        Yields one ReconnectAttempt per probe. The stream ends right after the
        first alive attempt, or after ``reconnect_max_attempts`` attempts.
        """
        max_attempts = self.config.reconnect_max_attempts
        attempt_timeout = self.config.reconnect_attempt_timeout
        url = self.config.health_url

        self.logger.info(
            f"Waiting for device at {url} "
            f"(max {max_attempts} attempts, every {self.config.reconnect_interval}s)"
        )

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(attempt_timeout),
            transport=self._http_transport,
        ) as client:
            for number in range(1, max_attempts + 1):
                delay = (
                    self.config.reconnect_initial_delay
                    if number == 1
                    else self.config.reconnect_interval
                )
                if delay:
                    await self._sleep(delay)

                result = await self._probe(client, url, attempt_timeout)
                attempt = ReconnectAttempt(
                    attempt=number,
                    max_attempts=max_attempts,
                    timeout=attempt_timeout,
                    result=result,
                )
                self.logger.debug(
                    f"Reconnect attempt {number}/{max_attempts}: {result.value}"
                )
                yield attempt

                if attempt.alive:
                    self.logger.info(f"Device is back online after {number} attempt(s)")
                    return

        self.logger.warning(f"Device did not respond after {max_attempts} attempts")

    async def wait_until_alive(self, on_attempt: Optional[AttemptCallback] = None) -> PollResult:
        """Run a full polling cycle.

        Args:
            on_attempt: Called with every ReconnectAttempt, for progress reporting

        Returns:
            PollResult with status alive or exhaustedAttempts
        """
        attempts = 0
        alive = False
        async for attempt in self.poll():
            attempts = attempt.attempt
            alive = attempt.alive
            if on_attempt is not None:
                on_attempt(attempt)

        status = PollStatus.ALIVE if alive else PollStatus.EXHAUSTED_ATTEMPTS
        return PollResult(status=status, attempts=attempts)

    async def _probe(
        self, client: httpx.AsyncClient, url: str, attempt_timeout: float
    ) -> ProbeResult:
        """Issue one liveness GET bounded by the per-attempt timeout."""
        try:
            response = await asyncio.wait_for(
                client.get(url, headers={"Cache-Control": "no-cache"}),
                timeout=attempt_timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return ProbeResult.ATTEMPT_TIMED_OUT
        except httpx.HTTPError as e:
            self.logger.debug(f"Device not available yet: {e!r}")
            return ProbeResult.NOT_YET_ALIVE

        if response.is_success:
            return ProbeResult.ALIVE
        self.logger.debug(f"Liveness probe returned HTTP {response.status_code}")
        return ProbeResult.NOT_YET_ALIVE
