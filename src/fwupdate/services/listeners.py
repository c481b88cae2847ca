"""Collaborator interfaces driven by the transaction orchestrator."""

import asyncio
import logging
from typing import Optional

from fwupdate.models.outcome import Outcome, TransactionResult
from fwupdate.models.reconnect import ReconnectAttempt
from fwupdate.models.status import TransactionState


class TransactionListener:
    """Observer of a transaction's lifecycle (e.g. a progress-bar renderer).

    All hooks are no-ops; subclasses override the ones they need. Exceptions
    raised by a hook are logged by the orchestrator and otherwise ignored.
    """

    def on_state_changed(self, state: TransactionState, message: str) -> None:
        pass

    def on_progress(self, percent: int) -> None:
        pass

    def on_outcome(self, outcome: Outcome) -> None:
        pass

    def on_reconnect_attempt(self, attempt: ReconnectAttempt) -> None:
        pass

    def on_finished(self, result: TransactionResult) -> None:
        """Called exactly once per transaction with its terminal result."""


class NavigationGuard:
    """Guard the orchestrator arms while an upload is streaming.

    Leaving (closing a page, stopping a service) while armed would interrupt
    the update. The base class does nothing.
    """

    def arm(self, reason: str) -> None:
        pass

    def disarm(self) -> None:
        pass


class ShutdownGuard(NavigationGuard):
    """Lets a service delay its shutdown until an upload has finished."""

    def __init__(self):
        self.logger = logging.getLogger("fwupdate.guard")
        self._released = asyncio.Event()
        self._released.set()
        self._reason: Optional[str] = None

    @property
    def armed(self) -> bool:
        return not self._released.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def arm(self, reason: str) -> None:
        self._reason = reason
        self._released.clear()
        self.logger.debug(f"Shutdown guard armed: {reason}")

    def disarm(self) -> None:
        self._reason = None
        self._released.set()
        self.logger.debug("Shutdown guard disarmed")

    async def wait_released(self, timeout: float) -> bool:
        """Wait for the guard to be disarmed.

        Returns:
            True if disarmed within the timeout, False otherwise
        """
        if not self.armed:
            return True
        self.logger.warning(
            f"Firmware update in progress ({self._reason}), stopping now would "
            f"interrupt it; waiting up to {timeout}s"
        )
        try:
            await asyncio.wait_for(self._released.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
