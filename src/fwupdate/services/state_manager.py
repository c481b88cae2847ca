"""In-memory status of the current firmware update transaction."""

import logging
from typing import Optional

from fwupdate.api.models import TransactionStatus
from fwupdate.models.reconnect import ReconnectAttempt
from fwupdate.models.status import TransactionState


class StateManager:
    """Holds the status snapshot served by GET /progress.

    Written only by the orchestrator that owns it; everyone else reads
    snapshots through get_status().
    """

    def __init__(self):
        self.logger = logging.getLogger("fwupdate.state_manager")
        self.reset()

    def get_status(self) -> TransactionStatus:
        """Get current status snapshot."""
        return TransactionStatus(
            state=self._state,
            progress=self._progress,
            message=self._message,
            error=self._error,
            image_name=self._image_name,
            reconnect_attempt=self._reconnect_attempt,
            reconnect_max_attempts=self._reconnect_max_attempts,
            caveat=self._caveat,
        )

    def begin(self, image_name: str) -> None:
        """Clear the previous transaction's status for a new one."""
        self.reset()
        self._image_name = image_name

    def update_status(
        self,
        state: TransactionState,
        progress: Optional[int] = None,
        message: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Update in-memory status.

        Args:
            state: Current transaction state
            progress: Upload percentage, unchanged if None
            message: Human-readable description, unchanged if None
            error: Failure reason if state == failed
        """
        self._state = state
        if progress is not None:
            self._progress = progress
        if message is not None:
            self._message = message
        self._error = error
        self.logger.debug(
            f"Status updated: state={state.value}, progress={self._progress}%, "
            f"message={self._message}"
        )

    def record_reconnect(self, attempt: ReconnectAttempt) -> None:
        self._reconnect_attempt = attempt.attempt
        self._reconnect_max_attempts = attempt.max_attempts
        self._message = (
            f"Attempt {attempt.attempt}/{attempt.max_attempts}, waiting for device..."
        )

    def set_caveat(self, caveat: Optional[str]) -> None:
        self._caveat = caveat

    def reset(self) -> None:
        """Reset to idle state."""
        self._state = TransactionState.IDLE
        self._progress = 0
        self._message = "Ready"
        self._error = None
        self._image_name: Optional[str] = None
        self._reconnect_attempt = 0
        self._reconnect_max_attempts = 0
        self._caveat: Optional[str] = None
