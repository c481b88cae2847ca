"""Transaction state enums for the firmware update controller."""

from enum import Enum


class TransactionState(str, Enum):
    """Firmware update transaction states.

    State transitions:
    idle → validating → uploading → awaitingOutcome → reconnecting → succeeded
               ↓                            ↓
             failed ←───────────────────────
    """

    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING = "uploading"
    AWAITING_OUTCOME = "awaitingOutcome"
    RECONNECTING = "reconnecting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        """True while a transaction owns the orchestrator."""
        return self in ACTIVE_STATES

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionState.SUCCEEDED, TransactionState.FAILED)


ACTIVE_STATES = frozenset(
    {
        TransactionState.VALIDATING,
        TransactionState.UPLOADING,
        TransactionState.AWAITING_OUTCOME,
        TransactionState.RECONNECTING,
    }
)
