"""Outcome models for firmware update transactions."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fwupdate.models.status import TransactionState

DEVICE_UNRESPONSIVE_CAVEAT = "device unresponsive post-update"
RECONNECT_INTERRUPTED_CAVEAT = "reconnect interrupted, device state unknown"


class OutcomeKind(str, Enum):
    """Classification of a finished upload."""

    SUCCESS = "success"
    VALIDATION_FAILURE = "validationFailure"
    CONNECTION_FAILURE = "connectionFailure"
    TIMEOUT = "timeout"
    ABORTED = "aborted"
    INTERNAL_ERROR = "internalError"


class Outcome(BaseModel):
    """Result of classifying an upload. Produced once per transaction."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    reason: Optional[str] = Field(None, description="Human-readable reason for failures")

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @classmethod
    def success(cls) -> "Outcome":
        return cls(kind=OutcomeKind.SUCCESS)

    @classmethod
    def validation_failure(cls, reason: str) -> "Outcome":
        return cls(kind=OutcomeKind.VALIDATION_FAILURE, reason=reason)

    @classmethod
    def connection_failure(cls, reason: str = "connection lost during upload") -> "Outcome":
        return cls(kind=OutcomeKind.CONNECTION_FAILURE, reason=reason)

    @classmethod
    def timeout(cls, reason: str = "upload took too long") -> "Outcome":
        return cls(kind=OutcomeKind.TIMEOUT, reason=reason)

    @classmethod
    def aborted(cls, reason: str = "upload cancelled") -> "Outcome":
        return cls(kind=OutcomeKind.ABORTED, reason=reason)

    @classmethod
    def internal_error(cls, reason: str) -> "Outcome":
        """Failure raised by the controller itself rather than the device or link."""
        return cls(kind=OutcomeKind.INTERNAL_ERROR, reason=reason)


class TransactionResult(BaseModel):
    """Terminal report of one transaction, delivered exactly once."""

    model_config = ConfigDict(frozen=True)

    state: TransactionState = Field(..., description="succeeded or failed")
    outcome: Outcome
    reason: str = Field(..., description="Human-readable summary of the terminal state")
    caveat: Optional[str] = Field(
        None, description="Non-fatal caveat, e.g. device unresponsive post-update"
    )
    reconnect_attempts: int = Field(0, ge=0, description="Liveness probes issued")

    @property
    def succeeded(self) -> bool:
        return self.state == TransactionState.SUCCEEDED
