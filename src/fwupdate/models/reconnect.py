"""Reconnect polling models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProbeResult(str, Enum):
    """Result of a single liveness probe."""

    ALIVE = "alive"
    NOT_YET_ALIVE = "notYetAlive"
    ATTEMPT_TIMED_OUT = "attemptTimedOut"


class PollStatus(str, Enum):
    """How a polling run ended."""

    ALIVE = "alive"
    EXHAUSTED_ATTEMPTS = "exhaustedAttempts"


class ReconnectAttempt(BaseModel):
    """One liveness probe issued while waiting for the device to come back."""

    model_config = ConfigDict(frozen=True)

    attempt: int = Field(..., ge=1, description="Sequence number, 1-based")
    max_attempts: int = Field(..., ge=1)
    timeout: float = Field(..., gt=0, description="Per-attempt timeout in seconds")
    result: ProbeResult

    @property
    def remaining(self) -> int:
        """Probes left in the budget after this one."""
        return self.max_attempts - self.attempt

    @property
    def alive(self) -> bool:
        return self.result == ProbeResult.ALIVE


class PollResult(BaseModel):
    """Terminal result of a polling run."""

    model_config = ConfigDict(frozen=True)

    status: PollStatus
    attempts: int = Field(..., ge=0, description="Number of probes issued")

    @property
    def alive(self) -> bool:
        return self.status == PollStatus.ALIVE
