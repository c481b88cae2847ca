"""Transfer progress and transport event models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TransportEventKind(str, Enum):
    """Kinds of events emitted by the upload transport."""

    PROGRESS = "progress"
    COMPLETED = "completed"
    NETWORK_ERROR = "networkError"
    TIMED_OUT = "timedOut"
    ABORTED = "aborted"


class TransportEvent(BaseModel):
    """One event of an upload's event stream.

    Exactly one terminal event (anything but PROGRESS) ends each stream and
    carries the last observed progress percentage in ``last_percent``.
    """

    model_config = ConfigDict(frozen=True)

    kind: TransportEventKind
    percent: int = Field(0, ge=0, le=100, description="Progress percentage (progress events)")
    last_percent: int = Field(0, ge=0, le=100, description="Last progress seen before the terminal event")
    status_code: Optional[int] = Field(None, description="HTTP status (completed events)")
    body: Optional[str] = Field(None, description="Response body text (completed events)")
    detail: Optional[str] = Field(None, description="Transport error description")

    @property
    def is_terminal(self) -> bool:
        return self.kind != TransportEventKind.PROGRESS

    @classmethod
    def progress(cls, percent: int) -> "TransportEvent":
        return cls(kind=TransportEventKind.PROGRESS, percent=percent, last_percent=percent)

    @classmethod
    def completed(cls, status_code: int, body: str, last_percent: int) -> "TransportEvent":
        return cls(
            kind=TransportEventKind.COMPLETED,
            status_code=status_code,
            body=body,
            percent=last_percent,
            last_percent=last_percent,
        )

    @classmethod
    def terminal(
        cls, kind: TransportEventKind, last_percent: int, detail: Optional[str] = None
    ) -> "TransportEvent":
        return cls(kind=kind, percent=last_percent, last_percent=last_percent, detail=detail)


class TransferProgress:
    """Monotonic upload progress owned by a single transport run.

    ``percent`` never decreases and stays within [0, 100]. ``data_fully_sent``
    flips to True exactly once, when percent first reaches 100.
    """

    def __init__(self):
        self._percent = 0
        self._data_fully_sent = False

    @property
    def percent(self) -> int:
        return self._percent

    @property
    def data_fully_sent(self) -> bool:
        return self._data_fully_sent

    def advance(self, percent: int) -> bool:
        """Move progress forward.

        Args:
            percent: Newly observed percentage (clamped to [0, 100])

        Returns:
            True if progress changed, False for stale or duplicate values
        """
        percent = max(0, min(100, int(percent)))
        if percent <= self._percent:
            return False
        self._percent = percent
        if percent == 100:
            self._data_fully_sent = True
        return True
