"""Firmware update transaction orchestrator."""

import asyncio
import logging
from typing import List, Optional

from fwupdate.api.models import TransactionStatus
from fwupdate.models.config import UpdaterConfig
from fwupdate.models.image import UpdateImage
from fwupdate.models.outcome import (
    DEVICE_UNRESPONSIVE_CAVEAT,
    RECONNECT_INTERRUPTED_CAVEAT,
    Outcome,
    OutcomeKind,
    TransactionResult,
)
from fwupdate.models.reconnect import ReconnectAttempt
from fwupdate.models.status import TransactionState
from fwupdate.models.transfer import TransportEvent, TransportEventKind
from fwupdate.services.classifier import classify
from fwupdate.services.listeners import NavigationGuard, TransactionListener
from fwupdate.services.poller import ReconnectPoller
from fwupdate.services.state_manager import StateManager
from fwupdate.services.transport import UploadTransport
from fwupdate.utils.validation import check_image


class TransactionInProgressError(RuntimeError):
    """Raised when a transaction is started while another one is active."""

    def __init__(self, state: TransactionState):
        super().__init__(f"Transaction in progress: {state.value}")
        self.state = state


class UpdateOrchestrator:
    """Runs firmware update transactions: validate, upload, classify, reconnect.

    Only one transaction may be active per instance. The orchestrator is the
    sole writer of the transaction state and reports exactly one terminal
    result per transaction to its listeners.
    """

    def __init__(
        self,
        config: Optional[UpdaterConfig] = None,
        transport: Optional[UploadTransport] = None,
        poller: Optional[ReconnectPoller] = None,
        state_manager: Optional[StateManager] = None,
        guard: Optional[NavigationGuard] = None,
        listeners: Optional[List[TransactionListener]] = None,
    ):
        """Initialize orchestrator.

        Args:
            config: Updater configuration (defaults if None)
            transport: Upload transport (built from config if None)
            poller: Reconnect poller (built from config if None)
            state_manager: Status store (a fresh one if None)
            guard: Guard armed while uploading
            listeners: Initial transaction listeners
        """
        self.logger = logging.getLogger("fwupdate.orchestrator")
        self.config = config or UpdaterConfig()
        self.transport = transport or UploadTransport(self.config)
        self.poller = poller or ReconnectPoller(self.config)
        self.state_manager = state_manager or StateManager()
        self.guard = guard or NavigationGuard()
        self._listeners: List[TransactionListener] = list(listeners or [])

        self._state = TransactionState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._result: Optional[TransactionResult] = None
        self._outcome: Optional[Outcome] = None
        self._last_percent = 0
        self._reconnect_attempts = 0
        self._cancel_requested = False
        self._upload_started = False

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def result(self) -> Optional[TransactionResult]:
        """Terminal result of the most recent transaction, if finished."""
        return self._result

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def get_status(self) -> TransactionStatus:
        return self.state_manager.get_status()

    def add_listener(self, listener: TransactionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TransactionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self, image: UpdateImage) -> asyncio.Task:
        """Start a transaction in the background.

        Returns:
            Task resolving to the TransactionResult

        Raises:
            TransactionInProgressError: If a transaction is already active
        """
        self._begin(image)
        self._task = asyncio.create_task(self._execute(image))
        return self._task

    async def run(self, image: UpdateImage) -> TransactionResult:
        """Run a whole transaction and return its terminal result.

        Raises:
            TransactionInProgressError: If a transaction is already active
        """
        self._begin(image)
        return await self._execute(image)

    def cancel(self) -> bool:
        """Cancel the current transaction.

        Only an upload in progress can be cancelled; once the device has the
        whole image the update is no longer abortable. A cancel that arrives
        before the upload request has been issued stops it from being sent.

        Returns:
            True if the upload was (or will be) aborted, False if there was
            nothing to cancel
        """
        if self._state != TransactionState.UPLOADING:
            self.logger.info(f"Cancel ignored in state {self._state.value}")
            return False
        if self.transport.abort():
            return True
        if self._upload_started:
            self.logger.info("Cancel ignored: upload already finished")
            return False
        self.logger.info("Cancel requested before the upload request started")
        self._cancel_requested = True
        return True

    def _begin(self, image: UpdateImage) -> None:
        """Claim the orchestrator for a new transaction (single-flight)."""
        if self._state.is_active:
            self.logger.warning(
                f"Rejected {image.name}: transaction in progress ({self._state.value})"
            )
            raise TransactionInProgressError(self._state)

        self._result = None
        self._outcome = None
        self._last_percent = 0
        self._reconnect_attempts = 0
        self._cancel_requested = False
        self._upload_started = False
        self.state_manager.begin(image.name)
        self._set_state(TransactionState.VALIDATING, f"Validating {image.name}...")

    async def _execute(self, image: UpdateImage) -> TransactionResult:
        try:
            return await self._transaction(image)
        except asyncio.CancelledError:
            self.logger.warning(f"Transaction cancelled in state {self._state.value}")
            if self._outcome is not None and self._outcome.is_success:
                # The device already accepted the image; only the reconnect wait is lost
                self._finish(
                    TransactionState.SUCCEEDED,
                    self._outcome,
                    "Firmware updated, but waiting for the device was interrupted",
                    caveat=RECONNECT_INTERRUPTED_CAVEAT,
                    reconnect_attempts=self._reconnect_attempts,
                )
            else:
                self._finish(
                    TransactionState.FAILED,
                    Outcome.aborted("transaction cancelled"),
                    "Update interrupted: transaction cancelled",
                )
            raise
        except Exception as e:
            self.logger.error(f"Transaction failed unexpectedly: {e}", exc_info=True)
            return self._finish(
                TransactionState.FAILED,
                Outcome.internal_error(str(e) or type(e).__name__),
                f"Update failed: internal error: {e}",
            )

    async def _transaction(self, image: UpdateImage) -> TransactionResult:
        error = check_image(image, self.config)
        if error is not None:
            return self._finish(
                TransactionState.FAILED,
                Outcome.validation_failure(error.code),
                f"Invalid image ({error.code}): {error.message}",
            )

        self._set_state(TransactionState.UPLOADING, f"Uploading {image.name}...", progress=0)
        self.guard.arm(f"uploading {image.name}")
        try:
            event = await self._upload(image)
        finally:
            self.guard.disarm()

        self._set_state(TransactionState.AWAITING_OUTCOME, "Waiting for device response...")
        outcome = classify(event, event.last_percent)
        self._outcome = outcome
        self.logger.info(f"Upload outcome: {outcome.kind.value} ({outcome.reason or 'ok'})")
        self._notify("on_outcome", outcome)

        if not outcome.is_success:
            return self._finish(TransactionState.FAILED, outcome, _failure_message(outcome))

        self._set_state(
            TransactionState.RECONNECTING,
            "Firmware written, device is rebooting...",
            progress=100,
        )
        poll = await self.poller.wait_until_alive(on_attempt=self._on_reconnect_attempt)

        if poll.alive:
            return self._finish(
                TransactionState.SUCCEEDED,
                outcome,
                "Firmware updated, device is back online",
                reconnect_attempts=poll.attempts,
            )
        return self._finish(
            TransactionState.SUCCEEDED,
            outcome,
            f"Firmware updated, but device did not respond after {poll.attempts} attempts",
            caveat=DEVICE_UNRESPONSIVE_CAVEAT,
            reconnect_attempts=poll.attempts,
        )

    async def _upload(self, image: UpdateImage) -> TransportEvent:
        """Consume the transport's event stream and return its terminal event."""
        if self._cancel_requested:
            self.logger.info(f"Upload of {image.name} cancelled before it started")
            return TransportEvent.terminal(TransportEventKind.ABORTED, 0, "upload cancelled")

        self._upload_started = True
        terminal: Optional[TransportEvent] = None
        async for event in self.transport.send(image):
            if event.is_terminal:
                terminal = event
            elif event.percent > self._last_percent:
                self._last_percent = event.percent
                self.state_manager.update_status(
                    TransactionState.UPLOADING, progress=event.percent
                )
                self._notify("on_progress", event.percent)

        if terminal is None:
            raise RuntimeError("Upload ended without a terminal event")
        return terminal

    def _on_reconnect_attempt(self, attempt: ReconnectAttempt) -> None:
        self._reconnect_attempts = attempt.attempt
        self.state_manager.record_reconnect(attempt)
        self._notify("on_reconnect_attempt", attempt)

    def _set_state(
        self,
        state: TransactionState,
        message: str,
        progress: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        self.logger.info(f"{self._state.value} -> {state.value}: {message}")
        self._state = state
        self.state_manager.update_status(state, progress=progress, message=message, error=error)
        self._notify("on_state_changed", state, message)

    def _finish(
        self,
        state: TransactionState,
        outcome: Outcome,
        reason: str,
        caveat: Optional[str] = None,
        reconnect_attempts: int = 0,
    ) -> TransactionResult:
        """Enter a terminal state and report it to listeners."""
        if self._result is not None:
            return self._result

        result = TransactionResult(
            state=state,
            outcome=outcome,
            reason=reason,
            caveat=caveat,
            reconnect_attempts=reconnect_attempts,
        )
        self._result = result
        self.state_manager.set_caveat(caveat)
        self._set_state(
            state,
            reason,
            error=reason if state == TransactionState.FAILED else None,
        )
        self._notify("on_finished", result)
        return result

    def _notify(self, hook: str, *args) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, hook)(*args)
            except Exception as e:
                self.logger.error(
                    f"Listener {type(listener).__name__}.{hook} failed: {e}",
                    exc_info=True,
                )


def _failure_message(outcome: Outcome) -> str:
    if outcome.kind == OutcomeKind.VALIDATION_FAILURE:
        return f"Device rejected the image: {outcome.reason}"
    if outcome.kind == OutcomeKind.TIMEOUT:
        return "Timeout: the upload took too long"
    if outcome.kind == OutcomeKind.ABORTED:
        return "Upload cancelled"
    if outcome.kind == OutcomeKind.INTERNAL_ERROR:
        return f"Update failed: internal error: {outcome.reason}"
    return f"Connection error during upload: {outcome.reason}"
