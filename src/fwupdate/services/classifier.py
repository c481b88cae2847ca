"""Outcome classification for finished uploads."""

import json
import logging
from typing import Optional

from fwupdate.models.outcome import Outcome
from fwupdate.models.transfer import TransportEvent, TransportEventKind

UNPARSEABLE_RESPONSE = "unparseable response"

logger = logging.getLogger("fwupdate.classifier")


def classify(
    event: TransportEvent,
    last_percent: int,
    body: Optional[str] = None,
) -> Outcome:
    """Decide the outcome of an upload from its terminal transport event.

    Rules, in priority order:
    1. completed, 2xx, JSON object without "error"       → success
    2. completed with "error" in body, or non-2xx status → validation failure
    3. network error after 100% was sent                 → success (device
       rebooted before acknowledging)
    4. network error before 100%                         → connection failure
    5. timed out                                         → timeout
    6. aborted                                           → aborted

    A 2xx response whose body is not a JSON object is a validation failure
    ("unparseable response"), never a success.

    Args:
        event: Terminal transport event
        last_percent: Last observed upload progress
        body: Response body text (defaults to the event's body)

    Returns:
        Outcome for the transaction
    """
    if not event.is_terminal:
        raise ValueError(f"Cannot classify non-terminal event: {event.kind.value}")

    if body is None:
        body = event.body

    if event.kind == TransportEventKind.COMPLETED:
        outcome = _classify_response(event.status_code, body)
    elif event.kind == TransportEventKind.NETWORK_ERROR:
        if last_percent >= 100:
            logger.info("Connection dropped after full upload, assuming device is rebooting")
            outcome = Outcome.success()
        else:
            reason = "connection lost during upload"
            if event.detail:
                reason = f"{reason}: {event.detail}"
            outcome = Outcome.connection_failure(reason)
    elif event.kind == TransportEventKind.TIMED_OUT:
        outcome = Outcome.timeout()
    else:
        outcome = Outcome.aborted()

    logger.debug(
        f"Classified {event.kind.value} at {last_percent}% as {outcome.kind.value}"
    )
    return outcome


def _classify_response(status_code: Optional[int], body: Optional[str]) -> Outcome:
    """Classify a completed HTTP exchange from its status and JSON body."""
    parsed = _parse_body(body)
    ok = status_code is not None and 200 <= status_code < 300

    if not ok:
        if isinstance(parsed, dict) and parsed.get("error"):
            return Outcome.validation_failure(str(parsed["error"]))
        return Outcome.validation_failure(f"HTTP {status_code}")

    if not isinstance(parsed, dict):
        return Outcome.validation_failure(UNPARSEABLE_RESPONSE)
    if parsed.get("error"):
        return Outcome.validation_failure(str(parsed["error"]))
    return Outcome.success()


def _parse_body(body: Optional[str]):
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None
