"""Unit tests for services/classifier.py."""

import pytest

from fwupdate.models.outcome import Outcome, OutcomeKind
from fwupdate.models.transfer import TransportEvent, TransportEventKind
from fwupdate.services.classifier import UNPARSEABLE_RESPONSE, classify


def _completed(body, status_code=200, last_percent=100):
    return TransportEvent.completed(status_code, body, last_percent)


def _terminal(kind, last_percent):
    return TransportEvent.terminal(kind, last_percent, detail="boom")


@pytest.mark.unit
class TestClassify:
    """Test outcome classification rules."""

    def test_empty_object_is_success(self):
        assert classify(_completed("{}"), 100) == Outcome.success()

    def test_object_without_error_is_success(self):
        outcome = classify(_completed('{"status": "ok", "size": 1024}'), 100)
        assert outcome.kind == OutcomeKind.SUCCESS

    def test_embedded_error_is_validation_failure(self):
        outcome = classify(_completed('{"error":"bad magic byte"}'), 100)

        assert outcome == Outcome.validation_failure("bad magic byte")

    def test_http_failure_uses_body_error(self):
        event = _completed('{"error": "Not enough space"}', status_code=500)

        outcome = classify(event, 100)

        assert outcome.kind == OutcomeKind.VALIDATION_FAILURE
        assert outcome.reason == "Not enough space"

    def test_http_failure_without_body_uses_status(self):
        outcome = classify(_completed("", status_code=413), 100)

        assert outcome == Outcome.validation_failure("HTTP 413")

    def test_http_failure_with_html_body_uses_status(self):
        outcome = classify(_completed("<html>oops</html>", status_code=500), 100)

        assert outcome.reason == "HTTP 500"

    @pytest.mark.parametrize("body", ["", "OK", "[]", "null", "not json {"])
    def test_unparseable_success_body_is_not_success(self, body):
        outcome = classify(_completed(body), 100)

        assert outcome == Outcome.validation_failure(UNPARSEABLE_RESPONSE)

    def test_network_error_after_full_upload_is_success(self):
        event = _terminal(TransportEventKind.NETWORK_ERROR, 100)

        assert classify(event, 100).kind == OutcomeKind.SUCCESS

    def test_network_error_before_full_upload_is_connection_failure(self):
        event = _terminal(TransportEventKind.NETWORK_ERROR, 42)

        outcome = classify(event, 42)

        assert outcome.kind == OutcomeKind.CONNECTION_FAILURE
        assert "boom" in outcome.reason

    def test_last_percent_argument_wins(self):
        """The classifier trusts the progress it is given."""
        event = _terminal(TransportEventKind.NETWORK_ERROR, 100)

        assert classify(event, 99).kind == OutcomeKind.CONNECTION_FAILURE

    def test_timeout_regardless_of_progress(self):
        assert classify(_terminal(TransportEventKind.TIMED_OUT, 100), 100).kind == OutcomeKind.TIMEOUT
        assert classify(_terminal(TransportEventKind.TIMED_OUT, 3), 3).kind == OutcomeKind.TIMEOUT

    def test_aborted(self):
        assert classify(_terminal(TransportEventKind.ABORTED, 50), 50).kind == OutcomeKind.ABORTED

    def test_explicit_body_overrides_event_body(self):
        event = _completed("{}")

        outcome = classify(event, 100, body='{"error": "checksum"}')

        assert outcome.reason == "checksum"

    def test_progress_event_rejected(self):
        with pytest.raises(ValueError, match="non-terminal"):
            classify(TransportEvent.progress(50), 50)
