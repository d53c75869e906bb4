"""
Tests for the pickup verification client
"""
import json
from datetime import datetime, timezone

import httpx
import pytest

import sys
sys.path.insert(0, '.')

from trashclean.core.auth import StaticTokenSource
from trashclean.core.errors import (
    MissingEvidenceError,
    ServerRejectionError,
    TransientNetworkError,
)
from trashclean.verification.models import (
    Accepted,
    CaptureBundle,
    RejectedByProximity,
    RejectedByServer,
    TransientError,
    VerificationAttempt,
    make_idempotency_key,
)
from trashclean.verification.submission_client import (
    VerificationClient,
    interpret_response,
    iso_timestamp,
)

from tests.fakes import corrupt_gzip_handler, mock_http_client

BASE_URL = "https://api.test/api"


def make_attempt(report, photo, location, created_at=None):
    bundle = CaptureBundle(photo=photo, live_location=location)
    kwargs = {"created_at": created_at} if created_at else {}
    return VerificationAttempt(target=report, bundle=bundle, distance_meters=0.0, **kwargs)


class RecordingHandler:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        request.read()
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class TestVerificationClient:
    """Test suite for verification submission."""

    def _client(self, handler, token="test-token"):
        return VerificationClient(
            StaticTokenSource(token),
            base_url=BASE_URL,
            http_client=mock_http_client(handler),
        )

    def test_accepted(self, litter_report, photo, user_location):
        """Test a 200 success yields the server-reported points."""
        handler = RecordingHandler(httpx.Response(200, json={
            "success": True,
            "message": "Great job!",
            "pointsEarned": 20,
            "matchConfidence": 0.91,
        }))

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert outcome == Accepted(points_earned=20, message="Great job!", match_confidence=0.91)

    def test_accepted_without_points(self, litter_report, photo, user_location):
        """Test missing points are reported as zero, not estimated."""
        handler = RecordingHandler(httpx.Response(200, json={"success": True}))

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert isinstance(outcome, Accepted)
        assert outcome.points_earned == 0

    def test_request_payload(self, litter_report, photo, user_location):
        """Test the multipart request carries all evidence fields."""
        handler = RecordingHandler(httpx.Response(200, json={"success": True, "pointsEarned": 5}))
        attempt = make_attempt(litter_report, photo, user_location)

        self._client(handler).submit(attempt)

        request = handler.requests[0]
        body = request.content
        assert request.method == "POST"
        assert request.url.path == "/api/trash/verify-pickup"
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["Idempotency-Key"] == attempt.idempotency_key
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        for name in [
            "trashId", "userLatitude", "userLongitude", "locationAccuracy",
            "trashLatitude", "trashLongitude", "distanceFromTrash",
            "timestamp", "idempotencyKey",
        ]:
            assert f'name="{name}"'.encode() in body
        assert b"trash-42" in body
        assert b'name="verificationImage"; filename="pickup_verification.jpg"' in body
        assert photo.data in body

    @pytest.mark.parametrize("status,reason", [
        (400, "invalid verification data"),
        (404, "item not found or already collected"),
        (409, "already picked up by someone else"),
        (422, "out of range or photo mismatch"),
        (401, "verification failed, try again"),
        (500, "verification failed, try again"),
        (503, "verification failed, try again"),
    ])
    def test_status_mapping(self, status, reason, litter_report, photo, user_location):
        """Test each status code maps to its rejection reason."""
        handler = RecordingHandler(httpx.Response(status))

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert outcome == RejectedByServer(reason=reason, status_code=status)

    def test_conflict_is_never_transient(self, litter_report, photo, user_location):
        """Test 409 always means someone else picked it up."""
        handler = RecordingHandler(httpx.Response(409, json={"message": "conflict"}))

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert isinstance(outcome, RejectedByServer)
        assert "already picked up" in outcome.reason

    def test_bad_request_uses_server_message(self, litter_report, photo, user_location):
        """Test the 400 body message is surfaced verbatim."""
        handler = RecordingHandler(httpx.Response(400, json={"message": "Photo is too dark"}))

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert outcome.reason == "Photo is too dark"

    def test_success_false_is_rejection(self, litter_report, photo, user_location):
        """Test a 200 with success=false is not treated as accepted."""
        handler = RecordingHandler(httpx.Response(
            200, json={"success": False, "message": "Photo does not match"}
        ))

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert outcome == RejectedByServer(reason="Photo does not match", status_code=200)

    @pytest.mark.parametrize("error", [
        httpx.ReadTimeout("timed out"),
        httpx.ConnectError("connection refused"),
    ])
    def test_network_failure_is_transient(self, error, litter_report, photo, user_location):
        """Test timeouts and connection errors are retryable."""
        handler = RecordingHandler(error)

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert isinstance(outcome, TransientError)
        assert outcome.cause

    def test_undecodable_body_is_transient(self, litter_report, photo, user_location):
        """Test a body that fails content decoding is retryable, not raised."""
        client = self._client(corrupt_gzip_handler)

        outcome = client.submit(make_attempt(litter_report, photo, user_location))

        assert isinstance(outcome, TransientError)

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json={"message": "no success flag"}),
        httpx.Response(200, json=["unexpected"]),
    ])
    def test_malformed_response_is_transient(self, response, litter_report, photo, user_location):
        """Test unreadable success bodies degrade to a retryable error."""
        handler = RecordingHandler(response)

        outcome = self._client(handler).submit(make_attempt(litter_report, photo, user_location))

        assert isinstance(outcome, TransientError)

    def test_missing_photo_never_reaches_network(self, litter_report, user_location):
        """Test an attempt without a photo is refused before sending."""
        handler = RecordingHandler(httpx.Response(200, json={"success": True}))
        attempt = make_attempt(litter_report, None, user_location)

        with pytest.raises(MissingEvidenceError):
            self._client(handler).submit(attempt)

        assert handler.requests == []

    def test_too_far_never_reaches_network(self, far_litter_report, photo, user_location):
        """Test distance is re-checked before sending."""
        handler = RecordingHandler(httpx.Response(200, json={"success": True}))

        outcome = self._client(handler).submit(
            make_attempt(far_litter_report, photo, user_location)
        )

        assert isinstance(outcome, RejectedByProximity)
        assert outcome.threshold_meters == 50.0
        assert 66 < outcome.distance_meters < 68
        assert handler.requests == []

    def test_missing_token_never_reaches_network(self, litter_report, photo, user_location):
        """Test signed-out users are rejected locally."""
        handler = RecordingHandler(httpx.Response(200, json={"success": True}))

        outcome = self._client(handler, token=None).submit(
            make_attempt(litter_report, photo, user_location)
        )

        assert outcome == RejectedByServer(reason="authentication required")
        assert handler.requests == []

    def test_retry_reuses_idempotency_key(self, litter_report, photo, user_location):
        """Test resending an attempt after a timeout sends the same key."""
        handler = RecordingHandler(
            httpx.ReadTimeout("timed out"),
            httpx.Response(200, json={"success": True, "pointsEarned": 20}),
        )
        client = self._client(handler)
        attempt = make_attempt(litter_report, photo, user_location)

        first = client.submit(attempt)
        second = client.submit(attempt)

        assert isinstance(first, TransientError)
        assert isinstance(second, Accepted)
        keys = [r.headers["Idempotency-Key"] for r in handler.requests]
        assert keys == [attempt.idempotency_key, attempt.idempotency_key]

    def test_context_manager_closes_client(self, litter_report):
        """Test the client can be used as a context manager."""
        with VerificationClient(StaticTokenSource("t"), base_url=BASE_URL) as client:
            assert client.base_url == BASE_URL
        assert client._client is None

    def test_injected_client_left_open(self):
        """Test closing does not close a client owned by the caller."""
        http_client = mock_http_client(RecordingHandler(httpx.Response(200)))

        with VerificationClient(StaticTokenSource("t"), http_client=http_client):
            pass

        assert not http_client.is_closed


class TestIdempotencyKey:
    """Test idempotency key derivation."""

    def test_key_is_deterministic(self, litter_report, photo, user_location):
        """Test the same report and time give the same key."""
        created = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

        a = make_attempt(litter_report, photo, user_location, created_at=created)
        b = make_attempt(litter_report, photo, user_location, created_at=created)

        assert a.idempotency_key == b.idempotency_key
        assert a.idempotency_key == make_idempotency_key("trash-42", created)

    def test_new_attempt_gets_new_key(self, litter_report, photo, user_location):
        """Test a retake produces a different key."""
        a = make_attempt(
            litter_report, photo, user_location,
            created_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        )
        b = make_attempt(
            litter_report, photo, user_location,
            created_at=datetime(2026, 10, 19, 9, 31, tzinfo=timezone.utc),
        )

        assert a.idempotency_key != b.idempotency_key

    def test_iso_timestamp(self):
        """Test timestamps are sent in UTC with a Z suffix."""
        moment = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
        assert iso_timestamp(moment) == "2026-10-19T09:30:00Z"


class TestInterpretResponse:
    """Test response interpretation without a client."""

    def test_created_is_success(self):
        """Test any 2xx counts as success."""
        outcome = interpret_response(httpx.Response(201, json={"success": True, "pointsEarned": 3}))
        assert outcome == Accepted(points_earned=3)


class TestReportIssue:
    """Test suite for reporting pickup problems."""

    def _client(self, handler, token="test-token"):
        return VerificationClient(
            StaticTokenSource(token),
            base_url=BASE_URL,
            http_client=mock_http_client(handler),
        )

    def test_report_issue(self):
        """Test an issue report is posted as JSON."""
        handler = RecordingHandler(httpx.Response(200, json={"received": True}))

        result = self._client(handler).report_issue("trash-42", "not_found", "Nothing here")

        request = handler.requests[0]
        payload = json.loads(request.content)
        assert result == {"received": True}
        assert request.url.path == "/api/trash/trash-42/report-issue"
        assert payload["issueType"] == "not_found"
        assert payload["description"] == "Nothing here"
        assert payload["timestamp"].endswith("Z")

    def test_unknown_issue_type(self):
        """Test unknown issue types are refused locally."""
        handler = RecordingHandler(httpx.Response(200))

        with pytest.raises(ValueError):
            self._client(handler).report_issue("trash-42", "smells_bad")

        assert handler.requests == []

    def test_server_rejection(self):
        """Test a non-2xx raises with the server message."""
        handler = RecordingHandler(httpx.Response(404, json={"message": "No such item"}))

        with pytest.raises(ServerRejectionError) as exc_info:
            self._client(handler).report_issue("trash-42", "wrong_location")

        assert exc_info.value.status_code == 404
        assert exc_info.value.reason == "No such item"

    def test_network_error(self):
        """Test transport failures raise a transient error."""
        handler = RecordingHandler(httpx.ConnectError("refused"))

        with pytest.raises(TransientNetworkError):
            self._client(handler).report_issue("trash-42", "inaccessible")

    def test_undecodable_body(self):
        """Test a body that fails content decoding raises a transient error."""
        with pytest.raises(TransientNetworkError):
            self._client(corrupt_gzip_handler).report_issue("trash-42", "not_found")
