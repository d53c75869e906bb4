"""
Pickup verification client for Trash Clean

Sends a verification attempt (photo + live location) to the backend and
reduces every possible response to a VerificationOutcome. Raw payloads
never leave this module.

API: POST /trash/verify-pickup (multipart/form-data)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from trashclean.core.auth import TokenSource
from trashclean.core.constants import (
    AUTHENTICATION_REQUIRED_MESSAGE,
    GENERIC_REJECTION_MESSAGE,
    ISSUE_TYPES,
    REJECTION_MESSAGES,
    REPORT_ISSUE_PATH,
    VERIFICATION_IMAGE_FILENAME,
    VERIFY_PICKUP_PATH,
)
from trashclean.core.errors import (
    AuthenticationMissingError,
    MalformedResponseError,
    MissingEvidenceError,
    ServerRejectionError,
    TransientNetworkError,
)
from trashclean.core.http import ApiClient
from trashclean.verification.models import (
    Accepted,
    RejectedByProximity,
    RejectedByServer,
    TransientError,
    VerificationAttempt,
    VerificationOutcome,
)
from trashclean.verification.proximity import ProximityGate

logger = logging.getLogger(__name__)


class VerifyPickupResponse(BaseModel):
    """Success body of ``POST /trash/verify-pickup``."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    message: Optional[str] = None
    points_earned: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("pointsEarned", "points_earned")
    )
    match_confidence: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("matchConfidence", "match_confidence")
    )


class ErrorBody(BaseModel):
    """Error body returned with 4xx responses."""

    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 timestamp with a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        return ErrorBody.model_validate(response.json()).message or None
    except (ValueError, ValidationError):
        return None


def interpret_response(response: httpx.Response) -> VerificationOutcome:
    """
    Map a verification response onto an outcome.

    | status         | outcome                                  |
    |----------------|------------------------------------------|
    | 2xx            | Accepted (or RejectedByServer if success is false) |
    | 400            | RejectedByServer, server message if any  |
    | 404, 409, 422  | RejectedByServer with fixed reasons      |
    | other non-2xx  | RejectedByServer, generic reason         |
    | unparseable 2xx| TransientError                           |
    """
    status = response.status_code

    if response.is_success:
        try:
            body = VerifyPickupResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            error = MalformedResponseError(f"Unreadable verification response: {e}")
            logger.warning(str(error))
            return TransientError(cause=str(error))

        if not body.success:
            return RejectedByServer(
                reason=body.message or GENERIC_REJECTION_MESSAGE,
                status_code=status,
            )
        return Accepted(
            points_earned=body.points_earned or 0,
            message=body.message or "",
            match_confidence=body.match_confidence,
        )

    if status == 400:
        return RejectedByServer(
            reason=_error_message(response) or REJECTION_MESSAGES[400],
            status_code=status,
        )
    if status in REJECTION_MESSAGES:
        return RejectedByServer(reason=REJECTION_MESSAGES[status], status_code=status)
    return RejectedByServer(reason=GENERIC_REJECTION_MESSAGE, status_code=status)


class VerificationClient(ApiClient):
    """
    Client for the pickup verification endpoint.

    Submission is single shot: the client never retries on its own. A retry
    is a new call with the same attempt, which carries the same idempotency
    key.

    Usage:
        with VerificationClient(EnvTokenSource()) as client:
            outcome = client.submit(attempt)
    """

    def __init__(
        self,
        token_source: TokenSource,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
        gate: Optional[ProximityGate] = None,
    ):
        """
        Initialize the verification client.

        Args:
            token_source: Provider of the bearer token
            base_url: API root, defaults to ``settings.api_base_url``
            timeout: Request timeout in seconds (evidence upload)
            http_client: Pre-built httpx client
            gate: Proximity gate used to re-check attempts before sending
        """
        super().__init__(token_source, base_url, timeout, http_client)
        self.gate = gate or ProximityGate()

    def _build_form(self, attempt: VerificationAttempt, distance_meters: float) -> Dict[str, str]:
        bundle = attempt.bundle
        live = bundle.live_location
        target = attempt.target.location
        accuracy = live.accuracy_meters

        return {
            "trashId": attempt.target.id,
            "userLatitude": str(live.latitude),
            "userLongitude": str(live.longitude),
            "locationAccuracy": str(accuracy) if accuracy is not None else "",
            "trashLatitude": str(target.latitude),
            "trashLongitude": str(target.longitude),
            "distanceFromTrash": str(distance_meters),
            "timestamp": iso_timestamp(attempt.created_at),
            "idempotencyKey": attempt.idempotency_key,
        }

    def submit(self, attempt: VerificationAttempt) -> VerificationOutcome:
        """
        Submit a verification attempt.

        Args:
            attempt: Target report plus captured evidence

        Returns:
            The outcome of the attempt; transport problems come back as
            TransientError rather than raising

        Raises:
            MissingEvidenceError: If the attempt carries no photo
        """
        bundle = attempt.bundle
        if not bundle.has_photo:
            raise MissingEvidenceError(
                f"Attempt for item {attempt.target.id} has no verification photo"
            )

        check = self.gate.check(
            bundle.live_location,
            attempt.target.location,
            location_is_fallback=bundle.location_is_fallback,
        )
        if not check.allowed:
            logger.info(
                f"Not submitting item {attempt.target.id}: "
                f"{check.distance_meters:.0f}m > {check.threshold_meters:.0f}m"
            )
            return RejectedByProximity(
                distance_meters=check.distance_meters,
                threshold_meters=check.threshold_meters,
            )

        token = self.token_source.get_bearer_token()
        if not token:
            logger.warning("No bearer token available, verification not sent")
            return RejectedByServer(reason=AUTHENTICATION_REQUIRED_MESSAGE)

        headers = self._auth_headers(token)
        headers["Idempotency-Key"] = attempt.idempotency_key
        files = {
            "verificationImage": (
                VERIFICATION_IMAGE_FILENAME,
                bundle.photo.data,
                bundle.photo.mime_type,
            )
        }

        logger.info(
            f"Submitting pickup verification for item {attempt.target.id} "
            f"({check.distance_meters:.0f}m, key={attempt.idempotency_key})"
        )
        try:
            response = self._get_client().post(
                self._url(VERIFY_PICKUP_PATH),
                data=self._build_form(attempt, check.distance_meters),
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"Verification timed out: {e}")
            return TransientError(cause=f"request timed out: {e}")
        except httpx.RequestError as e:
            logger.warning(f"Verification network error: {e}")
            return TransientError(cause=f"network error: {e}")

        outcome = interpret_response(response)
        logger.info(f"Verification for item {attempt.target.id}: {type(outcome).__name__}")
        return outcome

    def report_issue(
        self,
        trash_id: str,
        issue_type: str,
        description: str = "",
    ) -> Dict[str, Any]:
        """
        Report a problem with a pickup target.

        Args:
            trash_id: Litter report identifier
            issue_type: One of not_found, already_cleaned, inaccessible, wrong_location
            description: Free-text details

        Returns:
            Server response body

        Raises:
            ValueError: If ``issue_type`` is unknown
            AuthenticationMissingError: If no token is available
            TransientNetworkError: On connection failure or timeout
            ServerRejectionError: On a non-2xx response
        """
        if issue_type not in ISSUE_TYPES:
            raise ValueError(f"Unknown issue type: {issue_type}")

        token = self.token_source.get_bearer_token()
        if not token:
            raise AuthenticationMissingError(AUTHENTICATION_REQUIRED_MESSAGE)

        payload = {
            "issueType": issue_type,
            "description": description,
            "timestamp": iso_timestamp(datetime.now(timezone.utc)),
        }

        logger.info(f"Reporting issue '{issue_type}' for item {trash_id}")
        try:
            response = self._get_client().post(
                self._url(REPORT_ISSUE_PATH.format(trash_id=trash_id)),
                json=payload,
                headers=self._auth_headers(token),
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            raise TransientNetworkError(f"Issue report failed: {e}") from e

        if not response.is_success:
            raise ServerRejectionError(
                _error_message(response) or GENERIC_REJECTION_MESSAGE,
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Unreadable issue report response: {e}") from e
