"""
Trash report submission for crowdsourced litter data
Sends a new litter report (photo, location, classification) to the backend.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from trashclean.core.auth import TokenSource
from trashclean.core.constants import (
    AUTHENTICATION_REQUIRED_MESSAGE,
    REPORT_IMAGE_FILENAME,
    SUBMIT_REPORT_PATH,
    TRASH_SIZES,
)
from trashclean.core.errors import (
    AuthenticationMissingError,
    MalformedResponseError,
    MissingEvidenceError,
    ServerRejectionError,
    TransientNetworkError,
)
from trashclean.core.geo_utils import Coordinate
from trashclean.core.http import ApiClient
from trashclean.crowdsource.photo_analyzer import (
    AnalysisResult,
    PhotoRejected,
    TrashPhotoAnalyzer,
)
from trashclean.ingestion.nearby_client import LitterReport, parse_litter_report
from trashclean.verification.models import Photo
from trashclean.verification.submission_client import iso_timestamp

logger = logging.getLogger(__name__)


class ReportHandler(ApiClient):
    """
    Submits litter reports from citizens.

    When no classification is supplied the photo is run through the
    analyzer first; an unavailable analysis service never blocks the report.
    """

    def __init__(
        self,
        token_source: TokenSource,
        analyzer: Optional[TrashPhotoAnalyzer] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize report handler.

        Args:
            token_source: Provider of the bearer token
            analyzer: Photo analyzer used when no analysis is passed to submit
            base_url: API root, defaults to ``settings.api_base_url``
            timeout: Request timeout in seconds
            http_client: Pre-built httpx client
        """
        super().__init__(token_source, base_url, timeout, http_client)
        self.analyzer = analyzer

    def submit(
        self,
        photo: Photo,
        location: Coordinate,
        description: str = "",
        trash_type: Optional[str] = None,
        size: str = "medium",
        analysis: Optional[AnalysisResult] = None,
    ) -> LitterReport:
        """
        Create a litter report.

        Args:
            photo: Photo of the litter
            location: Where the photo was taken
            description: Reporter's description
            trash_type: Category, taken from the analysis when omitted
            size: One of small, medium, large, very_large
            analysis: Precomputed photo analysis

        Returns:
            The created LitterReport as stored by the server

        Raises:
            MissingEvidenceError: If the photo is empty
            ServerRejectionError: If the photo was rejected or the server refused the report
            AuthenticationMissingError: If no token is available
            TransientNetworkError: On connection failure or timeout
        """
        if not photo.data:
            raise MissingEvidenceError("A report needs a photo")
        if size not in TRASH_SIZES:
            raise ValueError(f"Unknown trash size: {size}")

        if analysis is None and self.analyzer is not None:
            analysis = self.analyzer.process(photo)

        if isinstance(analysis, PhotoRejected):
            raise ServerRejectionError(analysis.reason)

        if trash_type is None:
            trash_type = analysis.category if analysis is not None else "general"

        token = self.token_source.get_bearer_token()
        if not token:
            raise AuthenticationMissingError(AUTHENTICATION_REQUIRED_MESSAGE)

        form = {
            "latitude": str(location.latitude),
            "longitude": str(location.longitude),
            "description": description,
            "trashType": trash_type,
            "size": size,
            "timestamp": iso_timestamp(datetime.now(timezone.utc)),
        }
        files = {"photo": (REPORT_IMAGE_FILENAME, photo.data, photo.mime_type)}

        logger.info(
            f"Submitting {trash_type} report at ({location.latitude:.5f}, {location.longitude:.5f})"
        )
        try:
            response = self._get_client().post(
                self._url(SUBMIT_REPORT_PATH),
                data=form,
                files=files,
                headers=self._auth_headers(token),
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            raise TransientNetworkError(f"Report submission failed: {e}") from e

        if not response.is_success:
            raise ServerRejectionError(
                "Failed to submit report", status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Unreadable report response: {e}") from e
        if isinstance(body, dict) and isinstance(body.get("report"), dict):
            body = body["report"]
        if not isinstance(body, dict):
            raise MalformedResponseError("Report response is not an object")

        report = parse_litter_report(body)
        logger.info(f"Report {report.id} created")
        return report
