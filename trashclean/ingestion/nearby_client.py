"""
Nearby litter report client for Trash Clean

Fetches pending litter reports around the user so they can pick a
pickup target. Reports come back ranked by distance, closest first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from trashclean.core.constants import NEARBY_ITEMS_PATH
from trashclean.core.config import settings
from trashclean.core.errors import (
    MalformedResponseError,
    ServerRejectionError,
    TransientNetworkError,
)
from trashclean.core.geo_utils import Coordinate, distance_between
from trashclean.core.http import ApiClient

logger = logging.getLogger(__name__)


class LitterStatus(str, Enum):
    """Lifecycle status of a litter report."""

    PENDING = "pending"
    CLEANED = "cleaned"


@dataclass(frozen=True)
class LitterReport:
    """
    A reported piece of litter, read-only to the pickup workflow.

    Attributes:
        id: Server identifier of the report
        location: Where the litter was photographed
        description: Free-text description from the reporter
        reported_at: When the report was created
        points_offered: Points the server advertises for collecting it
        status: pending until a verified pickup flips it to cleaned
        trash_type: Category assigned at report time
        size: Reporter's size estimate
        photo_url: URL of the original report photo
    """

    id: str
    location: Coordinate
    description: str = ""
    reported_at: Optional[datetime] = None
    points_offered: int = 0
    status: LitterStatus = LitterStatus.PENDING
    trash_type: Optional[str] = None
    size: Optional[str] = None
    photo_url: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == LitterStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "description": self.description,
            "reported_at": self.reported_at.isoformat() if self.reported_at else None,
            "points_offered": self.points_offered,
            "status": self.status.value,
            "trash_type": self.trash_type,
            "size": self.size,
            "photo_url": self.photo_url,
        }


class LitterReportPayload(BaseModel):
    """Wire format of a litter report as returned by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Union[str, int]
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    description: Optional[str] = None
    reported_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("reportedAt", "reported_at", "createdAt", "created_at"),
    )
    points_offered: int = Field(
        default=0,
        validation_alias=AliasChoices("pointsOffered", "points_offered", "points"),
    )
    status: LitterStatus = LitterStatus.PENDING
    trash_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("trashType", "trash_type")
    )
    size: Optional[str] = None
    photo_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("photoUrl", "photo_url", "imageUrl")
    )

    @model_validator(mode="before")
    @classmethod
    def flatten_location(cls, data: Any) -> Any:
        """Accept ``{"location": {"latitude", "longitude"}}`` as well as flat fields."""
        if isinstance(data, dict) and isinstance(data.get("location"), dict):
            data = {**data["location"], **{k: v for k, v in data.items() if k != "location"}}
        return data

    def to_report(self) -> LitterReport:
        return LitterReport(
            id=str(self.id),
            location=Coordinate(latitude=self.latitude, longitude=self.longitude),
            description=self.description or "",
            reported_at=self.reported_at,
            points_offered=self.points_offered,
            status=self.status,
            trash_type=self.trash_type,
            size=self.size,
            photo_url=self.photo_url,
        )


class NearbyItemsResponse(BaseModel):
    """Envelope of ``GET /trash/nearby``."""

    model_config = ConfigDict(extra="ignore")

    items: Optional[List[Dict[str, Any]]] = None


def parse_litter_report(data: Dict[str, Any]) -> LitterReport:
    """
    Parse a single report payload.

    Raises:
        MalformedResponseError: If the payload is missing required fields
    """
    try:
        return LitterReportPayload.model_validate(data).to_report()
    except ValidationError as e:
        raise MalformedResponseError(f"Invalid litter report payload: {e}") from e


class NearbyItemResolver(ApiClient):
    """
    Resolves pickup candidates around a location.

    Usage:
        with NearbyItemResolver(EnvTokenSource()) as resolver:
            reports = resolver.list_nearby(Coordinate(46.0569, 14.5058), 100)
    """

    def _parse_items(self, raw_items: List[Dict[str, Any]]) -> List[LitterReport]:
        """Parse report payloads, skipping entries that fail validation."""
        reports = []
        for raw in raw_items:
            try:
                reports.append(parse_litter_report(raw))
            except MalformedResponseError as e:
                logger.warning(f"Skipping nearby item: {e}")
                continue
        return reports

    def list_nearby(
        self,
        center: Coordinate,
        radius_meters: Optional[float] = None,
    ) -> List[LitterReport]:
        """
        List pending litter reports within a radius, closest first.

        Args:
            center: User's current position
            radius_meters: Search radius, defaults to ``settings.nearby_radius_meters``

        Returns:
            Reports ordered ascending by distance from ``center``; empty when
            nothing is pending nearby

        Raises:
            TransientNetworkError: On connection failure or timeout
            MalformedResponseError: If the response is not the expected JSON
            ServerRejectionError: On a non-2xx response
        """
        radius = radius_meters if radius_meters is not None else settings.nearby_radius_meters
        params = {
            "latitude": center.latitude,
            "longitude": center.longitude,
            "radius": radius,
        }
        headers = self._auth_headers(self.token_source.get_bearer_token())

        logger.info(
            f"Fetching nearby items around ({center.latitude:.5f}, {center.longitude:.5f}), "
            f"radius={radius:.0f}m"
        )
        try:
            response = self._get_client().get(
                self._url(NEARBY_ITEMS_PATH),
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            raise TransientNetworkError(f"Nearby items request failed: {e}") from e

        if not response.is_success:
            raise ServerRejectionError(
                f"Nearby items request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            envelope = NearbyItemsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unreadable nearby items response: {e}") from e

        reports = [
            report for report in self._parse_items(envelope.items or [])
            if report.is_pending and distance_between(center, report.location) <= radius
        ]
        reports.sort(key=lambda report: distance_between(center, report.location))

        logger.info(f"Retrieved {len(reports)} pending items nearby")
        return reports
