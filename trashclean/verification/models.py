"""
Data model for pickup verification.

A verification attempt pairs a litter report with the evidence captured
on site (one photo, one location fix). Every attempt reduces to exactly
one VerificationOutcome.
"""

import mimetypes
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from trashclean.core.geo_utils import Coordinate
from trashclean.ingestion.nearby_client import LitterReport

# Namespace for idempotency keys derived from (report id, attempt time)
IDEMPOTENCY_NAMESPACE = uuid.UUID("6f1c9a52-3d0e-4c7b-9a8e-2b5d7c41e0f3")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Photo:
    """Captured image: raw bytes plus the local URI it was read from."""
    uri: str
    data: bytes = field(repr=False)
    mime_type: str = "image/jpeg"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "Photo":
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        return cls(uri=path.as_uri(), data=path.read_bytes(), mime_type=mime_type)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CaptureBundle:
    """
    Evidence gathered for one verification attempt.

    Attributes:
        photo: The pickup photo, or None if none was taken
        live_location: Where the user was when capturing
        captured_at: When capture completed (UTC)
        location_is_fallback: True when ``live_location`` is the configured
            substitute rather than a real device fix
    """
    photo: Optional[Photo]
    live_location: Coordinate
    captured_at: datetime = field(default_factory=utc_now)
    location_is_fallback: bool = False

    @property
    def has_photo(self) -> bool:
        return self.photo is not None and bool(self.photo.data)


@dataclass(frozen=True)
class CaptureFailure:
    """Capture could not produce a usable bundle."""
    missing_photo: bool = False
    missing_location: bool = False
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "missing_photo": self.missing_photo,
            "missing_location": self.missing_location,
            "reasons": list(self.reasons),
        }


def make_idempotency_key(report_id: str, created_at: datetime) -> str:
    """Deterministic key for (report, attempt time) so a retried request is deduplicated."""
    return str(uuid.uuid5(IDEMPOTENCY_NAMESPACE, f"{report_id}:{created_at.isoformat()}"))


@dataclass(frozen=True)
class VerificationAttempt:
    """
    One submission candidate. Retakes build a new attempt rather than
    mutating this one.
    """
    target: LitterReport
    bundle: CaptureBundle
    distance_meters: float
    created_at: datetime = field(default_factory=utc_now)
    idempotency_key: str = ""

    def __post_init__(self):
        if not self.idempotency_key:
            object.__setattr__(
                self,
                "idempotency_key",
                make_idempotency_key(self.target.id, self.created_at),
            )


# =============================================================================
# OUTCOMES
# =============================================================================

@dataclass(frozen=True)
class Accepted:
    """Server confirmed the pickup."""
    points_earned: int
    message: str = ""
    match_confidence: Optional[float] = None


@dataclass(frozen=True)
class RejectedByServer:
    """Server refused the evidence; a new capture is required."""
    reason: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class RejectedByProximity:
    """The user was too far from the item to submit."""
    distance_meters: float
    threshold_meters: float


@dataclass(frozen=True)
class TransientError:
    """Transport failed; the same evidence may be resent."""
    cause: str


VerificationOutcome = Union[Accepted, RejectedByServer, RejectedByProximity, TransientError]
