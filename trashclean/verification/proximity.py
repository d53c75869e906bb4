"""
Proximity gate for pickup verification
Decides whether the user is close enough to a litter report to prove pickup.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from trashclean.core.config import settings
from trashclean.core.geo_utils import Coordinate, distance_between

logger = logging.getLogger(__name__)

# Slack for floating-point round-off in the distance calculation
DISTANCE_TOLERANCE_M = 1e-6


@dataclass(frozen=True)
class ProximityCheck:
    """Result of a proximity check."""
    allowed: bool
    distance_meters: float
    threshold_meters: float
    location_is_fallback: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def distance_trusted(self) -> bool:
        return not self.location_is_fallback

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "distance_meters": round(self.distance_meters, 1),
            "threshold_meters": self.threshold_meters,
            "location_is_fallback": self.location_is_fallback,
            "warnings": list(self.warnings),
        }


class ProximityGate:
    """
    Compares the live position against the reported litter position.

    The decision uses the point estimate only. A reported GPS accuracy worse
    than the threshold produces a warning but does not change the verdict.
    """

    def __init__(self, threshold_meters: Optional[float] = None):
        """
        Initialize the gate.

        Args:
            threshold_meters: Pickup radius, defaults to ``settings.pickup_radius_meters``
        """
        self.threshold_meters = (
            threshold_meters if threshold_meters is not None else settings.pickup_radius_meters
        )
        if self.threshold_meters <= 0:
            raise ValueError(f"Pickup radius must be positive: {self.threshold_meters}")

    def check(
        self,
        live: Coordinate,
        target: Coordinate,
        location_is_fallback: bool = False,
    ) -> ProximityCheck:
        """
        Check whether ``live`` is within the pickup radius of ``target``.

        Args:
            live: User's measured position
            target: Reported litter position
            location_is_fallback: ``live`` is a substitute, not a device fix

        Returns:
            ProximityCheck with the verdict and measured distance
        """
        distance = distance_between(live, target)
        warnings = []

        if location_is_fallback:
            warnings.append("Location unavailable - distance is based on a default position")
        if live.accuracy_meters is not None and live.accuracy_meters > self.threshold_meters:
            warnings.append(
                f"GPS accuracy is {live.accuracy_meters:.0f}m, "
                f"worse than the {self.threshold_meters:.0f}m pickup radius"
            )

        allowed = distance <= self.threshold_meters + DISTANCE_TOLERANCE_M
        logger.debug(
            f"Proximity check: {distance:.1f}m vs {self.threshold_meters:.0f}m -> "
            f"{'allowed' if allowed else 'denied'}"
        )

        return ProximityCheck(
            allowed=allowed,
            distance_meters=distance,
            threshold_meters=self.threshold_meters,
            location_is_fallback=location_is_fallback,
            warnings=warnings,
        )
