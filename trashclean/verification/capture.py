"""
Capture coordinator for pickup verification

Acquires the photo and the location fix for one attempt concurrently.
A photo is mandatory evidence: any failure to get one blocks the attempt.
Location is best effort: when the device cannot produce a fix the
configured default position is substituted and the bundle is flagged.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import List, Optional, Protocol, Tuple, Union

from trashclean.core.config import settings
from trashclean.core.errors import (
    CaptureCancelledError,
    LocationUnavailableError,
    PermissionDeniedError,
)
from trashclean.core.geo_utils import Coordinate
from trashclean.verification.models import CaptureBundle, CaptureFailure, Photo, utc_now

logger = logging.getLogger(__name__)


class PhotoSource(Protocol):
    """Device camera."""

    def take_photo(self) -> Optional[Photo]:
        """
        Take one photo.

        Returns None (or raises CaptureCancelledError) when the user cancels;
        raises PermissionDeniedError when camera access is refused.
        """
        ...


class LocationSource(Protocol):
    """Device positioning."""

    def current_location(self, timeout_seconds: float) -> Coordinate:
        """
        Get one location fix.

        Raises PermissionDeniedError, LocationUnavailableError or TimeoutError.
        """
        ...


def default_fallback_location() -> Optional[Coordinate]:
    """Fallback coordinate from settings, if one is configured."""
    if not settings.has_fallback_location:
        return None
    return Coordinate(
        latitude=settings.fallback_latitude,
        longitude=settings.fallback_longitude,
    )


class CaptureCoordinator:
    """
    Joins photo and location acquisition into a CaptureBundle.

    Every call to ``capture`` performs two fresh acquisitions; nothing from a
    previous capture is reused.
    """

    def __init__(
        self,
        photo_source: PhotoSource,
        location_source: LocationSource,
        fallback_location: Optional[Coordinate] = None,
        location_timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            photo_source: Camera collaborator
            location_source: Positioning collaborator
            fallback_location: Substitute position when no fix is available,
                defaults to the one configured in settings
            location_timeout_seconds: How long to wait for a fix
        """
        self.photo_source = photo_source
        self.location_source = location_source
        self.fallback_location = fallback_location or default_fallback_location()
        self.location_timeout_seconds = (
            location_timeout_seconds
            if location_timeout_seconds is not None
            else settings.location_timeout_seconds
        )

    def _acquire_photo(self) -> Tuple[Optional[Photo], Optional[str]]:
        try:
            photo = self.photo_source.take_photo()
        except PermissionDeniedError as e:
            return None, str(e)
        except CaptureCancelledError:
            return None, "photo capture cancelled"
        except Exception as e:
            logger.error(f"Camera error: {e}")
            return None, f"camera error: {e}"

        if photo is None or not photo.data:
            return None, "photo capture cancelled"
        return photo, None

    def _resolve_location(
        self,
        future: "Future[Coordinate]",
        deadline: float,
    ) -> Tuple[Optional[Coordinate], Optional[str]]:
        remaining = max(0.0, deadline - time.monotonic())
        try:
            return future.result(timeout=remaining), None
        except FuturesTimeoutError:
            future.cancel()
            return None, "location request timed out"
        except (PermissionDeniedError, LocationUnavailableError, TimeoutError) as e:
            return None, str(e) or type(e).__name__
        except Exception as e:
            logger.error(f"Location provider error: {e}")
            return None, f"location error: {e}"

    def capture(self) -> Union[CaptureBundle, CaptureFailure]:
        """
        Acquire a photo and a location fix concurrently.

        Returns:
            CaptureBundle when a photo was taken and a position (real or
            fallback) is known, otherwise CaptureFailure naming what is missing
        """
        deadline = time.monotonic() + self.location_timeout_seconds
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="capture")
        try:
            location_future = pool.submit(
                self.location_source.current_location, self.location_timeout_seconds
            )
            photo_future = pool.submit(self._acquire_photo)

            photo, photo_error = photo_future.result()
            location, location_error = self._resolve_location(location_future, deadline)
        finally:
            # A location request that overran its deadline is abandoned
            pool.shutdown(wait=False)

        reasons: List[str] = []
        location_is_fallback = False

        if photo_error:
            reasons.append(photo_error)

        if location is None:
            if self.fallback_location is not None:
                logger.warning(f"Using fallback location: {location_error}")
                location = self.fallback_location
                location_is_fallback = True
            else:
                reasons.append(location_error or "location unavailable")

        if photo is None or location is None:
            failure = CaptureFailure(
                missing_photo=photo is None,
                missing_location=location is None,
                reasons=reasons,
            )
            logger.info(f"Capture incomplete: {', '.join(reasons)}")
            return failure

        bundle = CaptureBundle(
            photo=photo,
            live_location=location,
            captured_at=utc_now(),
            location_is_fallback=location_is_fallback,
        )
        logger.info(
            f"Captured {photo.size_bytes} byte photo at "
            f"({location.latitude:.5f}, {location.longitude:.5f})"
            f"{' [fallback]' if location_is_fallback else ''}"
        )
        return bundle
