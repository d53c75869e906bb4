"""
Trash Clean - Error Taxonomy
Exceptions raised across capture, verification and the API clients.
"""

from typing import Optional


class TrashCleanError(Exception):
    """Base class for all Trash Clean errors."""


class PermissionDeniedError(TrashCleanError):
    """Camera or location permission was refused by the user."""

    def __init__(self, resource: str, message: Optional[str] = None):
        self.resource = resource
        super().__init__(message or f"{resource} permission denied")


class CaptureCancelledError(TrashCleanError):
    """The user dismissed the camera without taking a photo."""


class LocationUnavailableError(TrashCleanError):
    """The device could not produce a location fix."""


class MissingEvidenceError(TrashCleanError):
    """A verification attempt was submitted without a photo."""


class ProximityViolationError(TrashCleanError):
    """The user is farther from the item than the pickup radius allows."""

    def __init__(self, distance_meters: float, threshold_meters: float):
        self.distance_meters = distance_meters
        self.threshold_meters = threshold_meters
        super().__init__(
            f"{distance_meters:.0f}m from the item (must be within {threshold_meters:.0f}m)"
        )


class AuthenticationMissingError(TrashCleanError):
    """No bearer token is available for an authenticated request."""


class ServerRejectionError(TrashCleanError):
    """The backend refused a request."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


class TransientNetworkError(TrashCleanError):
    """Network failure or timeout; the request may be retried."""


class MalformedResponseError(TransientNetworkError):
    """The backend returned a payload that could not be parsed."""


class InvalidTransitionError(TrashCleanError):
    """A workflow event was fired from a state that does not accept it."""

    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"Cannot '{event}' while {state}")
