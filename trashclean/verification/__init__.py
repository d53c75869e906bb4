"""
Trash Clean - Pickup Verification Module
Proximity gating, evidence capture, submission and the workflow state machine.
"""

from trashclean.verification.models import (
    Photo,
    CaptureBundle,
    CaptureFailure,
    VerificationAttempt,
    Accepted,
    RejectedByServer,
    RejectedByProximity,
    TransientError,
    VerificationOutcome,
)
from trashclean.verification.proximity import (
    ProximityGate,
    ProximityCheck,
)
from trashclean.verification.capture import (
    CaptureCoordinator,
    PhotoSource,
    LocationSource,
)
from trashclean.verification.submission_client import (
    VerificationClient,
    interpret_response,
)
from trashclean.verification.workflow import (
    VerificationWorkflow,
    VerificationState,
)

__all__ = [
    # Models
    "Photo",
    "CaptureBundle",
    "CaptureFailure",
    "VerificationAttempt",
    "Accepted",
    "RejectedByServer",
    "RejectedByProximity",
    "TransientError",
    "VerificationOutcome",
    # Proximity
    "ProximityGate",
    "ProximityCheck",
    # Capture
    "CaptureCoordinator",
    "PhotoSource",
    "LocationSource",
    # Submission
    "VerificationClient",
    "interpret_response",
    # Workflow
    "VerificationWorkflow",
    "VerificationState",
]
