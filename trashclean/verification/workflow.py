"""
Pickup verification workflow

State machine driving one user through proving a pickup:

    IDLE -> CAPTURING -> EVALUATING -> SUBMITTING -> ACCEPTED
                             |              |------> REJECTED
                             |              +------> TRANSIENT_ERROR
                             +-> REJECTED

Exactly one attempt is active at a time, and at most one capture or
submission runs for it. Retake or cancel invalidates any capture or
submission still in flight; its result is dropped when it arrives.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from trashclean.core.errors import InvalidTransitionError
from trashclean.ingestion.nearby_client import LitterReport
from trashclean.verification.capture import CaptureCoordinator
from trashclean.verification.models import (
    Accepted,
    CaptureBundle,
    CaptureFailure,
    RejectedByProximity,
    RejectedByServer,
    TransientError,
    VerificationAttempt,
    VerificationOutcome,
)
from trashclean.verification.proximity import ProximityCheck, ProximityGate
from trashclean.verification.submission_client import VerificationClient

logger = logging.getLogger(__name__)


class VerificationState(str, Enum):
    """States of the verification workflow."""
    IDLE = "idle"
    CAPTURING = "capturing"
    EVALUATING = "evaluating"
    SUBMITTING = "submitting"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TRANSIENT_ERROR = "transient_error"


_TRANSITIONS: Dict[Tuple[VerificationState, str], VerificationState] = {
    (VerificationState.IDLE, "begin_capture"): VerificationState.CAPTURING,
    (VerificationState.CAPTURING, "bundle_ready"): VerificationState.EVALUATING,
    (VerificationState.EVALUATING, "proximity_fails"): VerificationState.REJECTED,
    (VerificationState.EVALUATING, "proximity_ok"): VerificationState.SUBMITTING,
    (VerificationState.SUBMITTING, "server_accepts"): VerificationState.ACCEPTED,
    (VerificationState.SUBMITTING, "server_rejects"): VerificationState.REJECTED,
    (VerificationState.SUBMITTING, "network_fails"): VerificationState.TRANSIENT_ERROR,
    (VerificationState.TRANSIENT_ERROR, "retry"): VerificationState.SUBMITTING,
    (VerificationState.REJECTED, "retake"): VerificationState.CAPTURING,
    (VerificationState.ACCEPTED, "done"): VerificationState.IDLE,
}

# Retake also interrupts work in progress
_RETAKE_FROM = {
    VerificationState.CAPTURING,
    VerificationState.EVALUATING,
    VerificationState.SUBMITTING,
    VerificationState.TRANSIENT_ERROR,
    VerificationState.REJECTED,
}

StateListener = Callable[[VerificationState, VerificationState, "VerificationWorkflow"], None]


class VerificationWorkflow:
    """
    Drives capture, proximity evaluation and submission for one target.

    Usage:
        workflow = VerificationWorkflow(report, coordinator, client)
        state = workflow.run()
        if state == VerificationState.TRANSIENT_ERROR:
            state = workflow.retry()
        elif state == VerificationState.REJECTED:
            workflow.retake()
            state = workflow.capture()
            ...
    """

    def __init__(
        self,
        target: LitterReport,
        coordinator: CaptureCoordinator,
        client: VerificationClient,
        gate: Optional[ProximityGate] = None,
    ):
        """
        Initialize the workflow.

        Args:
            target: Litter report the user is collecting
            coordinator: Photo + location capture
            client: Verification submission client
            gate: Proximity gate, defaults to the client's gate
        """
        self.target = target
        self.coordinator = coordinator
        self.client = client
        self.gate = gate or client.gate

        self._lock = threading.RLock()
        self._state = VerificationState.IDLE
        self._generation = 0
        self._in_flight: Optional[int] = None
        self._attempt: Optional[VerificationAttempt] = None
        self._outcome: Optional[VerificationOutcome] = None
        self._proximity: Optional[ProximityCheck] = None
        self._capture_failure: Optional[CaptureFailure] = None
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> VerificationState:
        return self._state

    @property
    def attempt(self) -> Optional[VerificationAttempt]:
        return self._attempt

    @property
    def bundle(self) -> Optional[CaptureBundle]:
        return self._attempt.bundle if self._attempt else None

    @property
    def outcome(self) -> Optional[VerificationOutcome]:
        return self._outcome

    @property
    def proximity(self) -> Optional[ProximityCheck]:
        return self._proximity

    @property
    def last_capture_failure(self) -> Optional[CaptureFailure]:
        return self._capture_failure

    def add_listener(self, listener: StateListener) -> None:
        """Register ``listener(old_state, new_state, workflow)`` for every transition."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fire(self, event: str) -> VerificationState:
        old = self._state
        if event == "retake" and old in _RETAKE_FROM:
            new = VerificationState.CAPTURING
        elif event == "cancel":
            new = VerificationState.IDLE
        else:
            new = _TRANSITIONS.get((old, event))
            if new is None:
                raise InvalidTransitionError(old.value, event)

        self._state = new
        logger.debug(f"Item {self.target.id}: {old.value} --{event}--> {new.value}")
        for listener in list(self._listeners):
            listener(old, new, self)
        return new

    def _discard_evidence(self) -> None:
        self._generation += 1
        self._attempt = None
        self._outcome = None
        self._proximity = None
        self._capture_failure = None

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _is_busy(self) -> bool:
        return self._in_flight == self._generation

    def _finish(self, generation: int) -> None:
        if self._in_flight == generation:
            self._in_flight = None

    def _evaluate(self, bundle: CaptureBundle) -> VerificationState:
        check = self.gate.check(
            bundle.live_location,
            self.target.location,
            location_is_fallback=bundle.location_is_fallback,
        )
        self._proximity = check
        self._attempt = VerificationAttempt(
            target=self.target,
            bundle=bundle,
            distance_meters=check.distance_meters,
        )
        for warning in check.warnings:
            logger.warning(f"Item {self.target.id}: {warning}")

        if not check.allowed:
            self._outcome = RejectedByProximity(
                distance_meters=check.distance_meters,
                threshold_meters=check.threshold_meters,
            )
            return self._fire("proximity_fails")
        return self._fire("proximity_ok")

    def _apply_outcome(self, outcome: VerificationOutcome) -> VerificationState:
        self._outcome = outcome
        if isinstance(outcome, Accepted):
            return self._fire("server_accepts")
        if isinstance(outcome, (RejectedByServer, RejectedByProximity)):
            return self._fire("server_rejects")
        if isinstance(outcome, TransientError):
            return self._fire("network_fails")
        raise TypeError(f"Unknown verification outcome: {outcome!r}")

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def begin_capture(self) -> bool:
        """
        Start a new attempt.

        Returns:
            False (and does nothing) if an attempt is already active
        """
        with self._lock:
            if self._state != VerificationState.IDLE:
                logger.info(
                    f"Item {self.target.id}: begin_capture ignored while {self._state.value}"
                )
                return False
            self._discard_evidence()
            self._fire("begin_capture")
            return True

    def capture(self) -> VerificationState:
        """
        Acquire fresh evidence and evaluate proximity.

        Ends in SUBMITTING (ready to send), REJECTED (too far) or stays in
        CAPTURING when the photo or location could not be obtained. A call
        made while a capture is already running returns the current state.
        """
        with self._lock:
            if self._state != VerificationState.CAPTURING:
                raise InvalidTransitionError(self._state.value, "capture")
            if self._is_busy():
                logger.info(f"Item {self.target.id}: capture already in progress")
                return self._state
            generation = self._generation
            self._in_flight = generation
            self._capture_failure = None

        try:
            result = self.coordinator.capture()
        except Exception:
            with self._lock:
                self._finish(generation)
            raise

        with self._lock:
            self._finish(generation)
            if self._is_stale(generation):
                logger.info(f"Item {self.target.id}: discarding capture from a cancelled attempt")
                return self._state
            if isinstance(result, CaptureFailure):
                self._capture_failure = result
                return self._state
            self._fire("bundle_ready")
            return self._evaluate(result)

    def _send(self, generation: int, attempt: VerificationAttempt) -> VerificationState:
        try:
            outcome = self.client.submit(attempt)
        except Exception:
            with self._lock:
                self._finish(generation)
            raise

        with self._lock:
            self._finish(generation)
            if self._is_stale(generation):
                logger.info(
                    f"Item {self.target.id}: dropping {type(outcome).__name__} "
                    f"for a cancelled attempt"
                )
                return self._state
            return self._apply_outcome(outcome)

    def submit(self) -> VerificationState:
        """
        Send the current attempt and apply the server's verdict.

        A call made while the attempt is already being sent returns the
        current state without sending it again.
        """
        with self._lock:
            if self._is_busy():
                logger.info(f"Item {self.target.id}: submission already in progress")
                return self._state
            if self._state != VerificationState.SUBMITTING or self._attempt is None:
                raise InvalidTransitionError(self._state.value, "submit")
            generation = self._generation
            self._in_flight = generation
            attempt = self._attempt
        return self._send(generation, attempt)

    def retry(self) -> VerificationState:
        """Resend the same attempt, with the same evidence, after a transient error."""
        with self._lock:
            if self._is_busy():
                logger.info(f"Item {self.target.id}: submission already in progress")
                return self._state
            self._fire("retry")
            generation = self._generation
            self._in_flight = generation
            attempt = self._attempt
        return self._send(generation, attempt)

    def retake(self) -> VerificationState:
        """Throw away the current evidence and go back to capturing."""
        with self._lock:
            if self._state not in _RETAKE_FROM:
                raise InvalidTransitionError(self._state.value, "retake")
            self._discard_evidence()
            return self._fire("retake")

    def done(self) -> VerificationState:
        """Leave the workflow after an accepted pickup."""
        with self._lock:
            new_state = self._fire("done")
            self._discard_evidence()
            return new_state

    def cancel(self) -> VerificationState:
        """Abandon the workflow (navigation away); in-flight results are dropped."""
        with self._lock:
            self._discard_evidence()
            return self._fire("cancel")

    def run(self) -> VerificationState:
        """Begin, capture and submit in one go, returning the resulting state."""
        if not self.begin_capture():
            return self._state
        state = self.capture()
        if state == VerificationState.SUBMITTING:
            state = self.submit()
        return state
