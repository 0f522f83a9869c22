"""
Detection session management.

A DetectionSession owns all mutable detection state: the countdown, the
active window, the cooldown gate and the consensus buffer. Time comes from
an injectable clock, and scheduled transitions are applied by ``update()``,
so the controller runs the same under a real event loop or a virtual clock.
"""
import logging
import math
import time
import uuid
from typing import Callable, Dict, Optional, Sequence

from signalert.backend.core.config import (
    COUNTDOWN_DURATION,
    DETECTION_COOLDOWN_MS,
    DETECTION_TIMEOUT_MS,
    SAMPLE_CAPACITY,
    SAMPLE_THRESHOLD,
)
from signalert.backend.core.consensus import ConsensusFilter, CooldownGate
from signalert.backend.core.errors import DetectorNotReadyError, EmptyLibraryError
from signalert.backend.core.types import (
    DetectionResult,
    HandObservation,
    MatchCandidate,
    MatchResult,
    ReferenceSign,
    SessionState,
)
from signalert.backend.detection.sign_matcher import SignMatcher

logger = logging.getLogger(__name__)


class DetectionSession:
    """
    Timed detection window: Idle -> Countdown -> Active -> Idle.

    Listeners (all optional):
        on_detection(DetectionResult): a sign was confirmed
        on_countdown(int): seconds left before detection starts
        on_state_change(SessionState, str): new state and the reason
        on_match(MatchResult): every matcher run, for diagnostics
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        matcher: Optional[SignMatcher] = None,
        clock: Optional[Callable[[], float]] = None,
        countdown_duration: int = COUNTDOWN_DURATION,
        timeout_ms: float = DETECTION_TIMEOUT_MS,
        cooldown_ms: float = DETECTION_COOLDOWN_MS,
        sample_capacity: int = SAMPLE_CAPACITY,
        sample_threshold: int = SAMPLE_THRESHOLD,
        on_detection: Optional[Callable[[DetectionResult], None]] = None,
        on_countdown: Optional[Callable[[int], None]] = None,
        on_state_change: Optional[Callable[[SessionState, str], None]] = None,
        on_match: Optional[Callable[[MatchResult], None]] = None,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.matcher = matcher or SignMatcher()
        self.clock = clock or time.monotonic
        self.countdown_duration = countdown_duration
        self.timeout_ms = timeout_ms

        self.cooldown = CooldownGate(cooldown_ms)
        self.consensus = ConsensusFilter(capacity=sample_capacity, window=sample_threshold)

        self.on_detection = on_detection
        self.on_countdown = on_countdown
        self.on_state_change = on_state_change
        self.on_match = on_match

        # Current state
        self.state = SessionState.IDLE
        self.library: Sequence[ReferenceSign] = ()
        self.countdown = 0
        self.started_at: Optional[float] = None
        self.activated_at: Optional[float] = None
        self.expires_at: Optional[float] = None

        # Output
        self.current_result: Optional[DetectionResult] = None
        self.last_match: Optional[MatchResult] = None
        self.closed = False

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def is_running(self) -> bool:
        return self.state is not SessionState.IDLE

    def start(self, library: Sequence[ReferenceSign], detector_loaded: bool = True) -> bool:
        """
        Begin the countdown to a new detection window.

        The library is snapshotted here; later changes to it are not seen by
        this run.

        Args:
            library: reference signs to match against
            detector_loaded: whether the landmark detector is ready

        Returns:
            True if the countdown started, False if a run is already in progress

        Raises:
            DetectorNotReadyError: the detector is not loaded
            EmptyLibraryError: there are no signs to compare against
        """
        if self.closed:
            return False
        if self.is_running:
            logger.debug("Session %s already %s, ignoring start", self.id, self.state.value)
            return False
        if not detector_loaded:
            raise DetectorNotReadyError()

        snapshot = tuple(library or ())
        if not snapshot:
            raise EmptyLibraryError()

        now = self.clock()
        self.library = snapshot
        self.current_result = None
        self.consensus.clear()
        self.started_at = now
        self.countdown = self.countdown_duration

        logger.info("Session %s: countdown started with %d signs", self.id, len(snapshot))
        self._set_state(SessionState.COUNTDOWN, "started")
        if self.countdown > 0:
            self._emit(self.on_countdown, self.countdown)
        else:
            self.update(now)
        return True

    def update(self, now: Optional[float] = None):
        """
        Apply every transition scheduled up to ``now``.

        Emits countdown ticks, switches to Active when the countdown ends and
        back to Idle when the detection window times out.
        """
        if self.closed:
            return
        now = self.clock() if now is None else now

        if self.state is SessionState.COUNTDOWN:
            elapsed = now - self.started_at
            remaining = max(self.countdown_duration - int(math.floor(elapsed)), 0)
            for seconds in range(self.countdown - 1, remaining - 1, -1):
                if seconds > 0:
                    self._emit(self.on_countdown, seconds)
            self.countdown = min(self.countdown, remaining)
            if remaining == 0:
                self._activate(self.started_at + self.countdown_duration)

        if self.state is SessionState.ACTIVE and now >= self.expires_at:
            logger.info("Session %s: no sign confirmed before timeout", self.id)
            self._finish("timeout")

    def on_frame(self, observations: Sequence[HandObservation], now: Optional[float] = None) -> Optional[DetectionResult]:
        """
        Feed the hands detected in one frame.

        Never raises; a failing frame is logged and ignored.

        Returns:
            DetectionResult if this frame confirmed a sign, else None
        """
        if self.closed:
            return None
        now = self.clock() if now is None else now

        try:
            self.update(now)
            if not self.is_active or not observations:
                return None
            if not self.cooldown.ready(now):
                return None

            result = self.matcher.match(observations, self.library)
            self.last_match = result
            self._emit(self.on_match, result)

            candidate = result.to_candidate()
            if candidate is None:
                return None

            confirmed = self.consensus.add(candidate)
            if confirmed is None:
                return None
            return self._confirm(confirmed)
        except Exception:
            logger.exception("Session %s: frame processing failed", self.id)
            return None

    def dismiss(self):
        """Clear the displayed detection without touching the session state."""
        self.current_result = None

    def stop(self, reason: str = "stopped") -> bool:
        """Cancel the countdown or active window. Returns False if already idle."""
        if not self.is_running:
            return False
        self._finish(reason)
        return True

    def close(self):
        """Tear down: stop, then ignore every later call."""
        if self.closed:
            return
        self.stop("closed")
        self.closed = True

    def get_time_remaining(self, now: Optional[float] = None) -> int:
        """Whole seconds left in the active window."""
        if not self.is_active:
            return 0
        now = self.clock() if now is None else now
        return max(0, math.ceil(self.expires_at - now))

    def get_status(self) -> Dict:
        return {
            "session_id": self.id,
            "state": self.state.value,
            "countdown": self.countdown,
            "time_remaining": self.get_time_remaining(),
            "signs": len(self.library),
            "detection": self.current_result.to_dict() if self.current_result else None,
        }

    def _activate(self, at: float):
        self.activated_at = at
        self.expires_at = at + self.timeout_ms / 1000.0
        self.countdown = 0
        self.consensus.clear()
        self.cooldown.reset(at)
        logger.info("Session %s: detection started, comparing with %d signs", self.id, len(self.library))
        self._set_state(SessionState.ACTIVE, "countdown finished")

    def _confirm(self, candidate: MatchCandidate) -> Optional[DetectionResult]:
        result = DetectionResult(sign=candidate.sign, confidence=candidate.confidence)
        self.current_result = result
        logger.info("Session %s: sign %r detected (confidence %.2f)", self.id, candidate.sign_name, candidate.confidence)
        self._emit(self.on_detection, result)
        self._finish("detected")
        return result

    def _finish(self, reason: str):
        self.consensus.clear()
        self.countdown = 0
        self.expires_at = None
        self._set_state(SessionState.IDLE, reason)

    def _set_state(self, state: SessionState, reason: str):
        self.state = state
        self._emit(self.on_state_change, state, reason)

    def _emit(self, callback, *args):
        if callback is None or self.closed:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Session %s: listener failed", self.id)


class SessionManager:
    """Manages one detection session per client."""

    def __init__(self):
        self.sessions: Dict[str, DetectionSession] = {}

    def create_session(self, session_id: Optional[str] = None, **kwargs) -> DetectionSession:
        """Create new detection session."""
        session = DetectionSession(session_id, **kwargs)
        self.sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> Optional[DetectionSession]:
        """Get existing session by ID."""
        return self.sessions.get(session_id)

    def remove_session(self, session_id: str):
        """Close and remove a session."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            session.close()

    def close_all(self):
        for session_id in list(self.sessions):
            self.remove_session(session_id)
