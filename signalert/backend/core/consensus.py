"""
Temporal consensus over per-frame matches.

The cooldown gate bounds how often the matcher runs, independent of the
detector's frame rate. The consensus filter confirms a sign only when it
recurs in the most recent detected samples.
"""
import math
from collections import Counter, deque
from typing import List, Optional

from signalert.backend.core.config import (
    DETECTION_COOLDOWN_MS,
    SAMPLE_CAPACITY,
    SAMPLE_THRESHOLD,
)
from signalert.backend.core.types import MatchCandidate


class CooldownGate:
    """Lets one evaluation through per cooldown interval."""

    def __init__(self, cooldown_ms: float = DETECTION_COOLDOWN_MS):
        self.cooldown_ms = cooldown_ms
        self.last_run: Optional[float] = None

    def reset(self, now: float):
        """Re-arm the gate as if an evaluation had just run at ``now``."""
        self.last_run = now

    def ready(self, now: float) -> bool:
        """
        Check the gate and consume it if open.

        Args:
            now: current time in seconds

        Returns:
            True if at least ``cooldown_ms`` has passed since the last evaluation
        """
        if self.last_run is not None:
            elapsed_ms = (now - self.last_run) * 1000.0
            # Tolerate float error when frames land exactly on the interval
            if elapsed_ms + 1e-6 < self.cooldown_ms:
                return False
        self.last_run = now
        return True


class ConsensusFilter:
    """
    Rolling buffer of detected samples with a majority vote over the newest ones.

    Only detections are added; frames without a match never reach the buffer.
    """

    def __init__(self, capacity: int = SAMPLE_CAPACITY, window: int = SAMPLE_THRESHOLD):
        self.capacity = capacity
        self.window = window
        self.samples = deque(maxlen=capacity)

    @property
    def required_count(self) -> int:
        return math.ceil(self.window / 2)

    def clear(self):
        self.samples.clear()

    def recent(self) -> List[MatchCandidate]:
        return list(self.samples)[-self.window:]

    def add(self, candidate: MatchCandidate) -> Optional[MatchCandidate]:
        """
        Add a detected sample and check for consensus.

        Args:
            candidate: the sign detected in the current frame

        Returns:
            MatchCandidate for the confirmed sign with the mean confidence of
            every sample in the window, or None. Confirmation clears the buffer.
        """
        self.samples.append(candidate)

        window = self.recent()
        if len(window) < self.window:
            return None

        # most_common keeps first-seen order for equal counts
        counts = Counter(sample.sign_name for sample in window)
        sign_name, count = counts.most_common(1)[0]
        if count < self.required_count:
            return None

        sign = next(sample.sign for sample in window if sample.sign_name == sign_name)
        confidence = sum(sample.confidence for sample in window) / len(window)
        self.clear()
        return MatchCandidate(sign=sign, confidence=confidence)
