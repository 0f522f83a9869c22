"""
Nearest-frame matcher comparing live hands against stored reference signs.
"""
import logging
from typing import Callable, Iterable, Optional, Sequence

from signalert.backend.core.config import (
    BOTH_HANDS_THRESHOLD,
    MISSING_HAND_PENALTY,
    NUM_LANDMARKS,
    PARTIAL_BOTH_HANDS_THRESHOLD,
    SINGLE_HAND_THRESHOLD,
)
from signalert.backend.core.types import (
    HandObservation,
    Handedness,
    HandType,
    MatchResult,
    ReferenceSign,
)
from signalert.backend.detection.landmarks import similarity

logger = logging.getLogger(__name__)


def best_hand(observations: Iterable[HandObservation], handedness: Handedness) -> Optional[HandObservation]:
    """Pick the observation of one side with the highest detection confidence."""
    best = None
    for observation in observations:
        if observation.handedness is not handedness:
            continue
        if best is None or observation.confidence > best.confidence:
            best = observation
    return best


class SignMatcher:
    """
    Finds the reference sign that best matches the hands in a frame.

    Each sign is scored by its best reference frame; the strategy depends on
    the sign's hand type and on which hands are visible. Two-hand signs seen
    with only one hand are compared against both halves of each combined
    frame and penalized.
    """

    def __init__(
        self,
        scorer: Callable[[Sequence, Sequence], float] = similarity,
        single_hand_threshold: float = SINGLE_HAND_THRESHOLD,
        both_hands_threshold: float = BOTH_HANDS_THRESHOLD,
        partial_both_hands_threshold: float = PARTIAL_BOTH_HANDS_THRESHOLD,
        missing_hand_penalty: float = MISSING_HAND_PENALTY,
    ):
        """
        Args:
            scorer: frame similarity function returning a score in [0, 1]
            single_hand_threshold: bar for left/right signs
            both_hands_threshold: bar for two-hand signs when two hands are seen
            partial_both_hands_threshold: bar for two-hand signs seen with one hand
            missing_hand_penalty: multiplier for one-hand scores of two-hand signs
        """
        self.scorer = scorer
        self.single_hand_threshold = single_hand_threshold
        self.both_hands_threshold = both_hands_threshold
        self.partial_both_hands_threshold = partial_both_hands_threshold
        self.missing_hand_penalty = missing_hand_penalty

    def match(self, observations: Sequence[HandObservation], library: Sequence[ReferenceSign]) -> MatchResult:
        """
        Match the hands of one frame against the sign library.

        Args:
            observations: hands detected in the frame (invalid ones are ignored)
            library: reference signs to compare against

        Returns:
            MatchResult; ``confidence`` holds the best score even when nothing
            passed the threshold
        """
        hands = [obs for obs in observations or [] if obs is not None and obs.is_valid]
        if not hands or not library:
            return MatchResult.not_detected()

        left_hand = best_hand(hands, Handedness.LEFT)
        right_hand = best_hand(hands, Handedness.RIGHT)

        best_confidence = 0.0
        best_sign = None
        for sign in library:
            score = self.score_sign(sign, left_hand, right_hand)
            logger.debug("Max similarity with %r (%s): %.3f", sign.name, sign.hand_type.value, score)
            # Strict comparison keeps the first sign on ties
            if score > best_confidence:
                best_confidence = score
                best_sign = sign

        if best_sign is None:
            return MatchResult.not_detected()

        threshold = self.threshold_for(best_sign, len(hands))
        logger.debug("Best match %r at %.3f (threshold %.2f)", best_sign.name, best_confidence, threshold)

        if best_confidence > threshold:
            return MatchResult(
                detected=True,
                confidence=best_confidence,
                sign_name=best_sign.name,
                matched_sign=best_sign,
            )
        return MatchResult.not_detected(best_confidence)

    def threshold_for(self, sign: ReferenceSign, hand_count: int) -> float:
        """Detection bar for the winning sign given how many hands are visible."""
        if sign.hand_type is HandType.BOTH:
            if hand_count >= 2:
                return self.both_hands_threshold
            return self.partial_both_hands_threshold
        return self.single_hand_threshold

    def score_sign(
        self,
        sign: ReferenceSign,
        left_hand: Optional[HandObservation],
        right_hand: Optional[HandObservation],
    ) -> float:
        """Best similarity of a sign over its reference frames, 0 if not comparable."""
        if sign.hand_type is HandType.LEFT:
            if left_hand is None:
                return 0.0
            return self._best_over_frames(left_hand.landmarks, sign.left_hand_frames)

        if sign.hand_type is HandType.RIGHT:
            if right_hand is None:
                return 0.0
            return self._best_over_frames(right_hand.landmarks, sign.right_hand_frames)

        # Two-hand sign
        if left_hand is not None and right_hand is not None:
            combined = list(left_hand.landmarks) + list(right_hand.landmarks)
            return self._best_over_frames(combined, sign.both_hands_frames)

        available = left_hand or right_hand
        if available is None:
            return 0.0
        return self._best_over_halves(available.landmarks, sign.both_hands_frames)

    def _best_over_frames(self, landmarks, frames) -> float:
        best = 0.0
        for frame in frames:
            best = max(best, self.scorer(landmarks, frame))
        return best

    def _best_over_halves(self, landmarks, frames) -> float:
        """Score one hand against either half of each combined two-hand frame."""
        best = 0.0
        for frame in frames:
            if len(frame) < 2 * NUM_LANDMARKS:
                continue
            first_half = frame[:NUM_LANDMARKS]
            second_half = frame[NUM_LANDMARKS:2 * NUM_LANDMARKS]
            score = max(self.scorer(landmarks, first_half), self.scorer(landmarks, second_half))
            best = max(best, score * self.missing_hand_penalty)
        return best
