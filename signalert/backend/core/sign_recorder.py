"""
Records the reference frames of a new sign from live hand observations.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from signalert.backend.core.errors import NoHandsRecordedError
from signalert.backend.core.types import Frame, HandObservation, Handedness, HandType

logger = logging.getLogger(__name__)


@dataclass
class RecordedSign:
    """Frames captured during one recording, ready for SignLibrary.add."""

    landmarks: Dict[str, List[Frame]]
    hand_type: HandType

    @property
    def frame_count(self) -> int:
        return sum(len(frames) for frames in self.landmarks.values())


class SignRecorder:
    """
    Collects left, right and combined two-hand frames while recording.

    Each frame contributes the last valid hand seen for each side. When both
    sides are present, a 42-point combined frame (left first) is also stored.
    """

    def __init__(self):
        self.is_recording = False
        self.left_hand: List[Frame] = []
        self.right_hand: List[Frame] = []
        self.both_hands: List[Frame] = []

    def start(self):
        """Start a new recording, discarding any previous frames."""
        self.is_recording = True
        self.left_hand = []
        self.right_hand = []
        self.both_hands = []
        logger.info("Recording started")

    def add_frame(self, observations: Sequence[HandObservation]):
        """Store the hands of one frame. Ignored when not recording."""
        if not self.is_recording:
            return

        left = right = None
        for observation in observations or []:
            if observation is None or not observation.is_valid:
                continue
            landmarks = [list(point) for point in observation.landmarks]
            if observation.handedness is Handedness.LEFT:
                left = landmarks
            else:
                right = landmarks

        if left is not None:
            self.left_hand.append(left)
        if right is not None:
            self.right_hand.append(right)
        if left is not None and right is not None:
            self.both_hands.append(left + right)

    def finish(self) -> RecordedSign:
        """
        Stop recording and work out which hands the sign uses.

        Returns:
            RecordedSign with the frames and inferred hand type

        Raises:
            NoHandsRecordedError: no hand was seen during the recording
        """
        self.is_recording = False

        if not self.left_hand and not self.right_hand:
            raise NoHandsRecordedError()

        if self.both_hands and self.left_hand and self.right_hand:
            hand_type = HandType.BOTH
        elif self.left_hand:
            hand_type = HandType.LEFT
        else:
            hand_type = HandType.RIGHT

        recorded = RecordedSign(
            landmarks={
                "leftHand": self.left_hand,
                "rightHand": self.right_hand,
                "bothHands": self.both_hands,
            },
            hand_type=hand_type,
        )
        logger.info("Recording finished: %d frames for %s hand(s)", recorded.frame_count, hand_type.value)
        return recorded
