"""Shared builders for hand landmarks, signs and a virtual clock."""

import numpy as np

from signalert.backend.core.types import HandObservation, Handedness, HandType, ReferenceSign

# Open hand, roughly as MediaPipe reports it for a right hand facing the camera
OPEN_HAND = np.array([
    [0.50, 0.80, 0.00],  # wrist
    [0.44, 0.75, -0.01], [0.40, 0.69, -0.02], [0.37, 0.64, -0.03], [0.35, 0.60, -0.03],  # thumb
    [0.46, 0.60, -0.01], [0.45, 0.52, -0.02], [0.45, 0.47, -0.02], [0.45, 0.43, -0.03],  # index
    [0.50, 0.59, -0.01], [0.50, 0.50, -0.02], [0.50, 0.45, -0.02], [0.50, 0.40, -0.03],  # middle
    [0.54, 0.60, -0.01], [0.55, 0.52, -0.02], [0.55, 0.47, -0.02], [0.55, 0.43, -0.03],  # ring
    [0.58, 0.63, -0.01], [0.60, 0.57, -0.02], [0.61, 0.53, -0.02], [0.62, 0.50, -0.03],  # pinky
])

# Fist: fingertips folded back toward the palm
FIST = OPEN_HAND.copy()
FIST[[8, 12, 16, 20], 1] = [0.62, 0.61, 0.62, 0.64]
FIST[[7, 11, 15, 19], 1] = [0.58, 0.57, 0.58, 0.60]
FIST[4] = [0.47, 0.66, -0.03]


def make_hand(base=OPEN_HAND, dx=0.0, dy=0.0, scale=1.0, dz=0.0):
    """Copy of a hand shape, translated / scaled in x and y, shifted in z."""
    hand = np.array(base, dtype=np.float64)
    hand[:, :2] = hand[:, :2] * scale + [dx, dy]
    hand[:, 2] = hand[:, 2] + dz
    return hand.tolist()


def observation(landmarks, handedness="Left", confidence=0.9):
    return HandObservation(
        landmarks=landmarks,
        handedness=Handedness.parse(handedness),
        confidence=confidence,
    )


def make_sign(name, hand_type, left=None, right=None, both=None, voice_alert=""):
    return ReferenceSign(
        id=name.lower(),
        name=name,
        hand_type=HandType.parse(hand_type),
        voice_alert=voice_alert,
        left_hand_frames=left or [],
        right_hand_frames=right or [],
        both_hands_frames=both or [],
    )


class FakeClock:
    """Virtual monotonic clock in seconds."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now
