"""
Hand landmark detection using MediaPipe.
Produces HandObservation lists for the detection session.
"""
import base64
import logging
from typing import List

import cv2
import mediapipe as mp
import numpy as np

from signalert.backend.core.config import (
    MAX_NUM_HANDS,
    MIN_DETECTION_CONFIDENCE,
    MIN_TRACKING_CONFIDENCE,
    NUM_LANDMARKS,
)
from signalert.backend.core.types import HandObservation, Handedness

logger = logging.getLogger(__name__)


def observations_from_results(results) -> List[HandObservation]:
    """
    Convert MediaPipe Hands results to observations.

    Hands without a Left/Right label or without 21 landmarks are dropped.
    """
    if not results or not results.multi_hand_landmarks:
        return []

    handedness_list = results.multi_handedness or []
    observations = []
    for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
        landmarks = [[lm.x, lm.y, lm.z] for lm in hand_landmarks.landmark]
        if len(landmarks) != NUM_LANDMARKS:
            logger.warning("Incomplete landmarks: %d/%d", len(landmarks), NUM_LANDMARKS)
            continue

        if i >= len(handedness_list):
            continue
        classification = handedness_list[i].classification[0]
        try:
            handedness = Handedness.parse(classification.label)
        except ValueError:
            continue

        observations.append(HandObservation(
            landmarks=landmarks,
            handedness=handedness,
            confidence=float(classification.score),
        ))
    return observations


def decode_frame(frame_base64: str) -> np.ndarray:
    """Decode base64 frame (optionally a data URL) to a BGR image."""
    # Remove data URL prefix if present
    if "," in frame_base64:
        frame_base64 = frame_base64.split(",")[1]

    img_bytes = base64.b64decode(frame_base64)
    nparr = np.frombuffer(img_bytes, np.uint8)
    frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if frame is None:
        raise ValueError("Could not decode image")
    return frame


class HandCapture:
    """Captures hand landmarks for up to two hands using MediaPipe."""

    def __init__(self):
        self.hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=MAX_NUM_HANDS,
            min_detection_confidence=MIN_DETECTION_CONFIDENCE,
            min_tracking_confidence=MIN_TRACKING_CONFIDENCE
        )
        self.mp_drawing = mp.solutions.drawing_utils
        self.mp_hands = mp.solutions.hands
        self.results = None

    @property
    def is_loaded(self) -> bool:
        return self.hands is not None

    def extract_observations(self, frame) -> List[HandObservation]:
        """
        Detect hands in a frame.

        Args:
            frame: BGR image from OpenCV

        Returns:
            list of HandObservation, empty if no hand was detected
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        self.results = self.hands.process(rgb_frame)
        return observations_from_results(self.results)

    def visualize_landmarks(self, frame):
        """
        Draw landmarks of every detected hand on the frame (in place).
        """
        if self.results and self.results.multi_hand_landmarks:
            for hand_landmarks in self.results.multi_hand_landmarks:
                self.mp_drawing.draw_landmarks(
                    frame,
                    hand_landmarks,
                    self.mp_hands.HAND_CONNECTIONS
                )

    def close(self):
        if self.hands is not None:
            self.hands.close()
            self.hands = None
