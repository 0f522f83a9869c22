"""Detection module for hand sign matching.

Handles landmark normalization, frame similarity and sign matching.
The MediaPipe landmark source lives in ``hand_capture`` and is imported
on its own so the matcher works without a camera stack.
"""
from signalert.backend.detection.landmarks import normalize, similarity
from signalert.backend.detection.sign_matcher import SignMatcher, best_hand

__all__ = [
    'normalize',
    'similarity',
    'SignMatcher',
    'best_hand'
]
