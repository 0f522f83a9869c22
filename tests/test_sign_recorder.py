"""Tests for recording new signs from hand observations."""

import pytest

from signalert.backend.core.errors import NoHandsRecordedError
from signalert.backend.core.sign_recorder import SignRecorder
from signalert.backend.core.types import HandType

from helpers import FIST, make_hand, observation


@pytest.fixture
def recorder():
    recorder = SignRecorder()
    recorder.start()
    return recorder


def test_frames_ignored_when_not_recording():
    recorder = SignRecorder()
    recorder.add_frame([observation(make_hand(), "Left")])
    assert recorder.left_hand == []


def test_single_left_hand(recorder):
    for _ in range(3):
        recorder.add_frame([observation(make_hand(), "Left")])

    recorded = recorder.finish()

    assert recorded.hand_type is HandType.LEFT
    assert recorded.frame_count == 3
    assert recorded.landmarks["rightHand"] == []
    assert not recorder.is_recording


def test_single_right_hand(recorder):
    recorder.add_frame([observation(make_hand(FIST), "Right")])
    assert recorder.finish().hand_type is HandType.RIGHT


def test_two_hands_build_combined_frames(recorder):
    left, right = make_hand(), make_hand(FIST)
    recorder.add_frame([observation(right, "Right"), observation(left, "Left")])

    recorded = recorder.finish()

    assert recorded.hand_type is HandType.BOTH
    assert recorded.landmarks["bothHands"] == [left + right]
    assert len(recorded.landmarks["bothHands"][0]) == 42


def test_left_wins_over_right_only_frames(recorder):
    # Hands seen separately never form a combined frame
    recorder.add_frame([observation(make_hand(), "Left")])
    recorder.add_frame([observation(make_hand(), "Right")])

    recorded = recorder.finish()

    assert recorded.hand_type is HandType.LEFT
    assert recorded.landmarks["bothHands"] == []


def test_last_hand_per_side_wins(recorder):
    first, second = make_hand(), make_hand(FIST)
    recorder.add_frame([observation(first, "Left"), observation(second, "Left")])
    assert recorder.left_hand == [second]


def test_invalid_hands_skipped(recorder):
    recorder.add_frame([observation(make_hand()[:10], "Left")])
    with pytest.raises(NoHandsRecordedError):
        recorder.finish()


def test_restart_discards_frames(recorder):
    recorder.add_frame([observation(make_hand(), "Left")])
    recorder.start()
    recorder.add_frame([observation(make_hand(), "Right")])

    recorded = recorder.finish()
    assert recorded.hand_type is HandType.RIGHT
    assert recorded.frame_count == 1
