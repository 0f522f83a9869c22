"""Tests for the sign matcher."""

import math

import pytest

from signalert.backend.detection.sign_matcher import SignMatcher, best_hand
from signalert.backend.core.types import Handedness

from helpers import FIST, make_hand, make_sign, observation


def constant_scorer(value):
    return lambda current, stored: value


@pytest.fixture
def hello_left():
    return make_sign("Hello", "left", left=[make_hand()])


class TestBestHand:
    def test_highest_confidence_per_side(self):
        low = observation(make_hand(), "Left", 0.6)
        high = observation(make_hand(FIST), "Left", 0.95)
        right = observation(make_hand(), "Right", 0.99)

        assert best_hand([low, high, right], Handedness.LEFT) is high
        assert best_hand([low, high, right], Handedness.RIGHT) is right

    def test_missing_side(self):
        assert best_hand([observation(make_hand(), "Left")], Handedness.RIGHT) is None


class TestSingleHandSigns:
    def test_matching_left_hand_detected(self, hello_left):
        result = SignMatcher().match([observation(make_hand(dx=0.1), "Left")], [hello_left])

        assert result.detected
        assert result.sign_name == "Hello"
        assert result.matched_sign is hello_left
        assert result.confidence == pytest.approx(1.0)

    def test_left_sign_ignores_right_hand(self, hello_left):
        result = SignMatcher().match([observation(make_hand(), "Right")], [hello_left])
        assert not result.detected
        assert result.confidence == 0.0

    def test_right_sign_uses_right_frames(self):
        sign = make_sign("Stop", "right", right=[make_hand(FIST)], left=[make_hand()])

        assert SignMatcher().match([observation(make_hand(FIST), "Right")], [sign]).detected
        assert not SignMatcher().match([observation(make_hand(), "Left")], [sign]).detected

    def test_uses_most_confident_hand(self, hello_left):
        observations = [
            observation(make_hand(), "Left", 0.6),
            observation(make_hand(FIST), "Left", 0.95),
        ]
        result = SignMatcher().match(observations, [hello_left])
        assert not result.detected

    def test_best_frame_wins(self):
        sign = make_sign("Wave", "left", left=[make_hand(FIST), make_hand()])
        result = SignMatcher().match([observation(make_hand(), "Left")], [sign])
        assert result.confidence == pytest.approx(1.0)

    def test_threshold_is_strict(self, hello_left):
        hands = [observation(make_hand(), "Left")]
        at_threshold = SignMatcher(scorer=constant_scorer(0.6)).match(hands, [hello_left])
        above = SignMatcher(scorer=constant_scorer(0.61)).match(hands, [hello_left])

        assert not at_threshold.detected
        assert at_threshold.confidence == pytest.approx(0.6)
        assert above.detected

    def test_low_score_surfaces_diagnostic_confidence(self, hello_left):
        result = SignMatcher().match([observation(make_hand(FIST), "Left")], [hello_left])

        assert not result.detected
        assert 0.0 < result.confidence < 0.6
        assert result.sign_name == ""
        assert result.matched_sign is None


class TestBothHandsSigns:
    def test_two_hands_match_combined_frame(self):
        left, right = make_hand(dx=-0.2), make_hand(FIST, dx=0.2)
        sign = make_sign("Together", "both", both=[left + right])

        result = SignMatcher().match(
            [observation(left, "Left"), observation(right, "Right")], [sign]
        )

        assert result.detected
        assert result.confidence == pytest.approx(1.0)

    def test_one_hand_raw_score_075_is_detected(self):
        sign = make_sign("Together", "both", both=[make_hand() + make_hand(FIST)])
        matcher = SignMatcher(scorer=constant_scorer(0.75))

        result = matcher.match([observation(make_hand(), "Right")], [sign])

        assert result.detected
        assert result.confidence == pytest.approx(0.6)

    def test_one_hand_raw_score_06_is_rejected(self):
        sign = make_sign("Together", "both", both=[make_hand() + make_hand(FIST)])
        matcher = SignMatcher(scorer=constant_scorer(0.6))

        result = matcher.match([observation(make_hand(), "Right")], [sign])

        assert not result.detected
        assert result.confidence == pytest.approx(0.48)

    def test_one_hand_boundary_with_real_geometry(self):
        # Uniform z offsets give exact average distances: 0.075 -> 0.75, 0.12 -> 0.6
        def offset_for(raw_score):
            return (1 - raw_score) * 0.3 / math.sqrt(0.1)

        live = make_hand()
        passing = make_sign("Pass", "both", both=[make_hand(FIST) + make_hand(dz=offset_for(0.75))])
        failing = make_sign("Fail", "both", both=[make_hand(FIST) + make_hand(dz=offset_for(0.6))])

        passed = SignMatcher().match([observation(live, "Left")], [passing])
        failed = SignMatcher().match([observation(live, "Left")], [failing])

        assert passed.detected
        assert passed.confidence == pytest.approx(0.6)
        assert not failed.detected
        assert failed.confidence == pytest.approx(0.48)

    def test_one_hand_compares_against_either_half(self):
        sign = make_sign("Together", "both", both=[make_hand(FIST) + make_hand()])
        result = SignMatcher().match([observation(make_hand(), "Left")], [sign])
        assert result.confidence == pytest.approx(0.8)

    def test_two_hands_use_regular_threshold(self):
        sign = make_sign("Together", "both", both=[make_hand() + make_hand()])
        hands = [observation(make_hand(), "Left"), observation(make_hand(), "Right")]

        result = SignMatcher(scorer=constant_scorer(0.55)).match(hands, [sign])

        assert not result.detected

    def test_short_combined_frames_skipped_with_one_hand(self):
        sign = make_sign("Together", "both", both=[make_hand()])
        result = SignMatcher().match([observation(make_hand(), "Left")], [sign])
        assert result.confidence == 0.0


class TestLibrary:
    def test_empty_library(self):
        result = SignMatcher().match([observation(make_hand(), "Left")], [])
        assert not result.detected
        assert result.confidence == 0.0

    def test_no_hands(self, hello_left):
        result = SignMatcher().match([], [hello_left])
        assert not result.detected
        assert result.confidence == 0.0

    def test_invalid_hands_are_discarded(self, hello_left):
        broken = observation(make_hand()[:20], "Left")
        result = SignMatcher().match([broken], [hello_left])
        assert not result.detected
        assert result.confidence == 0.0

    def test_sign_without_own_frames_never_wins(self):
        # Declared right-handed but only has left frames
        sign = make_sign("Broken", "right", left=[make_hand()])
        hands = [observation(make_hand(), "Left"), observation(make_hand(), "Right")]
        assert SignMatcher().match(hands, [sign]).confidence == 0.0

    def test_best_sign_across_library(self, hello_left):
        fist = make_sign("Fist", "left", left=[make_hand(FIST)])
        result = SignMatcher().match([observation(make_hand(FIST), "Left")], [hello_left, fist])
        assert result.sign_name == "Fist"

    def test_ties_keep_first_sign(self):
        first = make_sign("First", "left", left=[make_hand()])
        second = make_sign("Second", "left", left=[make_hand()])
        result = SignMatcher().match([observation(make_hand(), "Left")], [first, second])
        assert result.sign_name == "First"
