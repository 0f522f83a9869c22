"""Tests for voice alert playback."""

from signalert.backend.voice import VoiceAlertPlayer

from helpers import make_sign


class FakeEngine:
    def __init__(self, fail=False):
        self.said = []
        self.fail = fail

    def say(self, text):
        if self.fail:
            raise RuntimeError("no audio device")
        self.said.append(text)

    def runAndWait(self):
        pass


def test_speaks_voice_alert():
    engine = FakeEngine()
    player = VoiceAlertPlayer(engine=engine)

    assert player.speak(make_sign("Help", "left", voice_alert="I need help"))
    assert engine.said == ["I need help"]


def test_falls_back_to_sign_name():
    engine = FakeEngine()
    VoiceAlertPlayer(engine=engine).speak(make_sign("Water", "right", voice_alert="  "))
    assert engine.said == ["Water"]


def test_engine_failure_is_reported_not_raised():
    player = VoiceAlertPlayer(engine=FakeEngine(fail=True))
    assert not player.speak(make_sign("Help", "left"))
