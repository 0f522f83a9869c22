"""
Voice alert playback for detected signs.
"""
import logging

import pyttsx3

from signalert.backend.core.types import ReferenceSign

logger = logging.getLogger(__name__)


class VoiceAlertPlayer:
    """Speaks a sign's voice alert with the system text-to-speech engine."""

    def __init__(self, engine=None, rate: int = 150):
        """
        Args:
            engine: pyttsx3 engine; created lazily on first use if None
            rate: speech rate in words per minute
        """
        self.engine = engine
        self.rate = rate

    def message_for(self, sign: ReferenceSign) -> str:
        """The voice alert text, or the sign name when none is set."""
        return (sign.voice_alert or "").strip() or sign.name

    def speak(self, sign: ReferenceSign) -> bool:
        """
        Speak the alert for a sign. Engine failures are logged, not raised.

        Returns:
            True if the message was spoken
        """
        text = self.message_for(sign)
        if not text:
            return False
        try:
            if self.engine is None:
                self.engine = pyttsx3.init()
                self.engine.setProperty("rate", self.rate)
            self.engine.say(text)
            self.engine.runAndWait()
            return True
        except Exception as e:
            logger.warning("Voice alert failed for %r: %s", sign.name, e)
            return False
