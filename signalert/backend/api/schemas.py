"""
Pydantic schemas for API request/response validation.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from signalert.backend.core.types import ReferenceSign

Frame = List[List[float]]


class SignLandmarks(BaseModel):
    """Reference frames of a sign, per hand configuration."""
    left_hand: List[Frame] = []
    right_hand: List[Frame] = []
    both_hands: List[Frame] = []

    def to_library(self) -> dict:
        return {
            "leftHand": self.left_hand,
            "rightHand": self.right_hand,
            "bothHands": self.both_hands,
        }


class SignCreate(BaseModel):
    """New sign sent from client."""
    name: str
    description: str = ""
    voice_alert: str = ""
    hand_type: str  # "left", "right" or "both"
    landmarks: SignLandmarks


class SignUpdate(BaseModel):
    """Editable sign fields; omitted fields are unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None
    voice_alert: Optional[str] = None


class SignSummary(BaseModel):
    """Sign information without the landmark data."""
    id: str
    name: str
    description: str
    voice_alert: str
    hand_type: str
    frame_count: int
    created_at: datetime

    @classmethod
    def from_sign(cls, sign: ReferenceSign) -> "SignSummary":
        return cls(
            id=sign.id,
            name=sign.name,
            description=sign.description,
            voice_alert=sign.voice_alert,
            hand_type=sign.hand_type.value,
            frame_count=sign.frame_count,
            created_at=sign.created_at,
        )


class SignDetail(SignSummary):
    """Sign information including its reference frames."""
    landmarks: SignLandmarks

    @classmethod
    def from_sign(cls, sign: ReferenceSign) -> "SignDetail":
        summary = SignSummary.from_sign(sign)
        return cls(
            **summary.model_dump(),
            landmarks=SignLandmarks(
                left_hand=sign.left_hand_frames,
                right_hand=sign.right_hand_frames,
                both_hands=sign.both_hands_frames,
            ),
        )


class HistoryEntry(BaseModel):
    """One confirmed detection."""
    id: str
    sign_name: str
    sign_description: str
    confidence: float
    timestamp: datetime
    voice_alert: str = ""


class HistoryStats(BaseModel):
    """Detection statistics."""
    total: int
    today: int
    this_week: int
    avg_confidence: float
    most_used_today: Optional[str] = None
    most_used_today_count: int = 0
