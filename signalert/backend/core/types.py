"""
Data model shared by the matching engine, storage and API.

Landmark points are kept as plain ``[x, y, z]`` lists so that reference
signs round-trip through JSON unchanged.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence

from signalert.backend.core.config import NUM_LANDMARKS

Point = Sequence[float]
Frame = List[List[float]]


class Handedness(Enum):
    """Left/right label attached to a detected hand."""

    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def parse(cls, value) -> "Handedness":
        if isinstance(value, cls):
            return value
        label = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == label:
                return member
        raise ValueError(f"Unknown handedness: {value!r}")


class HandType(Enum):
    """Hand configuration a reference sign expects."""

    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"

    @classmethod
    def parse(cls, value) -> "HandType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid hand type: {value!r}. Must be 'left', 'right' or 'both'.")


class SessionState(Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    ACTIVE = "active"


@dataclass
class HandObservation:
    """One detected hand in one frame."""

    landmarks: List[Point]
    handedness: Handedness
    confidence: float = 0.0

    @property
    def is_valid(self) -> bool:
        """A hand is usable only with exactly 21 landmarks."""
        return self.landmarks is not None and len(self.landmarks) == NUM_LANDMARKS

    @classmethod
    def from_dict(cls, data: Dict) -> "HandObservation":
        """
        Build an observation from a client payload.

        Accepts ``confidence`` or the detector's ``handInViewConfidence`` key.

        Raises:
            ValueError: if handedness is missing or unknown
        """
        confidence = data.get("confidence", data.get("handInViewConfidence", 0.0))
        return cls(
            landmarks=[list(point) for point in data.get("landmarks") or []],
            handedness=Handedness.parse(data.get("handedness")),
            confidence=float(confidence or 0.0),
        )


@dataclass(frozen=True)
class ReferenceSign:
    """A stored gesture definition. Read-only to the matching engine."""

    id: str
    name: str
    hand_type: HandType
    description: str = ""
    voice_alert: str = ""
    left_hand_frames: List[Frame] = field(default_factory=list)
    right_hand_frames: List[Frame] = field(default_factory=list)
    both_hands_frames: List[Frame] = field(default_factory=list)
    confidence: float = 1.0
    created_at: datetime = field(default_factory=datetime.now)

    def frames_for(self, hand_type: Optional[HandType] = None) -> List[Frame]:
        """Frames recorded for a hand configuration (defaults to the sign's own)."""
        hand_type = hand_type or self.hand_type
        if hand_type is HandType.LEFT:
            return self.left_hand_frames
        if hand_type is HandType.RIGHT:
            return self.right_hand_frames
        return self.both_hands_frames

    @property
    def frame_count(self) -> int:
        return len(self.left_hand_frames) + len(self.right_hand_frames) + len(self.both_hands_frames)

    @classmethod
    def create(cls, name: str, hand_type, landmarks: Dict[str, List[Frame]], **kwargs) -> "ReferenceSign":
        """Create a new sign with a fresh id from a ``leftHand/rightHand/bothHands`` dict."""
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            hand_type=HandType.parse(hand_type),
            left_hand_frames=list(landmarks.get("leftHand") or []),
            right_hand_frames=list(landmarks.get("rightHand") or []),
            both_hands_frames=list(landmarks.get("bothHands") or []),
            **kwargs,
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "voiceAlert": self.voice_alert,
            "handType": self.hand_type.value,
            "landmarks": {
                "leftHand": self.left_hand_frames,
                "rightHand": self.right_hand_frames,
                "bothHands": self.both_hands_frames,
            },
            "confidence": self.confidence,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ReferenceSign":
        landmarks = data.get("landmarks") or {}
        created_at = data.get("createdAt")
        return cls(
            id=data["id"],
            name=data["name"],
            hand_type=HandType.parse(data["handType"]),
            description=data.get("description") or "",
            voice_alert=data.get("voiceAlert") or "",
            left_hand_frames=landmarks.get("leftHand") or [],
            right_hand_frames=landmarks.get("rightHand") or [],
            both_hands_frames=landmarks.get("bothHands") or [],
            confidence=float(data.get("confidence", 1.0)),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
        )


@dataclass(frozen=True)
class MatchCandidate:
    """A detected sign for one evaluated frame."""

    sign: ReferenceSign
    confidence: float

    @property
    def sign_id(self) -> str:
        return self.sign.id

    @property
    def sign_name(self) -> str:
        return self.sign.name


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one frame against the library.

    ``confidence`` carries the best score even when nothing was detected.
    """

    detected: bool
    confidence: float = 0.0
    sign_name: str = ""
    matched_sign: Optional[ReferenceSign] = None

    @classmethod
    def not_detected(cls, confidence: float = 0.0) -> "MatchResult":
        return cls(detected=False, confidence=confidence)

    def to_candidate(self) -> Optional[MatchCandidate]:
        if not self.detected or self.matched_sign is None:
            return None
        return MatchCandidate(sign=self.matched_sign, confidence=self.confidence)


@dataclass(frozen=True)
class DetectionResult:
    """A confirmed detection, emitted once per session."""

    sign: ReferenceSign
    confidence: float
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict:
        return {
            "sign": {
                "id": self.sign.id,
                "name": self.sign.name,
                "description": self.sign.description,
                "voiceAlert": self.sign.voice_alert,
                "handType": self.sign.hand_type.value,
            },
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
        }
