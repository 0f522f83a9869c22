"""
Reference sign storage backed by a JSON file.
"""
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from signalert.backend.core.errors import InvalidSignError, SignNotFoundError
from signalert.backend.core.storage import write_json_atomic
from signalert.backend.core.types import Frame, HandType, ReferenceSign

logger = logging.getLogger(__name__)


class SignLibrary:
    """
    Stores reference signs in a JSON file.

    Signs are loaded on first access. Hand type and frames are fixed once a
    sign is created; only its name, description and voice alert can change.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._signs: Optional[Dict[str, ReferenceSign]] = None

    def __len__(self):
        return len(self._load())

    def list_signs(self) -> List[ReferenceSign]:
        """All signs in creation order."""
        return list(self._load().values())

    def snapshot(self) -> Tuple[ReferenceSign, ...]:
        """Immutable view of the library for a detection session."""
        return tuple(self._load().values())

    def get(self, sign_id: str) -> ReferenceSign:
        signs = self._load()
        if sign_id not in signs:
            raise SignNotFoundError(sign_id)
        return signs[sign_id]

    def add(
        self,
        name: str,
        description: str,
        landmarks: Dict[str, List[Frame]],
        hand_type,
        voice_alert: str = "",
    ) -> ReferenceSign:
        """
        Add a new sign.

        Args:
            name: display name, must not be empty
            description: free text
            landmarks: dict with ``leftHand``, ``rightHand`` and ``bothHands`` frame lists
            hand_type: "left", "right" or "both"
            voice_alert: message spoken when the sign is detected

        Returns:
            the stored ReferenceSign

        Raises:
            InvalidSignError: empty name, unknown hand type or no frames for it
        """
        if not name or not name.strip():
            raise InvalidSignError("Sign name is required")
        try:
            hand_type = HandType.parse(hand_type)
        except ValueError as e:
            raise InvalidSignError(str(e))

        sign = ReferenceSign.create(
            name.strip(),
            hand_type,
            landmarks or {},
            description=description or "",
            voice_alert=voice_alert or "",
        )
        if not sign.frames_for(hand_type):
            raise InvalidSignError(f"No landmarks recorded for hand type '{hand_type.value}'")

        signs = self._load()
        signs[sign.id] = sign
        self._save()
        logger.info("Saved sign %r (%s, %d frames)", sign.name, hand_type.value, sign.frame_count)
        return sign

    def update(
        self,
        sign_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        voice_alert: Optional[str] = None,
    ) -> ReferenceSign:
        """Edit a sign's text fields. Fields left as None are unchanged."""
        sign = self.get(sign_id)
        changes = {}
        if name is not None:
            if not name.strip():
                raise InvalidSignError("Sign name is required")
            changes["name"] = name.strip()
        if description is not None:
            changes["description"] = description
        if voice_alert is not None:
            changes["voice_alert"] = voice_alert

        if changes:
            sign = replace(sign, **changes)
            self._signs[sign_id] = sign
            self._save()
        return sign

    def delete(self, sign_id: str):
        signs = self._load()
        if sign_id not in signs:
            raise SignNotFoundError(sign_id)
        removed = signs.pop(sign_id)
        self._save()
        logger.info("Deleted sign %r", removed.name)

    def delete_many(self, sign_ids: Iterable[str]) -> int:
        """Delete several signs, skipping unknown ids. Returns how many were removed."""
        signs = self._load()
        removed = 0
        for sign_id in sign_ids:
            if signs.pop(sign_id, None) is not None:
                removed += 1
        if removed:
            self._save()
        return removed

    def reload(self):
        """Drop the cache so the next access re-reads the file."""
        self._signs = None

    def _load(self) -> Dict[str, ReferenceSign]:
        if self._signs is not None:
            return self._signs

        self._signs = {}
        if not self.path.exists():
            return self._signs

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error loading signs from %s: %s", self.path, e)
            return self._signs

        entries = data.get("signs") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            logger.error("Error loading signs from %s: expected an object with a 'signs' list", self.path)
            return self._signs

        for entry in entries:
            try:
                sign = ReferenceSign.from_dict(entry)
            except (AttributeError, KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping malformed sign entry in %s: %s", self.path, e)
                continue
            self._signs[sign.id] = sign

        logger.info("Loaded %d signs from %s", len(self._signs), self.path)
        return self._signs

    def _save(self):
        write_json_atomic(self.path, {"signs": [sign.to_dict() for sign in self._signs.values()]})
