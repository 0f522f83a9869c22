"""
Detection history and statistics.
"""
import json
import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from signalert.backend.core.config import MAX_HISTORY_ENTRIES
from signalert.backend.core.storage import write_json_atomic
from signalert.backend.core.types import DetectionResult

logger = logging.getLogger(__name__)


class DetectionHistory:
    """Newest-first log of confirmed detections, persisted as JSON."""

    def __init__(self, path=None, max_entries: int = MAX_HISTORY_ENTRIES):
        """
        Args:
            path: JSON file to persist to, or None to keep history in memory
            max_entries: oldest entries beyond this are dropped
        """
        self.path = Path(path) if path else None
        self.max_entries = max_entries
        self.entries: List[Dict] = self._load()

    def add(self, result: DetectionResult) -> Dict:
        """Record a confirmed detection and return the new entry."""
        entry = {
            "id": str(uuid.uuid4()),
            "signName": result.sign.name,
            "signDescription": result.sign.description,
            "confidence": result.confidence,
            "timestamp": result.timestamp,
            "voiceAlert": result.sign.voice_alert,
        }
        self.entries = [entry] + self.entries[:self.max_entries - 1]
        self._save()
        return entry

    def clear(self):
        self.entries = []
        self._save()

    def between(self, start: datetime, end: datetime) -> List[Dict]:
        return [e for e in self.entries if start <= e["timestamp"] <= end]

    def stats(self, now: Optional[datetime] = None) -> Dict:
        """Totals for all time, today and the last seven days, plus mean confidence."""
        now = now or datetime.now()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = now - timedelta(days=7)

        total = len(self.entries)
        return {
            "total": total,
            "today": sum(1 for e in self.entries if e["timestamp"] >= today_start),
            "thisWeek": sum(1 for e in self.entries if e["timestamp"] >= week_start),
            "avgConfidence": sum(e["confidence"] for e in self.entries) / total if total else 0.0,
        }

    def most_used_today(self, now: Optional[datetime] = None) -> Optional[Tuple[str, int]]:
        """The sign detected most often today as (name, count), or None."""
        now = now or datetime.now()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        counts = Counter(e["signName"] for e in self.entries if e["timestamp"] >= today_start)
        if not counts:
            return None
        return counts.most_common(1)[0]

    def to_json(self) -> List[Dict]:
        return [dict(e, timestamp=e["timestamp"].isoformat()) for e in self.entries]

    def _load(self) -> List[Dict]:
        if self.path is None or not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return [dict(e, timestamp=datetime.fromisoformat(e["timestamp"])) for e in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Error loading detection history from %s: %s", self.path, e)
            return []

    def _save(self):
        if self.path is None:
            return
        write_json_atomic(self.path, self.to_json())
