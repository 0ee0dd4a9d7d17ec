"""JSON file storage for analyzed sprint snapshots and action items.

Intended for a single local process - not for hosted deployments.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Optional

from services.models import MetricsSnapshot

logger = logging.getLogger(__name__)

# Top-level sections and the JSON type each must hold
SECTION_TYPES = {
    "snapshots": dict,
    "actionItems": list,
    "autoAnalyzed": dict,
}


class SnapshotStore:
    """Key/value store of snapshots keyed by sprint id."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _ensure_dir(self):
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable snapshot file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring snapshot file {self.path}: expected a JSON object")
            return {}

        for section, expected in SECTION_TYPES.items():
            if section in data and not isinstance(data[section], expected):
                logger.warning(f"Ignoring malformed \"{section}\" section in {self.path}")
                del data[section]
        return data

    def _save(self, data: dict):
        self._ensure_dir()
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, key) -> Optional[MetricsSnapshot]:
        with self._lock:
            raw = self._load().get("snapshots", {}).get(str(key))
        return MetricsSnapshot.from_dict(raw) if isinstance(raw, dict) else None

    def set(self, key, snapshot: MetricsSnapshot):
        with self._lock:
            data = self._load()
            data.setdefault("snapshots", {})[str(key)] = snapshot.to_dict()
            self._save(data)

    def history(self) -> list:
        """All stored snapshots, oldest analysis first."""
        with self._lock:
            raw = self._load().get("snapshots", {})
        snapshots = [MetricsSnapshot.from_dict(s) for s in raw.values() if isinstance(s, dict)]
        snapshots.sort(key=lambda s: s.analyzedAt or "")
        return snapshots

    def latest(self) -> Optional[MetricsSnapshot]:
        snapshots = self.history()
        return snapshots[-1] if snapshots else None

    def list_action_items(self) -> list:
        with self._lock:
            return self._load().get("actionItems", [])

    def add_action_item(self, item: dict):
        with self._lock:
            data = self._load()
            data.setdefault("actionItems", []).append(item)
            self._save(data)

    def mark_auto_analyzed(self, sprint_id, result: str):
        with self._lock:
            data = self._load()
            data.setdefault("autoAnalyzed", {})[str(sprint_id)] = {
                "analyzedAt": datetime.now(timezone.utc).isoformat(),
                "result": result,
            }
            self._save(data)

    def auto_analyzed(self, sprint_id) -> Optional[dict]:
        with self._lock:
            return self._load().get("autoAnalyzed", {}).get(str(sprint_id))
