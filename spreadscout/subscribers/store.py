"""
Subscriber profile storage.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .models import SubscriberProfile

logger = logging.getLogger(__name__)


class SubscriberNotFound(LookupError):
    """Raised when a subscriber profile is expected but absent"""

    def __init__(self, subscriber_id: str):
        super().__init__(f"Subscriber '{subscriber_id}' not found")
        self.subscriber_id = subscriber_id


class SubscriberStore(ABC):
    """Persistence contract for subscriber profiles"""

    @abstractmethod
    def list_all(self) -> List[SubscriberProfile]:
        """All profiles, each an independent snapshot"""

    @abstractmethod
    def get(self, subscriber_id: str) -> Optional[SubscriberProfile]:
        """Profile snapshot or None"""

    @abstractmethod
    def save(self, profile: SubscriberProfile) -> None:
        """Insert or replace a profile"""

    def require(self, subscriber_id: str) -> SubscriberProfile:
        """Like get(), but raises SubscriberNotFound"""
        profile = self.get(subscriber_id)
        if profile is None:
            raise SubscriberNotFound(str(subscriber_id))
        return profile

    def count(self) -> int:
        return len(self.list_all())


class InMemorySubscriberStore(SubscriberStore):
    """
    Thread-safe in-memory profile store.

    Readers always receive deep copies, so a scan cycle never observes a
    half-applied settings change. When `path` is given, the store is loaded
    from and written through to a JSON file.
    """

    def __init__(self, path: Optional[str] = None):
        self._profiles: Dict[str, SubscriberProfile] = {}
        self._lock = threading.Lock()
        self._path = Path(path) if path else None

        if self._path and self._path.exists():
            self._load()

    def list_all(self) -> List[SubscriberProfile]:
        with self._lock:
            return [p.snapshot() for p in self._profiles.values()]

    def get(self, subscriber_id: str) -> Optional[SubscriberProfile]:
        with self._lock:
            profile = self._profiles.get(str(subscriber_id))
            return profile.snapshot() if profile else None

    def save(self, profile: SubscriberProfile) -> None:
        with self._lock:
            self._profiles[profile.subscriber_id] = profile.snapshot()
            if self._path:
                self._dump()

    def count(self) -> int:
        with self._lock:
            return len(self._profiles)

    def _load(self):
        data = json.loads(self._path.read_text(encoding="utf-8"))
        for item in data:
            profile = SubscriberProfile.model_validate(item)
            self._profiles[profile.subscriber_id] = profile
        logger.info(f"Loaded {len(self._profiles)} subscribers from {self._path}")

    def _dump(self):
        payload = [
            profile.model_dump(mode="json")
            for profile in self._profiles.values()
        ]
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self._path)
