from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable
from uuid import UUID, uuid4

from guobiao_assist.schemas import Session

Transition = Callable[[Session], Session]


@dataclass
class StoredSession:
    id: UUID
    expires_at: datetime
    session: Session


class SessionStore:
    """Keeps the live sessions; every change goes through ``update``."""

    def __init__(self, ttl_hours: int = 24) -> None:
        self._ttl_hours = ttl_hours
        self._items: dict[UUID, StoredSession] = {}
        self._lock = Lock()

    def _utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def _prune(self) -> None:
        now = self._utcnow()
        expired = [item_id for item_id, item in self._items.items() if item.expires_at <= now]
        for item_id in expired:
            del self._items[item_id]

    def create(self, session: Session) -> StoredSession:
        with self._lock:
            self._prune()
            now = self._utcnow()
            item = StoredSession(
                id=uuid4(),
                expires_at=now + timedelta(hours=self._ttl_hours),
                session=session,
            )
            self._items[item.id] = item
            return item

    def get(self, item_id: UUID) -> StoredSession | None:
        with self._lock:
            self._prune()
            return self._items.get(item_id)

    def update(self, item_id: UUID, transition: Transition) -> StoredSession | None:
        """Apply ``transition`` to the current session. Missing sessions give None."""
        with self._lock:
            self._prune()
            item = self._items.get(item_id)
            if item is None:
                return None
            item.session = transition(item.session)
            return item
