from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import Lock, RLock

from dashboard.core.config import settings
from dashboard.services.list_registry import ListConfig
from dashboard.services.list_view import ListViewController


def session_key_for_token(token: str) -> str:
    return hashlib.sha256(str(token or "").encode("utf-8")).hexdigest()


@dataclass
class ViewSession:
    controller: ListViewController
    touched_at: datetime
    # Held around each transition only; remote fetches run outside it.
    lock: RLock = field(default_factory=RLock)


class ViewSessionRegistry:
    """One controller per (session, list, scope); idle entries expire."""

    def __init__(self, ttl_seconds: int | None = None):
        self._ttl = timedelta(seconds=max(int(ttl_seconds or settings.VIEW_SESSION_TTL_SECONDS), 1))
        self._entries: dict[tuple[str, str, str], ViewSession] = {}
        self._lock = Lock()

    def session_for(self, session_key: str, config: ListConfig, scope: str | None = None) -> ViewSession:
        now = datetime.now(timezone.utc)
        key = (session_key, config.name, str(scope or ""))
        with self._lock:
            self._evict_expired(now)
            entry = self._entries.get(key)
            if entry is None:
                entry = ViewSession(controller=ListViewController(config), touched_at=now)
                self._entries[key] = entry
            entry.touched_at = now
            return entry

    def controller_for(self, session_key: str, config: ListConfig, scope: str | None = None) -> ListViewController:
        return self.session_for(session_key, config, scope).controller

    def drop_session(self, session_key: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key[0] == session_key]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_expired(self, now: datetime) -> None:
        expired = [key for key, entry in self._entries.items() if now - entry.touched_at > self._ttl]
        for key in expired:
            del self._entries[key]


_registry: ViewSessionRegistry | None = None


def get_view_registry() -> ViewSessionRegistry:
    global _registry
    if _registry is None:
        _registry = ViewSessionRegistry()
    return _registry
