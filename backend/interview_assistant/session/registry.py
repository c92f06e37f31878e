from __future__ import annotations

import time
from threading import Lock

from core.state import SessionStatus


class SessionRegistry:
    """Live session handles by id. Discarding drops the handle only."""

    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, dict] = {}

    def register(self, handle) -> None:
        with self._lock:
            self._sessions[handle.session_id] = {
                "handle": handle,
                "created_at": time.time(),
                "updated_at": time.time(),
                "active": True,
            }

    def touch(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["updated_at"] = time.time()

    def mark_inactive(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["active"] = False
                self._sessions[session_id]["updated_at"] = time.time()

    def get(self, session_id: str):
        with self._lock:
            item = self._sessions.get(session_id)
            return item["handle"] if item else None

    def discard(self, session_id: str):
        with self._lock:
            item = self._sessions.pop(session_id, None)
            return item["handle"] if item else None

    def handles(self) -> list:
        with self._lock:
            return [item["handle"] for item in self._sessions.values()]

    def cleanup_inactive(self, ttl_sec: float) -> list:
        """
        Drop completed handles and any handle untouched for longer than the TTL,
        active or not. Paused sessions dropped here stay resumable from the store.
        """
        now_ts = time.time()
        cutoff = now_ts - max(30.0, float(ttl_sec or 900.0))
        removed = []
        with self._lock:
            for session_id, data in list(self._sessions.items()):
                handle = data["handle"]
                completed = handle.session.status == SessionStatus.COMPLETED
                updated_at = float((data or {}).get("updated_at") or 0.0)
                if completed or updated_at <= cutoff:
                    removed.append(self._sessions.pop(session_id)["handle"])
        return removed


session_registry = SessionRegistry()
