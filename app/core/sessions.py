from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from app.core.security import new_session_id


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Session:
    id: str
    user: str
    expires_at: datetime


class SessionStore:
    """Server-side sessions keyed by session id; entries expire after a fixed lifetime."""

    def __init__(self, lifetime: timedelta, clock: Callable[[], datetime] = _utc_now) -> None:
        self._lifetime = lifetime
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def create(self, user: str) -> Session:
        self._sweep()
        session = Session(id=new_session_id(), user=user, expires_at=self._clock() + self._lifetime)
        self._sessions[session.id] = session
        return session

    def _sweep(self) -> None:
        now = self._clock()
        for session_id in [sid for sid, s in self._sessions.items() if s.expires_at <= now]:
            del self._sessions[session_id]

    def get(self, session_id: str | None) -> Session | None:
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.expires_at <= self._clock():
            del self._sessions[session_id]
            return None
        return session

    def destroy(self, session_id: str | None) -> None:
        if session_id:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
