from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable

from voice_audit.session.models import InterviewSession

logger = logging.getLogger("voice_audit.session.store")


@dataclass(frozen=True)
class StoreSnapshot:
    sessions: tuple[InterviewSession, ...]
    current_id: str | None


StoreListener = Callable[[StoreSnapshot], None]


class SessionStore:
    """Owns every interview session and the current-session selection.

    Sessions are immutable values; each mutation replaces the stored value
    and notifies subscribers with a full snapshot.
    """

    def __init__(self, sessions: list[InterviewSession] | None = None, current_id: str | None = None):
        self._lock = Lock()
        self._sessions: list[InterviewSession] = list(sessions or [])
        ids = {session.id for session in self._sessions}
        self._current_id = current_id if current_id in ids else None
        self._listeners: list[StoreListener] = []

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(sessions=tuple(self._sessions), current_id=self._current_id)

    def list(self) -> list[InterviewSession]:
        with self._lock:
            return list(self._sessions)

    def get(self, session_id: str | None) -> InterviewSession | None:
        if not session_id:
            return None
        with self._lock:
            for session in self._sessions:
                if session.id == session_id:
                    return session
        return None

    @property
    def current_id(self) -> str | None:
        with self._lock:
            return self._current_id

    def current(self) -> InterviewSession | None:
        return self.get(self.current_id)

    def create(self) -> InterviewSession:
        session = InterviewSession()
        with self._lock:
            self._sessions.insert(0, session)
            self._current_id = session.id
        self._notify()
        return session

    def update(self, session_id: str, **changes) -> InterviewSession | None:
        with self._lock:
            for idx, session in enumerate(self._sessions):
                if session.id != session_id:
                    continue
                updated = dataclasses.replace(session, **changes)
                self._sessions[idx] = updated
                break
            else:
                return None
        self._notify()
        return updated

    def set_current(self, session_id: str | None) -> None:
        with self._lock:
            if session_id is not None and not any(s.id == session_id for s in self._sessions):
                raise KeyError(session_id)
            if self._current_id == session_id:
                return
            self._current_id = session_id
        self._notify()

    def delete(self, session_id: str) -> bool:
        with self._lock:
            before = len(self._sessions)
            self._sessions = [session for session in self._sessions if session.id != session_id]
            removed = len(self._sessions) != before
            if removed and self._current_id == session_id:
                self._current_id = None
        if removed:
            self._notify()
        return removed

    def _notify(self) -> None:
        snapshot = self.snapshot()
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                logger.warning("Session store listener failed | listener=%s err=%s", listener, exc)


class JsonSessionPersistence:
    """Store observer writing the session list and current id to one JSON file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> tuple[list[InterviewSession], str | None]:
        if not self._path.exists():
            return [], None
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Session storage unreadable, starting empty | path=%s err=%s", self._path, exc)
            return [], None
        if not isinstance(payload, dict):
            return [], None

        raw_sessions = payload.get("sessions")
        sessions = []
        if isinstance(raw_sessions, list):
            for item in raw_sessions:
                session = InterviewSession.from_dict(item)
                if session is not None:
                    sessions.append(session)

        current_id = payload.get("currentId")
        current_id = str(current_id) if isinstance(current_id, str) and current_id else None
        return sessions, current_id

    def __call__(self, snapshot: StoreSnapshot) -> None:
        payload = {
            "sessions": [session.to_dict() for session in snapshot.sessions],
            "currentId": snapshot.current_id,
        }
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self._path.with_suffix(".tmp")
            temp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            temp_path.replace(self._path)


def build_session_store(path: str | Path) -> SessionStore:
    persistence = JsonSessionPersistence(path)
    sessions, current_id = persistence.load()
    store = SessionStore(sessions=sessions, current_id=current_id)
    store.subscribe(persistence)
    return store
