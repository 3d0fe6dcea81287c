from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from voice_audit.catalogue import Catalogue
from voice_audit.core.logger import log_event
from voice_audit.core.state import AuditSessionState
from voice_audit.session.models import InterviewSession, TranscriptEntry
from voice_audit.session.store import SessionStore

logger = logging.getLogger("voice_audit.session.machine")

START_EVENT = "[EVENT: START_AUDIT]"


def resume_event(question_id: str) -> str:
    return f"[EVENT: RESUME_AUDIT, ID: {question_id}]"


class StartKind(str, Enum):
    START = "start"
    RESUME = "resume"


@dataclass(frozen=True)
class BeginResult:
    session: InterviewSession
    kind: StartKind
    event_text: str


@dataclass(frozen=True)
class CommitResult:
    session: InterviewSession
    completed: bool


class InterviewStateMachine:
    """The only writer of interview sessions.

    idle -> active on begin(); active -> active on each committed answer;
    active -> finished when the pointer reaches the catalogue length or on a
    technical closure. Finished sessions are never reopened.
    """

    def __init__(self, store: SessionStore, catalogue: Catalogue):
        self.store = store
        self.catalogue = catalogue

    @property
    def state(self) -> AuditSessionState:
        session = self.store.current()
        if session is None:
            return AuditSessionState.IDLE
        if session.finished:
            return AuditSessionState.FINISHED
        return AuditSessionState.ACTIVE

    def current(self) -> InterviewSession | None:
        return self.store.current()

    def begin(self) -> BeginResult:
        session = self.store.current()
        if session is None or session.finished:
            session = self.store.create()
            log_event("state_machine", "session_created", session.id)
            return BeginResult(session=session, kind=StartKind.START, event_text=START_EVENT)

        step = min(session.current_step, len(self.catalogue) - 1)
        if session.current_step == 0:
            return BeginResult(session=session, kind=StartKind.START, event_text=START_EVENT)
        question = self.catalogue[step]
        log_event("state_machine", "session_resumed", session.id, step=session.current_step)
        return BeginResult(session=session, kind=StartKind.RESUME, event_text=resume_event(question.id))

    def commit_answer(self, question_index: int, answer_updates: dict[str, Any]) -> CommitResult | None:
        session = self.store.current()
        if session is None or session.finished:
            return None

        answers = dict(session.answers)
        answers.update(answer_updates)
        next_step = max(session.current_step, question_index + 1)
        completed = next_step >= len(self.catalogue)

        updated = self.store.update(
            session.id,
            answers=answers,
            current_step=min(next_step, len(self.catalogue)),
            consecutive_errors=0,
            finished=completed,
        )
        if updated is None:
            return None
        log_event(
            "state_machine",
            "answer_committed",
            session.id,
            question_index=question_index,
            step=updated.current_step,
            completed=completed,
        )
        return CommitResult(session=updated, completed=completed)

    def close_technically(self) -> InterviewSession | None:
        session = self.store.current()
        if session is None:
            return None
        if session.finished:
            return None
        updated = self.store.update(session.id, finished=True)
        log_event("state_machine", "technical_closure", session.id, step=session.current_step)
        return updated

    def append_turn(self, session_id: str, entries: Iterable[TranscriptEntry], consecutive_errors: int) -> InterviewSession | None:
        session = self.store.get(session_id)
        if session is None:
            return None
        entries = tuple(entries)
        if not entries and consecutive_errors == session.consecutive_errors:
            return session
        return self.store.update(
            session_id,
            transcript=session.transcript + entries,
            consecutive_errors=max(0, consecutive_errors),
        )

    def bump_errors(self, session_id: str) -> int:
        session = self.store.get(session_id)
        if session is None:
            return 0
        count = session.consecutive_errors + 1
        self.store.update(session_id, consecutive_errors=count)
        return count

    def set_submission_status(self, session_id: str, status: str) -> None:
        self.store.update(session_id, submission_status=status)

    def archive(self, session_id: str) -> bool:
        if self.store.current_id != session_id:
            return False
        self.store.set_current(None)
        log_event("state_machine", "session_archived", session_id)
        return True

    def new_session(self) -> InterviewSession:
        session = self.store.create()
        log_event("state_machine", "session_created", session.id)
        return session

    def select(self, session_id: str | None) -> InterviewSession | None:
        self.store.set_current(session_id)
        return self.store.current()

    def delete(self, session_id: str) -> bool:
        removed = self.store.delete(session_id)
        if removed:
            log_event("state_machine", "session_deleted", session_id)
        return removed
