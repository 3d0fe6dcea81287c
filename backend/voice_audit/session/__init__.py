from voice_audit.session.models import AGENT_ROLE, USER_ROLE, InterviewSession, TranscriptEntry
from voice_audit.session.store import JsonSessionPersistence, SessionStore, StoreSnapshot, build_session_store
from voice_audit.session.machine import (
    START_EVENT,
    BeginResult,
    CommitResult,
    InterviewStateMachine,
    StartKind,
    resume_event,
)

__all__ = [
    "AGENT_ROLE",
    "USER_ROLE",
    "InterviewSession",
    "TranscriptEntry",
    "JsonSessionPersistence",
    "SessionStore",
    "StoreSnapshot",
    "build_session_store",
    "START_EVENT",
    "BeginResult",
    "CommitResult",
    "InterviewStateMachine",
    "StartKind",
    "resume_event",
]
