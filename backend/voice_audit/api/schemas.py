from typing import Any

from pydantic import BaseModel


class StageInfo(BaseModel):
    index: int
    label: str
    total: int


class TranscriptItem(BaseModel):
    role: str
    text: str


class SessionResponse(BaseModel):
    id: str
    createdAt: float
    currentStep: int
    auditData: dict[str, Any]
    transcript: list[TranscriptItem]
    isFinished: bool
    consecutiveErrors: int
    submissionStatus: str
    stage: StageInfo
    questionCount: int


class SessionListResponse(BaseModel):
    items: list[SessionResponse]
    current_id: str | None = None


class CurrentSessionResponse(BaseModel):
    state: str
    active: bool
    session: SessionResponse | None = None


class InterviewStartResponse(BaseModel):
    session_id: str
    kind: str
    event: str


class InterviewStatusResponse(BaseModel):
    active: bool
    session_id: str | None = None
    error: str | None = None


class SubmissionResponse(BaseModel):
    session_id: str | None = None
    status: str
    reason: str | None = None
    message: str | None = None
