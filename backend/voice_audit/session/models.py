from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any

USER_ROLE = "User"
AGENT_ROLE = "Agent"


@dataclass(frozen=True)
class TranscriptEntry:
    role: str
    text: str

    def to_dict(self) -> dict:
        return {"role": self.role, "text": self.text}


@dataclass(frozen=True)
class InterviewSession:
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: float = field(default_factory=time.time)
    current_step: int = 0
    answers: dict[str, Any] = field(default_factory=dict)
    transcript: tuple[TranscriptEntry, ...] = ()
    finished: bool = False
    consecutive_errors: int = 0
    submission_status: str = "idle"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "currentStep": self.current_step,
            "auditData": dict(self.answers),
            "transcript": [entry.to_dict() for entry in self.transcript],
            "isFinished": self.finished,
            "consecutiveErrors": self.consecutive_errors,
            "submissionStatus": self.submission_status,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "InterviewSession | None":
        if not isinstance(raw, dict):
            return None
        session_id = str(raw.get("id") or "").strip()
        if not session_id:
            return None

        transcript = []
        for item in raw.get("transcript") or []:
            if not isinstance(item, dict):
                continue
            text = str(item.get("text") or "")
            if text:
                transcript.append(TranscriptEntry(role=str(item.get("role") or USER_ROLE), text=text))

        answers = raw.get("auditData")
        try:
            created_at = float(raw.get("createdAt") or 0.0)
            current_step = max(0, int(raw.get("currentStep") or 0))
            consecutive_errors = max(0, int(raw.get("consecutiveErrors") or 0))
        except (TypeError, ValueError):
            return None

        return cls(
            id=session_id,
            created_at=created_at,
            current_step=current_step,
            answers=dict(answers) if isinstance(answers, dict) else {},
            transcript=tuple(transcript),
            finished=bool(raw.get("isFinished", False)),
            consecutive_errors=consecutive_errors,
            submission_status=str(raw.get("submissionStatus") or "idle"),
        )
