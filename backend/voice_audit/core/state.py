from enum import Enum


class AuditSessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class SubmissionErrorReason(str, Enum):
    DEADLINE_EXCEEDED = "deadline_exceeded"
    DELIVERY_FAILED = "delivery_failed"
