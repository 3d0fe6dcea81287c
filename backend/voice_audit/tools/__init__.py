from voice_audit.tools.dispatcher import (
    AUDIT_COMPLETED,
    RECORD_SUCCESS,
    TECHNICAL_CLOSURE,
    DispatchOutcome,
    RecordAnswerArgs,
    ToolDispatcher,
    answer_updates,
    parse_affirmative,
    parse_record_answer,
)

__all__ = [
    "AUDIT_COMPLETED",
    "RECORD_SUCCESS",
    "TECHNICAL_CLOSURE",
    "DispatchOutcome",
    "RecordAnswerArgs",
    "ToolDispatcher",
    "answer_updates",
    "parse_affirmative",
    "parse_record_answer",
]
