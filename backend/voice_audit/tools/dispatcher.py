from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from voice_audit.catalogue import QuestionKind, QuestionSchema
from voice_audit.core.logger import log_event
from voice_audit.live.events import ToolCall
from voice_audit.results import Invalid, Ok, ParseResult
from voice_audit.session.machine import InterviewStateMachine
from voice_audit.session.models import InterviewSession

logger = logging.getLogger("voice_audit.tools.dispatcher")

RECORD_SUCCESS = "[EVENT: RECORD_SUCCESS]"
AUDIT_COMPLETED = "[EVENT: AUDIT_COMPLETED]"
TECHNICAL_CLOSURE = "[EVENT: TECHNICAL_CLOSURE]"

ERROR_NO_SESSION = "[ERROR: NO_ACTIVE_SESSION]"
ERROR_UNKNOWN_QUESTION = "[ERROR: UNKNOWN_QUESTION_ID]"
ERROR_INVALID_ARGUMENTS = "[ERROR: INVALID_ARGUMENTS]"
ERROR_UNKNOWN_TOOL = "[ERROR: UNKNOWN_TOOL]"

AFFIRMATIVE_TOKENS = frozenset({"true", "oui", "ok", "accord", "yes"})

_SCALAR_TYPES = (str, int, float, bool)


@dataclass(frozen=True)
class RecordAnswerArgs:
    question_id: str
    value: Any = None
    multi_values: tuple[str, ...] | None = None
    other_text: str | None = None


@dataclass(frozen=True)
class DispatchOutcome:
    ack: str
    completed: bool = False
    session: InterviewSession | None = None

    @property
    def failed(self) -> bool:
        return self.ack.startswith("[ERROR")


def parse_affirmative(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value if value is not None else "").strip().lower() in AFFIRMATIVE_TOKENS


def _decode_arguments(arguments: Any) -> ParseResult:
    if arguments is None or arguments == "":
        return Ok({})
    if isinstance(arguments, dict):
        return Ok(arguments)
    if isinstance(arguments, (str, bytes)):
        try:
            decoded = json.loads(arguments)
        except (TypeError, ValueError):
            return Invalid("arguments are not valid JSON")
        if isinstance(decoded, dict):
            return Ok(decoded)
        return Invalid("arguments must be a JSON object")
    return Invalid(f"unsupported arguments type: {type(arguments).__name__}")


def parse_record_answer(arguments: Any) -> ParseResult:
    decoded = _decode_arguments(arguments)
    if not decoded.ok:
        return decoded
    raw = decoded.value

    question_id = raw.get("questionId")
    if not isinstance(question_id, str) or not question_id.strip():
        return Invalid("questionId is required")

    value = raw.get("value")
    if value is not None and not isinstance(value, _SCALAR_TYPES):
        return Invalid("value must be a scalar")

    multi_values = raw.get("multiValues")
    if multi_values is not None:
        if isinstance(multi_values, str):
            multi_values = (multi_values,)
        elif isinstance(multi_values, list) and all(isinstance(item, _SCALAR_TYPES) for item in multi_values):
            multi_values = tuple(str(item) for item in multi_values)
        else:
            return Invalid("multiValues must be a list of strings")

    other_text = raw.get("autreValue", raw.get("otherFreeText"))
    if other_text is not None and not isinstance(other_text, str):
        return Invalid("autreValue must be a string")

    return Ok(
        RecordAnswerArgs(
            question_id=question_id.strip(),
            value=value,
            multi_values=multi_values,
            other_text=other_text or None,
        )
    )


def answer_updates(question: QuestionSchema, args: RecordAnswerArgs) -> dict[str, Any]:
    """Raw answer map entries for one recorded answer; no option validation here."""
    updates: dict[str, Any] = {}
    if question.kind == QuestionKind.MULTI_SELECT:
        if args.multi_values is not None:
            updates[question.key] = list(args.multi_values)
        elif args.value is not None:
            updates[question.key] = str(args.value)
        else:
            updates[question.key] = []
    elif question.kind == QuestionKind.BOOL:
        updates[question.key] = parse_affirmative(args.value)
    else:
        updates[question.key] = args.value if args.value is not None else ""

    if args.other_text and question.other_key:
        updates[question.other_key] = args.other_text
    return updates


class ToolDispatcher:
    """Executes the two tool calls the model may issue and builds their acks."""

    def __init__(self, machine: InterviewStateMachine):
        self.machine = machine

    def dispatch(self, call: ToolCall) -> DispatchOutcome:
        if call.name == "record_answer":
            outcome = self.record_answer(call.arguments)
        elif call.name == "technical_closure":
            outcome = self.technical_closure()
        else:
            logger.warning("Unknown tool call | name=%s", call.name)
            outcome = DispatchOutcome(ack=ERROR_UNKNOWN_TOOL)
        return outcome

    def record_answer(self, arguments: Any) -> DispatchOutcome:
        parsed = parse_record_answer(arguments)
        if not parsed.ok:
            logger.info("record_answer rejected | reason=%s", parsed.reason)
            return DispatchOutcome(ack=ERROR_INVALID_ARGUMENTS)
        args: RecordAnswerArgs = parsed.value

        session = self.machine.current()
        if session is None or session.finished:
            return DispatchOutcome(ack=ERROR_NO_SESSION)

        index = self.machine.catalogue.index_of(args.question_id)
        if index < 0:
            log_event("tool_dispatcher", "unknown_question", session.id, question_id=args.question_id)
            return DispatchOutcome(ack=ERROR_UNKNOWN_QUESTION)

        question = self.machine.catalogue[index]
        result = self.machine.commit_answer(index, answer_updates(question, args))
        if result is None:
            return DispatchOutcome(ack=ERROR_NO_SESSION)

        if result.completed:
            return DispatchOutcome(ack=AUDIT_COMPLETED, completed=True, session=result.session)
        return DispatchOutcome(ack=RECORD_SUCCESS, session=result.session)

    def technical_closure(self) -> DispatchOutcome:
        current = self.machine.current()
        if current is None:
            return DispatchOutcome(ack=ERROR_NO_SESSION)
        closed = self.machine.close_technically()
        if closed is None:
            # already finished; its submission was started by the completing call
            return DispatchOutcome(ack=TECHNICAL_CLOSURE, session=current)
        return DispatchOutcome(ack=TECHNICAL_CLOSURE, completed=True, session=closed)
