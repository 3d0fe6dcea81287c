from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable

from voice_audit.core.config import SILENCE_WINDOW_SEC
from voice_audit.core.logger import log_event
from voice_audit.session.machine import InterviewStateMachine
from voice_audit.session.models import AGENT_ROLE, USER_ROLE, TranscriptEntry

logger = logging.getLogger("voice_audit.turns.supervisor")

_APOLOGY_RE = re.compile(r"d[ée]sol[ée]", re.IGNORECASE)
_MISUNDERSTOOD_RE = re.compile(r"\bcompr(?:ends|enons|is)\b", re.IGNORECASE)

# shorter user utterances ("ok", "hm") do not count as a real answer
MIN_MEANINGFUL_INPUT_CHARS = 2


def is_apology(text: str) -> bool:
    """Agent said it did not understand ("désolé, je n'ai pas compris")."""
    value = str(text or "")
    return bool(_APOLOGY_RE.search(value) and _MISUNDERSTOOD_RE.search(value))


def next_error_count(current: int, user_text: str, agent_text: str) -> int:
    if is_apology(agent_text):
        return current + 1
    if len(str(user_text or "").strip()) > MIN_MEANINGFUL_INPUT_CHARS:
        return 0
    return current


SilenceHandler = Callable[[str], Awaitable[None]]


class SilenceTimer:
    """Single-shot, rearmable timer bound to one session id."""

    def __init__(self, on_fire: SilenceHandler, window_sec: float = SILENCE_WINDOW_SEC):
        self._on_fire = on_fire
        self.window_sec = float(window_sec)
        self._task: asyncio.Task | None = None
        self._session_id: str | None = None

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def session_id(self) -> str | None:
        return self._session_id if self.armed else None

    def arm(self, session_id: str) -> None:
        self.cancel()
        self._session_id = session_id
        self._task = asyncio.create_task(self._run(session_id))

    def cancel(self) -> None:
        task = self._task
        self._task = None
        self._session_id = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self, session_id: str) -> None:
        try:
            await asyncio.sleep(self.window_sec)
        except asyncio.CancelledError:
            return
        self._task = None
        self._session_id = None
        try:
            await self._on_fire(session_id)
        except Exception as exc:
            logger.warning("Silence handler failed | session=%s err=%s", session_id, exc)


@dataclass(frozen=True)
class TurnOutcome:
    user_text: str
    agent_text: str
    consecutive_errors: int
    recorded: bool


class TurnSupervisor:
    """Collects transcription fragments per direction and closes turns."""

    def __init__(self, machine: InterviewStateMachine, session_id: str, timer: SilenceTimer):
        self.machine = machine
        self.session_id = session_id
        self.timer = timer
        self._input: list[str] = []
        self._output: list[str] = []

    @property
    def input_text(self) -> str:
        return "".join(self._input)

    @property
    def output_text(self) -> str:
        return "".join(self._output)

    def on_input(self, fragment: str) -> None:
        if not fragment:
            return
        self._input.append(fragment)
        self.timer.cancel()

    def on_output(self, fragment: str) -> None:
        if fragment:
            self._output.append(fragment)

    def on_audio(self) -> None:
        self.timer.cancel()

    def clear(self) -> None:
        self._input.clear()
        self._output.clear()

    def on_turn_complete(self) -> TurnOutcome:
        user_text = self.input_text.strip()
        agent_text = self.output_text.strip()
        self.clear()

        session = self.machine.store.get(self.session_id)
        current = session.consecutive_errors if session is not None else 0
        errors = current
        recorded = False

        if user_text or agent_text:
            entries = []
            if user_text:
                entries.append(TranscriptEntry(role=USER_ROLE, text=user_text))
            if agent_text:
                entries.append(TranscriptEntry(role=AGENT_ROLE, text=agent_text))
            errors = next_error_count(current, user_text, agent_text)
            recorded = self.machine.append_turn(self.session_id, entries, errors) is not None
            if errors != current:
                log_event("turn_supervisor", "error_count_changed", self.session_id, before=current, after=errors)

        self.timer.arm(self.session_id)
        return TurnOutcome(user_text=user_text, agent_text=agent_text, consecutive_errors=errors, recorded=recorded)

    def stop(self) -> None:
        self.timer.cancel()
        self.clear()
