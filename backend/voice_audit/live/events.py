from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolCall:
    call_id: str
    name: str
    arguments: Any = None


@dataclass(frozen=True)
class LiveMessage:
    audio: bytes | str | None = None
    input_text: str | None = None
    output_text: str | None = None
    turn_complete: bool = False
    interrupted: bool = False
    tool_calls: tuple[ToolCall, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.audio
            or self.input_text
            or self.output_text
            or self.turn_complete
            or self.interrupted
            or self.tool_calls
            or self.error
        )


def silence_event(error_count: int, window_sec: float = 10.0) -> str:
    return f"[SYSTEM_EVENT: SILENCE_{int(window_sec)}S, ERROR_COUNT: {int(error_count)}]"
