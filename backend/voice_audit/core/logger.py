import json
import logging
from typing import Any

logger = logging.getLogger("voice_audit.events")

_REDACTED_KEYS = {
    "text", "transcript", "prompt", "answer", "answers", "value", "payload", "candidate",
    "arguments", "multi_values", "other_text", "autrevalue", "otherfreetext", "email", "respondent_name",
}


def _sanitize_value(key: str, value: Any) -> Any:
    normalized_key = str(key or "").lower()
    if normalized_key in _REDACTED_KEYS:
        text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
        return {
            "redacted": True,
            "length": len(text or ""),
        }
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_sanitize_value(normalized_key, item) for item in value]
    return str(value)


def log_event(component: str, event: str, session_id: str | None, **kwargs) -> None:
    payload = {
        "component": str(component or "voice_audit"),
        "event": str(event or "unknown"),
        "session_id": str(session_id or ""),
    }
    payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
    logger.info(json.dumps(payload, ensure_ascii=False, default=str))
