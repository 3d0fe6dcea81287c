from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

from openai import AsyncOpenAI

from voice_audit.catalogue import Catalogue
from voice_audit.core.config import NORMALIZE_MODEL, NORMALIZE_TIMEOUT_SEC, OPENAI_API_KEY
from voice_audit.core.logger import log_event
from voice_audit.normalization.prompts import SYSTEM_PROMPT, build_normalization_prompt
from voice_audit.results import Invalid, Ok, ParseResult
from voice_audit.session.models import InterviewSession

logger = logging.getLogger("voice_audit.normalization.candidate")

client = AsyncOpenAI(api_key=OPENAI_API_KEY)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def parse_candidate(text: Any) -> ParseResult:
    """Tagged parse of the mapper's reply; only a non-empty JSON object is usable."""
    cleaned = _FENCE_RE.sub("", str(text or "")).strip()
    if not cleaned:
        return Invalid("empty response")
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        return Invalid("response is not JSON")
    if not isinstance(parsed, dict):
        return Invalid("response is not a JSON object")
    if not parsed:
        return Invalid("response object is empty")
    return Ok(parsed)


class SemanticMapper:
    """Best-effort mapping of a transcript onto catalogue options.

    Never raises: timeouts, API failures and unusable output all come back as
    None, which the deterministic closure treats as an absent candidate.
    """

    def __init__(self, model: str = NORMALIZE_MODEL, timeout_sec: float = NORMALIZE_TIMEOUT_SEC):
        self.model = model
        self.timeout_sec = timeout_sec

    async def propose(
        self,
        catalogue: Catalogue,
        session: InterviewSession,
        timeout_sec: float | None = None,
    ) -> dict | None:
        transcript = [entry.to_dict() for entry in session.transcript]
        prompt = build_normalization_prompt(catalogue, transcript, dict(session.answers))
        timeout = self.timeout_sec if timeout_sec is None else max(0.0, float(timeout_sec))

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=0,
                    response_format={"type": "json_object"},
                ),
                timeout=timeout,
            )
            content = response.choices[0].message.content
        except asyncio.TimeoutError:
            logger.warning("Semantic mapping timed out | session=%s timeout=%.1fs", session.id, timeout)
            log_event("normalization", "candidate_timeout", session.id)
            return None
        except Exception as exc:
            logger.warning("Semantic mapping failed | session=%s err=%s", session.id, exc)
            log_event("normalization", "candidate_failed", session.id, error=str(exc))
            return None

        parsed = parse_candidate(content)
        if not parsed.ok:
            logger.warning("Semantic mapping unusable | session=%s reason=%s", session.id, parsed.reason)
            log_event("normalization", "candidate_unusable", session.id, reason=parsed.reason)
            return None

        log_event("normalization", "candidate_ready", session.id, keys=len(parsed.value))
        return parsed.value
