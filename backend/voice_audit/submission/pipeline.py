from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import httpx

from voice_audit.core.config import AUDIT_WEBHOOK_URL, NORMALIZE_TIMEOUT_SEC, SUBMIT_DEADLINE_SEC
from voice_audit.core.logger import log_event
from voice_audit.core.state import SubmissionErrorReason, SubmissionStatus
from voice_audit.errors import DeliveryError
from voice_audit.normalization import SemanticMapper, close_payload
from voice_audit.session.machine import InterviewStateMachine
from voice_audit.session.models import InterviewSession

logger = logging.getLogger("voice_audit.submission")

ERROR_MESSAGES = {
    SubmissionErrorReason.DEADLINE_EXCEEDED: "Le délai de transmission a été dépassé.",
    SubmissionErrorReason.DELIVERY_FAILED: "La transmission du diagnostic a échoué. Veuillez contacter le support.",
}


@dataclass(frozen=True)
class SubmissionUpdate:
    session_id: str
    status: SubmissionStatus
    reason: SubmissionErrorReason | None = None
    payload: dict[str, Any] | None = field(default=None, repr=False)

    @property
    def message(self) -> str | None:
        return ERROR_MESSAGES.get(self.reason) if self.reason else None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


class _DeadlineExceeded(Exception):
    pass


def iso_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


StatusListener = Callable[[SubmissionUpdate], None]


class SubmissionPipeline:
    """Normalize then deliver one finished session, once, under one deadline."""

    def __init__(
        self,
        machine: InterviewStateMachine,
        mapper: SemanticMapper | None = None,
        webhook_url: str = AUDIT_WEBHOOK_URL,
        deadline_sec: float = SUBMIT_DEADLINE_SEC,
        stage_a_timeout_sec: float = NORMALIZE_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.machine = machine
        self.mapper = mapper or SemanticMapper()
        self.webhook_url = webhook_url
        self.deadline_sec = float(deadline_sec)
        self.stage_a_timeout_sec = float(stage_a_timeout_sec)
        self.transport = transport
        self.clock = clock
        self._submitted: set[str] = set()
        self._listeners: list[StatusListener] = []
        self.last: SubmissionUpdate | None = None

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, update: SubmissionUpdate) -> None:
        self.last = update
        self.machine.set_submission_status(update.session_id, update.status.value)
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception as exc:
                logger.warning("Submission listener failed: %s", exc)

    def already_submitted(self, session: InterviewSession) -> bool:
        return session.id in self._submitted or session.submission_status != SubmissionStatus.IDLE.value

    async def submit(self, session_id: str) -> SubmissionUpdate | None:
        session = self.machine.store.get(session_id)
        if session is None:
            logger.warning("Submission skipped, unknown session | session=%s", session_id)
            return None
        if self.already_submitted(session):
            log_event("submission", "skipped_already_submitted", session_id, status=session.submission_status)
            return None
        self._submitted.add(session_id)

        self._publish(SubmissionUpdate(session_id=session_id, status=SubmissionStatus.SUBMITTING))
        log_event("submission", "started", session_id, deadline_sec=self.deadline_sec)

        try:
            payload = await asyncio.wait_for(self._run(session), timeout=self.deadline_sec)
        except (asyncio.TimeoutError, _DeadlineExceeded):
            update = SubmissionUpdate(
                session_id=session_id,
                status=SubmissionStatus.ERROR,
                reason=SubmissionErrorReason.DEADLINE_EXCEEDED,
            )
        except DeliveryError as exc:
            logger.warning("Delivery failed | session=%s status=%s err=%s", session_id, exc.status_code, exc)
            update = SubmissionUpdate(
                session_id=session_id,
                status=SubmissionStatus.ERROR,
                reason=SubmissionErrorReason.DELIVERY_FAILED,
            )
        except Exception as exc:
            logger.exception("Submission failed unexpectedly | session=%s err=%s", session_id, exc)
            update = SubmissionUpdate(
                session_id=session_id,
                status=SubmissionStatus.ERROR,
                reason=SubmissionErrorReason.DELIVERY_FAILED,
            )
        else:
            update = SubmissionUpdate(session_id=session_id, status=SubmissionStatus.SUCCESS, payload=payload)

        log_event(
            "submission",
            "finished",
            session_id,
            status=update.status.value,
            reason=update.reason.value if update.reason else None,
        )
        self._publish(update)
        return update

    async def _run(self, session: InterviewSession) -> dict[str, Any]:
        started = self.clock()

        def remaining() -> float:
            return max(0.0, self.deadline_sec - (self.clock() - started))

        catalogue = self.machine.catalogue
        try:
            candidate = await self.mapper.propose(
                catalogue,
                session,
                timeout_sec=min(self.stage_a_timeout_sec, remaining()),
            )
        except Exception as exc:
            logger.warning("Semantic mapping raised, closing without candidate | session=%s err=%s", session.id, exc)
            log_event("submission", "candidate_failed", session.id, error=str(exc))
            candidate = None
        payload = close_payload(
            catalogue,
            session.answers,
            candidate,
            session_id=session.id,
            submitted_at=iso_timestamp(),
        )
        budget = remaining()
        if budget <= 0:
            raise _DeadlineExceeded()
        await self.deliver(payload, budget)
        return payload

    async def deliver(self, payload: dict[str, Any], timeout_sec: float) -> None:
        if not self.webhook_url:
            raise DeliveryError("AUDIT_WEBHOOK_URL is not configured")
        try:
            async with httpx.AsyncClient(timeout=timeout_sec, transport=self.transport) as http:
                response = await http.post(self.webhook_url, json=payload)
        except httpx.TimeoutException as exc:
            raise _DeadlineExceeded() from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"delivery request failed: {exc}") from exc

        if not response.is_success:
            raise DeliveryError(f"delivery endpoint responded with {response.status_code}", response.status_code)
