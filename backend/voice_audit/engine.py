from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable

import httpx

from voice_audit.audio import AudioDuplexPipeline, build_local_pipeline
from voice_audit.catalogue import Catalogue, get_catalogue
from voice_audit.core.config import AUDIT_WEBHOOK_URL, SESSIONS_STORE_PATH
from voice_audit.live import ChannelFactory, connect_realtime
from voice_audit.normalization import SemanticMapper
from voice_audit.orchestrator import AuditOrchestrator
from voice_audit.session import InterviewSession, InterviewStateMachine, SessionStore, StoreSnapshot, build_session_store
from voice_audit.submission import SubmissionPipeline, SubmissionUpdate

logger = logging.getLogger("voice_audit.engine")


class EventHub:
    """Fans engine updates out to connected UI clients."""

    def __init__(self):
        self._lock = Lock()
        self._subscribers: list[tuple[asyncio.Queue, asyncio.AbstractEventLoop]] = []

    def register(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=256)
        with self._lock:
            self._subscribers.append((queue, asyncio.get_running_loop()))
        return queue

    def unregister(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item[0] is not queue]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, payload: dict) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for queue, loop in subscribers:
            try:
                loop.call_soon_threadsafe(self._offer, queue, payload)
            except RuntimeError:
                self.unregister(queue)

    @staticmethod
    def _offer(queue: asyncio.Queue, payload: dict) -> None:
        if queue.full():
            logger.warning("Event subscriber lagging, dropping oldest update")
            queue.get_nowait()
        queue.put_nowait(payload)


def session_view(catalogue: Catalogue, session: InterviewSession | None) -> dict | None:
    if session is None:
        return None
    stage_index, stage_label = catalogue.stage_for(session.current_step, session.finished)
    payload = session.to_dict()
    payload["stage"] = {
        "index": stage_index,
        "label": stage_label,
        "total": len(catalogue.stages),
    }
    payload["questionCount"] = len(catalogue)
    return payload


@dataclass
class AuditEngine:
    catalogue: Catalogue
    store: SessionStore
    machine: InterviewStateMachine
    submission: SubmissionPipeline
    orchestrator: AuditOrchestrator
    hub: EventHub

    def sessions_event(self, snapshot: StoreSnapshot | None = None) -> dict:
        snapshot = snapshot or self.store.snapshot()
        current = next((s for s in snapshot.sessions if s.id == snapshot.current_id), None)
        return {
            "type": "sessions",
            "current_id": snapshot.current_id,
            "count": len(snapshot.sessions),
            "current": session_view(self.catalogue, current),
        }


def build_engine(
    store_path: str | Path = SESSIONS_STORE_PATH,
    catalogue: Catalogue | None = None,
    pipeline_factory: Callable[[], AudioDuplexPipeline] = build_local_pipeline,
    channel_factory: ChannelFactory = connect_realtime,
    mapper: SemanticMapper | None = None,
    webhook_url: str = AUDIT_WEBHOOK_URL,
    transport: httpx.AsyncBaseTransport | None = None,
    **orchestrator_options,
) -> AuditEngine:
    catalogue = catalogue or get_catalogue()
    store = build_session_store(store_path)
    machine = InterviewStateMachine(store, catalogue)
    submission = SubmissionPipeline(machine, mapper=mapper, webhook_url=webhook_url, transport=transport)
    orchestrator = AuditOrchestrator(
        machine,
        submission,
        pipeline_factory=pipeline_factory,
        channel_factory=channel_factory,
        **orchestrator_options,
    )
    hub = EventHub()
    engine = AuditEngine(
        catalogue=catalogue,
        store=store,
        machine=machine,
        submission=submission,
        orchestrator=orchestrator,
        hub=hub,
    )

    store.subscribe(lambda snapshot: hub.publish(engine.sessions_event(snapshot)))

    def _on_submission(update: SubmissionUpdate) -> None:
        hub.publish({"type": "submission", **update.to_dict()})

    submission.subscribe(_on_submission)
    orchestrator.subscribe(hub.publish)
    return engine
