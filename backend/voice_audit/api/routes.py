import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from voice_audit.api.schemas import (
    CurrentSessionResponse,
    InterviewStartResponse,
    InterviewStatusResponse,
    SessionListResponse,
    SubmissionResponse,
)
from voice_audit.engine import AuditEngine, session_view
from voice_audit.errors import CannotStartError
from voice_audit.session.models import AGENT_ROLE

logger = logging.getLogger("voice_audit.api")

router = APIRouter()

AGENT_LABEL = "Amai"
USER_LABEL = "Interviewé"


def _engine(request: Request) -> AuditEngine:
    return request.app.state.engine


def transcript_text(entries) -> str:
    return "\n".join(
        f"{AGENT_LABEL if entry.role == AGENT_ROLE else USER_LABEL}: {entry.text}" for entry in entries
    )


@router.get("/health")
async def health():
    return {"status": "ok", "service": "voice_audit"}


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(request: Request):
    engine = _engine(request)
    snapshot = engine.store.snapshot()
    return {
        "items": [session_view(engine.catalogue, session) for session in snapshot.sessions],
        "current_id": snapshot.current_id,
    }


@router.post("/sessions", response_model=CurrentSessionResponse)
async def new_session(request: Request):
    engine = _engine(request)
    await engine.orchestrator.stop_interview()
    session = engine.machine.new_session()
    return {
        "state": engine.machine.state.value,
        "active": engine.orchestrator.is_active,
        "session": session_view(engine.catalogue, session),
    }


@router.get("/sessions/current", response_model=CurrentSessionResponse)
async def current_session(request: Request):
    engine = _engine(request)
    return {
        "state": engine.machine.state.value,
        "active": engine.orchestrator.is_active,
        "session": session_view(engine.catalogue, engine.machine.current()),
    }


@router.post("/sessions/{session_id}/select", response_model=CurrentSessionResponse)
async def select_session(session_id: str, request: Request):
    engine = _engine(request)
    if engine.orchestrator.is_active:
        raise HTTPException(status_code=409, detail="Interview in progress")
    try:
        session = engine.machine.select(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    return {
        "state": engine.machine.state.value,
        "active": False,
        "session": session_view(engine.catalogue, session),
    }


@router.get("/sessions/{session_id}/transcript", response_class=PlainTextResponse)
async def session_transcript(session_id: str, request: Request):
    session = _engine(request).store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return transcript_text(session.transcript)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, request: Request):
    engine = _engine(request)
    if engine.orchestrator.is_active and engine.orchestrator.session_id == session_id:
        raise HTTPException(status_code=409, detail="Interview in progress")
    if not engine.machine.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


@router.post("/interview/start", response_model=InterviewStartResponse)
async def start_interview(request: Request):
    engine = _engine(request)
    if engine.orchestrator.is_active:
        raise HTTPException(status_code=409, detail="Interview already running")
    try:
        begin = await engine.orchestrator.start_interview()
    except CannotStartError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {"session_id": begin.session.id, "kind": begin.kind.value, "event": begin.event_text}


@router.post("/interview/stop", response_model=InterviewStatusResponse)
async def stop_interview(request: Request):
    orchestrator = _engine(request).orchestrator
    await orchestrator.stop_interview()
    return {"active": orchestrator.is_active, "session_id": orchestrator.session_id, "error": orchestrator.last_error}


@router.get("/interview", response_model=InterviewStatusResponse)
async def interview_status(request: Request):
    orchestrator = _engine(request).orchestrator
    return {"active": orchestrator.is_active, "session_id": orchestrator.session_id, "error": orchestrator.last_error}


@router.get("/submission", response_model=SubmissionResponse)
async def submission_status(request: Request):
    last = _engine(request).submission.last
    if last is None:
        return {"status": "idle"}
    return last.to_dict()


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        payload = await queue.get()
        await websocket.send_json(payload)


@router.websocket("/ws/events")
async def events_ws(websocket: WebSocket):
    engine: AuditEngine = websocket.app.state.engine
    await websocket.accept()
    queue = engine.hub.register()
    queue.put_nowait(engine.sessions_event())
    queue.put_nowait(engine.orchestrator.status())
    sender = asyncio.create_task(_pump(websocket, queue))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Events client disconnected")
    finally:
        engine.hub.unregister(queue)
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
