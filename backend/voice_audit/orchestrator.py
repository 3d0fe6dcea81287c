from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from voice_audit.audio import AudioDuplexPipeline, build_local_pipeline
from voice_audit.core.config import (
    ARCHIVE_GRACE_SEC,
    FINAL_SPEECH_TAIL_SEC,
    SILENCE_WINDOW_SEC,
    START_EVENT_DELAY_SEC,
)
from voice_audit.core.logger import log_event
from voice_audit.errors import CannotStartError, ChannelError, DeviceUnavailableError
from voice_audit.live import ChannelFactory, LiveChannel, LiveMessage, build_system_instruction, connect_realtime, silence_event
from voice_audit.session.machine import BeginResult, InterviewStateMachine
from voice_audit.submission import SubmissionPipeline
from voice_audit.tools import ToolDispatcher
from voice_audit.turns import SilenceTimer, TurnSupervisor

logger = logging.getLogger("voice_audit.orchestrator")

CANNOT_START_MESSAGE = "Impossible de démarrer l'entretien."
CHANNEL_FAILURE_MESSAGE = "Service temporairement indisponible."

InterviewListener = Callable[[dict], None]


class AuditOrchestrator:
    """Runs one live interview at a time: devices, channel, turns, tools."""

    def __init__(
        self,
        machine: InterviewStateMachine,
        submission: SubmissionPipeline,
        pipeline_factory: Callable[[], AudioDuplexPipeline] = build_local_pipeline,
        channel_factory: ChannelFactory = connect_realtime,
        silence_window_sec: float = SILENCE_WINDOW_SEC,
        archive_grace_sec: float = ARCHIVE_GRACE_SEC,
        start_delay_sec: float = START_EVENT_DELAY_SEC,
        final_tail_sec: float = FINAL_SPEECH_TAIL_SEC,
    ):
        self.machine = machine
        self.submission = submission
        self.pipeline_factory = pipeline_factory
        self.channel_factory = channel_factory
        self.silence_window_sec = silence_window_sec
        self.archive_grace_sec = archive_grace_sec
        self.start_delay_sec = start_delay_sec
        self.final_tail_sec = final_tail_sec

        self.dispatcher = ToolDispatcher(machine)
        self.timer = SilenceTimer(self._on_silence, window_sec=silence_window_sec)
        self.last_error: str | None = None

        self._session_id: str | None = None
        self._pipeline: AudioDuplexPipeline | None = None
        self._channel: LiveChannel | None = None
        self._supervisor: TurnSupervisor | None = None
        self._inbound: asyncio.Queue | None = None
        self._tasks: list[asyncio.Task] = []
        self._pending_final = False
        self._archive_tasks: dict[str, asyncio.Task] = {}
        self._background: set[asyncio.Task] = set()
        self._listeners: list[InterviewListener] = []

    @property
    def is_active(self) -> bool:
        return self._channel is not None

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def supervisor(self) -> TurnSupervisor | None:
        return self._supervisor

    def subscribe(self, listener: InterviewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def status(self) -> dict[str, Any]:
        supervisor = self._supervisor
        return {
            "type": "interview",
            "active": self.is_active,
            "session_id": self._session_id,
            "error": self.last_error,
            "live_input": supervisor.input_text if supervisor else "",
            "live_output": supervisor.output_text if supervisor else "",
        }

    def _notify(self) -> None:
        event = self.status()
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning("Interview listener failed: %s", exc)

    async def start_interview(self) -> BeginResult:
        if self.is_active:
            raise CannotStartError("an interview is already running")
        self.last_error = None

        pipeline = self.pipeline_factory()
        try:
            pipeline.open()
        except DeviceUnavailableError as exc:
            logger.warning("Audio devices unavailable: %s", exc)
            self.last_error = CANNOT_START_MESSAGE
            self._notify()
            raise CannotStartError(CANNOT_START_MESSAGE) from exc

        begin = self.machine.begin()
        session_id = begin.session.id
        self._cancel_archive(session_id)

        try:
            channel = await self.channel_factory(build_system_instruction(self.machine.catalogue))
        except Exception as exc:
            logger.warning("Live channel unavailable | session=%s err=%s", session_id, exc)
            await pipeline.close()
            self.last_error = CANNOT_START_MESSAGE
            self._notify()
            raise CannotStartError(CANNOT_START_MESSAGE) from exc

        self._session_id = session_id
        self._pipeline = pipeline
        self._channel = channel
        self._supervisor = TurnSupervisor(self.machine, session_id, self.timer)
        self._inbound = asyncio.Queue()
        self._pending_final = False

        pipeline.attach(channel.send_audio)
        self._tasks = [
            asyncio.create_task(self._read_channel(channel, self._inbound)),
            asyncio.create_task(self._consume(self._inbound)),
            asyncio.create_task(self._announce(begin.event_text)),
        ]
        log_event("orchestrator", "interview_started", session_id, kind=begin.kind.value)
        self._notify()
        return begin

    async def _announce(self, event_text: str) -> None:
        pipeline, channel = self._pipeline, self._channel
        if pipeline is None or channel is None:
            return
        await pipeline.play_signal()
        await asyncio.sleep(self.start_delay_sec)
        if self._channel is not channel:
            return
        try:
            await channel.send_text(event_text)
        except ChannelError as exc:
            await self._fail(exc)

    async def _read_channel(self, channel: LiveChannel, inbound: asyncio.Queue) -> None:
        try:
            async for message in channel.messages():
                await inbound.put(message)
        except ChannelError as exc:
            await inbound.put(exc)
            return
        await inbound.put(None)

    async def _consume(self, inbound: asyncio.Queue) -> None:
        while True:
            item = await inbound.get()
            if item is None:
                logger.info("Live channel closed | session=%s", self._session_id)
                self._spawn(self.stop_interview())
                return
            if isinstance(item, Exception):
                self._spawn(self._fail(item))
                return
            try:
                await self.handle_message(item)
            except ChannelError as exc:
                self._spawn(self._fail(exc))
                return
            except Exception as exc:
                logger.exception("Inbound message dropped | session=%s err=%s", self._session_id, exc)

    async def handle_message(self, message: LiveMessage) -> None:
        supervisor, pipeline, channel = self._supervisor, self._pipeline, self._channel
        if supervisor is None or pipeline is None or channel is None:
            return

        if message.audio:
            supervisor.on_audio()
            pipeline.play_chunk(message.audio)

        if message.input_text:
            supervisor.on_input(message.input_text)
        if message.output_text:
            supervisor.on_output(message.output_text)

        if message.turn_complete:
            supervisor.on_turn_complete()
            if self._pending_final:
                self._pending_final = False
                delay = pipeline.remaining() + self.final_tail_sec
                self._tasks.append(asyncio.create_task(self._close_after(delay)))
            self._notify()

        if message.interrupted:
            dropped = pipeline.interrupt()
            logger.debug("Playback interrupted | dropped=%s", dropped)

        for call in message.tool_calls:
            outcome = self.dispatcher.dispatch(call)
            await channel.send_tool_response(call.call_id, call.name, outcome.ack)
            log_event("orchestrator", "tool_call", self._session_id, name=call.name, ack=outcome.ack)
            if outcome.completed and outcome.session is not None:
                self._pending_final = True
                self._spawn(self.submission.submit(outcome.session.id))

        if message.error:
            raise ChannelError(message.error)

    async def _on_silence(self, session_id: str) -> None:
        channel = self._channel
        if channel is None or session_id != self._session_id:
            return
        count = self.machine.bump_errors(session_id)
        log_event("orchestrator", "silence_escalation", session_id, error_count=count)
        await channel.send_text(silence_event(count, self.silence_window_sec))

    async def _close_after(self, delay: float) -> None:
        await asyncio.sleep(max(0.0, delay))
        await self.stop_interview()

    async def _fail(self, exc: Exception) -> None:
        logger.warning("Live session failed | session=%s err=%s", self._session_id, exc)
        self.last_error = CHANNEL_FAILURE_MESSAGE
        await self.stop_interview()

    async def stop_interview(self) -> None:
        """Idempotent teardown; safe on a partially started interview."""
        channel, self._channel = self._channel, None
        pipeline, self._pipeline = self._pipeline, None
        supervisor, self._supervisor = self._supervisor, None
        tasks, self._tasks = self._tasks, []
        session_id = self._session_id
        self._pending_final = False
        self.timer.cancel()

        if channel is None and pipeline is None and not tasks:
            return

        if supervisor is not None:
            supervisor.stop()

        current = asyncio.current_task()
        pending = [task for task in tasks if task is not current and not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if channel is not None:
            try:
                await channel.close()
            except Exception as exc:
                logger.warning("Live channel close failed: %s", exc)
        if pipeline is not None:
            await pipeline.close()

        log_event("orchestrator", "interview_stopped", session_id)
        if session_id:
            session = self.machine.store.get(session_id)
            if session is not None and session.finished:
                self._schedule_archive(session_id)
        self._notify()

    def _schedule_archive(self, session_id: str) -> None:
        self._cancel_archive(session_id)
        self._archive_tasks[session_id] = asyncio.create_task(self._archive_later(session_id))

    def _cancel_archive(self, session_id: str) -> None:
        task = self._archive_tasks.pop(session_id, None)
        if task is not None and not task.done():
            task.cancel()

    async def _archive_later(self, session_id: str) -> None:
        await asyncio.sleep(self.archive_grace_sec)
        self._archive_tasks.pop(session_id, None)
        if self.machine.archive(session_id) and self._session_id == session_id and not self.is_active:
            self._session_id = None
        self._notify()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def shutdown(self) -> None:
        await self.stop_interview()
        for session_id in list(self._archive_tasks):
            self._cancel_archive(session_id)
        background = [task for task in self._background if not task.done()]
        for task in background:
            task.cancel()
        if background:
            await asyncio.gather(*background, return_exceptions=True)
