from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK

from voice_audit.audio.codec import encode_b64
from voice_audit.core.config import (
    OPENAI_API_KEY,
    REALTIME_CONNECT_TIMEOUT_SEC,
    REALTIME_MODEL,
    REALTIME_URL,
    REALTIME_VOICE,
)
from voice_audit.errors import ChannelError
from voice_audit.live.events import LiveMessage, ToolCall
from voice_audit.live.prompts import AUDIT_TOOLS

logger = logging.getLogger("voice_audit.live.channel")


class LiveChannel(Protocol):
    async def send_audio(self, pcm: bytes) -> None:
        ...

    async def send_text(self, text: str) -> None:
        ...

    async def send_tool_response(self, call_id: str, name: str, result: str) -> None:
        ...

    def messages(self) -> AsyncIterator[LiveMessage]:
        ...

    async def close(self) -> None:
        ...


ChannelFactory = Callable[[str], Awaitable[LiveChannel]]


def parse_server_event(event: dict) -> LiveMessage | None:
    """Map one realtime server event onto the engine's inbound message shape."""
    if not isinstance(event, dict):
        return None
    event_type = str(event.get("type") or "")

    if event_type in {"response.audio.delta", "response.output_audio.delta"}:
        delta = event.get("delta")
        return LiveMessage(audio=delta) if delta else None

    if event_type in {"response.audio_transcript.delta", "response.output_audio_transcript.delta"}:
        delta = str(event.get("delta") or "")
        return LiveMessage(output_text=delta) if delta else None

    if event_type == "conversation.item.input_audio_transcription.completed":
        transcript = str(event.get("transcript") or "")
        return LiveMessage(input_text=transcript) if transcript else None

    if event_type == "input_audio_buffer.speech_started":
        return LiveMessage(interrupted=True)

    if event_type == "response.function_call_arguments.done":
        call = ToolCall(
            call_id=str(event.get("call_id") or ""),
            name=str(event.get("name") or ""),
            arguments=event.get("arguments"),
        )
        return LiveMessage(tool_calls=(call,))

    if event_type == "response.done":
        return LiveMessage(turn_complete=True)

    if event_type == "error":
        error = event.get("error") if isinstance(event.get("error"), dict) else {}
        return LiveMessage(error=str(error.get("message") or error.get("code") or "unknown realtime error"))

    return None


class RealtimeChannel:
    """Duplex audio/event channel to a realtime speech model over one websocket."""

    def __init__(self, websocket):
        self._ws = websocket
        self._send_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def connect(
        cls,
        instructions: str,
        *,
        api_key: str = OPENAI_API_KEY,
        model: str = REALTIME_MODEL,
        url: str = REALTIME_URL,
        voice: str = REALTIME_VOICE,
        tools: list[dict] | None = None,
        timeout_sec: float = REALTIME_CONNECT_TIMEOUT_SEC,
    ) -> "RealtimeChannel":
        if not api_key:
            raise ChannelError("OPENAI_API_KEY is not configured")
        headers = {
            "Authorization": f"Bearer {api_key}",
            "OpenAI-Beta": "realtime=v1",
        }
        try:
            websocket = await asyncio.wait_for(
                websockets.connect(f"{url}?model={model}", additional_headers=headers, max_size=None),
                timeout=timeout_sec,
            )
        except asyncio.TimeoutError as exc:
            raise ChannelError("realtime connect timed out") from exc
        except Exception as exc:
            raise ChannelError(f"realtime connect failed: {exc}") from exc

        channel = cls(websocket)
        session = {
            "modalities": ["audio", "text"],
            "instructions": instructions,
            "voice": voice,
            "input_audio_format": "pcm16",
            "output_audio_format": "pcm16",
            "input_audio_transcription": {"model": "whisper-1"},
            "turn_detection": {"type": "server_vad"},
            "tools": list(tools if tools is not None else AUDIT_TOOLS),
            "tool_choice": "auto",
            "temperature": 0.6,
        }
        try:
            await channel._send({"type": "session.update", "session": session})
        except BaseException:
            await channel.close()
            raise
        logger.info("Realtime channel connected | model=%s", model)
        return channel

    async def _send(self, payload: dict) -> None:
        if self._closed:
            raise ChannelError("channel closed")
        async with self._send_lock:
            try:
                await self._ws.send(json.dumps(payload, ensure_ascii=False))
            except ConnectionClosed as exc:
                raise ChannelError(f"channel closed: {exc}") from exc

    async def send_audio(self, pcm: bytes) -> None:
        await self._send({"type": "input_audio_buffer.append", "audio": encode_b64(pcm)})

    async def send_text(self, text: str) -> None:
        await self._send({
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": text}],
            },
        })
        await self._send({"type": "response.create"})

    async def send_tool_response(self, call_id: str, name: str, result: str) -> None:
        await self._send({
            "type": "conversation.item.create",
            "item": {
                "type": "function_call_output",
                "call_id": call_id,
                "output": json.dumps({"result": result}, ensure_ascii=False),
            },
        })
        await self._send({"type": "response.create"})

    async def messages(self) -> AsyncIterator[LiveMessage]:
        try:
            async for raw in self._ws:
                try:
                    event = json.loads(raw)
                except (TypeError, ValueError):
                    logger.warning("Realtime frame is not JSON; ignored")
                    continue
                message = parse_server_event(event)
                if message is not None:
                    yield message
        except ConnectionClosedOK:
            return
        except ConnectionClosed as exc:
            if self._closed:
                return
            raise ChannelError(f"channel closed unexpectedly: {exc}") from exc

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._ws.close()
        except Exception as exc:
            logger.debug("Realtime websocket close failed: %s", exc)


async def connect_realtime(instructions: str) -> RealtimeChannel:
    return await RealtimeChannel.connect(instructions)
