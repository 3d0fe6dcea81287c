from __future__ import annotations

import asyncio
import binascii
import logging
from typing import AsyncIterator, Awaitable, Callable, Protocol

import numpy as np

from voice_audit.audio.codec import chime_samples, decode_chunk
from voice_audit.audio.scheduler import PlaybackContext, PlaybackScheduler
from voice_audit.errors import DeviceUnavailableError

logger = logging.getLogger("voice_audit.audio.pipeline")

SendAudioFn = Callable[[bytes], Awaitable[None]]


class CaptureSource(Protocol):
    sample_rate: int

    def open(self) -> None:
        ...

    def frames(self) -> AsyncIterator[bytes]:
        ...

    def close(self) -> None:
        ...


class PlaybackDevice(PlaybackContext, Protocol):
    def open(self) -> None:
        ...


class AudioDuplexPipeline:
    def __init__(self, capture: CaptureSource, playback: PlaybackDevice):
        self.capture = capture
        self.playback = playback
        self.scheduler = PlaybackScheduler(playback)
        self._forward_task: asyncio.Task | None = None
        self._opened = False
        self._closed = False
        self.frames_sent = 0

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(self) -> None:
        try:
            self.capture.open()
        except DeviceUnavailableError:
            raise
        except Exception as exc:
            raise DeviceUnavailableError(f"microphone unavailable: {exc}") from exc
        try:
            self.playback.open()
        except Exception as exc:
            self._close_capture()
            if isinstance(exc, DeviceUnavailableError):
                raise
            raise DeviceUnavailableError(f"playback unavailable: {exc}") from exc
        self._opened = True
        self._closed = False

    def attach(self, send_audio: SendAudioFn) -> asyncio.Task:
        if self._forward_task is not None and not self._forward_task.done():
            return self._forward_task
        self._forward_task = asyncio.create_task(self._forward_frames(send_audio))
        return self._forward_task

    async def _forward_frames(self, send_audio: SendAudioFn) -> None:
        try:
            async for frame in self.capture.frames():
                await send_audio(frame)
                self.frames_sent += 1
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Capture forwarding stopped | err=%s", exc)

    def play_chunk(self, chunk: bytes | str) -> float | None:
        if not self.is_open:
            return None
        try:
            samples = decode_chunk(chunk)
        except (binascii.Error, ValueError) as exc:
            logger.warning("Dropping undecodable audio chunk | err=%s", exc)
            return None
        if samples.size == 0:
            return None
        return self.scheduler.schedule(samples)

    async def play_signal(self, samples: np.ndarray | None = None) -> None:
        if not self.is_open:
            return
        if samples is None:
            samples = chime_samples(self.playback.sample_rate)
        self.scheduler.schedule(samples)
        await asyncio.sleep(self.scheduler.remaining())

    def interrupt(self) -> int:
        return self.scheduler.interrupt()

    def remaining(self) -> float:
        return self.scheduler.remaining()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        task, self._forward_task = self._forward_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        self._close_capture()
        self.scheduler.clear()
        try:
            self.playback.close()
        except Exception as exc:
            logger.warning("Playback context close failed | err=%s", exc)
        self._opened = False

    def _close_capture(self) -> None:
        try:
            self.capture.close()
        except Exception as exc:
            logger.warning("Capture device not released (resource leak) | err=%s", exc)


def build_local_pipeline() -> AudioDuplexPipeline:
    from voice_audit.audio.devices import MicrophoneCapture, SpeakerContext

    return AudioDuplexPipeline(capture=MicrophoneCapture(), playback=SpeakerContext())
