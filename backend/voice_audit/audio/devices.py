from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from threading import Lock

import numpy as np

from voice_audit.core.config import CAPTURE_FRAME_SAMPLES, CAPTURE_SAMPLE_RATE, PLAYBACK_BLOCK_SAMPLES, PLAYBACK_SAMPLE_RATE
from voice_audit.errors import DeviceUnavailableError

logger = logging.getLogger("voice_audit.audio.devices")

# PyAudio is imported lazily so the engine and its tests run on machines without PortAudio.


def _load_pyaudio():
    try:
        import pyaudio
    except ImportError as exc:
        raise DeviceUnavailableError("pyaudio is not installed; install the 'audio' extra") from exc
    return pyaudio


class MicrophoneCapture:
    """Fixed-size PCM16 frames from the default input device, delivered on the event loop."""

    def __init__(self, sample_rate: int = CAPTURE_SAMPLE_RATE, frame_samples: int = CAPTURE_FRAME_SAMPLES, device_index: int | None = None):
        self.sample_rate = sample_rate
        self.frame_samples = frame_samples
        self.device_index = device_index
        self._pa = None
        self._stream = None
        self._queue: asyncio.Queue[bytes | None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def open(self) -> None:
        pyaudio = _load_pyaudio()
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        try:
            self._pa = pyaudio.PyAudio()
            self._stream = self._pa.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=self.frame_samples,
                stream_callback=self._on_frame,
            )
            self._stream.start_stream()
        except Exception as exc:
            self.close()
            raise DeviceUnavailableError(f"microphone unavailable: {exc}") from exc
        logger.info("Microphone opened | rate=%s frame=%s", self.sample_rate, self.frame_samples)

    def _on_frame(self, in_data, frame_count, time_info, status):
        import pyaudio

        if self._loop is not None and self._queue is not None:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, bytes(in_data))
        return (None, pyaudio.paContinue)

    async def frames(self):
        if self._queue is None:
            return
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame

    def close(self) -> None:
        stream, self._stream = self._stream, None
        pa, self._pa = self._pa, None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except Exception as exc:
                logger.warning("Microphone stream not released (resource leak) | err=%s", exc)
        if pa is not None:
            try:
                pa.terminate()
            except Exception as exc:
                logger.warning("PyAudio terminate failed | err=%s", exc)
        if self._queue is not None and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._queue.put_nowait, None)


@dataclass
class _Voice:
    start_frame: int
    samples: np.ndarray
    stopped: bool = False
    sample_rate: int = PLAYBACK_SAMPLE_RATE
    end_time: float = field(init=False)

    def __post_init__(self):
        self.end_time = (self.start_frame + len(self.samples)) / float(self.sample_rate)

    def stop(self) -> None:
        self.stopped = True


class SpeakerContext:
    """Callback-driven mixer with a sample clock, usable as a PlaybackContext."""

    def __init__(self, sample_rate: int = PLAYBACK_SAMPLE_RATE, block_samples: int = PLAYBACK_BLOCK_SAMPLES, device_index: int | None = None):
        self.sample_rate = sample_rate
        self.block_samples = block_samples
        self.device_index = device_index
        self._lock = Lock()
        self._voices: list[_Voice] = []
        self._frames_played = 0
        self._pa = None
        self._stream = None

    @property
    def current_time(self) -> float:
        with self._lock:
            return self._frames_played / float(self.sample_rate)

    def open(self) -> None:
        pyaudio = _load_pyaudio()
        try:
            self._pa = pyaudio.PyAudio()
            self._stream = self._pa.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.sample_rate,
                output=True,
                output_device_index=self.device_index,
                frames_per_buffer=self.block_samples,
                stream_callback=self._render,
            )
            self._stream.start_stream()
        except Exception as exc:
            self.close()
            raise DeviceUnavailableError(f"playback unavailable: {exc}") from exc
        logger.info("Speaker opened | rate=%s block=%s", self.sample_rate, self.block_samples)

    def start(self, samples: np.ndarray, when: float) -> _Voice:
        voice = _Voice(
            start_frame=int(round(when * self.sample_rate)),
            samples=np.asarray(samples, dtype=np.float32),
            sample_rate=self.sample_rate,
        )
        with self._lock:
            self._voices.append(voice)
        return voice

    def mix(self, frame_count: int) -> np.ndarray:
        out = np.zeros(frame_count, dtype=np.float32)
        with self._lock:
            block_start = self._frames_played
            block_end = block_start + frame_count
            alive = []
            for voice in self._voices:
                voice_end = voice.start_frame + len(voice.samples)
                if voice.stopped or voice_end <= block_start:
                    continue
                alive.append(voice)
                lo = max(block_start, voice.start_frame)
                hi = min(block_end, voice_end)
                if hi > lo:
                    out[lo - block_start:hi - block_start] += voice.samples[lo - voice.start_frame:hi - voice.start_frame]
            self._voices = alive
            self._frames_played = block_end
        return out

    def _render(self, in_data, frame_count, time_info, status):
        import pyaudio

        from voice_audit.audio.codec import float_to_pcm16

        return (float_to_pcm16(self.mix(frame_count)), pyaudio.paContinue)

    def close(self) -> None:
        with self._lock:
            for voice in self._voices:
                voice.stop()
            self._voices = []
        stream, self._stream = self._stream, None
        pa, self._pa = self._pa, None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except Exception as exc:
                logger.warning("Speaker stream close failed | err=%s", exc)
        if pa is not None:
            try:
                pa.terminate()
            except Exception as exc:
                logger.warning("PyAudio terminate failed | err=%s", exc)
