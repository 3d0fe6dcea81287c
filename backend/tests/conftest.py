import asyncio
import os
import sys
from pathlib import Path

import numpy as np
import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OPENAI_API_KEY", "test-key")


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


@pytest.fixture
def catalogue():
    from voice_audit.catalogue import DEFAULT_CATALOGUE

    return DEFAULT_CATALOGUE


@pytest.fixture
def small_catalogue():
    from voice_audit.catalogue import Catalogue, QuestionKind, QuestionSchema

    return Catalogue(
        questions=(
            QuestionSchema(
                id="q01",
                label="Stratégie ?",
                kind=QuestionKind.SELECT,
                key="Strategie",
                options=("Aucune", "Tests", "Processus", "Intégrée"),
            ),
            QuestionSchema(id="q02", label="Consentement ?", kind=QuestionKind.BOOL, key="Consent"),
        ),
        source_tag="test-source",
    )


@pytest.fixture
def store(tmp_path):
    from voice_audit.session import build_session_store

    return build_session_store(tmp_path / "sessions.json")


@pytest.fixture
def machine(store, catalogue):
    from voice_audit.session import InterviewStateMachine

    return InterviewStateMachine(store, catalogue)


class FakeHandle:
    def __init__(self, start: float, duration: float):
        self.start = start
        self.end_time = start + duration
        self.stopped = False

    def stop(self):
        self.stopped = True


class FakePlaybackContext:
    """Manual clock; nothing is actually played."""

    def __init__(self, sample_rate: int = 24000):
        self.sample_rate = sample_rate
        self.now = 0.0
        self.handles: list[FakeHandle] = []
        self.opened = False
        self.closed = False

    @property
    def current_time(self) -> float:
        return self.now

    def open(self):
        self.opened = True

    def start(self, samples, when):
        handle = FakeHandle(when, len(samples) / float(self.sample_rate))
        self.handles.append(handle)
        return handle

    def close(self):
        self.closed = True


class InstantPlaybackContext(FakePlaybackContext):
    """Every scheduled buffer is considered played as soon as it is started."""

    def start(self, samples, when):
        handle = super().start(samples, when)
        self.now = handle.end_time
        return handle


class FakeCapture:
    sample_rate = 24000

    def __init__(self, frames=None, fail_open: bool = False, fail_close: bool = False):
        self._frames = list(frames or [])
        self.fail_open = fail_open
        self.fail_close = fail_close
        self.opened = False
        self.closed = False

    def open(self):
        if self.fail_open:
            raise OSError("microphone permission denied")
        self.opened = True

    async def frames(self):
        for frame in self._frames:
            yield frame
        while not self.closed:
            await asyncio.sleep(0.01)

    def close(self):
        self.closed = True
        if self.fail_close:
            raise OSError("device busy")


class FakeChannel:
    def __init__(self):
        self.sent_audio: list[bytes] = []
        self.sent_text: list[str] = []
        self.tool_responses: list[tuple[str, str, str]] = []
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.instructions: str | None = None

    async def send_audio(self, pcm: bytes):
        self.sent_audio.append(pcm)

    async def send_text(self, text: str):
        self.sent_text.append(text)

    async def send_tool_response(self, call_id: str, name: str, result: str):
        self.tool_responses.append((call_id, name, result))

    async def messages(self):
        while True:
            message = await self.inbound.get()
            if message is None:
                return
            yield message

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_channel_factory():
    channels: list[FakeChannel] = []

    async def _factory(instructions: str):
        channel = FakeChannel()
        channel.instructions = instructions
        channels.append(channel)
        return channel

    _factory.channels = channels
    return _factory


@pytest.fixture
def pcm_chunk():
    def _make(sample_count: int) -> bytes:
        from voice_audit.audio.codec import float_to_pcm16

        return float_to_pcm16(np.zeros(sample_count, dtype=np.float32))

    return _make


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()
