import logging

import numpy as np
import pytest

from conftest import FakeCapture, FakePlaybackContext, InstantPlaybackContext, wait_until
from voice_audit.audio import AudioDuplexPipeline, PlaybackScheduler
from voice_audit.audio.codec import chime_samples, decode_chunk, encode_b64, float_to_pcm16, pcm16_to_float
from voice_audit.audio.devices import SpeakerContext
from voice_audit.errors import DeviceUnavailableError


def test_back_to_back_buffers_have_no_gap_or_overlap():
    context = FakePlaybackContext(sample_rate=1000)
    scheduler = PlaybackScheduler(context)
    durations = [0.25, 0.1, 0.5, 0.05, 0.3]

    starts = [scheduler.schedule(np.zeros(int(d * 1000), dtype=np.float32)) for d in durations]

    for prev_start, prev_duration, start in zip(starts, durations, starts[1:]):
        assert start >= prev_start
        assert start == pytest.approx(prev_start + prev_duration)


def test_late_buffer_starts_now_not_in_the_past():
    context = FakePlaybackContext(sample_rate=1000)
    scheduler = PlaybackScheduler(context)
    scheduler.schedule(np.zeros(100, dtype=np.float32))
    context.now = 2.0
    start = scheduler.schedule(np.zeros(100, dtype=np.float32))
    assert start == pytest.approx(2.0)
    assert scheduler.remaining() == pytest.approx(0.1)


def test_interrupt_stops_everything_and_resets_cursor():
    context = FakePlaybackContext(sample_rate=1000)
    scheduler = PlaybackScheduler(context)
    for _ in range(3):
        scheduler.schedule(np.zeros(500, dtype=np.float32))
    context.now = 0.2

    stopped = scheduler.interrupt()
    assert stopped == 3
    assert all(handle.stopped for handle in context.handles)
    assert scheduler.cursor == pytest.approx(0.2)
    assert scheduler.schedule(np.zeros(10, dtype=np.float32)) == pytest.approx(0.2)


def test_finished_handles_are_pruned():
    context = FakePlaybackContext(sample_rate=1000)
    scheduler = PlaybackScheduler(context)
    scheduler.schedule(np.zeros(100, dtype=np.float32))
    scheduler.schedule(np.zeros(100, dtype=np.float32))
    context.now = 0.15
    assert scheduler.scheduled_count == 1


def test_pcm_codec_round_trip_and_clipping():
    samples = np.array([0.0, 0.5, -0.5, 2.0, -2.0], dtype=np.float32)
    pcm = float_to_pcm16(samples)
    assert len(pcm) == 10
    decoded = pcm16_to_float(pcm)
    assert decoded[3] == pytest.approx(32767 / 32768)
    assert decoded[4] == pytest.approx(-32767 / 32768)
    assert np.allclose(decode_chunk(encode_b64(pcm)), decoded)


def test_chime_is_one_second_and_bounded():
    chime = chime_samples(16000)
    assert chime.shape == (16000,)
    assert float(np.max(np.abs(chime))) <= 0.4 + 1e-6


def test_speaker_mixer_clock_and_overlap():
    speaker = SpeakerContext(sample_rate=10, block_samples=4)
    speaker.start(np.ones(4, dtype=np.float32), when=0.2)
    voice = speaker.start(np.ones(4, dtype=np.float32), when=0.4)

    block = speaker.mix(8)
    assert speaker.current_time == pytest.approx(0.8)
    assert block.tolist() == [0, 0, 1, 1, 2, 2, 1, 1]

    voice.stop()
    assert speaker.mix(4).tolist() == [0, 0, 0, 0]


@pytest.mark.asyncio
async def test_pipeline_forwards_frames_and_plays_chunks(pcm_chunk):
    capture = FakeCapture(frames=[b"a" * 8, b"b" * 8])
    playback = FakePlaybackContext()
    pipeline = AudioDuplexPipeline(capture, playback)
    pipeline.open()
    sent = []

    async def _send(frame: bytes):
        sent.append(frame)

    pipeline.attach(_send)
    assert await wait_until(lambda: len(sent) == 2)
    assert pipeline.frames_sent == 2

    first = pipeline.play_chunk(encode_b64(pcm_chunk(2400)))
    second = pipeline.play_chunk(pcm_chunk(2400))
    assert first == pytest.approx(0.0)
    assert second == pytest.approx(0.1)
    assert pipeline.remaining() == pytest.approx(0.2)

    await pipeline.close()
    assert capture.closed and playback.closed
    assert pipeline.play_chunk(pcm_chunk(10)) is None


@pytest.mark.asyncio
async def test_pipeline_open_failure_is_device_unavailable():
    pipeline = AudioDuplexPipeline(FakeCapture(fail_open=True), FakePlaybackContext())
    with pytest.raises(DeviceUnavailableError):
        pipeline.open()


@pytest.mark.asyncio
async def test_pipeline_playback_failure_releases_capture():
    class _BrokenPlayback(FakePlaybackContext):
        def open(self):
            raise OSError("no output device")

    capture = FakeCapture()
    pipeline = AudioDuplexPipeline(capture, _BrokenPlayback())
    with pytest.raises(DeviceUnavailableError):
        pipeline.open()
    assert capture.closed is True


@pytest.mark.asyncio
async def test_pipeline_close_is_idempotent_and_best_effort(caplog):
    capture = FakeCapture(fail_close=True)
    playback = InstantPlaybackContext()
    pipeline = AudioDuplexPipeline(capture, playback)
    pipeline.open()
    await pipeline.play_signal()
    assert len(playback.handles) == 1

    with caplog.at_level(logging.WARNING):
        await pipeline.close()
        await pipeline.close()
    assert "resource leak" in caplog.text
    assert playback.closed is True


@pytest.mark.asyncio
async def test_pipeline_drops_undecodable_chunk(caplog, pcm_chunk):
    playback = FakePlaybackContext()
    pipeline = AudioDuplexPipeline(FakeCapture(), playback)
    pipeline.open()

    with caplog.at_level(logging.WARNING, logger="voice_audit.audio.pipeline"):
        assert pipeline.play_chunk("!!not base64!!") is None

    assert playback.handles == []
    assert "undecodable" in caplog.text
    assert pipeline.play_chunk(pcm_chunk(240)) == pytest.approx(0.0)

    await pipeline.close()
