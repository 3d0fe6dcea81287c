import base64

import numpy as np

PCM16_SCALE = 32768.0


def float_to_pcm16(samples: np.ndarray) -> bytes:
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return (clipped * 32767.0).astype("<i2").tobytes()


def pcm16_to_float(data: bytes) -> np.ndarray:
    if len(data) % 2:
        data = data[:-1]
    return np.frombuffer(data, dtype="<i2").astype(np.float32) / PCM16_SCALE


def encode_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_b64(data: str) -> bytes:
    return base64.b64decode(data)


def decode_chunk(chunk: bytes | str) -> np.ndarray:
    """Inbound model audio (raw PCM16 or its base64 text) to float samples."""
    raw = decode_b64(chunk) if isinstance(chunk, str) else bytes(chunk)
    return pcm16_to_float(raw)


def chime_samples(sample_rate: int = 16000, duration_sec: float = 1.0) -> np.ndarray:
    """Two-tone ding-dong played locally before the agent starts talking."""
    count = int(sample_rate * duration_sec)
    t = np.arange(count, dtype=np.float32) / float(sample_rate)
    split = 0.4
    freq = np.where(t < split, 523.25, 392.0).astype(np.float32)
    local_t = np.where(t < split, t, t - split)
    decay = np.exp(-local_t * 6.0)
    return (np.sin(2.0 * np.pi * freq * t) * decay * 0.4).astype(np.float32)
