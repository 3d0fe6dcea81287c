from voice_audit.audio.scheduler import PlaybackContext, PlaybackHandle, PlaybackScheduler
from voice_audit.audio.pipeline import AudioDuplexPipeline, CaptureSource, build_local_pipeline

__all__ = [
    "PlaybackContext",
    "PlaybackHandle",
    "PlaybackScheduler",
    "AudioDuplexPipeline",
    "CaptureSource",
    "build_local_pipeline",
]
