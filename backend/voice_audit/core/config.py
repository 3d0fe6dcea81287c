import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[2]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
QA_MODE = _env_flag("QA_MODE")

# Live conversational channel
REALTIME_MODEL = str(os.getenv("REALTIME_MODEL") or "gpt-4o-realtime-preview").strip()
REALTIME_URL = str(os.getenv("REALTIME_URL") or "wss://api.openai.com/v1/realtime").strip()
REALTIME_VOICE = str(os.getenv("REALTIME_VOICE") or "ash").strip()
REALTIME_CONNECT_TIMEOUT_SEC = max(2.0, float(os.getenv("REALTIME_CONNECT_TIMEOUT_SEC", "15")))

# Semantic mapping (stage A) and delivery
NORMALIZE_MODEL = str(os.getenv("NORMALIZE_MODEL") or "gpt-4.1-mini").strip()
NORMALIZE_TIMEOUT_SEC = max(1.0, float(os.getenv("NORMALIZE_TIMEOUT_SEC", "30")))
SUBMIT_DEADLINE_SEC = max(5.0, float(os.getenv("SUBMIT_DEADLINE_SEC", "45")))
AUDIT_WEBHOOK_URL = str(os.getenv("AUDIT_WEBHOOK_URL") or "").strip()

# Turn supervision and session lifecycle
SILENCE_WINDOW_SEC = max(1.0, float(os.getenv("SILENCE_WINDOW_SEC", "10")))
ARCHIVE_GRACE_SEC = max(0.0, float(os.getenv("ARCHIVE_GRACE_SEC", "20")))
START_EVENT_DELAY_SEC = max(0.0, float(os.getenv("START_EVENT_DELAY_SEC", "0.8")))
FINAL_SPEECH_TAIL_SEC = max(0.0, float(os.getenv("FINAL_SPEECH_TAIL_SEC", "0.5")))

# Audio
CAPTURE_SAMPLE_RATE = max(8000, int(os.getenv("CAPTURE_SAMPLE_RATE", "24000")))
PLAYBACK_SAMPLE_RATE = max(8000, int(os.getenv("PLAYBACK_SAMPLE_RATE", "24000")))
CAPTURE_FRAME_SAMPLES = max(256, int(os.getenv("CAPTURE_FRAME_SAMPLES", "4096")))
PLAYBACK_BLOCK_SAMPLES = max(128, int(os.getenv("PLAYBACK_BLOCK_SAMPLES", "1024")))

# Storage
SESSIONS_STORE_PATH = Path(
    os.getenv("SESSIONS_STORE_PATH") or (_BACKEND_ROOT / "data" / "audit_sessions.json")
)
AUDIT_CATALOGUE_PATH = str(os.getenv("AUDIT_CATALOGUE_PATH") or "").strip()
