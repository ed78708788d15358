import os
import sys
from typing import Optional
from dotenv import load_dotenv

# .env in the working directory, then deepsight/.env; real env vars win
load_dotenv(override=False)
load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env"), override=False)


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Vision: gemini | claude | kimi | mock
VISION_ADAPTER: str = os.getenv("VISION_ADAPTER", "gemini").lower()
GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY")
KIMI_API_KEY: Optional[str] = os.getenv("KIMI_API_KEY")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
CLAUDE_MODEL: str = os.getenv("CLAUDE_MODEL", "claude-haiku-4-5-20251001")
KIMI_MODEL: str = os.getenv("KIMI_MODEL", "moonshot-v1-8k-vision-preview")
INFERENCE_TIMEOUT_S: float = float(os.getenv("INFERENCE_TIMEOUT_S", "5.0"))

# Scan loop
SCAN_INTERVAL_S: float = float(os.getenv("SCAN_INTERVAL_S", "2.5"))
LOW_POWER_INTERVAL_S: float = float(os.getenv("LOW_POWER_INTERVAL_S", "4.0"))
LOW_POWER: bool = _flag("LOW_POWER")

# Camera: cv2 | mock
CAMERA_ADAPTER: str = os.getenv("CAMERA_ADAPTER", "cv2").lower()
CAMERA_PROBE_MAX: int = int(os.getenv("CAMERA_PROBE_MAX", "4"))
CAMERA_BACK_INDEX: int = int(os.getenv("CAMERA_BACK_INDEX", "0"))
CAMERA_ENUM_TIMEOUT_S: float = float(os.getenv("CAMERA_ENUM_TIMEOUT_S", "6.0"))
# native on Linux/Android-like hosts, generic elsewhere
CAPTURE_PROFILE: str = os.getenv("CAPTURE_PROFILE", "native" if sys.platform.startswith("linux") else "generic").lower()
MOCK_FRAMES_DIR: Optional[str] = os.getenv("MOCK_FRAMES_DIR")

# Haptics: none | mock | http
HAPTICS_ADAPTER: str = os.getenv("HAPTICS_ADAPTER", "none").lower()
HAPTICS_HTTP_BASE_URL: str = os.getenv("HAPTICS_HTTP_BASE_URL", "http://127.0.0.1:9100")

# Speech
SPEECH_LANGUAGE: str = os.getenv("SPEECH_LANGUAGE", "en-US")
SPEECH_RATE: float = float(os.getenv("SPEECH_RATE", "0.5"))
SPEECH_VOLUME: float = float(os.getenv("SPEECH_VOLUME", "1.0"))


def api_key_for(adapter: str) -> Optional[str]:
    """Key for the selected vision adapter. The mock needs none but must not look inert."""
    return {
        "gemini": GEMINI_API_KEY,
        "claude": ANTHROPIC_API_KEY,
        "kimi": KIMI_API_KEY,
        "mock": "mock",
    }.get(adapter)
