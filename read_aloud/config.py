"""Configuration constants and .env loading.

WHY: The capture loop has a handful of tunables (timer period, preview
size, rotation, camera index, speech rate, word list path) that differ
per device. Keeping them in one module, overridable from the
environment, means deployments never edit code.

HOW: python-dotenv loads the .env file on import. Module-level
constants hold the defaults read from the environment; load_settings()
re-reads the environment and returns a frozen Settings snapshot that
the CLI and server hand to the components they build.

RULES:
- Every value can be overridden by a READ_ALOUD_* environment variable
- Default capture interval is 2000 ms
- Default rotation is 90 degrees (the camera is mounted sideways)
- Invalid numeric values raise ValueError naming the variable
- Optional values (tesseract path, voice) are None when unset
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_WORD_LIST = "english_dictionary.txt"
DEFAULT_CAPTURE_INTERVAL_MS = 2000
DEFAULT_ROTATION_DEGREES = 90
DEFAULT_PREVIEW_WIDTH = 480
DEFAULT_PREVIEW_HEIGHT = 640
DEFAULT_CAMERA_INDEX = 0
DEFAULT_SPEECH_RATE = 255  # 1.5x pyttsx3's normal rate of 170
DEFAULT_TESSERACT_LANG = "eng"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, raising ValueError on junk."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "Environment variable {} must be an integer, got {!r}".format(name, raw)
        ) from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            "Environment variable {} must be a number, got {!r}".format(name, raw)
        ) from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in _TRUE_VALUES


def _env_optional(name: str) -> Optional[str]:
    raw = os.getenv(name, "").strip()
    return raw or None


@dataclass(frozen=True)
class Settings:
    """Snapshot of every tunable the application reads at startup.

    WHY: Components receive plain values rather than reaching into the
    environment, so tests can build them with explicit settings.

    RULES:
    - capture_interval_ms must be positive
    - preview_width / preview_height are the on-screen target size
    - min_confidence is on Tesseract's 0-100 scale
    """

    word_list_path: str = DEFAULT_WORD_LIST
    capture_interval_ms: int = DEFAULT_CAPTURE_INTERVAL_MS
    rotation_degrees: int = DEFAULT_ROTATION_DEGREES
    preview_width: int = DEFAULT_PREVIEW_WIDTH
    preview_height: int = DEFAULT_PREVIEW_HEIGHT
    camera_index: int = DEFAULT_CAMERA_INDEX
    speech_rate: int = DEFAULT_SPEECH_RATE
    speech_voice: Optional[str] = None
    tesseract_cmd: Optional[str] = None
    tesseract_lang: str = DEFAULT_TESSERACT_LANG
    min_confidence: float = 0.0
    auto_start: bool = False
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def load_settings() -> Settings:
    """Build Settings from the current environment.

    RULES:
    - Unset variables fall back to the module defaults
    - Raises ValueError for malformed numbers or a non-positive interval
    """
    interval = _env_int("READ_ALOUD_CAPTURE_INTERVAL_MS", DEFAULT_CAPTURE_INTERVAL_MS)
    if interval <= 0:
        raise ValueError(
            "READ_ALOUD_CAPTURE_INTERVAL_MS must be positive, got {}".format(interval)
        )

    return Settings(
        word_list_path=os.getenv("READ_ALOUD_WORD_LIST", DEFAULT_WORD_LIST),
        capture_interval_ms=interval,
        rotation_degrees=_env_int("READ_ALOUD_ROTATION_DEGREES", DEFAULT_ROTATION_DEGREES),
        preview_width=_env_int("READ_ALOUD_PREVIEW_WIDTH", DEFAULT_PREVIEW_WIDTH),
        preview_height=_env_int("READ_ALOUD_PREVIEW_HEIGHT", DEFAULT_PREVIEW_HEIGHT),
        camera_index=_env_int("READ_ALOUD_CAMERA_INDEX", DEFAULT_CAMERA_INDEX),
        speech_rate=_env_int("READ_ALOUD_SPEECH_RATE", DEFAULT_SPEECH_RATE),
        speech_voice=_env_optional("READ_ALOUD_SPEECH_VOICE"),
        tesseract_cmd=_env_optional("READ_ALOUD_TESSERACT_CMD"),
        tesseract_lang=os.getenv("READ_ALOUD_TESSERACT_LANG", DEFAULT_TESSERACT_LANG),
        min_confidence=_env_float("READ_ALOUD_MIN_CONFIDENCE", 0.0),
        auto_start=_env_bool("READ_ALOUD_AUTO_START", False),
        host=os.getenv("READ_ALOUD_HOST", DEFAULT_HOST),
        port=_env_int("READ_ALOUD_PORT", DEFAULT_PORT),
    )
