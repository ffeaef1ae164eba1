"""
Centralized tracker configuration.

Values are read from the environment, after loading a local .env file.
Every setting has a default matching the live broadcast setup, so an empty
.env is valid. Example .env:

    CAPTURE_DEVICE=OBS Virtual Camera
    POLL_INTERVAL=1.0
    GAMEOVER_CLEAR_DELAY=2.0
    STREAK_RESET_THRESHOLD=360
    OCR_ENGINE=tesseract
    SPONSORS=飛藝洋服,Element of Stage
"""

import os
import platform
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .factions import GAMEOVER_MARKER

load_dotenv()

OCR_ENGINES = ('tesseract', 'paddleocr')

DEFAULT_SPONSORS = ['飛藝洋服', 'Element of Stage']


def default_capture_format() -> str:
    """Return the ffmpeg input format for the current platform."""
    system = platform.system()
    if system == 'Windows':
        return 'dshow'
    if system == 'Darwin':
        return 'avfoundation'
    return 'v4l2'


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _get_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(',') if item.strip()]


@dataclass
class TrackerConfig:
    """Runtime settings for the battle result tracker."""
    capture_device: str = 'OBS Virtual Camera'
    capture_format: str = field(default_factory=default_capture_format)
    poll_interval: float = 1.0
    clear_delay: float = 2.0
    inactivity_threshold: float = 360.0
    marker: str = GAMEOVER_MARKER
    ocr_engine: str = 'tesseract'
    tesseract_cmd: Optional[str] = None
    display_timezone: str = 'Asia/Hong_Kong'
    sponsors: List[str] = field(default_factory=lambda: list(DEFAULT_SPONSORS))
    openai_api_key: Optional[str] = None
    tts_model: str = 'gpt-4o-mini-tts'
    tts_voice: str = 'alloy'

    def __post_init__(self):
        if self.ocr_engine not in OCR_ENGINES:
            raise ValueError(
                f"OCR engine must be one of {', '.join(OCR_ENGINES)}, got {self.ocr_engine!r}"
            )

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        """
        Build the configuration from environment variables.

        Raises:
            ValueError: If a numeric value is malformed or an option is unknown
        """
        return cls(
            capture_device=os.getenv('CAPTURE_DEVICE', 'OBS Virtual Camera'),
            capture_format=os.getenv('CAPTURE_FORMAT') or default_capture_format(),
            poll_interval=_get_float('POLL_INTERVAL', 1.0),
            clear_delay=_get_float('GAMEOVER_CLEAR_DELAY', 2.0),
            inactivity_threshold=_get_float('STREAK_RESET_THRESHOLD', 360.0),
            marker=os.getenv('GAMEOVER_MARKER', GAMEOVER_MARKER),
            ocr_engine=os.getenv('OCR_ENGINE', 'tesseract').strip().lower(),
            tesseract_cmd=os.getenv('TESSERACT_CMD') or None,
            display_timezone=os.getenv('DISPLAY_TIMEZONE', 'Asia/Hong_Kong'),
            sponsors=_get_list('SPONSORS', DEFAULT_SPONSORS),
            openai_api_key=os.getenv('OPENAI_API_KEY') or None,
            tts_model=os.getenv('TTS_MODEL', 'gpt-4o-mini-tts'),
            tts_voice=os.getenv('TTS_VOICE', 'alloy'),
        )
