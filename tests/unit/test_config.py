"""
Unit tests for tracker configuration.
"""

import pytest
from unittest.mock import patch

from src.scoreboard.config import DEFAULT_SPONSORS, TrackerConfig, default_capture_format

ENV_VARS = [
    'CAPTURE_DEVICE', 'CAPTURE_FORMAT', 'POLL_INTERVAL', 'GAMEOVER_CLEAR_DELAY',
    'STREAK_RESET_THRESHOLD', 'GAMEOVER_MARKER', 'OCR_ENGINE', 'TESSERACT_CMD',
    'DISPLAY_TIMEZONE', 'SPONSORS', 'OPENAI_API_KEY', 'TTS_MODEL', 'TTS_VOICE',
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestTrackerConfig:
    """Test suite for TrackerConfig."""

    def test_defaults(self, clean_env):
        """Test the live broadcast defaults."""
        config = TrackerConfig.from_env()

        assert config.capture_device == 'OBS Virtual Camera'
        assert config.poll_interval == 1.0
        assert config.clear_delay == 2.0
        assert config.inactivity_threshold == 360.0
        assert config.marker == 'GAMEOVER'
        assert config.ocr_engine == 'tesseract'
        assert config.display_timezone == 'Asia/Hong_Kong'
        assert config.sponsors == DEFAULT_SPONSORS
        assert config.openai_api_key is None

    def test_env_overrides(self, clean_env):
        """Test values are read from the environment."""
        clean_env.setenv('POLL_INTERVAL', '0.5')
        clean_env.setenv('GAMEOVER_CLEAR_DELAY', '3')
        clean_env.setenv('STREAK_RESET_THRESHOLD', '600')
        clean_env.setenv('OCR_ENGINE', ' PaddleOCR ')
        clean_env.setenv('SPONSORS', 'One, Two ,,Three')
        clean_env.setenv('CAPTURE_FORMAT', 'dshow')

        config = TrackerConfig.from_env()

        assert config.poll_interval == 0.5
        assert config.clear_delay == 3.0
        assert config.inactivity_threshold == 600.0
        assert config.ocr_engine == 'paddleocr'
        assert config.sponsors == ['One', 'Two', 'Three']
        assert config.capture_format == 'dshow'

    @pytest.mark.parametrize("value", ['abc', '0', '-1'])
    def test_invalid_interval(self, clean_env, value):
        """Test non-numeric and non-positive intervals are rejected."""
        clean_env.setenv('POLL_INTERVAL', value)

        with pytest.raises(ValueError, match="POLL_INTERVAL"):
            TrackerConfig.from_env()

    def test_unknown_ocr_engine(self):
        """Test unknown OCR engines are rejected."""
        with pytest.raises(ValueError, match="OCR engine"):
            TrackerConfig(ocr_engine='easyocr')

    @pytest.mark.parametrize("system,expected", [
        ('Windows', 'dshow'),
        ('Darwin', 'avfoundation'),
        ('Linux', 'v4l2'),
    ])
    def test_default_capture_format(self, system, expected):
        """Test the platform capture format."""
        with patch('src.scoreboard.config.platform.system', return_value=system):
            assert default_capture_format() == expected
