"""
Announcers
Outbound port that narrates streak milestones and time signals.
"""

import logging
import os
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from openai import OpenAI

logger = logging.getLogger(__name__)


class Announcer:
    """Fire-and-forget narration sink."""

    def announce(self, text: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class LoggingAnnouncer(Announcer):
    """Write announcements to the log."""

    def announce(self, text: str) -> None:
        logger.info(f"Announcement: {text}")


class CompositeAnnouncer(Announcer):
    """Forward announcements to several announcers, isolating their failures."""

    def __init__(self, announcers: List[Announcer]):
        self.announcers = list(announcers)

    def announce(self, text: str) -> None:
        for announcer in self.announcers:
            try:
                announcer.announce(text)
            except Exception as e:
                logger.error(f"{type(announcer).__name__} failed to announce: {e}")

    def close(self) -> None:
        for announcer in self.announcers:
            announcer.close()


class OpenAISpeechAnnouncer(Announcer):
    """
    Synthesize announcements with the OpenAI speech API.

    Each announcement becomes one audio file in output_dir, for the playback
    process to pick up. Synthesis runs on a single worker thread so callers
    never wait on the network and clips are produced in announcement order.
    """

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: Optional[str] = None,
                 voice: Optional[str] = None,
                 output_dir: str = 'output/announcements',
                 response_format: str = 'mp3'):
        """
        Initialize the announcer.

        Args:
            api_key: OpenAI API key. If None, uses OPENAI_API_KEY environment variable
            model: Speech model. If None, uses TTS_MODEL env var (default: gpt-4o-mini-tts)
            voice: Voice name. If None, uses TTS_VOICE env var (default: alloy)
            output_dir: Directory for synthesized audio files
            response_format: Audio container format
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OpenAI API key must be provided or set in OPENAI_API_KEY environment variable")

        self.client = OpenAI(api_key=self.api_key)
        self.model = model or os.getenv("TTS_MODEL", "gpt-4o-mini-tts")
        self.voice = voice or os.getenv("TTS_VOICE", "alloy")
        self.output_dir = Path(output_dir)
        self.response_format = response_format
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='tts')

        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized OpenAISpeechAnnouncer with model: {self.model}, voice: {self.voice}")

    def announce(self, text: str) -> Future:
        """Queue text for synthesis and return the pending job."""
        return self._executor.submit(self._synthesize, text)

    def _synthesize(self, text: str) -> Optional[Path]:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"announcement_{timestamp}_{uuid.uuid4().hex[:8]}.{self.response_format}"

        try:
            with self.client.audio.speech.with_streaming_response.create(
                model=self.model,
                voice=self.voice,
                input=text,
                response_format=self.response_format,
            ) as response:
                response.stream_to_file(output_path)
        except Exception as e:
            logger.error(f"Speech synthesis failed for '{text}': {e}")
            return None

        logger.info(f"Synthesized announcement to {output_path}")
        return output_path

    def close(self) -> None:
        self._executor.shutdown(wait=True)
