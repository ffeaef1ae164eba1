"""
Broadcasters
Outbound port that receives game state snapshots and overlay chat messages.
"""

import json
import logging
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class Broadcaster:
    """Fire-and-forget sink for state snapshots and chat messages."""

    def publish(self, state) -> None:
        """Publish a full GameState snapshot."""
        raise NotImplementedError

    def publish_message(self, message: Dict) -> None:
        """Publish a chat-style message (see outputs.messages.create_message)."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class LoggingBroadcaster(Broadcaster):
    """Write every publication to the log."""

    def publish(self, state) -> None:
        logger.info(f"battleResult: {json.dumps(state.to_dict(), ensure_ascii=False)}")

    def publish_message(self, message: Dict) -> None:
        logger.info(f"message from {message['authorName']}: {message['message']}")


class JsonLinesBroadcaster(Broadcaster):
    """
    Append one JSON object per publication to a file or stdout.

    Lines look like {"event": "battleResult", "state": {...}} or
    {"event": "message", ...message fields}, the same event names the overlay
    server forwards to its clients.
    """

    def __init__(self, output_path: Optional[str] = None):
        """
        Args:
            output_path: File to append to. None or "-" writes to stdout.
        """
        self.output_path = output_path
        self._lock = threading.Lock()

        if output_path and output_path != '-':
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            self._stream = open(output_path, 'a', encoding='utf-8')
            self._owns_stream = True
        else:
            self._stream = sys.stdout
            self._owns_stream = False

    def _write(self, record: Dict) -> None:
        with self._lock:
            self._stream.write(json.dumps(record, ensure_ascii=False) + '\n')
            self._stream.flush()

    def publish(self, state) -> None:
        self._write({'event': 'battleResult', 'state': state.to_dict()})

    def publish_message(self, message: Dict) -> None:
        self._write({'event': 'message', **message})

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()


class CompositeBroadcaster(Broadcaster):
    """Forward publications to several broadcasters, isolating their failures."""

    def __init__(self, broadcasters: List[Broadcaster]):
        self.broadcasters = list(broadcasters)

    def publish(self, state) -> None:
        for broadcaster in self.broadcasters:
            try:
                broadcaster.publish(state)
            except Exception as e:
                logger.error(f"{type(broadcaster).__name__} failed to publish state: {e}")

    def publish_message(self, message: Dict) -> None:
        for broadcaster in self.broadcasters:
            try:
                broadcaster.publish_message(message)
            except Exception as e:
                logger.error(f"{type(broadcaster).__name__} failed to publish message: {e}")

    def close(self) -> None:
        for broadcaster in self.broadcasters:
            broadcaster.close()
