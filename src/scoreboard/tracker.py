"""
Battle Result Tracker
Host-facing facade that wires the poller, aggregator and game state engine.
"""

import logging
import threading
import time
from typing import Callable, Optional

from .config import TrackerConfig
from .game_detection.detection_poller import DetectionPoller
from .scoring.game_state import GameState, GameStateEngine
from .scoring.outcome_aggregator import OutcomeAggregator

logger = logging.getLogger(__name__)


class BattleTracker:
    """
    Watch the capture feed for match results and keep running statistics.

    Lifecycle: start() opens the recognizer and begins polling; stop() halts
    polling, cancels the pending debounce timer and only then releases the
    recognizer, so no callback can reach a torn-down OCR engine.
    """

    def __init__(self,
                 sampler,
                 recognizer,
                 announcer=None,
                 broadcaster=None,
                 config: Optional[TrackerConfig] = None,
                 clock: Callable[[], float] = time.time,
                 timer_factory: Callable = threading.Timer):
        """
        Args:
            sampler: Frame sampler with capture_frame()
            recognizer: RegionRecognizer with open(), recognize() and close()
            announcer: Narration port (optional)
            broadcaster: Overlay port (optional)
            config: Tracker settings (default: TrackerConfig())
            clock: Epoch-seconds clock shared by all components
            timer_factory: Debounce timer factory (default: threading.Timer)
        """
        self.config = config or TrackerConfig()
        self.recognizer = recognizer

        self.engine = GameStateEngine(
            announcer=announcer,
            broadcaster=broadcaster,
            inactivity_threshold=self.config.inactivity_threshold,
            timezone=self.config.display_timezone,
        )
        self.aggregator = OutcomeAggregator(
            self.engine,
            clear_delay=self.config.clear_delay,
            clock=clock,
            timer_factory=timer_factory,
        )
        self.poller = DetectionPoller(
            sampler,
            recognizer,
            self.aggregator,
            self.engine,
            interval=self.config.poll_interval,
            marker=self.config.marker,
            clock=clock,
        )

        self._lifecycle_lock = threading.Lock()
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started

    def start(self) -> None:
        """
        Begin monitoring. Calling start() while running does nothing.

        Raises:
            RuntimeError: If the recognizer cannot be initialized. Nothing
                is scheduled in that case.
        """
        with self._lifecycle_lock:
            if self._started:
                return

            # A cycle abandoned by stop(timeout) must end before anything reopens
            self.poller.wait_stopped()
            self.recognizer.open()
            self.aggregator.open()
            self._started = True

            logger.info("OCR worker started. Monitoring for battle results...")
            self.engine.broadcast_state()
            self.poller.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop monitoring and release the recognizer. Safe to call at any time.

        Args:
            timeout: Maximum seconds to wait for an in-flight cycle. A cycle
                still running after the timeout is abandoned: its detections
                are discarded and the next start() waits for it to finish.

        Raises:
            RuntimeError: If the recognizer fails to shut down. Polling and
                the debounce timer are already stopped when this is raised.
        """
        with self._lifecycle_lock:
            if not self._started:
                return

            logger.info("Attempting to stop battle recognition...")
            self.poller.stop(timeout)
            self.aggregator.cancel()
            self._started = False

            logger.info("Terminating OCR worker...")
            self.recognizer.close()
            logger.info("Battle recognition process has been shut down.")

    def get_snapshot(self) -> GameState:
        """Return a copy of the current game state."""
        return self.engine.get_snapshot()
