"""Game Over Detection Polling.

Runs the sampling loop on a background thread. Each cycle:

1. Drops an active win streak after prolonged inactivity
2. Captures one stacked frame from the frame sampler
3. Recognizes text in each of the four banner zones
4. Forwards zones showing the game over marker to the outcome aggregator

A failed capture or recognition is logged and ends the cycle early. Zones
recognized before the failure are still forwarded. Cycles never overlap: if
one takes longer than the poll interval, the next starts as soon as it ends.

Typical usage example:

    poller = DetectionPoller(sampler, recognizer, aggregator, engine)
    poller.start()
    ...
    poller.stop()
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from ..factions import GAMEOVER_MARKER, Region
from .frame_sampler import FrameCaptureError, decode_stacked_image
from .region_recognizer import RegionRecognitionError

logger = logging.getLogger(__name__)


class DetectionPoller:
    """Background thread that samples frames and forwards game over detections.

    Attributes:
        sampler: Object with capture_frame() -> bytes.
        recognizer: RegionRecognizer used for each zone.
        aggregator: OutcomeAggregator receiving positive zones.
        engine: GameStateEngine checked for inactivity before each cycle.
        interval: Seconds between cycle starts.
        marker: Text prefix that marks a game over banner.
    """

    def __init__(self,
                 sampler,
                 recognizer,
                 aggregator,
                 engine,
                 interval: float = 1.0,
                 marker: str = GAMEOVER_MARKER,
                 clock: Callable[[], float] = time.time):
        self.sampler = sampler
        self.recognizer = recognizer
        self.aggregator = aggregator
        self.engine = engine
        self.interval = interval
        self.marker = marker
        self.clock = clock

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.cycles = 0
        self.failed_cycles = 0

    @property
    def is_running(self) -> bool:
        """True while a polling thread is alive and has not been told to stop."""
        return (self._thread is not None and self._thread.is_alive()
                and not self._stop_event.is_set())

    def start(self) -> None:
        """Start the polling thread. Does nothing if it is already running.

        A thread abandoned by an earlier stop(timeout) is joined first, so
        two polling loops never run at the same time.
        """
        if self.is_running:
            return
        self.wait_stopped()

        # Each thread owns its stop event; a new start never revives an old loop
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name='detection-poller', daemon=True
        )
        self._thread.start()
        logger.info(f"Detection poller started (every {self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop scheduling cycles and wait for an in-flight cycle to end.

        Args:
            timeout: Maximum seconds to wait for the thread. None waits
                until the current cycle finishes.

        Returns:
            True if the thread has exited, False if its cycle is still running.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return True
        if thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                # Keep the handle so start() can wait for the abandoned cycle
                logger.warning("Detection poller did not stop in time, abandoning in-flight cycle")
                return False
        self._thread = None
        logger.info("Detection poller stopped")
        return True

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Wait for a stopped thread that is still finishing its last cycle.

        Returns:
            True if no polling thread is left alive.
        """
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        if not self._stop_event.is_set():
            return False
        if thread.is_alive():
            logger.info("Waiting for the abandoned detection cycle to finish...")
            thread.join(timeout)
            if thread.is_alive():
                return False
        self._thread = None
        return True

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            started = time.monotonic()
            self.run_cycle()
            elapsed = time.monotonic() - started
            stop_event.wait(max(0.0, self.interval - elapsed))

    def run_cycle(self) -> List[Region]:
        """Run one sampling cycle.

        Returns:
            Regions detected in this cycle and forwarded to the aggregator.
        """
        self.cycles += 1

        try:
            self.engine.check_inactivity(self.clock())
        except Exception:
            logger.exception("Error during inactivity check")

        detected: List[Region] = []
        try:
            frame = decode_stacked_image(self.sampler.capture_frame())
            for region in Region:
                text = self.recognizer.recognize(frame, region)
                if self.is_game_over(text):
                    detected.append(region)
        except (FrameCaptureError, RegionRecognitionError) as e:
            self.failed_cycles += 1
            logger.error(f"Error during recognition cycle: {e}")
        except Exception as e:
            self.failed_cycles += 1
            logger.exception(f"Unexpected error during recognition cycle: {e}")

        if detected:
            logger.info(f"Game over detected in {', '.join(r.label for r in detected)}")
            self.aggregator.add_detections(detected)

        return detected

    def is_game_over(self, text: Optional[str]) -> bool:
        return bool(text) and text.startswith(self.marker)
