"""Match Outcome Aggregation.

Game over banners do not appear on all four player screens in the same
instant, so detections are buffered for a short debounce window. When the
window elapses without new detections, the buffered regions are classified
into a single match outcome:

    Area1 + Area2 (Zeon lost)        -> Federation wins
    Area3 + Area4 (Federation lost)  -> Zeon wins
    all four                         -> draw
    anything else                    -> incomplete (no stats, streaks reset)

Typical usage example:

    aggregator = OutcomeAggregator(engine, clear_delay=2.0)
    aggregator.add_detections({Region.AREA1, Region.AREA2})
    # two seconds later the engine receives MatchOutcome.SIDE_B_WINS
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Iterable, Optional, Set

from ..factions import SIDE_A, SIDE_B, Faction, Region, regions_for

logger = logging.getLogger(__name__)


class MatchOutcome(Enum):
    """Result of one match, as decided from the detected banners."""

    SIDE_A_WINS = "side_a_wins"
    SIDE_B_WINS = "side_b_wins"
    DRAW = "draw"
    INCOMPLETE = "incomplete"

    @property
    def winner(self) -> Optional[Faction]:
        if self is MatchOutcome.SIDE_A_WINS:
            return SIDE_A
        if self is MatchOutcome.SIDE_B_WINS:
            return SIDE_B
        return None

    @property
    def counts_as_battle(self) -> bool:
        return self is not MatchOutcome.INCOMPLETE


def classify_regions(regions: Iterable[Region]) -> Optional[MatchOutcome]:
    """Classify a set of detected regions into a match outcome.

    Args:
        regions: Regions that showed the game over banner in one debounce window.

    Returns:
        The match outcome, or None if no regions were given.
    """
    detected = set(regions)
    if not detected:
        return None

    side_a_lost = regions_for(SIDE_A) <= detected
    side_b_lost = regions_for(SIDE_B) <= detected

    if side_a_lost and side_b_lost:
        return MatchOutcome.DRAW
    if side_a_lost:
        return MatchOutcome.SIDE_B_WINS
    if side_b_lost:
        return MatchOutcome.SIDE_A_WINS
    return MatchOutcome.INCOMPLETE


class OutcomeAggregator:
    """Buffer region detections and classify them once per debounce window.

    At most one debounce timer is pending at any time. Every new detection
    cancels the pending timer and arms a fresh one, so a burst of detections
    for the same match produces exactly one classification.

    Attributes:
        engine: Game state engine that receives classified outcomes.
        clear_delay: Debounce window in seconds.
    """

    def __init__(self,
                 engine,
                 clear_delay: float = 2.0,
                 clock: Callable[[], float] = time.time,
                 timer_factory: Callable = threading.Timer):
        """Initialize the aggregator.

        Args:
            engine: Object with an apply_outcome(outcome, at) method.
            clear_delay: Seconds to wait after the latest detection.
            clock: Returns the current time in epoch seconds.
            timer_factory: Called as timer_factory(delay, callback) and must
                return an object with start() and cancel(). threading.Timer
                by default.
        """
        self.engine = engine
        self.clear_delay = clear_delay
        self.clock = clock
        self.timer_factory = timer_factory

        self._lock = threading.Lock()
        self._buffer: Set[Region] = set()
        self._timer = None
        # Bumped whenever the pending timer is replaced, cancelled or consumed
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        """True after cancel() until the next open()."""
        with self._lock:
            return self._closed

    def open(self) -> None:
        """Accept detections again after a cancel()."""
        with self._lock:
            self._closed = False

    @property
    def pending(self) -> bool:
        """True while a debounce timer is armed."""
        with self._lock:
            return self._timer is not None

    @property
    def buffered_regions(self) -> Set[Region]:
        with self._lock:
            return set(self._buffer)

    def add_detections(self, regions: Iterable[Region]) -> None:
        """Buffer detected regions and restart the debounce timer.

        Args:
            regions: Regions whose banner was recognized in the latest cycle.
                An empty iterable, or any detection after cancel(), changes
                nothing.
        """
        regions = set(regions)
        if not regions:
            return

        with self._lock:
            if self._closed:
                logger.debug(f"Aggregator closed, dropping {sorted(r.label for r in regions)}")
                return
            self._buffer.update(regions)
            self._cancel_timer_locked()
            generation = self._generation
            timer = self.timer_factory(self.clear_delay, lambda: self._on_timer(generation))
            # Daemon timers never keep the interpreter alive on exit
            if hasattr(timer, 'daemon'):
                timer.daemon = True
            self._timer = timer
            timer.start()

        logger.debug(f"Buffered {sorted(r.label for r in regions)}, classification in {self.clear_delay}s")

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1

    def _take_buffer_locked(self) -> Set[Region]:
        self._cancel_timer_locked()
        detected = set(self._buffer)
        self._buffer.clear()
        return detected

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                # Superseded by a newer detection, a flush or a cancel
                return
            detected = self._take_buffer_locked()

        try:
            self._classify(detected)
        except Exception:
            # Timer threads have no caller to report to
            logger.exception("Error while processing battle outcome")

    def flush(self) -> Optional[MatchOutcome]:
        """Classify and clear the buffer now, cancelling the pending timer.

        Returns:
            The outcome applied to the engine, or None if the buffer was empty.
        """
        with self._lock:
            detected = self._take_buffer_locked()
        return self._classify(detected)

    def _classify(self, detected: Set[Region]) -> Optional[MatchOutcome]:
        if not detected:
            return None

        outcome = classify_regions(detected)
        if outcome is MatchOutcome.INCOMPLETE:
            logger.info(f"Ignoring incomplete detection, stats unchanged: {sorted(r.label for r in detected)}")

        self.engine.apply_outcome(outcome, at=self.clock())
        return outcome

    def cancel(self) -> None:
        """Cancel the pending timer, drop buffered detections and refuse new ones.

        Detections that arrive afterwards are discarded until open() is called.
        """
        with self._lock:
            self._closed = True
            dropped = self._take_buffer_locked()

        if dropped:
            logger.info(f"Discarded pending detections: {sorted(r.label for r in dropped)}")
