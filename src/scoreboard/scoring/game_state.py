"""Game State and Streak Tracking.

The game state engine owns the only long-lived mutable data of the tracker:
per-faction win streaks, lifetime win counts, total matches and draws. All
mutation goes through the engine's methods, which serialize on one lock and
publish a full snapshot to the broadcaster after every change.

Typical usage example:

    engine = GameStateEngine(announcer=LoggingAnnouncer(),
                             broadcaster=LoggingBroadcaster())
    engine.apply_outcome(MatchOutcome.SIDE_A_WINS, at=time.time())
    print(engine.battle_summary())
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..factions import Faction, streak_message
from ..outputs.announcer import Announcer
from ..outputs.broadcaster import Broadcaster
from ..outputs.messages import DEFAULT_TIMEZONE, STAR_ICON, create_message
from .outcome_aggregator import MatchOutcome

logger = logging.getLogger(__name__)

DEFAULT_INACTIVITY_THRESHOLD = 360.0


def _zero_counts() -> Dict[Faction, int]:
    return {faction: 0 for faction in Faction}


@dataclass
class GameState:
    """Running match statistics.

    Attributes:
        streaks: Current consecutive wins per faction. At most one is non-zero.
        total_wins: Lifetime wins per faction.
        total_battles: Completed matches (wins plus draws).
        total_draws: Matches where both teams went down together.
        last_winner: Faction holding the active streak, if any.
        last_outcome_time: Epoch seconds of the last win or draw, if any.
    """
    streaks: Dict[Faction, int] = field(default_factory=_zero_counts)
    total_wins: Dict[Faction, int] = field(default_factory=_zero_counts)
    total_battles: int = 0
    total_draws: int = 0
    last_winner: Optional[Faction] = None
    last_outcome_time: Optional[float] = None

    def copy(self) -> "GameState":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict:
        """Serialize for overlays, keyed by faction value."""
        return {
            'streaks': {faction.key: count for faction, count in self.streaks.items()},
            'totalWins': {faction.key: count for faction, count in self.total_wins.items()},
            'totalBattles': self.total_battles,
            'totalDraws': self.total_draws,
            'lastWinner': self.last_winner.key if self.last_winner else None,
            'lastOutcomeTime': (
                int(self.last_outcome_time * 1000) if self.last_outcome_time is not None else None
            ),
        }


class GameStateEngine:
    """Apply match outcomes and inactivity resets to the game state.

    Attributes:
        state: The live GameState. Read it through get_snapshot().
        announcer: Receives streak milestone narration.
        broadcaster: Receives a snapshot after every mutation, plus chat
            messages for milestones.
        inactivity_threshold: Seconds without a win or draw before an active
            streak is dropped.
    """

    def __init__(self,
                 announcer: Optional[Announcer] = None,
                 broadcaster: Optional[Broadcaster] = None,
                 inactivity_threshold: float = DEFAULT_INACTIVITY_THRESHOLD,
                 timezone: str = DEFAULT_TIMEZONE):
        """Initialize the engine with zeroed statistics.

        Args:
            announcer: Narration port. None disables narration.
            broadcaster: Overlay port. None disables publishing.
            inactivity_threshold: Inactivity reset threshold in seconds.
            timezone: Time zone for chat message timestamps.
        """
        self.state = GameState()
        self.announcer = announcer
        self.broadcaster = broadcaster
        self.inactivity_threshold = inactivity_threshold
        self.timezone = timezone
        self._lock = threading.RLock()

    # -- outbound ports --------------------------------------------------

    def broadcast_state(self) -> None:
        """Publish the current state snapshot."""
        if self.broadcaster is None:
            return
        with self._lock:
            snapshot = self.state.copy()
        try:
            self.broadcaster.publish(snapshot)
        except Exception as e:
            logger.error(f"Failed to broadcast game state: {e}")

    def _announce_streak(self, winner: Faction, message: str) -> None:
        if self.announcer is not None:
            try:
                self.announcer.announce(message)
            except Exception as e:
                logger.error(f"Failed to announce streak: {e}")

        if self.broadcaster is not None:
            chat = create_message(
                author_name=f"{winner.display_name}連勝！",
                message=message,
                is_federation=winner is Faction.FEDERATION,
                profile_pic=STAR_ICON,
                timezone=self.timezone,
            )
            try:
                self.broadcaster.publish_message(chat)
            except Exception as e:
                logger.error(f"Failed to publish streak message: {e}")

    # -- mutations -------------------------------------------------------

    def _clear_streaks(self, reason: str) -> None:
        if self.state.last_winner is not None:
            logger.info(f"Win streak reset due to {reason}.")
        for faction in Faction:
            self.state.streaks[faction] = 0
        self.state.last_winner = None

    def reset_streaks(self, reason: str) -> None:
        """Zero both streaks and clear the last winner. Totals are kept.

        Args:
            reason: Human-readable cause, used in the log.
        """
        with self._lock:
            self._clear_streaks(reason)
            self.broadcast_state()

    def apply_outcome(self, outcome: MatchOutcome, at: Optional[float] = None) -> None:
        """Apply one classified match outcome.

        Args:
            outcome: Outcome decided by the aggregator.
            at: Classification time in epoch seconds (default: now).
        """
        at = time.time() if at is None else at

        with self._lock:
            if not outcome.counts_as_battle:
                self._clear_streaks("an incomplete match")
                self.broadcast_state()
                return

            self.state.total_battles += 1
            self.state.last_outcome_time = at

            if outcome is MatchOutcome.DRAW:
                self.state.total_draws += 1
                self._clear_streaks("a draw")
                logger.info("Game ended in a DRAW.")
                logger.info(self.battle_summary())
                self.broadcast_state()
                return

            winner = outcome.winner
            loser = winner.opponent

            self.state.total_wins[winner] += 1
            self.state.streaks[loser] = 0
            self.state.streaks[winner] += 1
            self.state.last_winner = winner
            new_streak = self.state.streaks[winner]

            logger.info(f"{winner.key} wins! Consecutive wins: {new_streak}")

            message = streak_message(new_streak)
            if message:
                self._announce_streak(winner, message)

            logger.info(self.battle_summary())
            self.broadcast_state()

    def check_inactivity(self, now: Optional[float] = None) -> bool:
        """Drop an active streak after prolonged inactivity.

        Args:
            now: Current time in epoch seconds (default: now).

        Returns:
            True if the streak was reset.
        """
        now = time.time() if now is None else now

        with self._lock:
            if self.state.last_winner is None or self.state.last_outcome_time is None:
                return False
            if now - self.state.last_outcome_time <= self.inactivity_threshold:
                return False

            self.state.last_outcome_time = None
            self.reset_streaks("prolonged inactivity")
            return True

    # -- queries ---------------------------------------------------------

    def get_snapshot(self) -> GameState:
        """Return a copy of the current state."""
        with self._lock:
            return self.state.copy()

    def battle_summary(self) -> str:
        """Format overall statistics with each faction's share of wins."""
        with self._lock:
            fed_wins = self.state.total_wins[Faction.FEDERATION]
            zeon_wins = self.state.total_wins[Faction.ZEON]
            total_battles = self.state.total_battles
            total_draws = self.state.total_draws

        total_win_games = fed_wins + zeon_wins
        if total_win_games == 0:
            ratio = "N/A (no wins recorded yet)"
        else:
            fed_pct = fed_wins / total_win_games * 100
            zeon_pct = zeon_wins / total_win_games * 100
            ratio = f"Federation: {fed_pct:.1f}% | Zeon: {zeon_pct:.1f}%"

        return (
            "\n-------------------- BATTLE STATS --------------------\n"
            f"Total Matches: {total_battles}\n"
            f"Wins:          Federation: {fed_wins} | Zeon: {zeon_wins}\n"
            f"Draws:         {total_draws}\n"
            f"Win Ratio:     {ratio}\n"
            "----------------------------------------------------"
        )
