"""Battle Result Tracker.

Watches a live arcade broadcast for game over banners, decides each match
outcome and keeps running win statistics for the two factions.

Modules:
    game_detection: Frame sampling, banner OCR and the detection poller
    scoring: Outcome classification and the game state engine
    outputs: Announcer and broadcaster ports
    time_announcer: Hourly time signal with win totals
    tracker: BattleTracker facade with start/stop/get_snapshot

Example:
    >>> from src.scoreboard.scoring import GameStateEngine, MatchOutcome
    >>>
    >>> engine = GameStateEngine()
    >>> engine.apply_outcome(MatchOutcome.SIDE_A_WINS)
    >>> engine.get_snapshot().total_battles
    1
"""

__version__ = "1.0.0"
__all__ = ['game_detection', 'scoring', 'outputs', 'time_announcer', 'tracker', 'config', 'factions']
