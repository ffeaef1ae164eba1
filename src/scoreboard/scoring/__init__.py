"""
Scoring Module

Turns buffered banner detections into match outcomes and keeps the running
statistics (streaks, lifetime wins, matches and draws).
"""

from .outcome_aggregator import MatchOutcome, OutcomeAggregator, classify_regions
from .game_state import GameState, GameStateEngine

__all__ = [
    'MatchOutcome',
    'OutcomeAggregator',
    'classify_regions',
    'GameState',
    'GameStateEngine'
]
