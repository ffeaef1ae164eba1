"""
Outputs Module

Outbound ports the tracker notifies:
1. Announcers - narrate streak milestones and time signals
2. Broadcasters - receive state snapshots and chat messages for overlays
"""

from .announcer import Announcer, LoggingAnnouncer, CompositeAnnouncer, OpenAISpeechAnnouncer
from .broadcaster import Broadcaster, LoggingBroadcaster, JsonLinesBroadcaster, CompositeBroadcaster
from .messages import create_message, format_time

__all__ = [
    'Announcer',
    'LoggingAnnouncer',
    'CompositeAnnouncer',
    'OpenAISpeechAnnouncer',
    'Broadcaster',
    'LoggingBroadcaster',
    'JsonLinesBroadcaster',
    'CompositeBroadcaster',
    'create_message',
    'format_time'
]
