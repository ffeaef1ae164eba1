"""
Hourly Time Signal
Announces the hour and each faction's win total during evening broadcasts,
credited to a rotating sponsor.
"""

import logging
import random
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from zoneinfo import ZoneInfo

from .factions import Faction
from .outputs.messages import DEFAULT_TIMEZONE, STAR_ICON, create_message

logger = logging.getLogger(__name__)

# Broadcast hours, 6pm to 2am
ANNOUNCEMENT_HOURS = [18, 19, 20, 21, 22, 23, 0, 1, 2]

HOUR_NAMES = {
    18: "六",
    19: "七",
    20: "八",
    21: "九",
    22: "十",
    23: "十一",
    0: "十二",
    1: "一",
    2: "兩",
}

AUTHOR_NAME = "報時系統"


def compose_time_signal(hour: int, federation_wins: int, zeon_wins: int, sponsor: str) -> str:
    """
    Compose the time signal text.

    Args:
        hour: Hour of day, 0-23. Must be an announcement hour.
        federation_wins: Federation lifetime wins
        zeon_wins: Zeon lifetime wins
        sponsor: Sponsor credited for the signal
    """
    period = "凌晨" if 0 <= hour <= 2 else "晚上"
    time_string = f"{period}{HOUR_NAMES[hour]}點正"
    return (
        f"宇宙世紀標準時間，而家係 {time_string}，"
        f"聯邦 {federation_wins}勝，自護 {zeon_wins}勝。"
        f"報時訊號由 {sponsor} 贊助播出"
    )


class TimeAnnouncer:
    """
    Background thread that fires a time signal at the top of every hour.

    Signals are skipped outside announcement hours and while the stream is
    not live.
    """

    def __init__(self,
                 engine,
                 announcer=None,
                 broadcaster=None,
                 sponsors: Optional[List[str]] = None,
                 is_live: Optional[Callable[[], bool]] = None,
                 timezone: str = DEFAULT_TIMEZONE,
                 shuffle: bool = True):
        """
        Args:
            engine: GameStateEngine providing win totals
            announcer: Narration port (optional)
            broadcaster: Overlay port for the chat message (optional)
            sponsors: Sponsor names, rotated round-robin
            is_live: Returns True while the broadcast is live (default: always)
            timezone: Time zone the hours are counted in
            shuffle: Shuffle the sponsor order once at startup
        """
        self.engine = engine
        self.announcer = announcer
        self.broadcaster = broadcaster
        self.sponsors = list(sponsors) if sponsors else ["本台"]
        if shuffle:
            random.shuffle(self.sponsors)
        self.is_live = is_live or (lambda: True)
        self.tz = ZoneInfo(timezone)
        self.timezone = timezone

        self._sponsor_index = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def next_sponsor(self) -> str:
        sponsor = self.sponsors[self._sponsor_index]
        self._sponsor_index = (self._sponsor_index + 1) % len(self.sponsors)
        return sponsor

    def announce_time(self, now: Optional[datetime] = None) -> Optional[str]:
        """
        Announce the time if the hour and stream status allow it.

        Args:
            now: Time to announce (default: now in the configured time zone).
                Naive datetimes are read as local time in that zone.

        Returns:
            The announced text, or None if skipped
        """
        try:
            live = self.is_live()
        except Exception as e:
            logger.warning(f"Could not check live status, skipping time signal: {e}")
            return None
        if not live:
            logger.debug("Not live streaming, skipping time announcement.")
            return None

        if now is None:
            now = datetime.now(self.tz)
        elif now.tzinfo is None:
            # Naive times are wall-clock times in the display zone
            now = now.replace(tzinfo=self.tz)
        else:
            now = now.astimezone(self.tz)

        if now.hour not in ANNOUNCEMENT_HOURS:
            return None

        snapshot = self.engine.get_snapshot()
        text = compose_time_signal(
            now.hour,
            federation_wins=snapshot.total_wins[Faction.FEDERATION],
            zeon_wins=snapshot.total_wins[Faction.ZEON],
            sponsor=self.next_sponsor(),
        )

        logger.info(f"Announcing: {text}")
        if self.announcer is not None:
            self.announcer.announce(text)
        if self.broadcaster is not None:
            self.broadcaster.publish_message(create_message(
                author_name=AUTHOR_NAME,
                message=text,
                profile_pic=STAR_ICON,
                timestamp=now,
                timezone=self.timezone,
            ))
        return text

    def seconds_until_next_hour(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(self.tz)
        next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        return (next_hour - now).total_seconds()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name='time-announcer', daemon=True)
        self._thread.start()
        logger.info("Time announcer started. Announcements scheduled for 6pm-2am.")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.seconds_until_next_hour()):
            try:
                self.announce_time()
            except Exception:
                logger.exception("Error during time announcement")
