"""
Chat-style overlay messages.

Messages share the layout of relayed live chat so the overlay can render
tracker announcements in the same comment stream.
"""

from datetime import datetime
from typing import Dict, Optional

from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = 'Asia/Hong_Kong'
STAR_ICON = 'images/star.png'


def format_time(when: Optional[datetime] = None, timezone: str = DEFAULT_TIMEZONE) -> str:
    """
    Format a time as a 12-hour clock string, e.g. "9:05 PM".

    Args:
        when: Time to format (default: now). Naive datetimes are taken as UTC.
        timezone: IANA time zone the clock is shown in
    """
    tz = ZoneInfo(timezone)
    if when is None:
        local = datetime.now(tz)
    elif when.tzinfo is None:
        local = when.replace(tzinfo=ZoneInfo('UTC')).astimezone(tz)
    else:
        local = when.astimezone(tz)

    hour = local.hour % 12 or 12
    period = 'AM' if local.hour < 12 else 'PM'
    return f"{hour}:{local.minute:02d} {period}"


def create_message(author_name: str,
                   message: str,
                   is_federation: bool = True,
                   profile_pic: str = STAR_ICON,
                   plain_message: Optional[str] = None,
                   timestamp: Optional[datetime] = None,
                   timezone: str = DEFAULT_TIMEZONE) -> Dict:
    """
    Build a chat message for the overlay.

    Args:
        author_name: Name shown as the message author
        message: Message body
        is_federation: Which faction's chat column shows the message
        profile_pic: Avatar image path
        plain_message: Text-only body (default: same as message)
        timestamp: Message time (default: now)
        timezone: Time zone for the displayed time

    Returns:
        Dictionary with isFederation, time, authorName, profilePic, message
        and plainMessage keys
    """
    return {
        'isFederation': is_federation,
        'time': format_time(timestamp, timezone),
        'authorName': author_name,
        'profilePic': profile_pic,
        'message': message,
        'plainMessage': plain_message or message,
    }
