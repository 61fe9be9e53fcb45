"""Quota reset boundaries and countdown formatting.

The coding-plan quota restarts on fixed UTC clock hours. Two cadences have
been seen from the service: every five hours and every four hours. The
five-hour set is used by default; pass ``hours`` to use another one.
"""

from datetime import datetime, timedelta, timezone

RESET_HOURS_UTC = (0, 5, 10, 15, 20)
FOUR_HOUR_RESET_HOURS_UTC = (0, 4, 8, 12, 16, 20)


def _as_utc(now):
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def next_reset(now=None, hours=RESET_HOURS_UTC):
    """Return the next reset boundary strictly after ``now``'s hour, in UTC."""
    now = _as_utc(now)
    hours = sorted(hours)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    for hour in hours:
        if hour > now.hour:
            return midnight + timedelta(hours=hour)
    return midnight + timedelta(days=1, hours=hours[0])


def seconds_until_reset(now=None, hours=RESET_HOURS_UTC):
    now = _as_utc(now)
    return int((next_reset(now, hours) - now).total_seconds())


def format_duration(seconds):
    """Format a countdown: '2h 5m', '4m 10s' or '12s'."""
    seconds = max(0, int(seconds))
    h, remainder = divmod(seconds, 3600)
    m, s = divmod(remainder, 60)
    if h > 0:
        return f"{h}h {m}m"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"


def format_countdown(now=None, hours=RESET_HOURS_UTC):
    return format_duration(seconds_until_reset(now, hours))
