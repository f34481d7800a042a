"""
When does a reminder fire?

An event recurs every year on its month/day. Its occurrence is the next such
calendar date in the reminder zone (today included), and a reminder with an
offset of ``hours`` fires at occurrence local midnight minus ``hours``. The
job runs once per hour, so firing is matched at hour granularity.
"""
import calendar
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from moments.constants import DAY_OF_LABEL


@lru_cache()
def get_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def to_local(now: datetime, tz: ZoneInfo) -> datetime:
    """Express ``now`` in ``tz``; naive values are taken as already local."""
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def truncate_to_hour(dt: datetime) -> datetime:
    return dt.replace(minute=0, second=0, microsecond=0)


def occurrence_in(event_date: date, year: int) -> date:
    """Calendar date of the event in ``year``; Feb 29 falls back to Feb 28."""
    day = event_date.day
    if event_date.month == 2 and day == 29 and not calendar.isleap(year):
        day = 28
    return date(year, event_date.month, day)


def next_occurrence(event_date: date, now_local: datetime) -> date:
    """Today or the next annual occurrence, compared on month/day fields only."""
    if (event_date.month, event_date.day) < (now_local.month, now_local.day):
        return occurrence_in(event_date, now_local.year + 1)
    return occurrence_in(event_date, now_local.year)


def trigger_instant(occurrence: date, hours: int, tz: ZoneInfo) -> datetime:
    """Local date+hour at which an ``hours``-before reminder fires."""
    midnight = datetime.combine(occurrence, time.min, tzinfo=tz)
    # subtract on the UTC timeline so DST transitions count real hours
    instant = (midnight.astimezone(timezone.utc) - timedelta(hours=hours)).astimezone(tz)
    return truncate_to_hour(instant)


def is_due(trigger: datetime, now_local: datetime) -> bool:
    now_local = now_local.astimezone(trigger.tzinfo)
    return (trigger.date(), trigger.hour) == (now_local.date(), now_local.hour)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n != 1 else ''}"


def reminder_message(name: str, event_type: str, hours: int) -> str:
    if hours == 0:
        return f"🎉 Today is {name}'s {event_type}!"
    if hours < 24:
        return f"⏰ {name}'s {event_type} is in {_plural(hours, 'hour')}!"
    return f"📅 {name}'s {event_type} is in {_plural(hours // 24, 'day')}!"


def reminder_label(hours: int) -> str:
    """Display label for a custom offset."""
    if hours == 0:
        return DAY_OF_LABEL
    if hours < 24:
        return f"{_plural(hours, 'hour')} before"
    return f"{_plural(hours // 24, 'day')} before"
