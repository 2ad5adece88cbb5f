"""Wake-time computation and messages for date-based timers."""

from __future__ import annotations

from datetime import datetime, timedelta

from .model import Timer


def _weekday(d: datetime) -> int:
    """Weekday with Sunday = 0."""
    return (d.weekday() + 1) % 7


def _date(year, month, day, hour=0, minute=0, second=0, micro=0) -> datetime:
    """Build a datetime, normalising out-of-range fields."""
    y, m = divmod(year * 12 + month - 1, 12)
    return datetime(y, m + 1, 1) + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=micro
    )


def _add_date(d: datetime, years: int, months: int, days: int) -> datetime:
    return _date(d.year + years, d.month + months, d.day + days,
                 d.hour, d.minute, d.second, d.microsecond)


def first_weekday(date: datetime, week: int) -> datetime:
    """First day in the month of ``date`` falling on ``week`` (Sunday = 0)."""
    d = _add_date(date, 0, 0, 1 - date.day)
    while _weekday(d) != week:
        d = _add_date(d, 0, 0, 1)
    return d


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """Next moment the timer should wake to check whether it fires."""
    m, d, h, mn, w = timer.month, timer.day, timer.hour, timer.minute, timer.week
    unit = timedelta(0)
    if mn >= 0:
        if h < 0:
            unit = timedelta(hours=1)
        elif d < 0 or w < 0:
            unit = timedelta(days=1)
        elif d == 0 and w >= 0:
            delta = timedelta(days=w - _weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
    else:
        unit = timedelta(minutes=1)
    stable = 0
    if mn < 0:
        mn = now.minute
    if h < 0:
        h = now.hour
    else:
        stable |= 0x8
    if d < 0:
        d = now.day
    elif d > 0:
        stable |= 0x4
    else:
        d = now.day
        if w >= 0:
            stable |= 0x2
    if m < 0:
        m = now.month
    else:
        stable |= 0x1
    if stable == 0b0101:
        if timer.day != now.day or timer.month != now.month:
            h = 0
    elif stable == 0b1001:
        if timer.month != now.month:
            d = 0
    elif stable == 0b0001:
        if timer.month != now.month:
            d = 0
            h = 0
    date = _date(now.year, m, d, h, mn, now.second, now.microsecond)
    if unit > timedelta(0):
        date += unit
    if date <= now:
        if timer.month < 0:
            if timer.day > 0 or (timer.day == 0 and timer.week >= 0):
                date = _add_date(date, 0, 1, 0)
            elif timer.day < 0 or timer.week < 0:
                if timer.hour > 0:
                    date = _add_date(date, 0, 0, 1)
                elif timer.minute > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, 1, 0, 0)
    hour = timedelta(hours=1)
    if stable & 0x8 and date.hour != h:
        if stable & 0x4 == 0:
            date = _add_date(date, 0, 0, 1) - hour
        elif stable & 0x2 == 0:
            date = _add_date(date, 0, 0, 7) - hour
        elif stable == 0:
            date = _add_date(date, 0, 1, 0) - hour
        else:
            date = _add_date(date, 1, 0, 0) - hour
    if stable & 0x4 and date.day != d:
        date = _add_date(date, 0, 1, -1) if stable == 0 else _add_date(date, 1, 0, -1)
    if stable & 0x2 and _weekday(date) != w:
        date = _add_date(date, 0, 1, 0) if stable == 0 else _add_date(date, 1, 0, 0)
        date = first_weekday(date, w)
    if date <= now:
        date = now + timedelta(minutes=1)
    return date


def should_fire(timer: Timer, now: datetime) -> bool:
    """Whether an enabled timer matches ``now`` down to the minute."""
    if not timer.en:
        return False
    if not (timer.month < 0 or timer.month == now.month):
        return False
    if timer.day < 0 or timer.day == now.day:
        pass
    elif timer.day == 0:
        if not (timer.week < 0 or timer.week == _weekday(now)):
            return False
    else:
        return False
    if not (timer.hour < 0 or timer.hour == now.hour):
        return False
    return timer.minute < 0 or timer.minute == now.minute


def build_message(timer: Timer) -> list[dict]:
    """Message segments: @all, the alert text and the optional image."""
    segments = [
        {"type": "at", "data": {"qq": "all"}},
        {"type": "text", "data": {"text": timer.alert}},
    ]
    if timer.url:
        segments.append({"type": "image", "data": {"file": timer.url, "cache": "0"}})
    return segments