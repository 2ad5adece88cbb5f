"""Countdowns to holidays and the daily slacker's reminder."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

HOLIDAY_NAMES = ("元旦", "春节", "清明节", "劳动节", "端午节", "中秋节", "国庆节")

GREETING = (
    "上午好，摸鱼人！\n工作再累，一定不要忘记摸鱼哦！有事没事起身去茶水间，"
    "去厕所，去廊道走走别老在工位上坐着，钱是老板的,但命是自己的。\n"
)
CLOSING = "上班是帮老板赚钱，摸鱼是赚老板的钱！最后，祝愿天下所有摸鱼人，都能愉快的渡过每一天…"

_VALUE = re.compile(r"\s*(-?\d+)_(-?\d+)_(-?\d+)_(-?\d+)")


@dataclass(frozen=True)
class Holiday:
    """A holiday starting on ``date`` and lasting ``duration``."""

    name: str
    date: datetime
    duration: timedelta

    def describe(self, now: datetime) -> str:
        """Countdown, enjoy-it or it-is-over text relative to ``now``."""
        d = self.date - now
        if d >= timedelta(0):
            days = d.total_seconds() / 86400
            return f"距离{self.name}还有: {days:.2f}天！"
        if d + self.duration >= timedelta(0):
            return f"好好享受 {self.name} 假期吧!"
        return f"今年 {self.name} 假期已过"


def parse_holiday(name: str, value: str) -> Holiday:
    """Parse a ``days_year_month_day`` record."""
    match = _VALUE.match(value)
    if match is None:
        raise ValueError(f"bad holiday record: {value!r}")
    dur, year, month, day = (int(g) for g in match.groups())
    return Holiday(name, datetime(year, month, day), timedelta(days=dur))


def weekend(now: datetime) -> str:
    """Days left until the weekend, or a weekend greeting."""
    weekday = (now.weekday() + 1) % 7
    if weekday in (0, 6):
        return "好好享受周末吧！"
    return f"距离周末还有:{5 - weekday}天！"


def moyu_message(holidays: Iterable[Holiday], now: datetime) -> str:
    """The full reminder text for ``now``."""
    parts = [now.strftime("%Y-%m-%d"), GREETING, weekend(now), "\n"]
    for holiday in holidays:
        parts.append(holiday.describe(now))
        parts.append("\n")
    parts.append(CLOSING)
    return "".join(parts)