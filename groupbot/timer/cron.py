"""Five-field cron expressions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

_MONTHS = {n: i for i, n in enumerate(
    "JAN FEB MAR APR MAY JUN JUL AUG SEP OCT NOV DEC".split(), 1)}
_DAYS = {n: i for i, n in enumerate("SUN MON TUE WED THU FRI SAT".split())}
_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *", "@annually": "0 0 1 1 *", "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0", "@daily": "0 0 * * *", "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


def _value(text: str, names: dict) -> int:
    up = text.upper()
    if up in names:
        return names[up]
    if not text.isdigit():
        raise ValueError(f"bad cron value {text!r}")
    return int(text)


def _field(spec: str, lo: int, hi: int, names: dict | None = None) -> frozenset:
    names = names or {}
    result: set[int] = set()
    for part in spec.split(","):
        rng, _, step_s = part.partition("/")
        step = int(step_s) if step_s else 1
        if step_s and not step_s.isdigit() or step <= 0:
            raise ValueError(f"bad cron step {part!r}")
        if rng in ("*", "?"):
            start, end = lo, hi
        elif "-" in rng:
            a, b = rng.split("-", 1)
            start, end = _value(a, names), _value(b, names)
        else:
            start = _value(rng, names)
            end = hi if step_s else start
        if start < lo or end > hi or start > end:
            raise ValueError(f"cron value out of range {part!r}")
        result.update(range(start, end + 1, step))
    return frozenset(result)


@dataclass(frozen=True)
class CronSchedule:
    minutes: frozenset
    hours: frozenset
    days: frozenset
    months: frozenset
    weekdays: frozenset
    dom_star: bool
    dow_star: bool

    def _day_ok(self, when: datetime) -> bool:
        dom = when.day in self.days
        dow = (when.weekday() + 1) % 7 in self.weekdays
        if self.dom_star or self.dow_star:
            return dom and dow
        return dom or dow

    def matches(self, when: datetime) -> bool:
        return (when.minute in self.minutes and when.hour in self.hours
                and when.month in self.months and self._day_ok(when))

    def next_after(self, when: datetime) -> datetime:
        """First matching minute strictly after ``when``."""
        t = when.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = when.year + 5
        while t.year <= limit:
            if t.month not in self.months:
                y, m = divmod(t.year * 12 + t.month, 12)
                t = datetime(y, m + 1, 1)
            elif not self._day_ok(t):
                t = t.replace(hour=0, minute=0) + timedelta(days=1)
            elif t.hour not in self.hours:
                t = t.replace(minute=0) + timedelta(hours=1)
            elif t.minute not in self.minutes:
                t += timedelta(minutes=1)
            else:
                return t
        raise ValueError("cron schedule never fires")


def parse_cron(expr: str) -> CronSchedule:
    """Parse ``minute hour day month weekday`` or an @descriptor."""
    expr = _DESCRIPTORS.get(expr.strip(), expr)
    fields = expr.split()
    if len(fields) != 5:
        raise ValueError(f"expected 5 fields, got {len(fields)}")
    mi, ho, dom, mon, dow = fields
    weekdays = _field(dow, 0, 7, _DAYS)
    if 7 in weekdays:
        weekdays = (weekdays - {7}) | {0}
    return CronSchedule(
        minutes=_field(mi, 0, 59),
        hours=_field(ho, 0, 23),
        days=_field(dom, 1, 31),
        months=_field(mon, 1, 12, _MONTHS),
        weekdays=frozenset(weekdays),
        dom_star=dom in ("*", "?"),
        dow_star=dow in ("*", "?"),
    )