"""Timer record with packed date fields."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

_EN = 0x800000
_MONTH = 0x780000
_DAY = 0x07C000
_WEEK = 0x003800
_HOUR = 0x0007C0
_MINUTE = 0x00003F


def _unpack(value: int, mask: int, shift: int) -> int:
    field = (value & mask) >> shift
    return -1 if field == mask >> shift else field


@dataclass
class Timer:
    """A group reminder.

    Enable flag, month, day, weekday, hour and minute are packed into
    ``emdwhm``; a field holding all ones reads back as -1 ("every").
    Weekdays count from Sunday = 0.
    """

    id: int = 0
    emdwhm: int = 0
    self_id: int = 0
    grp_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    def _set(self, value: int, mask: int, shift: int) -> None:
        self.emdwhm = ((value << shift) & mask) | (self.emdwhm & (0xFFFFFF ^ mask))

    @property
    def en(self) -> bool:
        return self.emdwhm & _EN != 0

    @en.setter
    def en(self, value: bool) -> None:
        if value:
            self.emdwhm |= _EN
        else:
            self.emdwhm &= 0x7FFFFF

    @property
    def month(self) -> int:
        return _unpack(self.emdwhm, _MONTH, 19)

    @month.setter
    def month(self, value: int) -> None:
        self._set(value, _MONTH, 19)

    @property
    def day(self) -> int:
        return _unpack(self.emdwhm, _DAY, 14)

    @day.setter
    def day(self, value: int) -> None:
        self._set(value, _DAY, 14)

    @property
    def week(self) -> int:
        return _unpack(self.emdwhm, _WEEK, 11)

    @week.setter
    def week(self, value: int) -> None:
        self._set(value, _WEEK, 11)

    @property
    def hour(self) -> int:
        return _unpack(self.emdwhm, _HOUR, 6)

    @hour.setter
    def hour(self, value: int) -> None:
        self._set(value, _HOUR, 6)

    @property
    def minute(self) -> int:
        return _unpack(self.emdwhm, _MINUTE, 0)

    @minute.setter
    def minute(self, value: int) -> None:
        self._set(value, _MINUTE, 0)

    def timer_info(self) -> str:
        """Normalised description used for identity."""
        if self.cron:
            return f"[{self.grp_id}]{self.cron}"
        return (
            f"[{self.grp_id}]{self.month}月{self.day}日{self.week}周"
            f"{self.hour}:{self.minute}"
        )

    def timer_id(self) -> int:
        """First four bytes of the MD5 of the info string, little endian."""
        digest = hashlib.md5(self.timer_info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")