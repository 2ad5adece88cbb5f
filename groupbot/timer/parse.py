"""Parsing of Chinese date phrases into timers."""

from __future__ import annotations

import logging
import re

from .model import Timer

log = logging.getLogger(__name__)

_DIGITS = "零一二三四五六七八九十"
_EVERY = "每"


def chinese_char_to_int(c: str) -> int:
    """Map one character to 0..10; 日 and 天 (Sunday) give 7; unknown gives 0."""
    if c in ("日", "天"):
        return 7
    idx = _DIGITS.find(c)
    return idx if idx >= 0 else 0


def chinese_num_to_int(text: str) -> int:
    """Convert a number of up to two characters; 每 means -1, 每二 -2 and so on."""
    if not text:
        raise ValueError("empty number")
    if text[0] in "0123456789":
        return int(text) if re.fullmatch(r"[0-9]+", text) else 0
    if text[0] == _EVERY:
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(text[0])
    ten = chinese_char_to_int(text[0])
    if ten != 10:
        ten *= 10
    ge = chinese_char_to_int(text[1])
    if ge == 10:
        ge = 0
    return ten + ge


def get_filled_cron_timer(croncmd: str, alert: str, img: str, botqq: int, gid: int) -> Timer:
    return Timer(alert=alert, cron=croncmd, url=img, self_id=botqq, grp_id=gid)


def get_filled_timer(date_strs, botqq: int, grp: int, match_date_only: bool) -> Timer:
    """Build a timer from regex groups (month, day/week, hour, minute, url, alert).

    On invalid input the returned timer is disabled and its alert holds the reason.
    """
    month_str, dw, hour_str, minute_str = date_strs[1:5]
    t = Timer()
    mon = chinese_num_to_int(month_str)
    if (mon != -1 and mon <= 0) or mon > 12:
        t.alert = "月份非法！"
        return t
    t.month = mon
    if len(dw) == 4:
        d = chinese_num_to_int(dw[0] + dw[2])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法1！"
            return t
        t.day = d
    elif dw[-1] == "日":
        d = chinese_num_to_int(dw[:-1])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法2！"
            return t
        t.day = d
    elif dw[0] == _EVERY:
        t.week = -1
    else:
        w = chinese_num_to_int(dw[1:])
        if w == 7:
            w = 0
        if w < 0 or w > 6:
            t.alert = "星期非法！"
            return t
        t.week = w
    if len(hour_str) == 3:
        hour_str = hour_str[0] + hour_str[2]
    h = chinese_num_to_int(hour_str)
    if h < -1 or h > 23:
        t.alert = "小时非法！"
        return t
    t.hour = h
    if len(minute_str) == 3:
        minute_str = minute_str[0] + minute_str[2]
    mn = chinese_num_to_int(minute_str)
    if mn < -1 or mn > 59:
        t.alert = "分钟非法！"
        return t
    t.minute = mn
    if not match_date_only:
        url = date_strs[5]
        if url:
            t.url = url[1:]
            log.debug("timer url %s", t.url)
            if not t.url.startswith("http"):
                t.url = "illegal"
                return t
        t.alert = date_strs[6]
        t.en = True
    t.self_id = botqq
    t.grp_id = grp
    return t