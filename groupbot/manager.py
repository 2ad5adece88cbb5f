"""Group management helpers: welcome texts, bans, join checks and storage."""

from __future__ import annotations

import hashlib
import logging
import re
import sqlite3
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

import requests

log = logging.getLogger(__name__)

MAX_BAN_MINUTES = 43199
GIST_RAW = "https://gist.githubusercontent.com/{user}/{hash}/raw/{name}"
GIST_WINDOW = 600

VERIFY_FLAG = 0x1
GIST_FLAG = 0x10

_ENABLE = frozenset({"开启", "打开", "启用"})
_DISABLE = frozenset({"关闭", "关掉", "禁用"})
_MASK63 = 0x7FFFFFFF_FFFFFFFF

_HOURS = frozenset({"小时", "hour", "hours", "h"})
_DAYS = frozenset({"天", "day", "days", "d"})

_MESSAGE_TABLES = ("welcome", "farewell")
_ANSWER_MARK = "答案："
_INT_RE = re.compile(r"[+-]?[0-9]+")


def parse_ban_minutes(amount, unit: str) -> int:
    """Ban length in minutes for ``amount`` of ``unit``, capped below one month.

    Unknown units count as minutes.
    """
    minutes = int(amount)
    if unit in _HOURS:
        minutes *= 60
    elif unit in _DAYS:
        minutes *= 60 * 24
    if minutes >= MAX_BAN_MINUTES + 1:
        minutes = MAX_BAN_MINUTES
    return minutes


def render_welcome(template: str, uid: int, nickname: str, gid: int, groupname: str) -> str:
    """Expand ``{at}``, ``{nickname}``, ``{avatar}``, ``{uid}``, ``{gid}``, ``{groupname}``."""
    uid_s = str(uid)
    at = f"[CQ:at,qq={uid_s}]"
    avatar = f"[CQ:image,file=http://q4.qlogo.cn/g?b=qq&nk={uid_s}&s=640]"
    text = template.replace("{at}", at)
    text = text.replace("{nickname}", nickname)
    text = text.replace("{avatar}", avatar)
    text = text.replace("{uid}", uid_s)
    text = text.replace("{gid}", str(gid))
    return text.replace("{groupname}", groupname)


def unescape_brackets(text: str) -> str:
    """Turn escaped CQ brackets back into ``[`` and ``]``."""
    return text.replace("&#91;", "[").replace("&#93;", "]")


def pick_lucky_member(members: Iterable[Mapping], rng) -> Mapping:
    """Pick one of the ten members who spoke most recently."""
    ordered = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))
    if not ordered:
        raise ValueError("no members to pick from")
    recent = ordered[-10:]
    return recent[rng.randrange(len(recent))]


def toggle_flag(data: int, option: str, flag: int) -> int:
    """Set or clear ``flag`` in ``data`` according to an on/off word."""
    if option in _ENABLE:
        return data | flag
    if option in _DISABLE:
        return data & _MASK63 & ~flag
    raise ValueError(f"unknown option: {option!r}")


def parse_join_answer(comment: str) -> tuple[str, str]:
    """Split the ``username/gisthash`` answer out of a join request comment."""
    idx = comment.find(_ANSWER_MARK)
    answer = comment[idx + len(_ANSWER_MARK):] if idx >= 0 else comment
    divi = answer.find("/")
    if divi <= 0:
        raise ValueError("格式错误!")
    return answer[:divi], answer[divi + 1:]


@dataclass(frozen=True)
class ArithmeticChallenge:
    """A sum a newcomer must answer to stay in the group."""

    a: int
    b: int

    @property
    def answer(self) -> int:
        return self.a + self.b

    def question(self, bot_name: str) -> str:
        return (
            f"考你一道题：{self.a}+{self.b}=?\n"
            f"如果60秒之内答不上来，{bot_name}就要把你踢出去了哦~"
        )

    def check(self, text: str) -> bool | None:
        """True or False for a numeric reply, None when the text is not a number."""
        compact = text.replace(" ", "")
        if not _INT_RE.fullmatch(compact):
            return None
        return int(compact) == self.answer


def make_arithmetic_challenge(rng) -> ArithmeticChallenge:
    """Two random addends below 100."""
    a = rng.randrange(100)
    b = rng.randrange(100)
    return ArithmeticChallenge(a, b)


def gist_url(ghun: str, gist_hash: str, gid: int) -> str:
    """Raw URL of the gist file named after the MD5 of the group number."""
    name = hashlib.md5(str(gid).encode("ascii")).hexdigest()
    return GIST_RAW.format(user=ghun, hash=gist_hash, name=name)


def _http_get(url: str) -> bytes:
    resp = requests.get(url, timeout=30)
    resp.raise_for_status()
    return resp.content


def check_new_user(
    store: "ManagerStore",
    qq: int,
    gid: int,
    ghun: str,
    gist_hash: str,
    fetch: Callable[[str], bytes] | None = None,
    now: float | None = None,
) -> tuple[bool, str]:
    """Verify a join request against a gist holding a fresh unix timestamp.

    Returns ``(accepted, reason)``; an accepted user is recorded in ``store``.
    """
    if store.has_member(ghun):
        return False, "该github用户已入群"
    fetch = fetch or _http_get
    url = gist_url(ghun, gist_hash, gid)
    log.debug("gist visit url: %s", url)
    try:
        data = fetch(url)
    except (OSError, ValueError) as err:
        return False, f"无法连接到gist: {err}"
    text = data.decode("utf-8", "replace") if isinstance(data, (bytes, bytearray)) else str(data)
    log.debug("gist data: %s", text)
    if not _INT_RE.fullmatch(text):
        return False, "时间戳格式错误: " + text
    stamp = int(text)
    current = int(time.time() if now is None else now)
    if abs(current - stamp) < GIST_WINDOW:
        store.add_member(qq, ghun)
        return True, ""
    return False, "时间戳超时"


class ManagerStore:
    """SQLite storage for welcome and farewell texts and verified members."""

    def __init__(self, path):
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        for table in _MESSAGE_TABLES:
            self._db.execute(
                f"CREATE TABLE IF NOT EXISTS {table} (gid INTEGER PRIMARY KEY, msg TEXT)"
            )
        self._db.execute(
            "CREATE TABLE IF NOT EXISTS member (qq INTEGER PRIMARY KEY, ghun TEXT)"
        )
        self._db.commit()

    @staticmethod
    def _table(table: str) -> str:
        if table not in _MESSAGE_TABLES:
            raise ValueError(f"unknown message table: {table!r}")
        return table

    def set_message(self, table: str, gid: int, msg: str) -> None:
        """Store the welcome or farewell text of a group, replacing any old one."""
        name = self._table(table)
        self._db.execute(f"INSERT OR REPLACE INTO {name} (gid, msg) VALUES (?, ?)", (gid, msg))
        self._db.commit()

    def find_message(self, table: str, gid: int) -> str | None:
        name = self._table(table)
        row = self._db.execute(f"SELECT msg FROM {name} WHERE gid = ?", (gid,)).fetchone()
        return row[0] if row else None

    def has_member(self, ghun: str) -> bool:
        row = self._db.execute("SELECT 1 FROM member WHERE ghun = ?", (ghun,)).fetchone()
        return row is not None

    def add_member(self, qq: int, ghun: str) -> None:
        self._db.execute("INSERT OR REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, ghun))
        self._db.commit()

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> "ManagerStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()