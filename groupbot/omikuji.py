"""Sensō-ji fortune slips."""

from __future__ import annotations

import hashlib
import sqlite3
from datetime import date

BED = "https://gitcode.net/u011570312/senso-ji-omikuji/-/raw/main/%d_%d.jpg"
KUJI_COUNT = 100


def draw_number(user_id: int, day: date) -> int:
    """Slip number in 1..100, fixed for a user over a day."""
    key = f"{user_id}{day.isoformat()}".encode("utf-8")
    value = int.from_bytes(hashlib.md5(key).digest()[:8], "little")
    return value % KUJI_COUNT + 1


def image_urls(number: int) -> tuple[str, str]:
    """Front and back images of slip ``number``."""
    return BED % (number, 0), BED % (number, 1)


class KujiStore:
    """SQLite table of slip explanations."""

    def __init__(self, path):
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        self._db.execute("CREATE TABLE IF NOT EXISTS kuji (id INTEGER PRIMARY KEY, text TEXT)")
        self._db.commit()

    def text(self, number: int) -> str:
        row = self._db.execute("SELECT text FROM kuji WHERE id = ?", (number,)).fetchone()
        if row is None:
            raise LookupError(f"no kuji {number}")
        return row[0]

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> "KujiStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()