"""Ogura Hyakunin Isshu: one hundred poems."""

from __future__ import annotations

import csv
from dataclasses import dataclass, fields
from pathlib import Path

BED = "https://gitcode.net/u011570312/OguraHyakuninIsshu/-/raw/master/"
POEM_COUNT = 100

_LABELS = ("番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな")
_MARKS = ("●", "◉", "○", "○", "◎", "◎")


@dataclass(frozen=True)
class Poem:
    """One poem as stored in the CSV file."""

    number: str
    poet: str
    kami: str
    shimo: str
    kami_kana: str
    shimo_kana: str

    def __str__(self) -> str:
        values = (getattr(self, f.name) for f in fields(self))
        return "".join(
            f"{mark}{label}：{value}\n"
            for mark, label, value in zip(_MARKS, _LABELS, values)
        )


def load_poems(path) -> list[Poem]:
    """Read the hundred poems, checking count, width and numbering."""
    with Path(path).open(encoding="utf-8-sig", newline="") as fh:
        records = list(csv.reader(fh))[1:]
    if len(records) != POEM_COUNT:
        raise ValueError("invalid csvfile")
    poems = []
    for expected, record in enumerate(records, 1):
        if len(record) != 6:
            raise ValueError("invalid csvfile")
        if int(record[0]) != expected:
            raise ValueError("invalid csvfile")
        poems.append(Poem(*record))
    return poems


def image_urls(number: int) -> tuple[str, str]:
    """Picture and card image of poem ``number`` (1..100)."""
    if number < 1 or number > POEM_COUNT:
        raise ValueError("超出范围")
    return f"{BED}img/{number:03d}.jpg", f"{BED}img/{number:03d}.png"