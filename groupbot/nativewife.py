"""Per-group galleries of waifu pictures with a daily draw."""

from __future__ import annotations

import hashlib
import random
from datetime import date
from pathlib import Path

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    sign = "-" if n < 0 else ""
    n = abs(n)
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_ALPHABET[r])
    return sign + "".join(reversed(digits))


def wife_folder(base, gid: int) -> Path:
    """Folder of a group: its number written in base 36."""
    return Path(base) / _base36(gid)


def sanitize_name(text: str, command: str) -> str:
    """Name following the last ``command`` in ``text``, without spaces or slashes."""
    compact = text.replace(" ", "")
    idx = compact.rfind(command)
    name = compact[idx + len(command):] if idx >= 0 else compact
    name = name.replace("/", "").replace("\\", "")
    if not name:
        raise ValueError("没有找到wife的名字！")
    return name


def daily_pick(names, nickname: str, today: date) -> str:
    """Pick one name, fixed for a nickname over a day."""
    names = list(names)
    if not names:
        raise LookupError("一个wife也没有哦~")
    if len(names) == 1:
        return names[0]
    key = f"{nickname}{today.year}{today.month}{today.day}".encode("utf-8")
    seed = int.from_bytes(hashlib.md5(key).digest()[:8], "little", signed=True)
    return names[random.Random(seed).randrange(len(names))]


class WifeGallery:
    """Pictures stored as files named after the waifu, one folder per group."""

    def __init__(self, base):
        self.base = Path(base)

    def list(self, gid: int) -> list[str]:
        folder = wife_folder(self.base, gid)
        if not folder.is_dir():
            return []
        return sorted(p.name for p in folder.iterdir())

    def add(self, gid: int, name: str, data: bytes) -> Path:
        if not name or "/" in name or "\\" in name:
            raise ValueError(f"invalid name: {name!r}")
        folder = wife_folder(self.base, gid)
        folder.mkdir(parents=True, exist_ok=True)
        target = folder / name
        target.write_bytes(data)
        return target

    def remove(self, gid: int, name: str) -> None:
        if not name or "/" in name or "\\" in name:
            raise ValueError(f"invalid name: {name!r}")
        (wife_folder(self.base, gid) / name).unlink()

    def draw(self, gid: int, nickname: str, today: date) -> tuple[str, Path]:
        """Today's pick for ``nickname`` and the path of its picture."""
        name = daily_pick(self.list(gid), nickname, today)
        return name, wife_folder(self.base, gid) / name