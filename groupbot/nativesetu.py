"""Local picture library grouped by folder, indexed in SQLite by difference hash."""

from __future__ import annotations

import io
import logging
import os
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from PIL import Image

log = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".webp")

_HASH_WIDTH = 8
_HASH_HEIGHT = 8


def is_image_name(name: str) -> bool:
    """Whether a file name has one of the supported picture extensions."""
    return name.lower().endswith(IMAGE_SUFFIXES)


def difference_hash(image: Image.Image) -> int:
    """64-bit difference hash; the first compared pair gives the highest bit."""
    small = image.convert("RGB").resize(
        (_HASH_WIDTH + 1, _HASH_HEIGHT), Image.BILINEAR
    )
    pixels = small.load()
    total = _HASH_WIDTH * _HASH_HEIGHT
    value = 0
    idx = 0
    for y in range(_HASH_HEIGHT):
        row = [
            0.299 * r + 0.587 * g + 0.114 * b
            for r, g, b in (pixels[x, y] for x in range(_HASH_WIDTH + 1))
        ]
        for left, right in zip(row, row[1:]):
            if left < right:
                value |= 1 << (total - 1 - idx)
            idx += 1
    return value


def _to_signed(value: int) -> int:
    return value - (1 << 64) if value >= 1 << 63 else value


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class SetuEntry:
    """One indexed picture: hash id, file name and path relative to the root."""

    img_id: int
    name: str
    path: str


class SetuLibrary:
    """One table per class folder, each row a picture in that folder."""

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._db: sqlite3.Connection | None = None

    def _conn(self) -> sqlite3.Connection:
        if self._db is None:
            self._db = sqlite3.connect(str(self.db_path), check_same_thread=False)
        return self._db

    def _create(self, name: str) -> None:
        self._conn().execute(
            f"CREATE TABLE IF NOT EXISTS {_quote(name)} "
            "(imgid INTEGER PRIMARY KEY, name TEXT, path TEXT)"
        )

    @staticmethod
    def _walk(root: Path, rel: str = "") -> Iterator[tuple[str, str]]:
        folder = root / rel if rel else root
        for entry in sorted(os.scandir(folder), key=lambda e: e.name):
            if entry.is_dir():
                sub = f"{rel}/{entry.name}" if rel else entry.name
                yield sub, entry.name
                yield from SetuLibrary._walk(root, sub)

    def scan_all(self, root) -> None:
        """Rebuild the whole index from the folders under ``root``."""
        root = Path(root)
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None
            self.db_path.unlink(missing_ok=True)
        for rel, name in self._walk(root):
            with self._lock:
                self._create(name)
                self._conn().commit()
            self.scan_class(root, rel, name)

    def scan_class(self, root, path: str, name: str) -> None:
        """Re-index class ``name`` from folder ``path`` relative to ``root``."""
        root = Path(root)
        entries = sorted(os.scandir(root / path), key=lambda e: e.name)
        with self._lock:
            self._conn().execute(f"DROP TABLE IF EXISTS {_quote(name)}")
            self._create(name)
            self._conn().commit()
        for entry in entries:
            if entry.is_dir() or not is_image_name(entry.name):
                continue
            relpath = f"{path}/{entry.name}"
            log.debug("read %s", relpath)
            data = (root / relpath).read_bytes()
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                dhash = _to_signed(difference_hash(img))
            log.debug("insert %s with id %d into %s", entry.name, dhash, name)
            with self._lock:
                self._conn().execute(
                    f"INSERT OR REPLACE INTO {_quote(name)} (imgid, name, path) "
                    "VALUES (?, ?, ?)",
                    (dhash, entry.name, relpath),
                )
                self._conn().commit()

    def classes(self) -> list[str]:
        """Names of all indexed classes, or none when no index exists."""
        with self._lock:
            if self._db is None and not self.db_path.exists():
                return []
            rows = self._conn().execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' "
                "AND name NOT LIKE 'sqlite_%' ORDER BY rowid"
            ).fetchall()
        return [r[0] for r in rows]

    def pick(self, name: str) -> SetuEntry:
        """A random picture of class ``name``."""
        with self._lock:
            try:
                row = self._conn().execute(
                    f"SELECT imgid, name, path FROM {_quote(name)} "
                    "ORDER BY RANDOM() LIMIT 1"
                ).fetchone()
            except sqlite3.OperationalError as err:
                raise LookupError(f"no such class: {name}") from err
        if row is None:
            raise LookupError(f"class {name} is empty")
        return SetuEntry(*row)

    def count(self, name: str) -> int:
        with self._lock:
            try:
                return self._conn().execute(
                    f"SELECT COUNT(*) FROM {_quote(name)}"
                ).fetchone()[0]
            except sqlite3.OperationalError as err:
                raise LookupError(f"no such class: {name}") from err

    def close(self) -> None:
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None

    def __enter__(self) -> "SetuLibrary":
        return self

    def __exit__(self, *exc) -> None:
        self.close()