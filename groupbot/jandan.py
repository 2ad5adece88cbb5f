"""Random pictures collected from the jandan.net picture board."""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
from dataclasses import dataclass, field
from typing import Callable

import lxml.html

log = logging.getLogger(__name__)

API = "http://jandan.net/pic"

_CURRENT_PAGE = (
    "//*[@id='comments']/div[2]/div/span[@class='current-comment-page']/text()"
)
_IMAGE_LINKS = "//*[@class='view_img_link']"
_PREVIOUS_PAGE = (
    "//*[@id='comments']/div[@class='comments']/div[@class='cp-pagenavi']"
    "/a[@class='previous-comment-page']"
)
_NUMBER = re.compile(r"\d+")


def _make_table() -> tuple[int, ...]:
    poly = 0xD800000000000000
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = (crc >> 1) ^ poly if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC64_ISO = _make_table()
_MASK64 = 0xFFFFFFFFFFFFFFFF


def picture_id(url: str) -> int:
    """CRC-64 (ISO polynomial) of the URL, used as the picture's identity."""
    crc = _MASK64
    for byte in url.encode("utf-8"):
        crc = _CRC64_ISO[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ _MASK64


def _to_signed(value: int) -> int:
    return value - (1 << 64) if value >= 1 << 63 else value


def _parse(html: str):
    return lxml.html.fromstring(html)


def current_page(html: str) -> int:
    """Number of the newest page shown in a board page."""
    found = _parse(html).xpath(_CURRENT_PAGE)
    if not found:
        raise ValueError("current page marker not found")
    match = _NUMBER.search(str(found[0]))
    if match is None:
        raise ValueError(f"no page number in {str(found[0])!r}")
    return int(match.group())


@dataclass
class Page:
    """Picture links of one board page and the link to the older page."""

    urls: list[str] = field(default_factory=list)
    previous: str | None = None


def _attr(element, index: int) -> str | None:
    values = list(element.attrib.values())
    return values[index] if len(values) > index else None


def parse_page(html: str) -> Page:
    """Extract picture URLs and the previous-page URL from a board page."""
    doc = _parse(html)
    urls = []
    for link in doc.xpath(_IMAGE_LINKS):
        value = _attr(link, 0)
        if value is not None:
            urls.append("https:" + value)
    previous = None
    nav = doc.xpath(_PREVIOUS_PAGE)
    if nav:
        value = _attr(nav[0], 1)
        if value is not None:
            previous = "https:" + value
    return Page(urls, previous)


class PictureStore:
    """SQLite table of picture URLs keyed by their CRC-64."""

    def __init__(self, path):
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS picture (id INTEGER PRIMARY KEY, url TEXT)"
            )
            self._db.commit()

    def random_picture(self) -> str:
        with self._lock:
            row = self._db.execute(
                "SELECT url FROM picture ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError("no pictures stored")
        return row[0]

    def contains(self, pid: int) -> bool:
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM picture WHERE id = ?", (_to_signed(pid),)
            ).fetchone()
        return row is not None

    def add(self, url: str) -> int:
        """Store ``url`` and return its id."""
        pid = picture_id(url)
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO picture (id, url) VALUES (?, ?)",
                (_to_signed(pid), url),
            )
            self._db.commit()
        return pid

    def count(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM picture").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "PictureStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def update(store: PictureStore, fetch: Callable[[str], str], start_url: str = API) -> int:
    """Walk the board from the newest page, adding new pictures.

    Stops at the first picture already stored. Returns how many were added.
    """
    html = fetch(start_url)
    total = current_page(html)
    url = start_url
    added = 0
    for i in range(total):
        log.debug("jandan page %d/%d", i, total)
        if i:
            html = fetch(url)
        page = parse_page(html)
        for pic in page.urls:
            if store.contains(picture_id(pic)):
                return added
            store.add(pic)
            added += 1
        if i != total - 1:
            if page.previous is None:
                raise ValueError("previous page link not found")
            url = page.previous
    return added