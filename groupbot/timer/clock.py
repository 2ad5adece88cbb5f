"""Registry of group timers backed by SQLite, each run on a worker thread."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from typing import Callable

from .cron import parse_cron
from .model import Timer
from .schedule import build_message, next_wake_time, should_fire

log = logging.getLogger(__name__)

Sender = Callable[[int, list], None]

_COLUMNS = ("id", "emdwhm", "sid", "gid", "alert", "cron", "url")


class Clock:
    """Keeps timers in memory and in the ``timer`` table, and fires them."""

    def __init__(self, db_path, sender: Sender):
        self._sender = sender
        self._lock = threading.RLock()
        self._timers: dict[int, Timer] = {}
        self._stops: dict[int, threading.Event] = {}
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS timer (id INTEGER PRIMARY KEY, "
                "emdwhm INTEGER, sid INTEGER, gid INTEGER, alert TEXT, "
                "cron TEXT, url TEXT)"
            )
            self._db.commit()
            rows = self._db.execute(f"SELECT {', '.join(_COLUMNS)} FROM timer").fetchall()
        for row in rows:
            self.register_timer(Timer(*row), save=False)

    def register_timer(self, timer: Timer, save: bool) -> bool:
        """Register and start a timer; return whether it is now running."""
        if save:
            timer.id = timer.timer_id()
        key = timer.id
        old = self.get_timer(key)
        if old is not None and old is not timer:
            old.en = False
            self._stop(key)
        log.info("register timer %d", key)
        if timer.cron:
            try:
                schedule = parse_cron(timer.cron)
            except ValueError as err:
                timer.alert = str(err)
                return False
            target = self._run_cron
            args = (timer, schedule)
        else:
            if not timer.en:
                if save:
                    self.add_timer_into_db(timer)
                self.add_timer_into_map(timer)
                return False
            target = self._run_date
            args = (timer,)
        try:
            if save:
                self.add_timer_into_db(timer)
            self.add_timer_into_map(timer)
        except sqlite3.Error as err:
            log.error("store timer %d: %s", key, err)
            return False
        stop = threading.Event()
        with self._lock:
            self._stops[key] = stop
        threading.Thread(target=target, args=(*args, stop), daemon=True).start()
        return True

    def _run_cron(self, timer, schedule, stop: threading.Event) -> None:
        while not stop.is_set():
            now = datetime.now()
            if stop.wait((schedule.next_after(now) - now).total_seconds()):
                break
            self._sender(timer.grp_id, build_message(timer))

    def _run_date(self, timer: Timer, stop: threading.Event) -> None:
        while timer.en and not stop.is_set():
            now = datetime.now()
            wake = next_wake_time(timer, now)
            log.info("timer %08x sleeps %ds", timer.id, (wake - now).total_seconds())
            if stop.wait(max((wake - now).total_seconds(), 0)):
                break
            if should_fire(timer, datetime.now()):
                self._sender(timer.grp_id, build_message(timer))

    def _stop(self, key: int) -> None:
        with self._lock:
            stop = self._stops.pop(key, None)
        if stop is not None:
            stop.set()

    def cancel_timer(self, key: int) -> bool:
        timer = self.get_timer(key)
        if timer is None:
            return False
        if not timer.cron:
            timer.en = False
        self._stop(key)
        with self._lock:
            self._timers.pop(key, None)
            try:
                self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
                self._db.commit()
            except sqlite3.Error:
                return False
        return True

    def list_timers(self, grp_id: int) -> list[str]:
        with self._lock:
            timers = list(self._timers.values())
        result = []
        for t in timers:
            if t.grp_id != grp_id:
                continue
            info = t.timer_info()
            msg = (info[info.index("]") + 1:] + "\n").replace("-1", "每")
            msg = msg.replace("月0日0周", "月周天").replace("月0日", "月").replace("日0周", "日")
            result.append(msg)
        return result

    def get_timer(self, key: int) -> Timer | None:
        with self._lock:
            return self._timers.get(key)

    def add_timer_into_db(self, timer: Timer) -> None:
        with self._lock:
            self._db.execute(
                f"INSERT OR REPLACE INTO timer ({', '.join(_COLUMNS)}) VALUES (?,?,?,?,?,?,?)",
                (timer.id, timer.emdwhm, timer.self_id, timer.grp_id,
                 timer.alert, timer.cron, timer.url),
            )
            self._db.commit()

    def add_timer_into_map(self, timer: Timer) -> None:
        with self._lock:
            self._timers[timer.id] = timer

    def close(self) -> None:
        with self._lock:
            keys = list(self._stops)
        for key in keys:
            self._stop(key)
        with self._lock:
            self._db.close()

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc) -> None:
        self.close()