"""Good-morning / good-night bookkeeping per group."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from os import PathLike

_NS_SECOND = 1_000_000_000
_NS_MINUTE = 60 * _NS_SECOND
_NS_HOUR = 60 * _NS_MINUTE


def _fmt(t: datetime) -> str:
    return t.isoformat(sep=" ", timespec="microseconds")


def _tdiv(a: int, b: int) -> int:
    q = abs(a) // b
    return q if a >= 0 else -q


class SleepDB:
    """SQLite store of the last sleep/wake time of each group member."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self._conn = sqlite3.connect(str(path))
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS sleep_manage ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, group_id INTEGER, "
                "user_id INTEGER, sleep_time TEXT)"
            )

    def __enter__(self) -> SleepDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def _touch(self, gid: int, uid: int, now: datetime) -> timedelta:
        row = self._conn.execute(
            "SELECT sleep_time FROM sleep_manage WHERE group_id = ? AND user_id = ? "
            "ORDER BY id LIMIT 1",
            (gid, uid),
        ).fetchone()
        with self._conn:
            if row is None:
                self._conn.execute(
                    "INSERT INTO sleep_manage (group_id, user_id, sleep_time) VALUES (?, ?, ?)",
                    (gid, uid, _fmt(now)),
                )
                return timedelta()
            self._conn.execute(
                "UPDATE sleep_manage SET sleep_time = ? WHERE group_id = ? AND user_id = ?",
                (_fmt(now), gid, uid),
            )
        return now - datetime.fromisoformat(row[0])

    def _position(self, gid: int, now: datetime, since: datetime) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM sleep_manage WHERE group_id = ? "
            "AND sleep_time <= ? AND sleep_time >= ?",
            (gid, _fmt(now), _fmt(since)),
        ).fetchone()
        return row[0]

    def sleep(self, gid: int, uid: int, now: datetime) -> tuple[int, timedelta]:
        """Record a good-night; return (rank tonight, time awake)."""
        clock = timedelta(minutes=now.minute, seconds=now.second)
        if now.hour >= 21:
            since = now - timedelta(hours=now.hour - 21) - clock
        elif now.hour <= 3:
            since = now - timedelta(hours=3 + now.hour) - clock
        else:
            since = datetime.min
        awake = self._touch(gid, uid, now)
        return self._position(gid, now, since), awake

    def get_up(self, gid: int, uid: int, now: datetime) -> tuple[int, timedelta]:
        """Record a good-morning; return (rank today, time asleep)."""
        since = now - timedelta(hours=now.hour - 6, minutes=now.minute, seconds=now.second)
        asleep = self._touch(gid, uid, now)
        return self._position(gid, now, since), asleep


def time_duration(delta: timedelta) -> tuple[int, int, int]:
    """Split a duration into whole hours, minutes and seconds."""
    ns = (delta.days * 86400 + delta.seconds) * _NS_SECOND + delta.microseconds * 1000
    hour = _tdiv(ns, _NS_HOUR)
    minute = _tdiv(ns - hour * _NS_HOUR, _NS_MINUTE)
    second = _tdiv(ns - hour * _NS_HOUR - minute * _NS_MINUTE, _NS_SECOND)
    return hour, minute, second


def is_morning(hour: int) -> bool:
    return 6 <= hour <= 12


def is_evening(hour: int) -> bool:
    return hour >= 21 or hour <= 3


def _no_duration(h: int, m: int, s: int) -> bool:
    return (h == 0 and m == 0 and s == 0) or h >= 24


def good_morning_text(position: int, delta: timedelta) -> str:
    h, m, s = time_duration(delta)
    if _no_duration(h, m, s):
        return f"早安成功！你是今天第{position}个起床的"
    return f"早安成功！你的睡眠时长为{h}时{m}分{s}秒,你是今天第{position}个起床的"


def good_night_text(position: int, delta: timedelta) -> str:
    h, m, s = time_duration(delta)
    if _no_duration(h, m, s):
        return f"晚安成功！你是今天第{position}个睡觉的"
    return f"晚安成功！你的清醒时长为{h}时{m}分{s}秒,你是今天第{position}个睡觉的"