"""Daily sign-in and score bookkeeping."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from os import PathLike

LEVEL_ARRAY = (0, 1, 2, 5, 10, 20, 35, 55, 75, 100, 120)
SCORE_MAX = 120
SIGNIN_MAX = 1
SIGNIN_REWARD = 1
BACKGROUND_URL = "https://img.moehu.org/pic.php?id=pc"


@dataclass
class SignIn:
    """A user's sign-in record."""

    uid: int
    count: int
    updated_at: datetime


@dataclass
class SignInResult:
    """Outcome of one sign-in attempt."""

    uid: int
    already_signed: bool
    score: int
    level: int
    next_level_score: int
    hour_word: str
    date_word: str
    added: int = 0
    capped: bool = False


def _fmt(t: datetime) -> str:
    return t.isoformat(sep=" ", timespec="microseconds")


class ScoreDB:
    """SQLite store for scores and sign-in counts."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self._conn = sqlite3.connect(str(path))
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS score ("
                "uid INTEGER PRIMARY KEY, score INTEGER NOT NULL DEFAULT 0)"
            )
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS sign_in ("
                "uid INTEGER PRIMARY KEY, count INTEGER NOT NULL DEFAULT 0, "
                "updated_at TEXT)"
            )

    def __enter__(self) -> ScoreDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def get_score(self, uid: int) -> int:
        """Return the user's score, creating a zero record if missing."""
        row = self._conn.execute("SELECT score FROM score WHERE uid = ?", (uid,)).fetchone()
        if row is None:
            with self._conn:
                self._conn.execute("INSERT INTO score (uid, score) VALUES (?, 0)", (uid,))
            return 0
        return row[0]

    def set_score(self, uid: int, score: int) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO score (uid, score) VALUES (?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET score = excluded.score",
                (uid, score),
            )

    def get_sign_in(self, uid: int) -> SignIn:
        """Return the user's sign-in record, creating it if missing."""
        row = self._conn.execute(
            "SELECT count, updated_at FROM sign_in WHERE uid = ?", (uid,)
        ).fetchone()
        if row is None:
            created = datetime.now()
            with self._conn:
                self._conn.execute(
                    "INSERT INTO sign_in (uid, count, updated_at) VALUES (?, 0, ?)",
                    (uid, _fmt(created)),
                )
            return SignIn(uid, 0, created)
        return SignIn(uid, row[0], datetime.fromisoformat(row[1]))

    def set_sign_in_count(self, uid: int, count: int, now: datetime) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO sign_in (uid, count, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET count = excluded.count, "
                "updated_at = excluded.updated_at",
                (uid, count, _fmt(now)),
            )

    def top_scores(self, n: int) -> list[tuple[int, int]]:
        """Return up to ``n`` (uid, score) pairs, highest score first."""
        rows = self._conn.execute(
            "SELECT uid, score FROM score ORDER BY score DESC LIMIT ?", (n,)
        ).fetchall()
        return [(uid, score) for uid, score in rows]


def get_hour_word(t: datetime) -> str:
    h = t.hour
    if 6 <= h < 12:
        return "早上好"
    if 12 <= h < 14:
        return "中午好"
    if 14 <= h < 19:
        return "下午好"
    if 19 <= h < 24:
        return "晚上好"
    if 0 <= h < 6:
        return "凌晨好"
    return ""


def get_level(count: int) -> int:
    for level, threshold in enumerate(LEVEL_ARRAY):
        if count == threshold:
            return level
        if count < threshold:
            return level - 1
    return -1


def next_level_score(level: int) -> int:
    if level < len(LEVEL_ARRAY) - 1:
        return LEVEL_ARRAY[level + 1]
    return SCORE_MAX


def sign_in(db: ScoreDB, uid: int, now: datetime) -> SignInResult:
    """Sign a user in for the day of ``now`` and award the daily reward."""
    today = now.strftime("%Y%m%d")
    record = db.get_sign_in(uid)
    hour_word = get_hour_word(now)
    date_word = now.strftime("%m/%d")

    if record.count >= SIGNIN_MAX and record.updated_at.strftime("%Y%m%d") == today:
        score = db.get_score(uid)
        level = get_level(score)
        return SignInResult(
            uid=uid,
            already_signed=True,
            score=score,
            level=level,
            next_level_score=next_level_score(level),
            hour_word=hour_word,
            date_word=date_word,
        )

    if record.updated_at.strftime("%Y%m%d") != today:
        db.set_sign_in_count(uid, 0, now)
    db.set_sign_in_count(uid, record.count + 1, now)

    score = db.get_score(uid) + SIGNIN_REWARD
    capped = score > SCORE_MAX
    if capped:
        score = SCORE_MAX
    db.set_score(uid, score)
    level = get_level(score)
    return SignInResult(
        uid=uid,
        already_signed=False,
        score=score,
        level=level,
        next_level_score=next_level_score(level),
        hour_word=hour_word,
        date_word=date_word,
        added=SIGNIN_REWARD,
        capped=capped,
    )