"""Catalogue of VTuber voice clips: storage, browsing and refresh."""

from __future__ import annotations

import json
import random
import re
import sqlite3
import urllib.request
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from os import PathLike
from typing import Any
from urllib.parse import quote_plus

VTB_LIST_URL = "https://vtbkeyboard.moe/api/get_vtb_list"
VTB_PAGE_URL = "https://vtbkeyboard.moe/api/get_vtb_page?uid="
_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)

_LAST_SEGMENT = re.compile(r".*/(.*)")
_UNICODE_ESCAPE = re.compile(r"\\u([0-9a-fA-F]{4})")
_BAD_UNICODE_ESCAPE = re.compile(r"\\u(?![0-9a-fA-F]{4})")


@dataclass
class FirstCategory:
    """A VTuber."""

    index: int = 0
    name: str = ""
    uid: str = ""
    description: str = ""
    icon_path: str = ""
    id: int = 0


@dataclass
class SecondCategory:
    """A group of clips of one VTuber."""

    index: int = 0
    first_uid: str = ""
    name: str = ""
    author: str = ""
    description: str = ""
    id: int = 0


@dataclass
class ThirdCategory:
    """A single voice clip."""

    index: int = 0
    second_index: int = 0
    first_uid: str = ""
    name: str = ""
    path: str = ""
    author: str = ""
    description: str = ""
    id: int = 0


_FIRST_COLS = (
    "first_category_index, first_category_name, first_category_uid, "
    "first_category_description, first_category_icon_path, id"
)
_THIRD_COLS = (
    "third_category_index, second_category_index, first_category_uid, "
    "third_category_name, third_category_path, third_category_author, "
    "third_category_description, id"
)


def _text(value: Any) -> str:
    """Render a JSON value as a plain string, empty when missing."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def _get(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


class VtbDB:
    """SQLite store of VTubers, clip groups and clips."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self._conn = sqlite3.connect(str(path))
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS first_category ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "first_category_index INTEGER, first_category_name TEXT, "
                "first_category_uid TEXT, first_category_description TEXT, "
                "first_category_icon_path TEXT)"
            )
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS second_category ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "second_category_index INTEGER, first_category_uid TEXT, "
                "second_category_name TEXT, second_category_author TEXT, "
                "second_category_description TEXT)"
            )
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS third_category ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "third_category_index INTEGER, second_category_index INTEGER, "
                "first_category_uid TEXT, third_category_name TEXT, "
                "third_category_path TEXT, third_category_author TEXT, "
                "third_category_description TEXT)"
            )

    def __enter__(self) -> VtbDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def _first_uid(self, first_index: int) -> str:
        row = self._conn.execute(
            "SELECT first_category_uid FROM first_category "
            "WHERE first_category_index = ? ORDER BY id LIMIT 1",
            (first_index,),
        ).fetchone()
        return "" if row is None else row[0]

    def first_category_message(self) -> str:
        """The numbered menu of every VTuber."""
        rows = self._conn.execute(
            "SELECT first_category_index, first_category_name FROM first_category ORDER BY id"
        ).fetchall()
        return "请选择一个vtb并发送序号:\n" + "".join(f"{i}. {n}\n" for i, n in rows)

    def second_category_message(self, first_index: int) -> str:
        """The numbered menu of clip groups of one VTuber, or "" if none."""
        rows = self._conn.execute(
            "SELECT second_category_index, second_category_name FROM second_category "
            "WHERE first_category_uid = ? ORDER BY id",
            (self._first_uid(first_index),),
        ).fetchall()
        if not rows:
            return ""
        return "请选择一个语录类别并发送序号:\n" + "".join(f"{i}. {n}\n" for i, n in rows)

    def third_category_message(self, first_index: int, second_index: int) -> str:
        """The numbered menu of clips in one group, or "" if none."""
        rows = self._conn.execute(
            "SELECT third_category_index, third_category_name FROM third_category "
            "WHERE first_category_uid = ? AND second_category_index = ? ORDER BY id",
            (self._first_uid(first_index), second_index),
        ).fetchall()
        if not rows:
            return ""
        return "请选择一个语录并发送序号:\n" + "".join(f"{i}. {n}\n" for i, n in rows)

    def get_third_category(
        self, first_index: int, second_index: int, third_index: int
    ) -> ThirdCategory | None:
        """The clip at the given menu position, or None."""
        row = self._conn.execute(
            f"SELECT {_THIRD_COLS} FROM third_category WHERE first_category_uid = ? "
            "AND second_category_index = ? AND third_category_index = ? ORDER BY id LIMIT 1",
            (self._first_uid(first_index), second_index, third_index),
        ).fetchone()
        return None if row is None else ThirdCategory(*row)

    def random_vtb(self, rng: random.Random | None = None) -> ThirdCategory | None:
        """A clip picked at random, or None when there are none."""
        (count,) = self._conn.execute("SELECT COUNT(*) FROM third_category").fetchone()
        if count == 0:
            return None
        offset = (rng or random).randrange(count)
        row = self._conn.execute(
            f"SELECT {_THIRD_COLS} FROM third_category ORDER BY id LIMIT 1 OFFSET ?",
            (offset,),
        ).fetchone()
        return ThirdCategory(*row)

    def first_category_by_uid(self, uid: str) -> FirstCategory | None:
        row = self._conn.execute(
            f"SELECT {_FIRST_COLS} FROM first_category WHERE first_category_uid = ? "
            "ORDER BY id LIMIT 1",
            (uid,),
        ).fetchone()
        return None if row is None else FirstCategory(*row)

    def store_vtb_list(self, items: Iterable[Any]) -> list[str]:
        """Insert or update VTubers from the list API reply; return their uids."""
        uids = []
        with self._conn:
            for index, item in enumerate(_list(items)):
                name = _text(_get(item, "name"))
                description = _text(_get(item, "description"))
                icon = _text(_get(item, "icon_path"))
                uid = _text(_get(item, "uid"))
                exists = self._conn.execute(
                    "SELECT 1 FROM first_category WHERE first_category_uid = ? LIMIT 1", (uid,)
                ).fetchone()
                if exists is None:
                    self._conn.execute(
                        "INSERT INTO first_category (first_category_index, first_category_name, "
                        "first_category_uid, first_category_description, first_category_icon_path) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (index, name, uid, description, icon),
                    )
                else:
                    self._conn.execute(
                        "UPDATE first_category SET first_category_index = ?, "
                        "first_category_name = ?, first_category_description = ?, "
                        "first_category_icon_path = ? WHERE first_category_uid = ?",
                        (index, name, description, icon, uid),
                    )
                uids.append(uid)
        return uids

    def store_vtb_page(self, uid: str, page: Any) -> None:
        """Insert or update the clip groups and clips of one VTuber."""
        with self._conn:
            for second_index, voice in enumerate(_list(_get(page, "data", "voices"))):
                name = _text(_get(voice, "categoryName"))
                author = _text(_get(voice, "author"))
                description = _text(_get(voice, "categoryDescription", "zh-CN"))
                exists = self._conn.execute(
                    "SELECT 1 FROM second_category WHERE first_category_uid = ? "
                    "AND second_category_index = ? LIMIT 1",
                    (uid, second_index),
                ).fetchone()
                if exists is None:
                    self._conn.execute(
                        "INSERT INTO second_category (second_category_index, first_category_uid, "
                        "second_category_name, second_category_author, "
                        "second_category_description) VALUES (?, ?, ?, ?, ?)",
                        (second_index, uid, name, author, description),
                    )
                else:
                    self._conn.execute(
                        "UPDATE second_category SET second_category_name = ?, "
                        "second_category_author = ?, second_category_description = ? "
                        "WHERE first_category_uid = ? AND second_category_index = ?",
                        (name, author, description, uid, second_index),
                    )
                for third_index, clip in enumerate(_list(_get(voice, "voiceList"))):
                    self._store_clip(uid, second_index, third_index, clip)

    def _store_clip(self, uid: str, second_index: int, third_index: int, clip: Any) -> None:
        name = _text(_get(clip, "name"))
        description = _text(_get(clip, "description", "zh-CN"))
        path = _text(_get(clip, "path"))
        author = _text(_get(clip, "author"))
        key = (uid, second_index, third_index)
        exists = self._conn.execute(
            "SELECT 1 FROM third_category WHERE first_category_uid = ? "
            "AND second_category_index = ? AND third_category_index = ? LIMIT 1",
            key,
        ).fetchone()
        if exists is None:
            self._conn.execute(
                "INSERT INTO third_category (third_category_index, second_category_index, "
                "first_category_uid, third_category_name, third_category_path, "
                "third_category_author, third_category_description) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (third_index, second_index, uid, name, path, author, description),
            )
        else:
            self._conn.execute(
                "UPDATE third_category SET third_category_name = ?, "
                "third_category_description = ?, third_category_path = ?, "
                "third_category_author = ? WHERE first_category_uid = ? "
                "AND second_category_index = ? AND third_category_index = ?",
                (name, description, path, author, *key),
            )

    def fetch_vtb_list(self) -> list[str]:
        """Download the VTuber list and store it; return the uids."""
        return self.store_vtb_list(json.loads(unescape_unicode(_download(VTB_LIST_URL))))

    def fetch_vtb(self, uid: str) -> None:
        """Download the clip page of one VTuber and store it."""
        self.store_vtb_page(uid, json.loads(unescape_unicode(_download(VTB_PAGE_URL + uid))))


def _download(url: str) -> str:
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    with urllib.request.urlopen(req, timeout=30) as resp:
        return resp.read().decode("utf-8")


def unescape_unicode(text: str) -> str:
    """Turn literal ``\\uXXXX`` sequences into the characters they name."""
    if _BAD_UNICODE_ESCAPE.search(text):
        raise ValueError("invalid \\u escape")

    def repl(m: re.Match[str]) -> str:
        code = int(m.group(1), 16)
        if 0xD800 <= code <= 0xDFFF:
            raise ValueError("surrogate in \\u escape")
        return chr(code)

    return _UNICODE_ESCAPE.sub(repl, text)


def escape_record_url(url: str) -> str:
    """Percent-encode the last path segment of a clip URL."""
    m = _LAST_SEGMENT.match(url)
    if m is None:
        return url
    segment = m.group(1)
    url = url.replace(segment, quote_plus(segment, safe=""))
    return url.replace("+", "%20")


def record_filename(first: int, second: int, third: int, url: str) -> str:
    """Cache file name of a clip, keeping the URL's extension."""
    ext = ""
    for i in range(len(url) - 1, -1, -1):
        if url[i] == "/":
            break
        if url[i] == ".":
            ext = url[i:]
            break
    return f"{first}-{second}-{third}{ext}"