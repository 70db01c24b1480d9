"""Galgame CG and sticker picture sets: storage, lookup and site scraping."""

from __future__ import annotations

import random
import re
import sqlite3
import time
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from os import PathLike
from typing import Any
from urllib.parse import quote_plus

import lxml.etree
import lxml.html

WEB_URL = "https://www.ymgal.games"
WEB_PIC_URL = WEB_URL + "/co/picset/"
CG_TYPE = "Gal CG"
EMOTICON_TYPE = "其他"

_SEARCH_PREFIX = WEB_URL + "/search?type=picset&sort=default&category="
_PAGE_COUNT_XPATH = (
    "//*[@id='pager-box']/div/a[@class='icon item pager-next']"
    "/preceding-sibling::a[1]/text()"
)
_PICSET_XPATH = "//*[@id='picset-result-list']/ul/div/div[1]/a"
_TITLE_XPATH = "//meta[@name='name']"
_DESCRIPTION_XPATH = "//meta[@name='description']"
_COUNT_XPATH = "//div[@class='meta-info']/div[@class='meta-right']/span[2]/text()"
_CG_ITEM_XPATH = (
    "//*[@id='main-picset-warp']/div/div[2]/div/div[@class='swiper-wrapper']/div[{}]"
)
_EMOTICON_ITEM_XPATH = "//*[@id='main-picset-warp']/div/div[@class='stream-list']/div[{}]/img"
_NUMBER = re.compile(r"\d+")
_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)


@dataclass
class Ymgal:
    """One picture set: its id, title, kind, description and picture URLs."""

    id: int
    title: str = ""
    picture_type: str = ""
    picture_description: str = ""
    picture_list: str = ""

    @property
    def pictures(self) -> list[str]:
        """The picture URLs of the set."""
        return self.picture_list.split(",") if self.picture_list else []


_COLUMNS = "id, title, picture_type, picture_description, picture_list"


class YmgalDB:
    """SQLite store of picture sets."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS ymgal ("
                "id INTEGER PRIMARY KEY, title TEXT, picture_type TEXT, "
                "picture_description VARCHAR(1024), picture_list VARCHAR(20000))"
            )

    def __enter__(self) -> YmgalDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def insert_or_update(self, entry: Ymgal) -> None:
        """Store a picture set, replacing the one with the same id."""
        with self._conn:
            self._conn.execute(
                f"INSERT INTO ymgal ({_COLUMNS}) VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET title = excluded.title, "
                "picture_type = excluded.picture_type, "
                "picture_description = excluded.picture_description, "
                "picture_list = excluded.picture_list",
                (
                    entry.id,
                    entry.title,
                    entry.picture_type,
                    entry.picture_description,
                    entry.picture_list,
                ),
            )

    def get_by_id(self, id_: int | str) -> Ymgal | None:
        """The picture set with the given id, or None."""
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM ymgal WHERE id = ?", (int(id_),)
        ).fetchone()
        return None if row is None else Ymgal(*row)

    def _pick(self, where: str, params: tuple[Any, ...], rng: random.Random | None) -> Ymgal | None:
        (count,) = self._conn.execute(
            f"SELECT COUNT(*) FROM ymgal WHERE {where}", params
        ).fetchone()
        if count == 0:
            return None
        offset = (rng or random).randrange(count)
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM ymgal WHERE {where} ORDER BY id LIMIT 1 OFFSET ?",
            (*params, offset),
        ).fetchone()
        return Ymgal(*row)

    def random(self, picture_type: str, rng: random.Random | None = None) -> Ymgal | None:
        """A picture set of the given kind picked at random, or None."""
        return self._pick("picture_type = ?", (picture_type,), rng)

    def search(
        self, picture_type: str, key: str, rng: random.Random | None = None
    ) -> Ymgal | None:
        """A random set of the given kind whose title or description contains ``key``."""
        pattern = f"%{key}%"
        return self._pick(
            "picture_type = ? AND (picture_description LIKE ? OR title LIKE ?)",
            (picture_type, pattern, pattern),
            rng,
        )


def search_url(picture_type: str, page: int) -> str:
    """URL of one page of the site's listing for a kind of picture set."""
    if picture_type not in (CG_TYPE, EMOTICON_TYPE):
        raise ValueError(f"unknown picture type: {picture_type!r}")
    return _SEARCH_PREFIX + quote_plus(picture_type) + "&page=" + str(page)


def _parse(html: str | bytes) -> Any:
    try:
        return lxml.html.fromstring(html)
    except (lxml.etree.ParserError, ValueError) as exc:
        raise ValueError(f"cannot parse page: {exc}") from exc


def _one(doc: Any, xpath: str) -> Any:
    found = doc.xpath(xpath)
    if not found:
        raise ValueError(f"nothing found at {xpath}")
    return found[0]


def _attr(element: Any, index: int) -> str:
    values = list(element.attrib.values())
    if len(values) <= index:
        raise ValueError(f"element <{element.tag}> lacks attribute #{index}")
    return values[index]


def parse_page_count(html: str | bytes) -> int:
    """Number of the last page shown by a listing's pager."""
    return int(str(_one(_parse(html), _PAGE_COUNT_XPATH)))


def parse_picset_ids(html: str | bytes) -> list[str]:
    """Ids of the picture sets linked from a listing page."""
    ids = []
    for link in _parse(html).xpath(_PICSET_XPATH):
        m = _NUMBER.search(_attr(link, 0))
        ids.append(m.group(0) if m else "")
    return ids


def _parse_picset(pic_id: int | str, html: str | bytes, picture_type: str, item_xpath: str) -> Ymgal:
    ident = int(pic_id)
    doc = _parse(html)
    title = _attr(_one(doc, _TITLE_XPATH), 1)
    description = _attr(_one(doc, _DESCRIPTION_XPATH), 1)
    m = _NUMBER.search(str(_one(doc, _COUNT_XPATH)))
    if m is None:
        raise ValueError("picture count is missing")
    count = int(m.group(0))
    urls = [_attr(_one(doc, item_xpath.format(i)), 1) for i in range(1, count + 1)]
    return Ymgal(
        id=ident,
        title=title,
        picture_type=picture_type,
        picture_description=description,
        picture_list=",".join(urls),
    )


def parse_cg_page(pic_id: int | str, html: str | bytes) -> Ymgal:
    """Read a CG picture set from its page."""
    return _parse_picset(pic_id, html, CG_TYPE, _CG_ITEM_XPATH)


def parse_emoticon_page(pic_id: int | str, html: str | bytes) -> Ymgal:
    """Read a sticker picture set from its page."""
    return _parse_picset(pic_id, html, EMOTICON_TYPE, _EMOTICON_ITEM_XPATH)


def _fetch(url: str) -> bytes:
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    with urllib.request.urlopen(req, timeout=30) as resp:
        return resp.read()


def update_pictures(
    db: YmgalDB,
    fetch: Callable[[str], str | bytes] | None = None,
    delay: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Crawl the site for picture sets newer than those stored; return how many were added."""
    fetch = fetch or _fetch
    kinds = (
        (CG_TYPE, parse_cg_page),
        (EMOTICON_TYPE, parse_emoticon_page),
    )
    page_counts = {kind: parse_page_count(fetch(search_url(kind, 1))) for kind, _ in kinds}
    ids: dict[str, list[str]] = {}
    for kind, _ in kinds:
        ids[kind] = []
        for page in range(1, page_counts[kind] + 1):
            ids[kind].extend(parse_picset_ids(fetch(search_url(kind, page))))
            sleep(delay)
    stored = 0
    for kind, parser in kinds:
        for pic_id in reversed(ids[kind]):
            current = db.get_by_id(pic_id)
            if current is not None and current.picture_list:
                break
            db.insert_or_update(parser(pic_id, fetch(WEB_PIC_URL + pic_id)))
            stored += 1
            sleep(delay)
    return stored