"""Canned replies: joke APIs, the keyword thesaurus and anime scene search results."""

from __future__ import annotations

import json
import math
import random
import struct
import urllib.request
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import lxml.etree
import lxml.html

SHADIAO_URL = "https://api.shadiao.pro"
CHP_URL = SHADIAO_URL + "/chp"
DU_URL = SHADIAO_URL + "/du"
PYQ_URL = SHADIAO_URL + "/pyq"
YDUANZI_URL = "http://www.yduanzi.com/duanzi/getduanzi"
CHAYI_URL = "https://api.lovelive.tools/api/SweetNothings/Web/0"
GANHAI_URL = "https://api.lovelive.tools/api/SweetNothings/Web/1"
ERGOFABULOUS_URL = "https://ergofabulous.org/luther/?"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)
SHADIAO_REFERER = SHADIAO_URL
YDUANZI_REFERER = "http://www.yduanzi.com/?utm_source=shadiao.app"
LOVELIVE_REFERER = "https://lovelive.tools/"

SHADIAO_COMMANDS = {"哄我": CHP_URL, "来碗毒鸡汤": DU_URL, "发个朋友圈": PYQ_URL}
SWEET_NOTHINGS = {"来碗绿茶": CHAYI_URL, "渣我": GANHAI_URL}

_ERGOFABULOUS_XPATH = '//main[@role="main"]/p[@class="larger"]/text()'


def _request(url: str, method: str = "GET", referer: str = "") -> bytes:
    headers = {"User-Agent": USER_AGENT}
    if referer:
        headers["Referer"] = referer
    req = urllib.request.Request(url, headers=headers, method=method)
    with urllib.request.urlopen(req, timeout=30) as resp:
        return resp.read()


def _lookup(data: str | bytes, *keys: str) -> str:
    """Read a dotted path from JSON text; empty when absent or unreadable."""
    try:
        value: Any = json.loads(data)
    except ValueError:
        return ""
    for key in keys:
        if not isinstance(value, Mapping):
            return ""
        value = value.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def parse_shadiao(data: str | bytes) -> str:
    """Text of a reply from the shadiao API."""
    return _lookup(data, "data", "text")


def parse_sweet_nothing(data: str | bytes) -> str:
    """Text of a reply from the sweet-nothings API."""
    return _lookup(data, "returnObj", "content")


def parse_duanzi(data: str | bytes) -> str:
    """Text of a joke, with HTML line breaks turned into newlines."""
    return _lookup(data, "duanzi").replace("<br>", "\n")


def fetch_shadiao(command: str, fetch: Callable[[str], bytes] | None = None) -> str:
    """Fetch and return the reply for one of the shadiao commands."""
    try:
        url = SHADIAO_COMMANDS[command]
    except KeyError:
        raise KeyError(f"unknown command: {command!r}") from None
    data = fetch(url) if fetch is not None else _request(url, "GET", SHADIAO_REFERER)
    return parse_shadiao(data)


def parse_ergofabulous(html: str | bytes) -> str:
    """The insult shown on the insult generator's page."""
    try:
        doc = lxml.html.fromstring(html)
    except (lxml.etree.ParserError, ValueError) as exc:
        raise ValueError(f"cannot parse page: {exc}") from exc
    found = doc.xpath(_ERGOFABULOUS_XPATH)
    if not found:
        raise ValueError("no insult on the page")
    return str(found[0])


def load_thesaurus(data: str | bytes) -> dict[str, list[str]]:
    """Read the keyword-to-replies table from JSON."""
    table = json.loads(data)
    if not isinstance(table, dict):
        raise ValueError("thesaurus must be a JSON object")
    result = {}
    for key, replies in table.items():
        if not isinstance(replies, list) or not all(isinstance(r, str) for r in replies):
            raise ValueError(f"replies of {key!r} must be a list of strings")
        result[key] = replies
    return result


def thesaurus_reply(
    table: Mapping[str, Sequence[str]], key: str, rng: random.Random | None = None
) -> str:
    """A random reply to an exact keyword."""
    replies = table[key]
    if not replies:
        raise ValueError(f"no replies for {key!r}")
    return (rng or random).choice(list(replies))


def _f32(x: float) -> float:
    return struct.unpack("f", struct.pack("f", x))[0]


def _format_float32(x: float) -> str:
    x = _f32(x)
    if not math.isfinite(x):
        return str(x)
    if x == int(x) and abs(x) < 1e21:
        return str(int(x))
    for precision in range(1, 10):
        text = f"{x:.{precision}g}"
        if _f32(float(text)) == x:
            return text
    return repr(x)


def _plain(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return _format_float32(value)
    return str(value)


def format_trace_result(result: Mapping[str, Any]) -> tuple[str, str, str] | None:
    """The hint, preview image and details of the best scene match, or None."""
    matches = result.get("result") or []
    if not matches:
        return None
    best = matches[0]
    similarity = float(best.get("similarity", 0) or 0)
    hint = "大概是这个？" if similarity < 80 else "我有把握是这个！"
    start = _f32(float(best.get("from", 0) or 0))
    end = _f32(float(best.get("to", 0) or 0))
    mf = int(start / 60)
    mt = int(end / 60)
    sf = _f32(start - mf * 60)
    st = _f32(end - mt * 60)
    title = ((best.get("anilist") or {}).get("title") or {}).get("native", "")
    text = (
        "\n"
        f"番剧名：{_plain(title)}\n"
        f"话数：{_plain(best.get('episode'))}\n"
        f"时间：{mf}:{_format_float32(sf)}-{mt}:{_format_float32(st)}"
    )
    return hint, str(best.get("image", "")), text