import random

import pytest

from zeroplugins.replies import (
    DU_URL,
    SHADIAO_COMMANDS,
    fetch_shadiao,
    format_trace_result,
    load_thesaurus,
    parse_duanzi,
    parse_ergofabulous,
    parse_shadiao,
    parse_sweet_nothing,
    thesaurus_reply,
)


def test_parse_shadiao():
    assert parse_shadiao('{"data": {"text": "hello"}}') == "hello"


def test_parse_shadiao_missing_or_invalid_is_empty():
    assert parse_shadiao('{"data": {}}') == ""
    assert parse_shadiao("not json") == ""


def test_parse_sweet_nothing():
    assert parse_sweet_nothing(b'{"returnObj": {"content": "sweet"}}') == "sweet"


def test_parse_duanzi_line_breaks():
    assert parse_duanzi('{"duanzi": "a<br>b<br>c"}') == "a\nb\nc"


def test_fetch_shadiao_uses_command_url():
    calls = []

    def fetch(url):
        calls.append(url)
        return b'{"data": {"text": "poison"}}'

    assert fetch_shadiao("来碗毒鸡汤", fetch=fetch) == "poison"
    assert calls == [DU_URL]
    assert set(SHADIAO_COMMANDS) == {"哄我", "来碗毒鸡汤", "发个朋友圈"}


def test_fetch_shadiao_unknown_command():
    with pytest.raises(KeyError):
        fetch_shadiao("别的", fetch=lambda url: b"{}")


def test_parse_ergofabulous():
    html = (
        '<html><body><main role="main"><p class="small">no</p>'
        '<p class="larger">Thou art a fool.</p></main></body></html>'
    )
    assert parse_ergofabulous(html) == "Thou art a fool."


def test_parse_ergofabulous_missing():
    with pytest.raises(ValueError):
        parse_ergofabulous("<html><body><p>x</p></body></html>")


def test_thesaurus_round_trip():
    table = load_thesaurus('{"你好": ["嗨", "你也好"], "晚安": ["好梦"]}')
    assert table == {"你好": ["嗨", "你也好"], "晚安": ["好梦"]}
    rng = random.Random(1)
    for _ in range(10):
        assert thesaurus_reply(table, "你好", rng) in table["你好"]
    assert thesaurus_reply(table, "晚安") == "好梦"


def test_thesaurus_errors():
    with pytest.raises(ValueError):
        load_thesaurus('["a"]')
    with pytest.raises(ValueError):
        load_thesaurus('{"a": "b"}')
    with pytest.raises(KeyError):
        thesaurus_reply({"a": ["b"]}, "c")


def test_format_trace_result_confident():
    result = {
        "result": [
            {
                "similarity": 95,
                "from": 60,
                "to": 125,
                "episode": 3,
                "image": "https://example.com/p.jpg",
                "anilist": {"title": {"native": "番"}},
            }
        ]
    }
    hint, image, text = format_trace_result(result)
    assert hint == "我有把握是这个！"
    assert image == "https://example.com/p.jpg"
    assert text == "\n番剧名：番\n话数：3\n时间：1:0-2:5"


def test_format_trace_result_unsure_and_fraction():
    result = {
        "result": [
            {
                "similarity": 50,
                "from": 75.5,
                "to": 76.5,
                "episode": 1,
                "image": "img",
                "anilist": {"title": {"native": "x"}},
            }
        ]
    }
    hint, _, text = format_trace_result(result)
    assert hint == "大概是这个？"
    assert text.endswith("时间：1:15.5-1:16.5")


def test_format_trace_result_empty():
    assert format_trace_result({"result": []}) is None