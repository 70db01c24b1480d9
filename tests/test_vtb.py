import random

import pytest

from zeroplugins.vtb import (
    FirstCategory,
    ThirdCategory,
    VtbDB,
    escape_record_url,
    record_filename,
    unescape_unicode,
)

LIST = [
    {"name": "Alice", "uid": "u1", "description": "d1", "icon_path": "i1.png"},
    {"name": "Bob", "uid": "u2", "description": "d2", "icon_path": "i2.png"},
]

PAGE = {
    "data": {
        "voices": [
            {
                "categoryName": "Greetings",
                "author": "auth",
                "categoryDescription": {"zh-CN": "desc"},
                "voiceList": [
                    {"name": "Hello", "path": "voice/hello.mp3", "author": "a",
                     "description": {"zh-CN": "hi"}},
                    {"name": "Bye", "path": "voice/bye.mp3", "author": "b",
                     "description": {"zh-CN": "bye"}},
                ],
            }
        ]
    }
}


@pytest.fixture
def db(tmp_path):
    with VtbDB(tmp_path / "vtb.db") as d:
        yield d


def test_store_list_returns_uids_and_menu(db):
    assert db.store_vtb_list(LIST) == ["u1", "u2"]
    assert db.first_category_message() == "请选择一个vtb并发送序号:\n0. Alice\n1. Bob\n"


def test_store_list_updates_existing(db):
    db.store_vtb_list(LIST)
    db.store_vtb_list([{"name": "Alicia", "uid": "u1"}])
    fc = db.first_category_by_uid("u1")
    assert fc.name == "Alicia"
    assert fc.index == 0
    assert db.first_category_message().count("\n") == 3


def test_first_category_by_uid_missing(db):
    assert db.first_category_by_uid("nobody") is None


def test_second_and_third_menus(db):
    db.store_vtb_list(LIST)
    db.store_vtb_page("u1", PAGE)
    assert db.second_category_message(0) == "请选择一个语录类别并发送序号:\n0. Greetings\n"
    assert db.third_category_message(0, 0) == "请选择一个语录并发送序号:\n0. Hello\n1. Bye\n"
    assert db.second_category_message(1) == ""
    assert db.third_category_message(0, 5) == ""


def test_get_third_category(db):
    db.store_vtb_list(LIST)
    db.store_vtb_page("u1", PAGE)
    tc = db.get_third_category(0, 0, 1)
    assert isinstance(tc, ThirdCategory)
    assert (tc.name, tc.path, tc.description, tc.first_uid) == (
        "Bye", "voice/bye.mp3", "bye", "u1")
    assert db.get_third_category(0, 0, 9) is None


def test_store_page_is_idempotent(db):
    db.store_vtb_list(LIST)
    db.store_vtb_page("u1", PAGE)
    db.store_vtb_page("u1", PAGE)
    assert db.third_category_message(0, 0).count("\n") == 3


def test_random_vtb(db):
    assert db.random_vtb(random.Random(1)) is None
    db.store_vtb_list(LIST)
    db.store_vtb_page("u1", PAGE)
    picked = {db.random_vtb(random.Random(s)).name for s in range(30)}
    assert picked <= {"Hello", "Bye"}
    assert picked


def test_first_category_fields(db):
    db.store_vtb_list(LIST)
    fc = db.first_category_by_uid("u2")
    assert isinstance(fc, FirstCategory)
    assert (fc.index, fc.name, fc.description, fc.icon_path) == (1, "Bob", "d2", "i2.png")


def test_escape_record_url():
    assert escape_record_url("https://example.com/voice/a b.mp3") == (
        "https://example.com/voice/a%20b.mp3")
    assert escape_record_url("noslash.mp3") == "noslash.mp3"
    plain = "https://example.com/voice/abc.mp3"
    assert escape_record_url(plain) == plain


def test_record_filename():
    assert record_filename(1, 2, 3, "https://example.com/x/y.mp3") == "1-2-3.mp3"
    assert record_filename(0, 0, 0, "https://example.com/x.d/y") == "0-0-0"


def test_unescape_unicode():
    assert unescape_unicode("\\u4f60") == "你"
    assert unescape_unicode('{"a": "b"}') == '{"a": "b"}'


def test_unescape_unicode_invalid():
    with pytest.raises(ValueError):
        unescape_unicode("\\uzz")
    with pytest.raises(ValueError):
        unescape_unicode("\\ud83d")