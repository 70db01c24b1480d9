from datetime import datetime, timedelta

import pytest

from zeroplugins.sleep import (
    SleepDB,
    good_morning_text,
    good_night_text,
    is_evening,
    is_morning,
    time_duration,
)


@pytest.fixture
def db(tmp_path):
    database = SleepDB(tmp_path / "manage.db")
    yield database
    database.close()


def test_time_duration_split():
    assert time_duration(timedelta(hours=1, minutes=2, seconds=3, microseconds=999)) == (1, 2, 3)


def test_time_duration_zero():
    assert time_duration(timedelta()) == (0, 0, 0)


@pytest.mark.parametrize("hour, expected", [(5, False), (6, True), (12, True), (13, False)])
def test_is_morning(hour, expected):
    assert is_morning(hour) is expected


@pytest.mark.parametrize("hour, expected", [(20, False), (21, True), (3, True), (4, False)])
def test_is_evening(hour, expected):
    assert is_evening(hour) is expected


def test_morning_text_short_forms():
    assert good_morning_text(1, timedelta()) == "早安成功！你是今天第1个起床的"
    assert good_morning_text(2, timedelta(hours=30)) == "早安成功！你是今天第2个起床的"


def test_morning_text_long_form():
    text = good_morning_text(3, timedelta(hours=7, minutes=8, seconds=9))
    assert text == "早安成功！你的睡眠时长为7时8分9秒,你是今天第3个起床的"


def test_night_texts():
    assert good_night_text(4, timedelta()) == "晚安成功！你是今天第4个睡觉的"
    text = good_night_text(5, timedelta(hours=10, minutes=11, seconds=12))
    assert text == "晚安成功！你的清醒时长为10时11分12秒,你是今天第5个睡觉的"


def test_sleep_positions_and_awake_time(db):
    night = datetime(2022, 10, 5, 22, 0)
    p1, awake1 = db.sleep(1, 10, night)
    assert p1 == 1
    assert awake1 == timedelta()
    p2, _ = db.sleep(1, 11, night + timedelta(minutes=30))
    assert p2 == p1 + 1
    p_other, _ = db.sleep(2, 12, night + timedelta(minutes=40))
    assert p_other == p1


def test_get_up_reports_sleep_duration(db):
    night = datetime(2022, 10, 5, 23, 15)
    db.sleep(1, 10, night)
    morning = datetime(2022, 10, 6, 7, 45, 30)
    position, asleep = db.get_up(1, 10, morning)
    assert asleep == morning - night
    assert position == 1
    second_pos, _ = db.get_up(1, 11, morning + timedelta(minutes=5))
    assert second_pos == position + 1


def test_get_up_excludes_earlier_entries(db):
    db.get_up(1, 10, datetime(2022, 10, 5, 8))
    position, asleep = db.get_up(1, 11, datetime(2022, 10, 6, 8))
    assert position == 1
    assert asleep == timedelta()