import pytest

from merchant_events.core.calendar import CalendarTime, Season, DAYS_PER_SEASON, DAYS_PER_YEAR


def test_next_day_within_season():
    assert CalendarTime(1, Season.SPRING, 5).next_day() == CalendarTime(1, Season.SPRING, 6)


def test_next_day_rolls_into_next_season():
    assert CalendarTime(1, Season.AUTUMN, DAYS_PER_SEASON).next_day() == CalendarTime(1, Season.WINTER, 1)


def test_next_day_rolls_into_next_year():
    assert CalendarTime(3, Season.WINTER, DAYS_PER_SEASON).next_day() == CalendarTime(4, Season.SPRING, 1)


def test_ordinal_and_plus_days_agree_with_next_day():
    time = CalendarTime(1, Season.SUMMER, 28)
    walked = time
    for _ in range(200):
        walked = walked.next_day()
    assert time.plus_days(200) == walked
    assert walked.ordinal() - time.ordinal() == 200
    assert CalendarTime.from_ordinal(walked.ordinal()) == walked


def test_first_day_is_ordinal_zero():
    assert CalendarTime().ordinal() == 0
    assert CalendarTime(2, Season.SPRING, 1).ordinal() == DAYS_PER_YEAR


def test_parse():
    assert CalendarTime.parse("1:autumn:12") == CalendarTime(1, Season.AUTUMN, 12)
    with pytest.raises(ValueError):
        CalendarTime.parse("1:autumn")
    with pytest.raises(ValueError):
        CalendarTime.parse("1:monsoon:3")
    with pytest.raises(ValueError):
        CalendarTime.parse("1:winter:31")
