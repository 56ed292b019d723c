from datetime import date, datetime

from habitlite.dates import (
    add_months,
    date_key,
    daterange,
    days_between,
    is_weekend,
    month_id,
    months_between,
    normalize_date,
    weekday_key,
    weeks_between,
    weeks_in_month,
)


def test_normalize_accepts_dates_keys_and_timestamps():
    assert normalize_date(date(2024, 5, 6)) == date(2024, 5, 6)
    assert normalize_date(datetime(2024, 5, 6, 23, 59)) == date(2024, 5, 6)
    assert normalize_date("2024-05-06") == date(2024, 5, 6)
    assert normalize_date("2024-05-06T10:30:00Z") == date(2024, 5, 6)


def test_normalize_rejects_garbage():
    assert normalize_date(None) is None
    assert normalize_date("") is None
    assert normalize_date("not a date") is None
    assert normalize_date("2024-02-30") is None
    assert normalize_date(42) is None


def test_date_key_is_zero_padded():
    assert date_key(date(2024, 1, 5)) == "2024-01-05"
    assert date_key(datetime(2024, 12, 31, 8, 0)) == "2024-12-31"
    assert date_key("bogus") is None


def test_weekday_tokens_start_on_sunday():
    assert weekday_key(date(2024, 5, 5)) == "sun"
    assert weekday_key(date(2024, 5, 6)) == "mon"
    assert weekday_key(date(2024, 5, 11)) == "sat"


def test_weekend_is_saturday_and_sunday():
    assert is_weekend(date(2024, 5, 4))
    assert is_weekend(date(2024, 5, 5))
    assert not is_weekend(date(2024, 5, 6))
    assert not is_weekend(date(2024, 5, 10))


def test_differences():
    assert days_between(date(2024, 1, 1), date(2024, 1, 8)) == 7
    assert weeks_between(date(2024, 5, 6), date(2024, 5, 12)) == 0
    assert weeks_between(date(2024, 5, 6), date(2024, 5, 13)) == 1
    assert months_between(date(2023, 12, 31), date(2024, 1, 1)) == 1
    assert months_between(date(2024, 1, 31), date(2024, 3, 1)) == 2


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 1, 15), -1) == date(2023, 12, 15)


def test_month_helpers():
    assert month_id(date(2024, 3, 17)) == "2024-03"
    # June 2024 starts on a Saturday: 6 Sunday-start rows
    assert weeks_in_month(date(2024, 6, 10)) == 6
    # February 2015 starts on a Sunday and has 28 days
    assert weeks_in_month(date(2015, 2, 1)) == 4


def test_daterange_is_inclusive():
    days = daterange(date(2024, 2, 27), date(2024, 3, 1))
    assert [d.day for d in days] == [27, 28, 29, 1]
    assert daterange(date(2024, 3, 2), date(2024, 3, 1)) == []
