from datetime import date, datetime

import pytest

from utils.dates import as_date, date_key, days_back, month_matrix, parse_date_key


def test_date_key_is_iso_day():
    assert date_key(date(2024, 2, 9)) == "2024-02-09"
    assert date_key(datetime(2024, 2, 9, 23, 59)) == "2024-02-09"


def test_parse_date_key_rejects_garbage():
    assert parse_date_key("2024-02-29") == date(2024, 2, 29)
    assert parse_date_key("2023-02-29") is None
    assert parse_date_key("2024-2-9") is None
    assert parse_date_key(None) is None

    with pytest.raises(ValueError):
        as_date("ayer")


def test_days_back_crosses_leap_day():
    assert days_back(date(2024, 3, 2), 3) == ["2024-03-02", "2024-03-01", "2024-02-29"]


def test_month_matrix_is_monday_first():
    weeks = month_matrix(2024, 2)

    assert all(len(w) == 7 for w in weeks)
    assert weeks[0][:3] == [None, None, None]
    assert weeks[0][3] == date(2024, 2, 1)
    assert weeks[-1][3] == date(2024, 2, 29)
    assert weeks[-1][4:] == [None, None, None]
