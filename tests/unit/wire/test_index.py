"""
Unit tests for index naming.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rrr_emitter.index import format_utc_date, index_name, parse_timestamp


def test_index_name_iso_utc():
    assert index_name("api-", "2023-06-15T10:00:00Z") == "api-2023.06.15"


def test_index_name_uses_utc_calendar_day():
    # 23:30 at UTC-05:00 is already the next day in UTC
    assert index_name("api-", "2023-06-15T23:30:00-05:00") == "api-2023.06.16"
    tz = timezone(timedelta(hours=9))
    assert index_name("x-", datetime(2023, 6, 16, 1, 0, tzinfo=tz)) == "x-2023.06.15"


def test_index_name_epoch_millis(t0):
    assert index_name("api-", t0) == "api-2023.06.15"
    assert format_utc_date(0) == "1970.01.01"


def test_naive_datetime_is_utc():
    assert parse_timestamp(datetime(2023, 1, 2, 3, 4)).tzinfo == timezone.utc
    assert format_utc_date(datetime(2023, 1, 2, 23, 59)) == "2023.01.02"


def test_index_name_is_deterministic():
    ts = "2024-02-29T00:00:00.123Z"
    assert index_name("swaggerstats-", ts) == index_name("swaggerstats-", ts) == "swaggerstats-2024.02.29"


@pytest.mark.parametrize("bad", [True, None, object()])
def test_parse_timestamp_rejects_unsupported_types(bad):
    with pytest.raises(TypeError):
        parse_timestamp(bad)


def test_parse_timestamp_rejects_garbage_string():
    with pytest.raises(ValueError):
        parse_timestamp("not a date")
