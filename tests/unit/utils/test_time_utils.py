from datetime import datetime, timedelta, timezone

from hydrowatch.utils.time import coerce_datetime, iso_now, to_api_timestamp, utc_now


def test_coerce_datetime_parses_z_suffix():
    dt = coerce_datetime("2026-01-01T00:00:00Z")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.isoformat().endswith("+00:00")


def test_coerce_datetime_parses_offset():
    dt = coerce_datetime("2026-01-01T02:00:00+02:00")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.hour == 0


def test_coerce_datetime_parses_naive_as_utc():
    dt = coerce_datetime("2026-01-01T00:00:00")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)

    time_diff = utc_now() - dt
    assert isinstance(time_diff, timedelta)


def test_coerce_datetime_parses_backend_millis_and_epoch():
    assert coerce_datetime("2026-01-15T10:30:00.123Z") == datetime(2026, 1, 15, 10, 30, 0, 123000, tzinfo=timezone.utc)
    assert coerce_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_coerce_datetime_rejects_garbage():
    assert coerce_datetime(None) is None
    assert coerce_datetime("yesterday") is None
    assert coerce_datetime(True) is None
    assert coerce_datetime([2026, 1, 1]) is None


def test_to_api_timestamp_uses_millis_and_z():
    aware = datetime(2026, 1, 15, 12, 0, 0, 987654, tzinfo=timezone.utc)
    assert to_api_timestamp(aware) == "2026-01-15T12:00:00.987Z"

    offset = datetime(2026, 1, 15, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_api_timestamp(offset) == "2026-01-15T12:00:00.000Z"

    assert to_api_timestamp(datetime(2026, 1, 15, 12, 0)) == "2026-01-15T12:00:00.000Z"


def test_iso_now_is_timezone_aware():
    assert iso_now().endswith("+00:00")
    assert len(iso_now(timespec="seconds")) == len("2026-01-15T12:00:00+00:00")
