"""Tests for date, time and UTC offset values."""

from datetime import date, datetime, timedelta, timezone

import pytest

from vcard4.date_time import (
    Date,
    DateTime,
    Time,
    UtcOffset,
    format_date_and_or_time,
    parse_date,
    parse_date_and_or_time,
    parse_date_time,
    parse_time,
    parse_timestamp,
    parse_utc_offset,
)
from vcard4.errors import InvalidValueError


@pytest.mark.parametrize("text, expected, canonical", [
    ("19850412", Date(1985, 4, 12), "19850412"),
    ("1985-04-12", Date(1985, 4, 12), "19850412"),
    ("1985-04", Date(1985, 4), "1985-04"),
    ("1985", Date(1985), "1985"),
    ("--0412", Date(None, 4, 12), "--0412"),
    ("--04-12", Date(None, 4, 12), "--0412"),
    ("--04", Date(None, 4), "--04"),
    ("---12", Date(None, None, 12), "---12"),
])
def test_parse_date_forms(text, expected, canonical):
    """Test every date form and its canonical basic rendering."""
    value = parse_date(text)

    assert value == expected
    assert str(value) == canonical


@pytest.mark.parametrize("text", ["19850230", "1985-13", "--0230", "85", "1985-4-12", ""])
def test_invalid_dates_are_rejected(text):
    with pytest.raises(InvalidValueError):
        parse_date(text)


def test_february_29_without_year_is_accepted():
    assert parse_date("--0229") == Date(None, 2, 29)


@pytest.mark.parametrize("text, expected, canonical", [
    ("102200", Time(10, 22, 0), "102200"),
    ("10:22:00", Time(10, 22, 0), "102200"),
    ("1022", Time(10, 22), "1022"),
    ("10", Time(10), "10"),
    ("-2200", Time(None, 22, 0), "-2200"),
    ("-22", Time(None, 22), "-22"),
    ("--00", Time(None, None, 0), "--00"),
    ("102200Z", Time(10, 22, 0, utc=True), "102200Z"),
    ("102200-0500", Time(10, 22, 0, offset=UtcOffset("-", 5, 0)), "102200-0500"),
    ("1022+01", Time(10, 22, offset=UtcOffset("+", 1)), "1022+01"),
])
def test_parse_time_forms(text, expected, canonical):
    """Test every time form, with and without zones."""
    value = parse_time(text)

    assert value == expected
    assert str(value) == canonical


def test_truncated_time_can_be_refused():
    with pytest.raises(InvalidValueError):
        parse_time("-2200", allow_truncated=False)


def test_parse_date_and_or_time_picks_the_form():
    """Test that the leading or inner 'T' decides the parsed type."""
    assert parse_date_and_or_time("T102200") == Time(10, 22, 0)
    assert parse_date_and_or_time("19961022T140000") == DateTime(
        Date(1996, 10, 22), Time(14, 0, 0)
    )
    assert parse_date_and_or_time("--1022T1400") == DateTime(
        Date(None, 10, 22), Time(14, 0)
    )
    assert parse_date_and_or_time("1985-04") == Date(1985, 4)


def test_format_date_and_or_time_prefixes_times():
    assert format_date_and_or_time(Time(10, 22)) == "T1022"
    assert format_date_and_or_time(Date(1985, 4, 12)) == "19850412"


@pytest.mark.parametrize("text", ["1985T10", "19961022T-2200", "T1000", "19961022"])
def test_invalid_date_times_are_rejected(text):
    """Test that reduced dates and truncated times cannot form a date-time."""
    with pytest.raises(InvalidValueError):
        parse_date_time(text)


def test_timestamp_must_be_complete():
    """Test that a timestamp needs year through second."""
    assert parse_timestamp("19961022T140000Z").is_complete
    with pytest.raises(InvalidValueError):
        parse_timestamp("19961022T1400")
    with pytest.raises(InvalidValueError):
        parse_timestamp("--1022T140000")


def test_timestamp_converts_to_aware_datetime():
    value = parse_timestamp("1996-10-22T14:00:00Z")

    assert value.to_datetime() == datetime(1996, 10, 22, 14, 0, 0, tzinfo=timezone.utc)


def test_datetime_from_native_value():
    native = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=-5, minutes=-30)))

    value = DateTime.from_datetime(native)

    assert str(value) == "20200102T030405-0530"
    assert value.to_datetime() == native


def test_partial_date_does_not_convert():
    assert Date(1985, 4, 12).to_date() == date(1985, 4, 12)
    with pytest.raises(InvalidValueError):
        Date(None, 4, 12).to_date()


def test_invalid_field_combinations():
    """Test that a year and day without month is not a date."""
    with pytest.raises(InvalidValueError):
        Date(1985, None, 12)
    with pytest.raises(InvalidValueError):
        Time(10, None, 5)
    with pytest.raises(InvalidValueError):
        Time(10, utc=True, offset=UtcOffset("+", 1))


def test_utc_offset():
    offset = parse_utc_offset("-05:00")

    assert offset == UtcOffset("-", 5, 0)
    assert str(offset) == "-0500"
    assert offset.to_timedelta() == timedelta(hours=-5)
    with pytest.raises(InvalidValueError):
        parse_utc_offset("0500")
    with pytest.raises(InvalidValueError):
        parse_utc_offset("+2500")


@pytest.mark.parametrize("parser, text", [
    (parse_date, "١٩٨٥٠٤١٢"),
    (parse_date, "--٠٤12"),
    (parse_time, "１０22"),
    (parse_utc_offset, "+٠٥00"),
])
def test_only_ascii_digits_are_accepted(parser, text):
    """Test that digits from other scripts are not read as 0-9."""
    with pytest.raises(InvalidValueError):
        parser(text)
