"""
Date, time and UTC offset values as defined in RFC 6350 section 4.3.

vCard dates and times may be reduced (year only, year and month) or truncated
(no year, no hour), so each value keeps exactly the fields that were present
instead of converting to datetime objects. Conversion helpers are provided for
complete values.

Accepted input forms:

    date        19850412  1985-04  1985  --0412  --04  ---12
                1985-04-12  --04-12                   (extended)
    time        102200  1022  10  -2200  -22  --00  with optional Z/+hh[mm]
                10:22:00  10:22                       (extended)
    date-time   19961022T140000  --1022T1400  ---22T14
    timestamp   19961022T140000Z  1996-10-22T14:00:00+01:00

Output always uses the RFC 6350 basic forms.

Dependencies:
    - datetime: Standard library for conversion to native values
    - re: Standard library for the textual grammar
    - calendar: Standard library for month lengths
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from vcard4.errors import InvalidValueError

_ZONE = r"(?P<zone>Z|[+-][0-9]{2}(?::?[0-9]{2})?)?"

_OFFSET_RE = re.compile(r"(?P<sign>[+-])(?P<hours>[0-9]{2})(?::?(?P<minutes>[0-9]{2}))?")

_DATE_PATTERNS = (
    # (regex, reduced form)
    (re.compile(r"(?P<year>[0-9]{4})(?P<month>[0-9]{2})(?P<day>[0-9]{2})"), False),
    (re.compile(r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"), False),
    (re.compile(r"--(?P<month>[0-9]{2})-?(?P<day>[0-9]{2})"), False),
    (re.compile(r"---(?P<day>[0-9]{2})"), False),
    (re.compile(r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})"), True),
    (re.compile(r"(?P<year>[0-9]{4})"), True),
    (re.compile(r"--(?P<month>[0-9]{2})"), True),
)

_TIME_PATTERNS = (
    # (regex, truncated form)
    (re.compile(
        r"(?P<hour>[0-9]{2})(?::?(?P<minute>[0-9]{2})(?::?(?P<second>[0-9]{2}))?)?" + _ZONE
    ), False),
    (re.compile(r"-(?P<minute>[0-9]{2})(?P<second>[0-9]{2})?" + _ZONE), True),
    (re.compile(r"--(?P<second>[0-9]{2})" + _ZONE), True),
)


@dataclass(frozen=True)
class UtcOffset:
    """A signed hour and optional minute offset from UTC."""

    sign: str
    hours: int
    minutes: Optional[int] = None

    def __post_init__(self) -> None:
        if self.sign not in ("+", "-"):
            raise InvalidValueError(f"invalid UTC offset sign {self.sign!r}")
        if not 0 <= self.hours <= 23:
            raise InvalidValueError(f"UTC offset hours out of range: {self.hours}")
        if self.minutes is not None and not 0 <= self.minutes <= 59:
            raise InvalidValueError(f"UTC offset minutes out of range: {self.minutes}")

    def to_timedelta(self) -> timedelta:
        delta = timedelta(hours=self.hours, minutes=self.minutes or 0)
        return -delta if self.sign == "-" else delta

    def to_timezone(self) -> timezone:
        return timezone(self.to_timedelta())

    def __str__(self) -> str:
        text = f"{self.sign}{self.hours:02d}"
        if self.minutes is not None:
            text += f"{self.minutes:02d}"
        return text


@dataclass(frozen=True)
class Date:
    """
    A possibly reduced or truncated calendar date.

    Valid field combinations: year-month-day, year-month, year, month-day,
    month, day.
    """

    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    def __post_init__(self) -> None:
        present = (self.year is not None, self.month is not None, self.day is not None)
        if present in ((False, False, False), (True, False, True)):
            raise InvalidValueError(f"invalid date field combination: {self!r}")
        if self.year is not None and not 0 <= self.year <= 9999:
            raise InvalidValueError(f"year out of range: {self.year}")
        if self.month is not None and not 1 <= self.month <= 12:
            raise InvalidValueError(f"month out of range: {self.month}")
        if self.day is not None:
            if self.month is None:
                last_day = 31
            elif self.year is None:
                # leap year so that --0229 is accepted
                last_day = calendar.monthrange(2000, self.month)[1]
            else:
                last_day = calendar.monthrange(self.year or 2000, self.month)[1]
            if not 1 <= self.day <= last_day:
                raise InvalidValueError(f"day out of range: {self.day}")

    @property
    def is_complete(self) -> bool:
        return None not in (self.year, self.month, self.day)

    @property
    def is_reduced(self) -> bool:
        """Year-month, year-only and month-only dates."""
        return self.day is None

    def to_date(self) -> date:
        """
        Convert a complete date to datetime.date.

        :raises InvalidValueError: If any field is missing
        """
        if not self.is_complete:
            raise InvalidValueError(f"cannot convert partial date {self} to a date")
        return date(self.year, self.month, self.day)

    @classmethod
    def from_date(cls, value: date) -> "Date":
        return cls(value.year, value.month, value.day)

    def __str__(self) -> str:
        if self.year is not None:
            if self.month is None:
                return f"{self.year:04d}"
            if self.day is None:
                return f"{self.year:04d}-{self.month:02d}"
            return f"{self.year:04d}{self.month:02d}{self.day:02d}"
        if self.month is not None:
            if self.day is None:
                return f"--{self.month:02d}"
            return f"--{self.month:02d}{self.day:02d}"
        return f"---{self.day:02d}"


@dataclass(frozen=True)
class Time:
    """
    A possibly truncated time of day with an optional zone.

    Valid field combinations: hour-minute-second, hour-minute, hour,
    minute-second, minute, second. utc marks the "Z" designator and is
    exclusive with offset.
    """

    hour: Optional[int] = None
    minute: Optional[int] = None
    second: Optional[int] = None
    utc: bool = False
    offset: Optional[UtcOffset] = None

    def __post_init__(self) -> None:
        present = (self.hour is not None, self.minute is not None, self.second is not None)
        if present in ((False, False, False), (True, False, True)):
            raise InvalidValueError(f"invalid time field combination: {self!r}")
        if self.hour is not None and not 0 <= self.hour <= 23:
            raise InvalidValueError(f"hour out of range: {self.hour}")
        if self.minute is not None and not 0 <= self.minute <= 59:
            raise InvalidValueError(f"minute out of range: {self.minute}")
        if self.second is not None and not 0 <= self.second <= 60:
            raise InvalidValueError(f"second out of range: {self.second}")
        if self.utc and self.offset is not None:
            raise InvalidValueError("time cannot carry both Z and a UTC offset")

    @property
    def is_complete(self) -> bool:
        return None not in (self.hour, self.minute, self.second)

    @property
    def is_truncated(self) -> bool:
        return self.hour is None

    @property
    def tzinfo(self) -> Optional[timezone]:
        if self.utc:
            return timezone.utc
        if self.offset is not None:
            return self.offset.to_timezone()
        return None

    def to_time(self) -> time:
        """
        Convert to datetime.time; missing minute and second become zero.

        :raises InvalidValueError: If the hour is missing
        """
        if self.hour is None:
            raise InvalidValueError(f"cannot convert truncated time {self} to a time")
        # leap seconds are clamped, datetime.time has no second 60
        return time(
            self.hour, self.minute or 0, min(self.second or 0, 59), tzinfo=self.tzinfo
        )

    def _zone_text(self) -> str:
        if self.utc:
            return "Z"
        if self.offset is not None:
            return str(self.offset)
        return ""

    def __str__(self) -> str:
        if self.hour is not None:
            text = f"{self.hour:02d}"
            if self.minute is not None:
                text += f"{self.minute:02d}"
                if self.second is not None:
                    text += f"{self.second:02d}"
        elif self.minute is not None:
            text = f"-{self.minute:02d}"
            if self.second is not None:
                text += f"{self.second:02d}"
        else:
            text = f"--{self.second:02d}"
        return text + self._zone_text()


@dataclass(frozen=True)
class DateTime:
    """A date (not reduced) and a time (not truncated) joined by 'T'."""

    date: Date
    time: Time

    def __post_init__(self) -> None:
        if self.date.is_reduced:
            raise InvalidValueError(f"date-time cannot use a reduced date: {self.date}")
        if self.time.is_truncated:
            raise InvalidValueError(f"date-time cannot use a truncated time: {self.time}")

    @property
    def is_complete(self) -> bool:
        return self.date.is_complete and self.time.is_complete

    def to_datetime(self) -> datetime:
        """
        Convert to datetime.datetime.

        :raises InvalidValueError: If the date is partial
        """
        return datetime.combine(self.date.to_date(), self.time.to_time())

    @classmethod
    def from_datetime(cls, value: datetime) -> "DateTime":
        """Build a complete DateTime; aware values keep their offset."""
        offset = None
        utc = False
        if value.utcoffset() is not None:
            delta = value.utcoffset()
            if delta == timedelta(0) and value.tzinfo is timezone.utc:
                utc = True
            else:
                sign = "-" if delta < timedelta(0) else "+"
                total = abs(int(delta.total_seconds())) // 60
                offset = UtcOffset(sign, total // 60, total % 60)
        return cls(
            Date.from_date(value.date()),
            Time(value.hour, value.minute, value.second, utc=utc, offset=offset)
        )

    def __str__(self) -> str:
        return f"{self.date}T{self.time}"


DateOrTime = Union[Date, DateTime, Time]


def _int_or_none(text: Optional[str]) -> Optional[int]:
    return int(text) if text is not None else None


def parse_utc_offset(text: str) -> UtcOffset:
    """
    Parse "+hh", "+hhmm" or the extended "+hh:mm".

    :param text: Offset text
    :return: UtcOffset
    :raises InvalidValueError: If text is not an offset
    """
    match = _OFFSET_RE.fullmatch(text)
    if not match:
        raise InvalidValueError("invalid UTC offset", token=text)
    return UtcOffset(
        match.group("sign"),
        int(match.group("hours")),
        _int_or_none(match.group("minutes"))
    )


def parse_date(text: str, allow_reduced: bool = True) -> Date:
    """
    Parse a date in any basic or extended form.

    :param text: Date text
    :param allow_reduced: Whether year-only, year-month and month-only
                          forms are accepted
    :return: Date with only the fields that were present
    :raises InvalidValueError: If text is not a date
    """
    for pattern, reduced in _DATE_PATTERNS:
        match = pattern.fullmatch(text)
        if not match:
            continue
        if reduced and not allow_reduced:
            break
        fields = match.groupdict()
        return Date(
            _int_or_none(fields.get("year")),
            _int_or_none(fields.get("month")),
            _int_or_none(fields.get("day"))
        )
    raise InvalidValueError("invalid date", token=text)


def parse_time(text: str, allow_truncated: bool = True) -> Time:
    """
    Parse a time in any basic or extended form, with an optional zone.

    :param text: Time text, without a leading 'T'
    :param allow_truncated: Whether forms without an hour are accepted
    :return: Time with only the fields that were present
    :raises InvalidValueError: If text is not a time
    """
    for pattern, truncated in _TIME_PATTERNS:
        match = pattern.fullmatch(text)
        if not match:
            continue
        if truncated and not allow_truncated:
            break
        fields = match.groupdict()
        zone = fields.get("zone")
        return Time(
            _int_or_none(fields.get("hour")),
            _int_or_none(fields.get("minute")),
            _int_or_none(fields.get("second")),
            utc=zone == "Z",
            offset=parse_utc_offset(zone) if zone and zone != "Z" else None
        )
    raise InvalidValueError("invalid time", token=text)


def parse_date_time(text: str) -> DateTime:
    """
    Parse a date-time: a non-reduced date, 'T', a non-truncated time.

    :param text: Date-time text
    :return: DateTime
    :raises InvalidValueError: If text is not a date-time
    """
    date_text, designator, time_text = text.partition("T")
    if not designator or not date_text:
        raise InvalidValueError("invalid date-time", token=text)
    return DateTime(
        parse_date(date_text, allow_reduced=False),
        parse_time(time_text, allow_truncated=False)
    )


def parse_timestamp(text: str) -> DateTime:
    """
    Parse a timestamp: complete date and complete time.

    :param text: Timestamp text
    :return: Complete DateTime
    :raises InvalidValueError: If text is not a complete date-time
    """
    value = parse_date_time(text)
    if not value.is_complete:
        raise InvalidValueError("timestamp needs a complete date and time", token=text)
    return value


def parse_date_and_or_time(text: str) -> DateOrTime:
    """
    Parse a date-and-or-time: a date-time, a date, or 'T' followed by a time.

    :param text: Value text
    :return: DateTime, Date or Time depending on the form
    :raises InvalidValueError: If text matches none of the forms
    """
    if text.startswith("T"):
        return parse_time(text[1:])
    if "T" in text:
        return parse_date_time(text)
    return parse_date(text)


def format_date_and_or_time(value: DateOrTime) -> str:
    if isinstance(value, Time):
        return f"T{value}"
    return str(value)
