from __future__ import annotations

import collections
import re
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Tuple, Union

from .errors import (SemanticError, StructuralError, TimestampParseError,
                     TooMuchInput)
from .input import OrgInput, attempt, preceded

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MAX_PERIOD_VALUE = 2 ** 32 - 1

DATE_RE = re.compile(r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})")
DAYNAME_RE = re.compile(r" (?P<dayname>Mon|Tue|Wed|Thu|Fri|Sat|Sun)")
TIME_RE = re.compile(r"(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2})")
REPEATER_RE = re.compile(r"(?P<mark>\+\+|\+|\.\+)(?P<value>[0-9]+)(?P<unit>[ymwdh])")
WARNING_RE = re.compile(r"(?P<mark>--|-)(?P<value>[0-9]+)(?P<unit>[ymwdh])")


class TimeUnit(Enum):
    YEAR = "y"
    MONTH = "m"
    WEEK = "w"
    DAY = "d"
    HOUR = "h"


class RepeatStrategy(Enum):
    CUMULATIVE = "+"
    CATCH_UP = "++"
    RESTART = ".+"


class WarningStrategy(Enum):
    ALL = "-"
    FIRST = "--"


class TimestampKind(Enum):
    ACTIVE = 1
    INACTIVE = 2
    ACTIVE_RANGE = 3
    INACTIVE_RANGE = 4


class TimePeriod(collections.namedtuple("TimePeriod", ("value", "unit"))):
    __slots__ = ()

    def to_raw(self) -> str:
        return "{}{}".format(self.value, self.unit.value)


class Repeater(collections.namedtuple("Repeater", ("period", "strategy"))):
    __slots__ = ()

    def to_raw(self) -> str:
        return self.strategy.value + self.period.to_raw()


class WarningDelay(collections.namedtuple("WarningDelay", ("period", "strategy"))):
    __slots__ = ()

    def to_raw(self) -> str:
        return self.strategy.value + self.period.to_raw()


TimestampData = collections.namedtuple(
    "TimestampData", ("date", "time", "repeater", "warning"), defaults=(None, None, None)
)


class TimestampDataWithTime(
    collections.namedtuple("TimestampDataWithTime", ("date", "time", "repeater", "warning"))
):
    """Same as `TimestampData`, for the places where a time of day is mandatory."""

    __slots__ = ()

    def __new__(cls, date, time, repeater=None, warning=None):
        if time is None:
            raise ValueError("TimestampDataWithTime requires a time")
        return super().__new__(cls, date, time, repeater, warning)

    @classmethod
    def from_data(cls, data: TimestampData) -> TimestampDataWithTime:
        return cls(data.date, data.time, data.repeater, data.warning)

    def to_data(self) -> TimestampData:
        return TimestampData(self.date, self.time, self.repeater, self.warning)


TimeRange = collections.namedtuple("TimeRange", ("start", "end_time"))
DateRange = collections.namedtuple("DateRange", ("start", "end"))

SINGLE_KINDS = (TimestampKind.ACTIVE, TimestampKind.INACTIVE)
RANGE_KINDS = (TimestampKind.ACTIVE_RANGE, TimestampKind.INACTIVE_RANGE)


class Timestamp(collections.namedtuple("Timestamp", ("kind", "value"))):
    """
    Org timestamp, active (`<...>`) or inactive (`[...]`).

    Single timestamps hold a `TimestampData`. Ranges hold either a
    `TimeRange` (one day, two times) or a `DateRange` (two timestamps
    joined by `--`).
    """

    __slots__ = ()

    def __new__(cls, kind: TimestampKind, value):
        if kind in SINGLE_KINDS:
            valid = isinstance(value, TimestampData)
        elif kind in RANGE_KINDS:
            valid = (
                isinstance(value, TimeRange) and isinstance(value.start, TimestampDataWithTime)
            ) or isinstance(value, DateRange)
        else:
            raise ValueError("Unknown timestamp kind: {}".format(kind))

        if not valid:
            raise ValueError("{} can't hold {!r}".format(kind, value))
        return super().__new__(cls, kind, value)

    @classmethod
    def active(cls, data: TimestampData) -> Timestamp:
        return cls(TimestampKind.ACTIVE, data)

    @classmethod
    def inactive(cls, data: TimestampData) -> Timestamp:
        return cls(TimestampKind.INACTIVE, data)

    @classmethod
    def active_range(cls, value: Union[TimeRange, DateRange]) -> Timestamp:
        return cls(TimestampKind.ACTIVE_RANGE, value)

    @classmethod
    def inactive_range(cls, value: Union[TimeRange, DateRange]) -> Timestamp:
        return cls(TimestampKind.INACTIVE_RANGE, value)

    @property
    def is_active(self) -> bool:
        return self.kind in (TimestampKind.ACTIVE, TimestampKind.ACTIVE_RANGE)

    @property
    def is_range(self) -> bool:
        return self.kind in RANGE_KINDS

    def _first_data(self):
        if self.kind in SINGLE_KINDS:
            return self.value
        return self.value.start

    def timestamp_start(self) -> Tuple[date, Optional[time]]:
        data = self._first_data()
        return (data.date, data.time)

    def timestamp_end(self) -> Optional[Tuple[date, Optional[time]]]:
        if isinstance(self.value, TimeRange):
            return (self.value.start.date, self.value.end_time)
        if isinstance(self.value, DateRange):
            return (self.value.end.date, self.value.end.time)
        return None

    @property
    def repeater(self) -> Optional[Repeater]:
        return self._first_data().repeater

    @property
    def warning(self) -> Optional[WarningDelay]:
        return self._first_data().warning

    @property
    def start(self) -> datetime:
        return _to_datetime(*self.timestamp_start())

    @property
    def end(self) -> Optional[datetime]:
        end = self.timestamp_end()
        if end is None:
            return None
        return _to_datetime(*end)

    @property
    def duration(self) -> timedelta:
        if self.end is None:
            return timedelta()  # No duration
        return self.end - self.start

    def to_raw(self) -> str:
        return timestamp_to_string(self)


def _to_datetime(day: date, moment: Optional[time]) -> datetime:
    if moment is None:
        return datetime(day.year, day.month, day.day, 0, 0)
    return datetime(day.year, day.month, day.day, moment.hour, moment.minute)


## Grammar
def read_date(inp: OrgInput) -> date:
    matched = inp.try_match(DATE_RE)
    if matched is None:
        raise StructuralError("Expected date at offset {}".format(inp.cursor), inp.cursor)

    m = matched.match
    try:
        value = date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
    except (ValueError, OverflowError):
        raise SemanticError("invalid date: {}".format(matched.text), inp.cursor)

    end = matched.span.end
    dayname = inp.try_match(DAYNAME_RE, end)
    if dayname is not None:
        if dayname.match.group("dayname") != WEEKDAYS[value.weekday()]:
            raise SemanticError(
                "invalid weekday in date: {}{} is a {}".format(
                    matched.text, dayname.text, WEEKDAYS[value.weekday()]),
                inp.cursor,
            )
        end = dayname.span.end

    inp.advance(end - inp.cursor)
    return value


def read_time(inp: OrgInput) -> time:
    matched = inp.try_match(TIME_RE)
    if matched is None:
        raise StructuralError("Expected time at offset {}".format(inp.cursor), inp.cursor)

    try:
        value = time(int(matched.match.group("hour")), int(matched.match.group("minute")))
    except (ValueError, OverflowError):
        raise SemanticError("invalid time: {}".format(matched.text), inp.cursor)

    inp.advance(len(matched.text))
    return value


def _period(matched, position: int) -> TimePeriod:
    value = int(matched.match.group("value"))
    if value > MAX_PERIOD_VALUE:
        raise SemanticError("invalid time period value: {}".format(matched.text), position)
    return TimePeriod(value, TimeUnit(matched.match.group("unit")))


def read_repeater(inp: OrgInput) -> Repeater:
    matched = inp.try_match(REPEATER_RE)
    if matched is None:
        raise StructuralError("Expected repeater at offset {}".format(inp.cursor), inp.cursor)

    repeater = Repeater(_period(matched, inp.cursor), RepeatStrategy(matched.match.group("mark")))
    inp.advance(len(matched.text))
    return repeater


def read_warning(inp: OrgInput) -> WarningDelay:
    matched = inp.try_match(WARNING_RE)
    if matched is None:
        raise StructuralError("Expected warning delay at offset {}".format(inp.cursor), inp.cursor)

    warning = WarningDelay(_period(matched, inp.cursor), WarningStrategy(matched.match.group("mark")))
    inp.advance(len(matched.text))
    return warning


def read_timestamp_data(inp: OrgInput) -> Tuple[TimestampData, Optional[time]]:
    """
    Reads the contents of a timestamp, between its delimiters.

    Returns the timestamp data and the end time of a `HH:MM-HH:MM` range,
    if any.
    """
    day = read_date(inp)
    start_time = attempt(preceded, inp, " ", read_time)
    end_time = attempt(preceded, inp, "-", read_time)

    repeater = attempt(preceded, inp, " ", read_repeater)
    warning = attempt(preceded, inp, " ", read_warning)
    # The repeater may also come after the warning delay, the first one found is kept
    late_repeater = attempt(preceded, inp, " ", read_repeater)
    if repeater is None:
        repeater = late_repeater

    return TimestampData(day, start_time, repeater, warning), end_time


def read_single_timestamp(inp: OrgInput) -> Timestamp:
    if inp.try_match("<"):
        active, closing = True, ">"
    elif inp.try_match("["):
        active, closing = False, "]"
    else:
        raise StructuralError("Expected timestamp at offset {}".format(inp.cursor), inp.cursor)
    inp.advance(1)

    data, end_time = read_timestamp_data(inp)
    inp.expect(closing, "'{}' closing the timestamp".format(closing))

    if end_time is not None and data.time is not None:
        value = TimeRange(TimestampDataWithTime.from_data(data), end_time)
        if active:
            return Timestamp.active_range(value)
        return Timestamp.inactive_range(value)

    # Without a start time the end time has no meaning
    if active:
        return Timestamp.active(data)
    return Timestamp.inactive(data)


def read_timestamp(inp: OrgInput) -> Timestamp:
    start = inp.cursor
    first = read_single_timestamp(inp)
    second = attempt(preceded, inp, "--", read_single_timestamp)
    if second is None:
        return first

    if first.kind == second.kind == TimestampKind.ACTIVE:
        return Timestamp.active_range(DateRange(first.value, second.value))
    if first.kind == second.kind == TimestampKind.INACTIVE:
        return Timestamp.inactive_range(DateRange(first.value, second.value))

    raise SemanticError(
        "invalid compound timestamp: {}".format(inp.text[start:inp.cursor]), start
    )


def _parse_full(rule, text: str) -> Timestamp:
    inp = OrgInput(text)
    try:
        value = rule(inp)
    except (StructuralError, SemanticError) as err:
        raise TimestampParseError(
            "Invalid timestamp {!r}: {}".format(text, err.message), err.position, nested=err
        ) from err

    if not inp.at_end():
        raise TooMuchInput(inp.rest(), inp.cursor)
    return value


def parse_timestamp(text: str) -> Timestamp:
    return _parse_full(read_timestamp, text)


def parse_single_timestamp(text: str) -> Timestamp:
    return _parse_full(read_single_timestamp, text)


## Rendering
def _data_to_string(data, end_time: Optional[time] = None) -> str:
    day = data.date
    base = "{year:04d}-{month:02d}-{day:02d} {dow}".format(
        year=day.year, month=day.month, day=day.day, dow=WEEKDAYS[day.weekday()]
    )

    if data.time is not None:
        base = "{base} {hour:02d}:{minute:02d}".format(
            base=base, hour=data.time.hour, minute=data.time.minute
        )

    if end_time is not None:
        base = "{base}-{hour:02d}:{minute:02d}".format(
            base=base, hour=end_time.hour, minute=end_time.minute
        )

    if data.repeater is not None:
        base = base + " " + data.repeater.to_raw()
    if data.warning is not None:
        base = base + " " + data.warning.to_raw()
    return base


def timestamp_to_string(ts: Timestamp) -> str:
    if ts.is_active:
        template = "<{}>"
    else:
        template = "[{}]"

    if ts.kind in SINGLE_KINDS:
        return template.format(_data_to_string(ts.value))
    if isinstance(ts.value, TimeRange):
        return template.format(_data_to_string(ts.value.start, ts.value.end_time))
    return "{}--{}".format(
        template.format(_data_to_string(ts.value.start)),
        template.format(_data_to_string(ts.value.end)),
    )
