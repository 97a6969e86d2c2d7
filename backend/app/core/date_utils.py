"""
Immutable date/time utilities for the scheduling engine.

Every date that enters or leaves the engine is a ``YYYY-MM-DD`` string and
every time is a 24h ``HH:MM`` string. Calendar arithmetic works on those
strings through ``datetime.date`` values built from their components, so the
calendar day never depends on the host timezone. Nothing outside this module
builds date or datetime objects from strings.

"Now" is taken from a single injectable clock and expressed in the clinic
timezone (pytz), so ``is_today``/``is_past_date`` compare like with like.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import logging
import re
from typing import Callable, List, Optional, Sequence

import pytz

from ..monitoring.prometheus_metrics import prometheus_metrics
from .constants import CONSISTENCY_CHECK_TIMEZONES
from .exceptions import DateDisplacementException, ValidationException

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60

MIN_SUPPORTED_YEAR = 2
MAX_SUPPORTED_YEAR = 9998

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


@dataclass(frozen=True)
class Displacement:
    original_date: str
    displaced_date: str
    days_difference: int


@dataclass(frozen=True)
class DateNormalizationResult:
    is_valid: bool
    normalized_date: Optional[str] = None
    error: Optional[str] = None
    displacement: Optional[Displacement] = None


# Pure calendar helpers


def validate_date_format(value: str) -> bool:
    """Check the exact ``YYYY-MM-DD`` shape (not calendar validity)."""
    return isinstance(value, str) and DATE_PATTERN.match(value) is not None


def _to_date(value: str) -> date:
    """Build a date from a string already known to be valid and normalized."""
    match = DATE_PATTERN.match(value)
    if match is None:
        raise ValidationException(
            f"Invalid date format: {value}. Expected YYYY-MM-DD", code="INVALID_DATE"
        )
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValidationException(f"Invalid date: {value}", code="INVALID_DATE") from exc


def add_days(date_string: str, days: int) -> str:
    """Return ``date_string`` shifted by ``days`` calendar days."""
    return (_to_date(date_string) + timedelta(days=days)).isoformat()


def days_between(start: str, end: str) -> int:
    """Number of calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return (_to_date(end) - _to_date(start)).days


def generate_week_dates(start_date: str) -> List[str]:
    """Seven consecutive dates starting at ``start_date``."""
    base = _to_date(start_date)
    return [(base + timedelta(days=offset)).isoformat() for offset in range(7)]


def day_of_week(date_string: str) -> int:
    """Day of week with 0 = Sunday and 6 = Saturday."""
    return (_to_date(date_string).weekday() + 1) % 7


def is_valid_time(value: str) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def parse_time(value: str) -> int:
    """Convert ``HH:MM`` into minutes since midnight."""
    match = TIME_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValidationException(
            f"Invalid time format: {value!r}. Use HH:MM", code="INVALID_TIME"
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    """Convert minutes since midnight into ``HH:MM``; 1440 renders as ``24:00``."""
    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap on minute offsets."""
    return start_a < end_b and end_a > start_b


class DateUtility:
    """
    Canonical "now" plus displacement-safe date normalization.

    Instances are cheap and immutable; construct one per clinic timezone and
    pass it to the services that need it.
    """

    def __init__(self, timezone: str = "UTC", clock: Optional[Clock] = None):
        self.timezone_name = timezone
        self.tz = pytz.timezone(timezone)
        self._clock: Clock = clock or utc_now

    # "Now"

    def now(self) -> datetime:
        """Current aware datetime in the clinic timezone."""
        current = self._clock()
        if current.tzinfo is None:
            # Assume UTC if no timezone info
            current = pytz.UTC.localize(current)
        return current.astimezone(self.tz)

    def today(self) -> str:
        return self.now().date().isoformat()

    def current_minutes(self) -> int:
        current = self.now()
        return current.hour * 60 + current.minute

    def is_today(self, date_string: str) -> bool:
        return date_string == self.today()

    def is_past_date(self, date_string: str) -> bool:
        # ISO dates order lexicographically
        return date_string < self.today()

    def is_time_in_past(self, date_string: str, time_string: str) -> bool:
        """True when the date is before today, or is today and the minute has already started."""
        if self.is_past_date(date_string):
            return True
        if not self.is_today(date_string):
            return False
        return parse_time(time_string) <= self.current_minutes()

    def localize(self, date_string: str, minutes: int) -> datetime:
        """Aware datetime for a clinic-local date and minute offset."""
        naive = datetime.combine(_to_date(date_string), datetime.min.time()) + timedelta(
            minutes=minutes
        )
        return self.tz.normalize(self.tz.localize(naive))

    def hours_until(self, date_string: str, time_string: str) -> float:
        """Hours from now until the clinic-local ``date``/``time`` (negative when past)."""
        target = self.localize(date_string, parse_time(time_string))
        return (target - self.now()).total_seconds() / 3600

    def to_local_naive(self, value: datetime) -> datetime:
        """Express a stored datetime as a clinic-local naive datetime."""
        if value.tzinfo is None:
            return value
        return value.astimezone(self.tz).replace(tzinfo=None)

    def minutes_into_day(self, day_start: datetime, value: datetime) -> int:
        """Minute offset of a stored datetime from ``day_start``, clamped to ``[0, 1440]``."""
        offset = int((self.to_local_naive(value) - day_start).total_seconds() // 60)
        return max(0, min(MINUTES_PER_DAY, offset))

    def day_bounds(self, date_string: str) -> tuple[datetime, datetime]:
        """Clinic-local naive ``[start, end)`` of a calendar day."""
        start = datetime.combine(_to_date(date_string), datetime.min.time())
        return start, start + timedelta(days=1)

    # Normalization

    def validate_and_normalize(
        self, date_string: str, component: Optional[str] = None
    ) -> DateNormalizationResult:
        """
        Validate a date string and normalize it to ``YYYY-MM-DD``.

        A string whose components would roll over into another calendar day
        (for example ``2025-02-30``) is reported as a displacement and never
        corrected. Malformed strings are plain validation failures.
        """
        if not isinstance(date_string, str) or not date_string:
            return DateNormalizationResult(is_valid=False, error="Date must be a non-empty string")

        match = DATE_PATTERN.match(date_string)
        if match is None:
            return DateNormalizationResult(
                is_valid=False,
                error=f"Invalid date format: {date_string}. Expected YYYY-MM-DD",
            )

        year, month, day = (int(part) for part in match.groups())
        if not 1 <= month <= 12:
            return DateNormalizationResult(
                is_valid=False, error=f"Invalid date: {date_string}"
            )
        # Years 1 and 9999 overflow once shifted by a timezone offset
        if not MIN_SUPPORTED_YEAR <= year <= MAX_SUPPORTED_YEAR:
            return DateNormalizationResult(
                is_valid=False,
                error=(
                    f"Date out of supported range: {date_string}. Years "
                    f"{MIN_SUPPORTED_YEAR}-{MAX_SUPPORTED_YEAR} are accepted"
                ),
            )

        # Lenient day arithmetic mirrors what naive date construction would produce
        last_day = calendar.monthrange(year, month)[1]
        first = date(year, month, 1)
        rolled = first + timedelta(days=day - 1)
        normalized = self._round_trip(rolled).isoformat()

        if normalized != date_string:
            if day > last_day:
                difference = day - last_day
            elif day < 1:
                difference = day - 1
            else:
                difference = (_to_date(normalized) - date(year, month, day)).days
            displacement = Displacement(
                original_date=date_string,
                displaced_date=normalized,
                days_difference=difference,
            )
            self._report_displacement(displacement, component)
            return DateNormalizationResult(
                is_valid=False,
                error=f"Date displacement detected: {date_string} -> {normalized}",
                displacement=displacement,
            )

        return DateNormalizationResult(is_valid=True, normalized_date=normalized)

    def require_date(self, date_string: str, component: Optional[str] = None) -> str:
        """Normalize or raise; used at service boundaries that surface errors as exceptions."""
        result = self.validate_and_normalize(date_string, component)
        if result.displacement is not None:
            raise DateDisplacementException(
                result.displacement.original_date,
                result.displacement.displaced_date,
                result.displacement.days_difference,
            )
        if not result.is_valid or result.normalized_date is None:
            raise ValidationException(result.error or "Invalid date", code="INVALID_DATE")
        return result.normalized_date

    def check_timezone_consistency(
        self,
        date_string: str,
        timezones: Sequence[str] = CONSISTENCY_CHECK_TIMEZONES,
    ) -> List[str]:
        """
        Normalize ``date_string`` with "now" taken in each timezone and list divergences.

        An empty list means the date is byte-identical everywhere.
        """
        issues: List[str] = []
        for zone in timezones:
            zoned = DateUtility(zone, self._clock)
            result = zoned.validate_and_normalize(date_string, component=f"consistency:{zone}")
            if result.normalized_date != date_string:
                issues.append(
                    f"Date displacement in {zone}: {date_string} -> {result.normalized_date}"
                )
                continue
            if add_days(add_days(date_string, 1), -1) != date_string:
                issues.append(f"Day arithmetic drift in {zone} for {date_string}")
        return issues

    def _round_trip(self, value: date) -> date:
        """Pass a calendar date through the clinic timezone and back."""
        local_midnight = self.tz.localize(datetime.combine(value, datetime.min.time()))
        return local_midnight.astimezone(pytz.UTC).astimezone(self.tz).date()

    def _report_displacement(self, displacement: Displacement, component: Optional[str]) -> None:
        logger.error(
            "DATE DISPLACEMENT DETECTED: %s -> %s (%+d days) in %s",
            displacement.original_date,
            displacement.displaced_date,
            displacement.days_difference,
            component or "unknown",
        )
        prometheus_metrics.record_date_displacement(component or "unknown")


# Boundary conversions for the persistence adapter


def to_calendar_date(date_string: str) -> date:
    """``date`` for a normalized ``YYYY-MM-DD`` string, for database filters only."""
    return _to_date(date_string)


def format_time_of_day(value: time) -> str:
    """``HH:MM`` rendering of a stored ``time`` column."""
    return f"{value.hour:02d}:{value.minute:02d}"


def to_time_of_day(time_string: str) -> time:
    minutes = parse_time(time_string)
    return time(minutes // 60, minutes % 60)
