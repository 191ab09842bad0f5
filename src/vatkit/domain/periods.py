"""Reporting period construction and deadline checks."""

from datetime import date, datetime, timedelta
from typing import Iterator, Union

from dateutil.relativedelta import relativedelta

from vatkit.domain.entities import Cadence, ReportPeriod
from vatkit.domain.errors import ValidationError
from vatkit.domain.jurisdiction import FilingLag

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DUE_SOON_DAYS = 7


def _as_date(value: Union[date, datetime]) -> date:
    """Strip the time of day from datetimes."""
    if isinstance(value, datetime):
        return value.date()
    return value


def fiscal_year_of(day: date, fiscal_year_start: int) -> int:
    """Calendar year in which the fiscal year containing ``day`` starts."""
    return day.year if day.month >= fiscal_year_start else day.year - 1


def _label(cadence: Cadence, start: date, index: int, fiscal_year: int, fiscal_year_start: int) -> str:
    if fiscal_year_start == 1:
        year_label = str(fiscal_year)
    else:
        year_label = f"FY{fiscal_year}/{(fiscal_year + 1) % 100:02d}"

    if cadence == Cadence.MONTHLY:
        return f"{MONTH_NAMES[start.month - 1]} {start.year}"
    if cadence == Cadence.QUARTERLY:
        return f"Q{index + 1} {year_label}"
    return year_label


def _elster_period(cadence: Cadence, start: date, index: int, fiscal_year_start: int):
    """Period code used by German ELSTER filings, for calendar-aligned periods."""
    if fiscal_year_start != 1:
        return None
    if cadence == Cadence.MONTHLY:
        return f"{start.month:02d}"
    if cadence == Cadence.QUARTERLY:
        return f"{41 + index}"
    return "00"


def period_containing(
    day: date, cadence: Cadence, fiscal_year_start: int, lag: FilingLag
) -> ReportPeriod:
    """Return the period of the given cadence that contains ``day``."""
    if not 1 <= fiscal_year_start <= 12:
        raise ValidationError(
            f"Fiscal year start must be a month 1-12, got {fiscal_year_start}",
            field="fiscal_year_start",
            value=fiscal_year_start,
        )
    day = _as_date(day)
    cadence = Cadence(cadence)
    fiscal_year = fiscal_year_of(day, fiscal_year_start)
    year_start = date(fiscal_year, fiscal_year_start, 1)
    months_into_year = (day.month - fiscal_year_start) % 12
    index = months_into_year // cadence.months

    start = year_start + relativedelta(months=index * cadence.months)
    end = start + relativedelta(months=cadence.months) - timedelta(days=1)
    return ReportPeriod(
        period_start=start,
        period_end=end,
        due_date=lag.due_date(end),
        period_label=_label(cadence, start, index, fiscal_year, fiscal_year_start),
        year=fiscal_year,
        elster_period=_elster_period(cadence, start, index, fiscal_year_start),
    )


class ReportPeriods:
    """Finite, restartable sequence of consecutive reporting periods.

    Each iteration recomputes the periods from ``as_of``; nothing is cached, so
    iterating twice yields the same periods.
    """

    def __init__(
        self,
        cadence: Cadence,
        fiscal_year_start: int,
        as_of: date,
        lookahead_count: int,
        lag: FilingLag,
    ):
        if lookahead_count < 0:
            raise ValidationError(
                f"Lookahead count cannot be negative, got {lookahead_count}",
                field="lookahead_count",
                value=lookahead_count,
            )
        self.cadence = Cadence(cadence)
        self.fiscal_year_start = fiscal_year_start
        self.as_of = _as_date(as_of)
        self.lookahead_count = lookahead_count
        self.lag = lag

    def __iter__(self) -> Iterator[ReportPeriod]:
        day = self.as_of
        for _ in range(self.lookahead_count):
            period = period_containing(day, self.cadence, self.fiscal_year_start, self.lag)
            yield period
            day = period.period_end + timedelta(days=1)

    def __len__(self) -> int:
        return self.lookahead_count


def build_periods(
    cadence: Cadence,
    fiscal_year_start: int,
    as_of: date,
    lookahead_count: int,
    lag: FilingLag,
) -> ReportPeriods:
    """Build ``lookahead_count`` periods starting with the one containing ``as_of``.

    Args:
        cadence: Monthly, quarterly or yearly declarations
        fiscal_year_start: Month (1-12) the fiscal year starts in
        as_of: Reference date
        lookahead_count: Number of periods to produce
        lag: Filing deadline offset for the jurisdiction and report kind

    Returns:
        Restartable sequence of ReportPeriod
    """
    return ReportPeriods(cadence, fiscal_year_start, as_of, lookahead_count, lag)


def is_overdue(period: ReportPeriod, today: Union[date, datetime]) -> bool:
    """True once the filing deadline has passed."""
    return _as_date(today) > period.due_date


def is_due_soon(
    period: ReportPeriod, today: Union[date, datetime], window_days: int = DUE_SOON_DAYS
) -> bool:
    """True when the deadline is today or within ``window_days`` days."""
    remaining = (period.due_date - _as_date(today)).days
    return 0 <= remaining <= window_days
