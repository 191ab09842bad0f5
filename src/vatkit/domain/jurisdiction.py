"""Jurisdiction data: countries, union membership, VAT rates and filing lags.

Rates and membership change over time, so every lookup takes the date it
applies to. Historical invoices keep the rate that was in force on their
issue date.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from vatkit.domain.entities import ReportKind
from vatkit.domain.errors import UnknownJurisdictionError
from vatkit.domain.money import require_currency


@dataclass(frozen=True)
class VatRates:
    """Rates in force in one country over a date range."""

    standard: Decimal
    reduced: Optional[Decimal] = None


@dataclass(frozen=True)
class FilingLag:
    """Offset from period end to filing deadline.

    ``due = period_end + months``, moved to ``day`` of that month (last day of
    the month when ``day`` is None), then ``days`` added.
    """

    months: int = 1
    day: Optional[int] = None
    days: int = 0

    def due_date(self, period_end: date) -> date:
        due = period_end + relativedelta(months=self.months, day=self.day or 31)
        return due + timedelta(days=self.days)


DEFAULT_FILING_LAG = FilingLag(months=1)


class JurisdictionSource(ABC):
    """Supplier of jurisdiction tables."""

    @abstractmethod
    def require_country(self, code: str) -> str:
        """Return the normalised country code or raise UnknownJurisdictionError."""
        pass

    @abstractmethod
    def require_currency(self, code: str) -> str:
        """Return the normalised currency code or raise UnknownJurisdictionError."""
        pass

    @abstractmethod
    def union_of(self, country: str, on: date) -> Optional[str]:
        """Economic union the country belongs to on a date, if any."""
        pass

    @abstractmethod
    def vat_rates(self, country: str, on: date) -> VatRates:
        """VAT rates in force in a country on a date."""
        pass

    @abstractmethod
    def has_vat_rates(self, country: str) -> bool:
        """Whether the tables carry any VAT rates for a country."""
        pass

    @abstractmethod
    def home_currency(self, country: str) -> str:
        """Currency VAT returns of the country are filed in."""
        pass

    @abstractmethod
    def filing_lag(self, country: str, kind: ReportKind) -> FilingLag:
        """Filing deadline offset for a report kind."""
        pass


# (valid_from, valid_to inclusive or None, rates)
RateHistory = tuple[tuple[date, Optional[date], VatRates], ...]

VAT_RATE_HISTORY: dict[str, RateHistory] = {
    "AT": ((date(1995, 1, 1), None, VatRates(Decimal("20"), Decimal("10"))),),
    "BE": ((date(1996, 1, 1), None, VatRates(Decimal("21"), Decimal("6"))),),
    "BG": ((date(2011, 4, 1), None, VatRates(Decimal("20"), Decimal("9"))),),
    "CY": ((date(2014, 1, 13), None, VatRates(Decimal("19"), Decimal("5"))),),
    "CZ": (
        (date(2015, 1, 1), date(2023, 12, 31), VatRates(Decimal("21"), Decimal("15"))),
        (date(2024, 1, 1), None, VatRates(Decimal("21"), Decimal("12"))),
    ),
    "DE": (
        (date(2007, 1, 1), date(2020, 6, 30), VatRates(Decimal("19"), Decimal("7"))),
        (date(2020, 7, 1), date(2020, 12, 31), VatRates(Decimal("16"), Decimal("5"))),
        (date(2021, 1, 1), None, VatRates(Decimal("19"), Decimal("7"))),
    ),
    "DK": ((date(1992, 1, 1), None, VatRates(Decimal("25"))),),
    "EE": (
        (date(2009, 7, 1), date(2023, 12, 31), VatRates(Decimal("20"), Decimal("9"))),
        (date(2024, 1, 1), date(2025, 6, 30), VatRates(Decimal("22"), Decimal("9"))),
        (date(2025, 7, 1), None, VatRates(Decimal("24"), Decimal("9"))),
    ),
    "ES": ((date(2012, 9, 1), None, VatRates(Decimal("21"), Decimal("10"))),),
    "FI": (
        (date(2013, 1, 1), date(2024, 8, 31), VatRates(Decimal("24"), Decimal("14"))),
        (date(2024, 9, 1), None, VatRates(Decimal("25.5"), Decimal("14"))),
    ),
    "FR": ((date(2014, 1, 1), None, VatRates(Decimal("20"), Decimal("5.5"))),),
    "GB": ((date(2011, 1, 4), None, VatRates(Decimal("20"), Decimal("5"))),),
    "GR": ((date(2016, 6, 1), None, VatRates(Decimal("24"), Decimal("13"))),),
    "HR": ((date(2014, 1, 1), None, VatRates(Decimal("25"), Decimal("13"))),),
    "HU": ((date(2012, 1, 1), None, VatRates(Decimal("27"), Decimal("5"))),),
    "IE": ((date(2012, 1, 1), None, VatRates(Decimal("23"), Decimal("13.5"))),),
    "IT": ((date(2013, 10, 1), None, VatRates(Decimal("22"), Decimal("10"))),),
    "LT": ((date(2009, 9, 1), None, VatRates(Decimal("21"), Decimal("9"))),),
    "LU": (
        (date(2015, 1, 1), date(2022, 12, 31), VatRates(Decimal("17"), Decimal("8"))),
        (date(2023, 1, 1), date(2023, 12, 31), VatRates(Decimal("16"), Decimal("7"))),
        (date(2024, 1, 1), None, VatRates(Decimal("17"), Decimal("8"))),
    ),
    "LV": ((date(2012, 7, 1), None, VatRates(Decimal("21"), Decimal("12"))),),
    "MT": ((date(2004, 1, 1), None, VatRates(Decimal("18"), Decimal("7"))),),
    "NL": (
        (date(2012, 10, 1), date(2018, 12, 31), VatRates(Decimal("21"), Decimal("6"))),
        (date(2019, 1, 1), None, VatRates(Decimal("21"), Decimal("9"))),
    ),
    "NO": ((date(2016, 1, 1), None, VatRates(Decimal("25"), Decimal("15"))),),
    "PL": ((date(2011, 1, 1), None, VatRates(Decimal("23"), Decimal("8"))),),
    "PT": ((date(2011, 1, 1), None, VatRates(Decimal("23"), Decimal("6"))),),
    "RO": (
        (date(2017, 1, 1), date(2025, 7, 31), VatRates(Decimal("19"), Decimal("9"))),
        (date(2025, 8, 1), None, VatRates(Decimal("21"), Decimal("11"))),
    ),
    "SE": ((date(1993, 1, 1), None, VatRates(Decimal("25"), Decimal("12"))),),
    "SI": ((date(2013, 7, 1), None, VatRates(Decimal("22"), Decimal("9.5"))),),
    "SK": (
        (date(2011, 1, 1), date(2024, 12, 31), VatRates(Decimal("20"), Decimal("10"))),
        (date(2025, 1, 1), None, VatRates(Decimal("23"), Decimal("19"))),
    ),
    "CH": (
        (date(2018, 1, 1), date(2023, 12, 31), VatRates(Decimal("7.7"), Decimal("2.5"))),
        (date(2024, 1, 1), None, VatRates(Decimal("8.1"), Decimal("2.6"))),
    ),
}

# country -> (joined, left inclusive or None)
EU_MEMBERSHIP: dict[str, tuple[date, Optional[date]]] = {
    "AT": (date(1995, 1, 1), None),
    "BE": (date(1958, 1, 1), None),
    "BG": (date(2007, 1, 1), None),
    "CY": (date(2004, 5, 1), None),
    "CZ": (date(2004, 5, 1), None),
    "DE": (date(1958, 1, 1), None),
    "DK": (date(1973, 1, 1), None),
    "EE": (date(2004, 5, 1), None),
    "ES": (date(1986, 1, 1), None),
    "FI": (date(1995, 1, 1), None),
    "FR": (date(1958, 1, 1), None),
    "GB": (date(1973, 1, 1), date(2020, 12, 31)),
    "GR": (date(1981, 1, 1), None),
    "HR": (date(2013, 7, 1), None),
    "HU": (date(2004, 5, 1), None),
    "IE": (date(1973, 1, 1), None),
    "IT": (date(1958, 1, 1), None),
    "LT": (date(2004, 5, 1), None),
    "LU": (date(1958, 1, 1), None),
    "LV": (date(2004, 5, 1), None),
    "MT": (date(2004, 5, 1), None),
    "NL": (date(1958, 1, 1), None),
    "PL": (date(2004, 5, 1), None),
    "PT": (date(1986, 1, 1), None),
    "RO": (date(2007, 1, 1), None),
    "SE": (date(1995, 1, 1), None),
    "SI": (date(2004, 5, 1), None),
    "SK": (date(2004, 5, 1), None),
}

UNION_MEMBERSHIP: dict[str, dict[str, tuple[date, Optional[date]]]] = {"EU": EU_MEMBERSHIP}

HOME_CURRENCIES: dict[str, str] = {
    **{country: "EUR" for country in EU_MEMBERSHIP},
    "BG": "BGN",
    "CZ": "CZK",
    "DK": "DKK",
    "HU": "HUF",
    "PL": "PLN",
    "RO": "RON",
    "SE": "SEK",
    "GB": "GBP",
    "CH": "CHF",
    "NO": "NOK",
    "US": "USD",
    "CA": "CAD",
    "AU": "AUD",
    "NZ": "NZD",
}

COUNTRIES = frozenset(HOME_CURRENCIES) | frozenset({"JP", "CN", "IN", "BR", "MX", "TR", "UA"})

# Germany files the UStVA by the 10th of the following month and the ZM by the
# 25th day after the period.
FILING_LAGS: dict[tuple[str, ReportKind], FilingLag] = {
    ("DE", ReportKind.VAT): FilingLag(months=1, day=10),
    ("DE", ReportKind.ZM): FilingLag(months=0, days=25),
    ("AT", ReportKind.VAT): FilingLag(months=2, day=15),
    ("AT", ReportKind.ZM): FilingLag(months=1),
}


def _in_range(on: date, start: date, end: Optional[date]) -> bool:
    return start <= on and (end is None or on <= end)


class StaticJurisdictionSource(JurisdictionSource):
    """Jurisdiction source backed by the bundled tables."""

    def __init__(
        self,
        rate_history: Optional[dict[str, RateHistory]] = None,
        unions: Optional[dict[str, dict[str, tuple[date, Optional[date]]]]] = None,
        filing_lags: Optional[dict[tuple[str, ReportKind], FilingLag]] = None,
        default_filing_lag: FilingLag = DEFAULT_FILING_LAG,
    ):
        """Initialize the source.

        Args:
            rate_history: Override of the VAT rate table
            unions: Override of the union membership table
            filing_lags: Override of the filing lag table
            default_filing_lag: Lag for countries without an entry
        """
        self.rate_history = VAT_RATE_HISTORY if rate_history is None else rate_history
        self.unions = UNION_MEMBERSHIP if unions is None else unions
        self.filing_lags = FILING_LAGS if filing_lags is None else filing_lags
        self.default_filing_lag = default_filing_lag

    def require_country(self, code: str) -> str:
        normalised = (code or "").strip().upper()
        if normalised not in COUNTRIES:
            raise UnknownJurisdictionError(
                f"Unknown country code '{code}'", field="country_code", value=code
            )
        return normalised

    def require_currency(self, code: str) -> str:
        return require_currency(code)

    def union_of(self, country: str, on: date) -> Optional[str]:
        country = self.require_country(country)
        for union, members in self.unions.items():
            membership = members.get(country)
            if membership is not None and _in_range(on, *membership):
                return union
        return None

    def vat_rates(self, country: str, on: date) -> VatRates:
        country = self.require_country(country)
        history = self.rate_history.get(country)
        if not history:
            raise UnknownJurisdictionError(
                f"No VAT rates known for country '{country}'",
                field="country_code",
                value=country,
            )
        for valid_from, valid_to, rates in history:
            if _in_range(on, valid_from, valid_to):
                return rates
        raise UnknownJurisdictionError(
            f"No VAT rates for '{country}' in force on {on.isoformat()}",
            field="supply_date",
            value=on,
        )

    def has_vat_rates(self, country: str) -> bool:
        return bool(self.rate_history.get(self.require_country(country)))

    def home_currency(self, country: str) -> str:
        country = self.require_country(country)
        if country not in HOME_CURRENCIES:
            raise UnknownJurisdictionError(
                f"No home currency known for country '{country}'",
                field="country_code",
                value=country,
            )
        return HOME_CURRENCIES[country]

    def filing_lag(self, country: str, kind: ReportKind) -> FilingLag:
        country = self.require_country(country)
        return self.filing_lags.get((country, ReportKind(kind)), self.default_filing_lag)
