"""Exact money arithmetic on integer minor units."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation
from typing import Union

from vatkit.domain.errors import (
    CurrencyMismatchError,
    UnknownJurisdictionError,
    ValidationError,
    currency_mismatch,
)

# ISO 4217 codes accepted for amounts. All of them use two decimal places.
CURRENCIES = frozenset(
    {
        "AUD",
        "BGN",
        "CAD",
        "CHF",
        "CZK",
        "DKK",
        "EUR",
        "GBP",
        "HUF",
        "NOK",
        "NZD",
        "PLN",
        "RON",
        "SEK",
        "USD",
    }
)

MINOR_UNITS_PER_MAJOR = 100
_HUNDRED = Decimal(100)


def require_currency(code: str) -> str:
    """Return the normalised currency code or raise UnknownJurisdictionError."""
    normalised = (code or "").strip().upper()
    if normalised not in CURRENCIES:
        raise UnknownJurisdictionError(
            f"Unknown currency code '{code}'", field="currency", value=code
        )
    return normalised


def _check_same_currency(left: str, right: str) -> None:
    if left != right:
        raise CurrencyMismatchError(
            currency_mismatch(left, right), field="currency", value=right
        )


@dataclass(frozen=True)
class Money:
    """Amount in a currency, held as integer minor units (cents)."""

    minor_units: int
    currency: str

    def __post_init__(self):
        if not isinstance(self.minor_units, int) or isinstance(self.minor_units, bool):
            raise ValidationError(
                "Money amount must be an integer number of minor units",
                field="minor_units",
                value=self.minor_units,
            )
        object.__setattr__(self, "currency", require_currency(self.currency))

    @classmethod
    def of(cls, amount: Union[str, int, Decimal], currency: str) -> "Money":
        """Build from a decimal string or number with at most two decimals.

        Floats are rejected: ``Money.of(0.1, "EUR")`` would carry binary error.
        """
        if isinstance(amount, float):
            raise ValidationError(
                "Money cannot be built from a float; pass a string or Decimal",
                field="amount",
                value=amount,
            )
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise ValidationError(
                f"Could not parse amount '{amount}'", field="amount", value=amount
            )
        return cls.from_decimal(value, currency)

    @classmethod
    def from_decimal(cls, value: Decimal, currency: str) -> "Money":
        """Build from a Decimal that is already exact to the minor unit."""
        if not value.is_finite():
            raise ValidationError(f"Amount '{value}' is not finite", field="amount", value=value)
        minor = value * MINOR_UNITS_PER_MAJOR
        if minor != minor.to_integral_value():
            raise ValidationError(
                f"Amount '{value}' has more than two decimal places",
                field="amount",
                value=value,
            )
        return cls(int(minor), currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency)

    def add(self, other: "Money") -> "Money":
        _check_same_currency(self.currency, other.currency)
        return Money(self.minor_units + other.minor_units, self.currency)

    def subtract(self, other: "Money") -> "Money":
        _check_same_currency(self.currency, other.currency)
        return Money(self.minor_units - other.minor_units, self.currency)

    def multiply_by_quantity(self, quantity: int) -> "Money":
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise ValidationError(
                "Quantity must be an integer", field="quantity", value=quantity
            )
        return Money(self.minor_units * quantity, self.currency)

    def percentage_of(self, rate: Decimal) -> "UnroundedMoney":
        """Return ``rate`` percent of this amount without rounding.

        Args:
            rate: Percentage between 0 and 100
        """
        rate = Decimal(str(rate))
        if rate < 0 or rate > 100:
            raise ValidationError(
                f"Rate {rate} is outside 0..100", field="rate", value=rate
            )
        return UnroundedMoney(Decimal(self.minor_units) * rate / _HUNDRED, self.currency)

    def round_to_minor_unit(self) -> "Money":
        return self

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def to_decimal(self) -> Decimal:
        return (Decimal(self.minor_units) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))

    def format(self) -> str:
        return f"{self.to_decimal()} {self.currency}"

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __neg__(self) -> "Money":
        return Money(-self.minor_units, self.currency)

    def __lt__(self, other: "Money") -> bool:
        _check_same_currency(self.currency, other.currency)
        return self.minor_units < other.minor_units

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class UnroundedMoney:
    """Intermediate amount with fractional minor units (e.g. 5.7 cents)."""

    minor_units: Decimal
    currency: str

    def round_to_minor_unit(self) -> Money:
        """Round once to whole minor units using banker's rounding."""
        rounded = self.minor_units.quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
        return Money(int(rounded), self.currency)


def sum_money(amounts, currency: str) -> Money:
    """Sum amounts that must all be in ``currency``."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total.add(amount)
    return total
