"""Tests for the Money primitive."""

from decimal import Decimal

import pytest

from vatkit.domain.errors import CurrencyMismatchError, UnknownJurisdictionError, ValidationError
from vatkit.domain.money import Money, UnroundedMoney, sum_money


class TestConstruction:
    def test_of_string(self):
        money = Money.of("100.50", "EUR")
        assert money.minor_units == 10050
        assert money.currency == "EUR"

    def test_of_int_and_decimal(self):
        assert Money.of(3, "EUR").minor_units == 300
        assert Money.of(Decimal("0.07"), "EUR").minor_units == 7

    def test_currency_is_normalised(self):
        assert Money.of("1", "eur").currency == "EUR"

    def test_float_rejected(self):
        with pytest.raises(ValidationError):
            Money.of(0.1, "EUR")

    def test_more_than_two_decimals_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Money.of("1.005", "EUR")
        assert exc_info.value.field == "amount"

    def test_unparseable_amount_rejected(self):
        with pytest.raises(ValidationError):
            Money.of("ten", "EUR")

    def test_unknown_currency_rejected(self):
        with pytest.raises(UnknownJurisdictionError):
            Money.of("1.00", "XYZ")

    def test_minor_units_must_be_int(self):
        with pytest.raises(ValidationError):
            Money(Decimal("1.5"), "EUR")

    def test_immutability(self):
        money = Money.of("1.00", "EUR")
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            money.minor_units = 5


class TestArithmetic:
    def test_add_and_subtract(self):
        a = Money.of("10.00", "EUR")
        b = Money.of("2.50", "EUR")
        assert a.add(b) == Money.of("12.50", "EUR")
        assert a - b == Money.of("7.50", "EUR")
        assert (b - a).is_negative()

    def test_cross_currency_add_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Money.of("1.00", "EUR").add(Money.of("1.00", "USD"))

    def test_cross_currency_compare_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Money.of("1.00", "EUR") < Money.of("1.00", "GBP")

    def test_multiply_by_quantity(self):
        assert Money.of("0.13", "EUR").multiply_by_quantity(3) == Money.of("0.39", "EUR")

    def test_multiply_by_non_integer_rejected(self):
        with pytest.raises(ValidationError):
            Money.of("1.00", "EUR").multiply_by_quantity(1.5)

    def test_sum_money(self):
        amounts = [Money.of("1.10", "EUR"), Money.of("2.20", "EUR")]
        assert sum_money(amounts, "EUR") == Money.of("3.30", "EUR")
        assert sum_money([], "EUR").is_zero()


class TestPercentage:
    def test_percentage_is_unrounded(self):
        vat = Money.of("0.39", "EUR").percentage_of(Decimal("19"))
        assert isinstance(vat, UnroundedMoney)
        assert vat.minor_units == Decimal("7.41")

    def test_round_to_minor_unit(self):
        vat = Money.of("200.00", "EUR").percentage_of(Decimal("19")).round_to_minor_unit()
        assert vat == Money.of("38.00", "EUR")

    @pytest.mark.parametrize(
        "minor_units,expected",
        [("2.5", 2), ("3.5", 4), ("-2.5", -2), ("2.51", 3), ("2.49", 2)],
    )
    def test_half_even_rounding(self, minor_units, expected):
        rounded = UnroundedMoney(Decimal(minor_units), "EUR").round_to_minor_unit()
        assert rounded.minor_units == expected

    def test_half_cent_vat_rounds_to_even(self):
        # 1.50 * 19% = 28.5 cents
        vat = Money.of("1.50", "EUR").percentage_of(Decimal("19")).round_to_minor_unit()
        assert vat == Money.of("0.28", "EUR")

    @pytest.mark.parametrize("rate", [Decimal("-1"), Decimal("100.01")])
    def test_rate_out_of_range(self, rate):
        with pytest.raises(ValidationError):
            Money.of("1.00", "EUR").percentage_of(rate)


def test_format():
    assert Money.of("1234.5", "EUR").format() == "1234.50 EUR"
    assert str(Money.of("-3", "GBP")) == "-3.00 GBP"
    assert Money.of("0.07", "EUR").to_decimal() == Decimal("0.07")
