"""Tests for the transaction service."""

from datetime import date
from decimal import Decimal

import pytest

from vatkit.domain.entities import Party, SaleCategory, TransactionKind, TreatmentKind, VatTreatment
from vatkit.domain.errors import NotFoundError, ValidationError
from vatkit.domain.money import Money


def _eur(amount):
    return Money.of(amount, "EUR")


def test_profile_required(transaction_service, german_consumer):
    with pytest.raises(NotFoundError):
        transaction_service.record_income(date(2025, 1, 5), _eur("100.00"), german_consumer)


class TestIncome:
    def test_domestic_sale(self, transaction_service, sample_profile, german_consumer):
        txn_id = transaction_service.record_income(
            date(2025, 1, 5), _eur("100.00"), german_consumer, description="Workshop"
        )
        txn = transaction_service.require_transaction(txn_id)
        assert txn.kind == TransactionKind.INCOME
        assert txn.vat_treatment == VatTreatment.standard(Decimal("19"))
        assert txn.vat_amount == _eur("19.00")
        assert txn.counterparty.name == "Erika Mustermann"
        assert txn.description == "Workshop"

    def test_reduced_category(self, transaction_service, sample_profile, german_consumer):
        txn_id = transaction_service.record_income(
            date(2025, 1, 5), _eur("10.00"), german_consumer, category=SaleCategory.REDUCED
        )
        assert transaction_service.require_transaction(txn_id).vat_amount == _eur("0.70")

    def test_export_of_goods(self, transaction_service, sample_profile):
        txn_id = transaction_service.record_income(
            date(2025, 1, 5),
            _eur("800.00"),
            Party(country_code="CH"),
            is_goods=True,
            has_export_proof=True,
        )
        txn = transaction_service.require_transaction(txn_id)
        assert txn.vat_treatment.kind == TreatmentKind.ZERO
        assert txn.vat_amount.is_zero()

    @pytest.mark.parametrize("amount", ["0.00", "-1.00"])
    def test_amount_must_be_positive(self, transaction_service, sample_profile, german_consumer, amount):
        with pytest.raises(ValidationError) as exc_info:
            transaction_service.record_income(date(2025, 1, 5), _eur(amount), german_consumer)
        assert exc_info.value.field == "net_amount"


class TestExpense:
    def test_domestic_supplier(self, transaction_service, sample_profile):
        supplier = Party(country_code="DE", vat_number="DE999999999", is_vat_registered=True)
        txn_id = transaction_service.record_expense(date(2025, 1, 8), _eur("50.00"), supplier)
        txn = transaction_service.require_transaction(txn_id)
        assert txn.kind == TransactionKind.EXPENSE
        assert txn.vat_amount == _eur("9.50")

    def test_eu_supplier_is_reverse_charge(self, transaction_service, sample_profile, french_business):
        txn_id = transaction_service.record_expense(date(2025, 1, 8), _eur("300.00"), french_business)
        assert transaction_service.require_transaction(txn_id).vat_treatment == VatTreatment.reverse_charge()

    def test_non_eu_supplier(self, transaction_service, sample_profile):
        supplier = Party(country_code="US", vat_number="US-EIN-1", is_vat_registered=True)
        txn_id = transaction_service.record_expense(date(2025, 1, 8), _eur("20.00"), supplier)
        assert transaction_service.require_transaction(txn_id).vat_treatment == VatTreatment.outside_scope()


def test_list_filters(transaction_service, sample_profile, german_consumer, french_business):
    income = transaction_service.record_income(date(2025, 1, 5), _eur("100.00"), german_consumer)
    expense = transaction_service.record_expense(date(2025, 2, 8), _eur("30.00"), french_business)
    late = transaction_service.record_income(date(2025, 4, 1), _eur("5.00"), german_consumer)

    in_q1 = transaction_service.list_transactions(date(2025, 1, 1), date(2025, 3, 31))
    assert [txn.id for txn in in_q1] == [income, expense]

    incomes = transaction_service.list_transactions(kind=TransactionKind.INCOME)
    assert [txn.id for txn in incomes] == [income, late]


def test_missing_transaction(transaction_service):
    assert transaction_service.get_transaction(42) is None
    with pytest.raises(NotFoundError):
        transaction_service.require_transaction(42)
