"""Tests for the invoice service."""

from datetime import date
from decimal import Decimal

import pytest

from vatkit.domain.collaborators import StaticAuthorizer
from vatkit.domain.entities import InvoiceStatus, Party, SaleCategory, VatTreatment
from vatkit.domain.errors import (
    CurrencyMismatchError,
    InvalidLineItemError,
    InvalidPartyDataError,
    InvalidTransitionError,
    InvoiceLockedError,
    NotEntitledError,
    NotFoundError,
    ValidationError,
)
from vatkit.domain.invoice import InvoiceService
from vatkit.domain.money import Money

ISSUED = date(2025, 2, 10)
DUE = date(2025, 2, 24)


def _eur(amount):
    return Money.of(amount, "EUR")


@pytest.fixture
def draft_invoice(invoice_service, sample_profile, german_consumer):
    return invoice_service.create_invoice(customer=german_consumer, issue_date=ISSUED, due_date=DUE)


def test_profile_required(invoice_service, german_consumer):
    with pytest.raises(NotFoundError):
        invoice_service.create_invoice(customer=german_consumer, issue_date=ISSUED, due_date=DUE)


class TestCreate:
    def test_draft_with_resolved_treatment(self, invoice_service, draft_invoice):
        invoice = invoice_service.require_invoice(draft_invoice)
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.currency == "EUR"
        assert invoice.seller.vat_number == "DE123456789"
        assert invoice.seller.name == "Beispiel GmbH"
        assert invoice.vat_treatment == VatTreatment.standard(Decimal("19"))
        assert invoice.lines == ()

    def test_eu_business_gets_reverse_charge(self, invoice_service, sample_profile, french_business):
        invoice_id = invoice_service.create_invoice(
            customer=french_business, issue_date=ISSUED, due_date=DUE
        )
        assert invoice_service.require_invoice(invoice_id).vat_treatment == VatTreatment.reverse_charge()

    def test_rate_of_issue_date(self, invoice_service, sample_profile, german_consumer):
        invoice_id = invoice_service.create_invoice(
            customer=german_consumer,
            issue_date=date(2020, 9, 1),
            due_date=date(2020, 9, 15),
            category=SaleCategory.REDUCED,
        )
        assert invoice_service.require_invoice(invoice_id).vat_treatment == VatTreatment.reduced(
            Decimal("5")
        )

    def test_explicit_currency(self, invoice_service, sample_profile):
        invoice_id = invoice_service.create_invoice(
            customer=Party(country_code="US"), issue_date=ISSUED, due_date=DUE, currency="usd"
        )
        assert invoice_service.require_invoice(invoice_id).currency == "USD"

    def test_due_before_issue(self, invoice_service, sample_profile, german_consumer):
        with pytest.raises(ValidationError) as exc_info:
            invoice_service.create_invoice(
                customer=german_consumer, issue_date=ISSUED, due_date=date(2025, 2, 9)
            )
        assert exc_info.value.field == "due_date"

    def test_invalid_customer(self, invoice_service, sample_profile):
        customer = Party(country_code="FR", is_vat_registered=True)
        with pytest.raises(InvalidPartyDataError):
            invoice_service.create_invoice(customer=customer, issue_date=ISSUED, due_date=DUE)
        assert invoice_service.list_invoices() == []


class TestLines:
    def test_totals_from_lines(self, invoice_service, draft_invoice):
        invoice_service.add_line(draft_invoice, "Consulting", _eur("100.00"), 2, unit="h")
        invoice_service.add_line(draft_invoice, "Travel", _eur("45.00"), 1)

        invoice = invoice_service.require_invoice(draft_invoice)
        assert [line.description for line in invoice.lines] == ["Consulting", "Travel"]
        assert invoice.lines[0].unit == "h"

        totals = invoice_service.get_totals(draft_invoice)
        assert totals.subtotal == _eur("245.00")
        assert totals.vat_amount == _eur("46.55")
        assert totals.total == _eur("291.55")

    def test_invalid_line_rejected(self, invoice_service, draft_invoice):
        with pytest.raises(InvalidLineItemError):
            invoice_service.add_line(draft_invoice, "Refund", _eur("-5.00"), 1)
        with pytest.raises(InvalidLineItemError):
            invoice_service.add_line(draft_invoice, "Nothing", _eur("5.00"), 0)
        assert invoice_service.require_invoice(draft_invoice).lines == ()

    def test_currency_mismatch(self, invoice_service, draft_invoice):
        with pytest.raises(CurrencyMismatchError):
            invoice_service.add_line(draft_invoice, "Licence", Money.of("10.00", "USD"), 1)

    def test_removed_line_excluded_from_totals(self, invoice_service, draft_invoice):
        invoice_service.add_line(draft_invoice, "Consulting", _eur("100.00"), 1)
        line_id = invoice_service.add_line(draft_invoice, "Mistake", _eur("999.00"), 1)
        invoice_service.mark_line_for_removal(draft_invoice, line_id)

        invoice = invoice_service.require_invoice(draft_invoice)
        assert len(invoice.lines) == 2
        assert len(invoice.active_lines) == 1
        assert invoice_service.get_totals(draft_invoice).subtotal == _eur("100.00")

    def test_lines_frozen_after_send(self, invoice_service, draft_invoice):
        line_id = invoice_service.add_line(draft_invoice, "Consulting", _eur("100.00"), 1)
        invoice_service.send(draft_invoice)

        with pytest.raises(InvoiceLockedError):
            invoice_service.add_line(draft_invoice, "More", _eur("1.00"), 1)
        with pytest.raises(InvoiceLockedError):
            invoice_service.mark_line_for_removal(draft_invoice, line_id)

    def test_missing_invoice(self, invoice_service, sample_profile):
        with pytest.raises(NotFoundError):
            invoice_service.add_line(999, "Consulting", _eur("1.00"), 1)
        assert invoice_service.get_invoice(999) is None


class TestStatus:
    def test_send_pay(self, invoice_service, draft_invoice):
        invoice_service.add_line(draft_invoice, "Consulting", _eur("100.00"), 1)
        invoice_service.send(draft_invoice)
        assert invoice_service.require_invoice(draft_invoice).status == InvoiceStatus.SENT
        invoice_service.mark_paid(draft_invoice)
        assert invoice_service.require_invoice(draft_invoice).status == InvoiceStatus.PAID

        with pytest.raises(InvalidTransitionError):
            invoice_service.cancel(draft_invoice)

    def test_cannot_send_without_lines(self, invoice_service, draft_invoice):
        with pytest.raises(ValidationError) as exc_info:
            invoice_service.send(draft_invoice)
        assert exc_info.value.field == "lines"

    def test_cannot_pay_draft(self, invoice_service, draft_invoice):
        with pytest.raises(InvalidTransitionError):
            invoice_service.mark_paid(draft_invoice)

    def test_cancel_draft(self, invoice_service, draft_invoice):
        invoice_service.cancel(draft_invoice)
        assert invoice_service.require_invoice(draft_invoice).status == InvoiceStatus.CANCELLED
        with pytest.raises(InvalidTransitionError):
            invoice_service.send(draft_invoice)

    def test_overdue(self, invoice_service, make_sent_invoice, german_consumer, sample_profile):
        invoice_id = make_sent_invoice(german_consumer, issue_date=ISSUED)
        invoice_service.update_details(invoice_id, due_date=DUE)

        assert not invoice_service.is_overdue(invoice_id, DUE)
        assert invoice_service.is_overdue(invoice_id, date(2025, 2, 25))

        invoice_service.mark_paid(invoice_id)
        assert not invoice_service.is_overdue(invoice_id, date(2025, 2, 25))

    def test_list_by_status(self, invoice_service, draft_invoice, make_sent_invoice, german_consumer):
        sent = make_sent_invoice(german_consumer)
        listed = invoice_service.list_invoices(statuses=[InvoiceStatus.SENT])
        assert [invoice.id for invoice in listed] == [sent]
        assert len(invoice_service.list_invoices()) == 2


class TestUpdate:
    def test_draft_edit_needs_no_capability(self, temp_db, draft_invoice):
        service = InvoiceService(temp_db, authorizer=StaticAuthorizer(()))
        service.update_details(draft_invoice, user="clerk", notes="Thanks!")
        assert service.require_invoice(draft_invoice).notes == "Thanks!"

    def test_sent_edit_needs_capability(self, temp_db, make_sent_invoice, german_consumer, sample_profile):
        invoice_id = make_sent_invoice(german_consumer)
        service = InvoiceService(temp_db, authorizer=StaticAuthorizer(()))

        with pytest.raises(NotEntitledError):
            service.update_details(invoice_id, user="clerk", notes="Late edit")
        assert service.require_invoice(invoice_id).notes is None

    def test_treatment_kept_when_customer_changes(
        self, invoice_service, make_sent_invoice, german_consumer, french_business, sample_profile
    ):
        invoice_id = make_sent_invoice(german_consumer)
        invoice_service.update_details(invoice_id, user="accountant", customer=french_business)

        invoice = invoice_service.require_invoice(invoice_id)
        assert invoice.customer.country_code == "FR"
        assert invoice.vat_treatment == VatTreatment.standard(Decimal("19"))

    def test_due_date_cannot_precede_issue(self, invoice_service, draft_invoice):
        with pytest.raises(ValidationError):
            invoice_service.update_details(draft_invoice, due_date=date(2025, 1, 1))
