"""Mapper functions to convert between domain models and SQLAlchemy models.

Parties, money and treatments are stored as flat columns; this layer
reassembles them into domain value objects.
"""

from decimal import Decimal

from vatkit.domain import entities as domain
from vatkit.domain.money import Money
from vatkit.database.models import (
    BusinessProfile as ORMBusinessProfile,
    Invoice as ORMInvoice,
    InvoiceLine as ORMInvoiceLine,
    Transaction as ORMTransaction,
    TaxReport as ORMTaxReport,
    SubmissionAttempt as ORMSubmissionAttempt,
)


def treatment_to_domain(kind: str, rate: Decimal) -> domain.VatTreatment:
    """Rebuild a VatTreatment from its stored kind and rate."""
    return domain.VatTreatment(kind=domain.TreatmentKind(kind), rate=Decimal(rate))


def profile_to_domain(orm_profile: ORMBusinessProfile) -> domain.BusinessProfile:
    """Convert SQLAlchemy BusinessProfile model to domain BusinessProfile entity."""
    return domain.BusinessProfile(
        country_code=orm_profile.country_code,
        vat_number=orm_profile.vat_number,
        is_vat_registered=orm_profile.is_vat_registered,
        is_small_business=orm_profile.is_small_business,
        cadence=domain.Cadence(orm_profile.cadence),
        fiscal_year_start=orm_profile.fiscal_year_start,
        name=orm_profile.name,
    )


def line_to_domain(orm_line: ORMInvoiceLine) -> domain.LineItem:
    """Convert SQLAlchemy InvoiceLine model to domain LineItem entity."""
    return domain.LineItem(
        id=orm_line.id,
        description=orm_line.description,
        unit_price=Money(orm_line.unit_price_minor, orm_line.currency),
        quantity=orm_line.quantity,
        unit=orm_line.unit,
        destroy=orm_line.destroy,
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        seller=domain.Party(
            country_code=orm_invoice.seller_country,
            vat_number=orm_invoice.seller_vat_number,
            is_vat_registered=orm_invoice.seller_vat_registered,
            name=orm_invoice.seller_name,
            is_small_business=orm_invoice.seller_small_business,
        ),
        customer=domain.Party(
            country_code=orm_invoice.customer_country,
            vat_number=orm_invoice.customer_vat_number,
            is_vat_registered=orm_invoice.customer_vat_registered,
            name=orm_invoice.customer_name,
        ),
        issue_date=orm_invoice.issue_date,
        due_date=orm_invoice.due_date,
        currency=orm_invoice.currency,
        vat_treatment=treatment_to_domain(orm_invoice.vat_kind, orm_invoice.vat_rate),
        status=domain.InvoiceStatus(orm_invoice.status),
        lines=tuple(line_to_domain(line) for line in orm_invoice.lines),
        notes=orm_invoice.notes,
        created_at=orm_invoice.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        kind=domain.TransactionKind(orm_transaction.kind),
        date=orm_transaction.date,
        description=orm_transaction.description,
        net_amount=Money(orm_transaction.net_amount_minor, orm_transaction.currency),
        counterparty=domain.Party(
            country_code=orm_transaction.counterparty_country,
            vat_number=orm_transaction.counterparty_vat_number,
            is_vat_registered=orm_transaction.counterparty_vat_registered,
            name=orm_transaction.counterparty_name,
        ),
        vat_treatment=treatment_to_domain(orm_transaction.vat_kind, orm_transaction.vat_rate),
        created_at=orm_transaction.created_at,
    )


def attempt_to_domain(orm_attempt: ORMSubmissionAttempt) -> domain.SubmissionAttempt:
    """Convert SQLAlchemy SubmissionAttempt model to domain SubmissionAttempt entity."""
    return domain.SubmissionAttempt(
        id=orm_attempt.id,
        report_id=orm_attempt.report_id,
        attempt_number=orm_attempt.attempt_number,
        outcome=domain.AttemptOutcome(orm_attempt.outcome),
        started_at=orm_attempt.started_at,
        finished_at=orm_attempt.finished_at,
        receipt_reference=orm_attempt.receipt_reference,
        error_message=orm_attempt.error_message,
        submitted_by=orm_attempt.submitted_by,
    )


def tax_report_to_domain(orm_report: ORMTaxReport) -> domain.TaxReport:
    """Convert SQLAlchemy TaxReport model to domain TaxReport entity."""
    return domain.TaxReport(
        id=orm_report.id,
        kind=domain.ReportKind(orm_report.kind),
        period_start=orm_report.period_start,
        period_end=orm_report.period_end,
        due_date=orm_report.due_date,
        year=orm_report.year,
        period_label=orm_report.period_label,
        status=domain.ReportStatus(orm_report.status),
        elster_period=orm_report.elster_period,
        submitted_at=orm_report.submitted_at,
        last_test_submitted_at=orm_report.last_test_submitted_at,
        attempts=tuple(attempt_to_domain(attempt) for attempt in orm_report.attempts),
        created_at=orm_report.created_at,
        updated_at=orm_report.updated_at,
    )
