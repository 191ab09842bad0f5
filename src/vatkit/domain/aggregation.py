"""Aggregation of invoices and transactions into report figures.

Every document is totalled on its own (VAT rounded once per document), and
the rounded document amounts are then summed per report field.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from vatkit.domain.entities import (
    Invoice,
    InvoiceStatus,
    Party,
    ReportPeriod,
    Transaction,
    TransactionKind,
    TreatmentKind,
    VatFinancialData,
    VatTreatment,
    ZmFinancialData,
    ZmLine,
)
from vatkit.domain.errors import CurrencyMismatchError, currency_mismatch
from vatkit.domain.jurisdiction import JurisdictionSource
from vatkit.domain.money import Money
from vatkit.domain.totals import invoice_totals

REPORTABLE_INVOICE_STATUSES = frozenset({InvoiceStatus.SENT, InvoiceStatus.PAID})


@dataclass(frozen=True)
class _Document:
    """Invoice or transaction reduced to what the reports need."""

    kind: TransactionKind
    date: date
    counterparty: Party
    treatment: VatTreatment
    net: Money
    vat: Money
    line_count: int


def _collect(
    invoices: Iterable[Invoice],
    transactions: Iterable[Transaction],
    period: ReportPeriod,
    currency: str,
) -> list[_Document]:
    documents = []
    for invoice in invoices:
        if invoice.status not in REPORTABLE_INVOICE_STATUSES or not period.contains(invoice.issue_date):
            continue
        totals = invoice_totals(invoice)
        documents.append(
            _Document(
                kind=TransactionKind.INCOME,
                date=invoice.issue_date,
                counterparty=invoice.customer,
                treatment=invoice.vat_treatment,
                net=totals.subtotal,
                vat=totals.vat_amount,
                line_count=totals.line_count,
            )
        )
    for txn in transactions:
        if not period.contains(txn.date):
            continue
        documents.append(
            _Document(
                kind=txn.kind,
                date=txn.date,
                counterparty=txn.counterparty,
                treatment=txn.vat_treatment,
                net=txn.net_amount,
                vat=txn.vat_amount,
                line_count=1,
            )
        )

    for document in documents:
        if document.net.currency != currency:
            raise CurrencyMismatchError(
                currency_mismatch(currency, document.net.currency),
                field="currency",
                value=document.net.currency,
            )
    return documents


def vat_financial_data(
    invoices: Iterable[Invoice],
    transactions: Iterable[Transaction],
    period: ReportPeriod,
    business: Party,
    jurisdictions: JurisdictionSource,
) -> VatFinancialData:
    """Figures of a VAT return for one period.

    Args:
        invoices: Candidate invoices; only sent or paid ones issued in the
            period count
        transactions: Candidate transactions; only those dated in the period count
        period: Declaration period
        business: The declaring business
        jurisdictions: Rates and currencies

    Raises:
        CurrencyMismatchError: If a document is not in the home currency
    """
    currency = jurisdictions.home_currency(business.country_code)
    zero = Money.zero(currency)
    totals = {
        "domestic_net": zero,
        "domestic_vat": zero,
        "eu_b2b_net": zero,
        "non_eu_net": zero,
        "exempt_net": zero,
        "input_vat": zero,
        "eu_expense_net": zero,
        "eu_expense_vat": zero,
    }
    line_count = 0

    for document in _collect(invoices, transactions, period, currency):
        line_count += document.line_count
        kind = document.treatment.kind

        if document.kind == TransactionKind.INCOME:
            if kind in (TreatmentKind.STANDARD, TreatmentKind.REDUCED):
                totals["domestic_net"] += document.net
                totals["domestic_vat"] += document.vat
            elif kind == TreatmentKind.REVERSE_CHARGE:
                totals["eu_b2b_net"] += document.net
            elif kind == TreatmentKind.EXEMPT:
                totals["exempt_net"] += document.net
            else:
                totals["non_eu_net"] += document.net
            continue

        if kind == TreatmentKind.REVERSE_CHARGE:
            # Self-assessed at the business's own standard rate
            rates = jurisdictions.vat_rates(business.country_code, document.date)
            totals["eu_expense_net"] += document.net
            totals["eu_expense_vat"] += document.net.percentage_of(rates.standard).round_to_minor_unit()
        elif document.treatment.charges_vat and document.counterparty.country_code == business.country_code:
            # Foreign VAT paid abroad is not deductible here
            totals["input_vat"] += document.vat

    return VatFinancialData(currency=currency, line_count=line_count, **totals)


def zm_financial_data(
    invoices: Iterable[Invoice],
    transactions: Iterable[Transaction],
    period: ReportPeriod,
    business: Party,
    jurisdictions: JurisdictionSource,
) -> ZmFinancialData:
    """Figures of an EC Sales List (ZM) for one period.

    Only sales count. Sales to customers in the business's union but another
    country are intra-union; those resolved as reverse charge are listed per
    customer VAT number.
    """
    currency = jurisdictions.home_currency(business.country_code)
    zero = Money.zero(currency)
    total_amount = domestic_amount = eu_amount = zero
    with_amount = without_amount = zero
    total_count = with_count = without_count = 0
    per_vat_number: dict[str, ZmLine] = {}

    for document in _collect(invoices, transactions, period, currency):
        if document.kind != TransactionKind.INCOME:
            continue
        total_count += 1
        total_amount += document.net
        customer = document.counterparty

        if customer.country_code == business.country_code:
            domestic_amount += document.net
            continue
        union = jurisdictions.union_of(business.country_code, document.date)
        if union is None or jurisdictions.union_of(customer.country_code, document.date) != union:
            continue

        eu_amount += document.net
        if customer.vat_number and document.treatment.kind == TreatmentKind.REVERSE_CHARGE:
            with_count += 1
            with_amount += document.net
            line = per_vat_number.get(customer.vat_number)
            if line is None:
                line = ZmLine(customer.vat_number, customer.country_code, zero, 0)
            per_vat_number[customer.vat_number] = ZmLine(
                vat_number=line.vat_number,
                country_code=line.country_code,
                amount=line.amount + document.net,
                count=line.count + 1,
            )
        else:
            without_count += 1
            without_amount += document.net

    return ZmFinancialData(
        currency=currency,
        total_transactions=total_count,
        total_amount=total_amount,
        domestic_amount=domestic_amount,
        eu_amount=eu_amount,
        with_vat_number_count=with_count,
        with_vat_number_amount=with_amount,
        without_vat_number_count=without_count,
        without_vat_number_amount=without_amount,
        lines=tuple(sorted(per_vat_number.values(), key=lambda line: line.vat_number)),
    )
