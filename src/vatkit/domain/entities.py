"""Domain model entities for vatkit.

These are pure data classes representing business concepts, independent of
database schema. Amounts are Money values; totals are never stored on an
invoice, they are derived from its lines on every read.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from vatkit.domain.errors import InvalidLineItemError, ValidationError
from vatkit.domain.money import Money


class TreatmentKind(str, Enum):
    """Legal VAT treatment of a sale."""

    STANDARD = "standard"
    REDUCED = "reduced"
    ZERO = "zero"
    REVERSE_CHARGE = "reverse_charge"
    EXEMPT = "exempt"
    OUTSIDE_SCOPE = "outside_scope"


TAXED_KINDS = frozenset({TreatmentKind.STANDARD, TreatmentKind.REDUCED})


class SaleCategory(str, Enum):
    """Rate category of the goods or service sold."""

    STANDARD = "standard"
    REDUCED = "reduced"
    EXEMPT = "exempt"


class Cadence(str, Enum):
    """Declaration period length."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        return {"monthly": 1, "quarterly": 3, "yearly": 12}[self.value]


class ReportKind(str, Enum):
    """VAT return or EC Sales List (Zusammenfassende Meldung)."""

    VAT = "vat"
    ZM = "zm"


class ReportStatus(str, Enum):
    DRAFT = "draft"
    PREVIEWED = "previewed"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class AttemptOutcome(str, Enum):
    """Result of one submission attempt."""

    FILED = "filed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass(frozen=True)
class VatTreatment:
    """VAT treatment with its rate in percent (0 for untaxed kinds).

    Zero, reverse charge, exempt and outside scope all carry rate 0 but stay
    distinct kinds.
    """

    kind: TreatmentKind
    rate: Decimal = Decimal("0")

    def __post_init__(self):
        object.__setattr__(self, "kind", TreatmentKind(self.kind))
        rate = Decimal(str(self.rate))
        if self.kind in TAXED_KINDS:
            if rate <= 0 or rate > 100:
                raise ValidationError(
                    f"{self.kind.value} rate must be within (0, 100], got {rate}",
                    field="rate",
                    value=rate,
                )
        elif rate != 0:
            raise ValidationError(
                f"{self.kind.value} treatment carries rate 0, got {rate}",
                field="rate",
                value=rate,
            )
        object.__setattr__(self, "rate", rate)

    @classmethod
    def standard(cls, rate: Decimal) -> "VatTreatment":
        return cls(TreatmentKind.STANDARD, rate)

    @classmethod
    def reduced(cls, rate: Decimal) -> "VatTreatment":
        return cls(TreatmentKind.REDUCED, rate)

    @classmethod
    def zero(cls) -> "VatTreatment":
        return cls(TreatmentKind.ZERO)

    @classmethod
    def reverse_charge(cls) -> "VatTreatment":
        return cls(TreatmentKind.REVERSE_CHARGE)

    @classmethod
    def exempt(cls) -> "VatTreatment":
        return cls(TreatmentKind.EXEMPT)

    @classmethod
    def outside_scope(cls) -> "VatTreatment":
        return cls(TreatmentKind.OUTSIDE_SCOPE)

    @property
    def charges_vat(self) -> bool:
        return self.kind in TAXED_KINDS

    def describe(self) -> str:
        if self.charges_vat:
            return f"{self.kind.value} {self.rate.normalize():f}%"
        return self.kind.value


@dataclass(frozen=True)
class Party:
    """Seller (the business) or customer."""

    country_code: str
    vat_number: Optional[str] = None
    is_vat_registered: bool = False
    name: Optional[str] = None
    is_small_business: bool = False

    def __post_init__(self):
        object.__setattr__(self, "country_code", (self.country_code or "").strip().upper())
        vat_number = self.vat_number.strip() if self.vat_number else None
        object.__setattr__(self, "vat_number", vat_number or None)


@dataclass(frozen=True)
class SaleContext:
    """Facts about a sale, besides the parties, that decide its treatment."""

    supply_date: date
    category: SaleCategory = SaleCategory.STANDARD
    is_goods: bool = False
    has_export_proof: bool = False


@dataclass(frozen=True)
class LineItem:
    """Invoice line. Validated on construction."""

    description: str
    unit_price: Money
    quantity: int
    unit: str = "pcs"
    destroy: bool = False
    id: Optional[int] = None

    def __post_init__(self):
        if not self.description or not self.description.strip():
            raise InvalidLineItemError(
                "Line item needs a description", field="description", value=self.description
            )
        if self.unit_price.is_negative():
            raise InvalidLineItemError(
                f"Unit price cannot be negative: {self.unit_price}",
                field="unit_price",
                value=self.unit_price,
            )
        if (
            not isinstance(self.quantity, int)
            or isinstance(self.quantity, bool)
            or self.quantity <= 0
        ):
            raise InvalidLineItemError(
                f"Quantity must be a positive integer, got {self.quantity!r}",
                field="quantity",
                value=self.quantity,
            )

    @property
    def net_amount(self) -> Money:
        return self.unit_price.multiply_by_quantity(self.quantity)


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity. Treatment is fixed at creation."""

    id: int
    seller: Party
    customer: Party
    issue_date: date
    due_date: date
    currency: str
    vat_treatment: VatTreatment
    status: InvoiceStatus
    lines: tuple[LineItem, ...] = ()
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def active_lines(self) -> tuple[LineItem, ...]:
        return tuple(line for line in self.lines if not line.destroy)


@dataclass(frozen=True)
class Transaction:
    """Income or expense entry not tied to an invoice."""

    id: int
    kind: TransactionKind
    date: date
    description: Optional[str]
    net_amount: Money
    counterparty: Party
    vat_treatment: VatTreatment
    created_at: Optional[datetime] = None

    @property
    def vat_amount(self) -> Money:
        """VAT charged on the entry, rounded once."""
        if not self.vat_treatment.charges_vat:
            return Money.zero(self.net_amount.currency)
        return self.net_amount.percentage_of(self.vat_treatment.rate).round_to_minor_unit()


@dataclass(frozen=True)
class BusinessProfile:
    """VAT registration details of the business using vatkit."""

    country_code: str
    vat_number: Optional[str] = None
    is_vat_registered: bool = True
    is_small_business: bool = False
    cadence: Cadence = Cadence.QUARTERLY
    fiscal_year_start: int = 1
    name: Optional[str] = None

    def to_party(self) -> Party:
        return Party(
            country_code=self.country_code,
            vat_number=self.vat_number,
            is_vat_registered=self.is_vat_registered,
            name=self.name,
            is_small_business=self.is_small_business,
        )


@dataclass(frozen=True)
class ReportPeriod:
    """One declaration period and its filing deadline."""

    period_start: date
    period_end: date
    due_date: date
    period_label: str
    year: int
    elster_period: Optional[str] = None

    def contains(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end


@dataclass(frozen=True)
class SubmissionAttempt:
    """Audit record of one submission of a report."""

    id: int
    report_id: int
    attempt_number: int
    outcome: AttemptOutcome
    started_at: datetime
    finished_at: Optional[datetime] = None
    receipt_reference: Optional[str] = None
    error_message: Optional[str] = None
    submitted_by: Optional[str] = None


@dataclass(frozen=True)
class TaxReport:
    """VAT return or ZM report for one period."""

    id: int
    kind: ReportKind
    period_start: date
    period_end: date
    due_date: date
    year: int
    period_label: str
    status: ReportStatus
    elster_period: Optional[str] = None
    submitted_at: Optional[datetime] = None
    last_test_submitted_at: Optional[datetime] = None
    attempts: tuple[SubmissionAttempt, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def period(self) -> ReportPeriod:
        return ReportPeriod(
            period_start=self.period_start,
            period_end=self.period_end,
            due_date=self.due_date,
            period_label=self.period_label,
            year=self.year,
            elster_period=self.elster_period,
        )

    @property
    def latest_attempt(self) -> Optional[SubmissionAttempt]:
        if not self.attempts:
            return None
        return max(self.attempts, key=lambda attempt: attempt.attempt_number)

    @property
    def error_message(self) -> Optional[str]:
        """Error message of the most recent attempt, if it failed."""
        attempt = self.latest_attempt
        if attempt is None:
            return None
        return attempt.error_message


@dataclass(frozen=True)
class Totals:
    """Derived amounts of an invoice or document set."""

    subtotal: Money
    vat_amount: Money
    total: Money
    line_count: int = 0

    def is_empty(self) -> bool:
        return (
            self.line_count == 0
            and self.subtotal.is_zero()
            and self.vat_amount.is_zero()
            and self.total.is_zero()
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "currency": self.subtotal.currency,
            "subtotal": str(self.subtotal.to_decimal()),
            "vat_amount": str(self.vat_amount.to_decimal()),
            "total": str(self.total.to_decimal()),
        }


@dataclass(frozen=True)
class VatFinancialData:
    """Aggregated figures of a VAT return."""

    currency: str
    domestic_net: Money
    domestic_vat: Money
    eu_b2b_net: Money
    non_eu_net: Money
    exempt_net: Money
    input_vat: Money
    eu_expense_net: Money
    eu_expense_vat: Money
    line_count: int

    @property
    def remaining_vat(self) -> Money:
        """VAT payable (negative for a refund).

        Self-assessed VAT on EU acquisitions is owed and deductible at once,
        so it cancels out.
        """
        owed = self.domestic_vat.add(self.eu_expense_vat)
        deductible = self.input_vat.add(self.eu_expense_vat)
        return owed.subtract(deductible)

    def is_empty(self) -> bool:
        amounts = (
            self.domestic_net,
            self.domestic_vat,
            self.eu_b2b_net,
            self.non_eu_net,
            self.exempt_net,
            self.input_vat,
            self.eu_expense_net,
            self.eu_expense_vat,
        )
        return self.line_count == 0 and all(amount.is_zero() for amount in amounts)


@dataclass(frozen=True)
class ZmLine:
    """Intra-union B2B sales to one customer VAT number."""

    vat_number: str
    country_code: str
    amount: Money
    count: int


@dataclass(frozen=True)
class ZmFinancialData:
    """Aggregated figures of an EC Sales List."""

    currency: str
    total_transactions: int
    total_amount: Money
    domestic_amount: Money
    eu_amount: Money
    with_vat_number_count: int
    with_vat_number_amount: Money
    without_vat_number_count: int
    without_vat_number_amount: Money
    lines: tuple[ZmLine, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return self.with_vat_number_count == 0 and self.with_vat_number_amount.is_zero()


@dataclass(frozen=True)
class VatReportPreview:
    report: TaxReport
    financial_data: VatFinancialData


@dataclass(frozen=True)
class ZmReportPreview:
    report: TaxReport
    financial_data: ZmFinancialData


@dataclass(frozen=True)
class ReportView:
    """Report with the date- and entitlement-dependent flags for listing."""

    report: TaxReport
    overdue: bool
    due_soon: bool
    submittable: bool
    can_submit: bool
