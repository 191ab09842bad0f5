"""Invoice domain service."""

import logging
from datetime import date
from typing import Iterable, Optional

from vatkit.database.base import Database
from vatkit.domain.collaborators import (
    CAPABILITY_INVOICE_EDIT,
    Authorizer,
    StaticAuthorizer,
)
from vatkit.domain.entities import (
    Invoice,
    InvoiceStatus,
    LineItem,
    Party,
    SaleCategory,
    SaleContext,
    Totals,
)
from vatkit.domain.errors import (
    CurrencyMismatchError,
    InvoiceLockedError,
    NotEntitledError,
    NotFoundError,
    ValidationError,
    currency_mismatch,
    invoice_not_found,
    not_entitled,
)
from vatkit.domain.jurisdiction import JurisdictionSource, StaticJurisdictionSource
from vatkit.domain.lifecycle import check_invoice_transition
from vatkit.domain.money import Money
from vatkit.domain.profile import ProfileService
from vatkit.domain.totals import invoice_totals
from vatkit.domain.vat_resolver import VatRuleResolver, validate_party

logger = logging.getLogger(__name__)


def is_invoice_overdue(invoice: Invoice, today: date) -> bool:
    """A sent invoice is overdue once its due date has passed."""
    return invoice.status == InvoiceStatus.SENT and today > invoice.due_date


class InvoiceService:
    """Service for managing invoices."""

    def __init__(
        self,
        db: Database,
        jurisdictions: Optional[JurisdictionSource] = None,
        authorizer: Optional[Authorizer] = None,
    ):
        """Initialize invoice service.

        Args:
            db: Database instance
            jurisdictions: Jurisdiction tables (bundled tables by default)
            authorizer: Entitlement checks (everything allowed by default)
        """
        self.db = db
        self.jurisdictions = jurisdictions or StaticJurisdictionSource()
        self.authorizer = authorizer or StaticAuthorizer()
        self.resolver = VatRuleResolver(self.jurisdictions)
        self.profiles = ProfileService(db, self.jurisdictions)

    def create_invoice(
        self,
        customer: Party,
        issue_date: date,
        due_date: date,
        currency: Optional[str] = None,
        category: SaleCategory = SaleCategory.STANDARD,
        is_goods: bool = False,
        has_export_proof: bool = False,
        notes: Optional[str] = None,
    ) -> int:
        """Create a draft invoice from the business to a customer.

        The VAT treatment is resolved here, once, for the issue date, and
        never re-resolved afterwards.

        Args:
            customer: Invoice recipient
            issue_date: Invoice date, which fixes the VAT rate
            due_date: Payment due date
            currency: Invoice currency (business home currency if None)
            category: Rate category of what is sold
            is_goods: True for goods, False for services
            has_export_proof: True if export of the goods is documented
            notes: Optional notes

        Returns:
            Invoice ID

        Raises:
            NotFoundError: If the business profile is not set up
            UnknownJurisdictionError: If a country or currency is unknown
            InvalidPartyDataError: If the customer data is inconsistent
            ValidationError: If the due date precedes the issue date
        """
        profile = self.profiles.require_profile()
        seller = profile.to_party()
        if currency is None:
            currency = self.jurisdictions.home_currency(seller.country_code)
        currency = self.jurisdictions.require_currency(currency)

        if due_date < issue_date:
            raise ValidationError(
                "Due date cannot be before the issue date", field="due_date", value=due_date
            )

        context = SaleContext(
            supply_date=issue_date,
            category=SaleCategory(category),
            is_goods=is_goods,
            has_export_proof=has_export_proof,
        )
        treatment = self.resolver.resolve(seller, customer, context)

        invoice_id = self.db.create_invoice(
            seller=seller,
            customer=customer,
            issue_date=issue_date,
            due_date=due_date,
            currency=currency,
            vat_treatment=treatment,
            notes=notes,
        )
        logger.info("Created invoice %s with %s", invoice_id, treatment.describe())
        return invoice_id

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID.

        Returns:
            Invoice entity or None if not found
        """
        return self.db.get_invoice(invoice_id)

    def require_invoice(self, invoice_id: int) -> Invoice:
        """Get invoice by ID, raising NotFoundError if missing."""
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id), field="invoice_id", value=invoice_id)
        return invoice

    def list_invoices(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Iterable[InvoiceStatus]] = None,
    ) -> list[Invoice]:
        """List invoices by issue date and status."""
        return self.db.list_invoices(start_date=start_date, end_date=end_date, statuses=statuses)

    def add_line(
        self,
        invoice_id: int,
        description: str,
        unit_price: Money,
        quantity: int,
        unit: str = "pcs",
    ) -> int:
        """Add a line to a draft invoice.

        Returns:
            Line ID

        Raises:
            InvalidLineItemError: If price, quantity or description is invalid
            InvoiceLockedError: If the invoice is no longer a draft
            CurrencyMismatchError: If the price is not in the invoice currency
        """
        line = LineItem(description=description, unit_price=unit_price, quantity=quantity, unit=unit)
        invoice = self._require_draft(invoice_id)
        if line.unit_price.currency != invoice.currency:
            raise CurrencyMismatchError(
                currency_mismatch(invoice.currency, line.unit_price.currency),
                field="unit_price",
                value=line.unit_price,
            )
        return self.db.add_invoice_line(invoice_id, line)

    def mark_line_for_removal(self, invoice_id: int, line_id: int) -> None:
        """Flag a line of a draft invoice for removal."""
        self._require_draft(invoice_id)
        self.db.mark_invoice_line_destroyed(invoice_id, line_id)

    def get_totals(self, invoice_id: int) -> Totals:
        """Compute the invoice totals from its current lines."""
        return invoice_totals(self.require_invoice(invoice_id))

    def is_overdue(self, invoice_id: int, today: date) -> bool:
        return is_invoice_overdue(self.require_invoice(invoice_id), today)

    def update_details(
        self,
        invoice_id: int,
        user: Optional[str] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        customer: Optional[Party] = None,
    ) -> None:
        """Update due date, notes or customer.

        Editing an invoice that is no longer a draft needs the
        ``invoice_edit`` capability. The VAT treatment stays as resolved at
        creation even if the customer changes.

        Raises:
            NotEntitledError: If a non-draft invoice is edited without entitlement
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT and not self.authorizer.is_entitled(
            user, CAPABILITY_INVOICE_EDIT
        ):
            raise NotEntitledError(
                not_entitled(user, CAPABILITY_INVOICE_EDIT), field="user", value=user
            )
        if customer is not None:
            validate_party(customer, "customer", self.jurisdictions)
        if due_date is not None and due_date < invoice.issue_date:
            raise ValidationError(
                "Due date cannot be before the issue date", field="due_date", value=due_date
            )
        self.db.update_invoice_details(invoice_id, due_date=due_date, notes=notes, customer=customer)

    def send(self, invoice_id: int) -> None:
        """Mark a draft invoice as sent; its lines are frozen from now on.

        Raises:
            ValidationError: If the invoice has no lines
            InvalidTransitionError: If the invoice is not a draft
        """
        invoice = self.require_invoice(invoice_id)
        check_invoice_transition(invoice.status, InvoiceStatus.SENT)
        if not invoice.active_lines:
            raise ValidationError(
                f"Invoice {invoice_id} has no line items", field="lines", value=()
            )
        self._set_status(invoice, InvoiceStatus.SENT)

    def mark_paid(self, invoice_id: int) -> None:
        """Mark a sent invoice as paid."""
        invoice = self.require_invoice(invoice_id)
        self._set_status(invoice, check_invoice_transition(invoice.status, InvoiceStatus.PAID))

    def cancel(self, invoice_id: int) -> None:
        """Cancel a draft or sent invoice."""
        invoice = self.require_invoice(invoice_id)
        self._set_status(invoice, check_invoice_transition(invoice.status, InvoiceStatus.CANCELLED))

    def _set_status(self, invoice: Invoice, status: InvoiceStatus) -> None:
        self.db.update_invoice_status(invoice.id, status)
        logger.info("Invoice %s: %s -> %s", invoice.id, invoice.status.value, status.value)

    def _require_draft(self, invoice_id: int) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT:
            raise InvoiceLockedError(
                f"Invoice {invoice_id} is {invoice.status.value}; lines can only change on drafts",
                field="status",
                value=invoice.status.value,
            )
        return invoice
