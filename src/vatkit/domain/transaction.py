"""Transaction domain service."""

import logging
from typing import Optional
from datetime import date

from vatkit.database.base import Database
from vatkit.domain.entities import (
    Party,
    SaleCategory,
    SaleContext,
    Transaction as TransactionEntity,
    TransactionKind,
)
from vatkit.domain.errors import NotFoundError, ValidationError, transaction_not_found
from vatkit.domain.jurisdiction import JurisdictionSource, StaticJurisdictionSource
from vatkit.domain.money import Money
from vatkit.domain.profile import ProfileService
from vatkit.domain.vat_resolver import VatRuleResolver

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for income and expenses not tied to an invoice."""

    def __init__(self, db: Database, jurisdictions: Optional[JurisdictionSource] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            jurisdictions: Jurisdiction tables (bundled tables by default)
        """
        self.db = db
        self.jurisdictions = jurisdictions or StaticJurisdictionSource()
        self.resolver = VatRuleResolver(self.jurisdictions)
        self.profiles = ProfileService(db, self.jurisdictions)

    def record_income(
        self,
        date: date,
        net_amount: Money,
        customer: Party,
        description: Optional[str] = None,
        category: SaleCategory = SaleCategory.STANDARD,
        is_goods: bool = False,
        has_export_proof: bool = False,
    ) -> int:
        """Record a sale with the business as seller.

        Args:
            date: Transaction date
            net_amount: Amount before VAT
            customer: Buyer
            description: Optional description
            category: Rate category of what was sold
            is_goods: True for goods, False for services
            has_export_proof: True if export of the goods is documented

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount is not positive
            UnknownJurisdictionError: If a country is unknown
            InvalidPartyDataError: If the customer data is inconsistent
        """
        seller = self.profiles.require_profile().to_party()
        context = SaleContext(
            supply_date=date,
            category=SaleCategory(category),
            is_goods=is_goods,
            has_export_proof=has_export_proof,
        )
        treatment = self.resolver.resolve(seller, customer, context)
        return self._create(TransactionKind.INCOME, date, net_amount, customer, treatment, description)

    def record_expense(
        self,
        date: date,
        net_amount: Money,
        supplier: Party,
        description: Optional[str] = None,
        category: SaleCategory = SaleCategory.STANDARD,
        is_goods: bool = False,
    ) -> int:
        """Record a purchase with the business as customer.

        The treatment is resolved for the supplier's sale to the business, so
        an EU supplier billing a VAT-registered business yields reverse charge.

        Returns:
            Transaction ID
        """
        buyer = self.profiles.require_profile().to_party()
        context = SaleContext(
            supply_date=date,
            category=SaleCategory(category),
            is_goods=is_goods,
        )
        treatment = self.resolver.resolve(supplier, buyer, context)
        return self._create(TransactionKind.EXPENSE, date, net_amount, supplier, treatment, description)

    def _create(self, kind, date, net_amount, counterparty, treatment, description) -> int:
        if net_amount.is_negative() or net_amount.is_zero():
            raise ValidationError(
                f"Transaction amount must be positive, got {net_amount}",
                field="net_amount",
                value=net_amount,
            )
        transaction_id = self.db.create_transaction(
            kind=kind,
            date=date,
            description=description,
            net_amount=net_amount,
            counterparty=counterparty,
            vat_treatment=treatment,
        )
        logger.info(
            "Recorded %s %s of %s with %s",
            kind.value,
            transaction_id,
            net_amount,
            treatment.describe(),
        )
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> TransactionEntity:
        """Get transaction by ID, raising NotFoundError if missing."""
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(
                transaction_not_found(transaction_id), field="transaction_id", value=transaction_id
            )
        return txn

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        kind: Optional[TransactionKind] = None,
    ) -> list[TransactionEntity]:
        """List transactions with filters.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            kind: Optional income/expense filter

        Returns:
            List of transaction entities
        """
        return self.db.list_transactions(start_date=start_date, end_date=end_date, kind=kind)
