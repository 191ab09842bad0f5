"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Iterable
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from vatkit.domain.entities import (
    AttemptOutcome,
    BusinessProfile,
    Invoice,
    InvoiceStatus,
    LineItem,
    Party,
    ReportKind,
    ReportPeriod,
    ReportStatus,
    SubmissionAttempt,
    TaxReport,
    Transaction,
    TransactionKind,
    VatTreatment,
)
from vatkit.domain.money import Money


class Database(ABC):
    """Abstract database interface for vatkit."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Business profile operations
    @abstractmethod
    def get_profile(self) -> Optional[BusinessProfile]:
        """Get the business profile, if one has been saved."""
        pass

    @abstractmethod
    def save_profile(self, profile: BusinessProfile) -> None:
        """Create or replace the business profile."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(
        self,
        seller: Party,
        customer: Party,
        issue_date: date,
        due_date: date,
        currency: str,
        vat_treatment: VatTreatment,
        notes: Optional[str] = None,
    ) -> int:
        """Create a draft invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID, with its lines in insertion order."""
        pass

    @abstractmethod
    def list_invoices(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Iterable[InvoiceStatus]] = None,
    ) -> list[Invoice]:
        """List invoices by issue date range and status."""
        pass

    @abstractmethod
    def update_invoice_status(self, invoice_id: int, status: InvoiceStatus) -> None:
        """Set invoice status."""
        pass

    @abstractmethod
    def update_invoice_details(
        self,
        invoice_id: int,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        customer: Optional[Party] = None,
    ) -> None:
        """Update the given invoice fields; None leaves a field unchanged."""
        pass

    @abstractmethod
    def add_invoice_line(self, invoice_id: int, line: LineItem) -> int:
        """Append a line to an invoice. Returns line ID."""
        pass

    @abstractmethod
    def mark_invoice_line_destroyed(self, invoice_id: int, line_id: int) -> None:
        """Flag a line for removal."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        kind: TransactionKind,
        date: date,
        description: Optional[str],
        net_amount: Money,
        counterparty: Party,
        vat_treatment: VatTreatment,
    ) -> int:
        """Create a standalone transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        kind: Optional[TransactionKind] = None,
    ) -> list[Transaction]:
        """List transactions by date range and kind."""
        pass

    # Tax report operations
    @abstractmethod
    def create_tax_report(self, kind: ReportKind, period: ReportPeriod) -> int:
        """Create a draft report for a period. Returns report ID."""
        pass

    @abstractmethod
    def get_tax_report(self, report_id: int) -> Optional[TaxReport]:
        """Get report by ID, with its submission attempts."""
        pass

    @abstractmethod
    def find_tax_report(self, kind: ReportKind, period_start: date) -> Optional[TaxReport]:
        """Get the report of a kind for the period starting on a date."""
        pass

    @abstractmethod
    def list_tax_reports(self, kind: Optional[ReportKind] = None) -> list[TaxReport]:
        """List reports ordered by period start."""
        pass

    @abstractmethod
    def update_tax_report_status(
        self,
        report_id: int,
        status: ReportStatus,
        submitted_at: Optional[datetime] = None,
    ) -> None:
        """Set report status, and the submission time when given."""
        pass

    @abstractmethod
    def record_test_submission(self, report_id: int, at: datetime) -> None:
        """Remember when the report was last test-submitted."""
        pass

    @abstractmethod
    def create_submission_attempt(
        self,
        report_id: int,
        attempt_number: int,
        outcome: AttemptOutcome,
        started_at: datetime,
        finished_at: Optional[datetime] = None,
        receipt_reference: Optional[str] = None,
        error_message: Optional[str] = None,
        submitted_by: Optional[str] = None,
    ) -> int:
        """Store a submission attempt. Returns attempt ID."""
        pass

    @abstractmethod
    def update_submission_attempt(
        self,
        attempt_id: int,
        outcome: AttemptOutcome,
        error_message: Optional[str] = None,
        finished_at: Optional[datetime] = None,
    ) -> None:
        """Record the authority's later verdict on an attempt."""
        pass

    @abstractmethod
    def acquire_submission_lock(
        self,
        report_id: int,
        locked_at: Optional[datetime] = None,
        stale_before: Optional[datetime] = None,
    ) -> bool:
        """Atomically take the report's submission lock.

        Returns False, without waiting, if another caller holds it. A lock
        taken before ``stale_before`` is treated as abandoned and taken over.
        """
        pass

    @abstractmethod
    def release_submission_lock(self, report_id: int) -> None:
        """Release the report's submission lock."""
        pass
