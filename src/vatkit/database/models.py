"""SQLAlchemy models for vatkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class BusinessProfile(Base):
    """Business VAT profile model (single row)."""

    __tablename__ = "business_profile"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=True)
    country_code = Column(String(2), nullable=False)
    vat_number = Column(String, nullable=True)
    is_vat_registered = Column(Boolean, default=True, nullable=False)
    is_small_business = Column(Boolean, default=False, nullable=False)
    cadence = Column(String, nullable=False)
    fiscal_year_start = Column(Integer, default=1, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


class Invoice(Base):
    """Invoice model. Totals are not stored; they derive from the lines."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    seller_name = Column(String, nullable=True)
    seller_country = Column(String(2), nullable=False)
    seller_vat_number = Column(String, nullable=True)
    seller_vat_registered = Column(Boolean, default=False, nullable=False)
    seller_small_business = Column(Boolean, default=False, nullable=False)
    customer_name = Column(String, nullable=True)
    customer_country = Column(String(2), nullable=False)
    customer_vat_number = Column(String, nullable=True)
    customer_vat_registered = Column(Boolean, default=False, nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    currency = Column(String(3), nullable=False)
    vat_kind = Column(String, nullable=False)
    vat_rate = Column(Numeric(5, 2), nullable=False)
    status = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    lines = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.id",
    )


class InvoiceLine(Base):
    """Invoice line model."""

    __tablename__ = "invoice_lines"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    description = Column(String, nullable=False)
    unit_price_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit = Column(String, nullable=False)
    destroy = Column(Boolean, default=False, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="lines")


class Transaction(Base):
    """Standalone income or expense model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    net_amount_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    counterparty_name = Column(String, nullable=True)
    counterparty_country = Column(String(2), nullable=False)
    counterparty_vat_number = Column(String, nullable=True)
    counterparty_vat_registered = Column(Boolean, default=False, nullable=False)
    vat_kind = Column(String, nullable=False)
    vat_rate = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class TaxReport(Base):
    """VAT or ZM report model."""

    __tablename__ = "tax_reports"

    id = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    year = Column(Integer, nullable=False)
    period_label = Column(String, nullable=False)
    elster_period = Column(String, nullable=True)
    status = Column(String, nullable=False)
    submitted_at = Column(DateTime, nullable=True)
    last_test_submitted_at = Column(DateTime, nullable=True)
    submission_locked = Column(Boolean, default=False, nullable=False)
    submission_locked_at = Column(DateTime, nullable=True)
    lock_version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # One report per kind and period
    __table_args__ = (UniqueConstraint("kind", "period_start", name="uq_report_kind_period"),)

    # Relationships
    attempts = relationship(
        "SubmissionAttempt",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="SubmissionAttempt.attempt_number",
    )


class SubmissionAttempt(Base):
    """Submission attempt model (audit trail, never overwritten)."""

    __tablename__ = "submission_attempts"

    id = Column(Integer, primary_key=True)
    report_id = Column(Integer, ForeignKey("tax_reports.id"), nullable=False)
    attempt_number = Column(Integer, nullable=False)
    outcome = Column(String, nullable=False)
    started_at = Column(DateTime, nullable=False)
    finished_at = Column(DateTime, nullable=True)
    receipt_reference = Column(String, nullable=True)
    error_message = Column(String, nullable=True)
    submitted_by = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("report_id", "attempt_number", name="uq_report_attempt_number"),
    )

    # Relationships
    report = relationship("TaxReport", back_populates="attempts")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are thread-local; pooled connections may change threads
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
