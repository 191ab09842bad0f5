"""Shared pytest fixtures for vatkit tests."""

import os
import tempfile
from datetime import UTC, date, datetime

import pytest

from vatkit.database.factories import create_sqlite_database
from vatkit.domain.entities import Party
from vatkit.domain.invoice import InvoiceService
from vatkit.domain.jurisdiction import StaticJurisdictionSource
from vatkit.domain.money import Money
from vatkit.domain.profile import ProfileService
from vatkit.domain.reports import TaxReportService
from vatkit.domain.transaction import TransactionService

FIXED_NOW = datetime(2025, 4, 15, 9, 30, tzinfo=UTC)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that drive the CLI against the same file
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def jurisdictions():
    """Bundled jurisdiction tables."""
    return StaticJurisdictionSource()


@pytest.fixture
def profile_service(temp_db):
    """Create a ProfileService with a temporary database."""
    return ProfileService(temp_db)


@pytest.fixture
def sample_profile(profile_service):
    """German VAT-registered business filing quarterly."""
    return profile_service.set_profile(
        country_code="DE",
        vat_number="DE123456789",
        name="Beispiel GmbH",
    )


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a TaxReportService with a fixed clock."""
    return TaxReportService(temp_db, clock=lambda: FIXED_NOW)


@pytest.fixture
def german_consumer():
    return Party(country_code="DE", name="Erika Mustermann")


@pytest.fixture
def french_business():
    return Party(
        country_code="FR",
        vat_number="FR40303265045",
        is_vat_registered=True,
        name="Exemple SARL",
    )


@pytest.fixture
def make_sent_invoice(invoice_service):
    """Factory creating a sent invoice with one line per (price, quantity)."""

    def _make(customer, issue_date=date(2025, 2, 10), lines=(("100.00", 2),), **kwargs):
        invoice_id = invoice_service.create_invoice(
            customer=customer,
            issue_date=issue_date,
            due_date=issue_date,
            **kwargs,
        )
        for price, quantity in lines:
            invoice_service.add_line(invoice_id, "Consulting", Money.of(price, "EUR"), quantity)
        invoice_service.send(invoice_id)
        return invoice_id

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
