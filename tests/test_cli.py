"""Tests for the vatkit command line interface."""

import pytest

from vatkit.cli.main import cli, parse_capabilities
from vatkit.domain.collaborators import CAPABILITIES


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI against the temporary database."""

    def _run(*args, **kwargs):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)

    return _run


@pytest.fixture
def sent_invoice(run, sample_profile):
    run("invoice", "create", "--country", "DE", "--name", "Erika", "--date", "2025-02-10")
    run("invoice", "add-line", "1", "Consulting", "100.00", "-q", "2")
    run("invoice", "send", "1")
    return 1


def test_help_needs_no_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "report" in result.output


def test_parse_capabilities():
    assert parse_capabilities(None) == CAPABILITIES
    assert parse_capabilities("invoice_edit, ,vat_submission") == ("invoice_edit", "vat_submission")
    assert parse_capabilities("") == ()


class TestProfileCommands:
    def test_set_and_show(self, run):
        result = run("profile", "set", "--country", "de", "--vat-number", "DE123456789", "--name", "Beispiel GmbH")
        assert result.exit_code == 0
        assert "Saved profile for DE (quarterly returns)" in result.output

        result = run("profile", "show")
        assert "DE123456789" in result.output
        assert "Beispiel GmbH" in result.output

    def test_registered_needs_vat_number(self, run):
        result = run("profile", "set", "--country", "DE")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_show_without_profile(self, run):
        result = run("profile", "show")
        assert "No profile set" in result.output


class TestInvoiceCommands:
    def test_create_requires_profile(self, run):
        result = run("invoice", "create", "--country", "DE")
        assert result.exit_code == 1
        assert "Business profile is not set up" in result.output

    def test_full_invoice_flow(self, run, sample_profile):
        result = run("invoice", "create", "--country", "DE", "--name", "Erika", "--date", "2025-02-10")
        assert result.exit_code == 0
        assert "Created invoice 1 (standard 19%)" in result.output

        result = run("invoice", "add-line", "1", "Consulting", "100.00", "-q", "2", "--unit", "h")
        assert result.exit_code == 0
        assert "Added line 1 to invoice 1" in result.output

        result = run("invoice", "show", "1")
        assert result.exit_code == 0
        assert "2025-02-24" in result.output
        assert "38.00 EUR" in result.output
        assert "238.00 EUR" in result.output

        assert "Invoice 1 sent" in run("invoice", "send", "1").output
        assert "Invoice 1 paid" in run("invoice", "pay", "1").output

        result = run("invoice", "list")
        assert "Found 1 invoice(s)" in result.output
        assert "paid" in result.output

    def test_reverse_charge_customer(self, run, sample_profile):
        result = run("invoice", "create", "--country", "FR", "--vat-number", "FR40303265045")
        assert "(reverse_charge)" in result.output

    def test_consumer_flag_overrides_vat_number(self, run, sample_profile):
        result = run(
            "invoice", "create", "--country", "FR", "--vat-number", "FR40303265045", "--consumer"
        )
        assert "(standard 19%)" in result.output

    def test_sent_invoice_is_locked(self, run, sent_invoice):
        result = run("invoice", "add-line", "1", "Extra", "5.00")
        assert result.exit_code == 1
        assert "lines can only change on drafts" in result.output

    def test_foreign_currency_line_rejected(self, run, sample_profile):
        run("invoice", "create", "--country", "DE")
        result = run("invoice", "add-line", "1", "Licence", "10.00 USD")
        assert result.exit_code == 1
        assert "EUR" in result.output and "USD" in result.output

    def test_edit_sent_invoice_needs_capability(self, run, sent_invoice):
        result = run("--capabilities", "vat_submission", "invoice", "update", "1", "--notes", "late")
        assert result.exit_code == 1
        assert "not entitled to 'invoice_edit'" in result.output

        result = run("invoice", "update", "1", "--notes", "late")
        assert result.exit_code == 0

    def test_invalid_date(self, run, sample_profile):
        result = run("invoice", "create", "--country", "DE", "--date", "someday")
        assert result.exit_code == 1
        assert "Invalid issue date" in result.output

    def test_unknown_invoice(self, run, sample_profile):
        result = run("invoice", "send", "7")
        assert result.exit_code == 1
        assert "Invoice 7 not found" in result.output


class TestTransactionCommands:
    def test_income_and_expense(self, run, sample_profile):
        result = run("transaction", "income", "500.00", "--country", "DE", "--date", "2025-01-05")
        assert result.exit_code == 0
        assert "Recorded income 1 (standard 19%)" in result.output

        result = run(
            "transaction",
            "expense",
            "300",
            "--country",
            "FR",
            "--vat-number",
            "FR40303265045",
            "--date",
            "2025-01-08",
            "--description",
            "Hosting",
        )
        assert result.exit_code == 0
        assert "Recorded expense 2 (reverse_charge)" in result.output

        result = run("transaction", "list", "--expenses")
        assert "Found 1 transaction(s)" in result.output
        assert "Hosting" in result.output

    def test_invalid_amount(self, run, sample_profile):
        result = run("transaction", "income", "lots", "--country", "DE")
        assert result.exit_code == 1
        assert "Invalid amount" in result.output

    def test_empty_list(self, run):
        assert "No transactions found." in run("transaction", "list").output


def test_periods_command(run, sample_profile):
    result = run("periods", "--as-of", "2024-12-15", "-n", "2")
    assert result.exit_code == 0
    assert "Q4 2024" in result.output
    assert "2025-01-10" in result.output
    assert "Q1 2025" in result.output


class TestReportCommands:
    def test_generate_preview_submit(self, run, sent_invoice, tmp_path):
        result = run("report", "generate", "--as-of", "2025-02-01")
        assert result.exit_code == 0
        assert "VAT Q1 2025 (ID: 1): draft, due 2025-04-10" in result.output

        result = run("report", "preview", "1")
        assert result.exit_code == 0
        figures = dict(
            line.strip().split(":", 1) for line in result.output.splitlines() if line.startswith("  ") and ":" in line
        )
        assert figures["Domestic VAT"].strip() == "38.00 EUR"
        assert figures["Remaining VAT"].strip() == "38.00 EUR"

        output = tmp_path / "preview.txt"
        result = run("report", "test-submit", "1", "-o", str(output))
        assert result.exit_code == 0
        assert "VAT report Q1 2025" in output.read_text()

        result = run("report", "submit", "1", "--receipt", "ET-2025-000123")
        assert result.exit_code == 0
        assert "VAT Q1 2025 (ID: 1) is submitted" in result.output
        assert "Receipt: ET-2025-000123" in result.output

        result = run("report", "list")
        assert "Submitted:" in result.output

        result = run("report", "accept", "1")
        assert "is accepted" in result.output

    def test_reject_and_reopen(self, run, sent_invoice):
        run("report", "generate", "--as-of", "2025-02-01")
        run("report", "submit", "1")

        result = run("report", "reject", "1", "-m", "Kennzahl 81 fehlt")
        assert result.exit_code == 0
        assert "is rejected: Kennzahl 81 fehlt" in result.output
        assert "Rejected: Kennzahl 81 fehlt" in run("report", "list").output

        result = run("report", "reopen", "1")
        assert "is draft" in result.output

    def test_submit_without_capability(self, run, sent_invoice):
        run("report", "generate", "--as-of", "2025-02-01")
        result = run("--user", "clerk", "--capabilities", "invoice_edit", "report", "submit", "1")
        assert result.exit_code == 1
        assert "User 'clerk' is not entitled to 'vat_submission'" in result.output

    def test_empty_report(self, run, sample_profile):
        run("report", "generate", "--as-of", "2025-02-01")
        result = run("report", "submit", "1")
        assert result.exit_code == 1
        assert "nothing to report" in result.output

    def test_zm_report(self, run, sample_profile):
        run("invoice", "create", "--country", "FR", "--vat-number", "FR40303265045", "--date", "2025-02-10")
        run("invoice", "add-line", "1", "Consulting", "500.00")
        run("invoice", "send", "1")

        result = run("report", "generate", "--kind", "zm", "--as-of", "2025-02-01")
        assert "ZM Q1 2025 (ID: 1): draft, due 2025-04-25" in result.output

        result = run("report", "preview", "1")
        assert "FR40303265045" in result.output
        assert "500.00 EUR" in result.output

    def test_list_without_reports(self, run, sample_profile):
        assert "No reports found" in run("report", "list").output

    def test_unlock_interrupted_submission(self, run, temp_db, sent_invoice):
        run("report", "generate", "--as-of", "2025-02-01")
        assert temp_db.acquire_submission_lock(1)

        result = run("report", "submit", "1")
        assert result.exit_code == 1
        assert "being submitted" in result.output

        result = run("report", "unlock", "1")
        assert result.exit_code == 0
        assert "Cleared submission lock of VAT Q1 2025 (ID: 1)" in result.output
        assert run("report", "submit", "1").exit_code == 0
