"""Tax report commands."""

from pathlib import Path

import click
from vatkit.cli.error_handling import handle_domain_error, parse_date_option
from vatkit.domain.collaborators import ManualFiler
from vatkit.domain.entities import (
    ReportKind,
    ReportStatus,
    TaxReport,
    VatFinancialData,
    ZmFinancialData,
)
from vatkit.domain.errors import DomainError
from vatkit.domain.reports import TaxReportService


def _service(ctx, receipt: str | None = None) -> TaxReportService:
    return TaxReportService(
        ctx.obj["db"],
        authorizer=ctx.obj["authorizer"],
        filer=ManualFiler(receipt_reference=receipt),
    )


def _describe(report: TaxReport) -> str:
    return f"{report.kind.value.upper()} {report.period_label} (ID: {report.id})"


@click.group()
def report_group():
    """Prepare and file VAT returns and EC Sales Lists (ZM)."""
    pass


@report_group.command("generate")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in ReportKind]),
    default=ReportKind.VAT.value,
    show_default=True,
    help="Report kind",
)
@click.option("--as-of", default="today", help="Start with the period containing this date")
@click.option("--count", "-n", type=int, default=1, show_default=True, help="Number of periods")
@click.pass_context
def generate_reports(ctx, kind: str, as_of: str, count: int) -> None:
    """Create draft reports for upcoming periods.

    Reports that already exist are left as they are.

    Examples:
        vatkit report generate --as-of 2025-01-01 -n 4
        vatkit report generate --kind zm
    """
    reference = parse_date_option(ctx, as_of, "reference date")
    try:
        reports = _service(ctx).ensure_reports(ReportKind(kind), reference, count)
    except DomainError as e:
        handle_domain_error(ctx, e)
    for report in reports:
        click.echo(f"{_describe(report)}: {report.status.value}, due {report.due_date}")


@report_group.command("list")
@click.option("--kind", type=click.Choice([k.value for k in ReportKind]), help="Only this kind")
@click.pass_context
def list_reports(ctx, kind: str | None) -> None:
    """List open and submitted reports."""
    views = _service(ctx).list_reports(
        ReportKind(kind) if kind else None, user=ctx.obj["user"]
    )
    if not views["upcoming"] and not views["submitted"]:
        click.echo("No reports found. Run 'vatkit report generate' first.")
        return

    for title, key in (("Upcoming", "upcoming"), ("Submitted", "submitted")):
        if not views[key]:
            continue
        click.echo(f"\n{title}:")
        click.echo("-" * 80)
        click.echo(f"{'ID':<6} {'Kind':<5} {'Period':<16} {'Due':<12} {'Status':<10} {'Flags':<26}")
        click.echo("-" * 80)
        for view in views[key]:
            report = view.report
            flags = []
            if view.overdue:
                flags.append("overdue")
            if view.due_soon:
                flags.append("due soon")
            if view.can_submit:
                flags.append("ready")
            click.echo(
                f"{report.id:<6} {report.kind.value:<5} {report.period_label:<16} "
                f"{str(report.due_date):<12} {report.status.value:<10} {', '.join(flags):<26}"
            )
            if report.error_message and report.status == ReportStatus.REJECTED:
                click.echo(f"       Rejected: {report.error_message}")


def _echo_vat(data: VatFinancialData) -> None:
    click.echo(f"  Domestic sales (net):     {data.domestic_net}")
    click.echo(f"  Domestic VAT:             {data.domestic_vat}")
    click.echo(f"  EU B2B sales (net):       {data.eu_b2b_net}")
    click.echo(f"  Non-EU sales (net):       {data.non_eu_net}")
    click.echo(f"  Exempt sales (net):       {data.exempt_net}")
    click.echo(f"  Input VAT:                {data.input_vat}")
    click.echo(f"  EU acquisitions (net):    {data.eu_expense_net}")
    click.echo(f"  EU acquisitions VAT:      {data.eu_expense_vat}")
    click.echo(f"  Remaining VAT:            {data.remaining_vat}")


def _echo_zm(data: ZmFinancialData) -> None:
    click.echo(f"  Sales in period:          {data.total_transactions} ({data.total_amount})")
    click.echo(f"  Domestic:                 {data.domestic_amount}")
    click.echo(f"  EU:                       {data.eu_amount}")
    click.echo(
        f"  EU with VAT number:       {data.with_vat_number_count} ({data.with_vat_number_amount})"
    )
    click.echo(
        f"  EU without VAT number:    {data.without_vat_number_count} ({data.without_vat_number_amount})"
    )
    for line in data.lines:
        click.echo(f"    {line.vat_number:<16} {line.country_code:<4} {line.count:>4}  {line.amount}")


@report_group.command("preview")
@click.argument("report_id", type=int)
@click.pass_context
def preview_report(ctx, report_id: int) -> None:
    """Show the figures of a report without changing it."""
    service = _service(ctx)
    try:
        report = service.require_report(report_id)
        if report.kind == ReportKind.VAT:
            preview = service.preview_vat_report(report_id)
        else:
            preview = service.preview_zm_report(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{_describe(report)} [{report.status.value}]")
    click.echo(f"  Period: {report.period_start} - {report.period_end}, due {report.due_date}")
    if report.kind == ReportKind.VAT:
        _echo_vat(preview.financial_data)
    else:
        _echo_zm(preview.financial_data)


@report_group.command("mark-previewed")
@click.argument("report_id", type=int)
@click.pass_context
def mark_previewed(ctx, report_id: int) -> None:
    """Mark a report as reviewed."""
    try:
        report = _service(ctx).mark_previewed(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{_describe(report)} is {report.status.value}")


@report_group.command("test-submit")
@click.argument("report_id", type=int)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the preview document to this file instead of stdout",
)
@click.pass_context
def test_submit(ctx, report_id: int, output: Path | None) -> None:
    """Produce the filing document without submitting it."""
    try:
        artifact = _service(ctx).test_submit(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    if output is not None:
        output.write_bytes(artifact.content)
        click.echo(f"Wrote {output}")
    else:
        click.echo(artifact.content.decode("utf-8"), nl=False)


@report_group.command("submit")
@click.argument("report_id", type=int)
@click.option("--receipt", help="Receipt reference from the tax authority's portal")
@click.pass_context
def submit_report(ctx, report_id: int, receipt: str | None) -> None:
    """Record that a report was filed.

    File the report through the tax authority's portal first, then record it
    here with the receipt reference you got back.

    Examples:
        vatkit report submit 3 --receipt ET-2025-000123
    """
    try:
        report = _service(ctx, receipt).submit(report_id, user=ctx.obj["user"])
    except DomainError as e:
        handle_domain_error(ctx, e)
    attempt = report.latest_attempt
    click.echo(f"{_describe(report)} is {report.status.value}")
    if attempt is not None and attempt.receipt_reference:
        click.echo(f"Receipt: {attempt.receipt_reference}")


@report_group.command("accept")
@click.argument("report_id", type=int)
@click.pass_context
def accept_report(ctx, report_id: int) -> None:
    """Record that the tax authority accepted a report."""
    try:
        report = _service(ctx).record_acceptance(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{_describe(report)} is {report.status.value}")


@report_group.command("reject")
@click.argument("report_id", type=int)
@click.option("--message", "-m", help="Rejection message from the tax authority")
@click.pass_context
def reject_report(ctx, report_id: int, message: str | None) -> None:
    """Record that the tax authority rejected a report."""
    try:
        report = _service(ctx).record_rejection(report_id, message)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{_describe(report)} is {report.status.value}: {report.error_message}")


@report_group.command("reopen")
@click.argument("report_id", type=int)
@click.pass_context
def reopen_report(ctx, report_id: int) -> None:
    """Reopen a rejected report for correction."""
    try:
        report = _service(ctx).reopen(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{_describe(report)} is {report.status.value}")


@report_group.command("unlock")
@click.argument("report_id", type=int)
@click.pass_context
def unlock_report(ctx, report_id: int) -> None:
    """Clear the submission lock of a filing that was interrupted."""
    try:
        report = _service(ctx).force_unlock(report_id, user=ctx.obj["user"])
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cleared submission lock of {_describe(report)}")


def register_commands(cli: click.Group) -> None:
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
