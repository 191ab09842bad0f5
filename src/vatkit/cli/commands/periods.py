"""Reporting period commands."""

import click
from vatkit.cli.error_handling import handle_domain_error, parse_date_option
from vatkit.domain.entities import ReportKind
from vatkit.domain.errors import DomainError
from vatkit.domain.periods import is_due_soon, is_overdue
from vatkit.domain.reports import TaxReportService


@click.command("periods")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in ReportKind]),
    default=ReportKind.VAT.value,
    show_default=True,
    help="Report kind",
)
@click.option("--as-of", default="today", help="Reference date (default: today)")
@click.option("--count", "-n", type=int, default=4, show_default=True, help="Number of periods")
@click.pass_context
def show_periods(ctx, kind: str, as_of: str, count: int) -> None:
    """Show upcoming reporting periods and their deadlines.

    Starts with the period containing the reference date.

    Examples:
        vatkit periods
        vatkit periods --kind zm --as-of 2025-01-01 -n 2
    """
    reference = parse_date_option(ctx, as_of, "reference date")
    try:
        periods = TaxReportService(ctx.obj["db"]).periods(ReportKind(kind), reference, count)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"{'Period':<16} {'Start':<12} {'End':<12} {'Due':<12} {'Code':<6} {'Status':<10}")
    click.echo("-" * 72)
    for period in periods:
        if is_overdue(period, reference):
            status = "overdue"
        elif is_due_soon(period, reference):
            status = "due soon"
        else:
            status = ""
        click.echo(
            f"{period.period_label:<16} {str(period.period_start):<12} {str(period.period_end):<12} "
            f"{str(period.due_date):<12} {period.elster_period or '':<6} {status:<10}"
        )


def register_commands(cli: click.Group) -> None:
    """Register periods command with main CLI."""
    cli.add_command(show_periods)
