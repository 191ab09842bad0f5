"""Invoice management commands."""

from datetime import date, timedelta

import click
from vatkit.cli.error_handling import (
    build_party,
    handle_domain_error,
    parse_date_option,
    parse_money_option,
)
from vatkit.domain.entities import SaleCategory
from vatkit.domain.errors import DomainError
from vatkit.domain.invoice import InvoiceService, is_invoice_overdue
from vatkit.domain.totals import invoice_totals

DEFAULT_PAYMENT_DAYS = 14


def _service(ctx) -> InvoiceService:
    return InvoiceService(ctx.obj["db"], authorizer=ctx.obj["authorizer"])


@click.group()
def invoice_group():
    """Manage invoices."""
    pass


@invoice_group.command("create")
@click.option("--country", required=True, help="Customer country code")
@click.option("--vat-number", help="Customer VAT number")
@click.option("--name", help="Customer name")
@click.option("--consumer", is_flag=True, help="Customer is a private person even with a VAT number")
@click.option("--date", "issue_date", default="today", help="Issue date (default: today)")
@click.option("--due", "due_date", help=f"Due date (default: issue date + {DEFAULT_PAYMENT_DAYS} days)")
@click.option("--currency", help="Invoice currency (default: business home currency)")
@click.option(
    "--category",
    type=click.Choice([c.value for c in SaleCategory]),
    default=SaleCategory.STANDARD.value,
    show_default=True,
    help="Rate category of what is sold",
)
@click.option("--goods", is_flag=True, help="Invoice is for goods rather than services")
@click.option("--export-proof", is_flag=True, help="Export of the goods is documented")
@click.option("--notes", help="Notes")
@click.pass_context
def create_invoice(
    ctx,
    country: str,
    vat_number: str | None,
    name: str | None,
    consumer: bool,
    issue_date: str,
    due_date: str | None,
    currency: str | None,
    category: str,
    goods: bool,
    export_proof: bool,
    notes: str | None,
) -> None:
    """Create a draft invoice.

    The VAT treatment is decided now, from the business profile, the
    customer and the issue date.

    Examples:
        vatkit invoice create --country DE --name "Muster GmbH"
        vatkit invoice create --country FR --vat-number FR12345678901
        vatkit invoice create --country US --goods --export-proof --due 2025-03-31
    """
    service = _service(ctx)
    issued = parse_date_option(ctx, issue_date, "issue date")
    due = (
        parse_date_option(ctx, due_date, "due date")
        if due_date
        else issued + timedelta(days=DEFAULT_PAYMENT_DAYS)
    )
    customer = build_party(country, vat_number, name, business=False if consumer else None)

    try:
        invoice_id = service.create_invoice(
            customer=customer,
            issue_date=issued,
            due_date=due,
            currency=currency,
            category=SaleCategory(category),
            is_goods=goods,
            has_export_proof=export_proof,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    invoice = service.require_invoice(invoice_id)
    click.echo(f"Created invoice {invoice_id} ({invoice.vat_treatment.describe()})")


@invoice_group.command("add-line")
@click.argument("invoice_id", type=int)
@click.argument("description")
@click.argument("unit_price")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="Quantity")
@click.option("--unit", default="pcs", show_default=True, help="Unit of measure")
@click.pass_context
def add_line(ctx, invoice_id: int, description: str, unit_price: str, quantity: int, unit: str) -> None:
    """Add a line to a draft invoice.

    UNIT_PRICE is a net price such as 100.00 or "100.00 EUR"; it defaults to
    the invoice currency.

    Examples:
        vatkit invoice add-line 1 "Consulting" 100.00 --quantity 2 --unit h
    """
    service = _service(ctx)
    try:
        invoice = service.require_invoice(invoice_id)
        price = parse_money_option(ctx, unit_price, invoice.currency)
        line_id = service.add_line(invoice_id, description, price, quantity, unit)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added line {line_id} to invoice {invoice_id}")


@invoice_group.command("remove-line")
@click.argument("invoice_id", type=int)
@click.argument("line_id", type=int)
@click.pass_context
def remove_line(ctx, invoice_id: int, line_id: int) -> None:
    """Remove a line from a draft invoice."""
    try:
        _service(ctx).mark_line_for_removal(invoice_id, line_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed line {line_id} from invoice {invoice_id}")


@invoice_group.command("update")
@click.argument("invoice_id", type=int)
@click.option("--due", "due_date", help="New due date")
@click.option("--notes", help="New notes")
@click.pass_context
def update_invoice(ctx, invoice_id: int, due_date: str | None, notes: str | None) -> None:
    """Update due date or notes.

    Invoices that are no longer drafts need the invoice_edit capability.
    """
    due = parse_date_option(ctx, due_date, "due date") if due_date else None
    try:
        _service(ctx).update_details(invoice_id, user=ctx.obj["user"], due_date=due, notes=notes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated invoice {invoice_id}")


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.pass_context
def show_invoice(ctx, invoice_id: int) -> None:
    """Show an invoice with its lines and totals."""
    try:
        invoice = _service(ctx).require_invoice(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    status = invoice.status.value
    if is_invoice_overdue(invoice, date.today()):
        status += " (overdue)"
    customer = invoice.customer
    click.echo(f"\nInvoice {invoice.id} [{status}]")
    click.echo(f"  Issued:   {invoice.issue_date}   Due: {invoice.due_date}")
    click.echo(
        f"  Customer: {customer.name or '-'} ({customer.country_code}"
        f"{', ' + customer.vat_number if customer.vat_number else ''})"
    )
    click.echo(f"  VAT:      {invoice.vat_treatment.describe()}")
    if invoice.notes:
        click.echo(f"  Notes:    {invoice.notes}")

    click.echo("-" * 80)
    click.echo(f"{'ID':<6} {'Description':<34} {'Qty':>6} {'Unit':<6} {'Price':>12} {'Net':>12}")
    click.echo("-" * 80)
    for line in invoice.active_lines:
        click.echo(
            f"{line.id:<6} {line.description[:34]:<34} {line.quantity:>6} {line.unit:<6} "
            f"{str(line.unit_price.to_decimal()):>12} {str(line.net_amount.to_decimal()):>12}"
        )
    click.echo("-" * 80)

    totals = invoice_totals(invoice)
    click.echo(f"{'Subtotal':>66} {totals.subtotal}")
    click.echo(f"{'VAT':>66} {totals.vat_amount}")
    click.echo(f"{'Total':>66} {totals.total}")


@invoice_group.command("send")
@click.argument("invoice_id", type=int)
@click.pass_context
def send_invoice(ctx, invoice_id: int) -> None:
    """Mark a draft invoice as sent. Its lines cannot change afterwards."""
    try:
        _service(ctx).send(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Invoice {invoice_id} sent")


@invoice_group.command("pay")
@click.argument("invoice_id", type=int)
@click.pass_context
def pay_invoice(ctx, invoice_id: int) -> None:
    """Mark a sent invoice as paid."""
    try:
        _service(ctx).mark_paid(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Invoice {invoice_id} paid")


@invoice_group.command("cancel")
@click.argument("invoice_id", type=int)
@click.pass_context
def cancel_invoice(ctx, invoice_id: int) -> None:
    """Cancel a draft or sent invoice."""
    try:
        _service(ctx).cancel(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Invoice {invoice_id} cancelled")


@invoice_group.command("list")
@click.option("--start-date", help="Issued on or after (YYYY-MM-DD or 'this quarter')")
@click.option("--end-date", help="Issued on or before")
@click.pass_context
def list_invoices(ctx, start_date: str | None, end_date: str | None) -> None:
    """List invoices with their totals."""
    start = parse_date_option(ctx, start_date, "start date") if start_date else None
    end = parse_date_option(ctx, end_date, "end date") if end_date else None
    invoices = _service(ctx).list_invoices(start_date=start, end_date=end)
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo(f"\nFound {len(invoices)} invoice(s):")
    click.echo("-" * 80)
    click.echo(f"{'ID':<6} {'Issued':<12} {'Status':<10} {'Customer':<22} {'Total':>16}")
    click.echo("-" * 80)
    for invoice in invoices:
        totals = invoice_totals(invoice)
        customer = (invoice.customer.name or invoice.customer.country_code)[:22]
        click.echo(
            f"{invoice.id:<6} {str(invoice.issue_date):<12} {invoice.status.value:<10} "
            f"{customer:<22} {str(totals.total):>16}"
        )


def register_commands(cli: click.Group) -> None:
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
