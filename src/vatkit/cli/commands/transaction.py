"""Transaction management commands."""

import click
from vatkit.cli.error_handling import (
    build_party,
    handle_domain_error,
    parse_date_option,
    parse_money_option,
)
from vatkit.domain.entities import SaleCategory, TransactionKind
from vatkit.domain.errors import DomainError
from vatkit.domain.transaction import TransactionService


@click.group()
def transaction_group():
    """Record income and expenses outside of invoices."""
    pass


def _counterparty_options(role: str):
    def decorator(f):
        f = click.option(
            "--category",
            type=click.Choice([c.value for c in SaleCategory]),
            default=SaleCategory.STANDARD.value,
            show_default=True,
            help="Rate category",
        )(f)
        f = click.option("--goods", is_flag=True, help="Goods rather than services")(f)
        f = click.option("--description", help="Description")(f)
        f = click.option("--name", help=f"{role} name")(f)
        f = click.option("--vat-number", help=f"{role} VAT number")(f)
        f = click.option("--country", required=True, help=f"{role} country code")(f)
        f = click.option("--date", "txn_date", default="today", help="Transaction date (default: today)")(f)
        return f
    return decorator


@transaction_group.command("income")
@click.argument("amount")
@_counterparty_options("Customer")
@click.option("--export-proof", is_flag=True, help="Export of the goods is documented")
@click.pass_context
def record_income(
    ctx,
    amount: str,
    txn_date: str,
    country: str,
    vat_number: str | None,
    name: str | None,
    description: str | None,
    goods: bool,
    category: str,
    export_proof: bool,
) -> None:
    """Record income of AMOUNT (net, before VAT).

    Examples:
        vatkit transaction income 500.00 --country DE --description "Workshop"
        vatkit transaction income 1200 --country AT --vat-number ATU12345678
    """
    service = TransactionService(ctx.obj["db"])
    day = parse_date_option(ctx, txn_date, "date")
    try:
        net = parse_money_option(ctx, amount, service.profiles.home_currency())
        transaction_id = service.record_income(
            date=day,
            net_amount=net,
            customer=build_party(country, vat_number, name),
            description=description,
            category=SaleCategory(category),
            is_goods=goods,
            has_export_proof=export_proof,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    txn = service.require_transaction(transaction_id)
    click.echo(f"Recorded income {transaction_id} ({txn.vat_treatment.describe()})")


@transaction_group.command("expense")
@click.argument("amount")
@_counterparty_options("Supplier")
@click.pass_context
def record_expense(
    ctx,
    amount: str,
    txn_date: str,
    country: str,
    vat_number: str | None,
    name: str | None,
    description: str | None,
    goods: bool,
    category: str,
) -> None:
    """Record an expense of AMOUNT (net, before VAT).

    Examples:
        vatkit transaction expense 80.00 --country DE --vat-number DE999999999
        vatkit transaction expense 300 --country IE --vat-number IE1234567X --description "Hosting"
    """
    service = TransactionService(ctx.obj["db"])
    day = parse_date_option(ctx, txn_date, "date")
    try:
        net = parse_money_option(ctx, amount, service.profiles.home_currency())
        transaction_id = service.record_expense(
            date=day,
            net_amount=net,
            supplier=build_party(country, vat_number, name),
            description=description,
            category=SaleCategory(category),
            is_goods=goods,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    txn = service.require_transaction(transaction_id)
    click.echo(f"Recorded expense {transaction_id} ({txn.vat_treatment.describe()})")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last quarter')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--income", "kind", flag_value=TransactionKind.INCOME.value, help="Only income")
@click.option("--expenses", "kind", flag_value=TransactionKind.EXPENSE.value, help="Only expenses")
@click.pass_context
def list_transactions(ctx, start_date: str | None, end_date: str | None, kind: str | None) -> None:
    """View transactions with optional filters."""
    service = TransactionService(ctx.obj["db"])
    start = parse_date_option(ctx, start_date, "start date") if start_date else None
    end = parse_date_option(ctx, end_date, "end date") if end_date else None

    transactions = service.list_transactions(
        start_date=start,
        end_date=end,
        kind=TransactionKind(kind) if kind else None,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Kind':<8} {'Net':>14} {'VAT':>14} {'Treatment':<20} {'Description':<24}"
    )
    click.echo("-" * 100)
    for txn in transactions:
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {txn.kind.value:<8} {str(txn.net_amount):>14} "
            f"{str(txn.vat_amount):>14} {txn.vat_treatment.kind.value:<20} {(txn.description or '')[:24]:<24}"
        )


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
