"""CLI error handling helpers."""

from datetime import date

import click

from vatkit.domain.entities import Party
from vatkit.domain.errors import DomainError
from vatkit.domain.money import Money
from vatkit.utils.amount_parser import parse_money
from vatkit.utils.date_parser import parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def parse_date_option(ctx: click.Context, value: str, label: str) -> date:
    """Parse a date option, exiting with an error message on bad input."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_money_option(ctx: click.Context, value: str, currency: str) -> Money:
    """Parse an amount option, exiting with an error message on bad input."""
    try:
        return parse_money(value, currency)
    except ValueError as e:
        click.echo(f"Error: Invalid amount: {e}", err=True)
        ctx.exit(1)


def build_party(
    country: str,
    vat_number: str | None,
    name: str | None = None,
    business: bool | None = None,
) -> Party:
    """Build a counterparty from CLI options.

    A counterparty with a VAT number counts as VAT registered unless
    ``business`` says otherwise.
    """
    registered = bool(vat_number) if business is None else business
    return Party(
        country_code=country,
        vat_number=vat_number,
        is_vat_registered=registered,
        name=name,
    )
