"""Business profile commands."""

import click
from vatkit.cli.error_handling import handle_domain_error
from vatkit.domain.entities import Cadence
from vatkit.domain.errors import DomainError
from vatkit.domain.profile import ProfileService


@click.group()
def profile_group():
    """Manage the business VAT profile."""
    pass


@profile_group.command("set")
@click.option("--country", required=True, help="Country code of the business (e.g. DE)")
@click.option("--vat-number", help="VAT identification number (e.g. DE123456789)")
@click.option(
    "--registered/--not-registered",
    default=True,
    show_default=True,
    help="Whether the business is VAT registered",
)
@click.option("--small-business", is_flag=True, help="Small-business exemption applies")
@click.option(
    "--cadence",
    type=click.Choice([c.value for c in Cadence]),
    default=Cadence.QUARTERLY.value,
    show_default=True,
    help="How often VAT returns are filed",
)
@click.option(
    "--fiscal-year-start",
    type=int,
    default=1,
    show_default=True,
    help="Month the fiscal year starts in (1-12)",
)
@click.option("--name", help="Business name")
@click.pass_context
def set_profile(
    ctx,
    country: str,
    vat_number: str | None,
    registered: bool,
    small_business: bool,
    cadence: str,
    fiscal_year_start: int,
    name: str | None,
) -> None:
    """Create or replace the business profile.

    Examples:
        vatkit profile set --country DE --vat-number DE123456789
        vatkit profile set --country DE --not-registered --small-business --cadence yearly
    """
    service = ProfileService(ctx.obj["db"])
    try:
        profile = service.set_profile(
            country_code=country,
            vat_number=vat_number,
            is_vat_registered=registered,
            is_small_business=small_business,
            cadence=Cadence(cadence),
            fiscal_year_start=fiscal_year_start,
            name=name,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Saved profile for {profile.country_code} ({profile.cadence.value} returns)")


@profile_group.command("show")
@click.pass_context
def show_profile(ctx) -> None:
    """Show the business profile."""
    service = ProfileService(ctx.obj["db"])
    profile = service.get_profile()
    if profile is None:
        click.echo("No profile set. Run 'vatkit profile set' first.")
        return

    click.echo(f"Name:              {profile.name or '-'}")
    click.echo(f"Country:           {profile.country_code}")
    click.echo(f"VAT number:        {profile.vat_number or '-'}")
    click.echo(f"VAT registered:    {'yes' if profile.is_vat_registered else 'no'}")
    click.echo(f"Small business:    {'yes' if profile.is_small_business else 'no'}")
    click.echo(f"Cadence:           {profile.cadence.value}")
    click.echo(f"Fiscal year start: {profile.fiscal_year_start}")


def register_commands(cli: click.Group) -> None:
    """Register profile commands with main CLI."""
    cli.add_command(profile_group, name="profile")
