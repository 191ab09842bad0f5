"""Main CLI entry point."""

import logging

import click
from vatkit.database.factories import create_sqlite_database
from vatkit.domain.collaborators import CAPABILITIES, StaticAuthorizer

# Import and register all commands at module level
from vatkit.cli.commands import (
    invoice,
    periods,
    profile,
    report,
    transaction,
)


def parse_capabilities(value: str | None) -> tuple[str, ...]:
    """Parse a comma-separated capability list; None grants all capabilities."""
    if value is None:
        return CAPABILITIES
    return tuple(item.strip() for item in value.split(",") if item.strip())


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides VATKIT_DB_PATH environment variable)",
    envvar="VATKIT_DB_PATH",
)
@click.option(
    "--user",
    help="Acting user for entitlement checks",
    envvar="VATKIT_USER",
)
@click.option(
    "--capabilities",
    help="Comma-separated capabilities granted to the user (default: all)",
    envvar="VATKIT_CAPABILITIES",
)
@click.option("--verbose", "-v", is_flag=True, help="Log service activity to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, user: str | None, capabilities: str | None, verbose: bool):
    """Vatkit - VAT invoicing and tax report tracking.

    Issue invoices with the correct VAT treatment, record income and
    expenses, and prepare VAT returns and EC Sales Lists per period.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.obj["user"] = user
    ctx.obj["authorizer"] = StaticAuthorizer(parse_capabilities(capabilities))

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
profile.register_commands(cli)
invoice.register_commands(cli)
transaction.register_commands(cli)
periods.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
