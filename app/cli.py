"""CLI commands for ledger operations."""

import asyncio
import logging

import click

from app.core import database
from app.core.config import get_settings
from app.core.exceptions import LedgerError
from app.core.logging_setup import configure_logging
from app.db.seed import seed_data
from app.handlers.ledger import reconcile, repair
from app.handlers.reports import repair_drift, scan_drift
from app.models.access_event import AccessKind

logger = logging.getLogger(__name__)

KIND_CHOICE = click.Choice([kind.value for kind in AccessKind])


def _run(coro_factory):
    """Run a coroutine against a fresh session."""
    async def runner():
        async with database.AsyncSessionLocal() as session:
            return await coro_factory(session)
    return asyncio.run(runner())


def _format_report(report) -> str:
    state = "in sync" if report.in_sync else "DRIFT"
    return (
        f"resource {report.resource_id} {report.kind.value}: "
        f"events={report.event_count} counter={report.counter_value} "
        f"audit={report.audit_count} [{state}]"
    )


@click.group()
def cli():
    """Resource access ledger CLI."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.structured_logging)


@cli.command("init-db")
def init_db_command():
    """Create database tables."""
    asyncio.run(database.create_tables(database.engine))
    click.echo("✓ Tables created.")


@cli.command()
def seed():
    """Seed development data."""
    click.echo("Seeding development data...")
    try:
        asyncio.run(seed_data())
    except LedgerError as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        raise SystemExit(1)


@cli.command("reconcile")
@click.argument("resource_id", type=int)
@click.argument("kind", type=KIND_CHOICE)
def reconcile_command(resource_id: int, kind: str):
    """Compare counter, access events and activity log for one resource."""
    try:
        report = _run(lambda session: reconcile(session, resource_id, kind))
    except LedgerError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    click.echo(_format_report(report))
    if not report.in_sync:
        raise SystemExit(2)


@cli.command("repair")
@click.argument("resource_id", type=int)
@click.argument("kind", type=KIND_CHOICE)
def repair_command(resource_id: int, kind: str):
    """Recompute one counter from its access events."""
    try:
        counter_value = _run(lambda session: repair(session, resource_id, kind))
    except LedgerError as e:
        logger.error(
            "Repair of %s counter for resource %s failed: %s", kind, resource_id, e,
            extra={"resource_id": resource_id, "kind": kind}
        )
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ resource {resource_id} {kind} counter = {counter_value}")


@cli.command()
@click.option("--repair", "do_repair", is_flag=True, help="Repair drifted counters after scanning.")
def scan(do_repair: bool):
    """Reconcile every resource and report drift."""
    try:
        reports = _run(scan_drift)
    except LedgerError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    if not reports:
        click.echo("✓ All counters in sync.")
        return

    for report in reports:
        click.echo(_format_report(report))

    if not do_repair:
        raise SystemExit(2)

    try:
        repaired = _run(repair_drift)
    except LedgerError as e:
        logger.error("Drift repair failed: %s", e)
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    for item in repaired:
        click.echo(
            f"✓ repaired resource {item['resource_id']} {item['kind']}: "
            f"{item['previous']} -> {item['counter_value']}"
        )


if __name__ == "__main__":
    cli()
