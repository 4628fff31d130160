# Overview: Flask CLI command groups for bootstrap, demo data and outbox maintenance.

# backend/snspos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables (if missing) and the default store.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Load demo item groups, items and opening purchase entries.
#
# Outbox (pending stock ledger updates from POS sales):
# - python -m flask outbox list [--pending]
#   Show outbox events with attempts and last error.
# - python -m flask outbox relay [--limit 100]
#   Retry unpublished events through the configured ledger client.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Item, ItemGroup, StockEntry
from .services.ledger_client import get_ledger_client
from .services.outbox_service import list_events, relay_pending
from .services.stock_entry_service import add_stock_entry
from .services.store_service import ensure_default_store


# (group name, group code, [(item code, purchase qty, purchase rate), ...])
DEMO_CATALOG = [
    ("BOY'S POLO SHIRT", "BPS", [("BPS30", 100, 23.0), ("BPS18", 45, 28.0)]),
    ("BOY'S SHORT PANT", "BSP", [("BTS140", 1100, 10.0), ("BTS128", 75, 12.0)]),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create missing tables and the default store. Safe to re-run."""
    click.echo("START Initializing SNS POS...")
    db.create_all()

    store = ensure_default_store()
    db.session.commit()
    click.echo(f"PASS Default store: {store.name} ({store.code})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to load demo data.")


@system_group.command('seed')
@with_appcontext
def seed_demo_data():
    """
    Load the demo catalog.

    Existing groups/items (matched by code) are left untouched; an opening
    purchase entry is only added to items created by this run.
    """
    ensure_default_store()

    created_items = 0
    for group_name, group_code, items in DEMO_CATALOG:
        group = db.session.query(ItemGroup).filter_by(code=group_code).first()
        if group is None:
            group = ItemGroup(name=group_name, code=group_code)
            db.session.add(group)
            db.session.flush()
            click.echo(f"PASS Created item group: {group_name} ({group_code})")
        else:
            click.echo(f"WARN  Item group '{group_code}' already exists, skipping...")

        for item_code, quantity, rate in items:
            if db.session.query(Item).filter_by(item_code=item_code).first():
                click.echo(f"WARN  Item '{item_code}' already exists, skipping...")
                continue

            item = Item(item_code=item_code, item_group_id=group.id, name=group.name, rate=rate)
            db.session.add(item)
            db.session.flush()
            add_stock_entry({
                "item_id": item.id,
                "type": "purchase",
                "quantity": float(quantity),
                "unit": "pcs",
                "rate": rate,
                "notes": "Opening stock",
            })
            created_items += 1

    db.session.commit()
    entries = db.session.query(StockEntry).count()
    click.echo(f"DONE Seeded {created_items} item(s); ledger now holds {entries} entries")


@click.group('outbox')
def outbox_group():
    """Inspect and relay pending stock ledger updates."""


@outbox_group.command('list')
@click.option('--pending', 'pending_only', is_flag=True, help='Only unpublished events')
@click.option('--limit', type=int, default=100, help='Maximum rows to show')
@with_appcontext
def list_outbox(pending_only, limit):
    events = list_events(pending_only=pending_only, limit=limit)
    if not events:
        click.echo("No outbox events found.")
        return

    click.echo(f"\n{'ID':<6} {'Transaction':<14} {'Status':<10} {'Attempts':<9} Last error")
    click.echo("-" * 80)
    for event in events:
        status = "published" if event.published_at else "pending"
        click.echo(
            f"{event.id:<6} {event.aggregate_id:<14} {status:<10} "
            f"{event.publish_attempts:<9} {event.last_error or ''}"
        )
    click.echo("")


@outbox_group.command('relay')
@click.option('--limit', type=int, default=100, help='Maximum events to retry')
@with_appcontext
def relay_outbox(limit):
    """Retry unpublished events below OUTBOX_MAX_ATTEMPTS, oldest first."""
    with get_ledger_client() as client:
        result = relay_pending(client, limit=limit)
    click.echo(
        f"PASS Relayed {result['attempted']} event(s): "
        f"{result['published']} published, {result['failed']} failed"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(outbox_group)
