# Overview: Flask CLI command groups for bootstrap, inspection and maintenance.

# backend/vterm/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables and the default company/app settings rows (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system card-counts
#   Show the running count of successful charges per card brand.
#
# User inspection:
# - python -m flask users list
#   List all users with their permissions and active status.
#
# Card maintenance:
# - python -m flask cards list
#   List saved cards (id, customer id, name, expiration).
# - python -m flask cards remove-expired [--month-year 3/2024]
#   Remove cards that expired last month (or the given month).

import click
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .models import Card, User
from .services import cron_service, settings_service
from .services.charge_service import get_card_counts


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create tables and default settings rows."""
    db.create_all()
    settings_service.ensure_defaults()
    db.session.commit()
    click.echo("PASS Database initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA! Saved cards stay in Stripe as orphaned
    customers.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    settings_service.ensure_defaults()
    db.session.commit()
    click.echo("PASS Database reset complete")


@system_group.command('card-counts')
@with_appcontext
def card_counts():
    """Show charge counts per card brand."""
    for name, value in get_card_counts().items():
        click.echo(f"{name:<20} {value}")


@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their permissions."""
    users = db.session.query(User).order_by(User.username.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Username':<25} {'Active':<8} {'Permissions'}")
    click.echo("=" * 90)

    for user in users:
        flags = [
            name for name in ("add_cards", "remove_cards", "charge_cards", "view_reports", "administrator")
            if getattr(user, name)
        ]
        active_str = "Yes" if user.active else "No"
        click.echo(f"{user.id:<5} {user.username:<25} {active_str:<8} {', '.join(flags) or 'none'}")

    click.echo("=" * 90 + "\n")


@click.group('cards')
def cards_group():
    """Saved card maintenance commands."""


@cards_group.command('list')
@with_appcontext
def list_cards():
    cards = db.session.query(Card).order_by(Card.customer_name.asc()).all()
    if not cards:
        click.echo("No cards found.")
        return

    for card in cards:
        click.echo(
            f"{card.id:<6} {card.customer_id or '-':<15} {card.customer_name:<30} "
            f"{card.card_last4:<5} {card.card_expiration}"
        )


@cards_group.command('remove-expired')
@click.option('--month-year', default=None, help='Expiration to sweep as M/YYYY (default: last month)')
@with_appcontext
def remove_expired(month_year):
    """Remove cards that expired in the given month."""
    try:
        removed = cron_service.remove_expired_cards(month_year)
    except AppError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Removed {removed} expired card(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(cards_group)
