# Overview: Flask CLI command groups for bootstrap, inspection, migration and reporting.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin and cashier.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Jane" --email jane@example.com --password "Password123!" --role admin
#
# Local store (the legacy browser data, as a JSON file):
# - python -m flask local init [--path local_store.json]
#   Seed default products, suppliers, users and categories where absent.
# - python -m flask local show [--path local_store.json]
#   Count records per collection (parsing every record).
#
# Migration:
# - python -m flask migrate-local run [--path local_store.json] [--skip-deliveries]
#   Copy the local store into the database. Not idempotent: run once.
#
# Reports:
# - python -m flask reports export sales --range month [--out sales.csv]
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked sessions older than 30 days.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .local_store import LocalDataAccess, LocalRecordError, LocalRecordStore
from .local_store import record_store
from .models import ROLES, User
from .services import migration_service, reporting_service, session_service
from .services.auth_service import PasswordValidationError, UserError, create_user

DEFAULT_PASSWORD = "Password123!"


def _store_path(path):
    return path or current_app.config["LOCAL_STORE_PATH"]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and default users (safe to run repeatedly).

    - admin@mic3hardware.com   (admin)
    - cashier@mic3hardware.com (cashier)
    """
    db.create_all()
    click.echo("PASS Tables ready")

    defaults = [
        ("Admin", "admin@mic3hardware.com", "admin"),
        ("Cashier", "cashier@mic3hardware.com", "cashier"),
    ]
    for name, email, role in defaults:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"SKIP {email} already exists")
            continue
        create_user(name, email, DEFAULT_PASSWORD, role=role)
        click.echo(f"PASS Created {role} {email}")

    click.echo(f"\nDefault password for new accounts: {DEFAULT_PASSWORD}")
    click.echo("Change it before going live.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='cashier', show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    try:
        user = create_user(name, email, password, role=role)
    except (PasswordValidationError, UserError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.id}: {user.email} ({user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.name.asc()).all()
    click.echo(f"\n{'ID':<5} {'Name':<20} {'Email':<32} {'Role':<8} {'Active':<6}")
    click.echo("=" * 75)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<32} {user.role:<8} {active_str:<6}")
    click.echo("=" * 75 + "\n")


@click.group('local')
def local_group():
    """Local record store (legacy JSON data)."""


@local_group.command('init')
@click.option('--path', type=click.Path(dir_okay=False), help='Local store file (default LOCAL_STORE_PATH)')
@with_appcontext
def init_local(path):
    store = LocalRecordStore(_store_path(path))
    seeded = store.initialize()
    if seeded:
        click.echo(f"PASS Seeded: {', '.join(seeded)}")
    else:
        click.echo("SKIP Every collection already present")


@local_group.command('show')
@click.option('--path', type=click.Path(exists=True, dir_okay=False), help='Local store file (default LOCAL_STORE_PATH)')
@with_appcontext
def show_local(path):
    local = LocalDataAccess(LocalRecordStore(_store_path(path)))
    try:
        counts = {
            record_store.CATEGORIES: len(local.list_categories()),
            record_store.SUPPLIERS: len(local.list_suppliers()),
            record_store.PRODUCTS: len(local.list_products()),
            record_store.SALES: len(local.list_sales()),
            record_store.EXPENSES: len(local.list_expenses()),
            record_store.DELIVERIES: len(local.list_deliveries()),
            record_store.USERS: len(local.list_users()),
        }
    except LocalRecordError as e:
        raise click.ClickException(f"Malformed local record: {e}")
    for key, count in counts.items():
        click.echo(f"{key:<16} {count}")


@click.group('migrate-local')
def migrate_group():
    """Copy the local record store into the database."""


@migrate_group.command('run')
@click.option('--path', type=click.Path(exists=True, dir_okay=False), help='Local store file (default LOCAL_STORE_PATH)')
@click.option('--skip-deliveries', is_flag=True, help='Do not migrate deliveries')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def run_migration(path, skip_deliveries, yes):
    """
    Not idempotent: a second run inserts every row again.
    """
    if not yes:
        click.confirm("WARN Running this twice duplicates data. Continue?", abort=True)

    try:
        store = LocalRecordStore(_store_path(path))
    except LocalRecordError as e:
        raise click.ClickException(str(e))

    ok = migration_service.migrate_local_to_remote(
        LocalDataAccess(store),
        include_deliveries=not skip_deliveries,
    )
    if not ok:
        raise click.ClickException("Migration failed; rows written before the failure remain")
    click.echo("PASS Migration completed")


@click.group('reports')
def reports_group():
    """Report exports."""


@reports_group.command('export')
@click.argument('report_type', type=click.Choice(list(reporting_service.REPORT_TYPES)))
@click.option('--range', 'date_range', type=click.Choice(list(reporting_service.DATE_RANGES)), default='month', show_default=True)
@click.option('--out', type=click.Path(dir_okay=False), help='Write to this file instead of stdout')
@with_appcontext
def export_report(report_type, date_range, out):
    exported = reporting_service.export_csv(report_type, date_range)
    if exported is None:
        raise click.ClickException("Report export failed; see the log for details")
    filename, content = exported
    if not out:
        click.echo(content, nl=False)
        return
    with open(out, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    click.echo(f"PASS Wrote {out} ({filename})")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions older than 30 days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(local_group)
    app.cli.add_command(migrate_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(maintenance_group)
