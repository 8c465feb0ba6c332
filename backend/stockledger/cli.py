# Overview: Flask CLI command groups for bootstrap and administration.

# backend/stockledger/cli.py
# Commands Legend (run from the repository root):
# Prereqs:
# - Activate your virtualenv and `pip install -e .`
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="stockledger"; bash: export FLASK_APP=stockledger).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent) and seed default business settings.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admin accounts:
# - python -m flask admins create --email admin@example.com --name "Admin" --password "Password123!"
#   Create an admin (prompts if options are omitted).
# - python -m flask admins list
#   List admin accounts with active status.
#
# Settings:
# - python -m flask settings seed
#   Insert any missing default business settings (existing values untouched).
# - python -m flask settings show
#   Print the current settings.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import AdminUser
from .services.auth_service import create_admin, PasswordValidationError
from .services import settings_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables and seed default settings."""
    db.create_all()
    click.echo("PASS Tables created.")

    created = settings_service.seed_default_settings(current_app.config["DEFAULT_SETTINGS"])
    if created:
        click.echo(f"PASS Seeded settings: {', '.join(created)}")
    else:
        click.echo("PASS Settings already present.")
    click.echo("Next: python -m flask admins create")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including the sales ledger!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask settings seed' and 'python -m flask admins create'.")


@click.group('admins')
def admins_group():
    """Admin account management."""


@admins_group.command('create')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--name', default=None, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin_cli(email, name, password):
    """
    Create a new admin account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_admin(email=email, password=password, name=name)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created admin: {user.email} (ID: {user.id})")


@admins_group.command('list')
@with_appcontext
def list_admins():
    """List admin accounts."""
    users = db.session.query(AdminUser).order_by(AdminUser.id.asc()).all()

    if not users:
        click.echo("No admins found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<20} {'Active'}")
    click.echo("="*70)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {(user.name or ''):<20} {active_str}")


@click.group('settings')
def settings_group():
    """Business display settings."""


@settings_group.command('seed')
@with_appcontext
def seed_settings():
    """Insert missing default settings from config."""
    created = settings_service.seed_default_settings(current_app.config["DEFAULT_SETTINGS"])
    if created:
        click.echo(f"PASS Seeded settings: {', '.join(created)}")
    else:
        click.echo("PASS Nothing to seed.")


@settings_group.command('show')
@with_appcontext
def show_settings():
    """Print current settings."""
    for key, value in settings_service.get_settings().items():
        click.echo(f"{key} = {value}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(settings_group)
