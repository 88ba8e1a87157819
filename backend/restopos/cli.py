# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/restopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent). Register the first restaurant afterwards.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Restaurant directory (MULTI-TENANT):
# - python -m flask restaurants list
#   List all restaurants with user counts.
# - python -m flask restaurants register --name "Casa Pepe" --address "Calle Mayor 1" --phone "600123456" \
#       --admin-name "Pepe" --admin-email pepe@example.com --admin-password secret1
#   Register a restaurant and its first user (superadmin if it is the first restaurant).
# - python -m flask restaurants delete <restaurant_id> --yes
#   Delete a restaurant and all of its data.
#
# User inspection:
# - python -m flask users list [--restaurant-id <id>]
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .errors import RestoposError
from .extensions import db
from .models import Restaurant, User
from .permissions import Scoped
from .services import restaurant_service, session_service, user_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create the schema if it does not exist yet.

    No default users are created: the first restaurant registered (via the
    API or `flask restaurants register`) gets the superadmin account.
    """
    click.echo("START Initializing restopos database...")
    db.create_all()
    restaurant_count = db.session.query(Restaurant).count()
    superadmins = restaurant_service.count_superadmins()
    click.echo(f"PASS Schema ready ({restaurant_count} restaurants, {superadmins} superadmins)")
    if restaurant_count == 0:
        click.echo("NEXT Register the first restaurant: python -m flask restaurants register")


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

    click.echo("PASS Database reset complete.")


# =============================================================================
# RESTAURANT DIRECTORY COMMANDS
# =============================================================================

@click.group('restaurants')
def restaurants_group():
    """Restaurant (tenant) management commands."""


@restaurants_group.command('list')
@with_appcontext
def list_restaurants():
    """List all restaurants."""
    restaurants = restaurant_service.list_all()

    if not restaurants:
        click.echo("No restaurants found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Name':<30} {'Phone':<16} {'Users'}")
    click.echo("="*100)

    for restaurant in restaurants:
        click.echo(f"{restaurant.id:<38} {restaurant.name:<30} {restaurant.phone:<16} {len(restaurant.users)}")

    click.echo("="*100 + "\n")


@restaurants_group.command('register')
@click.option('--name', required=True, help='Restaurant name')
@click.option('--address', required=True, help='Restaurant address')
@click.option('--phone', required=True, help='Restaurant phone')
@click.option('--admin-name', required=True, help='First user name')
@click.option('--admin-email', required=True, help='First user email (unique)')
@click.option('--admin-password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def register_restaurant_cli(name, address, phone, admin_name, admin_email, admin_password):
    """Register a restaurant and its first user."""
    try:
        restaurant_id = restaurant_service.create_restaurant(
            {"name": name, "address": address, "phone": phone},
            {"name": admin_name, "email": admin_email, "password": admin_password},
        )
    except RestoposError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    admin = db.session.query(User).filter_by(restaurant_id=restaurant_id).first()
    click.echo(f"PASS Registered restaurant {name} (ID: {restaurant_id})")
    click.echo(f"PASS First user {admin.email} has role '{admin.role}'")


@restaurants_group.command('delete')
@click.argument('restaurant_id')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def delete_restaurant_cli(restaurant_id, yes):
    """DANGER: delete a restaurant and every row it owns."""
    if not yes:
        click.confirm(f"WARN This will DELETE restaurant {restaurant_id} and ALL its data. Are you sure?", abort=True)
    try:
        restaurant_service.delete_restaurant(restaurant_id)
    except RestoposError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)
    click.echo(f"PASS Deleted restaurant {restaurant_id}")


# =============================================================================
# USER COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@click.option('--restaurant-id', help='Filter by restaurant ID')
@with_appcontext
def list_users(restaurant_id):
    """List users per restaurant, highest role first."""
    if restaurant_id:
        if db.session.get(Restaurant, restaurant_id) is None:
            click.echo(f"FAIL Restaurant {restaurant_id} not found")
            raise SystemExit(1)
        restaurant_ids = [restaurant_id]
    else:
        restaurant_ids = [r.id for r in db.session.query(Restaurant).order_by(Restaurant.name).all()]

    users = []
    for rid in restaurant_ids:
        users.extend(user_service.list_users(Scoped(rid)))
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*120)
    click.echo(f"{'ID':<38} {'Restaurant':<38} {'Email':<30} {'Role'}")
    click.echo("="*120)

    for user in users:
        click.echo(f"{user.id:<38} {user.restaurant_id:<38} {user.email:<30} {user.role}")

    click.echo("="*120 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} old sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(restaurants_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
