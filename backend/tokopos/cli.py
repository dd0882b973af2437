# Overview: Flask CLI command groups for bootstrap and data entry.

# backend/tokopos/cli.py
# Commands Legend (run from the repository root):
# - flask --app tokopos system init
#   Idempotent bootstrap: creates tables, default settings and the default administrator.
# - flask --app tokopos users create --name "Kasir 1" --email kasir1@tokopos.local --password "Password123!" --role Staff
#   Create an operator account (prompts if options are omitted).
# - flask --app tokopos users list
# - flask --app tokopos products add --sku BRG-001 --name "Indomie Goreng" --category Makanan --price 3500 --stock 120
#   Add a product to the catalogue.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import USER_ROLES
from .services.auth_service import create_user, PasswordValidationError
from .services.products_service import create_product
from .services.settings_service import seed_default_settings
from .money import to_decimal


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables, seed default POS/store settings and the default administrator.

    Safe to run repeatedly: existing settings and users are left alone.
    """
    click.echo("START Initializing TokoPOS...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = seed_default_settings()
    click.echo(f"PASS Seeded {created} default settings")

    email = current_app.config["DEFAULT_ADMIN_EMAIL"]
    if db.session.query(User.id).filter_by(email=email).first():
        click.echo(f"WARN  User '{email}' already exists, skipping...")
    else:
        try:
            create_user(
                name="Administrator",
                email=email,
                password=current_app.config["DEFAULT_ADMIN_PASSWORD"],
                role="Administrator",
            )
            click.echo(f"PASS Created user: {email} with role 'Administrator'")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{email}': {str(e)}")

    click.echo("DONE TokoPOS initialized. Change the default password in production!")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), default='Staff', show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user.

    Password must be 8+ chars with uppercase, lowercase, digit and special char.
    """
    try:
        user = create_user(name=name, email=email, password=password, role=role)
        click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role':<15} {'Active'}")
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<35} {user.role:<15} {active_str}")


@click.group('products')
def products_group():
    """Catalogue data entry."""


@products_group.command('add')
@click.option('--sku', required=True)
@click.option('--name', required=True)
@click.option('--category', required=True)
@click.option('--price', required=True, type=str, help='Unit price, e.g. 3500 or 12500.50')
@click.option('--stock', type=int, default=0, show_default=True)
@click.option('--min-stock', type=int, default=10, show_default=True)
@click.option('--description', default=None)
@with_appcontext
def add_product_cli(sku, name, category, price, stock, min_stock, description):
    """Add a product."""
    try:
        product = create_product(
            sku=sku,
            name=name,
            category=category,
            price=to_decimal(price),
            stock=stock,
            min_stock=min_stock,
            description=description,
        )
    except ValueError as e:
        # ValidationError, ConflictError or an unparseable price
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Added product {product.sku} (ID: {product.id}) stock={product.stock}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
