# Overview: Flask CLI command groups for bootstrap, inspection, and stock corrections.

# backend/posadmin/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app wsgi <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app wsgi system init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - flask --app wsgi system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask --app wsgi system seed-demo
#   Insert demo products (idempotent by name).
#
# Catalog inspection/corrections:
# - flask --app wsgi catalog list
#   List products with stock and prices.
# - flask --app wsgi catalog adjust 3 REDUCE 2 --reason "Damaged"
#   Apply a manual stock adjustment with an audit row.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product
from .money import format_cents
from .services import inventory_service
from .services.errors import ServiceError
from .validation import ValidationError

DEMO_PRODUCTS = [
    # (name, barcode, purchase_price_cents, selling_price_cents, stock_quantity)
    ("Espresso Beans 1kg", "4006381333931", 1200, 1899, 40),
    ("Oat Milk 1L", "5411188112709", 150, 299, 120),
    ("Paper Cups 12oz (50)", None, 400, 750, 25),
    ("Chocolate Croissant", "2000000000015", 90, 250, 60),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("OK Database tables created.")


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

    click.echo("OK Database reset complete.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Insert a handful of demo products. Existing names are skipped."""
    created = 0
    for name, barcode, purchase, selling, stock in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(name=name).first():
            click.echo(f"SKIP  {name} already exists")
            continue
        db.session.add(Product(
            name=name,
            barcode=barcode,
            purchase_price_cents=purchase,
            selling_price_cents=selling,
            stock_quantity=stock,
        ))
        created += 1
    db.session.commit()
    click.echo(f"OK Seeded {created} product(s).")


@click.group('catalog')
def catalog_group():
    """Product catalog inspection and stock corrections."""


@catalog_group.command('list')
@with_appcontext
def list_products():
    """List all products with stock and prices."""
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Barcode':<15} {'Stock':>7} {'Cost':>10} {'Price':>10}")
    click.echo("="*80)

    for p in products:
        click.echo(
            f"{p.id:<5} {p.name[:30]:<30} {p.barcode or '-':<15} {p.stock_quantity:>7} "
            f"{format_cents(p.purchase_price_cents):>10} {format_cents(p.selling_price_cents):>10}"
        )

    click.echo("="*80 + "\n")


@catalog_group.command('adjust')
@click.argument('product_id', type=int)
@click.argument('adjustment_type', type=click.Choice(['ADD', 'REDUCE'], case_sensitive=False))
@click.argument('quantity', type=int)
@click.option('--reason', default=None, help='Free-text reason stored on the audit row')
@with_appcontext
def adjust(product_id, adjustment_type, quantity, reason):
    """Apply a manual stock adjustment."""
    try:
        adjustment = inventory_service.adjust_stock(
            product_id=product_id,
            adjustment_type=adjustment_type.upper(),
            quantity=quantity,
            reason=reason,
        )
    except (ValidationError, ServiceError) as e:
        raise click.ClickException(str(e))

    click.echo(
        f"OK {adjustment.adjustment_type} {adjustment.quantity} on product {product_id}; "
        f"stock is now {adjustment.product.stock_quantity}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
