"""
Maintenance commands, run through the ``flask`` CLI:

    flask users create owner@example.com "Jane Owner" --password ...
    flask invoices check-numbers
    flask taxes seed
"""

import click
import mongoengine as me
from flask.cli import AppGroup

from invoicely.models import User
from invoicely.repository import InvoiceStore
from invoicely.services.invoice_service import find_duplicate_invoice_numbers, preview_next_invoice_number
from invoicely.services.tax_service import seed_tax_configurations

users_cli = AppGroup("users", help="Manage user accounts.")
invoices_cli = AppGroup("invoices", help="Invoice numbering checks.")
taxes_cli = AppGroup("taxes", help="Tax configuration maintenance.")


@users_cli.command("create")
@click.argument("email")
@click.argument("full_name")
@click.password_option()
def create_user(email, full_name, password):
    """Create a user account."""
    user = User(email=email.strip().lower(), full_name=full_name.strip())
    user.set_password(password)
    try:
        user.save()
    except me.NotUniqueError:
        raise click.ClickException(f"{user.email} is already registered")
    except me.ValidationError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Created user {user.email} ({user.id})")


@invoices_cli.command("check-numbers")
def check_numbers():
    """Report duplicate invoice numbers and each user's next number."""
    duplicates = find_duplicate_invoice_numbers()
    if duplicates:
        click.echo(f"Found {len(duplicates)} duplicated invoice numbers:")
        for row in duplicates:
            click.echo(f"  user {row['user_id']}: {row['invoice_number']} x{row['count']}")
    else:
        click.echo("No duplicate invoice numbers.")

    store = InvoiceStore()
    for user in User.objects.order_by("email"):
        click.echo(f"  {user.email}: next number = {preview_next_invoice_number(store, user.id)}")

    if duplicates:
        raise SystemExit(1)


@taxes_cli.command("seed")
def seed_taxes():
    """Add any missing default tax configurations for every user."""
    total = 0
    for user in User.objects.order_by("email"):
        added = seed_tax_configurations(user.id)
        if added:
            click.echo(f"  {user.email}: added {added}")
        total += added
    click.echo(f"Added {total} tax configurations.")


def register_commands(app) -> None:
    app.cli.add_command(users_cli)
    app.cli.add_command(invoices_cli)
    app.cli.add_command(taxes_cli)
