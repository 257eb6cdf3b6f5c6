"""Management script for database setup and transaction lookups"""

import json

import click
from dotenv import load_dotenv
from flask import current_app
from flask.cli import FlaskGroup

load_dotenv()

from payrelay import create_app  # noqa: E402
from payrelay.errors import DomainError, NotFound  # noqa: E402
from payrelay.extensions import db  # noqa: E402
from payrelay.models import Transaction  # noqa: E402


cli = FlaskGroup(create_app=create_app)


@cli.command("init-db")
def init_db():
    """Create the transactions table"""
    db.create_all()
    click.echo("Database initialized successfully!")


@cli.command("show-transaction")
@click.argument("reference")
def show_transaction(reference):
    """Print the stored record for REFERENCE"""
    transaction = db.session.query(Transaction).filter_by(reference=reference).one_or_none()
    if transaction is None:
        raise click.ClickException(str(NotFound(f"Transaction {reference} not found")))
    click.echo(json.dumps(transaction.to_dict(), indent=2))


@cli.command("verify")
@click.argument("reference")
def verify(reference):
    """Reconcile REFERENCE against Paystack, as GET /payments/verify does"""
    try:
        result = current_app.extensions["payrelay"].verify(reference)
    except DomainError as e:
        raise click.ClickException(e.message) from e
    click.echo(json.dumps({
        "reference": reference,
        "dbStatus": result.db_status,
        "status": result.transaction.status if result.transaction else None,
        "notified": result.notified,
    }, indent=2))


if __name__ == "__main__":
    cli()
