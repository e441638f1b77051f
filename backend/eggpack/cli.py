# Overview: Flask CLI command groups for bootstrap, scheduled credit jobs and ledger checks.

# backend/eggpack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Credit sales (run daily from cron):
# - python -m flask credit accrue-interest [--as-of 2024-03-31]
#   Accrue simple interest on overdue credit sales. Safe to re-run the same day.
# - python -m flask credit reminders [--as-of 2024-03-31]
#   List overdue and due-soon credit sales.
#
# Ledger checks:
# - python -m flask ledger verify
#   Compare every bank account's cached balance, and the petty-cash till,
#   against their ledgers. Exits 1 on any mismatch.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import BankAccount
from .services import bank_service, credit_service, petty_cash_service
from .time_utils import parse_optional_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (no-op for tables that already exist)."""
    db.create_all()
    click.echo("PASS Database tables created")


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
    click.echo("PASS Database reset complete")


@click.group('credit')
def credit_group():
    """Credit sale jobs."""


@credit_group.command('accrue-interest')
@click.option('--as-of', 'as_of', default=None, help='Business date (YYYY-MM-DD), defaults to today')
@with_appcontext
def accrue_interest(as_of):
    """Accrue interest on overdue credit sales."""
    results = credit_service.accrue_overdue_interest(today=parse_optional_date(as_of, "as_of"))
    if not results:
        click.echo("PASS No interest to accrue")
        return

    for r in results:
        click.echo(
            f"  credit sale {r['credit_sale_id']}: +{r['interest_amount']} "
            f"for {r['days_overdue']} days overdue (total {r['new_total']})"
        )
    click.echo(f"PASS Interest accrued on {len(results)} credit sale(s)")


@credit_group.command('reminders')
@click.option('--as-of', 'as_of', default=None, help='Business date (YYYY-MM-DD), defaults to today')
@with_appcontext
def reminders(as_of):
    """List overdue and due-soon credit sales."""
    report = credit_service.list_credit_reminders(today=parse_optional_date(as_of, "as_of"))

    click.echo(f"Overdue ({len(report['overdue'])}):")
    for c in report["overdue"]:
        click.echo(
            f"  #{c['id']} {c['customer_name'] or '-'}: {c['amount_remaining']} remaining, "
            f"{c['days_overdue']} days overdue"
        )
    click.echo(f"Due soon ({len(report['due_soon'])}):")
    for c in report["due_soon"]:
        click.echo(
            f"  #{c['id']} {c['customer_name'] or '-'}: {c['amount_remaining']} remaining, "
            f"due in {c['days_until_due']} days"
        )


@click.group('ledger')
def ledger_group():
    """Ledger consistency checks."""


@ledger_group.command('verify')
@with_appcontext
def verify_ledgers():
    """Check cached balances against the bank and petty-cash ledgers."""
    failures = 0

    for account in BankAccount.query.order_by(BankAccount.id).all():
        check = bank_service.verify_bank_account(account.id)
        if check["ok"]:
            click.echo(f"PASS bank account {account.id} ({account.bank_name}): {check['current_balance']}")
        else:
            failures += 1
            click.echo(
                f"FAIL bank account {account.id} ({account.bank_name}): cached {check['current_balance']}, "
                f"last entry {check['last_balance_after']}, ledger sum {check['ledger_sum']}"
            )

    petty = petty_cash_service.verify_petty_cash()
    if petty["ok"]:
        click.echo(f"PASS petty cash: {petty['balance']}")
    else:
        failures += 1
        click.echo(
            f"FAIL petty cash: balance {petty['balance']}, ledger sum {petty['ledger_sum']}, "
            f"mismatched entries {petty['mismatched_sequence_numbers']}"
        )

    if failures:
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(credit_group)
    app.cli.add_command(ledger_group)
