import click
from flask.cli import with_appcontext

from loan_portal.models.user import ROLES, User
from loan_portal.services.auth_service import assign_role
from loan_portal.services.balance_service import open_loan_account
from loan_portal.utils.exceptions import ServiceError


@click.command("assign-role")
@click.argument("email")
@click.argument("role", type=click.Choice(ROLES))
@with_appcontext
def assign_role_command(email, role):
    """Grant ROLE to the user registered with EMAIL."""
    try:
        user = assign_role(email, role)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(f"{user.email} is now {user.role}")


@click.command("create-loan-account")
@click.argument("email")
@click.argument("balance")
@with_appcontext
def create_loan_account_command(email, balance):
    """Open (or reset) the loan account of EMAIL with BALANCE."""
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException("User not found")
    try:
        account = open_loan_account(user.id, balance)
    except (ServiceError, ArithmeticError) as e:
        raise click.ClickException(getattr(e, "message", "Invalid balance"))
    click.echo(f"{account.account_number}: {account.current_balance}")


def register_commands(app):
    app.cli.add_command(assign_role_command)
    app.cli.add_command(create_loan_account_command)
