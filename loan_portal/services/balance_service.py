from decimal import Decimal

from loan_portal.extensions import db
from loan_portal.models.loan_account import LoanAccount
from loan_portal.utils.exceptions import NotFoundError, ValidationError


def get_loan_account(user_id):
    account = LoanAccount.query.filter_by(user_id=user_id).first()
    if not account:
        raise NotFoundError("No loan account found")
    return account


def get_available_balance(user_id):
    return Decimal(get_loan_account(user_id).current_balance or 0)


def open_loan_account(user_id, balance=0):
    """Create the user's loan account, or reset its balance if it exists."""
    balance = Decimal(str(balance))
    if balance < 0:
        raise ValidationError("Balance cannot be negative", details={"balance": str(balance)})

    account = LoanAccount.query.filter_by(user_id=user_id).first()
    if account:
        account.current_balance = balance
    else:
        account = LoanAccount(user_id=user_id, principal_amount=balance, current_balance=balance)
        db.session.add(account)
    db.session.commit()
    return account
