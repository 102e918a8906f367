import logging
from datetime import datetime, time, timezone
from decimal import Decimal

from loan_portal.extensions import db
from loan_portal.models.loan_account import LoanAccount
from loan_portal.models.loan_transaction import LoanTransaction
from loan_portal.models.user import User
from loan_portal.schemas.loan_schema import LoanCreateSchema, TransactionCreateSchema, TransactionFilterSchema
from loan_portal.services.permissions import require_admin
from loan_portal.utils.exceptions import NotFoundError, ServiceError, ValidationError
from loan_portal.utils.pagination import paginate_query
from loan_portal.utils.validation import load_or_raise

logger = logging.getLogger(__name__)

DEFAULT_MONTHLY_RATE = Decimal("0.01")


def list_loans_for_user(user_id):
    return LoanAccount.query.filter_by(user_id=user_id).order_by(LoanAccount.created_at.desc()).all()


def get_loan_for_user(user_id, loan_id):
    # someone else's loan looks the same as a missing one
    loan = LoanAccount.query.filter_by(id=loan_id, user_id=user_id).first()
    if not loan:
        raise NotFoundError("Loan account not found")
    return loan


def get_loan(loan_id):
    loan = LoanAccount.query.filter_by(id=loan_id).first()
    if not loan:
        raise NotFoundError("Loan account not found")
    return loan


def list_transactions(loan, page=1, limit=10, filters=None):
    f = load_or_raise(TransactionFilterSchema(), filters or {})
    if f["start_date"] and f["end_date"] and f["start_date"] > f["end_date"]:
        raise ValidationError("start_date must not be after end_date")

    q = LoanTransaction.query.filter_by(loan_account_id=loan.id)
    if f["type"]:
        q = q.filter(LoanTransaction.transaction_type == f["type"])
    if f["start_date"]:
        q = q.filter(LoanTransaction.transaction_date >= datetime.combine(f["start_date"], time.min))
    if f["end_date"]:
        q = q.filter(LoanTransaction.transaction_date <= datetime.combine(f["end_date"], time.max))

    q = q.order_by(LoanTransaction.transaction_date.desc(), LoanTransaction.created_at.desc())
    return paginate_query(q, page, limit)


# ==========================================================
#  Admin operations
# ==========================================================

def create_loan_account(principal, data):
    """Open a loan account for a user and record the initial loan transaction."""
    require_admin(principal)
    payload = load_or_raise(LoanCreateSchema(), data)

    user = User.query.filter_by(id=payload["user_id"]).first()
    if not user:
        raise NotFoundError("User not found")
    if LoanAccount.query.filter_by(user_id=user.id).first():
        raise ServiceError(
            code="LOAN_EXISTS",
            message="User already has a loan account",
            details={"user_id": user.id},
            status=409,
        )

    amount = payload["principal_amount"]
    loan = LoanAccount(
        user_id=user.id,
        principal_amount=amount,
        current_balance=amount,
        monthly_rate=payload["monthly_rate"] if payload["monthly_rate"] is not None else DEFAULT_MONTHLY_RATE,
    )
    db.session.add(loan)
    db.session.flush()
    db.session.add(LoanTransaction(
        loan_account_id=loan.id,
        amount=amount,
        transaction_type="loan",
        description="Initial loan amount",
    ))
    db.session.commit()
    logger.info("Loan account %s opened for user_id=%s by admin %s", loan.id, user.id, principal.id)
    return loan


def balance_effect(transaction_type, amount):
    """Return ``(balance_delta, bonus_delta, withdrawal_delta)`` for a transaction."""
    if transaction_type == "withdrawal":
        return -abs(amount), Decimal("0"), abs(amount)
    if transaction_type == "bonus":
        return amount, amount, Decimal("0")
    return amount, Decimal("0"), Decimal("0")


def add_transaction(principal, loan_id, data):
    require_admin(principal)
    payload = load_or_raise(TransactionCreateSchema(), data)
    loan = get_loan(loan_id)

    tx_type = payload["transaction_type"]
    amount = payload["amount"]
    tx_date = payload["transaction_date"] or datetime.utcnow()
    if tx_date.tzinfo is not None:
        tx_date = tx_date.astimezone(timezone.utc).replace(tzinfo=None)
    tx = LoanTransaction(
        loan_account_id=loan.id,
        amount=amount,
        transaction_type=tx_type,
        description=payload["description"] or f"{tx_type} transaction",
        bonus_percentage=payload["bonus_percentage"],
        transaction_date=tx_date,
    )
    db.session.add(tx)

    balance_delta, bonus_delta, withdrawal_delta = balance_effect(tx_type, amount)
    # relative update so concurrent postings don't overwrite each other
    LoanAccount.query.filter_by(id=loan.id).update({
        "current_balance": LoanAccount.current_balance + balance_delta,
        "total_bonuses": LoanAccount.total_bonuses + bonus_delta,
        "total_withdrawals": LoanAccount.total_withdrawals + withdrawal_delta,
    }, synchronize_session="fetch")
    db.session.commit()

    logger.info("Posted %s of %s to loan %s by admin %s", tx_type, amount, loan.id, principal.id)
    db.session.refresh(loan)
    return tx, loan


def list_all_loans(principal, page=1, limit=20):
    require_admin(principal)
    q = LoanAccount.query.order_by(LoanAccount.created_at.desc())
    return paginate_query(q, page, limit)


def list_users(principal, page=1, limit=20, search=None):
    require_admin(principal)
    q = User.query
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(db.or_(
            User.email.ilike(term),
            User.first_name.ilike(term),
            User.last_name.ilike(term),
        ))
    q = q.order_by(User.created_at.desc())
    return paginate_query(q, page, limit)


def get_user_with_loans(principal, user_id):
    require_admin(principal)
    user = User.query.filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user, list_loans_for_user(user.id)
