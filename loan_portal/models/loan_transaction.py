from loan_portal.extensions import db
from datetime import datetime
import uuid

TRANSACTION_TYPES = ("loan", "monthly_payment", "bonus", "withdrawal")


class LoanTransaction(db.Model):
    __tablename__ = "loan_transactions"

    id = db.Column(db.String(50), primary_key=True, default=lambda: f"ltx_{uuid.uuid4().hex[:12]}")
    loan_account_id = db.Column(
        db.String(50),
        db.ForeignKey("loan_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # signed as entered; the balance effect depends on transaction_type
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    transaction_type = db.Column(db.String(20), nullable=False)
    description = db.Column(db.String(255))
    bonus_percentage = db.Column(db.Numeric(6, 4), nullable=True)
    transaction_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
