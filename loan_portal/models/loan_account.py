from loan_portal.extensions import db
from datetime import datetime
import uuid


def gen_account_number():
    return f"LA-{uuid.uuid4().hex[:10].upper()}"


class LoanAccount(db.Model):
    __tablename__ = "loan_accounts"

    id = db.Column(db.String(50), primary_key=True, default=lambda: f"la_{uuid.uuid4().hex[:12]}")
    user_id = db.Column(db.String(50), db.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    account_number = db.Column(db.String(30), unique=True, nullable=False, default=gen_account_number)

    principal_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    current_balance = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    monthly_rate = db.Column(db.Numeric(6, 4), nullable=False, default=0.01)
    total_bonuses = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_withdrawals = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", backref=db.backref("loan_account", uselist=False))
    transactions = db.relationship(
        "LoanTransaction",
        backref="loan_account",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )
