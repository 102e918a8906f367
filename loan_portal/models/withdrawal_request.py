from loan_portal.extensions import db
from datetime import datetime
import uuid


class WithdrawalRequest(db.Model):
    __tablename__ = "withdrawal_requests"

    id = db.Column(db.String(50), primary_key=True, default=lambda: f"wd_{uuid.uuid4().hex[:12]}")
    user_id = db.Column(db.String(50), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    loan_account_id = db.Column(db.String(50), db.ForeignKey("loan_accounts.id", ondelete="CASCADE"))

    amount = db.Column(db.Numeric(15, 2), nullable=False)
    reason = db.Column(db.Text, nullable=False)
    urgency = db.Column(db.String(20), nullable=False, default="normal")
    notes = db.Column(db.Text)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    admin_notes = db.Column(db.Text)
    reviewed_by = db.Column(db.String(50), db.ForeignKey("users.id"))
    reviewed_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id], backref="withdrawal_requests")
    loan_account = db.relationship("LoanAccount")
