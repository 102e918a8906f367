from loan_portal.extensions import db
from datetime import datetime
import uuid


class UserTwoFactor(db.Model):
    """Authenticator-app enrolment for a user.

    The secret is stored as base32 text because TOTP verification needs it
    in the clear. Backup codes are stored as werkzeug hashes, one list
    entry per unused code.
    """
    __tablename__ = "user_2fa"

    id = db.Column(db.String(50), primary_key=True, default=lambda: f"tfa_{uuid.uuid4().hex[:12]}")
    user_id = db.Column(
        db.String(50),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    secret = db.Column(db.String(64), nullable=False)
    is_enabled = db.Column(db.Boolean, default=False, nullable=False)
    backup_codes = db.Column(db.JSON, default=list)
    setup_started_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_used = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", backref=db.backref("two_factor", uselist=False))
