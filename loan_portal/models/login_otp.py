from loan_portal.extensions import db
from loan_portal.models.user import gen_uuid
from datetime import datetime


class LoginOTP(db.Model):
    __tablename__ = "login_otps"

    id = db.Column(
        db.String(50),
        primary_key=True,
        default=lambda: gen_uuid("otp")
    )

    user_id = db.Column(
        db.String(50),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # "email" challenges carry a hashed code; "totp" ones are checked against the authenticator secret
    method = db.Column(db.String(10), nullable=False, default="email")
    otp_hash = db.Column(db.String(255), nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    attempts = db.Column(db.Integer, default=0)
    used = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship(
        "User",
        backref=db.backref(
            "login_otps",
            lazy="dynamic",
            cascade="all, delete-orphan"
        )
    )

    def is_expired(self):
        return datetime.utcnow() > self.expires_at

    def mark_used(self):
        self.used = True
