import logging
from datetime import datetime, timedelta

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token

from loan_portal.extensions import db
from loan_portal.models.login_otp import LoginOTP
from loan_portal.models.user import ROLES, User
from loan_portal.schemas.user_schema import ProfileUpdateSchema, RegisterSchema
from loan_portal.services import two_factor_service
from loan_portal.services.email_service import send_login_otp_email
from loan_portal.services.permissions import Principal
from loan_portal.utils.auth_utils import hash_password, check_password
from loan_portal.utils.exceptions import AuthenticationError, NotFoundError, ServiceError, ValidationError
from loan_portal.utils.otp import generate_otp, hash_otp, otp_expiry, verify_otp
from loan_portal.utils.validation import load_or_raise

logger = logging.getLogger(__name__)


def register_user(data):
    payload = load_or_raise(RegisterSchema(), data)
    email = payload["email"].strip().lower()

    if User.query.filter_by(email=email).first():
        raise ServiceError(
            code="USER_EXISTS",
            message="User with that email already exists",
            details={"field": "email"},
            status=409,
        )

    user = User(
        email=email,
        password_hash=hash_password(payload["password"]),
        first_name=payload["first_name"],
        last_name=payload["last_name"],
        role="user",
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user_id=%s", user.id)
    return user


def authenticate_user(email, password):
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if not user or not check_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user


def generate_tokens_for_user(user):
    cfg = current_app.config
    access = create_access_token(
        identity=user.id,
        expires_delta=timedelta(seconds=cfg.get("ACCESS_EXPIRES", 86400)),
    )
    refresh = create_refresh_token(
        identity=user.id,
        expires_delta=timedelta(seconds=cfg.get("REFRESH_EXPIRES", 86400)),
    )
    return access, refresh


def complete_login(user):
    user.last_login = datetime.utcnow()
    db.session.commit()
    return generate_tokens_for_user(user)


def start_login(email, password):
    """Check the password; either issue tokens or open a second-factor challenge.

    Returns ``(user, tokens, challenge)`` where exactly one of ``tokens``
    and ``challenge`` is set. Users enrolled in an authenticator app get a
    ``totp`` challenge; other users with ``requires_2fa`` get an emailed code.
    """
    user = authenticate_user(email, password)
    if not user.requires_2fa:
        return user, complete_login(user), None

    expires_at = otp_expiry(current_app.config["OTP_EXPIRY_MINUTES"])
    if two_factor_service.is_totp_enabled(user):
        record = LoginOTP(user_id=user.id, method="totp", expires_at=expires_at)
        db.session.add(record)
        db.session.commit()
        return user, None, record

    otp = generate_otp()
    record = LoginOTP(user_id=user.id, method="email", otp_hash=hash_otp(otp), expires_at=expires_at)
    db.session.add(record)
    db.session.commit()

    send_login_otp_email(user, otp)
    return user, None, record


def verify_login_otp(session_id, otp):
    record = LoginOTP.query.filter_by(id=session_id).first()
    if not record or record.used or record.is_expired():
        raise AuthenticationError("OTP expired or invalid")

    if record.attempts >= current_app.config["OTP_MAX_ATTEMPTS"]:
        raise ServiceError(code="LOCKED", message="Too many attempts", status=403)

    user = User.query.filter_by(id=record.user_id).first()
    if record.method == "totp":
        ok, _ = two_factor_service.verify_code(user, otp)
    else:
        ok = verify_otp(otp, record.otp_hash)

    if not ok:
        record.attempts += 1
        db.session.commit()
        raise AuthenticationError("Incorrect OTP")

    record.mark_used()
    db.session.commit()
    return user, complete_login(user)


def set_two_factor(user_id, enabled):
    user = get_user(user_id)
    if not enabled and two_factor_service.is_totp_enabled(user):
        raise ServiceError(
            code="TWO_FACTOR_ENABLED",
            message="Authenticator 2FA is enabled; disable it with a verification code",
            status=400,
        )
    user.requires_2fa = bool(enabled)
    db.session.commit()
    logger.info("Two-factor login %s for user_id=%s", "enabled" if enabled else "disabled", user.id)
    return user


def get_user(user_id):
    user = User.query.filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_profile(user_id):
    user = get_user(user_id)
    profile = user.to_dict()
    profile["two_factor"] = two_factor_service.get_status(user)
    return profile


def update_profile(user_id, data):
    payload = load_or_raise(ProfileUpdateSchema(), data)
    if not payload:
        raise ValidationError("No fields to update")

    user = get_user(user_id)
    for field in ("first_name", "last_name"):
        if field in payload:
            value = payload[field].strip()
            if not value:
                raise ValidationError("Invalid input", details={field: ["Must not be blank"]})
            setattr(user, field, value)
    if "phone" in payload:
        user.phone = (payload["phone"] or "").strip() or None
    db.session.commit()
    logger.info("Profile updated for user_id=%s", user.id)
    return get_profile(user.id)


def resolve_principal(identity):
    """Map a JWT identity onto the acting principal.

    The role is read from the users table, not from token claims, so a role
    change applies to tokens already issued.
    """
    user = User.query.filter_by(id=identity).first() if identity else None
    if not user:
        raise AuthenticationError("Invalid or expired token")
    return Principal(id=user.id, role=user.role)


def assign_role(email, role):
    if role not in ROLES:
        raise ValidationError("Invalid role", details={"role": f"Must be one of: {', '.join(ROLES)}"})
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if not user:
        raise NotFoundError("User not found")
    user.role = role
    db.session.commit()
    logger.info("Assigned role %s to user_id=%s", role, user.id)
    return user
