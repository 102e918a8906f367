import logging
from datetime import datetime

from flask import current_app

from loan_portal.extensions import db
from loan_portal.models.user_two_factor import UserTwoFactor
from loan_portal.utils.auth_utils import check_password
from loan_portal.utils.exceptions import ServiceError, ValidationError
from loan_portal.utils.totp import (
    consume_backup_code,
    generate_backup_codes,
    generate_secret,
    hash_backup_codes,
    provisioning_uri,
    qr_code_data_uri,
    verify_totp,
)

logger = logging.getLogger(__name__)


def _invalid_code():
    return ValidationError("Invalid verification code", details={"token": "Invalid verification code"})


def _enabled_record(user):
    record = UserTwoFactor.query.filter_by(user_id=user.id, is_enabled=True).first()
    if not record:
        raise ServiceError(code="TWO_FACTOR_NOT_ENABLED", message="2FA is not enabled", status=400)
    return record


def get_status(user):
    record = UserTwoFactor.query.filter_by(user_id=user.id).first()
    if not record:
        return {"enabled": False, "setup_initiated": False, "last_used": None, "backup_codes_remaining": 0}
    return {
        "enabled": bool(record.is_enabled),
        "setup_initiated": record.setup_started_at is not None,
        "last_used": record.last_used.isoformat() + "Z" if record.last_used else None,
        "backup_codes_remaining": len(record.backup_codes or []),
    }


def is_totp_enabled(user):
    return UserTwoFactor.query.filter_by(user_id=user.id, is_enabled=True).first() is not None


def start_setup(user):
    """Issue a fresh secret; it only takes effect after ``confirm_setup``."""
    record = UserTwoFactor.query.filter_by(user_id=user.id).first()
    if record and record.is_enabled:
        raise ServiceError(code="TWO_FACTOR_ENABLED", message="2FA is already enabled for this account", status=400)

    secret = generate_secret()
    if record:
        record.secret = secret
        record.setup_started_at = datetime.utcnow()
    else:
        record = UserTwoFactor(user_id=user.id, secret=secret)
        db.session.add(record)
    db.session.commit()

    uri = provisioning_uri(secret, user.email, current_app.config["TOTP_ISSUER"])
    return {
        "qr_code": qr_code_data_uri(uri),
        "otpauth_url": uri,
        "manual_entry_key": secret,
    }


def confirm_setup(user, token):
    record = UserTwoFactor.query.filter_by(user_id=user.id).first()
    if not record:
        raise ServiceError(code="TWO_FACTOR_NOT_STARTED", message="2FA setup not initiated", status=400)
    if record.is_enabled:
        raise ServiceError(code="TWO_FACTOR_ENABLED", message="2FA is already enabled", status=400)
    if not verify_totp(record.secret, token, current_app.config["TOTP_VALID_WINDOW"]):
        logger.info("Failed 2FA setup confirmation for user_id=%s", user.id)
        raise _invalid_code()

    codes = generate_backup_codes(current_app.config["TOTP_BACKUP_CODE_COUNT"])
    record.is_enabled = True
    record.backup_codes = hash_backup_codes(codes)
    record.last_used = datetime.utcnow()
    user.requires_2fa = True
    db.session.commit()
    logger.info("Authenticator 2FA enabled for user_id=%s", user.id)
    return codes


def verify_code(user, token):
    """Check a 6-digit TOTP or an 8-character backup code.

    Returns ``(ok, used_backup_code)``. A matching backup code is consumed.
    """
    record = _enabled_record(user)
    token = (token or "").strip()

    if len(token) == 6:
        ok, used_backup = verify_totp(record.secret, token, current_app.config["TOTP_VALID_WINDOW"]), False
    else:
        remaining = consume_backup_code(token, record.backup_codes)
        ok, used_backup = remaining is not None, remaining is not None
        if ok:
            record.backup_codes = remaining

    if ok:
        record.last_used = datetime.utcnow()
        db.session.commit()
        if used_backup:
            logger.warning("Backup code used by user_id=%s, %d left", user.id, len(record.backup_codes))
    return ok, used_backup


def disable(user, token, password):
    if not check_password(password or "", user.password_hash):
        raise ValidationError("Invalid password", details={"password": "Invalid password"})
    _enabled_record(user)
    ok, _ = verify_code(user, token)
    if not ok:
        raise _invalid_code()

    record = _enabled_record(user)
    record.is_enabled = False
    record.backup_codes = []
    user.requires_2fa = False
    db.session.commit()
    logger.info("Authenticator 2FA disabled for user_id=%s", user.id)


def regenerate_backup_codes(user, token):
    record = _enabled_record(user)
    if not verify_totp(record.secret, token, current_app.config["TOTP_VALID_WINDOW"]):
        raise _invalid_code()

    codes = generate_backup_codes(current_app.config["TOTP_BACKUP_CODE_COUNT"])
    record.backup_codes = hash_backup_codes(codes)
    db.session.commit()
    logger.info("Backup codes regenerated for user_id=%s", user.id)
    return codes
