from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.extensions import limiter
from loan_portal.services import two_factor_service
from loan_portal.services.auth_service import (
    register_user,
    start_login,
    verify_login_otp,
    generate_tokens_for_user,
    get_user,
    set_two_factor,
)
from loan_portal.utils.response_formatter import success_response, error_response

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")

LOGIN_CHALLENGE_MESSAGES = {
    "email": "OTP sent to your email",
    "totp": "Enter the code from your authenticator app",
}


def auth_rate_limit():
    return current_app.config["AUTH_RATE_LIMIT"]


@bp.route("/register", methods=["POST"])
@limiter.limit(auth_rate_limit)
def register():
    data = request.get_json(silent=True) or {}
    user = register_user(data)
    access, refresh = generate_tokens_for_user(user)
    return success_response({
        "user": user.to_dict(),
        "access_token": access,
        "refresh_token": refresh,
    }, status=201)


@bp.route("/login", methods=["POST"])
@limiter.limit(auth_rate_limit)
def login():
    data = request.get_json(silent=True) or {}
    user, tokens, otp_record = start_login(data.get("email"), data.get("password"))

    if otp_record is not None:
        return success_response({
            "otp_required": True,
            "otp_method": otp_record.method,
            "otp_session_id": otp_record.id,
            "message": LOGIN_CHALLENGE_MESSAGES[otp_record.method],
        })

    access, refresh = tokens
    return success_response({
        "otp_required": False,
        "access_token": access,
        "refresh_token": refresh,
        "user": user.to_dict(),
    })


@bp.route("/login/verify-otp", methods=["POST"])
@limiter.limit(auth_rate_limit)
def verify_otp():
    data = request.get_json(silent=True) or {}
    if not data.get("otp_session_id") or not data.get("otp"):
        return error_response("VALIDATION_ERROR", "otp_session_id and otp are required", status=400)

    user, (access, refresh) = verify_login_otp(data["otp_session_id"], data["otp"])
    return success_response({
        "access_token": access,
        "refresh_token": refresh,
        "user": user.to_dict(),
    })


@bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    user = get_user(get_jwt_identity())
    access, _ = generate_tokens_for_user(user)
    return success_response({"access_token": access})


@bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user = get_user(get_jwt_identity())
    return success_response(user.to_dict())


@bp.route("/2fa", methods=["POST"])
@jwt_required()
def toggle_two_factor():
    data = request.get_json(silent=True) or {}
    enabled = data.get("enabled")
    if not isinstance(enabled, bool):
        return error_response("VALIDATION_ERROR", "enabled must be true or false", status=400)

    user = set_two_factor(get_jwt_identity(), enabled)
    return success_response({"requires_2fa": user.requires_2fa})


# ==========================================================
#  Authenticator-app 2FA
# ==========================================================
def two_factor_rate_limit():
    return current_app.config["TWO_FACTOR_RATE_LIMIT"]


@bp.route("/2fa/status", methods=["GET"])
@jwt_required()
def two_factor_status():
    user = get_user(get_jwt_identity())
    return success_response(two_factor_service.get_status(user))


@bp.route("/2fa/setup", methods=["POST"])
@jwt_required()
@limiter.limit(two_factor_rate_limit)
def two_factor_setup():
    user = get_user(get_jwt_identity())
    setup = two_factor_service.start_setup(user)
    return success_response(setup, message="Scan the QR code with your authenticator app")


@bp.route("/2fa/verify-setup", methods=["POST"])
@jwt_required()
@limiter.limit(two_factor_rate_limit)
def two_factor_verify_setup():
    data = request.get_json(silent=True) or {}
    user = get_user(get_jwt_identity())
    codes = two_factor_service.confirm_setup(user, data.get("token"))
    return success_response({
        "backup_codes": codes,
        "warning": "Store these backup codes safely. Each can be used once and they will not be shown again.",
    }, message="2FA has been successfully enabled")


@bp.route("/2fa/disable", methods=["POST"])
@jwt_required()
@limiter.limit(two_factor_rate_limit)
def two_factor_disable():
    data = request.get_json(silent=True) or {}
    user = get_user(get_jwt_identity())
    two_factor_service.disable(user, data.get("token"), data.get("password"))
    return success_response({"enabled": False}, message="2FA has been successfully disabled")


@bp.route("/2fa/backup-codes", methods=["POST"])
@jwt_required()
@limiter.limit(two_factor_rate_limit)
def two_factor_backup_codes():
    data = request.get_json(silent=True) or {}
    user = get_user(get_jwt_identity())
    codes = two_factor_service.regenerate_backup_codes(user, data.get("token"))
    return success_response({
        "backup_codes": codes,
        "warning": "These codes replace all previous backup codes.",
    }, message="New backup codes generated")
