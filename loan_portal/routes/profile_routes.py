from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.services.auth_service import get_profile, update_profile
from loan_portal.utils.response_formatter import success_response

bp = Blueprint("profile", __name__, url_prefix="/api/v1/user/profile")


@bp.route("", methods=["GET"])
@jwt_required()
def get_own_profile():
    return success_response({"user": get_profile(get_jwt_identity())})


@bp.route("", methods=["PUT"])
@jwt_required()
def update_own_profile():
    data = request.get_json(silent=True) or {}
    profile = update_profile(get_jwt_identity(), data)
    return success_response({"user": profile}, message="Profile updated successfully")
