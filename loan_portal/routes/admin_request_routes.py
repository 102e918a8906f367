from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.extensions import limiter
from loan_portal.schemas.meeting_schema import AdminMeetingRequestSchema
from loan_portal.schemas.withdrawal_schema import AdminWithdrawalRequestSchema
from loan_portal.services.auth_service import resolve_principal
from loan_portal.services.permissions import require_admin
from loan_portal.services import meeting_service, withdrawal_service
from loan_portal.utils.response_formatter import success_response, paginated_response

bp = Blueprint("admin_requests", __name__, url_prefix="/api/v1/admin")

withdrawal_schema = AdminWithdrawalRequestSchema()
meeting_schema = AdminMeetingRequestSchema()


def admin_rate_limit():
    return current_app.config["ADMIN_RATE_LIMIT"]


def current_admin():
    principal = resolve_principal(get_jwt_identity())
    require_admin(principal)
    return principal


# ==========================================================
#  GET /admin/withdrawal-requests
#  Filters: page, limit, status
# ==========================================================
@bp.route("/withdrawal-requests", methods=["GET"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_list_withdrawals():
    admin = current_admin()
    items, pagination = withdrawal_service.list_all_withdrawals(
        admin,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
        status=request.args.get("status"),
    )
    return paginated_response("requests", items, pagination, withdrawal_schema)


# ==========================================================
#  PUT /admin/withdrawal-requests/<id>
#  Body: status, admin_notes
# ==========================================================
@bp.route("/withdrawal-requests/<request_id>", methods=["PUT"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_update_withdrawal(request_id):
    admin = current_admin()
    data = request.get_json(silent=True) or {}

    wr = withdrawal_service.update_withdrawal_status(
        admin,
        request_id,
        data.get("status"),
        admin_notes=data.get("admin_notes"),
    )
    return success_response(
        {"request": withdrawal_schema.dump(wr)},
        message="Withdrawal request updated successfully",
    )


# ==========================================================
#  POST /admin/withdrawal-requests/<id>/complete
# ==========================================================
@bp.route("/withdrawal-requests/<request_id>/complete", methods=["POST"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_complete_withdrawal(request_id):
    admin = current_admin()
    wr = withdrawal_service.complete_withdrawal(admin, request_id)
    return success_response(
        {"request": withdrawal_schema.dump(wr)},
        message="Withdrawal completed",
    )


# ==========================================================
#  GET /admin/meeting-requests
# ==========================================================
@bp.route("/meeting-requests", methods=["GET"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_list_meetings():
    admin = current_admin()
    items, pagination = meeting_service.list_all_meetings(
        admin,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
        status=request.args.get("status"),
    )
    return paginated_response("requests", items, pagination, meeting_schema)


# ==========================================================
#  PUT /admin/meeting-requests/<id>
#  Body: status, scheduled_date, scheduled_time, admin_notes
# ==========================================================
@bp.route("/meeting-requests/<request_id>", methods=["PUT"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_update_meeting(request_id):
    admin = current_admin()
    data = request.get_json(silent=True) or {}

    mr = meeting_service.update_meeting_status(
        admin,
        request_id,
        data.get("status"),
        scheduled_date=data.get("scheduled_date"),
        scheduled_time=data.get("scheduled_time"),
        admin_notes=data.get("admin_notes"),
    )
    return success_response(
        {"request": meeting_schema.dump(mr)},
        message="Meeting request updated successfully",
    )
