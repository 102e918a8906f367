from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.schemas.withdrawal_schema import WithdrawalRequestSchema
from loan_portal.services.auth_service import resolve_principal
from loan_portal.services.withdrawal_service import (
    create_withdrawal_request,
    list_withdrawals_for_owner,
    get_withdrawal,
)
from loan_portal.utils.response_formatter import success_response, paginated_response

bp = Blueprint("withdrawal_requests", __name__, url_prefix="/api/v1/withdrawal-requests")

withdrawal_schema = WithdrawalRequestSchema()


@bp.route("", methods=["POST"])
@jwt_required()
def create():
    principal = resolve_principal(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    wr = create_withdrawal_request(
        owner_id=principal.id,
        amount=data.get("amount"),
        reason=data.get("reason"),
        urgency=data.get("urgency"),
        notes=data.get("notes"),
    )
    return success_response(
        {"request": withdrawal_schema.dump(wr)},
        message="Withdrawal request submitted successfully",
        status=201,
    )


@bp.route("", methods=["GET"])
@jwt_required()
def list_own():
    principal = resolve_principal(get_jwt_identity())
    items, pagination = list_withdrawals_for_owner(
        principal.id,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
        status=request.args.get("status"),
    )
    return paginated_response("requests", items, pagination, withdrawal_schema)


@bp.route("/<request_id>", methods=["GET"])
@jwt_required()
def detail(request_id):
    principal = resolve_principal(get_jwt_identity())
    wr = get_withdrawal(principal, request_id)
    return success_response({"request": withdrawal_schema.dump(wr)})
