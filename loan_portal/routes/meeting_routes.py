from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.schemas.meeting_schema import MeetingRequestSchema
from loan_portal.services.auth_service import resolve_principal
from loan_portal.services.meeting_service import (
    create_meeting_request,
    list_meetings_for_owner,
    get_meeting,
)
from loan_portal.utils.response_formatter import success_response, paginated_response

bp = Blueprint("meeting_requests", __name__, url_prefix="/api/v1/meeting-requests")

meeting_schema = MeetingRequestSchema()


@bp.route("", methods=["POST"])
@jwt_required()
def create():
    principal = resolve_principal(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    mr = create_meeting_request(
        owner_id=principal.id,
        purpose=data.get("purpose"),
        preferred_date=data.get("preferred_date"),
        preferred_time=data.get("preferred_time"),
        meeting_type=data.get("meeting_type"),
        urgency=data.get("urgency"),
        topics=data.get("topics"),
        notes=data.get("notes"),
        phone_number=data.get("phone_number"),
        location=data.get("location"),
    )
    return success_response(
        {"request": meeting_schema.dump(mr)},
        message="Meeting request submitted successfully",
        status=201,
    )


@bp.route("", methods=["GET"])
@jwt_required()
def list_own():
    principal = resolve_principal(get_jwt_identity())
    items, pagination = list_meetings_for_owner(
        principal.id,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
        status=request.args.get("status"),
    )
    return paginated_response("requests", items, pagination, meeting_schema)


@bp.route("/<request_id>", methods=["GET"])
@jwt_required()
def detail(request_id):
    principal = resolve_principal(get_jwt_identity())
    mr = get_meeting(principal, request_id)
    return success_response({"request": meeting_schema.dump(mr)})
