from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.schemas.notification_schema import NotificationSchema
from loan_portal.services.auth_service import resolve_principal
from loan_portal.services.notification_service import (
    list_user_notifications,
    mark_notification_read,
)
from loan_portal.utils.response_formatter import success_response, paginated_response

bp = Blueprint("notifications", __name__, url_prefix="/api/v1/notifications")

notification_schema = NotificationSchema()


@bp.route("", methods=["GET"])
@jwt_required()
def get_notifications():
    principal = resolve_principal(get_jwt_identity())

    is_read = request.args.get("is_read")
    if is_read is not None:
        is_read = is_read.lower() in ("1", "true", "yes")

    items, pagination = list_user_notifications(
        principal.id,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
        is_read=is_read,
    )
    return paginated_response("notifications", items, pagination, notification_schema)


@bp.route("/<notification_id>/read", methods=["PATCH"])
@jwt_required()
def mark_read(notification_id):
    principal = resolve_principal(get_jwt_identity())
    notif = mark_notification_read(principal.id, notification_id)
    return success_response({"notification": notification_schema.dump(notif)})
