import logging
from datetime import datetime

from flask import current_app

from loan_portal.extensions import db
from loan_portal.models.meeting_request import MeetingRequest
from loan_portal.schemas.meeting_schema import MeetingCreateSchema, MeetingStatusUpdateSchema
from loan_portal.services.meeting_link_service import get_meeting_link_client
from loan_portal.services.notification_service import send_notification_to_user
from loan_portal.services.permissions import require_admin, require_view
from loan_portal.services.request_repository import RequestRepository
from loan_portal.services.request_states import (
    LINKED_MEETING_STATUSES,
    MEETING_TRANSITIONS,
    MeetingStatus,
    MeetingType,
    ensure_transition,
    parse_status,
)
from loan_portal.utils.exceptions import ConflictError, IntegrationError, NotFoundError
from loan_portal.utils.validation import load_or_raise

logger = logging.getLogger(__name__)

repository = RequestRepository(MeetingRequest)


def create_meeting_request(owner_id, purpose, preferred_date, preferred_time, meeting_type=None,
                           urgency=None, topics=None, notes=None, phone_number=None, location=None):
    payload = {
        "purpose": purpose,
        "preferred_date": preferred_date,
        "preferred_time": preferred_time,
        "topics": topics,
        "notes": notes,
        "phone_number": phone_number,
        "location": location,
    }
    if meeting_type is not None:
        payload["meeting_type"] = meeting_type
    if urgency is not None:
        payload["urgency"] = urgency
    data = load_or_raise(MeetingCreateSchema(), payload)

    mr = MeetingRequest(
        user_id=owner_id,
        purpose=data["purpose"].strip(),
        preferred_date=data["preferred_date"],
        preferred_time=datetime.strptime(data["preferred_time"], "%H:%M").time(),
        meeting_type=data["meeting_type"],
        urgency=data["urgency"],
        topics=data["topics"],
        notes=data["notes"],
        phone_number=data["phone_number"],
        location=data["location"],
        status=MeetingStatus.PENDING.value,
    )
    repository.create(mr)
    logger.info("Meeting request %s (%s) created by user_id=%s", mr.id, mr.meeting_type, owner_id)
    return mr


def _status_filter(status):
    return parse_status(MeetingStatus, status).value if status else None


def list_meetings_for_owner(owner_id, page=1, limit=20, status=None):
    status = _status_filter(status)
    return repository.list_by_owner(owner_id, page, limit, status)


def list_all_meetings(principal, page=1, limit=20, status=None):
    require_admin(principal)
    status = _status_filter(status)
    return repository.list_all(page, limit, status)


def get_meeting(principal, request_id):
    mr = repository.get_by_id(request_id)
    if not mr:
        raise NotFoundError("Meeting request not found")
    require_view(principal, mr)
    return mr


def meeting_start_time(scheduled_date, scheduled_time):
    return f"{scheduled_date.isoformat()}T{scheduled_time.strftime('%H:%M')}:00"


def update_meeting_status(principal, request_id, new_status, scheduled_date=None,
                          scheduled_time=None, admin_notes=None):
    """Move a meeting request along its lifecycle.

    Scheduling a video meeting creates the remote room; cancelling a
    scheduled one deletes it. The status change is only committed once the
    provider call has succeeded.
    """
    require_admin(principal)
    data = load_or_raise(MeetingStatusUpdateSchema(), {
        "status": new_status,
        "scheduled_date": scheduled_date,
        "scheduled_time": scheduled_time,
        "admin_notes": admin_notes,
    })
    target = MeetingStatus(data["status"])

    mr = repository.get_by_id(request_id)
    if not mr:
        raise NotFoundError("Meeting request not found")

    current = ensure_transition(MEETING_TRANSITIONS, mr.status, target)
    is_video = mr.meeting_type == MeetingType.VIDEO.value
    purpose = mr.purpose
    remote_meeting_id = mr.external_meeting_id

    fields = {
        "reviewed_by": principal.id,
        "reviewed_at": datetime.utcnow(),
    }
    if data["admin_notes"] is not None:
        fields["admin_notes"] = data["admin_notes"]
    if target == MeetingStatus.SCHEDULED:
        fields["scheduled_date"] = data["scheduled_date"]
        fields["scheduled_time"] = datetime.strptime(data["scheduled_time"], "%H:%M").time()
    if target not in LINKED_MEETING_STATUSES:
        fields["meeting_link"] = None
        fields["external_meeting_id"] = None

    if not repository.conditional_update_status(request_id, current.value, target.value, fields, commit=False):
        raise ConflictError(details={"request_id": request_id, "expected_status": current.value})

    created_meeting_id = None
    remote_deleted = False
    try:
        if target == MeetingStatus.SCHEDULED and is_video:
            meeting = get_meeting_link_client().create_meeting(
                topic=purpose or current_app.config["MEETING_DEFAULT_TOPIC"],
                start_time=meeting_start_time(fields["scheduled_date"], fields["scheduled_time"]),
                duration=current_app.config["MEETING_DEFAULT_DURATION"],
            )
            created_meeting_id = meeting.get("id")
            MeetingRequest.query.filter_by(id=request_id).update(
                {"meeting_link": meeting["join_url"], "external_meeting_id": created_meeting_id},
                synchronize_session="fetch",
            )
        elif target == MeetingStatus.CANCELLED and current == MeetingStatus.SCHEDULED and is_video:
            get_meeting_link_client().delete_meeting(remote_meeting_id)
            remote_deleted = True
        db.session.commit()
    except IntegrationError:
        db.session.rollback()
        logger.warning(
            "Meeting request %s left in %s after provider failure",
            request_id, current.value,
        )
        raise
    except Exception:
        db.session.rollback()
        if created_meeting_id:
            _discard_remote_meeting(created_meeting_id)
        if remote_deleted:
            logger.error(
                "Remote meeting %s was deleted but meeting request %s is still %s",
                remote_meeting_id, request_id, current.value,
            )
        raise

    mr = repository.get_by_id(request_id)
    logger.info(
        "Meeting request %s moved %s -> %s by admin %s",
        request_id, current.value, target.value, principal.id,
    )
    _notify_owner(mr, target)
    return mr


def _discard_remote_meeting(meeting_id):
    try:
        get_meeting_link_client().delete_meeting(meeting_id)
    except IntegrationError:
        logger.error("Could not remove remote meeting %s after a failed commit", meeting_id)
    else:
        logger.info("Removed remote meeting %s after a failed commit", meeting_id)


def _notify_owner(mr, status):
    message = f"Your meeting request is now {status.value}."
    if status == MeetingStatus.SCHEDULED:
        message = (
            f"Your meeting is scheduled for {mr.scheduled_date.isoformat()} "
            f"at {mr.scheduled_time.strftime('%H:%M')}."
        )
        if mr.meeting_link:
            message += f" Join link: {mr.meeting_link}"
    send_notification_to_user(
        user_id=mr.user_id,
        title="Meeting Request Updated",
        message=message,
        notif_type="error" if status == MeetingStatus.CANCELLED else "info",
        details={"meeting_request_id": mr.id, "status": status.value},
    )
