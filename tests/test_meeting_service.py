from datetime import time

import pytest
from sqlalchemy.exc import OperationalError

from conftest import future_date, principal_for
from loan_portal.extensions import db
from loan_portal.models.meeting_request import MeetingRequest
from loan_portal.services.meeting_service import (
    create_meeting_request,
    get_meeting,
    list_all_meetings,
    list_meetings_for_owner,
    update_meeting_status,
)
from loan_portal.utils.exceptions import (
    AuthorizationError,
    IntegrationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)


def make_meeting(owner, meeting_type="video", **kwargs):
    return create_meeting_request(
        owner.id,
        kwargs.pop("purpose", "Discuss loan terms"),
        kwargs.pop("preferred_date", future_date()),
        kwargs.pop("preferred_time", "10:30"),
        meeting_type=meeting_type,
        **kwargs,
    )


def schedule(admin, mr, when=None, at="14:00"):
    return update_meeting_status(
        principal_for(admin), mr.id, "scheduled",
        scheduled_date=when or future_date(40), scheduled_time=at,
    )


def test_create_defaults(user):
    mr = create_meeting_request(user.id, "Review portfolio", future_date(), "09:15")
    assert mr.status == "pending"
    assert mr.meeting_type == "video"
    assert mr.urgency == "normal"
    assert mr.preferred_time == time(9, 15)
    assert mr.meeting_link is None


@pytest.mark.parametrize("overrides", [
    {"purpose": ""},
    {"purpose": "   "},
    {"meeting_type": "carrier_pigeon"},
    {"preferred_date": "2024-13-45"},
    {"preferred_date": "not-a-date"},
    {"preferred_time": "25:00"},
    {"preferred_time": "9am"},
    {"preferred_date": "2020-01-01"},
    {"urgency": "whenever"},
])
def test_create_validation(user, overrides):
    with pytest.raises(ValidationError):
        make_meeting(user, **overrides)


def test_video_scheduling_creates_link_once(user, admin, meeting_links):
    mr = make_meeting(user, purpose="Quarterly review")
    when = future_date(45)

    scheduled = schedule(admin, mr, when=when, at="9:05")

    assert meeting_links.created == [
        {"topic": "Quarterly review", "start_time": f"{when}T09:05:00", "duration": 60},
    ]
    assert scheduled.status == "scheduled"
    assert scheduled.meeting_link == "https://video.example.com/room-1"
    assert scheduled.external_meeting_id == "remote-1"
    assert scheduled.scheduled_time == time(9, 5)


@pytest.mark.parametrize("meeting_type", ["phone", "in_person"])
def test_non_video_never_gets_link(user, admin, meeting_links, meeting_type):
    mr = make_meeting(user, meeting_type=meeting_type)
    p = principal_for(admin)

    assert schedule(admin, mr).meeting_link is None
    assert update_meeting_status(p, mr.id, "confirmed").meeting_link is None
    assert update_meeting_status(p, mr.id, "completed").meeting_link is None
    assert meeting_links.created == []


def test_link_kept_through_confirm_and_complete(user, admin, meeting_links):
    mr = make_meeting(user)
    p = principal_for(admin)
    schedule(admin, mr)

    confirmed = update_meeting_status(p, mr.id, "confirmed")
    assert confirmed.meeting_link == "https://video.example.com/room-1"
    completed = update_meeting_status(p, mr.id, "completed")
    assert completed.meeting_link == "https://video.example.com/room-1"
    assert len(meeting_links.created) == 1


def test_integration_timeout_rolls_back(user, admin, meeting_links):
    mr = make_meeting(user)
    meeting_links.fail_create = IntegrationError("Meeting provider timed out")

    with pytest.raises(IntegrationError):
        schedule(admin, mr)

    stored = db.session.get(MeetingRequest, mr.id)
    assert stored.status == "pending"
    assert stored.meeting_link is None
    assert stored.scheduled_date is None
    assert stored.reviewed_by is None

    # caller may retry once the provider is back
    meeting_links.fail_create = None
    assert schedule(admin, mr).status == "scheduled"


def test_cancel_scheduled_video_deletes_remote_meeting(user, admin, meeting_links):
    mr = make_meeting(user)
    schedule(admin, mr)

    cancelled = update_meeting_status(principal_for(admin), mr.id, "cancelled", admin_notes="Client request")
    assert cancelled.status == "cancelled"
    assert cancelled.meeting_link is None
    assert cancelled.admin_notes == "Client request"
    assert meeting_links.deleted == ["remote-1"]


def test_cancel_pending_does_not_touch_provider(user, admin, meeting_links):
    mr = make_meeting(user)
    update_meeting_status(principal_for(admin), mr.id, "cancelled")
    assert meeting_links.created == []
    assert meeting_links.deleted == []


def test_failed_remote_delete_keeps_meeting_scheduled(user, admin, meeting_links):
    mr = make_meeting(user)
    schedule(admin, mr)
    meeting_links.fail_delete = IntegrationError("Failed to delete meeting")

    with pytest.raises(IntegrationError):
        update_meeting_status(principal_for(admin), mr.id, "cancelled")

    stored = db.session.get(MeetingRequest, mr.id)
    assert stored.status == "scheduled"
    assert stored.meeting_link == "https://video.example.com/room-1"


def test_scheduling_requires_date_and_time(user, admin, meeting_links):
    mr = make_meeting(user)
    with pytest.raises(ValidationError):
        update_meeting_status(principal_for(admin), mr.id, "scheduled", scheduled_time="10:00")
    with pytest.raises(ValidationError):
        update_meeting_status(principal_for(admin), mr.id, "scheduled", scheduled_date=future_date())
    assert meeting_links.created == []


def test_illegal_meeting_transitions(user, admin, meeting_links):
    mr = make_meeting(user)
    p = principal_for(admin)
    with pytest.raises(InvalidTransitionError):
        update_meeting_status(p, mr.id, "confirmed")
    with pytest.raises(InvalidTransitionError):
        update_meeting_status(p, mr.id, "completed")

    schedule(admin, mr)
    update_meeting_status(p, mr.id, "confirmed")
    with pytest.raises(InvalidTransitionError):
        update_meeting_status(p, mr.id, "cancelled")


def test_meeting_authorization(user, admin, make_user, meeting_links):
    mr = make_meeting(user)
    stranger = make_user()

    with pytest.raises(AuthorizationError):
        update_meeting_status(principal_for(user), mr.id, "cancelled")
    with pytest.raises(AuthorizationError):
        list_all_meetings(principal_for(user))
    with pytest.raises(AuthorizationError):
        get_meeting(principal_for(stranger), mr.id)
    with pytest.raises(NotFoundError):
        update_meeting_status(principal_for(admin), "mtg_missing", "cancelled")

    assert get_meeting(principal_for(user), mr.id).id == mr.id


def test_meeting_listing_isolation(user, admin, make_user):
    other = make_user()
    mine = make_meeting(user)
    make_meeting(other)

    items, pagination = list_meetings_for_owner(user.id)
    assert [m.id for m in items] == [mine.id]
    assert pagination["total"] == 1

    items, pagination = list_all_meetings(principal_for(admin))
    assert pagination["total"] == 2


def failing_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


def test_commit_failure_removes_created_remote_meeting(user, admin, meeting_links, monkeypatch):
    mr = make_meeting(user)
    monkeypatch.setattr(db.session, "commit", failing_commit)

    with pytest.raises(OperationalError):
        schedule(admin, mr)
    monkeypatch.undo()

    assert [m["topic"] for m in meeting_links.created] == ["Discuss loan terms"]
    assert meeting_links.deleted == ["remote-1"]
    stored = db.session.get(MeetingRequest, mr.id)
    assert stored.status == "pending"
    assert stored.meeting_link is None


def test_commit_failure_cleanup_error_keeps_commit_error(user, admin, meeting_links, monkeypatch):
    mr = make_meeting(user)
    meeting_links.fail_delete = IntegrationError("Failed to delete meeting")
    monkeypatch.setattr(db.session, "commit", failing_commit)

    with pytest.raises(OperationalError):
        schedule(admin, mr)


def test_link_cleared_when_leaving_linked_statuses(user, admin, meeting_links):
    mr = make_meeting(user)
    schedule(admin, mr)
    assert db.session.get(MeetingRequest, mr.id).external_meeting_id == "remote-1"

    update_meeting_status(principal_for(admin), mr.id, "cancelled")
    stored = db.session.get(MeetingRequest, mr.id)
    assert stored.meeting_link is None
    assert stored.external_meeting_id is None
