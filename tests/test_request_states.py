import pytest

from loan_portal.services.request_states import (
    MEETING_TRANSITIONS,
    WITHDRAWAL_TRANSITIONS,
    MeetingStatus,
    WithdrawalStatus,
    can_transition,
    ensure_transition,
    is_terminal,
    parse_status,
)
from loan_portal.utils.exceptions import InvalidTransitionError, ValidationError

WITHDRAWAL_EDGES = {
    ("pending", "approved"),
    ("pending", "rejected"),
    ("approved", "completed"),
}

MEETING_EDGES = {
    ("pending", "scheduled"),
    ("pending", "cancelled"),
    ("scheduled", "confirmed"),
    ("scheduled", "cancelled"),
    ("confirmed", "completed"),
}


@pytest.mark.parametrize("current", list(WithdrawalStatus))
@pytest.mark.parametrize("new", list(WithdrawalStatus))
def test_withdrawal_transitions_match_graph(current, new):
    expected = (current.value, new.value) in WITHDRAWAL_EDGES
    assert can_transition(WITHDRAWAL_TRANSITIONS, current, new) is expected


@pytest.mark.parametrize("current", list(MeetingStatus))
@pytest.mark.parametrize("new", list(MeetingStatus))
def test_meeting_transitions_match_graph(current, new):
    expected = (current.value, new.value) in MEETING_EDGES
    assert can_transition(MEETING_TRANSITIONS, current, new) is expected


def test_terminal_states():
    assert is_terminal(WITHDRAWAL_TRANSITIONS, WithdrawalStatus.REJECTED)
    assert is_terminal(WITHDRAWAL_TRANSITIONS, WithdrawalStatus.COMPLETED)
    assert not is_terminal(WITHDRAWAL_TRANSITIONS, WithdrawalStatus.APPROVED)
    assert is_terminal(MEETING_TRANSITIONS, MeetingStatus.CANCELLED)
    assert is_terminal(MEETING_TRANSITIONS, MeetingStatus.COMPLETED)


def test_skipping_approval_is_rejected():
    with pytest.raises(InvalidTransitionError) as exc:
        ensure_transition(WITHDRAWAL_TRANSITIONS, "pending", WithdrawalStatus.COMPLETED)
    assert exc.value.current == "pending"
    assert exc.value.requested == "completed"
    assert exc.value.status == 409


def test_ensure_transition_returns_current_member():
    current = ensure_transition(MEETING_TRANSITIONS, "scheduled", MeetingStatus.CONFIRMED)
    assert current is MeetingStatus.SCHEDULED


def test_parse_status_rejects_unknown_value():
    assert parse_status(WithdrawalStatus, "approved") is WithdrawalStatus.APPROVED
    with pytest.raises(ValidationError):
        parse_status(WithdrawalStatus, "processed")
