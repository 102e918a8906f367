"""Lifecycle states of withdrawal and meeting requests.

Each request kind has a status enum and an adjacency table of the moves an
admin may make. Every status change in the services goes through
``ensure_transition`` so create and update paths cannot drift apart.
"""
from enum import Enum

from loan_portal.utils.exceptions import InvalidTransitionError, ValidationError


class Urgency(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class MeetingStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MeetingType(str, Enum):
    VIDEO = "video"
    PHONE = "phone"
    IN_PERSON = "in_person"


WITHDRAWAL_TRANSITIONS = {
    WithdrawalStatus.PENDING: {WithdrawalStatus.APPROVED, WithdrawalStatus.REJECTED},
    WithdrawalStatus.APPROVED: {WithdrawalStatus.COMPLETED},
    WithdrawalStatus.REJECTED: set(),
    WithdrawalStatus.COMPLETED: set(),
}

MEETING_TRANSITIONS = {
    MeetingStatus.PENDING: {MeetingStatus.SCHEDULED, MeetingStatus.CANCELLED},
    MeetingStatus.SCHEDULED: {MeetingStatus.CONFIRMED, MeetingStatus.CANCELLED},
    MeetingStatus.CONFIRMED: {MeetingStatus.COMPLETED},
    MeetingStatus.COMPLETED: set(),
    MeetingStatus.CANCELLED: set(),
}

# statuses in which a video meeting carries a join link
LINKED_MEETING_STATUSES = {
    MeetingStatus.SCHEDULED,
    MeetingStatus.CONFIRMED,
    MeetingStatus.COMPLETED,
}


def values(enum_cls):
    return [member.value for member in enum_cls]


def parse_status(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            "Invalid status",
            details={"status": f"Must be one of: {', '.join(values(enum_cls))}"},
        )


def is_terminal(table, status):
    return not table[status]


def can_transition(table, current, new):
    return new in table.get(current, set())


def ensure_transition(table, current, new):
    current = type(new)(current)
    if not can_transition(table, current, new):
        raise InvalidTransitionError(current.value, new.value)
    return current
