import logging
from datetime import datetime

from loan_portal.models.withdrawal_request import WithdrawalRequest
from loan_portal.schemas.withdrawal_schema import WithdrawalCreateSchema, WithdrawalStatusUpdateSchema
from loan_portal.services import balance_service
from loan_portal.services.notification_service import send_notification_to_user
from loan_portal.services.permissions import require_admin, require_view
from loan_portal.services.request_repository import RequestRepository
from loan_portal.services.request_states import (
    WITHDRAWAL_TRANSITIONS,
    WithdrawalStatus,
    ensure_transition,
    parse_status,
)
from loan_portal.utils.exceptions import ConflictError, InsufficientFundsError, NotFoundError
from loan_portal.utils.validation import load_or_raise

logger = logging.getLogger(__name__)

repository = RequestRepository(WithdrawalRequest)

STATUS_MESSAGES = {
    WithdrawalStatus.APPROVED: ("Withdrawal Approved", "success"),
    WithdrawalStatus.REJECTED: ("Withdrawal Rejected", "error"),
    WithdrawalStatus.COMPLETED: ("Withdrawal Completed", "success"),
}


def create_withdrawal_request(owner_id, amount, reason, urgency=None, notes=None):
    payload = {"amount": amount, "reason": reason, "notes": notes}
    if urgency is not None:
        payload["urgency"] = urgency
    data = load_or_raise(WithdrawalCreateSchema(), payload)

    account = balance_service.get_loan_account(owner_id)
    available = balance_service.get_available_balance(owner_id)
    if data["amount"] > available:
        raise InsufficientFundsError(details={
            "requested": float(data["amount"]),
            "available": float(available),
        })

    wr = WithdrawalRequest(
        user_id=owner_id,
        loan_account_id=account.id,
        amount=data["amount"],
        reason=data["reason"].strip(),
        urgency=data["urgency"],
        notes=data["notes"],
        status=WithdrawalStatus.PENDING.value,
    )
    repository.create(wr)
    logger.info("Withdrawal request %s created by user_id=%s for %s", wr.id, owner_id, wr.amount)
    return wr


def _status_filter(status):
    return parse_status(WithdrawalStatus, status).value if status else None


def list_withdrawals_for_owner(owner_id, page=1, limit=20, status=None):
    status = _status_filter(status)
    return repository.list_by_owner(owner_id, page, limit, status)


def list_all_withdrawals(principal, page=1, limit=20, status=None):
    require_admin(principal)
    status = _status_filter(status)
    return repository.list_all(page, limit, status)


def get_withdrawal(principal, request_id):
    wr = repository.get_by_id(request_id)
    if not wr:
        raise NotFoundError("Withdrawal request not found")
    require_view(principal, wr)
    return wr


def update_withdrawal_status(principal, request_id, new_status, admin_notes=None):
    require_admin(principal)
    data = load_or_raise(
        WithdrawalStatusUpdateSchema(),
        {"status": new_status, "admin_notes": admin_notes},
    )
    target = WithdrawalStatus(data["status"])

    wr = repository.get_by_id(request_id)
    if not wr:
        raise NotFoundError("Withdrawal request not found")

    current = ensure_transition(WITHDRAWAL_TRANSITIONS, wr.status, target)

    fields = {
        "reviewed_by": principal.id,
        "reviewed_at": datetime.utcnow(),
    }
    if data["admin_notes"] is not None:
        fields["admin_notes"] = data["admin_notes"]

    if not repository.conditional_update_status(request_id, current.value, target.value, fields):
        raise ConflictError(details={"request_id": request_id, "expected_status": current.value})

    wr = repository.get_by_id(request_id)
    logger.info(
        "Withdrawal request %s moved %s -> %s by admin %s",
        request_id, current.value, target.value, principal.id,
    )
    _notify_owner(wr, target)
    return wr


def complete_withdrawal(principal, request_id):
    """Mark an approved withdrawal as paid out.

    Completing twice fails with InvalidTransitionError so a double payout
    surfaces instead of passing silently.
    """
    return update_withdrawal_status(principal, request_id, WithdrawalStatus.COMPLETED.value)


def _notify_owner(wr, status):
    title, notif_type = STATUS_MESSAGES.get(status, ("Withdrawal Updated", "info"))
    message = f"Your withdrawal request of ${wr.amount:.2f} is now {status.value}."
    if wr.admin_notes and status == WithdrawalStatus.REJECTED:
        message = f"Your withdrawal request of ${wr.amount:.2f} was rejected: {wr.admin_notes}"
    send_notification_to_user(
        user_id=wr.user_id,
        title=title,
        message=message,
        notif_type=notif_type,
        details={"withdrawal_request_id": wr.id, "status": status.value},
    )
