from marshmallow import EXCLUDE, fields, validate, validates, ValidationError

from loan_portal.extensions import ma
from loan_portal.services.request_states import Urgency, WithdrawalStatus, values
from loan_portal.schemas.user_schema import UserSummarySchema


class WithdrawalCreateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    amount = fields.Decimal(
        required=True,
        places=2,
        validate=validate.Range(min=0, min_inclusive=False, error="Amount must be greater than 0"),
    )
    reason = fields.String(required=True, validate=validate.Length(min=1, error="Reason is required"))
    urgency = fields.String(
        load_default=Urgency.NORMAL.value,
        validate=validate.OneOf(values(Urgency), error="Invalid urgency level"),
    )
    notes = fields.String(load_default=None, allow_none=True)

    @validates("reason")
    def validate_reason(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Reason is required")


class WithdrawalStatusUpdateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.String(
        required=True,
        validate=validate.OneOf(values(WithdrawalStatus), error="Invalid status"),
    )
    admin_notes = fields.String(load_default=None, allow_none=True)


class WithdrawalRequestSchema(ma.Schema):
    id = fields.String()
    user_id = fields.String()
    loan_account_id = fields.String()
    amount = fields.Float()
    reason = fields.String()
    urgency = fields.String()
    notes = fields.String()
    status = fields.String()
    admin_notes = fields.String()
    reviewed_by = fields.String()
    reviewed_at = fields.DateTime()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class AdminWithdrawalRequestSchema(WithdrawalRequestSchema):
    user = fields.Nested(UserSummarySchema)
    current_balance = fields.Method("get_current_balance")

    def get_current_balance(self, obj):
        account = obj.loan_account
        return float(account.current_balance) if account else None
