from marshmallow import EXCLUDE, fields, validate

from loan_portal.extensions import ma
from loan_portal.models.loan_transaction import TRANSACTION_TYPES
from loan_portal.schemas.user_schema import UserSummarySchema


class LoanAccountSchema(ma.Schema):
    id = fields.String()
    user_id = fields.String()
    account_number = fields.String()
    principal_amount = fields.Float()
    current_balance = fields.Float()
    monthly_rate = fields.Float()
    total_bonuses = fields.Float()
    total_withdrawals = fields.Float()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class AdminLoanAccountSchema(LoanAccountSchema):
    user = fields.Nested(UserSummarySchema)
    transaction_count = fields.Method("get_transaction_count")

    def get_transaction_count(self, obj):
        return obj.transactions.count()


class LoanTransactionSchema(ma.Schema):
    id = fields.String()
    loan_account_id = fields.String()
    amount = fields.Float()
    transaction_type = fields.String()
    description = fields.String()
    bonus_percentage = fields.Float(allow_none=True)
    transaction_date = fields.DateTime()
    created_at = fields.DateTime()


class LoanCreateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    user_id = fields.String(required=True, validate=validate.Length(min=1))
    principal_amount = fields.Decimal(
        required=True,
        places=2,
        validate=validate.Range(min=0, error="Principal amount cannot be negative"),
    )
    monthly_rate = fields.Decimal(
        load_default=None,
        allow_none=True,
        validate=validate.Range(min=0, max=1, error="Monthly rate must be between 0 and 1"),
    )


class TransactionCreateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    amount = fields.Decimal(required=True, places=2)
    transaction_type = fields.String(
        required=True,
        validate=validate.OneOf(TRANSACTION_TYPES, error="Invalid transaction type"),
    )
    description = fields.String(load_default=None, allow_none=True)
    transaction_date = fields.DateTime(load_default=None, allow_none=True)
    bonus_percentage = fields.Decimal(
        load_default=None,
        allow_none=True,
        validate=validate.Range(min=0, max=1, error="Bonus percentage must be between 0 and 1"),
    )


class TransactionFilterSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    type = fields.String(
        load_default=None,
        validate=validate.OneOf(TRANSACTION_TYPES, error="Invalid transaction type"),
    )
    start_date = fields.Date(load_default=None)
    end_date = fields.Date(load_default=None)
