from marshmallow import EXCLUDE, fields, validate

from loan_portal.extensions import ma


class RegisterSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=8, error="Password must be at least 8 characters"))
    first_name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    last_name = fields.String(required=True, validate=validate.Length(min=1, max=100))


class UserSummarySchema(ma.Schema):
    id = fields.String()
    email = fields.String()
    first_name = fields.String()
    last_name = fields.String()


class ProfileUpdateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    first_name = fields.String(validate=validate.Length(min=1, max=100, error="First name is required"))
    last_name = fields.String(validate=validate.Length(min=1, max=100, error="Last name is required"))
    # empty string clears the number
    phone = fields.String(
        allow_none=True,
        validate=validate.Regexp(r"^(\+?[\d\s\-()]+)?$", error="Invalid phone number format"),
    )


class AdminUserSchema(ma.Schema):
    id = fields.String()
    email = fields.String()
    first_name = fields.String()
    last_name = fields.String()
    phone = fields.String()
    role = fields.String()
    requires_2fa = fields.Boolean()
    has_2fa_enabled = fields.Method("get_has_2fa_enabled")
    last_login = fields.DateTime()
    created_at = fields.DateTime()
    account_numbers = fields.Method("get_account_numbers")

    def get_has_2fa_enabled(self, obj):
        return bool(obj.two_factor and obj.two_factor.is_enabled)

    def get_account_numbers(self, obj):
        return [obj.loan_account.account_number] if obj.loan_account else []
