from marshmallow import ValidationError as SchemaValidationError

from loan_portal.utils.exceptions import ValidationError


def load_or_raise(schema, data):
    try:
        return schema.load(data or {})
    except SchemaValidationError as e:
        raise ValidationError("Invalid input", details=e.messages)


def format_time(value):
    return value.strftime("%H:%M") if value else None
