from datetime import datetime

from marshmallow import EXCLUDE, fields, validate, validates_schema, ValidationError

from loan_portal.extensions import ma
from loan_portal.services.request_states import MeetingStatus, MeetingType, Urgency, values
from loan_portal.schemas.user_schema import UserSummarySchema
from loan_portal.utils.validation import format_time

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


class MeetingCreateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    purpose = fields.String(required=True, validate=validate.Length(min=1, error="Purpose is required"))
    preferred_date = fields.Date(required=True, error_messages={"invalid": "Valid preferred date required"})
    preferred_time = fields.String(
        required=True,
        validate=validate.Regexp(TIME_PATTERN, error="Valid time format required (HH:MM)"),
    )
    meeting_type = fields.String(
        load_default=MeetingType.VIDEO.value,
        validate=validate.OneOf(values(MeetingType), error="Invalid meeting type"),
    )
    urgency = fields.String(
        load_default=Urgency.NORMAL.value,
        validate=validate.OneOf(values(Urgency), error="Invalid urgency level"),
    )
    topics = fields.String(load_default=None, allow_none=True)
    notes = fields.String(load_default=None, allow_none=True)
    phone_number = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=50))
    location = fields.String(load_default=None, allow_none=True)

    @validates_schema
    def validate_schedule(self, data, **kwargs):
        if not data["purpose"].strip():
            raise ValidationError("Purpose is required", field_name="purpose")

        when = datetime.combine(
            data["preferred_date"],
            datetime.strptime(data["preferred_time"], "%H:%M").time(),
        )
        if when < datetime.utcnow().replace(second=0, microsecond=0):
            raise ValidationError("Preferred date and time must not be in the past", field_name="preferred_date")


class MeetingStatusUpdateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.String(
        required=True,
        validate=validate.OneOf(values(MeetingStatus), error="Invalid status"),
    )
    scheduled_date = fields.Date(load_default=None, allow_none=True, error_messages={"invalid": "Valid scheduled date required"})
    scheduled_time = fields.String(
        load_default=None,
        allow_none=True,
        validate=validate.Regexp(TIME_PATTERN, error="Valid time format required (HH:MM)"),
    )
    admin_notes = fields.String(load_default=None, allow_none=True)

    @validates_schema
    def validate_schedule_fields(self, data, **kwargs):
        if data["status"] != MeetingStatus.SCHEDULED.value:
            return
        if not data.get("scheduled_date"):
            raise ValidationError("scheduled_date is required when status is scheduled", field_name="scheduled_date")
        if not data.get("scheduled_time"):
            raise ValidationError("scheduled_time is required when status is scheduled", field_name="scheduled_time")


class MeetingRequestSchema(ma.Schema):
    id = fields.String()
    user_id = fields.String()
    purpose = fields.String()
    preferred_date = fields.Date()
    preferred_time = fields.Method("get_preferred_time")
    meeting_type = fields.String()
    urgency = fields.String()
    topics = fields.String()
    notes = fields.String()
    phone_number = fields.String()
    location = fields.String()
    status = fields.String()
    scheduled_date = fields.Date()
    scheduled_time = fields.Method("get_scheduled_time")
    meeting_link = fields.String()
    admin_notes = fields.String()
    reviewed_by = fields.String()
    reviewed_at = fields.DateTime()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_preferred_time(self, obj):
        return format_time(obj.preferred_time)

    def get_scheduled_time(self, obj):
        return format_time(obj.scheduled_time)


class AdminMeetingRequestSchema(MeetingRequestSchema):
    user = fields.Nested(UserSummarySchema)
