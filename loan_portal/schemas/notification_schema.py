from marshmallow import fields

from loan_portal.extensions import ma


class NotificationSchema(ma.Schema):
    id = fields.String()
    type = fields.String()
    title = fields.String()
    message = fields.String()
    details = fields.Raw()
    is_read = fields.Boolean()
    created_at = fields.DateTime()
