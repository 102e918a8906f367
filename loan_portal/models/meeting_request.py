from loan_portal.extensions import db
from datetime import datetime
import uuid


class MeetingRequest(db.Model):
    __tablename__ = "meeting_requests"

    id = db.Column(db.String(50), primary_key=True, default=lambda: f"mtg_{uuid.uuid4().hex[:12]}")
    user_id = db.Column(db.String(50), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    purpose = db.Column(db.Text, nullable=False)
    preferred_date = db.Column(db.Date, nullable=False)
    preferred_time = db.Column(db.Time, nullable=False)
    meeting_type = db.Column(db.String(20), nullable=False, default="video")
    urgency = db.Column(db.String(20), nullable=False, default="normal")
    topics = db.Column(db.Text)
    notes = db.Column(db.Text)
    phone_number = db.Column(db.String(50))
    location = db.Column(db.Text)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    scheduled_date = db.Column(db.Date)
    scheduled_time = db.Column(db.Time)
    meeting_link = db.Column(db.Text)
    external_meeting_id = db.Column(db.String(100))

    admin_notes = db.Column(db.Text)
    reviewed_by = db.Column(db.String(50), db.ForeignKey("users.id"))
    reviewed_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id], backref="meeting_requests")
