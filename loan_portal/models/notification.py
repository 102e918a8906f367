from loan_portal.extensions import db
from datetime import datetime
import uuid

def gen_notif_id():
    return f"notif-{str(uuid.uuid4())[:8]}"

class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.String(50), primary_key=True, default=gen_notif_id)
    user_id = db.Column(db.String(50), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = db.Column(db.String(50), default="info")  # 'info', 'success', 'error'
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    details = db.Column(db.JSON, nullable=True)
    is_read = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    recipient = db.relationship("User", backref=db.backref("notifications", lazy="dynamic"))
