import logging

from loan_portal.extensions import db
from loan_portal.models.notification import Notification
from loan_portal.utils.exceptions import NotFoundError
from loan_portal.utils.pagination import paginate_query
from datetime import datetime

logger = logging.getLogger(__name__)


def get_user_notifications(user_id, is_read=None):
    q = Notification.query.filter_by(user_id=user_id)
    if is_read is not None:
        q = q.filter_by(is_read=is_read)
    return q.order_by(Notification.created_at.desc())


def list_user_notifications(user_id, page=1, limit=20, is_read=None):
    return paginate_query(get_user_notifications(user_id, is_read), page, limit)


def mark_notification_read(user_id, notification_id):
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not notification:
        raise NotFoundError("Notification not found")
    notification.is_read = True
    db.session.commit()
    return notification


def send_notification_to_user(user_id, title, message, notif_type="info", details=None):
    notif = Notification(
        user_id=user_id,
        type=notif_type,
        title=title,
        message=message,
        details=details,
        created_at=datetime.utcnow(),
    )
    db.session.add(notif)
    db.session.commit()
    logger.debug("Notification %s queued for user_id=%s", notif.id, user_id)
    return notif
