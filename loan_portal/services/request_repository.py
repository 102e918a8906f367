import logging
from datetime import datetime

from loan_portal.extensions import db
from loan_portal.utils.pagination import paginate_query

logger = logging.getLogger(__name__)


class RequestRepository:
    """Persistence for one request model (withdrawals or meetings).

    Status changes only go through ``conditional_update_status`` so two
    admins racing on the same row cannot both win.
    """

    def __init__(self, model):
        self.model = model

    def create(self, entity):
        db.session.add(entity)
        db.session.commit()
        return entity

    def get_by_id(self, request_id):
        return self.model.query.filter_by(id=request_id).first()

    def _listing(self, query, page, limit, status=None):
        if status:
            query = query.filter(self.model.status == status)
        query = query.order_by(self.model.created_at.desc())
        return paginate_query(query, page, limit)

    def list_by_owner(self, owner_id, page=1, limit=20, status=None):
        return self._listing(self.model.query.filter_by(user_id=owner_id), page, limit, status)

    def list_all(self, page=1, limit=20, status=None):
        return self._listing(self.model.query, page, limit, status)

    def conditional_update_status(self, request_id, expected_status, new_status, fields=None, commit=True):
        """Set ``new_status`` only if the row is still in ``expected_status``.

        Returns False when no row matched. With ``commit=False`` the update is
        flushed but left for the caller to commit or roll back.
        """
        values = dict(fields or {})
        values["status"] = new_status
        values["updated_at"] = datetime.utcnow()

        matched = (
            self.model.query
            .filter(self.model.id == request_id, self.model.status == expected_status)
            .update(values, synchronize_session="fetch")
        )

        if not matched:
            db.session.rollback()
            logger.info(
                "%s %s not in status %s, update to %s skipped",
                self.model.__tablename__, request_id, expected_status, new_status,
            )
            return False

        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return True
