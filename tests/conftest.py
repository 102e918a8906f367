from datetime import date, timedelta

import pytest
from flask_jwt_extended import create_access_token

from loan_portal.extensions import db
from loan_portal.main import create_app
from loan_portal.models.user import User
from loan_portal.services.balance_service import open_loan_account
from loan_portal.services.meeting_link_service import EXTENSION_KEY
from loan_portal.services.permissions import Principal
from loan_portal.utils.auth_utils import hash_password

PASSWORD = "correct-horse-battery"


class FakeMeetingLinks:
    """Records provider calls; set ``fail_create``/``fail_delete`` to an exception to raise."""

    def __init__(self):
        self.created = []
        self.deleted = []
        self.fail_create = None
        self.fail_delete = None

    def create_meeting(self, topic, start_time, duration=60):
        if self.fail_create:
            raise self.fail_create
        self.created.append({"topic": topic, "start_time": start_time, "duration": duration})
        n = len(self.created)
        return {"id": f"remote-{n}", "join_url": f"https://video.example.com/room-{n}"}

    def delete_meeting(self, meeting_id):
        if self.fail_delete:
            raise self.fail_delete
        self.deleted.append(meeting_id)
        return True


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def meeting_links(app):
    fake = FakeMeetingLinks()
    app.extensions[EXTENSION_KEY] = fake
    return fake


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(email=None, role="user", balance=None, requires_2fa=False):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(PASSWORD),
            first_name="Test",
            last_name=f"User{counter['n']}",
            role=role,
            requires_2fa=requires_2fa,
        )
        db.session.add(user)
        db.session.commit()
        if balance is not None:
            open_loan_account(user.id, balance)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user(email="owner@example.com", balance="500.00")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin")


def principal_for(user):
    return Principal(id=user.id, role=user.role)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(identity=user.id)}"}


def future_date(days=30):
    return (date.today() + timedelta(days=days)).isoformat()
