import pyotp
import pytest

from conftest import PASSWORD, auth_headers
from loan_portal.extensions import db
from loan_portal.models.user import User
from loan_portal.models.user_two_factor import UserTwoFactor
from loan_portal.services import two_factor_service
from loan_portal.utils.exceptions import ServiceError, ValidationError
from loan_portal.utils.totp import consume_backup_code, hash_backup_codes, verify_totp


def enroll(client, user):
    res = client.post("/api/v1/auth/2fa/setup", headers=auth_headers(user))
    assert res.status_code == 200
    secret = res.get_json()["manual_entry_key"]
    res = client.post("/api/v1/auth/2fa/verify-setup", json={"token": pyotp.TOTP(secret).now()},
                      headers=auth_headers(user))
    assert res.status_code == 200
    return secret, res.get_json()["backup_codes"]


def login(client, email):
    return client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD}).get_json()


def test_setup_returns_qr_code_and_key(client, user):
    res = client.post("/api/v1/auth/2fa/setup", headers=auth_headers(user))
    body = res.get_json()

    assert body["qr_code"].startswith("data:image/svg+xml;base64,")
    assert body["otpauth_url"].startswith("otpauth://totp/")
    assert "owner%40example.com" in body["otpauth_url"] or "owner@example.com" in body["otpauth_url"]
    assert len(body["manual_entry_key"]) == 32

    status = client.get("/api/v1/auth/2fa/status", headers=auth_headers(user)).get_json()
    assert status["enabled"] is False
    assert status["setup_initiated"] is True


def test_verify_setup_rejects_wrong_code(client, user):
    client.post("/api/v1/auth/2fa/setup", headers=auth_headers(user))
    res = client.post("/api/v1/auth/2fa/verify-setup", json={"token": "abcdef"}, headers=auth_headers(user))
    assert res.status_code == 400
    assert db.session.get(User, user.id).requires_2fa is False


def test_verify_setup_without_setup(client, user):
    res = client.post("/api/v1/auth/2fa/verify-setup", json={"token": "123456"}, headers=auth_headers(user))
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "TWO_FACTOR_NOT_STARTED"


def test_enrolment_enables_totp_login(client, user):
    secret, backup_codes = enroll(client, user)
    assert len(backup_codes) == 10
    assert all(len(c) == 8 for c in backup_codes)

    stored = UserTwoFactor.query.filter_by(user_id=user.id).one()
    assert backup_codes[0] not in stored.backup_codes

    body = login(client, user.email)
    assert body["otp_required"] is True
    assert body["otp_method"] == "totp"

    res = client.post("/api/v1/auth/login/verify-otp", json={
        "otp_session_id": body["otp_session_id"], "otp": pyotp.TOTP(secret).now(),
    })
    assert res.status_code == 200
    assert res.get_json()["access_token"]


def test_setup_twice_is_rejected(client, user):
    enroll(client, user)
    res = client.post("/api/v1/auth/2fa/setup", headers=auth_headers(user))
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "TWO_FACTOR_ENABLED"


def test_backup_code_is_single_use(client, user):
    _, backup_codes = enroll(client, user)

    first = login(client, user.email)["otp_session_id"]
    res = client.post("/api/v1/auth/login/verify-otp", json={"otp_session_id": first, "otp": backup_codes[0].lower()})
    assert res.status_code == 200

    second = login(client, user.email)["otp_session_id"]
    res = client.post("/api/v1/auth/login/verify-otp", json={"otp_session_id": second, "otp": backup_codes[0]})
    assert res.status_code == 401

    status = client.get("/api/v1/auth/2fa/status", headers=auth_headers(user)).get_json()
    assert status["backup_codes_remaining"] == 9


def test_email_toggle_cannot_bypass_authenticator(client, user):
    enroll(client, user)
    res = client.post("/api/v1/auth/2fa", json={"enabled": False}, headers=auth_headers(user))
    assert res.status_code == 400
    assert db.session.get(User, user.id).requires_2fa is True


def test_disable_requires_password_and_code(client, user):
    secret, _ = enroll(client, user)

    res = client.post("/api/v1/auth/2fa/disable", json={"token": pyotp.TOTP(secret).now(), "password": "wrong-password"},
                      headers=auth_headers(user))
    assert res.status_code == 400

    res = client.post("/api/v1/auth/2fa/disable", json={"token": "000000" if pyotp.TOTP(secret).now() != "000000" else "111111",
                                                       "password": PASSWORD}, headers=auth_headers(user))
    assert res.status_code == 400

    res = client.post("/api/v1/auth/2fa/disable", json={"token": pyotp.TOTP(secret).now(), "password": PASSWORD},
                      headers=auth_headers(user))
    assert res.status_code == 200

    assert login(client, user.email)["otp_required"] is False
    assert client.get("/api/v1/auth/2fa/status", headers=auth_headers(user)).get_json()["enabled"] is False


def test_regenerate_backup_codes(user, app):
    two_factor_service.start_setup(user)
    secret = UserTwoFactor.query.filter_by(user_id=user.id).one().secret
    old = two_factor_service.confirm_setup(user, pyotp.TOTP(secret).now())

    with pytest.raises(ValidationError):
        two_factor_service.regenerate_backup_codes(user, "12")
    new = two_factor_service.regenerate_backup_codes(user, pyotp.TOTP(secret).now())

    assert set(new).isdisjoint(old)
    ok, _ = two_factor_service.verify_code(user, old[0])
    assert ok is False
    ok, used_backup = two_factor_service.verify_code(user, new[0])
    assert ok is True and used_backup is True


def test_verify_code_requires_enrolment(user, app):
    with pytest.raises(ServiceError) as exc:
        two_factor_service.verify_code(user, "123456")
    assert exc.value.code == "TWO_FACTOR_NOT_ENABLED"


def test_totp_helpers():
    secret = pyotp.random_base32()
    assert verify_totp(secret, pyotp.TOTP(secret).now())
    assert not verify_totp(secret, "12345")
    assert not verify_totp(secret, None)

    hashed = hash_backup_codes(["ABCD1234", "FFFF0000"])
    assert consume_backup_code("abcd1234", hashed) == hashed[1:]
    assert consume_backup_code("00000000", hashed) is None
    assert consume_backup_code("short", hashed) is None
