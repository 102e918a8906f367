from decimal import Decimal

import pytest

from conftest import auth_headers, principal_for
from loan_portal.models.loan_transaction import LoanTransaction
from loan_portal.services import loan_service
from loan_portal.utils.exceptions import AuthorizationError, NotFoundError, ValidationError


def create_loan(client, admin, user, amount=1000, **extra):
    return client.post("/api/v1/admin/create-loan", json={
        "user_id": user.id, "principal_amount": amount, **extra,
    }, headers=auth_headers(admin))


def test_admin_creates_loan_with_initial_transaction(client, admin, make_user):
    borrower = make_user()
    res = create_loan(client, admin, borrower, amount="2500.00", monthly_rate=0.02)
    assert res.status_code == 201
    loan = res.get_json()["loan_account"]
    assert loan["principal_amount"] == 2500.0
    assert loan["current_balance"] == 2500.0
    assert loan["monthly_rate"] == 0.02
    assert loan["user"]["id"] == borrower.id
    assert loan["transaction_count"] == 1

    tx = LoanTransaction.query.filter_by(loan_account_id=loan["id"]).one()
    assert tx.transaction_type == "loan"
    assert tx.description == "Initial loan amount"


def test_create_loan_errors(client, admin, user, make_user):
    # the user fixture already holds an account
    res = create_loan(client, admin, user)
    assert res.status_code == 409
    assert res.get_json()["error"]["code"] == "LOAN_EXISTS"

    borrower = make_user()
    assert create_loan(client, user, borrower).status_code == 403
    assert create_loan(client, admin, borrower, amount=-5).status_code == 400
    assert create_loan(client, admin, borrower, monthly_rate=2).status_code == 400

    res = client.post("/api/v1/admin/create-loan", json={"user_id": "usr-missing", "principal_amount": 10},
                      headers=auth_headers(admin))
    assert res.status_code == 404


def test_posting_transactions_updates_totals(client, admin, make_user):
    borrower = make_user()
    loan_id = create_loan(client, admin, borrower, amount=1000).get_json()["loan_account"]["id"]
    url = f"/api/v1/admin/loans/{loan_id}/transactions"

    res = client.post(url, json={"amount": 50, "transaction_type": "bonus", "bonus_percentage": 0.05},
                      headers=auth_headers(admin))
    assert res.status_code == 201
    assert res.get_json()["transaction"]["description"] == "bonus transaction"
    assert res.get_json()["loan_account"]["current_balance"] == 1050.0
    assert res.get_json()["loan_account"]["total_bonuses"] == 50.0

    res = client.post(url, json={"amount": 200, "transaction_type": "withdrawal", "description": "Payout"},
                      headers=auth_headers(admin))
    loan = res.get_json()["loan_account"]
    assert loan["current_balance"] == 850.0
    assert loan["total_withdrawals"] == 200.0

    res = client.post(url, json={"amount": 10, "transaction_type": "refund"}, headers=auth_headers(admin))
    assert res.status_code == 400
    assert client.post(url, json={"amount": 10, "transaction_type": "bonus"},
                       headers=auth_headers(borrower)).status_code == 403
    assert client.post("/api/v1/admin/loans/la_missing/transactions", json={"amount": 1, "transaction_type": "bonus"},
                       headers=auth_headers(admin)).status_code == 404

    res = client.get(url, headers=auth_headers(admin))
    assert res.get_json()["pagination"]["total"] == 3


def test_owner_loan_listing_and_transaction_filters(client, admin, make_user):
    borrower = make_user()
    stranger = make_user()
    loan_id = create_loan(client, admin, borrower, amount=500).get_json()["loan_account"]["id"]
    url = f"/api/v1/admin/loans/{loan_id}/transactions"
    client.post(url, json={"amount": 25, "transaction_type": "monthly_payment",
                           "transaction_date": "2024-03-15T10:00:00Z"}, headers=auth_headers(admin))
    client.post(url, json={"amount": 5, "transaction_type": "bonus",
                           "transaction_date": "2024-05-01T10:00:00"}, headers=auth_headers(admin))

    loans = client.get("/api/v1/loans", headers=auth_headers(borrower)).get_json()["loans"]
    assert [l["id"] for l in loans] == [loan_id]
    assert loans[0]["current_balance"] == 530.0
    assert client.get("/api/v1/loans", headers=auth_headers(stranger)).get_json()["loans"] == []

    own_url = f"/api/v1/loans/{loan_id}/transactions"
    body = client.get(own_url, headers=auth_headers(borrower)).get_json()
    assert body["pagination"]["total"] == 3

    body = client.get(f"{own_url}?type=bonus", headers=auth_headers(borrower)).get_json()
    assert [t["amount"] for t in body["transactions"]] == [5.0]

    body = client.get(f"{own_url}?start_date=2024-03-01&end_date=2024-03-31", headers=auth_headers(borrower)).get_json()
    assert [t["transaction_type"] for t in body["transactions"]] == ["monthly_payment"]

    assert client.get(f"{own_url}?type=refund", headers=auth_headers(borrower)).status_code == 400
    assert client.get(f"{own_url}?start_date=2024-04-01&end_date=2024-03-01",
                      headers=auth_headers(borrower)).status_code == 400
    # another user's loan is reported as missing
    assert client.get(own_url, headers=auth_headers(stranger)).status_code == 404


def test_admin_user_directory(client, admin, user, make_user):
    make_user(email="someone.else@example.com")

    assert client.get("/api/v1/admin/users", headers=auth_headers(user)).status_code == 403

    body = client.get("/api/v1/admin/users", headers=auth_headers(admin)).get_json()
    assert body["pagination"]["total"] == 3
    owner = next(u for u in body["users"] if u["id"] == user.id)
    assert len(owner["account_numbers"]) == 1
    assert owner["has_2fa_enabled"] is False

    body = client.get("/api/v1/admin/users?search=someone", headers=auth_headers(admin)).get_json()
    assert [u["email"] for u in body["users"]] == ["someone.else@example.com"]

    body = client.get(f"/api/v1/admin/users/{user.id}/loans", headers=auth_headers(admin)).get_json()
    assert body["user"]["email"] == user.email
    assert len(body["loans"]) == 1
    assert client.get("/api/v1/admin/users/usr-missing/loans", headers=auth_headers(admin)).status_code == 404

    body = client.get("/api/v1/admin/loans", headers=auth_headers(admin)).get_json()
    assert body["pagination"]["total"] == 1


def test_loan_service_guards(user, make_user):
    with pytest.raises(AuthorizationError):
        loan_service.create_loan_account(principal_for(user), {"user_id": user.id, "principal_amount": 1})
    with pytest.raises(AuthorizationError):
        loan_service.list_users(principal_for(user))
    with pytest.raises(NotFoundError):
        loan_service.get_loan_for_user(make_user().id, user.loan_account.id)
    with pytest.raises(ValidationError):
        loan_service.list_transactions(user.loan_account, filters={"start_date": "not-a-date"})


def test_balance_effect():
    assert loan_service.balance_effect("withdrawal", Decimal("-20")) == (Decimal("-20"), 0, Decimal("20"))
    assert loan_service.balance_effect("bonus", Decimal("5")) == (Decimal("5"), Decimal("5"), 0)
    assert loan_service.balance_effect("monthly_payment", Decimal("7")) == (Decimal("7"), 0, 0)
