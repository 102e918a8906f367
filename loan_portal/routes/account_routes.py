from flask import Blueprint
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.services.auth_service import resolve_principal
from loan_portal.services.balance_service import get_loan_account
from loan_portal.utils.response_formatter import success_response

bp = Blueprint("account", __name__, url_prefix="/api/v1/account")


@bp.route("/balance", methods=["GET"])
@jwt_required()
def balance():
    principal = resolve_principal(get_jwt_identity())
    account = get_loan_account(principal.id)
    return success_response({
        "account_number": account.account_number,
        "current_balance": float(account.current_balance),
    })
