from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from loan_portal.schemas.loan_schema import LoanAccountSchema, LoanTransactionSchema
from loan_portal.services.auth_service import resolve_principal
from loan_portal.services import loan_service
from loan_portal.utils.response_formatter import success_response, paginated_response

bp = Blueprint("loans", __name__, url_prefix="/api/v1/loans")

loan_schema = LoanAccountSchema()
transaction_schema = LoanTransactionSchema()


@bp.route("", methods=["GET"])
@jwt_required()
def list_own_loans():
    principal = resolve_principal(get_jwt_identity())
    loans = loan_service.list_loans_for_user(principal.id)
    return success_response({"loans": loan_schema.dump(loans, many=True)})


# ---- Transactions, filters: page, limit, type, start_date, end_date ----
@bp.route("/<loan_id>/transactions", methods=["GET"])
@jwt_required()
def list_own_transactions(loan_id):
    principal = resolve_principal(get_jwt_identity())
    loan = loan_service.get_loan_for_user(principal.id, loan_id)
    items, pagination = loan_service.list_transactions(
        loan,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 10),
        filters={k: request.args[k] for k in ("type", "start_date", "end_date") if request.args.get(k)},
    )
    return paginated_response("transactions", items, pagination, transaction_schema)
