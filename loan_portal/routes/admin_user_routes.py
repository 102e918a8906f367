from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from loan_portal.extensions import limiter
from loan_portal.routes.admin_request_routes import current_admin
from loan_portal.schemas.loan_schema import AdminLoanAccountSchema, LoanAccountSchema, LoanTransactionSchema
from loan_portal.schemas.user_schema import AdminUserSchema, UserSummarySchema
from loan_portal.services import loan_service
from loan_portal.utils.response_formatter import success_response, paginated_response

bp = Blueprint("admin_users", __name__, url_prefix="/api/v1/admin")

user_schema = AdminUserSchema()
loan_schema = LoanAccountSchema()
admin_loan_schema = AdminLoanAccountSchema()
transaction_schema = LoanTransactionSchema()


def admin_rate_limit():
    return current_app.config["ADMIN_RATE_LIMIT"]


# ---- List users, filters: page, limit, search ----
@bp.route("/users", methods=["GET"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_list_users():
    admin = current_admin()
    items, pagination = loan_service.list_users(
        admin,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
        search=request.args.get("search"),
    )
    return paginated_response("users", items, pagination, user_schema)


@bp.route("/users/<user_id>/loans", methods=["GET"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_user_loans(user_id):
    admin = current_admin()
    user, loans = loan_service.get_user_with_loans(admin, user_id)
    return success_response({
        "user": UserSummarySchema().dump(user),
        "loans": loan_schema.dump(loans, many=True),
    })


# ---- Open a loan account, body: user_id, principal_amount, monthly_rate ----
@bp.route("/create-loan", methods=["POST"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_create_loan():
    admin = current_admin()
    loan = loan_service.create_loan_account(admin, request.get_json(silent=True) or {})
    return success_response(
        {"loan_account": admin_loan_schema.dump(loan)},
        message="Loan account created successfully",
        status=201,
    )


@bp.route("/loans", methods=["GET"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_list_loans():
    admin = current_admin()
    items, pagination = loan_service.list_all_loans(
        admin,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 20),
    )
    return paginated_response("loans", items, pagination, admin_loan_schema)


# ---- Post a transaction, body: amount, transaction_type, description, transaction_date, bonus_percentage ----
@bp.route("/loans/<loan_id>/transactions", methods=["POST"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_add_transaction(loan_id):
    admin = current_admin()
    tx, loan = loan_service.add_transaction(admin, loan_id, request.get_json(silent=True) or {})
    return success_response({
        "transaction": transaction_schema.dump(tx),
        "loan_account": loan_schema.dump(loan),
    }, message="Transaction added successfully", status=201)


@bp.route("/loans/<loan_id>/transactions", methods=["GET"])
@jwt_required()
@limiter.limit(admin_rate_limit)
def admin_list_transactions(loan_id):
    current_admin()
    loan = loan_service.get_loan(loan_id)
    items, pagination = loan_service.list_transactions(
        loan,
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 50),
        filters={k: request.args[k] for k in ("type", "start_date", "end_date") if request.args.get(k)},
    )
    return paginated_response("transactions", items, pagination, transaction_schema)
