import logging
import os

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from .config import CONFIGS, DevelopmentConfig
from .extensions import db, migrate, jwt, ma, cors, limiter, bcrypt


def create_app(config_name=None):
    app = Flask(__name__, instance_relative_config=False)
    if config_name is None:
        env = os.getenv("FLASK_ENV", "development")
        config_name = "production" if env == "production" else "development"
    app.config.from_object(CONFIGS.get(config_name, DevelopmentConfig))

    app.logger.setLevel(app.config["LOG_LEVEL"])
    logging.getLogger("loan_portal").setLevel(app.config["LOG_LEVEL"])

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",")]
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    bcrypt.init_app(app)
    limiter.init_app(app)

    # models must be imported before migrations / create_all see them
    from loan_portal.models import user, login_otp, loan_account  # noqa: F401
    from loan_portal.models import withdrawal_request, meeting_request, notification  # noqa: F401
    from loan_portal.models import loan_transaction, user_two_factor  # noqa: F401

    from loan_portal.services.meeting_link_service import EXTENSION_KEY, MeetingLinkClient
    app.extensions[EXTENSION_KEY] = MeetingLinkClient.from_config(app.config)

    # register blueprints
    from loan_portal.routes.auth_routes import bp as auth_bp
    from loan_portal.routes.account_routes import bp as account_bp
    from loan_portal.routes.withdrawal_routes import bp as withdrawal_bp
    from loan_portal.routes.meeting_routes import bp as meeting_bp
    from loan_portal.routes.admin_request_routes import bp as admin_requests_bp
    from loan_portal.routes.notification_routes import bp as notification_bp
    from loan_portal.routes.profile_routes import bp as profile_bp
    from loan_portal.routes.loan_routes import bp as loans_bp
    from loan_portal.routes.admin_user_routes import bp as admin_users_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(account_bp)
    app.register_blueprint(withdrawal_bp)
    app.register_blueprint(meeting_bp)
    app.register_blueprint(admin_requests_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(loans_bp)
    app.register_blueprint(admin_users_bp)

    from loan_portal.commands import register_commands
    register_commands(app)

    register_error_handlers(app)

    @app.route("/api/v1/health", methods=["GET"])
    def health():
        from loan_portal.utils.response_formatter import success_response
        return success_response({"status": "ok"})

    return app


def register_error_handlers(app):
    from loan_portal.utils.exceptions import ServiceError
    from loan_portal.utils.response_formatter import error_response, service_error_response

    @app.errorhandler(ServiceError)
    def service_error(e):
        if e.status >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        return service_error_response(e)

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        db.session.rollback()
        app.logger.exception("Database error")
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    @app.errorhandler(400)
    def bad_request(e):
        return error_response("BAD_REQUEST", "Bad request", status=400)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("METHOD_NOT_ALLOWED", "Method not allowed", status=405)

    @app.errorhandler(429)
    def rate_limited(e):
        return error_response("RATE_LIMITED", "Too many requests", status=429)

    @app.errorhandler(500)
    def server_error(e):
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    # token problems are authentication failures, never authorization ones
    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_response("UNAUTHORIZED", "Authentication required", status=401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_response("UNAUTHORIZED", "Invalid token", status=401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("UNAUTHORIZED", "Token has expired", status=401)
