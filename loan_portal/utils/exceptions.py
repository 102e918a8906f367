class ServiceError(Exception):
    status = 400

    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None, status=None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status is not None:
            self.status = status
        super().__init__(message)


class ValidationError(ServiceError):
    status = 400

    def __init__(self, message="Invalid input", details=None):
        super().__init__("VALIDATION_ERROR", message, details)


class AuthenticationError(ServiceError):
    status = 401

    def __init__(self, message="Authentication required", details=None):
        super().__init__("UNAUTHORIZED", message, details)


class AuthorizationError(ServiceError):
    status = 403

    def __init__(self, message="Access denied", details=None):
        super().__init__("FORBIDDEN", message, details)


class NotFoundError(ServiceError):
    status = 404

    def __init__(self, message="Resource not found", details=None):
        super().__init__("NOT_FOUND", message, details)


class InsufficientFundsError(ServiceError):
    status = 400

    def __init__(self, message="Withdrawal amount exceeds current balance", details=None):
        super().__init__("INSUFFICIENT_FUNDS", message, details)


class InvalidTransitionError(ServiceError):
    status = 409

    def __init__(self, current, requested, details=None):
        self.current = current
        self.requested = requested
        super().__init__(
            "INVALID_TRANSITION",
            f"Cannot move request from '{current}' to '{requested}'",
            details or {"current_status": current, "requested_status": requested},
        )


class ConflictError(ServiceError):
    status = 409

    def __init__(self, message="Request was modified concurrently", details=None):
        super().__init__("CONFLICT", message, details)


class IntegrationError(ServiceError):
    status = 502

    def __init__(self, message="Meeting provider unavailable", details=None):
        super().__init__("INTEGRATION_ERROR", message, details)
