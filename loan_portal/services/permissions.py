from dataclasses import dataclass

from loan_portal.utils.exceptions import AuthorizationError


@dataclass(frozen=True)
class Principal:
    id: str
    role: str


def can_administer(principal):
    return principal is not None and principal.role == "admin"


def can_view(principal, entity):
    if principal is None:
        return False
    return principal.id == entity.user_id or can_administer(principal)


def require_admin(principal):
    if not can_administer(principal):
        raise AuthorizationError("Admin access required")


def require_view(principal, entity):
    if not can_view(principal, entity):
        raise AuthorizationError("You do not have access to this request")
