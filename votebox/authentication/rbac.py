# votebox/authentication/rbac.py

from dataclasses import dataclass
from enum import Enum
from functools import wraps

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from votebox.errors import Forbidden, InvalidToken

# Role-based access control. Roles form a closed set; every admin-gated
# operation receives an already-resolved Identity, never a raw payload field.


class Role(Enum):
    VOTER = "voter"
    ADMIN = "admin"


class Permission(Enum):
    VIEW_OWN_PROFILE = "view_own_profile"
    MANAGE_CANDIDATES = "manage_candidates"
    MANAGE_ELECTIONS = "manage_elections"


ROLE_PERMISSIONS = {
    Role.VOTER: [
        Permission.VIEW_OWN_PROFILE,
    ],
    Role.ADMIN: [
        Permission.VIEW_OWN_PROFILE,
        Permission.MANAGE_CANDIDATES,
        Permission.MANAGE_ELECTIONS,
    ],
}


@dataclass(frozen=True)
class Identity:
    voter_id: int
    role: Role

    @property
    def is_admin(self):
        return self.role is Role.ADMIN


class RBACService:
    def has_permission(self, user_role, permission):
        if isinstance(user_role, str):
            user_role = Role(user_role)
        if isinstance(permission, str):
            permission = Permission(permission)
        return permission in ROLE_PERMISSIONS.get(user_role, [])

    def get_permissions(self, user_role):
        if isinstance(user_role, str):
            user_role = Role(user_role)
        return ROLE_PERMISSIONS.get(user_role, [])


def require_admin(identity):
    """Raise Forbidden unless ``identity`` resolved to the admin role."""
    if identity is None or identity.role is not Role.ADMIN:
        raise Forbidden()
    return identity


def identity_from_claims(subject, claims):
    try:
        return Identity(voter_id=int(subject), role=Role(claims.get("role")))
    except (TypeError, ValueError):
        raise InvalidToken()


def current_identity():
    """Identity of the token verified for the current request."""
    return identity_from_claims(get_jwt_identity(), get_jwt())


# Decorator resolving the bearer token into an Identity
def identity_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        current_identity()
        return func(*args, **kwargs)
    return wrapper


# Decorator for permission-gated views
def require_permission(permission):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            identity = current_identity()
            if not RBACService().has_permission(identity.role, permission):
                raise Forbidden()
            return func(*args, **kwargs)
        return wrapper
    return decorator
