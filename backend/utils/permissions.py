# backend/utils/permissions.py
import enum
from typing import Iterable

from models.users import User, ROLE_ADMIN, ROLE_CHEF
from utils.errors import Forbidden


class Decision(str, enum.Enum):
    ALLOW = "allow"
    FORBIDDEN = "forbidden"


def is_admin(user: User) -> bool:
    return (user.role or "").lower() == ROLE_ADMIN

def is_chef(user: User) -> bool:
    return (user.role or "").lower() == ROLE_CHEF


# Single capability check used by every mutating operation.
# Callers look the resource up first and raise NotFound themselves, so a
# FORBIDDEN decision always means "exists but is not yours".
def authorize(user: User, owner_ids: Iterable, allow_admin: bool = False) -> Decision:
    if allow_admin and is_admin(user):
        return Decision.ALLOW
    if user.id in set(owner_ids):
        return Decision.ALLOW
    return Decision.FORBIDDEN

def enforce(decision: Decision, message: str = "Not allowed"):
    if decision is not Decision.ALLOW:
        raise Forbidden(message)

def require_role(user: User, *roles: str, message: str = "Not allowed"):
    if (user.role or "").lower() not in roles:
        raise Forbidden(message)
