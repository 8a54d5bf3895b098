"""
Role hierarchy.

Six global roles ranked STUDENT < TEACHER < CC < HOD < ADMIN < SUPERADMIN.
A user may hold several at once; only the highest-ranked one matters for
"at least this privileged" checks. Every route gate goes through
``has_higher_or_equal_role``.
"""
import enum
from typing import Iterable


class Role(str, enum.Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    CC = "CC"
    HOD = "HOD"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


ROLE_RANK = {
    Role.STUDENT: 1,
    Role.TEACHER: 2,
    Role.CC: 3,
    Role.HOD: 4,
    Role.ADMIN: 5,
    Role.SUPERADMIN: 6,
}

# Roles an administrator may hand out when creating a user
ASSIGNABLE_ROLES = (Role.ADMIN, Role.HOD, Role.CC, Role.TEACHER, Role.STUDENT)


def rank(role) -> int:
    return ROLE_RANK[Role(role)]


def get_highest_role(roles: Iterable) -> Role:
    """Return the single highest-ranked role. Raises ValueError on an empty set."""
    role_list = [Role(r) for r in roles]
    if not role_list:
        raise ValueError("role set must not be empty")
    return max(role_list, key=rank)


def has_higher_or_equal_role(roles: Iterable, required) -> bool:
    """True iff the highest role held ranks at least as high as ``required``."""
    return rank(get_highest_role(roles)) >= rank(required)


def sort_roles(roles: Iterable) -> list:
    """Deduplicate and order roles from highest to lowest rank"""
    return sorted({Role(r) for r in roles}, key=rank, reverse=True)
