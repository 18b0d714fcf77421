#!/usr/bin/env python3
"""
User roles and permissions
"""

from enum import Enum as PyEnum
from typing import FrozenSet

class UserRole(PyEnum):
    """User role enumeration"""
    ADMINISTRATOR = "administrator"
    PASTOR = "pastor"
    FINANCE_OFFICER = "finance_officer"
    SECRETARY = "secretary"
    DEPARTMENT_HEAD = "department_head"
    EDITOR = "editor"
    MEMBER = "member"
    GUEST = "guest"

ALL_PERMISSIONS = frozenset({
    "members", "attendance", "finance", "equipment", "sms",
    "visitors", "events", "reports", "admin",
})

ROLE_PERMISSIONS = {
    UserRole.ADMINISTRATOR: ALL_PERMISSIONS,
    UserRole.PASTOR: frozenset({"members", "attendance", "finance", "equipment", "sms", "visitors", "events", "reports"}),
    UserRole.FINANCE_OFFICER: frozenset({"finance", "reports"}),
    UserRole.SECRETARY: frozenset({"members", "attendance", "visitors", "events"}),
    UserRole.DEPARTMENT_HEAD: frozenset({"attendance", "members", "events"}),
    UserRole.EDITOR: frozenset({"events"}),
    UserRole.MEMBER: frozenset(),
    UserRole.GUEST: frozenset({"visitors"}),
}

def permissions_for(role: str) -> FrozenSet[str]:
    """Permission set for a role name; unknown roles get nothing"""
    try:
        return ROLE_PERMISSIONS[UserRole(role)]
    except ValueError:
        return frozenset()
