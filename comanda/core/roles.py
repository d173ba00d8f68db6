"""
User roles

Roles arrive from session claims and database rows, both untrusted until
they pass parse_user_role.
"""
from enum import Enum
from typing import Any, Optional


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


_ROLES_BY_VALUE = {role.value: role for role in UserRole}


def parse_user_role(value: Any) -> Optional[UserRole]:
    """
    Narrow an arbitrary value to a UserRole.

    Only the exact lowercase tags match. Anything else, including other
    casings, non-strings and None, returns None. Never raises.
    """
    if not isinstance(value, str):
        return None
    return _ROLES_BY_VALUE.get(value)
