from __future__ import annotations

from enum import Enum
from typing import Final


class Role(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


ADMIN_ROLES: Final[frozenset[Role]] = frozenset({Role.OWNER, Role.ADMIN})

# Functional roles from older membership rows carry no admin capability.
LEGACY_ROLE_ALIASES: Final[dict[str, Role]] = {
    "SALES": Role.MEMBER,
    "OPS": Role.MEMBER,
    "FINANCE": Role.MEMBER,
    "VIEWER": Role.MEMBER,
}


def normalize_role(role: str | Role) -> Role:
    if isinstance(role, Role):
        return role
    raw = (role or "").strip().upper()
    if raw in LEGACY_ROLE_ALIASES:
        return LEGACY_ROLE_ALIASES[raw]
    try:
        return Role(raw)
    except ValueError:
        raise ValueError(f"Unsupported role: {role}") from None


def is_admin_role(role: str | Role) -> bool:
    return normalize_role(role) in ADMIN_ROLES
