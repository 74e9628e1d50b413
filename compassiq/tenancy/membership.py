from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from compassiq.domain.context_errors import GENERIC_DENIAL_MESSAGE, TransientLookupFailure
from compassiq.tenancy.roles import Role, is_admin_role, normalize_role
from compassiq.tenancy.store import Organization, OrgStore


ORG_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def is_well_formed_org_id(org_id: str | None) -> bool:
    return bool(org_id) and ORG_ID_PATTERN.fullmatch(org_id) is not None


class DenialReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NO_ORGANIZATION = "no_organization"
    MALFORMED_ORG_ID = "malformed_org_id"
    ORG_NOT_FOUND = "org_not_found"
    NOT_A_MEMBER = "not_a_member"
    LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class Denied:
    """Expected negative outcome of context resolution. Not an exception."""

    reason: DenialReason
    org_id: str | None = None
    error: Exception | None = field(default=None, compare=False)

    @property
    def is_transient(self) -> bool:
        return self.reason is DenialReason.LOOKUP_FAILED

    @property
    def message(self) -> str:
        """Caller-facing text; identical for every reason but a missing session."""
        if self.reason is DenialReason.UNAUTHENTICATED:
            return "Not authenticated"
        return GENERIC_DENIAL_MESSAGE


@dataclass(frozen=True)
class Membership:
    user_id: str
    org_id: str
    role: Role
    # Set for the row-less access granted to demo organizations.
    implicit: bool = False

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)


class MembershipValidator:
    """Confirms a user may act as an organization. Fails closed."""

    def __init__(self, store: OrgStore) -> None:
        self._store = store

    def validate(
        self,
        user_id: str,
        org_id: str,
        *,
        organization: Organization | None = None,
    ) -> Membership | Denied:
        if not is_well_formed_org_id(org_id):
            return Denied(DenialReason.MALFORMED_ORG_ID, org_id=org_id)

        try:
            row = self._store.get_membership_row(user_id, org_id)
            if organization is None:
                organization = self._store.get_organization(org_id)
        except TransientLookupFailure as exc:
            return Denied(DenialReason.LOOKUP_FAILED, org_id=org_id, error=exc)

        if organization is None:
            return Denied(DenialReason.ORG_NOT_FOUND, org_id=org_id)

        role = None
        if row is not None:
            try:
                role = normalize_role(row.get("role"))
            except ValueError:
                role = None
        if role is not None:
            return Membership(user_id=user_id, org_id=org_id, role=role)

        # Unrecognised roles get no more than a missing row would.
        if organization.is_demo:
            return Membership(user_id=user_id, org_id=org_id, role=Role.MEMBER, implicit=True)

        return Denied(DenialReason.NOT_A_MEMBER, org_id=org_id)
