from compassiq.tenancy.cookies import CookieOptions, CookieStore
from compassiq.tenancy.membership import Denied, DenialReason, Membership, MembershipValidator
from compassiq.tenancy.modes import OrgMode, classify
from compassiq.tenancy.resolver import PreviewSession, resolve_org_id
from compassiq.tenancy.roles import Role, is_admin_role, normalize_role
from compassiq.tenancy.store import Organization, OrgStore

__all__ = [
    "CookieOptions",
    "CookieStore",
    "Denied",
    "DenialReason",
    "Membership",
    "MembershipValidator",
    "OrgMode",
    "OrgStore",
    "Organization",
    "PreviewSession",
    "Role",
    "classify",
    "is_admin_role",
    "normalize_role",
    "resolve_org_id",
]
