from datetime import datetime, timedelta, timezone

import pytest

from compassiq.domain.context_errors import Forbidden, TransientLookupFailure
from compassiq.tenancy import (
    Denied,
    DenialReason,
    Membership,
    MembershipValidator,
    Organization,
    PreviewSession,
    Role,
    classify,
    is_admin_role,
    normalize_role,
)
from compassiq.tenancy.context import OrgContext, require_admin


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeOrgStore:
    def __init__(self, organizations=None, memberships=None, fail=False):
        self.organizations = organizations or {}
        self.memberships = memberships or {}
        self.fail = fail

    def get_membership_row(self, user_id, org_id):
        if self.fail:
            raise TransientLookupFailure("membership", RuntimeError("connection reset"))
        role = self.memberships.get((user_id, org_id))
        if role is None:
            return None
        return {"user_id": user_id, "org_id": org_id, "role": role}

    def get_organization(self, org_id):
        return self.organizations.get(org_id)


def _store(**kwargs) -> FakeOrgStore:
    organizations = {
        "org-A": Organization(id="org-A", name="Alpha"),
        "org-D": Organization(id="org-D", name="Delta"),
        "org-demo": Organization(id="org-demo", name="Demo", is_demo=True),
    }
    memberships = {
        ("u-1", "org-A"): "OWNER",
        ("u-2", "org-D"): "MEMBER",
        ("u-3", "org-A"): "SALES",
        ("u-4", "org-A"): "INTERN",
        ("u-4", "org-demo"): "INTERN",
    }
    return FakeOrgStore(organizations, memberships, **kwargs)


def test_role_normalization():
    assert normalize_role("owner") is Role.OWNER
    assert normalize_role(" ADMIN ") is Role.ADMIN
    assert normalize_role("FINANCE") is Role.MEMBER
    assert normalize_role("viewer") is Role.MEMBER
    assert is_admin_role("OWNER") and is_admin_role(Role.ADMIN)
    assert not is_admin_role("MEMBER")
    with pytest.raises(ValueError):
        normalize_role("superuser")


def test_member_row_validates():
    result = MembershipValidator(_store()).validate("u-1", "org-A")

    assert result == Membership(user_id="u-1", org_id="org-A", role=Role.OWNER)
    assert result.is_admin


def test_legacy_functional_role_is_plain_member():
    result = MembershipValidator(_store()).validate("u-3", "org-A")

    assert isinstance(result, Membership)
    assert result.role is Role.MEMBER
    assert not result.is_admin


@pytest.mark.parametrize(
    "user_id, org_id, reason",
    [
        ("u-1", "org-D", DenialReason.NOT_A_MEMBER),
        ("u-1", "org-missing", DenialReason.ORG_NOT_FOUND),
        ("u-1", "org A; drop", DenialReason.MALFORMED_ORG_ID),
        ("u-1", "", DenialReason.MALFORMED_ORG_ID),
        ("u-4", "org-A", DenialReason.NOT_A_MEMBER),
    ],
)
def test_validation_fails_closed(user_id, org_id, reason):
    result = MembershipValidator(_store()).validate(user_id, org_id)

    assert isinstance(result, Denied)
    assert result.reason is reason
    assert result.message == "Organization not found"


def test_lookup_error_is_denied_not_assumed():
    result = MembershipValidator(_store(fail=True)).validate("u-1", "org-A")

    assert isinstance(result, Denied)
    assert result.reason is DenialReason.LOOKUP_FAILED
    assert result.is_transient
    assert isinstance(result.error, TransientLookupFailure)


def test_demo_org_is_readable_without_membership():
    result = MembershipValidator(_store()).validate("u-9", "org-demo")

    assert isinstance(result, Membership)
    assert result.implicit
    assert result.role is Role.MEMBER
    assert not result.is_admin


def test_preview_is_always_read_only():
    org = Organization(id="org-A")
    preview = PreviewSession("pw-1", "org-A", NOW + timedelta(days=1))
    for role in Role:
        mode = classify(org, Membership("u-1", "org-A", role), preview, now=NOW)
        assert mode.is_preview
        assert mode.is_read_only
        assert mode.label == "preview"


def test_demo_is_always_read_only():
    org = Organization(id="org-demo", is_demo=True)
    for role in Role:
        mode = classify(org, Membership("u-1", "org-demo", role), None, now=NOW)
        assert mode.is_demo
        assert mode.is_read_only
        assert mode.is_admin == (role in (Role.OWNER, Role.ADMIN))


def test_stored_read_only_flag_and_normal_mode():
    owner = Membership("u-1", "org-A", Role.OWNER)

    read_only = classify(Organization(id="org-A", is_read_only=True), owner, None, now=NOW)
    normal = classify(Organization(id="org-A"), owner, None, now=NOW)

    assert read_only.is_read_only and read_only.label == "read_only"
    assert not normal.is_read_only and normal.label == "normal"


def test_preview_for_another_org_or_expired_does_not_apply():
    owner = Membership("u-1", "org-A", Role.OWNER)
    other = PreviewSession("pw-1", "org-B", NOW + timedelta(days=1))
    expired = PreviewSession("pw-1", "org-A", NOW - timedelta(days=1))

    assert not classify(Organization(id="org-A"), owner, other, now=NOW).is_preview
    assert not classify(Organization(id="org-A"), owner, expired, now=NOW).is_read_only


def test_org_context_invariants():
    with pytest.raises(ValueError):
        OrgContext(org_id="org-A", user_id="u-1", role=Role.MEMBER, is_admin=True, is_demo=False, is_read_only=False)
    with pytest.raises(ValueError):
        OrgContext(
            org_id="org-A", user_id="u-1", role=Role.OWNER, is_admin=True,
            is_demo=False, is_read_only=False, is_preview=True, preview_org_id="org-A",
        )
    with pytest.raises(ValueError):
        OrgContext(
            org_id="org-A", user_id="u-1", role=Role.OWNER, is_admin=True,
            is_demo=False, is_read_only=True, is_preview=True, preview_org_id="org-B",
        )
    with pytest.raises(ValueError):
        OrgContext(org_id="org-A", user_id="u-1", role=Role.OWNER, is_admin=True, is_demo=True, is_read_only=False)


def test_org_context_is_frozen_and_normalizes_role():
    context = OrgContext(
        org_id="org-A", user_id="u-1", role="admin", is_admin=True, is_demo=False, is_read_only=False,
    )

    assert context.role is Role.ADMIN
    assert context.can_write
    with pytest.raises(AttributeError):
        context.org_id = "org-B"


def test_require_admin_denies_plain_member():
    member = OrgContext(
        org_id="org-D", user_id="u-2", role=Role.MEMBER, is_admin=False, is_demo=False, is_read_only=False,
    )
    admin = OrgContext(
        org_id="org-A", user_id="u-1", role=Role.OWNER, is_admin=True, is_demo=False, is_read_only=False,
    )

    with pytest.raises(Forbidden):
        require_admin(member)
    assert require_admin(admin) is None


def test_unknown_role_in_demo_org_gets_implicit_access():
    result = MembershipValidator(_store()).validate("u-4", "org-demo")

    assert isinstance(result, Membership)
    assert result.implicit
    assert result.role is Role.MEMBER
    assert not result.is_admin
