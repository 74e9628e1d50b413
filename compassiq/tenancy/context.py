"""Per-request organization context.

Composes the resolver, membership validator and mode classifier into one
frozen ``OrgContext``. Every handler that touches tenant data receives that
value explicitly; nothing reads the "current organization" from ambient
state. Contexts are rebuilt on every request because membership and org
flags can change between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from compassiq.auth.context import UserIdentity
from compassiq.auth.jwt import decode_preview_token
from compassiq.config import Settings, settings as default_settings
from compassiq.domain.context_errors import (
    AccessDenied,
    Forbidden,
    Misconfigured,
    TransientLookupFailure,
    Unauthenticated,
)
from compassiq.observability import incr_metric, log_event
from compassiq.tenancy.cookies import CookieStore, org_cookie_options, preview_cookie_options
from compassiq.tenancy.membership import (
    Denied,
    DenialReason,
    Membership,
    MembershipValidator,
    is_well_formed_org_id,
)
from compassiq.tenancy.modes import OrgMode, classify
from compassiq.tenancy.resolver import PreviewSession, resolve_org_id
from compassiq.tenancy.roles import Role, is_admin_role, normalize_role
from compassiq.tenancy.store import Organization, OrgStore


class ContextState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    DENIED = "denied"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class OrgContext:
    org_id: str
    user_id: str
    role: Role
    is_admin: bool
    is_demo: bool
    is_read_only: bool
    is_preview: bool = False
    preview_org_id: str | None = None
    org_name: str = ""
    org_slug: str = ""

    def __post_init__(self) -> None:
        role = normalize_role(self.role)
        object.__setattr__(self, "role", role)
        if self.is_admin != is_admin_role(role):
            raise ValueError("is_admin must match role")
        if self.is_preview and (self.preview_org_id != self.org_id or not self.is_read_only):
            raise ValueError("preview context must target its own org and be read-only")
        if not self.is_preview and self.preview_org_id is not None:
            raise ValueError("preview_org_id is only set in preview mode")
        if self.is_demo and not self.is_read_only:
            raise ValueError("demo context must be read-only")

    @property
    def can_write(self) -> bool:
        return self.is_admin and not self.is_read_only

    @property
    def mode(self) -> str:
        return OrgMode(
            is_demo=self.is_demo,
            is_read_only=self.is_read_only,
            is_preview=self.is_preview,
            is_admin=self.is_admin,
        ).label

    @classmethod
    def assemble(
        cls,
        organization: Organization,
        membership: Membership,
        mode: OrgMode,
    ) -> OrgContext:
        return cls(
            org_id=organization.id,
            user_id=membership.user_id,
            role=membership.role,
            is_admin=mode.is_admin,
            is_demo=mode.is_demo,
            is_read_only=mode.is_read_only,
            is_preview=mode.is_preview,
            preview_org_id=organization.id if mode.is_preview else None,
            org_name=organization.name,
            org_slug=organization.slug,
        )


class OrgContextResolver:
    """One-shot resolution for a single request.

    ``state`` walks UNRESOLVED -> RESOLVING -> DENIED | RESOLVED. Store
    failures end in DENIED (reason ``lookup_failed``); anything unexpected
    also leaves the resolver DENIED before propagating.
    """

    def __init__(
        self,
        store: OrgStore,
        *,
        fallback_to_first_membership: bool = True,
        now: datetime | None = None,
    ) -> None:
        self._store = store
        self._validator = MembershipValidator(store)
        self._fallback = fallback_to_first_membership
        self._now = now
        self.state = ContextState.UNRESOLVED
        self.defaulted_org_id: str | None = None

    def resolve(
        self,
        user: UserIdentity | None,
        *,
        cookie_org_id: str | None,
        preview: PreviewSession | None,
        explicit_override: str | None = None,
    ) -> OrgContext | Denied:
        if self.state is not ContextState.UNRESOLVED:
            raise RuntimeError(f"context already {self.state.value}")
        try:
            outcome = self._resolve(user, cookie_org_id, preview, explicit_override)
        except Exception:
            self.state = ContextState.DENIED
            raise
        self.state = ContextState.RESOLVED if isinstance(outcome, OrgContext) else ContextState.DENIED
        return outcome

    def _resolve(
        self,
        user: UserIdentity | None,
        cookie_org_id: str | None,
        preview: PreviewSession | None,
        explicit_override: str | None,
    ) -> OrgContext | Denied:
        if user is None:
            return Denied(DenialReason.UNAUTHENTICATED)

        org_id = resolve_org_id(cookie_org_id, preview, explicit_override, now=self._now)
        if org_id is None and self._fallback:
            try:
                org_id = self._store.first_membership_org_id(user.id)
            except TransientLookupFailure as exc:
                return Denied(DenialReason.LOOKUP_FAILED, error=exc)
            self.defaulted_org_id = org_id
        if org_id is None:
            return Denied(DenialReason.NO_ORGANIZATION)

        self.state = ContextState.RESOLVING
        if not is_well_formed_org_id(org_id):
            return Denied(DenialReason.MALFORMED_ORG_ID, org_id=org_id)
        try:
            organization = self._store.get_organization(org_id)
        except TransientLookupFailure as exc:
            return Denied(DenialReason.LOOKUP_FAILED, org_id=org_id, error=exc)
        if organization is None:
            return Denied(DenialReason.ORG_NOT_FOUND, org_id=org_id)

        membership = self._validator.validate(user.id, org_id, organization=organization)
        if isinstance(membership, Denied):
            return membership

        mode = classify(organization, membership, preview, now=self._now)
        return OrgContext.assemble(organization, membership, mode)


def read_preview_session(cookies: CookieStore, config: Settings = default_settings) -> PreviewSession | None:
    token = cookies.get(config.preview_cookie_name)
    if not token:
        return None
    return decode_preview_token(token)


def resolve_org_context(
    store: OrgStore,
    user: UserIdentity | None,
    cookies: CookieStore,
    *,
    config: Settings = default_settings,
    now: datetime | None = None,
    request_id: str | None = None,
) -> OrgContext | Denied:
    """Resolve the context for one request from its cookies.

    Side effects on ``cookies``: a defaulted org id is written back to the
    org cookie, and an expired preview cookie is removed.
    """
    preview = read_preview_session(cookies, config)
    resolver = OrgContextResolver(
        store,
        fallback_to_first_membership=config.fallback_to_first_membership,
        now=now,
    )
    outcome = resolver.resolve(
        user,
        cookie_org_id=cookies.get(config.org_cookie_name),
        preview=preview,
    )

    if preview is not None and not preview.is_active(now):
        cookies.delete(config.preview_cookie_name, preview_cookie_options(config))
        incr_metric("preview.expired")

    if isinstance(outcome, Denied):
        incr_metric("org_context.denied", reason=outcome.reason.value)
        log_event(
            "org_context_denied",
            level=logging.WARNING if outcome.is_transient else logging.INFO,
            request_id=request_id,
            user_id=user.id if user else None,
            org_id=outcome.org_id,
            reason=outcome.reason.value,
            error=str(outcome.error) if outcome.error else None,
        )
        return outcome

    if resolver.defaulted_org_id:
        cookies.set(config.org_cookie_name, outcome.org_id, org_cookie_options(config))
    incr_metric("org_context.resolved", mode=outcome.mode)
    return outcome


def denial_error(denied: Denied) -> Unauthenticated | AccessDenied | TransientLookupFailure:
    """Map a denial to the error a handler that needs a context raises."""
    if denied.reason is DenialReason.UNAUTHENTICATED:
        return Unauthenticated()
    if denied.is_transient:
        if isinstance(denied.error, TransientLookupFailure):
            return denied.error
        return TransientLookupFailure("org_context", denied.error)
    return AccessDenied(reason=denied.reason.value)


def require_org_context(outcome: OrgContext | Denied | None) -> OrgContext:
    if outcome is None:
        raise Unauthenticated()
    if isinstance(outcome, Denied):
        raise denial_error(outcome)
    return outcome


def require_admin(context: OrgContext) -> None:
    if not context.is_admin:
        raise Forbidden("Admin role required", reason="admin_required")


def switch_organization(
    store: OrgStore,
    user: UserIdentity | None,
    org_id: str | None,
    cookies: CookieStore,
    *,
    config: Settings = default_settings,
    now: datetime | None = None,
    request_id: str | None = None,
) -> OrgContext | Denied:
    """Make ``org_id`` the active organization for subsequent requests.

    Membership is checked again. On success the org cookie is overwritten and
    any preview of a different org, or an expired one, ends; on denial no
    cookie changes.
    """
    candidate = (org_id or "").strip()
    if not candidate:
        raise Misconfigured("org_id is required")
    if not is_well_formed_org_id(candidate):
        raise Misconfigured("org_id is malformed")

    preview = read_preview_session(cookies, config)
    resolver = OrgContextResolver(store, fallback_to_first_membership=False, now=now)
    outcome = resolver.resolve(
        user,
        cookie_org_id=cookies.get(config.org_cookie_name),
        preview=preview,
        explicit_override=candidate,
    )
    if isinstance(outcome, Denied):
        incr_metric("org_switch.denied", reason=outcome.reason.value)
        log_event(
            "org_switch_denied",
            request_id=request_id,
            user_id=user.id if user else None,
            org_id=candidate,
            reason=outcome.reason.value,
        )
        return outcome

    cookies.set(config.org_cookie_name, outcome.org_id, org_cookie_options(config))
    if preview is not None and (preview.preview_org_id != outcome.org_id or not preview.is_active(now)):
        cookies.delete(config.preview_cookie_name, preview_cookie_options(config))
    incr_metric("org_switch.succeeded")
    log_event("org_switched", request_id=request_id, user_id=outcome.user_id, org_id=outcome.org_id)
    return outcome
