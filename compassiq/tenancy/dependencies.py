from typing import Any

from fastapi import Depends, HTTPException, Request, Response
from compassiq.auth.context import UserIdentity
from compassiq.auth.dependencies import get_current_user
from compassiq.config import settings
from compassiq.db import get_db
from compassiq.domain.context_errors import (
    Forbidden,
    OrgContextError,
    context_error_detail,
    context_error_http_status,
)
from compassiq.tenancy.context import (
    OrgContext,
    require_admin,
    require_org_context as _require_org_context,
    resolve_org_context,
)
from compassiq.tenancy.cookies import CookieStore
from compassiq.tenancy.demo import (
    DEV_DEMO_ORG_ID,
    DEV_DEMO_ORG_NAME,
    DEV_DEMO_ORG_SLUG,
    DEV_DEMO_ROLE,
    DEV_DEMO_USER,
    read_only_message,
)
from compassiq.tenancy.membership import Denied
from compassiq.tenancy.roles import is_admin_role
from compassiq.tenancy.store import OrgStore


def http_error(exc: OrgContextError) -> HTTPException:
    return HTTPException(
        status_code=context_error_http_status(exc),
        detail=context_error_detail(exc),
    )


def dev_demo_context() -> OrgContext:
    """Fixed read-only context served when dev demo mode is on."""
    return OrgContext(
        org_id=DEV_DEMO_ORG_ID,
        user_id=DEV_DEMO_USER.id,
        role=DEV_DEMO_ROLE,
        is_admin=is_admin_role(DEV_DEMO_ROLE),
        is_demo=True,
        is_read_only=True,
        org_name=DEV_DEMO_ORG_NAME,
        org_slug=DEV_DEMO_ORG_SLUG,
    )


def get_org_store(db: Any = Depends(get_db)) -> OrgStore:
    return OrgStore(db)


def get_cookie_store(request: Request, response: Response) -> CookieStore:
    return CookieStore(request.cookies, response)


async def get_org_context_outcome(
    request: Request,
    user: UserIdentity | None = Depends(get_current_user),
    store: OrgStore = Depends(get_org_store),
    cookies: CookieStore = Depends(get_cookie_store),
) -> OrgContext | Denied:
    """Resolved once per request; FastAPI caches it for every dependant."""
    if settings.dev_demo_enabled:
        return dev_demo_context()
    return resolve_org_context(
        store,
        user,
        cookies,
        request_id=getattr(request.state, "request_id", None),
    )


async def get_org_context(
    outcome: OrgContext | Denied = Depends(get_org_context_outcome),
) -> OrgContext | None:
    """None means not authenticated or no organization could be resolved."""
    return outcome if isinstance(outcome, OrgContext) else None


async def require_org_context(
    outcome: OrgContext | Denied = Depends(get_org_context_outcome),
) -> OrgContext:
    try:
        return _require_org_context(outcome)
    except OrgContextError as exc:
        raise http_error(exc) from exc


async def require_org_admin(context: OrgContext = Depends(require_org_context)) -> OrgContext:
    try:
        require_admin(context)
    except Forbidden as exc:
        raise http_error(exc) from exc
    return context


async def require_write_access(context: OrgContext = Depends(require_org_admin)) -> OrgContext:
    """Admin in a writable org. Demo, preview and read-only orgs are refused."""
    if context.is_read_only:
        message = read_only_message(
            is_preview=context.is_preview,
            is_demo=context.is_demo,
            dev_demo=settings.dev_demo_enabled,
        )
        raise http_error(Forbidden(message, reason="read_only"))
    return context
