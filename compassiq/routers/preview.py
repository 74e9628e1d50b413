from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from compassiq.auth import UserIdentity, create_preview_token, get_current_user
from compassiq.config import settings
from compassiq.domain.context_errors import TransientLookupFailure
from compassiq.models.org_context import PreviewStatusResponse
from compassiq.observability import incr_metric, log_event
from compassiq.tenancy.context import OrgContext, denial_error, read_preview_session
from compassiq.tenancy.cookies import CookieStore, preview_cookie_options
from compassiq.tenancy.dependencies import (
    get_cookie_store,
    get_org_context_outcome,
    get_org_store,
    http_error,
)
from compassiq.tenancy.membership import Denied
from compassiq.tenancy.store import OrgStore

router = APIRouter(prefix="/api/preview", tags=["preview"])


@router.get("/enter")
async def enter_preview(
    request: Request,
    preview_id: str | None = Query(None, alias="id"),
    user: UserIdentity | None = Depends(get_current_user),
    outcome: OrgContext | Denied = Depends(get_org_context_outcome),
    store: OrgStore = Depends(get_org_store),
    cookies: CookieStore = Depends(get_cookie_store),
):
    """Start a read-only preview of a workspace owned by the current org."""
    if not preview_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Preview ID required")
    if user is None:
        return RedirectResponse(url="/login", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    if isinstance(outcome, Denied):
        raise http_error(denial_error(outcome))

    try:
        workspace = store.get_preview_workspace(preview_id, outcome.org_id)
    except TransientLookupFailure as exc:
        raise http_error(exc) from exc
    if not workspace:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preview workspace not found")

    expires_at = datetime.now(timezone.utc) + timedelta(seconds=settings.preview_ttl_seconds)
    token = create_preview_token(str(workspace["id"]), str(workspace["org_id"]), expires_at)

    response = RedirectResponse(url=settings.app_base_path, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    cookies.bind(response).set(settings.preview_cookie_name, token, preview_cookie_options(settings))
    incr_metric("preview.entered")
    log_event(
        "preview_entered",
        request_id=getattr(request.state, "request_id", None),
        user_id=user.id,
        org_id=workspace["org_id"],
        preview_id=workspace["id"],
        expires_at=expires_at.isoformat(),
    )
    return response


@router.post("/exit")
async def exit_preview(request: Request, cookies: CookieStore = Depends(get_cookie_store)):
    """End the preview session. Safe to call with no preview active."""
    cookies.delete(settings.preview_cookie_name, preview_cookie_options(settings))
    incr_metric("preview.exited")
    log_event("preview_exited", request_id=getattr(request.state, "request_id", None))
    return {"ok": True}


@router.get("/status", response_model=PreviewStatusResponse)
async def preview_status(cookies: CookieStore = Depends(get_cookie_store)):
    preview = read_preview_session(cookies)
    if preview is None:
        return PreviewStatusResponse()
    return PreviewStatusResponse(
        preview_id=preview.preview_id,
        preview_org_id=preview.preview_org_id,
        expires_at=preview.expires_at,
        active=preview.is_active(),
    )
