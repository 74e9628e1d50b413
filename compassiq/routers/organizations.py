import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from postgrest import APIError
from compassiq.auth import UserIdentity, require_user
from compassiq.config import settings
from compassiq.db import get_db
from compassiq.domain.context_errors import TransientLookupFailure
from compassiq.domain.db_errors import (
    PG_UNIQUE_VIOLATION,
    db_error_code,
    is_read_only_violation,
    normalize_db_error,
)
from compassiq.models.organizations import OrganizationCreate, OrganizationResponse, OrganizationUpdate
from compassiq.observability import incr_metric, log_event
from compassiq.tenancy.context import OrgContext
from compassiq.tenancy.cookies import CookieStore, org_cookie_options
from compassiq.tenancy.dependencies import (
    get_cookie_store,
    get_org_store,
    http_error,
    require_org_context,
    require_write_access,
)
from compassiq.tenancy.roles import Role
from compassiq.tenancy.store import OrgStore

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


def _db_error_status(exc: APIError) -> int:
    if is_read_only_violation(exc):
        return status.HTTP_403_FORBIDDEN
    if db_error_code(exc) == PG_UNIQUE_VIOLATION:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def _discard_ownerless_organization(db: Any, org_id: str, request_id: str | None) -> None:
    """Remove an org whose owner membership could not be written."""
    try:
        db.table("organizations").delete().eq("id", org_id).execute()
    except APIError as exc:
        log_event(
            "organization_rollback_failed",
            level=logging.ERROR,
            request_id=request_id,
            org_id=org_id,
            error=str(exc),
        )
        return
    incr_metric("organization.rolled_back")


@router.post("/", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    request: Request,
    user: UserIdentity = Depends(require_user),
    db: Any = Depends(get_db),
    cookies: CookieStore = Depends(get_cookie_store),
):
    """Create an organization owned by the caller and make it the active one."""
    request_id = getattr(request.state, "request_id", None)
    try:
        result = db.table("organizations").insert({
            "name": data.name,
            "slug": data.slug,
        }).execute()
    except APIError as exc:
        raise HTTPException(status_code=_db_error_status(exc), detail=normalize_db_error(exc)) from exc
    org = result.data[0]

    try:
        db.table("memberships").insert({
            "user_id": user.id,
            "org_id": org["id"],
            "role": Role.OWNER.value,
        }).execute()
    except APIError as exc:
        _discard_ownerless_organization(db, str(org["id"]), request_id)
        raise HTTPException(status_code=_db_error_status(exc), detail=normalize_db_error(exc)) from exc

    cookies.set(settings.org_cookie_name, str(org["id"]), org_cookie_options(settings))
    incr_metric("organization.created")
    log_event(
        "organization_created",
        request_id=request_id,
        user_id=user.id,
        org_id=org["id"],
    )
    return org


@router.get("/current", response_model=OrganizationResponse)
async def get_current_organization(
    context: OrgContext = Depends(require_org_context),
    store: OrgStore = Depends(get_org_store),
):
    try:
        org = store.get_organization(context.org_id)
    except TransientLookupFailure as exc:
        raise http_error(exc) from exc
    if org is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return OrganizationResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        is_demo=org.is_demo,
        is_read_only=org.is_read_only,
    )


@router.put("/current", response_model=OrganizationResponse)
async def update_current_organization(
    data: OrganizationUpdate,
    context: OrgContext = Depends(require_write_access),
    db: Any = Depends(get_db),
):
    """Rename the active organization. Admins of writable orgs only."""
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
    try:
        result = db.table("organizations").update(update_data).eq(
            "id", context.org_id
        ).is_("deleted_at", "null").execute()
    except APIError as exc:
        raise HTTPException(status_code=_db_error_status(exc), detail=normalize_db_error(exc)) from exc

    if not result.data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return result.data[0]
