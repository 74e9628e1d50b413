from fastapi import APIRouter, Depends, HTTPException, Request, status
from compassiq.auth import UserIdentity, get_current_user, require_user
from compassiq.domain.context_errors import Misconfigured, TransientLookupFailure
from compassiq.models.org_context import (
    MembershipSummary,
    OrgContextResponse,
    SwitchOrganizationRequest,
    SwitchOrganizationResponse,
)
from compassiq.tenancy.context import OrgContext, denial_error, switch_organization
from compassiq.tenancy.cookies import CookieStore
from compassiq.tenancy.dependencies import (
    get_cookie_store,
    get_org_context,
    get_org_store,
    http_error,
    require_org_context,
)
from compassiq.tenancy.membership import Denied
from compassiq.tenancy.roles import normalize_role
from compassiq.tenancy.store import OrgStore

router = APIRouter(prefix="/api/org", tags=["org"])


def context_response(context: OrgContext) -> OrgContextResponse:
    return OrgContextResponse(
        org_id=context.org_id,
        org_name=context.org_name,
        org_slug=context.org_slug,
        user_id=context.user_id,
        role=context.role.value,
        mode=context.mode,
        is_admin=context.is_admin,
        is_demo=context.is_demo,
        is_read_only=context.is_read_only,
        is_preview=context.is_preview,
        preview_org_id=context.preview_org_id,
        can_write=context.can_write,
    )


@router.get("/context", response_model=OrgContextResponse)
async def get_context(context: OrgContext = Depends(require_org_context)):
    """Org context the current request resolved to."""
    return context_response(context)


@router.get("/memberships", response_model=list[MembershipSummary])
async def list_memberships(
    user: UserIdentity = Depends(require_user),
    store: OrgStore = Depends(get_org_store),
    context: OrgContext | None = Depends(get_org_context),
):
    """Organizations the user belongs to, oldest membership first."""
    try:
        rows = store.list_membership_rows(user.id)
        organizations = store.get_organizations([str(row["org_id"]) for row in rows])
    except TransientLookupFailure as exc:
        raise http_error(exc) from exc

    active_org_id = context.org_id if context else None
    summaries = []
    for row in rows:
        org = organizations.get(str(row["org_id"]))
        if org is None:
            continue
        try:
            role = normalize_role(row.get("role"))
        except ValueError:
            continue
        summaries.append(MembershipSummary(
            org_id=org.id,
            name=org.name,
            slug=org.slug,
            role=role.value,
            is_demo=org.is_demo,
            is_active=org.id == active_org_id,
        ))
    return summaries


@router.post("/switch", response_model=SwitchOrganizationResponse)
async def switch_org(
    data: SwitchOrganizationRequest,
    request: Request,
    user: UserIdentity | None = Depends(get_current_user),
    store: OrgStore = Depends(get_org_store),
    cookies: CookieStore = Depends(get_cookie_store),
):
    """Switch the active organization. The org cookie changes only on success."""
    try:
        outcome = switch_organization(
            store,
            user,
            data.org_id,
            cookies,
            request_id=getattr(request.state, "request_id", None),
        )
    except Misconfigured as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if isinstance(outcome, Denied):
        raise http_error(denial_error(outcome))
    return SwitchOrganizationResponse(success=True, org_id=outcome.org_id)
