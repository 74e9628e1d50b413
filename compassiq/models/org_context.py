from pydantic import BaseModel
from datetime import datetime


class OrgContextResponse(BaseModel):
    org_id: str
    org_name: str
    org_slug: str
    user_id: str
    role: str
    mode: str
    is_admin: bool
    is_demo: bool
    is_read_only: bool
    is_preview: bool
    preview_org_id: str | None = None
    can_write: bool


class MembershipSummary(BaseModel):
    org_id: str
    name: str
    slug: str
    role: str
    is_demo: bool
    is_active: bool


class SwitchOrganizationRequest(BaseModel):
    org_id: str | None = None


class SwitchOrganizationResponse(BaseModel):
    success: bool
    org_id: str | None = None
    error: str | None = None


class PreviewStatusResponse(BaseModel):
    preview_id: str | None = None
    preview_org_id: str | None = None
    expires_at: datetime | None = None
    active: bool = False
