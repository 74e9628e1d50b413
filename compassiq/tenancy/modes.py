from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from compassiq.tenancy.membership import Membership
from compassiq.tenancy.resolver import PreviewSession
from compassiq.tenancy.store import Organization


@dataclass(frozen=True)
class OrgMode:
    is_demo: bool
    is_read_only: bool
    is_preview: bool
    is_admin: bool

    @property
    def label(self) -> str:
        if self.is_preview:
            return "preview"
        if self.is_demo:
            return "demo"
        if self.is_read_only:
            return "read_only"
        return "normal"


def classify(
    organization: Organization,
    membership: Membership,
    preview: PreviewSession | None,
    *,
    now: datetime | None = None,
) -> OrgMode:
    """Derive the mode flags for one org. Performs no enforcement."""
    is_preview = (
        preview is not None
        and preview.preview_org_id == organization.id
        and preview.is_active(now)
    )
    is_demo = organization.is_demo
    return OrgMode(
        is_demo=is_demo,
        is_read_only=organization.is_read_only or is_demo or is_preview,
        is_preview=is_preview,
        is_admin=membership.is_admin,
    )
