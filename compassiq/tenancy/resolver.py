from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PreviewSession:
    """A time-bounded, read-only view of one organization.

    Created by the preview enter action and destroyed by exit or expiry.
    Expiry is fixed at creation; nothing extends it.
    """

    preview_id: str
    preview_org_id: str
    expires_at: datetime

    def is_active(self, now: datetime | None = None) -> bool:
        return (now or _now_utc()) < self.expires_at


def resolve_org_id(
    cookie_org_id: str | None,
    preview: PreviewSession | None,
    explicit_override: str | None = None,
    *,
    now: datetime | None = None,
) -> str | None:
    """Pick the org id a request acts as.

    Precedence: explicit override (switch action only), then an active
    preview session, then the org cookie. A preview that disagrees with the
    cookie wins for as long as it is active. Returns None when nothing
    applies; the caller decides between login and org picker.
    """
    if explicit_override and explicit_override.strip():
        return explicit_override.strip()
    if preview is not None and preview.is_active(now):
        return preview.preview_org_id
    if cookie_org_id and cookie_org_id.strip():
        return cookie_org_id.strip()
    return None
