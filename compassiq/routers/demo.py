import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from compassiq.config import settings
from compassiq.db import get_db
from compassiq.observability import incr_metric, log_event
from compassiq.tenancy.context import OrgContext
from compassiq.tenancy.demo import DEMO_SETTINGS_DEFAULTS
from compassiq.tenancy.dependencies import get_org_context

router = APIRouter(prefix="/api/demo", tags=["demo"])


@router.post("/reset")
async def reset_demo(
    request: Request,
    context: OrgContext | None = Depends(get_org_context),
    db: Any = Depends(get_db),
):
    """Restore demo org settings. Anyone but a demo-org admin sees a 404."""
    request_id = getattr(request.state, "request_id", None)
    if context is None or not context.is_admin or not context.is_demo or settings.dev_demo_enabled:
        incr_metric("demo.reset.rejected")
        return JSONResponse({"ok": False, "error": "not found"}, status_code=404)

    try:
        db.table("org_settings").upsert(
            {
                "org_id": context.org_id,
                **DEMO_SETTINGS_DEFAULTS,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="org_id",
        ).execute()
    except Exception as exc:
        log_event(
            "demo_reset_failed",
            level=logging.WARNING,
            request_id=request_id,
            org_id=context.org_id,
            error=str(exc),
        )
        return JSONResponse({"ok": False, "error": "Failed to reset"}, status_code=500)

    incr_metric("demo.reset.succeeded")
    log_event("demo_reset", request_id=request_id, org_id=context.org_id, user_id=context.user_id)
    return {"ok": True}
