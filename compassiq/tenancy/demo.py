from __future__ import annotations

from compassiq.auth.context import UserIdentity
from compassiq.tenancy.roles import Role


DEV_DEMO_USER = UserIdentity(id="dev-demo-user", email="dev@demo.local")
DEV_DEMO_ORG_ID = "dev-demo-org"
DEV_DEMO_ORG_NAME = "Dev Demo Org"
DEV_DEMO_ORG_SLUG = "dev-demo"
DEV_DEMO_ROLE = Role.OWNER

DEMO_SETTINGS_DEFAULTS = {
    "roi_defaults": {
        "averageDealSize": 75000,
        "monthlyLeads": 50,
        "currentWinRate": 25,
        "targetWinRate": 35,
        "currentSalesCycleDays": 60,
        "targetSalesCycleDays": 45,
        "reportingHoursPerWeek": 8,
        "hourlyCost": 75,
        "arDaysReductionTarget": 10,
        "churnReductionTarget": 2,
    },
    "alert_thresholds": {},
    "metadata": {},
}


def read_only_message(*, is_preview: bool, is_demo: bool, dev_demo: bool = False) -> str:
    if dev_demo:
        return "Dev Demo Mode is read-only."
    if is_preview:
        return "Preview mode is read-only."
    if is_demo:
        return "Demo organization is read-only."
    return "Organization is read-only."
