from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from compassiq.domain.context_errors import TransientLookupFailure


@dataclass(frozen=True)
class Organization:
    id: str
    name: str = ""
    slug: str = ""
    is_demo: bool = False
    is_read_only: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Organization:
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            slug=row.get("slug") or "",
            is_demo=bool(row.get("is_demo")),
            is_read_only=bool(row.get("is_read_only")),
        )


class OrgStore:
    """Equality-filtered reads against the tenant tables.

    Any client error is re-raised as TransientLookupFailure so callers can
    fail closed without guessing at driver exception types.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def _execute(self, operation: str, query: Any) -> list[dict[str, Any]]:
        try:
            result = query.execute()
        except Exception as exc:
            raise TransientLookupFailure(operation, exc) from exc
        return list(result.data or [])

    def get_organization(self, org_id: str) -> Organization | None:
        rows = self._execute(
            "organization",
            self._client.table("organizations")
            .select("id, name, slug, is_demo, is_read_only")
            .eq("id", org_id)
            .is_("deleted_at", "null")
            .limit(1),
        )
        return Organization.from_row(rows[0]) if rows else None

    def get_organizations(self, org_ids: list[str]) -> dict[str, Organization]:
        if not org_ids:
            return {}
        rows = self._execute(
            "organization",
            self._client.table("organizations")
            .select("id, name, slug, is_demo, is_read_only")
            .in_("id", org_ids)
            .is_("deleted_at", "null"),
        )
        return {str(row["id"]): Organization.from_row(row) for row in rows}

    def get_membership_row(self, user_id: str, org_id: str) -> dict[str, Any] | None:
        rows = self._execute(
            "membership",
            self._client.table("memberships")
            .select("user_id, org_id, role")
            .eq("user_id", user_id)
            .eq("org_id", org_id)
            .limit(1),
        )
        return rows[0] if rows else None

    def list_membership_rows(self, user_id: str) -> list[dict[str, Any]]:
        return self._execute(
            "membership",
            self._client.table("memberships")
            .select("user_id, org_id, role, created_at")
            .eq("user_id", user_id)
            .order("created_at"),
        )

    def first_membership_org_id(self, user_id: str) -> str | None:
        """Oldest membership whose organization still exists."""
        rows = self.list_membership_rows(user_id)
        organizations = self.get_organizations([str(row["org_id"]) for row in rows])
        for row in rows:
            if str(row["org_id"]) in organizations:
                return str(row["org_id"])
        return None

    def get_preview_workspace(self, preview_id: str, org_id: str) -> dict[str, Any] | None:
        rows = self._execute(
            "preview_workspace",
            self._client.table("preview_workspaces")
            .select("id, org_id, name")
            .eq("id", preview_id)
            .eq("org_id", org_id)
            .limit(1),
        )
        return rows[0] if rows else None
