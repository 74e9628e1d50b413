#!/usr/bin/env python3
"""
Seed the shared demo organization.

Reads DEMO_ORG_ID (and optionally DEMO_ORG_NAME / DEMO_ORG_SLUG) from .env.
The stored is_demo flag is what makes an org readable without membership
and never writable, so this script only has to make sure that flag is set.
Run from project root: python scripts/seed_demo_org.py
"""

import os
import sys

from dotenv import load_dotenv

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

load_dotenv(os.path.join(project_root, ".env"))

from compassiq.config import settings
from compassiq.db import get_supabase


def main():
    org_id = settings.demo_org_id
    if not org_id:
        print("Error: DEMO_ORG_ID must be set in .env")
        sys.exit(1)

    name = os.getenv("DEMO_ORG_NAME", "CompassIQ Demo")
    slug = os.getenv("DEMO_ORG_SLUG", "demo")
    supabase = get_supabase()

    existing = supabase.table("organizations").select("id, is_demo").eq("id", org_id).execute()
    if existing.data:
        if existing.data[0].get("is_demo"):
            print(f"Demo organization '{org_id}' already flagged.")
            sys.exit(0)
        supabase.table("organizations").update({"is_demo": True}).eq("id", org_id).execute()
        print(f"Flagged existing organization '{org_id}' as demo.")
        return

    result = supabase.table("organizations").insert({
        "id": org_id,
        "name": name,
        "slug": slug,
        "is_demo": True,
        "is_read_only": True,
    }).execute()

    if result.data:
        org = result.data[0]
        print("Created demo organization:")
        print(f"  ID: {org['id']}")
        print(f"  Slug: {org['slug']}")
    else:
        print("Error: Failed to create demo organization")
        sys.exit(1)


if __name__ == "__main__":
    main()
