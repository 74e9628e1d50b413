from functools import lru_cache

from supabase import Client, create_client

from compassiq.config import settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Service-role Supabase client, created on first use."""
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


def get_db() -> Client:
    """FastAPI dependency; tests override it with an in-memory fake."""
    return get_supabase()
