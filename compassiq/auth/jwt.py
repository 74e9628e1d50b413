from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from compassiq.config import settings
from compassiq.tenancy.resolver import PreviewSession

PREVIEW_TOKEN_TYPE = "preview"


def create_access_token(user_id: str, email: str | None = None, expires_minutes: int = 60) -> str:
    """Create a token shaped like a Supabase session access token."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": now + timedelta(minutes=expires_minutes),
        "iat": now,
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a Supabase access token. Returns payload or None if invalid."""
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError:
        return None
    if payload.get("type") == PREVIEW_TOKEN_TYPE or not payload.get("sub") or not payload.get("aud"):
        return None
    return payload


def create_preview_token(preview_id: str, org_id: str, expires_at: datetime) -> str:
    """Sign the preview cookie value. Expiry is fixed here and never extended."""
    payload = {
        "sub": preview_id,
        "org_id": org_id,
        "type": PREVIEW_TOKEN_TYPE,
        "exp": expires_at,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


def decode_preview_token(token: str) -> PreviewSession | None:
    """Decode a preview cookie. Returns None if tampered or malformed.

    Expired tokens still decode; callers judge expiry with PreviewSession.is_active.
    """
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError:
        return None
    if payload.get("type") != PREVIEW_TOKEN_TYPE:
        return None
    if not payload.get("sub") or not payload.get("org_id") or payload.get("exp") is None:
        return None
    try:
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    except (TypeError, ValueError):
        return None
    return PreviewSession(
        preview_id=str(payload["sub"]),
        preview_org_id=str(payload["org_id"]),
        expires_at=expires_at,
    )
