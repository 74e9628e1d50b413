from fastapi import Depends, Header, HTTPException, Request, status
from compassiq.auth.context import UserIdentity
from compassiq.auth.jwt import decode_access_token
from compassiq.config import settings
from compassiq.tenancy.demo import DEV_DEMO_USER


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extract token from 'Bearer <token>' header."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def _user_from_token(token: str | None) -> UserIdentity | None:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload:
        return None
    return UserIdentity(id=str(payload["sub"]), email=payload.get("email"))


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
) -> UserIdentity | None:
    """
    Resolve the signed-in user, or None.
    Bearer header first, then the session cookie. Dev demo mode answers
    with the demo user when neither carries a valid token.
    """
    user = _user_from_token(_extract_bearer_token(authorization))
    if user is None:
        user = _user_from_token(request.cookies.get(settings.session_cookie_name))
    if user is None and settings.dev_demo_enabled:
        return DEV_DEMO_USER
    return user


async def require_user(user: UserIdentity | None = Depends(get_current_user)) -> UserIdentity:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user
