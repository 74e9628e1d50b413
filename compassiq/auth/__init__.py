from compassiq.auth.context import UserIdentity
from compassiq.auth.dependencies import get_current_user, require_user
from compassiq.auth.jwt import create_preview_token, decode_access_token, decode_preview_token

__all__ = [
    "UserIdentity",
    "get_current_user",
    "require_user",
    "create_preview_token",
    "decode_access_token",
    "decode_preview_token",
]
