from dataclasses import dataclass


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated user as reported by the auth provider."""
    id: str
    email: str | None = None
