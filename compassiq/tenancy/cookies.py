from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from starlette.responses import Response

from compassiq.config import Settings


@dataclass(frozen=True)
class CookieOptions:
    http_only: bool = True
    secure: bool = False
    same_site: Literal["lax", "strict", "none"] = "lax"
    max_age: int | None = None
    path: str = "/"


def org_cookie_options(settings: Settings) -> CookieOptions:
    return CookieOptions(
        http_only=True,
        secure=settings.is_production,
        same_site="lax",
        max_age=settings.org_cookie_max_age_seconds,
        path=settings.org_cookie_path,
    )


def preview_cookie_options(settings: Settings) -> CookieOptions:
    return CookieOptions(
        http_only=True,
        secure=settings.is_production,
        same_site="lax",
        max_age=settings.preview_ttl_seconds,
        path=settings.preview_cookie_path,
    )


class CookieStore:
    """Request cookies in, ``Set-Cookie`` headers out.

    Reads come from the inbound request. Writes go to the bound outbound
    response and only reach the client when that response is sent. Values
    are passed through untouched.
    """

    def __init__(self, cookies: Mapping[str, str], response: Response | None = None) -> None:
        self._cookies = dict(cookies)
        self._response = response

    def bind(self, response: Response) -> CookieStore:
        """Same inbound cookies, writing to a different response."""
        return CookieStore(self._cookies, response)

    def get(self, name: str) -> str | None:
        value = self._cookies.get(name)
        return value or None

    def set(self, name: str, value: str, options: CookieOptions) -> None:
        self._require_response().set_cookie(
            key=name,
            value=value,
            max_age=options.max_age,
            path=options.path,
            secure=options.secure,
            httponly=options.http_only,
            samesite=options.same_site,
        )

    def delete(self, name: str, options: CookieOptions | None = None) -> None:
        options = options or CookieOptions()
        self._require_response().delete_cookie(
            key=name,
            path=options.path,
            secure=options.secure,
            httponly=options.http_only,
            samesite=options.same_site,
        )

    def _require_response(self) -> Response:
        if self._response is None:
            raise RuntimeError("CookieStore is read-only: no response bound")
        return self._response
