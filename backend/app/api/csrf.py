"""CSRF protection using a double-submit cookie."""

import secrets

from fastapi import Request
from fastapi.responses import Response

from backend.app.api.errors import InvalidAuthenticityToken
from backend.app.config import Settings

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def new_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def csrf_token_for(request: Request, settings: Settings) -> str:
    """Token to embed in forms: the existing cookie, or a fresh one."""
    token = getattr(request.state, "csrf_token", None)
    if token:
        return token

    token = request.cookies.get(settings.csrf_cookie_name) or new_csrf_token()
    request.state.csrf_token = token
    return token


def set_csrf_cookie(request: Request, response: Response, settings: Settings) -> None:
    """Persist the request's token when the browser does not have it yet."""
    token = getattr(request.state, "csrf_token", None)
    if not token or request.cookies.get(settings.csrf_cookie_name) == token:
        return

    response.set_cookie(
        key=settings.csrf_cookie_name,
        value=token,
        httponly=False,
        samesite="strict",
        path="/",
    )


async def verify_authenticity_token(request: Request, settings: Settings) -> None:
    """Check a write request's submitted token against the CSRF cookie.

    The token is read from the configured header first, then from the
    configured form field.

    Raises:
        InvalidAuthenticityToken: If the token is missing or does not match
    """
    if not settings.csrf_protection_enabled or request.method.upper() in SAFE_METHODS:
        return

    cookie_token = request.cookies.get(settings.csrf_cookie_name)
    submitted = request.headers.get(settings.csrf_header_name)

    if not submitted:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(
            ("application/x-www-form-urlencoded", "multipart/form-data")
        ):
            form = await request.form()
            value = form.get(settings.csrf_form_field)
            submitted = value if isinstance(value, str) else None

    if not cookie_token or not submitted:
        raise InvalidAuthenticityToken("missing authenticity token")
    if not secrets.compare_digest(cookie_token, submitted):
        raise InvalidAuthenticityToken("authenticity token mismatch")
