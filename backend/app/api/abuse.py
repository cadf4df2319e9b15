"""Helpers for recording write attempts from blocked identities."""

import json
from typing import Any

from fastapi import Request

from backend.app.models.users import SignedInUser


def extract_ip(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop when behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


async def request_params(request: Request) -> dict[str, Any]:
    """Merge path, query and body parameters the way they reach an action."""
    params: dict[str, Any] = dict(request.path_params)
    params.update(request.query_params)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        params.update({key: value for key, value in form.items() if isinstance(value, str)})
    elif content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        if isinstance(body, dict):
            params.update(body)

    return params


def filter_params(params: dict[str, Any], filters: list[str]) -> dict[str, Any]:
    """Drop parameters whose name contains any filtered fragment."""
    lowered = [fragment.lower() for fragment in filters]
    return {
        key: value
        for key, value in params.items()
        if not any(fragment in key.lower() for fragment in lowered)
    }


def full_path(request: Request) -> str:
    """Path with query string, as requested."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def blocked_write_comment(
    user: SignedInUser,
    ip: str,
    method: str,
    path: str,
    params: dict[str, Any],
) -> str:
    """Audit log comment describing a blocked write attempt."""
    blocked_info = f"ip: {ip}\nemail: {user.email}\ndomain: {user.email_domain}"
    request_info = f"request: {method} {path}"
    params_info = "\n".join(f"  {key}: {value}" for key, value in params.items())
    return f"{blocked_info}\n{request_info}\n{params_info}"


def wants_json(request: Request) -> bool:
    """Whether the requested response format is JSON rather than HTML."""
    if request.url.path.endswith(".json"):
        return True
    if request.query_params.get("format") == "json":
        return True

    accept = request.headers.get("accept", "")
    if "text/html" in accept:
        return False
    return "application/json" in accept
