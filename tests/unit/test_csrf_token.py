"""Unit tests for CSRF verification."""

import pytest

from backend.app.api.csrf import csrf_token_for, verify_authenticity_token
from backend.app.api.errors import InvalidAuthenticityToken
from backend.app.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(csrf_protection_enabled=True)


@pytest.mark.asyncio
async def test_safe_methods_skip_check(make_request, settings: Settings) -> None:
    """Test GET requests need no token."""
    await verify_authenticity_token(make_request(method="GET"), settings)


@pytest.mark.asyncio
async def test_missing_token_raises(make_request, settings: Settings) -> None:
    """Test a POST without any token is rejected."""
    with pytest.raises(InvalidAuthenticityToken):
        await verify_authenticity_token(make_request(method="POST"), settings)


@pytest.mark.asyncio
async def test_header_token_matching_cookie_passes(make_request, settings: Settings) -> None:
    """Test the header token is compared against the cookie."""
    request = make_request(headers={"Cookie": "csrf_token=abc123", "X-CSRF-Token": "abc123"})

    await verify_authenticity_token(request, settings)


@pytest.mark.asyncio
async def test_mismatched_token_raises(make_request, settings: Settings) -> None:
    """Test a token that differs from the cookie is rejected."""
    request = make_request(headers={"Cookie": "csrf_token=abc123", "X-CSRF-Token": "zzz999"})

    with pytest.raises(InvalidAuthenticityToken, match="mismatch"):
        await verify_authenticity_token(request, settings)


@pytest.mark.asyncio
async def test_form_field_token_passes(make_request, settings: Settings) -> None:
    """Test the token may be submitted as a form field."""
    request = make_request(
        headers={
            "Cookie": "csrf_token=abc123",
            "Content-Type": "application/x-www-form-urlencoded",
        },
        body=b"authenticity_token=abc123&title=Hi",
    )

    await verify_authenticity_token(request, settings)


@pytest.mark.asyncio
async def test_disabled_protection_skips_check(make_request) -> None:
    """Test the check can be turned off."""
    await verify_authenticity_token(
        make_request(method="POST"), Settings(csrf_protection_enabled=False)
    )


def test_csrf_token_for_reuses_cookie(make_request, settings: Settings) -> None:
    """Test the existing cookie token is embedded rather than a new one."""
    request = make_request(method="GET", headers={"Cookie": "csrf_token=abc123"})

    assert csrf_token_for(request, settings) == "abc123"


def test_csrf_token_for_is_stable_within_request(make_request, settings: Settings) -> None:
    """Test a fresh token is generated once per request."""
    request = make_request(method="GET")

    first = csrf_token_for(request, settings)
    assert first
    assert csrf_token_for(request, settings) == first
