"""Request short-circuit exceptions and their handlers."""

import logging

from fastapi import Request, status
from fastapi.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

# Shown to blocked identities instead of anything that reveals the block
USEFUL_ERROR_MESSAGES = [
    "Something went wrong, and it's probably our fault. Try again later.",
    "We couldn't save that. Our hamsters are looking into it.",
    "That request wandered off somewhere. Please try again.",
    "The server had a moment. Give it a minute and try again.",
    "An unexpected error occurred while processing your request.",
]


class HaltRequest(Exception):
    """Raised by a before-action that already produced the response."""

    def __init__(self, response: Response) -> None:
        super().__init__(f"request halted with status {response.status_code}")
        self.response = response


class InvalidAuthenticityToken(Exception):
    """Raised when a write request carries a missing or mismatched CSRF token."""


async def halt_request_handler(request: Request, exc: HaltRequest) -> Response:
    """Return the response prepared by the halting before-action."""
    return exc.response


async def invalid_authenticity_token_handler(
    request: Request, exc: InvalidAuthenticityToken
) -> Response:
    """Reject a forged write request."""
    logger.warning(f"[CSRF] {request.method} {request.url.path}: {exc}")
    return PlainTextResponse(
        "Invalid authenticity token", status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )
