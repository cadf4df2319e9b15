"""Structured logging for the request lifecycle."""

import logging
from typing import Any

from backend.app.models.reference import CommunitySnapshot
from backend.app.models.users import SignedInUser

logger = logging.getLogger(__name__)


class StructuredRequestLogger:
    """Structured logger for per-request context and policy decisions."""

    def log_host(self, host: str, community: CommunitySnapshot | None) -> None:
        """Log the community resolved for a Host header."""
        log_data: dict[str, Any] = {
            "host": host,
            "community_id": community.id if community else None,
        }
        community_id = community.id if community else ""
        community_name = community.name if community else ""
        logger.info(
            f"  Host {host}, community #{community_id} ({community_name})",
            extra={"structured": log_data},
        )

    def log_user(self, user: SignedInUser | None) -> None:
        """Log the signed-in user, if any."""
        if user is None:
            logger.info("  No user signed in")
            return

        logger.info(
            f"  User {user.id} ({user.username}) signed in",
            extra={"structured": {"user_id": user.id}},
        )

    def log_blocked_write(
        self,
        user: SignedInUser,
        ip: str,
        method: str,
        path: str,
        blocked_item_id: int,
    ) -> None:
        """Log a rejected write request from a blocked identity."""
        log_data: dict[str, Any] = {
            "user_id": user.id,
            "ip": ip,
            "email_domain": user.email_domain,
            "method": method,
            "path": path,
            "blocked_item_id": blocked_item_id,
        }
        logger.warning(
            f"Blocked write request: {method} {path} from user {user.id}",
            extra={"structured": log_data},
        )
