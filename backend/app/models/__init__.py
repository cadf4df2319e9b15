"""Models package - re-exports for convenience."""

from backend.app.models.reference import (
    CategorySnapshot,
    CommunitySnapshot,
    HotQuestionSnapshot,
    PinnedLinkSnapshot,
)
from backend.app.models.users import SignedInUser

__all__ = [
    "CategorySnapshot",
    "CommunitySnapshot",
    "HotQuestionSnapshot",
    "PinnedLinkSnapshot",
    "SignedInUser",
]
