"""Request context for tenancy enforcement."""

from dataclasses import dataclass, field

from backend.app.models.reference import (
    CategorySnapshot,
    CommunitySnapshot,
    HotQuestionSnapshot,
    PinnedLinkSnapshot,
)
from backend.app.models.users import SignedInUser


@dataclass
class RequestContext:
    """Per-request state resolved by the application controller.

    The community is resolved first and scopes every community-owned query.
    Discarded at the end of the request.
    """

    community: CommunitySnapshot | None = None
    user: SignedInUser | None = None
    pinned_links: list[PinnedLinkSnapshot] = field(default_factory=list)
    hot_questions: list[HotQuestionSnapshot] = field(default_factory=list)
    header_categories: list[CategorySnapshot] = field(default_factory=list)
    open_flags: int | None = None
    first_visit_notice: bool = False

    @property
    def community_id(self) -> int | None:
        return self.community.id if self.community else None

    @property
    def user_signed_in(self) -> bool:
        return self.user is not None

    def clear(self) -> None:
        """Reset all resolved state."""
        self.community = None
        self.user = None
        self.pinned_links = []
        self.hot_questions = []
        self.header_categories = []
        self.open_flags = None
        self.first_visit_notice = False
