"""Signed-in user identity and role flags."""

from pydantic import BaseModel


class SignedInUser(BaseModel):
    """The current user together with their membership in the current community.

    Global roles apply on every community; local roles only on the community
    the request was resolved to.
    """

    id: int
    username: str
    email: str
    is_global_admin: bool = False
    is_global_moderator: bool = False
    community_user_id: int | None = None
    is_community_admin: bool = False
    is_community_moderator: bool = False

    @property
    def is_admin(self) -> bool:
        return self.is_global_admin or self.is_community_admin

    @property
    def is_moderator(self) -> bool:
        return self.is_global_moderator or self.is_community_moderator

    @property
    def email_domain(self) -> str:
        """Part of the email after the last '@'."""
        return self.email.split("@")[-1]
