"""SQLAlchemy ORM models for communities, users and moderation records."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Community(Base):
    """Community table - one isolated site per Host header."""

    __tablename__ = "community"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Includes the port so several localhost instances can coexist
    host: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    community_users: Mapped[list["CommunityUser"]] = relationship(
        "CommunityUser", back_populates="community"
    )


class User(Base):
    """User table - accounts shared across all communities."""

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_global_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_global_moderator: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    community_users: Mapped[list["CommunityUser"]] = relationship(
        "CommunityUser", back_populates="user"
    )


class CommunityUser(Base):
    """Per-community membership carrying local roles."""

    __tablename__ = "community_user"
    __table_args__ = (
        UniqueConstraint("community_id", "user_id", name="uq_community_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int] = mapped_column(ForeignKey("community.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    is_moderator: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    community: Mapped["Community"] = relationship("Community", back_populates="community_users")
    user: Mapped["User"] = relationship("User", back_populates="community_users")


class Privilege(Base):
    """Named permission a user may be granted."""

    __tablename__ = "privilege"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class UserPrivilege(Base):
    """Grant of a privilege to a community user."""

    __tablename__ = "user_privilege"
    __table_args__ = (
        UniqueConstraint("community_user_id", "privilege_id", name="uq_user_privilege"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_user_id: Mapped[int] = mapped_column(
        ForeignKey("community_user.id", ondelete="CASCADE"), nullable=False
    )
    privilege_id: Mapped[int] = mapped_column(
        ForeignKey("privilege.id", ondelete="CASCADE"), nullable=False
    )


class BlockedItem(Base):
    """IP address, email address or email domain barred from write requests."""

    __tablename__ = "blocked_item"
    __table_args__ = (Index("idx_blocked_item_type_value", "item_type", "value"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # One of: ip, email, email_host
    item_type: Mapped[str] = mapped_column(String(32), nullable=False)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    expires: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    automatic: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class Category(Base):
    """Post category shown in the site header."""

    __tablename__ = "category"
    __table_args__ = (Index("idx_category_community", "community_id", "sequence"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int] = mapped_column(ForeignKey("community.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    use_for_hot_posts: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Post(Base):
    """Question, answer or article."""

    __tablename__ = "post"
    __table_args__ = (Index("idx_post_community_activity", "community_id", "last_activity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int] = mapped_column(ForeignKey("community.id"), nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id"), nullable=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    # One of: question, answer, article
    post_type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_activity: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    category: Mapped["Category | None"] = relationship("Category")


class Flag(Base):
    """User report on a post awaiting moderator handling."""

    __tablename__ = "flag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int] = mapped_column(ForeignKey("community.id"), nullable=False)
    post_id: Mapped[int] = mapped_column(ForeignKey("post.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    # NULL until a moderator handles the flag
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)


class PinnedLink(Base):
    """Link pinned to the sidebar, per community or global when community_id is NULL."""

    __tablename__ = "pinned_link"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int | None] = mapped_column(ForeignKey("community.id"), nullable=True)
    label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    link: Mapped[str | None] = mapped_column(Text, nullable=True)
    post_id: Mapped[int | None] = mapped_column(ForeignKey("post.id"), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    shown_before: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class ModWarning(Base):
    """Moderator warning or suspension the user must acknowledge."""

    __tablename__ = "mod_warning"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_user_id: Mapped[int] = mapped_column(
        ForeignKey("community_user.id", ondelete="CASCADE"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_suspension: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    suspension_end: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class AuditLog(Base):
    """Append-only audit trail entry."""

    __tablename__ = "audit_log"
    __table_args__ = (Index("idx_audit_log_type", "log_type", "event_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int | None] = mapped_column(ForeignKey("community.id"), nullable=True)
    log_type: Mapped[str] = mapped_column(String(64), nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    related_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    related_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class SiteSetting(Base):
    """Named setting, global when community_id is NULL."""

    __tablename__ = "site_setting"
    __table_args__ = (UniqueConstraint("community_id", "name", name="uq_site_setting"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[int | None] = mapped_column(ForeignKey("community.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    # One of: string, integer, float, boolean
    value_type: Mapped[str] = mapped_column(String(32), default="string", nullable=False)
