"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- community, user, community_user
- privilege, user_privilege
- blocked_item, audit_log, site_setting
- category, post, flag, pinned_link, mod_warning
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "community",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("host", sa.String(255), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("is_global_admin", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("is_global_moderator", sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
    )

    op.create_table(
        "community_user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("is_moderator", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.UniqueConstraint("community_id", "user_id", name="uq_community_user"),
    )

    op.create_table(
        "privilege",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )

    op.create_table(
        "user_privilege",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "community_user_id",
            sa.Integer(),
            sa.ForeignKey("community_user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "privilege_id",
            sa.Integer(),
            sa.ForeignKey("privilege.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("community_user_id", "privilege_id", name="uq_user_privilege"),
    )

    op.create_table(
        "blocked_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("item_type", sa.String(32), nullable=False),
        sa.Column("value", sa.String(255), nullable=False),
        sa.Column("expires", sa.DateTime(), nullable=True),
        sa.Column("automatic", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_blocked_item_type_value", "blocked_item", ["item_type", "value"])

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sequence", sa.Integer(), server_default="0", nullable=False),
        sa.Column("use_for_hot_posts", sa.Boolean(), server_default=sa.true(), nullable=False),
    )
    op.create_index("idx_category_community", "category", ["community_id", "sequence"])

    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("post_type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("score", sa.Float(), server_default="0", nullable=False),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "last_activity", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("idx_post_community_activity", "post", ["community_id", "last_activity"])

    op.create_table(
        "flag",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=False),
        sa.Column("post_id", sa.Integer(), sa.ForeignKey("post.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(32), nullable=True),
    )

    op.create_table(
        "pinned_link",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=True),
        sa.Column("label", sa.String(255), nullable=True),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("post_id", sa.Integer(), sa.ForeignKey("post.id"), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("shown_before", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "mod_warning",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "community_user_id",
            sa.Integer(),
            sa.ForeignKey("community_user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_suspension", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("suspension_end", sa.DateTime(), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=True),
        sa.Column("log_type", sa.String(64), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("related_type", sa.String(64), nullable=True),
        sa.Column("related_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_audit_log_type", "audit_log", ["log_type", "event_type"])

    op.create_table(
        "site_setting",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("community_id", sa.Integer(), sa.ForeignKey("community.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("value_type", sa.String(32), server_default="string", nullable=False),
        sa.UniqueConstraint("community_id", "name", name="uq_site_setting"),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("site_setting")
    op.drop_index("idx_audit_log_type", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("mod_warning")
    op.drop_table("pinned_link")
    op.drop_table("flag")
    op.drop_index("idx_post_community_activity", table_name="post")
    op.drop_table("post")
    op.drop_index("idx_category_community", table_name="category")
    op.drop_table("category")
    op.drop_index("idx_blocked_item_type_value", table_name="blocked_item")
    op.drop_table("blocked_item")
    op.drop_table("user_privilege")
    op.drop_table("privilege")
    op.drop_table("community_user")
    op.drop_table("user")
    op.drop_table("community")
