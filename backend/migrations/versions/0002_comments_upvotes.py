"""Add comments and upvotes

Revision ID: 0002_comments_upvotes
Revises: 0001_initial
Create Date: 2026-10-19

Upvotes carry a unique (post_id, user_id) constraint so two concurrent
upvote requests from the same user cannot both insert a row.
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_comments_upvotes"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- comments -------------------------------------------------------
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"])
    op.create_index("ix_comments_user_id", "comments", ["user_id"])

    # -- upvotes --------------------------------------------------------
    op.create_table(
        "upvotes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("post_id", "user_id", name="uq_upvotes_post_user"),
    )
    op.create_index("ix_upvotes_post_id", "upvotes", ["post_id"])
    op.create_index("ix_upvotes_user_id", "upvotes", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_upvotes_user_id", table_name="upvotes")
    op.drop_index("ix_upvotes_post_id", table_name="upvotes")
    op.drop_table("upvotes")
    op.drop_index("ix_comments_user_id", table_name="comments")
    op.drop_index("ix_comments_post_id", table_name="comments")
    op.drop_table("comments")
