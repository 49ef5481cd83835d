"""reply_store_schema

Create the schema of the threaded reply store:
- Profiles (author data joined into reply records)
- Replies (nested through parent_id, subtree deleted with the parent)
- Reply reactions (one per reply, user and emoji)
- NOTIFY trigger publishing reply inserts and deletes on `reply_events`

Revision ID: 3c1f0a7d9e42
Revises:
Create Date: 2026-10-18 10:12:44.503112

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f0a7d9e42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE user_role AS ENUM ('admin', 'moderator', 'user', 'banned');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)

    # ========================================================================
    # PROFILES table
    # ========================================================================
    op.create_table(
        "profiles",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(
                "admin", "moderator", "user", "banned", name="user_role", create_type=False
            ),
            server_default="user",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_profiles_username", "profiles", ["username"])

    # ========================================================================
    # REPLIES table
    # ========================================================================
    op.create_table(
        "replies",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("topic_id", sa.UUID(), nullable=False),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.UUID(), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["replies.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_replies_topic_id", "replies", ["topic_id"])
    op.create_index("idx_replies_parent_id", "replies", ["parent_id"])
    op.create_index("idx_replies_created_at", "replies", ["created_at"])

    # ========================================================================
    # REPLY REACTIONS table
    # ========================================================================
    op.create_table(
        "reply_reactions",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("reply_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("emoji", sa.String(length=32), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["reply_id"], ["replies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reply_id", "user_id", "emoji", name="unique_reaction"),
    )
    op.create_index("idx_reply_reactions_reply_id", "reply_reactions", ["reply_id"])

    # ========================================================================
    # TRIGGERS
    # ========================================================================

    # Publish inserts and deletes (cascaded ones included) to listeners
    op.execute("""
        CREATE OR REPLACE FUNCTION notify_reply_event()
        RETURNS TRIGGER AS $$
        BEGIN
            IF TG_OP = 'INSERT' THEN
                PERFORM pg_notify(
                    TG_ARGV[0],
                    json_build_object(
                        'kind', 'created', 'topic_id', NEW.topic_id, 'id', NEW.id
                    )::text
                );
                RETURN NEW;
            END IF;
            PERFORM pg_notify(
                TG_ARGV[0],
                json_build_object(
                    'kind', 'deleted', 'topic_id', OLD.topic_id, 'id', OLD.id
                )::text
            );
            RETURN OLD;
        END;
        $$ LANGUAGE plpgsql
    """)

    op.execute("""
        CREATE TRIGGER replies_notify
        AFTER INSERT OR DELETE ON replies
        FOR EACH ROW EXECUTE FUNCTION notify_reply_event('reply_events')
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TRIGGER IF EXISTS replies_notify ON replies")
    op.execute("DROP FUNCTION IF EXISTS notify_reply_event()")

    # Drop tables (in reverse order of dependencies)
    op.drop_table("reply_reactions")
    op.drop_table("replies")
    op.drop_table("profiles")

    op.execute("DROP TYPE IF EXISTS user_role")
