"""SQLAlchemy table definitions for the reply store.

They match the schema defined in the Alembic migrations.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# PROFILES TABLE (author data joined into reply records)
# ============================================================================
profiles_table = Table(
    "profiles",
    metadata,
    Column("id", UUID, primary_key=True),
    Column("username", String(255), nullable=False),
    Column("avatar_url", Text, nullable=True),
    Column(
        "role",
        postgresql.ENUM("admin", "moderator", "user", "banned", name="user_role"),
        nullable=False,
        server_default="user",
    ),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
    ),
)

Index("idx_profiles_username", profiles_table.c.username)

# ============================================================================
# REPLIES TABLE
# ============================================================================
replies_table = Table(
    "replies",
    metadata,
    Column("id", UUID, primary_key=True, server_default=text("gen_random_uuid()")),
    Column("topic_id", UUID, nullable=False),
    # Deleting a reply deletes its whole subtree
    Column(
        "parent_id", UUID, ForeignKey("replies.id", ondelete="CASCADE"), nullable=True
    ),
    Column("content", Text, nullable=False),
    Column(
        "author_id", UUID, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
    ),
)

Index("idx_replies_topic_id", replies_table.c.topic_id)
Index("idx_replies_parent_id", replies_table.c.parent_id)
Index("idx_replies_created_at", replies_table.c.created_at)

# ============================================================================
# REPLY REACTIONS TABLE
# ============================================================================
reply_reactions_table = Table(
    "reply_reactions",
    metadata,
    Column("id", UUID, primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "reply_id", UUID, ForeignKey("replies.id", ondelete="CASCADE"), nullable=False
    ),
    Column("user_id", UUID, nullable=False),
    Column("emoji", String(32), nullable=False),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
    ),
    UniqueConstraint("reply_id", "user_id", "emoji", name="unique_reaction"),
)

Index("idx_reply_reactions_reply_id", reply_reactions_table.c.reply_id)


def reply_notify_ddl(channel: str) -> list[str]:
    """SQL that makes inserts and deletes on `replies` publish on `channel`.

    Cascaded deletes fire the trigger once per removed row.

    Args:
        channel: NOTIFY channel name

    Returns:
        Statements to execute in order (one statement each)
    """
    return [
        """
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
        """,
        "DROP TRIGGER IF EXISTS replies_notify ON replies",
        f"""
        CREATE TRIGGER replies_notify
        AFTER INSERT OR DELETE ON replies
        FOR EACH ROW EXECUTE FUNCTION notify_reply_event('{channel}')
        """,
    ]
