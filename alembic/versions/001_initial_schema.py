"""Initial schema: users, follow graph, posts, likes, comments, direct messages.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY,
            username VARCHAR(32) UNIQUE NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            full_name VARCHAR(128),
            avatar_url TEXT,
            bio VARCHAR(280),
            is_verified BOOLEAN NOT NULL DEFAULT false,
            is_online BOOLEAN NOT NULL DEFAULT false,
            last_seen TIMESTAMPTZ,
            followers_count INTEGER NOT NULL DEFAULT 0,
            following_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT users_followers_count_nonneg CHECK (followers_count >= 0),
            CONSTRAINT users_following_count_nonneg CHECK (following_count >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_online
        ON users(last_seen) WHERE is_online = true
    """)

    # --- Follows ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS follows (
            id UUID PRIMARY KEY,
            follower_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            following_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT follows_pair_key UNIQUE (follower_id, following_id),
            CONSTRAINT follows_no_self CHECK (follower_id <> following_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_follows_following
        ON follows(following_id)
    """)

    # --- Posts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS posts (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT,
            image_url TEXT,
            likes_count INTEGER NOT NULL DEFAULT 0,
            comments_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT posts_likes_count_nonneg CHECK (likes_count >= 0),
            CONSTRAINT posts_comments_count_nonneg CHECK (comments_count >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_posts_user_created
        ON posts(user_id, created_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_posts_created
        ON posts(created_at)
    """)

    # --- Likes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS likes (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            post_id UUID NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT likes_user_post_key UNIQUE (user_id, post_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_likes_post
        ON likes(post_id)
    """)

    # --- Comments ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS comments (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            post_id UUID NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_comments_post_created
        ON comments(post_id, created_at)
    """)

    # --- Conversations ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS conversations (
            id UUID PRIMARY KEY,
            user_low_id UUID REFERENCES users(id) ON DELETE CASCADE,
            user_high_id UUID REFERENCES users(id) ON DELETE CASCADE,
            last_message_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT conversations_pair_key UNIQUE (user_low_id, user_high_id),
            CONSTRAINT conversations_pair_ordered CHECK (user_low_id < user_high_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_conversations_last_message
        ON conversations(last_message_at)
    """)

    # --- Participants ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS participants (
            id UUID PRIMARY KEY,
            conversation_id UUID NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            unread_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT participants_conversation_user_key UNIQUE (conversation_id, user_id),
            CONSTRAINT participants_unread_count_nonneg CHECK (unread_count >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_participants_user
        ON participants(user_id)
    """)

    # --- Messages ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS messages (
            id UUID PRIMARY KEY,
            conversation_id UUID NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
            sender_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            is_read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_messages_conversation_created
        ON messages(conversation_id, created_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_messages_unread
        ON messages(conversation_id, sender_id) WHERE is_read = false
    """)


def downgrade() -> None:
    for table in ("messages", "participants", "conversations", "comments", "likes", "posts", "follows", "users"):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
