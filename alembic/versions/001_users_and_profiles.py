"""Users and XP profiles.

Creates users and user_profiles. SQL is kept to the subset shared by
PostgreSQL and SQLite so local runs can migrate a file database.

Revision ID: 001_users_and_profiles
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_users_and_profiles"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id          VARCHAR(36) PRIMARY KEY,
            username    TEXT NOT NULL UNIQUE,
            password    TEXT NOT NULL,
            created_at  TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_profiles (
            id                VARCHAR(36) PRIMARY KEY,
            user_id           VARCHAR(36) NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            display_name      TEXT,
            xp                INTEGER NOT NULL DEFAULT 0
                              CONSTRAINT ck_user_profiles_xp_non_negative CHECK (xp >= 0),
            level             INTEGER NOT NULL DEFAULT 0,
            quests_completed  INTEGER NOT NULL DEFAULT 0,
            social_profiles   JSON NOT NULL DEFAULT '{}',
            created_at        TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at        TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_profiles")
    op.execute("DROP TABLE IF EXISTS users")
