"""Referral events and the reward claim ledger.

Both tables are append-only. The (referrer, referred) pair is unique so a
repeated attribution cannot inflate a referral count.

Revision ID: 002_referral_tables
Revises: 001_users_and_profiles
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_referral_tables"
down_revision: str | None = "001_users_and_profiles"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS referral_events (
            id                VARCHAR(36) PRIMARY KEY,
            referrer_user_id  VARCHAR(64) NOT NULL,
            referred_user_id  VARCHAR(64) NOT NULL,
            created_at        TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT uq_referral_events_pair UNIQUE (referrer_user_id, referred_user_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_referral_events_referrer
        ON referral_events(referrer_user_id)
    """)

    # amount is tTRUST x 100
    op.execute("""
        CREATE TABLE IF NOT EXISTS referral_claims (
            id              VARCHAR(36) PRIMARY KEY,
            user_id         VARCHAR(64) NOT NULL,
            amount          INTEGER NOT NULL
                            CONSTRAINT ck_referral_claims_amount_positive CHECK (amount > 0),
            referral_count  INTEGER NOT NULL,
            created_at      TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_referral_claims_user
        ON referral_claims(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS referral_claims")
    op.execute("DROP TABLE IF EXISTS referral_events")
