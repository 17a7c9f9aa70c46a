"""Table constraints enforced by the database itself."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from questline.db.models import ReferralClaim, User, UserProfile


class TestLedgerConstraints:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100])
    async def test_claim_amount_must_be_positive(self, db_session, amount):
        db_session.add(ReferralClaim(user_id="alice", amount=amount, referral_count=3))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

        result = await db_session.execute(select(ReferralClaim))
        assert result.scalars().all() == []


class TestProfileConstraints:

    @pytest.mark.asyncio
    async def test_xp_cannot_go_negative(self, db_session):
        user = User(username="alice", password="not-a-real-hash")
        db_session.add(user)
        await db_session.commit()

        db_session.add(UserProfile(user_id=user.id, xp=-1, level=0))
        with pytest.raises(IntegrityError):
            await db_session.commit()
