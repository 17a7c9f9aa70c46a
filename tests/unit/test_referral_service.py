"""Referral service tests against a real (SQLite) session: stats, claims, no double-pay."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from questline.db.models import ReferralClaim, ReferralEvent
from questline.errors import NoRewardsAvailable, StoreError
from questline.referrals import service
from questline.referrals.service import (
    claim_rewards,
    create_referral_event,
    get_milestone_progress,
    get_referral_stats,
    list_claims,
)


class TestReferralStats:

    @pytest.mark.asyncio
    async def test_no_referrals(self, db_session):
        stats = await get_referral_stats(db_session, "alice")
        assert stats.total_referrals == 0
        assert stats.total_earned_cents == 0
        assert stats.claimable_cents == 0
        assert stats.referral_link.endswith("/join?ref=alice")

    @pytest.mark.asyncio
    async def test_first_milestone_unclaimed(self, db_session, seed_referrals):
        await seed_referrals("alice", 3)
        stats = await get_referral_stats(db_session, "alice")
        assert stats.total_referrals == 3
        assert stats.total_earned_cents == 100
        assert stats.claimable_cents == 100

    @pytest.mark.asyncio
    async def test_second_milestone_after_prior_claim(self, db_session, seed_referrals, seed_claim):
        await seed_referrals("alice", 10)
        await seed_claim("alice", amount=100, referral_count=3)
        stats = await get_referral_stats(db_session, "alice")
        assert stats.total_earned_cents == 250
        assert stats.claimable_cents == 150

    @pytest.mark.asyncio
    async def test_only_counts_own_referrals(self, db_session, seed_referrals):
        await seed_referrals("alice", 3)
        await seed_referrals("bob", 1)
        stats = await get_referral_stats(db_session, "bob")
        assert stats.total_referrals == 1
        assert stats.claimable_cents == 0


class TestReferralEvents:

    @pytest.mark.asyncio
    async def test_create_event(self, db_session):
        event = await create_referral_event(db_session, "alice", "bob")
        assert event.id
        assert event.referrer_user_id == "alice"
        assert event.referred_user_id == "bob"

    @pytest.mark.asyncio
    async def test_duplicate_pair_returns_existing(self, db_session):
        first = await create_referral_event(db_session, "alice", "bob")
        second = await create_referral_event(db_session, "alice", "bob")
        assert second.id == first.id

        result = await db_session.execute(select(ReferralEvent))
        assert len(result.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_milestone_progress(self, db_session, seed_referrals):
        await seed_referrals("alice", 4)
        progress = await get_milestone_progress(db_session, "alice")
        assert progress.total_referrals == 4
        assert progress.next_milestone == 10
        assert progress.progress_percentage == 40.0


class TestClaimRewards:

    @pytest.mark.asyncio
    async def test_claim_pays_full_balance(self, db_session, seed_referrals):
        await seed_referrals("alice", 3)
        claim, stats = await claim_rewards(db_session, "alice")
        assert claim.amount == 100
        assert claim.referral_count == 3
        assert stats.total_earned_cents == 100
        assert stats.claimable_cents == 0

    @pytest.mark.asyncio
    async def test_claim_with_nothing_claimable_writes_nothing(self, db_session):
        with pytest.raises(NoRewardsAvailable):
            await claim_rewards(db_session, "alice")

        result = await db_session.execute(select(ReferralClaim))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_second_claim_fails_until_next_milestone(self, db_session, seed_referrals):
        await seed_referrals("alice", 3)
        await claim_rewards(db_session, "alice")
        with pytest.raises(NoRewardsAvailable):
            await claim_rewards(db_session, "alice")

    @pytest.mark.asyncio
    async def test_balance_reopens_at_next_milestone(self, db_session, seed_referrals):
        await seed_referrals("alice", 3)
        await claim_rewards(db_session, "alice")

        for i in range(7):
            await create_referral_event(db_session, "alice", f"late-{i}")

        claim, stats = await claim_rewards(db_session, "alice")
        assert claim.amount == 150
        assert claim.referral_count == 10
        assert stats.total_earned_cents == 250
        assert stats.claimable_cents == 0

        claims = await list_claims(db_session, "alice")
        assert [c.amount for c in claims] == [150, 100]

    @pytest.mark.asyncio
    async def test_failed_read_back_rolls_back_the_claim(self, db_session, seed_referrals, monkeypatch):
        await seed_referrals("alice", 3)
        real_load_stats = service._load_stats
        calls = 0

        async def load_stats_then_fail(db, user_id):
            nonlocal calls
            calls += 1
            if calls > 1:
                raise OperationalError("SELECT", {}, Exception("connection lost"))
            return await real_load_stats(db, user_id)

        monkeypatch.setattr(service, "_load_stats", load_stats_then_fail)
        with pytest.raises(StoreError):
            await claim_rewards(db_session, "alice")
        monkeypatch.undo()

        assert await list_claims(db_session, "alice") == []
        claim, _ = await claim_rewards(db_session, "alice")
        assert claim.amount == 100

    @pytest.mark.asyncio
    async def test_concurrent_claims_pay_once(self, session_factory, seed_referrals):
        await seed_referrals("alice", 3)

        async with session_factory() as s1, session_factory() as s2:
            results = await asyncio.gather(
                claim_rewards(s1, "alice"),
                claim_rewards(s2, "alice"),
                return_exceptions=True,
            )

        succeeded = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, NoRewardsAvailable)]
        assert len(succeeded) == 1
        assert len(rejected) == 1
        claim, _ = succeeded[0]
        assert claim.amount == 100

        async with session_factory() as check:
            result = await check.execute(select(ReferralClaim).where(ReferralClaim.user_id == "alice"))
            assert [c.amount for c in result.scalars().all()] == [100]
