"""Referral stats, event attribution and reward claims."""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from questline.config import get_settings
from questline.db.models import ReferralClaim, ReferralEvent
from questline.errors import NoRewardsAvailable, StoreError
from questline.referrals.rewards import (
    MilestoneProgress,
    claimable_cents,
    milestone_progress,
    referral_link,
    total_earned_cents,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# One lock per user id with a claim in flight. Entries vanish once no
# coroutine holds a reference to the lock.
_claim_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


@dataclass(frozen=True)
class ReferralStats:
    user_id: str
    total_referrals: int
    total_earned_cents: int
    claimable_cents: int
    referral_link: str


def _claim_lock(user_id: str) -> asyncio.Lock:
    lock = _claim_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _claim_locks[user_id] = lock
    return lock


async def count_referrals(db: AsyncSession, user_id: str) -> int:
    """Number of referral events credited to `user_id` as referrer."""
    result = await db.execute(
        select(func.count()).select_from(ReferralEvent).where(ReferralEvent.referrer_user_id == user_id)
    )
    return result.scalar_one()


async def claimed_cents(db: AsyncSession, user_id: str) -> int:
    """Total already paid out to `user_id`, in tTRUST x 100."""
    result = await db.execute(
        select(func.coalesce(func.sum(ReferralClaim.amount), 0)).where(ReferralClaim.user_id == user_id)
    )
    return int(result.scalar_one())


async def _load_stats(db: AsyncSession, user_id: str) -> ReferralStats:
    total = await count_referrals(db, user_id)
    earned = total_earned_cents(total)
    paid = await claimed_cents(db, user_id)
    return ReferralStats(
        user_id=user_id,
        total_referrals=total,
        total_earned_cents=earned,
        claimable_cents=claimable_cents(earned, paid),
        referral_link=referral_link(get_settings().public_base_url, user_id),
    )


async def get_referral_stats(db: AsyncSession, user_id: str) -> ReferralStats:
    """Aggregate a user's referral counters into earned/claimable balances."""
    try:
        return await _load_stats(db, user_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to fetch referral stats") from exc


async def get_milestone_progress(db: AsyncSession, user_id: str) -> MilestoneProgress:
    try:
        total = await count_referrals(db, user_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to fetch referral progress") from exc
    return milestone_progress(total)


async def _find_event(db: AsyncSession, referrer_user_id: str, referred_user_id: str) -> ReferralEvent | None:
    result = await db.execute(
        select(ReferralEvent).where(
            ReferralEvent.referrer_user_id == referrer_user_id,
            ReferralEvent.referred_user_id == referred_user_id,
        )
    )
    return result.scalar_one_or_none()


async def create_referral_event(
    db: AsyncSession,
    referrer_user_id: str,
    referred_user_id: str,
) -> ReferralEvent:
    """Record a referral. Posting the same (referrer, referred) pair again returns the existing event."""
    try:
        existing = await _find_event(db, referrer_user_id, referred_user_id)
        if existing is not None:
            logger.info("referral_event_duplicate", referrer=referrer_user_id, referred=referred_user_id)
            return existing

        event = ReferralEvent(referrer_user_id=referrer_user_id, referred_user_id=referred_user_id)
        db.add(event)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against an identical insert
            await db.rollback()
            existing = await _find_event(db, referrer_user_id, referred_user_id)
            if existing is None:
                raise
            return existing
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to record referral event") from exc

    logger.info("referral_event_created", event_id=event.id, referrer=referrer_user_id, referred=referred_user_id)
    return event


async def _lock_ledger(db: AsyncSession, user_id: str) -> None:
    """Serialize claims for one user across processes for the rest of the transaction."""
    if db.get_bind().dialect.name == "postgresql":
        await db.execute(select(func.pg_advisory_xact_lock(func.hashtext(user_id))))


async def claim_rewards(db: AsyncSession, user_id: str) -> tuple[ReferralClaim, ReferralStats]:
    """Pay out the whole claimable balance as one ledger entry.

    The balance is recomputed after the per-user lock is held, so two
    concurrent claims can never both observe the same unpaid amount.

    Raises:
        NoRewardsAvailable: nothing is claimable; no row is written.
        StoreError: the store failed; the transaction is rolled back.
    """
    async with _claim_lock(user_id):
        try:
            await _lock_ledger(db, user_id)
            stats = await _load_stats(db, user_id)
            if stats.claimable_cents <= 0:
                await db.rollback()
                raise NoRewardsAvailable

            claim = ReferralClaim(
                user_id=user_id,
                amount=stats.claimable_cents,
                referral_count=stats.total_referrals,
            )
            db.add(claim)
            await db.flush()
            # Read back inside the transaction so the ledger row and the
            # stats returned for it commit or roll back together.
            updated = await _load_stats(db, user_id)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StoreError("Failed to claim rewards") from exc

        logger.info(
            "referral_rewards_claimed",
            user_id=user_id,
            claim_id=claim.id,
            amount=claim.amount,
            referral_count=claim.referral_count,
        )

    return claim, updated


async def list_claims(db: AsyncSession, user_id: str) -> list[ReferralClaim]:
    """Claim ledger for a user, newest first."""
    try:
        result = await db.execute(
            select(ReferralClaim)
            .where(ReferralClaim.user_id == user_id)
            .order_by(ReferralClaim.created_at.desc(), ReferralClaim.id)
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to fetch referral claims") from exc
    return list(result.scalars().all())
