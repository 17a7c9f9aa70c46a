"""Referral API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from questline.database import get_session
from questline.referrals import service
from questline.referrals.rewards import cents_to_ttrust
from questline.referrals.schemas import (
    ClaimRewardsResponse,
    MilestoneEntry,
    MilestoneProgressResponse,
    ReferralClaimResponse,
    ReferralClaimsResponse,
    ReferralEventCreate,
    ReferralEventResponse,
    ReferralStatsResponse,
)

router = APIRouter(prefix="/api/referrals", tags=["Referrals"])


def _stats_response(stats: service.ReferralStats) -> ReferralStatsResponse:
    return ReferralStatsResponse(
        total_referrals=stats.total_referrals,
        total_earned=cents_to_ttrust(stats.total_earned_cents),
        claimable_rewards=cents_to_ttrust(stats.claimable_cents),
        referral_link=stats.referral_link,
    )


@router.get("/stats/{user_id}", response_model=ReferralStatsResponse)
async def referral_stats(user_id: str, db: AsyncSession = Depends(get_session)):
    """Referral count, earned and claimable tTRUST, and the user's invite link."""
    return _stats_response(await service.get_referral_stats(db, user_id))


@router.post("/event", response_model=ReferralEventResponse)
async def create_referral_event(body: ReferralEventCreate, db: AsyncSession = Depends(get_session)):
    """Attribute a signup to its referrer."""
    event = await service.create_referral_event(db, body.referrer_user_id, body.referred_user_id)
    return ReferralEventResponse.model_validate(event)


@router.post("/claim/{user_id}", response_model=ClaimRewardsResponse)
async def claim_rewards(user_id: str, db: AsyncSession = Depends(get_session)):
    """Withdraw the full claimable balance. 400 when there is nothing to claim."""
    claim, stats = await service.claim_rewards(db, user_id)
    return ClaimRewardsResponse(
        claim=ReferralClaimResponse.model_validate(claim),
        stats=_stats_response(stats),
    )


@router.get("/claims/{user_id}", response_model=ReferralClaimsResponse)
async def referral_claims(user_id: str, db: AsyncSession = Depends(get_session)):
    claims = await service.list_claims(db, user_id)
    return ReferralClaimsResponse(claims=[ReferralClaimResponse.model_validate(c) for c in claims])


@router.get("/progress/{user_id}", response_model=MilestoneProgressResponse)
async def referral_progress(user_id: str, db: AsyncSession = Depends(get_session)):
    """Progress towards the next referral milestone."""
    progress = await service.get_milestone_progress(db, user_id)
    return MilestoneProgressResponse(
        total_referrals=progress.total_referrals,
        next_milestone=progress.next_milestone,
        progress_percentage=progress.progress_percentage,
        milestones=[
            MilestoneEntry(threshold=m.threshold, bonus=cents_to_ttrust(m.bonus_cents), reached=m.reached)
            for m in progress.milestones
        ],
    )
