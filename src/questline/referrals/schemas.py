"""Request/response models for the referral endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from questline.schemas import CamelModel

# --- Requests ---


class ReferralEventCreate(CamelModel):
    referrer_user_id: str = Field(..., min_length=1, max_length=64)
    referred_user_id: str = Field(..., min_length=1, max_length=64)

    @model_validator(mode="after")
    def _no_self_referral(self) -> ReferralEventCreate:
        if self.referrer_user_id == self.referred_user_id:
            msg = "A user cannot refer themselves"
            raise ValueError(msg)
        return self


# --- Responses ---


class ReferralEventResponse(CamelModel):
    id: str
    referrer_user_id: str
    referred_user_id: str
    created_at: datetime


class ReferralStatsResponse(CamelModel):
    total_referrals: int
    total_earned: float  # tTRUST
    claimable_rewards: float  # tTRUST
    referral_link: str


class ReferralClaimResponse(CamelModel):
    id: str
    user_id: str
    amount: int  # tTRUST x 100, as stored in the ledger
    referral_count: int
    created_at: datetime


class ClaimRewardsResponse(CamelModel):
    claim: ReferralClaimResponse
    stats: ReferralStatsResponse


class ReferralClaimsResponse(CamelModel):
    claims: list[ReferralClaimResponse]


class MilestoneEntry(CamelModel):
    threshold: int
    bonus: float  # tTRUST
    reached: bool


class MilestoneProgressResponse(CamelModel):
    total_referrals: int
    next_milestone: int
    progress_percentage: float
    milestones: list[MilestoneEntry]
