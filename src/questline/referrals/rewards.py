"""Referral milestone rewards.

Amounts are integer tTRUST x 100 ("cents") everywhere in this module.
Conversion to decimal tTRUST happens only when a response is serialized.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from urllib.parse import quote

CENTS_PER_TTRUST = 100

# Past the last milestone the progress bar keeps counting in steps of this size.
OPEN_ENDED_MILESTONE_STEP = 10


@dataclass(frozen=True)
class ReferralMilestone:
    threshold: int  # referral count that unlocks the bonus
    bonus_cents: int


# Bonuses are cumulative: reaching 10 referrals pays both entries.
# Keep sorted by threshold.
REFERRAL_MILESTONES: tuple[ReferralMilestone, ...] = (
    ReferralMilestone(threshold=3, bonus_cents=100),
    ReferralMilestone(threshold=10, bonus_cents=150),
)


@dataclass(frozen=True)
class MilestoneStatus:
    threshold: int
    bonus_cents: int
    reached: bool


@dataclass(frozen=True)
class MilestoneProgress:
    total_referrals: int
    next_milestone: int
    progress_percentage: float
    milestones: list[MilestoneStatus]


def total_earned_cents(
    total_referrals: int,
    milestones: tuple[ReferralMilestone, ...] = REFERRAL_MILESTONES,
) -> int:
    """Sum of every bonus whose threshold has been reached."""
    return sum(m.bonus_cents for m in milestones if total_referrals >= m.threshold)


def claimable_cents(earned_cents: int, claimed_cents: int) -> int:
    """Earned minus already paid out, floored at zero."""
    return max(0, earned_cents - claimed_cents)


def next_milestone(
    total_referrals: int,
    milestones: tuple[ReferralMilestone, ...] = REFERRAL_MILESTONES,
) -> int:
    """The next referral count worth showing a progress bar towards."""
    for m in milestones:
        if total_referrals < m.threshold:
            return m.threshold
    return math.ceil((total_referrals + 1) / OPEN_ENDED_MILESTONE_STEP) * OPEN_ENDED_MILESTONE_STEP


def milestone_progress(
    total_referrals: int,
    milestones: tuple[ReferralMilestone, ...] = REFERRAL_MILESTONES,
) -> MilestoneProgress:
    target = next_milestone(total_referrals, milestones)
    return MilestoneProgress(
        total_referrals=total_referrals,
        next_milestone=target,
        progress_percentage=min(100.0, total_referrals / target * 100),
        milestones=[
            MilestoneStatus(threshold=m.threshold, bonus_cents=m.bonus_cents, reached=total_referrals >= m.threshold)
            for m in milestones
        ],
    )


def cents_to_ttrust(cents: int) -> float:
    return cents / CENTS_PER_TTRUST


def referral_link(base_url: str, user_id: str) -> str:
    return f"{base_url.rstrip('/')}/join?ref={quote(user_id, safe='')}"
