"""Gamification API endpoints: tier table and XP profiles."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from questline.database import get_session
from questline.db.models import UserProfile
from questline.gamification.profile_service import complete_quest, create_profile, get_profile
from questline.gamification.progression import (
    TIER_COLORS,
    TIER_DISPLAY,
    TIER_LIQUID_REWARD_RATE,
    TIER_ORDER,
    TIER_QUESTS_REQUIRED,
    XP_PER_LEVEL,
    derive_progression,
    quests_to_next_tier,
    tier_ranges,
)
from questline.gamification.schemas import (
    AllTiersResponse,
    ProfileCreate,
    ProfileResponse,
    ProgressionResponse,
    QuestCompleteRequest,
    QuestCompleteResponse,
    TierEntry,
)

router = APIRouter(prefix="/api", tags=["Gamification"])


def _profile_response(profile: UserProfile) -> ProfileResponse:
    """Build a ProfileResponse; level and tier always come from the progression engine."""
    p = derive_progression(profile.xp)
    return ProfileResponse(
        user_id=profile.user_id,
        display_name=profile.display_name,
        xp=profile.xp,
        level=p.level,
        quests_completed=profile.quests_completed,
        social_profiles=profile.social_profiles,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
        progression=ProgressionResponse(
            level=p.level,
            tier=p.tier,
            tier_display=TIER_DISPLAY[p.tier],
            tier_color=TIER_COLORS[p.tier],
            xp_into_level=p.xp_into_level,
            xp_to_next_level=p.xp_to_next_level,
            next_level_xp=p.next_level_xp,
            progress_percentage=p.progress_percentage,
            liquid_reward_rate=TIER_LIQUID_REWARD_RATE[p.tier],
            quests_to_next_tier=quests_to_next_tier(p.tier, profile.quests_completed),
        ),
    )


@router.get("/tiers", response_model=AllTiersResponse)
async def list_tiers():
    """Get all tier definitions with the level range each one covers."""
    return AllTiersResponse(
        xp_per_level=XP_PER_LEVEL,
        tiers=[
            TierEntry(
                tier=r.tier,
                order=TIER_ORDER[r.tier],
                display_name=TIER_DISPLAY[r.tier],
                color=TIER_COLORS[r.tier],
                min_level=r.min_level,
                max_level=r.max_level,
                liquid_reward_rate=TIER_LIQUID_REWARD_RATE[r.tier],
                quests_required=TIER_QUESTS_REQUIRED[r.tier],
            )
            for r in tier_ranges()
        ],
    )


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
async def create_user_profile(body: ProfileCreate, db: AsyncSession = Depends(get_session)):
    profile = await create_profile(
        db,
        body.user_id,
        display_name=body.display_name,
        xp=body.xp,
        quests_completed=body.quests_completed,
        social_profiles=body.social_profiles,
    )
    return _profile_response(profile)


@router.get("/profiles/{user_id}", response_model=ProfileResponse)
async def read_profile(user_id: str, db: AsyncSession = Depends(get_session)):
    """Get a profile with level, tier and progress to the next level."""
    return _profile_response(await get_profile(db, user_id))


@router.post("/profiles/{user_id}/quests/complete", response_model=QuestCompleteResponse)
async def complete_user_quest(
    user_id: str,
    body: QuestCompleteRequest,
    db: AsyncSession = Depends(get_session),
):
    """Credit a completed quest's XP reward."""
    result = await complete_quest(db, user_id, body.xp_reward)
    return QuestCompleteResponse(
        profile=_profile_response(result.profile),
        leveled_up=result.leveled_up,
        tier_changed=result.tier_changed,
    )
