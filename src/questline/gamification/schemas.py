"""Response models for tiers, profiles and progression."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from questline.gamification.progression import Tier
from questline.schemas import CamelModel

# --- Tiers ---


class TierEntry(CamelModel):
    tier: Tier
    order: int
    display_name: str
    color: str
    min_level: int
    max_level: int | None = None
    liquid_reward_rate: int  # percent
    quests_required: int


class AllTiersResponse(CamelModel):
    xp_per_level: int
    tiers: list[TierEntry]


# --- Progression ---


class ProgressionResponse(CamelModel):
    level: int
    tier: Tier
    tier_display: str
    tier_color: str
    xp_into_level: int
    xp_to_next_level: int
    next_level_xp: int
    progress_percentage: float
    liquid_reward_rate: int  # percent
    quests_to_next_tier: int | None = None


# --- Profiles ---


class ProfileCreate(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=36)
    display_name: str | None = Field(None, max_length=64)
    xp: int = Field(0, ge=0)
    quests_completed: int = Field(0, ge=0)
    social_profiles: dict[str, Any] = Field(default_factory=dict)


class QuestCompleteRequest(CamelModel):
    xp_reward: int = Field(..., ge=0, le=100_000)


class ProfileResponse(CamelModel):
    user_id: str
    display_name: str | None = None
    xp: int
    level: int
    quests_completed: int
    social_profiles: dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime
    progression: ProgressionResponse


class QuestCompleteResponse(CamelModel):
    profile: ProfileResponse
    leveled_up: bool
    tier_changed: bool
