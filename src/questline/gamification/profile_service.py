"""Profile storage and quest-completion XP grants."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from questline.db.models import UserProfile
from questline.errors import ConflictError, NotFoundError, StoreError
from questline.gamification.progression import compute_level, tier_for_level
from questline.users.service import get_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestCompletion:
    profile: UserProfile
    old_level: int
    leveled_up: bool
    tier_changed: bool


async def _fetch_profile(db: AsyncSession, user_id: str, *, for_update: bool = False) -> UserProfile | None:
    stmt = select(UserProfile).where(UserProfile.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: str) -> UserProfile:
    """
    Load a user's profile.

    Raises:
        NotFoundError: the user has no profile.
    """
    try:
        profile = await _fetch_profile(db, user_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to fetch profile") from exc
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


async def create_profile(
    db: AsyncSession,
    user_id: str,
    display_name: str | None = None,
    xp: int = 0,
    quests_completed: int = 0,
    social_profiles: dict[str, Any] | None = None,
) -> UserProfile:
    """
    Create the profile for an existing user. The stored level is derived from `xp`.

    Raises:
        NotFoundError: no such user.
        ConflictError: the user already has a profile.
    """
    await get_user(db, user_id)

    try:
        if await _fetch_profile(db, user_id) is not None:
            raise ConflictError("Profile already exists")

        profile = UserProfile(
            user_id=user_id,
            display_name=display_name,
            xp=xp,
            level=compute_level(xp),
            quests_completed=quests_completed,
            social_profiles=social_profiles or {},
        )
        db.add(profile)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("Profile already exists") from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to create profile") from exc

    logger.info("Created profile for user %s at level %d", user_id, profile.level)
    return profile


async def complete_quest(db: AsyncSession, user_id: str, xp_reward: int) -> QuestCompletion:
    """
    Credit a finished quest: add its XP, bump the quest counter and re-derive the level.

    The profile row is locked for the read-modify-write so concurrent
    completions do not lose XP.

    Raises:
        NotFoundError: the user has no profile.
    """
    try:
        profile = await _fetch_profile(db, user_id, for_update=True)
        if profile is None:
            await db.rollback()
            raise NotFoundError("Profile not found")

        old_level = profile.level
        old_tier = tier_for_level(old_level)

        profile.xp += xp_reward
        profile.quests_completed += 1
        profile.level = compute_level(profile.xp)
        profile.updated_at = datetime.now(timezone.utc)
        new_tier = tier_for_level(profile.level)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to record quest completion") from exc

    if profile.level > old_level:
        logger.info("User %s leveled up: %d -> %d", user_id, old_level, profile.level)
    if new_tier != old_tier:
        logger.info("User %s reached tier %s", user_id, new_tier.value)

    return QuestCompletion(
        profile=profile,
        old_level=old_level,
        leveled_up=profile.level > old_level,
        tier_changed=new_tier != old_tier,
    )
