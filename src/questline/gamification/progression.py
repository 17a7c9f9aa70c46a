"""Level, tier and XP-progress derivation.

Everything here is pure arithmetic over fixed tables. Level is derived from
XP and tier from level; nothing in this module touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

XP_PER_LEVEL = 20


class Tier(str, Enum):
    ENCHANTER = "enchanter"
    ILLUMINATED = "illuminated"
    CONSCIOUS = "conscious"
    ORACLE = "oracle"
    TEMPLAR = "templar"


# Ordered lowest to highest. Each tier covers [min_level, next tier's min_level).
TIER_UNLOCK_MIN_LEVEL: dict[Tier, int] = {
    Tier.ENCHANTER: 0,
    Tier.ILLUMINATED: 5,
    Tier.CONSCIOUS: 15,
    Tier.ORACLE: 30,
    Tier.TEMPLAR: 50,
}

TIER_ORDER: dict[Tier, int] = {tier: rank for rank, tier in enumerate(TIER_UNLOCK_MIN_LEVEL, start=1)}

TIER_DISPLAY: dict[Tier, str] = {tier: tier.value.capitalize() for tier in Tier}

TIER_COLORS: dict[Tier, str] = {
    Tier.ENCHANTER: "#8b5cf6",
    Tier.ILLUMINATED: "#10b981",
    Tier.CONSCIOUS: "#3b82f6",
    Tier.ORACLE: "#6366f1",
    Tier.TEMPLAR: "#ef4444",
}

# Share of quest rewards paid out as liquid tTRUST, in percent.
TIER_LIQUID_REWARD_RATE: dict[Tier, int] = {
    Tier.ENCHANTER: 0,
    Tier.ILLUMINATED: 10,
    Tier.CONSCIOUS: 25,
    Tier.ORACLE: 50,
    Tier.TEMPLAR: 100,
}

# Completed quests a tier asks for before its reward rate is shown as earned.
TIER_QUESTS_REQUIRED: dict[Tier, int] = {
    Tier.ENCHANTER: 0,
    Tier.ILLUMINATED: 50,
    Tier.CONSCIOUS: 150,
    Tier.ORACLE: 300,
    Tier.TEMPLAR: 500,
}


@dataclass(frozen=True)
class Progression:
    xp: int
    level: int
    tier: Tier
    xp_into_level: int
    xp_to_next_level: int
    next_level_xp: int
    progress_percentage: float


@dataclass(frozen=True)
class TierRange:
    tier: Tier
    min_level: int
    max_level: int | None  # inclusive; None for the top tier


def compute_level(xp: int) -> int:
    """Level for a non-negative XP total."""
    if xp < 0:
        msg = f"xp must be non-negative, got {xp}"
        raise ValueError(msg)
    return xp // XP_PER_LEVEL


def tier_for_level(level: int) -> Tier:
    """Highest tier whose unlock level has been reached."""
    for tier, min_level in reversed(TIER_UNLOCK_MIN_LEVEL.items()):
        if level >= min_level:
            return tier
    return Tier.ENCHANTER


def derive_progression(xp: int) -> Progression:
    """Derive level, tier and progress towards the next level from total XP."""
    level = compute_level(xp)
    next_level_xp = (level + 1) * XP_PER_LEVEL
    xp_into_level = xp - level * XP_PER_LEVEL
    percentage = xp_into_level / XP_PER_LEVEL * 100

    return Progression(
        xp=xp,
        level=level,
        tier=tier_for_level(level),
        xp_into_level=xp_into_level,
        xp_to_next_level=next_level_xp - xp,
        next_level_xp=next_level_xp,
        progress_percentage=min(100.0, max(0.0, percentage)),
    )


def next_tier(tier: Tier) -> Tier | None:
    """The tier above `tier`, or None for the top tier."""
    tiers = list(TIER_UNLOCK_MIN_LEVEL)
    index = tiers.index(tier)
    return tiers[index + 1] if index + 1 < len(tiers) else None


def quests_to_next_tier(tier: Tier, quests_completed: int) -> int | None:
    """Quests still missing for the next tier's quest requirement. None at the top tier."""
    upcoming = next_tier(tier)
    if upcoming is None:
        return None
    return max(0, TIER_QUESTS_REQUIRED[upcoming] - quests_completed)


def tier_ranges() -> list[TierRange]:
    """Level range covered by each tier, lowest first."""
    items = list(TIER_UNLOCK_MIN_LEVEL.items())
    ranges = []
    for i, (tier, min_level) in enumerate(items):
        max_level = items[i + 1][1] - 1 if i + 1 < len(items) else None
        ranges.append(TierRange(tier=tier, min_level=min_level, max_level=max_level))
    return ranges
