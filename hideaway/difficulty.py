"""
hideaway/difficulty.py
Difficulty tiers and the per-level parameter bundle

progression_step = (level - 1) // 5, so the game gets one step harder every
five levels. Each tier turns the step into an object count, an opacity, a
scale range and (medium/hard only) a time limit, all clamped at the tier's
floors and ceilings in config.TIER_RULES.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .config import PROGRESSION_PERIOD, TIER_RULES, TierRule
from .errors import UnknownDifficultyError


class Tier(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rule(self) -> TierRule:
        return TIER_RULES[self.value]

    @property
    def seed_multiplier(self) -> int:
        return self.rule.seed_multiplier


TierLike = Union[Tier, str]


@dataclass(frozen=True)
class DifficultyBundle:
    """Resolved generation parameters for one level."""
    tier: Tier
    level: int
    progression_step: int
    object_count: int
    opacity_base: float
    scale_range: Tuple[float, float]
    time_limit_seconds: Optional[int] = None

    @property
    def min_scale(self) -> float:
        return self.scale_range[0]

    @property
    def max_scale(self) -> float:
        return self.scale_range[1]

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "level": self.level,
            "progression_step": self.progression_step,
            "object_count": self.object_count,
            "opacity_base": self.opacity_base,
            "scale_range": list(self.scale_range),
            "time_limit_seconds": self.time_limit_seconds,
        }


def parse_tier(tier: TierLike) -> Tier:
    """
    Accept a Tier or its case-insensitive name.

    Raises:
        UnknownDifficultyError: anything else
    """
    if isinstance(tier, Tier):
        return tier
    if isinstance(tier, str):
        try:
            return Tier(tier.strip().lower())
        except ValueError:
            pass
    raise UnknownDifficultyError(tier)


def progression_step(level: int) -> int:
    """Number of completed five-level blocks before this level."""
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    return (level - 1) // PROGRESSION_PERIOD


def _decay(base, per_step, step, floor):
    return max(floor, base - step * per_step)


def resolve(level: int, tier: TierLike) -> DifficultyBundle:
    """
    Map (level, tier) to its DifficultyBundle.

    Pure: the same inputs always give an identical bundle.

    Raises:
        UnknownDifficultyError: unrecognised tier
        ValueError: level < 1 (levels are 1-based; there is no clamping)
    """
    tier = parse_tier(tier)
    step = progression_step(level)
    rule = tier.rule

    object_count = min(rule.count_ceiling, rule.count_base + step // 2)
    opacity = _decay(rule.opacity_base, rule.opacity_per_step, step, rule.opacity_floor)
    min_scale = _decay(rule.scale_min_base, rule.scale_min_per_step, step, rule.scale_min_floor)
    max_scale = _decay(rule.scale_max_base, rule.scale_max_per_step, step, rule.scale_max_floor)

    time_limit = None
    if rule.time_base is not None:
        time_limit = _decay(rule.time_base, rule.time_per_step, step, rule.time_floor)

    return DifficultyBundle(
        tier=tier,
        level=level,
        progression_step=step,
        object_count=object_count,
        opacity_base=opacity,
        scale_range=(min_scale, max_scale),
        time_limit_seconds=time_limit,
    )


def format_time(seconds: int) -> str:
    """Render a time budget as m:ss."""
    m, s = divmod(int(seconds), 60)
    return f"{m}:{s:02d}"
