"""
hideaway/config.py
Configuration constants for level generation

The scoring and tier constants decide how hard a level plays. Changing them
changes game balance, so they are kept here verbatim and nowhere else.
"""

from dataclasses import dataclass
from typing import Dict, Optional

# =============================================================================
# Version
# =============================================================================

# Bump when LevelLayout.to_dict() changes shape
LAYOUT_VERSION = 1

# =============================================================================
# Image sampling
# =============================================================================

@dataclass(frozen=True)
class SamplingConfig:
    """Downsample and grid-scan settings for the camouflage analyzer."""
    max_dim: int = 200          # longer side of the working image
    step: int = 10              # grid pitch in working-image pixels
    margin_percent: float = 5.0 # candidates outside [m, 100-m] are dropped


SAMPLING_CONFIG = SamplingConfig()

# =============================================================================
# Camouflage scoring
# =============================================================================

@dataclass(frozen=True)
class ScoringConfig:
    """
    Weights for the three camouflage terms.

    score = brightness_term * texture_term * saturation_term
    """
    # Brightness: mid-range hides objects, near-black/near-white does not
    brightness_low: float = 30.0
    brightness_high: float = 220.0
    brightness_in_weight: float = 1.0
    brightness_out_weight: float = 0.3

    # Texture: variation across channels
    variance_threshold: float = 10.0
    textured_weight: float = 1.0
    flat_weight: float = 0.5

    # Saturation: desaturated areas blend tinted overlays better
    saturation_threshold: float = 100.0
    muted_weight: float = 1.2
    vivid_weight: float = 0.8


SCORING_CONFIG = ScoringConfig()

# =============================================================================
# Placement
# =============================================================================

@dataclass(frozen=True)
class PlacementConfig:
    """Rejection-sampling settings for the placement planner."""
    max_attempts: int = 1000        # safety bound, never raised at runtime
    min_separation: float = 6.0     # percent-space distance between objects
    top_fraction: float = 0.7       # share of best candidates drawn from
    jitter_percent: float = 2.0     # +/- offset applied to candidate spots
    opacity_jitter: float = 0.1     # max reduction below the tier opacity
    min_visible_opacity: float = 0.15
    margin_percent: float = 5.0
    id_nonce_bound: int = 10000


PLACEMENT_CONFIG = PlacementConfig()

# =============================================================================
# Difficulty tiers
# =============================================================================

# Every PROGRESSION_PERIOD levels the game gets one step harder
PROGRESSION_PERIOD = 5


@dataclass(frozen=True)
class TierRule:
    """
    Formula constants for one difficulty tier.

    Each value is `base - per_step * step`, clamped at its floor; the object
    count grows by one every two steps up to its ceiling.
    """
    seed_multiplier: int
    count_base: int
    count_ceiling: int
    opacity_base: float
    opacity_floor: float
    opacity_per_step: float = 0.01
    scale_min_base: float = 0.3
    scale_min_floor: float = 0.3
    scale_min_per_step: float = 0.0
    scale_max_base: float = 0.5
    scale_max_floor: float = 0.5
    scale_max_per_step: float = 0.0
    time_base: Optional[int] = None
    time_floor: Optional[int] = None
    time_per_step: int = 2


# IMPORTANT: Order is stable - seed multipliers depend on it
TIER_RULES: Dict[str, TierRule] = {
    "easy": TierRule(
        seed_multiplier=1,
        count_base=15, count_ceiling=25,
        opacity_base=0.6, opacity_floor=0.4,
    ),
    "medium": TierRule(
        seed_multiplier=2,
        count_base=25, count_ceiling=35,
        opacity_base=0.4, opacity_floor=0.25,
        scale_min_base=0.25, scale_min_floor=0.15, scale_min_per_step=0.005,
        scale_max_base=0.4, scale_max_floor=0.3, scale_max_per_step=0.005,
        time_base=150, time_floor=120,
    ),
    "hard": TierRule(
        seed_multiplier=3,
        count_base=40, count_ceiling=50,
        opacity_base=0.3, opacity_floor=0.15,
        scale_min_base=0.2, scale_min_floor=0.12, scale_min_per_step=0.004,
        scale_max_base=0.35, scale_max_floor=0.25, scale_max_per_step=0.005,
        time_base=180, time_floor=150,
    ),
}

# =============================================================================
# Hints
# =============================================================================

@dataclass(frozen=True)
class HintConfig:
    """Per-level hint allowance."""
    free_hints_per_level: int = 2
    reveal_seconds: float = 3.0


HINT_CONFIG = HintConfig()
