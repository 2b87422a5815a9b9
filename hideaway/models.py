"""
hideaway/models.py
Core data models for level generation
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional, Tuple

from .config import LAYOUT_VERSION


# =============================================================================
# CandidateSpot
# =============================================================================

@dataclass(frozen=True)
class CandidateSpot:
    """
    A scored background location, in percent of the original image.

    Produced by the camouflage analyzer, read by the planner, then dropped.
    """
    x_percent: float
    y_percent: float
    blend_score: float


# =============================================================================
# PlacedObject
# =============================================================================

@dataclass(frozen=True)
class PlacedObject:
    """
    One hidden object in a level.

    Everything except `found` is fixed at generation time, and `found` only
    changes through PlacementPlanner.update_object, which swaps in a copy.
    """
    id: str
    x_percent: float
    y_percent: float
    rotation_degrees: float
    scale: float
    opacity: float
    hue_shift_degrees: float
    variant_ref: str
    found: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# LevelLayout
# =============================================================================

@dataclass(frozen=True)
class LevelLayout:
    """Result of one level generation."""
    level: int
    tier: str
    theme: str
    seed: int
    objects: Tuple[PlacedObject, ...]
    requested_count: int
    time_limit_seconds: Optional[int] = None
    attempts: int = 0
    used_fallback: bool = False
    debug: Dict[str, object] = field(default_factory=dict)

    @property
    def shortfall(self) -> int:
        """How many objects the attempt cap cost this level."""
        return self.requested_count - len(self.objects)

    @property
    def truncated(self) -> bool:
        return self.shortfall > 0

    @property
    def found_count(self) -> int:
        return sum(1 for o in self.objects if o.found)

    @property
    def remaining(self) -> int:
        return len(self.objects) - self.found_count

    @property
    def is_complete(self) -> bool:
        return bool(self.objects) and self.remaining == 0

    def get(self, object_id: str) -> Optional[PlacedObject]:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def to_dict(self) -> dict:
        return {
            "layout_version": LAYOUT_VERSION,
            "level": self.level,
            "tier": self.tier,
            "theme": self.theme,
            "seed": self.seed,
            "requested_count": self.requested_count,
            "placed_count": len(self.objects),
            "time_limit_seconds": self.time_limit_seconds,
            "attempts": self.attempts,
            "used_fallback": self.used_fallback,
            "objects": [o.to_dict() for o in self.objects],
            "debug": self.debug,
        }
