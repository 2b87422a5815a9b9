"""
hideaway/placement.py
Hidden-object placement by bounded rejection sampling

Per level:
1. Resolve the DifficultyBundle for (level, tier)
2. Compose the seed from level, tier multiplier and the millisecond clock
3. Score the background for camouflage spots
4. Draw positions until object_count is reached or MAX_ATTEMPTS draws
   have been spent, rejecting any draw closer than MIN_SEPARATION to an
   object already placed

Hitting the attempt cap is not an error: the level ships with fewer objects.
Constraints are never relaxed to fill the gap.
"""

import asyncio
import math
import time
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from .camouflage import ImageSource, analyze, background_fingerprint, score_summary
from .catalog import VARIANT_CATALOG, fallback_background, theme_for_level
from .config import PLACEMENT_CONFIG, PlacementConfig
from .difficulty import DifficultyBundle, TierLike, resolve
from .logger import logger
from .models import CandidateSpot, LevelLayout, PlacedObject
from .seeds import SeededRandom, compose_seed

MAX_ATTEMPTS = PLACEMENT_CONFIG.max_attempts
MIN_SEPARATION = PLACEMENT_CONFIG.min_separation

Analyzer = Callable[[ImageSource], Awaitable[List[CandidateSpot]]]

# Fields update_object may touch; ids are fixed for the life of a level
UPDATABLE_FIELDS = frozenset(f.name for f in fields(PlacedObject)) - {"id"}


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class PlacementResult:
    """Output of one rejection-sampling run."""
    objects: Tuple[PlacedObject, ...]
    attempts: int
    used_fallback: bool


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def too_close(x: float, y: float, placed: Sequence[PlacedObject], min_separation: float) -> bool:
    """True if (x, y) is nearer than min_separation to any placed object."""
    for p in placed:
        if math.hypot(x - p.x_percent, y - p.y_percent) < min_separation:
            return True
    return False


def draw_position(
    rng: SeededRandom,
    top_spots: Sequence[CandidateSpot],
    config: PlacementConfig,
) -> Tuple[float, float]:
    """
    Draw one candidate position in percent space.

    With analysis: a uniformly chosen top spot, jittered and clamped back
    into the margin band. Without: uniform inside the margin band.
    """
    margin = config.margin_percent
    if top_spots:
        spot = top_spots[rng.next_int(len(top_spots))]
        jitter = config.jitter_percent
        x = _clamp(spot.x_percent + rng.next_float(-jitter, jitter), margin, 100 - margin)
        y = _clamp(spot.y_percent + rng.next_float(-jitter, jitter), margin, 100 - margin)
        return x, y

    span = 100 - margin * 2
    x = margin + rng.next_float(0, span)
    y = margin + rng.next_float(0, span)
    return x, y


def place_objects(
    bundle: DifficultyBundle,
    candidates: Sequence[CandidateSpot],
    rng: SeededRandom,
    *,
    catalog: Sequence[str] = VARIANT_CATALOG,
    config: Optional[PlacementConfig] = None,
    id_stamp: int = 0,
) -> PlacementResult:
    """
    Run the rejection-sampling loop for one level.

    Deterministic given the generator state: the draws within an attempt are
    always scale, position, then (if accepted) id nonce, rotation, opacity,
    hue shift and variant.

    Args:
        bundle: Resolved difficulty parameters
        candidates: Analyzer output, best-first (may be empty)
        rng: This level's generator
        catalog: Visual variant references, drawn by index
        config: Placement settings (uses default if None)
        id_stamp: Timestamp embedded in object ids

    Returns:
        PlacementResult; fewer than bundle.object_count objects means the
        attempt cap was reached
    """
    config = config or PLACEMENT_CONFIG
    if not catalog:
        raise ValueError("variant catalog is empty")

    top_spots: Sequence[CandidateSpot] = ()
    if candidates:
        top_spots = candidates[:max(1, int(len(candidates) * config.top_fraction))]

    min_scale, max_scale = bundle.scale_range
    placed: List[PlacedObject] = []
    attempts = 0

    while len(placed) < bundle.object_count and attempts < config.max_attempts:
        attempts += 1
        scale = rng.next_float(min_scale, max_scale)
        x, y = draw_position(rng, top_spots, config)

        if too_close(x, y, placed, config.min_separation):
            continue

        nonce = rng.next_int(config.id_nonce_bound)
        placed.append(PlacedObject(
            id=f"obj-{len(placed)}-{id_stamp}-{nonce}",
            x_percent=x,
            y_percent=y,
            rotation_degrees=rng.next_float(0, 360),
            scale=scale,
            opacity=max(config.min_visible_opacity,
                        bundle.opacity_base - rng.next_float(0, config.opacity_jitter)),
            hue_shift_degrees=rng.next_float(0, 360),
            variant_ref=catalog[rng.next_int(len(catalog))],
        ))

    return PlacementResult(
        objects=tuple(placed),
        attempts=attempts,
        used_fallback=not top_spots,
    )


class PlacementPlanner:
    """
    Builds levels and owns the object list of the current one.

    Every generate() call gets its own SeededRandom and its own lists, so
    several planners (or overlapping calls) never share state. The current
    layout is only replaced once a generation has fully finished, and only
    by the most recently started one: a slow earlier call that finishes
    last returns its layout to its caller but never becomes current.

    With a backgrounds_dir, a generate() call without a background analyzes
    a stock background picked by fallback_background().
    """

    def __init__(
        self,
        catalog: Sequence[str] = VARIANT_CATALOG,
        config: Optional[PlacementConfig] = None,
        clock: Callable[[], int] = _now_ms,
        analyzer: Analyzer = analyze,
        backgrounds_dir: Optional[Union[str, Path]] = None,
    ):
        if not catalog:
            raise ValueError("variant catalog is empty")
        self.catalog = tuple(catalog)
        self.config = config or PLACEMENT_CONFIG
        self.backgrounds_dir = Path(backgrounds_dir) if backgrounds_dir is not None else None
        self._clock = clock
        self._analyzer = analyzer
        self._layout: Optional[LevelLayout] = None
        self._generation = 0

    @property
    def layout(self) -> Optional[LevelLayout]:
        """Snapshot of the current level (None before the first generate)."""
        return self._layout

    async def generate(
        self,
        level: int,
        tier: TierLike,
        background: Optional[ImageSource],
        theme: Optional[str] = None,
        *,
        timestamp_ms: Optional[int] = None,
    ) -> LevelLayout:
        """
        Generate a level.

        Args:
            level: 1-based level number
            tier: Tier or tier name
            background: Image to analyze; None falls back to a stock
                background when backgrounds_dir is set, else skips analysis
            theme: Theme label from the background provider (defaults to
                the catalog theme for the level)
            timestamp_ms: Clock override for replaying a known seed

        Raises:
            UnknownDifficultyError: unrecognised tier
            ValueError: level < 1
        """
        self._generation += 1
        generation = self._generation

        bundle = resolve(level, tier)
        stamp = self._clock() if timestamp_ms is None else int(timestamp_ms)
        seed = compose_seed(level, bundle.tier.seed_multiplier, stamp)
        rng = SeededRandom(seed)
        if theme is None:
            theme = theme_for_level(level)

        logger.place(level, f"seed {seed}", details=f"tier={bundle.tier.value}")

        stock_ref = None
        if background is None and self.backgrounds_dir is not None:
            # Own generator: the pick must not shift the placement draws
            stock_ref = fallback_background(SeededRandom(seed))
            background = self.backgrounds_dir / stock_ref
            logger.place(level, f"stock background {stock_ref}")

        candidates: List[CandidateSpot] = []
        fingerprint = None
        if background is not None:
            candidates = await self._analyzer(background)
            fingerprint = await asyncio.to_thread(background_fingerprint, background)
        if not candidates:
            logger.info(
                f"Level {level}: no camouflage analysis, placing uniformly",
                component="PLACE",
            )

        result = place_objects(
            bundle,
            candidates,
            rng,
            catalog=self.catalog,
            config=self.config,
            id_stamp=stamp,
        )

        layout = LevelLayout(
            level=level,
            tier=bundle.tier.value,
            theme=theme,
            seed=seed,
            objects=result.objects,
            requested_count=bundle.object_count,
            time_limit_seconds=bundle.time_limit_seconds,
            attempts=result.attempts,
            used_fallback=result.used_fallback,
            debug={
                "timestamp_ms": stamp,
                "bundle": bundle.to_dict(),
                "background": fingerprint,
                "stock_background": stock_ref,
                "candidates": score_summary(candidates),
            },
        )

        if layout.truncated:
            logger.info(
                f"Level {level}: placed {len(layout.objects)}/{bundle.object_count}",
                component="PLACE",
                details=f"attempt cap {self.config.max_attempts} reached",
            )
        else:
            logger.place(level, f"placed {len(layout.objects)} in {result.attempts} attempts")

        if generation == self._generation:
            self._layout = layout
        else:
            logger.place(level, "superseded by a newer generation, not made current")
        return layout

    def update_object(self, object_id: str, **changes) -> Optional[PlacedObject]:
        """
        Apply a partial update to the object with this id.

        Returns the updated object, or None if no such object exists.

        Raises:
            TypeError: unknown field, or an attempt to change the id
            ValueError: an attempt to mark a found object as not found
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"cannot update fields: {sorted(unknown)}")
        if self._layout is None:
            return None

        objects = list(self._layout.objects)
        for i, obj in enumerate(objects):
            if obj.id != object_id:
                continue
            if obj.found and changes.get("found", True) is False:
                raise ValueError(f"object {object_id} is already found")
            updated = replace(obj, **changes)
            objects[i] = updated
            self._layout = replace(self._layout, objects=tuple(objects))
            return updated
        return None

    def mark_found(self, object_id: str) -> Optional[PlacedObject]:
        """Flip `found` on one object."""
        return self.update_object(object_id, found=True)
