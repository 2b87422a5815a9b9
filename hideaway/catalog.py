"""
hideaway/catalog.py
Fixed catalogs: hidden-object variants, level themes, stock backgrounds

Background generation happens outside the engine. These lists are what the
game falls back on when that service is slow or unavailable.
"""

from typing import Tuple

from .seeds import SeededRandom

# IMPORTANT: Order is stable - append only
# Placed objects store the reference drawn by index, so reordering changes
# which variant every existing seed produces.
VARIANT_CATALOG: Tuple[str, ...] = tuple(
    f"objects/puppy_{i:02d}.png" for i in range(1, 13)
)

THEMES: Tuple[str, ...] = (
    "A sunlit cottage kitchen table in morning light",
    "A cozy explorer's desk by a window in autumn",
    "A vintage sewing corner bathed in soft afternoon sun",
    "A lush secret garden nook with blooming hydrangeas",
    "A storybook herbalist's hut interior",
    "A peaceful sunroom filled with ferns",
    "A picnic on a checkered blanket in evening light",
    "A dusty attic window seat with soft sunbeams",
    "A greenhouse shelf crowded with succulents",
    "A bakery counter in a village",
    "A magical potion shop counter",
    "A rustic toolshed workbench",
    "A vintage candy shop display",
    "A painter's easel in a meadow",
    "A cozy reading nook with a plush armchair",
    "A forest floor covered in moss and mushrooms",
    "A seaside rock pool with colorful shells",
    "A vintage vanity table with perfume bottles",
    "A cluttered antique shop shelf",
    "A festive holiday fireplace mantle",
    "A treehouse floor scattered with toys",
    "A japanese tea ceremony set",
    "A wizard's alchemy table",
    "A farmer's market stall",
    "A cozy bedroom window sill",
)

FALLBACK_BACKGROUNDS: Tuple[str, ...] = tuple(
    f"backgrounds/{i}.png" for i in range(1, 27)
)


def theme_for_level(level: int) -> str:
    """Themes cycle with the level number, starting at level 1."""
    return THEMES[(level - 1) % len(THEMES)]


def fallback_background(rng: SeededRandom) -> str:
    """Pick a stock background, relative to a planner's backgrounds_dir."""
    return FALLBACK_BACKGROUNDS[rng.next_int(len(FALLBACK_BACKGROUNDS))]
