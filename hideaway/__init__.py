"""
Hideaway - Procedural level generator for a hidden-object game

A deterministic engine that turns a level number, a difficulty tier and a
background image into a camouflaged, non-overlapping set of hidden objects.

Usage:
    python -m hideaway generate --level 6 --tier medium --image bg.png
    python -m hideaway analyze --image bg.png --top 10
    python -m hideaway resolve --level 12 --tier hard
"""

__version__ = "1.2.0"

from .models import CandidateSpot, PlacedObject, LevelLayout
from .seeds import SeededRandom, compose_seed, input_fingerprint
from .difficulty import DifficultyBundle, Tier, resolve, format_time
from .camouflage import analyze, analyze_pixels, pixel_to_percent
from .placement import PlacementPlanner, place_objects, MAX_ATTEMPTS, MIN_SEPARATION
from .catalog import VARIANT_CATALOG, THEMES, theme_for_level, fallback_background
from .hints import HintLedger, HintOutcome
from .errors import HideawayError, UnknownDifficultyError

__all__ = [
    # Version
    "__version__",
    # Models
    "CandidateSpot",
    "PlacedObject",
    "LevelLayout",
    # Seeds
    "SeededRandom",
    "compose_seed",
    "input_fingerprint",
    # Difficulty
    "DifficultyBundle",
    "Tier",
    "resolve",
    "format_time",
    # Camouflage
    "analyze",
    "analyze_pixels",
    "pixel_to_percent",
    # Placement
    "PlacementPlanner",
    "place_objects",
    "MAX_ATTEMPTS",
    "MIN_SEPARATION",
    # Catalogs
    "VARIANT_CATALOG",
    "THEMES",
    "theme_for_level",
    "fallback_background",
    # Hints
    "HintLedger",
    "HintOutcome",
    # Errors
    "HideawayError",
    "UnknownDifficultyError",
]
