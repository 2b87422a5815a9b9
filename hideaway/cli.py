"""
hideaway/cli.py
Command-line interface for Hideaway

Usage:
    python -m hideaway generate --level 6 --tier medium --image bg.png
    python -m hideaway generate --level 3 --tier easy --backgrounds assets/
    python -m hideaway analyze --image bg.png --top 10
    python -m hideaway resolve --level 12 --tier hard --json
    python -m hideaway themes
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import LAYOUT_VERSION
from .errors import UnknownDifficultyError
from .logger import LogLevel, set_log_level


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a level and print its layout."""
    from .difficulty import format_time
    from .placement import PlacementPlanner

    image = None
    if args.image:
        image = Path(args.image)
        if not image.exists():
            print(f"ERROR: Background image not found: {image}")
            return 1

    planner = PlacementPlanner(backgrounds_dir=args.backgrounds)
    try:
        layout = asyncio.run(planner.generate(
            args.level, args.tier, image, args.theme, timestamp_ms=args.timestamp,
        ))
    except (UnknownDifficultyError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    if args.json:
        print(json.dumps(layout.to_dict(), indent=2))
        return 0

    print(f"Level {layout.level} ({layout.tier})")
    print(f"Theme: {layout.theme}")
    print(f"Seed:  {layout.seed}")
    if layout.debug.get("stock_background"):
        print(f"Stock background: {layout.debug['stock_background']}")
    if layout.time_limit_seconds is not None:
        print(f"Time limit: {format_time(layout.time_limit_seconds)}")
    else:
        print("Time limit: none")
    print(f"Placed: {len(layout.objects)}/{layout.requested_count} "
          f"in {layout.attempts} attempts")
    if layout.used_fallback:
        print("  (no camouflage analysis - uniform placement)")
    if layout.truncated:
        print(f"  (attempt cap reached, {layout.shortfall} short)")
    print()

    shown = layout.objects if args.verbose else layout.objects[:5]
    for obj in shown:
        print(f"  {obj.id:28s} x={obj.x_percent:5.1f} y={obj.y_percent:5.1f} "
              f"scale={obj.scale:.3f} opacity={obj.opacity:.3f} {obj.variant_ref}")
    if len(layout.objects) > len(shown):
        print(f"  ... and {len(layout.objects) - len(shown)} more")

    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Print the best camouflage spots of an image."""
    from .camouflage import analyze, score_summary

    image = Path(args.image)
    if not image.exists():
        print(f"ERROR: Image not found: {image}")
        return 1

    spots = asyncio.run(analyze(image))
    summary = score_summary(spots)

    if args.json:
        output = {
            "summary": summary,
            "candidates": [
                {"x": s.x_percent, "y": s.y_percent, "score": s.blend_score}
                for s in spots[:args.top]
            ],
        }
        print(json.dumps(output, indent=2))
        return 0

    print(f"Camouflage analysis: {image.name}")
    print("=" * 50)
    if not spots:
        print("No candidates (image could not be analyzed)")
        return 0
    print(f"Candidates: {summary['count']}")
    print(f"Score mean: {summary['mean']:.3f}  max: {summary['max']:.3f}")
    print(f"At best score: {summary['best_fraction']:.0%}")
    print()
    for s in spots[:args.top]:
        print(f"  ({s.x_percent:5.1f}%, {s.y_percent:5.1f}%)  {s.blend_score:.2f}")
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    """Print the difficulty bundle for a level."""
    from .difficulty import format_time, resolve

    try:
        bundle = resolve(args.level, args.tier)
    except (UnknownDifficultyError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    if args.json:
        print(json.dumps(bundle.to_dict(), indent=2))
        return 0

    print(f"Level {bundle.level} ({bundle.tier.value}), step {bundle.progression_step}")
    print(f"  objects:    {bundle.object_count}")
    print(f"  opacity:    {bundle.opacity_base:.3f}")
    print(f"  scale:      {bundle.min_scale:.3f} - {bundle.max_scale:.3f}")
    if bundle.time_limit_seconds is None:
        print("  time limit: none")
    else:
        print(f"  time limit: {format_time(bundle.time_limit_seconds)}")
    return 0


def cmd_themes(args: argparse.Namespace) -> int:
    """List the level themes."""
    from .catalog import THEMES

    for i, theme in enumerate(THEMES, start=1):
        print(f"  {i:2d}. {theme}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="hideaway",
        description="Hidden-object level generator",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__} (layout v{LAYOUT_VERSION})"
    )
    parser.add_argument("--debug", action="store_true", help="Show debug log output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate command
    gen_parser = subparsers.add_parser("generate", help="Generate a level layout")
    gen_parser.add_argument("--level", "-l", type=int, required=True, help="Level number (1-based)")
    gen_parser.add_argument("--tier", "-t", type=str, required=True, help="easy, medium or hard")
    gen_parser.add_argument("--image", "-i", type=str, help="Background image path")
    gen_parser.add_argument("--backgrounds", type=str,
                            help="Stock background directory used when --image is absent")
    gen_parser.add_argument("--theme", type=str, help="Theme label (defaults to the level theme)")
    gen_parser.add_argument("--timestamp", type=int, help="Clock value in ms (replays a seed)")
    gen_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    gen_parser.add_argument("--verbose", "-v", action="store_true", help="List every object")
    gen_parser.set_defaults(func=cmd_generate)

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Score camouflage spots in an image")
    analyze_parser.add_argument("--image", "-i", type=str, required=True, help="Input image")
    analyze_parser.add_argument("--top", type=int, default=10, help="Spots to show")
    analyze_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    analyze_parser.set_defaults(func=cmd_analyze)

    # resolve command
    resolve_parser = subparsers.add_parser("resolve", help="Show difficulty parameters")
    resolve_parser.add_argument("--level", "-l", type=int, required=True, help="Level number (1-based)")
    resolve_parser.add_argument("--tier", "-t", type=str, required=True, help="easy, medium or hard")
    resolve_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    resolve_parser.set_defaults(func=cmd_resolve)

    # themes command
    themes_parser = subparsers.add_parser("themes", help="List level themes")
    themes_parser.set_defaults(func=cmd_themes)

    args = parser.parse_args(argv)
    if args.debug:
        set_log_level(LogLevel.DEBUG)
    elif getattr(args, "json", False):
        set_log_level(LogLevel.ERROR)
    else:
        set_log_level(LogLevel.WARNING)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
