# tests/test_placement.py
"""
Tests for hideaway/placement.py: bounded rejection sampling and the planner.
"""
import asyncio
import itertools
import math

import numpy as np
from PIL import Image
import pytest

from hideaway.catalog import VARIANT_CATALOG, fallback_background, theme_for_level
from hideaway.config import PlacementConfig
from hideaway.difficulty import resolve
from hideaway.errors import UnknownDifficultyError
from hideaway.models import CandidateSpot
from hideaway.placement import (
    MAX_ATTEMPTS,
    MIN_SEPARATION,
    PlacementPlanner,
    draw_position,
    place_objects,
    too_close,
)
from hideaway.seeds import SeededRandom, compose_seed, input_fingerprint

STAMP = 1_700_000_123_456


def _fixed_clock():
    return STAMP


def _planner(**kwargs):
    kwargs.setdefault("clock", _fixed_clock)
    return PlacementPlanner(**kwargs)


def _textured_background(size=240):
    """Warm grey noise with a flat black band on the right."""
    rng = np.random.default_rng(0)
    img = rng.integers(60, 180, size=(size, size, 3), dtype=np.uint8)
    img[:, size * 3 // 4:] = 0
    return img


async def _one_spot(_background):
    return [CandidateSpot(50.0, 50.0, 1.0)]


async def _no_spots(_background):
    return []


def _pairwise_min_distance(objects):
    dists = [
        math.hypot(a.x_percent - b.x_percent, a.y_percent - b.y_percent)
        for a, b in itertools.combinations(objects, 2)
    ]
    return min(dists) if dists else math.inf


def _assert_valid_level(layout, bundle, margin=5.0):
    objects = layout.objects
    assert len(objects) == bundle.object_count or layout.attempts == MAX_ATTEMPTS
    assert len(objects) <= bundle.object_count
    assert _pairwise_min_distance(objects) >= MIN_SEPARATION
    assert len({o.id for o in objects}) == len(objects)
    lo_scale, hi_scale = bundle.scale_range
    for o in objects:
        assert margin <= o.x_percent <= 100 - margin
        assert margin <= o.y_percent <= 100 - margin
        assert 0 <= o.rotation_degrees < 360
        assert 0 <= o.hue_shift_degrees < 360
        assert lo_scale <= o.scale <= hi_scale
        assert 0.15 <= o.opacity <= bundle.opacity_base
        assert o.variant_ref in VARIANT_CATALOG
        assert o.found is False


# -----------------------------------------------------------------------------
# place_objects
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("tier", ["easy", "medium", "hard"])
@pytest.mark.parametrize("level", [1, 6, 40])
def test_uniform_fallback_layout_is_valid(tier, level):
    bundle = resolve(level, tier)
    result = place_objects(bundle, [], SeededRandom(compose_seed(level, 2, STAMP)))
    assert result.used_fallback
    assert len(result.objects) == bundle.object_count or result.attempts == MAX_ATTEMPTS
    for o in result.objects:
        assert 5.0 <= o.x_percent <= 95.0
        assert 5.0 <= o.y_percent <= 95.0
    assert _pairwise_min_distance(result.objects) >= MIN_SEPARATION


def test_same_seed_same_layout():
    bundle = resolve(12, "hard")
    spots = [CandidateSpot(x, y, 1.0) for x in range(10, 91, 10) for y in range(10, 91, 10)]
    a = place_objects(bundle, spots, SeededRandom(4242), id_stamp=7)
    b = place_objects(bundle, spots, SeededRandom(4242), id_stamp=7)
    assert a == b


def test_single_spot_truncates_at_attempt_cap():
    """Every draw lands within 2*sqrt(2) of (50, 50), so only one object fits."""
    bundle = resolve(1, "easy")
    result = place_objects(bundle, [CandidateSpot(50.0, 50.0, 1.0)], SeededRandom(1))
    assert len(result.objects) == 1
    assert result.attempts == MAX_ATTEMPTS
    obj = result.objects[0]
    assert 48.0 <= obj.x_percent <= 52.0
    assert 48.0 <= obj.y_percent <= 52.0


def test_attempt_cap_bounds_work():
    bundle = resolve(1, "hard")
    cfg = PlacementConfig(max_attempts=10)
    result = place_objects(bundle, [], SeededRandom(3), config=cfg)
    assert result.attempts <= 10
    assert len(result.objects) <= 10


def test_wide_separation_ships_short_level():
    bundle = resolve(1, "hard")
    cfg = PlacementConfig(min_separation=50.0)
    result = place_objects(bundle, [], SeededRandom(11), config=cfg)
    assert result.attempts == cfg.max_attempts
    assert 1 <= len(result.objects) < bundle.object_count
    assert _pairwise_min_distance(result.objects) >= 50.0


def test_candidates_restricted_to_top_fraction():
    """Objects stay near the best 70% of spots, never the worst ones."""
    good = [CandidateSpot(float(x), 20.0, 1.0) for x in range(10, 91, 8)]
    bad = [CandidateSpot(float(x), 80.0, 0.1) for x in range(10, 91, 8)]
    spots = good + bad[:4]
    bundle = resolve(1, "easy")
    result = place_objects(bundle, spots, SeededRandom(5))
    assert not result.used_fallback
    for o in result.objects:
        assert abs(o.y_percent - 20.0) <= 2.0


def test_jitter_is_clamped_to_margin():
    spots = [CandidateSpot(5.0, 95.0, 1.0)]
    cfg = PlacementConfig()
    rng = SeededRandom(17)
    for _ in range(200):
        x, y = draw_position(rng, spots, cfg)
        assert 5.0 <= x <= 7.0
        assert 93.0 <= y <= 95.0


def test_too_close():
    bundle = resolve(1, "easy")
    result = place_objects(bundle, [], SeededRandom(1))
    first = result.objects[0]
    assert too_close(first.x_percent + 1, first.y_percent, result.objects, 6.0)
    assert not too_close(first.x_percent, first.y_percent, [], 6.0)


def test_empty_catalog_rejected():
    with pytest.raises(ValueError):
        place_objects(resolve(1, "easy"), [], SeededRandom(1), catalog=())


def test_ids_embed_index_and_stamp():
    result = place_objects(resolve(1, "easy"), [], SeededRandom(9), id_stamp=STAMP)
    for i, o in enumerate(result.objects):
        assert o.id.startswith(f"obj-{i}-{STAMP}-")


def test_custom_catalog():
    catalog = ("a.png", "b.png")
    result = place_objects(resolve(1, "easy"), [], SeededRandom(9), catalog=catalog)
    assert {o.variant_ref for o in result.objects} <= set(catalog)


# -----------------------------------------------------------------------------
# PlacementPlanner.generate
# -----------------------------------------------------------------------------

def test_generate_level_six_medium():
    planner = _planner()
    layout = asyncio.run(planner.generate(6, "medium", _textured_background(), "Attic"))
    bundle = resolve(6, "medium")

    assert layout.level == 6
    assert layout.tier == "medium"
    assert layout.theme == "Attic"
    assert layout.time_limit_seconds == 148
    assert layout.requested_count == 25
    assert layout.seed == compose_seed(6, 2, STAMP)
    assert not layout.used_fallback
    _assert_valid_level(layout, bundle)
    assert planner.layout is layout


def test_generate_without_background_uses_fallback():
    layout = asyncio.run(_planner().generate(3, "easy", None))
    assert layout.used_fallback
    assert layout.time_limit_seconds is None
    assert layout.theme == theme_for_level(3)
    _assert_valid_level(layout, resolve(3, "easy"))


def test_undecodable_background_uses_fallback():
    layout = asyncio.run(_planner().generate(2, "hard", b"not an image"))
    assert layout.used_fallback
    assert layout.debug["candidates"]["count"] == 0
    _assert_valid_level(layout, resolve(2, "hard"))


def test_empty_analysis_matches_uniform_placement():
    planner = _planner(analyzer=_no_spots)
    layout = asyncio.run(planner.generate(8, "medium", "ignored.png"))
    expected = place_objects(
        resolve(8, "medium"), [], SeededRandom(compose_seed(8, 2, STAMP)), id_stamp=STAMP,
    )
    assert layout.objects == expected.objects


def test_generate_reports_truncation():
    layout = asyncio.run(_planner(analyzer=_one_spot).generate(1, "easy", "bg.png"))
    assert len(layout.objects) == 1
    assert layout.attempts == MAX_ATTEMPTS
    assert layout.truncated
    assert layout.shortfall == resolve(1, "easy").object_count - 1


def test_generate_is_reproducible_for_same_clock():
    bg = _textured_background()
    a = asyncio.run(_planner().generate(4, "hard", bg))
    b = asyncio.run(_planner().generate(4, "hard", bg))
    assert a.objects == b.objects
    assert a.seed == b.seed


def test_timestamp_override_changes_seed():
    planner = _planner()
    a = asyncio.run(planner.generate(4, "hard", None, timestamp_ms=1000))
    b = asyncio.run(planner.generate(4, "hard", None, timestamp_ms=2000))
    assert a.seed != b.seed
    assert a.objects != b.objects


def test_concurrent_generations_are_independent():
    bg = _textured_background()

    async def run_both():
        return await asyncio.gather(
            _planner().generate(5, "medium", bg),
            _planner().generate(5, "medium", bg),
            _planner().generate(9, "easy", None),
        )

    first, second, other = asyncio.run(run_both())
    solo = asyncio.run(_planner().generate(5, "medium", bg))
    assert first.objects == second.objects == solo.objects
    assert other.level == 9


def test_latest_generation_wins_when_an_older_one_finishes_last():
    async def slow_for_first_level(background):
        if background == "slow.png":
            await asyncio.sleep(0.2)
        return []

    planner = _planner(analyzer=slow_for_first_level)

    async def run_both():
        older = asyncio.create_task(planner.generate(1, "easy", "slow.png"))
        await asyncio.sleep(0)  # let the older call reach its analyzer
        newer = await planner.generate(2, "easy", "fast.png")
        return await older, newer

    older, newer = asyncio.run(run_both())
    assert older.level == 1
    assert newer.level == 2
    assert planner.layout is newer


def test_debug_fingerprints_encoded_background(tmp_path):
    buf = tmp_path / "bg.png"
    Image.fromarray(_textured_background(120)).save(buf)
    data = buf.read_bytes()

    from_bytes = asyncio.run(_planner().generate(3, "medium", data))
    from_path = asyncio.run(_planner().generate(3, "medium", buf))
    from_array = asyncio.run(_planner().generate(3, "medium", _textured_background(120)))
    without = asyncio.run(_planner().generate(3, "medium", None))

    assert from_bytes.debug["background"] == input_fingerprint(data)
    assert from_path.debug["background"] == input_fingerprint(data)
    assert from_array.debug["background"] is None
    assert without.debug["background"] is None
    assert without.debug["stock_background"] is None


def test_stock_background_used_without_image(tmp_path):
    seed = compose_seed(7, 1, STAMP)
    ref = fallback_background(SeededRandom(seed))
    stock = tmp_path / ref
    stock.parent.mkdir(parents=True)
    Image.fromarray(_textured_background()).save(stock)

    layout = asyncio.run(_planner(backgrounds_dir=tmp_path).generate(7, "easy", None))
    direct = asyncio.run(_planner().generate(7, "easy", stock))

    assert layout.debug["stock_background"] == ref
    assert not layout.used_fallback
    assert layout.objects == direct.objects
    _assert_valid_level(layout, resolve(7, "easy"))


def test_missing_stock_background_falls_back_to_uniform(tmp_path):
    layout = asyncio.run(_planner(backgrounds_dir=tmp_path).generate(7, "easy", None))
    uniform = asyncio.run(_planner().generate(7, "easy", None))
    assert layout.used_fallback
    assert layout.debug["stock_background"] is not None
    assert layout.objects == uniform.objects


def test_generate_unknown_tier_fails_fast():
    with pytest.raises(UnknownDifficultyError):
        asyncio.run(_planner().generate(1, "nightmare", None))


def test_planner_rejects_empty_catalog():
    with pytest.raises(ValueError):
        PlacementPlanner(catalog=[])


# -----------------------------------------------------------------------------
# update_object
# -----------------------------------------------------------------------------

def _generated_planner():
    planner = _planner()
    asyncio.run(planner.generate(1, "easy", None))
    return planner


def test_mark_found_flips_one_object():
    planner = _generated_planner()
    before = planner.layout
    target = before.objects[3].id

    updated = planner.mark_found(target)

    assert updated.found is True
    after = planner.layout
    assert after.get(target).found is True
    assert after.found_count == 1
    assert after.remaining == len(after.objects) - 1
    # the earlier snapshot is untouched
    assert before.get(target).found is False
    # every other object unchanged
    for old, new in zip(before.objects, after.objects):
        if old.id != target:
            assert old == new


def test_update_unknown_id_is_noop():
    planner = _generated_planner()
    before = planner.layout
    assert planner.update_object("obj-missing", found=True) is None
    assert planner.layout is before


def test_update_before_generate_is_noop():
    assert _planner().update_object("obj-0", found=True) is None


def test_found_cannot_be_reverted():
    planner = _generated_planner()
    target = planner.layout.objects[0].id
    planner.mark_found(target)
    with pytest.raises(ValueError):
        planner.update_object(target, found=False)
    # marking again is harmless
    assert planner.mark_found(target).found is True


def test_id_and_unknown_fields_rejected():
    planner = _generated_planner()
    target = planner.layout.objects[0].id
    with pytest.raises(TypeError):
        planner.update_object(target, id="other")
    with pytest.raises(TypeError):
        planner.update_object(target, colour="red")


def test_level_complete_when_all_found():
    planner = _generated_planner()
    for obj in planner.layout.objects:
        planner.mark_found(obj.id)
    assert planner.layout.is_complete
    assert planner.layout.remaining == 0
