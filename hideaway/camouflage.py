"""
hideaway/camouflage.py
Camouflage analysis of a background image

Scores a uniform grid of sample points by how well an overlay object would
blend in there, and returns the points best-first:

- Brightness: mean of R, G, B (mid-range is preferred)
- Texture: RMS deviation of the channels from brightness (busy beats flat)
- Saturation: max - min channel (muted beats vivid)

Sampling runs on a downsampled copy (longer side <= 200 px). Coordinates are
reported in percent of the original image. Pure numpy + Pillow.
"""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .config import SAMPLING_CONFIG, SCORING_CONFIG, SamplingConfig, ScoringConfig
from .logger import logger
from .models import CandidateSpot
from .seeds import input_fingerprint

ImageSource = Union[str, Path, bytes, Image.Image, np.ndarray]

# Everything Pillow and numpy raise for an unreadable background
DECODE_ERRORS = (OSError, ValueError, TypeError, Image.DecompressionBombError)


@dataclass(frozen=True)
class PixelStats:
    brightness: float
    saturation: float
    variance: float


# ----------------------------
# Decoding / downsampling
# ----------------------------

def load_rgb(source: ImageSource) -> Image.Image:
    """
    Decode a background into an RGB Pillow image.

    source:
      - path (str / Path) or encoded bytes
      - PIL.Image.Image in any mode
      - np.ndarray [H,W,3] or [H,W,4], uint8 0..255
    """
    if isinstance(source, Image.Image):
        img = source
    elif isinstance(source, np.ndarray):
        if source.ndim != 3 or source.shape[2] not in (3, 4):
            raise ValueError(f"expected HxWx3 pixel array, got shape {source.shape}")
        arr = source[:, :, :3]
        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)
        img = Image.fromarray(np.ascontiguousarray(arr))
    elif isinstance(source, (bytes, bytearray)):
        img = Image.open(io.BytesIO(source))
    else:
        img = Image.open(source)

    if img.mode != "RGB":
        img = img.convert("RGB")
    img.load()
    return img


def working_size(width: int, height: int, max_dim: int) -> Tuple[int, int]:
    """Largest size with the same aspect ratio whose longer side <= max_dim."""
    longest = max(width, height)
    if longest <= max_dim:
        return width, height
    ratio = max_dim / longest
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def downsample(img: Image.Image, max_dim: int = SAMPLING_CONFIG.max_dim) -> np.ndarray:
    """Return the working pixel buffer as uint8 [h,w,3]."""
    size = working_size(img.width, img.height, max_dim)
    if size != (img.width, img.height):
        img = img.resize(size, Image.BILINEAR)
    return np.asarray(img, dtype=np.uint8)


# ----------------------------
# Coordinates
# ----------------------------

def pixel_to_percent(
    x: float,
    y: float,
    sample_size: Tuple[int, int],
    source_size: Tuple[int, int],
) -> Tuple[float, float]:
    """
    Map a working-image pixel to percent of the original image.

    The point is first scaled back to original pixels, then divided by the
    original dimensions. sample_size / source_size are (width, height).
    """
    sample_w, sample_h = sample_size
    source_w, source_h = source_size
    src_x = x * source_w / sample_w
    src_y = y * source_h / sample_h
    return src_x / source_w * 100.0, src_y / source_h * 100.0


# ----------------------------
# Scoring
# ----------------------------

def pixel_stats(r: float, g: float, b: float) -> PixelStats:
    brightness = (r + g + b) / 3.0
    saturation = max(r, g, b) - min(r, g, b)
    variance = float(np.sqrt(
        ((r - brightness) ** 2 + (g - brightness) ** 2 + (b - brightness) ** 2) / 3.0
    ))
    return PixelStats(brightness, saturation, variance)


def score_pixel(r: float, g: float, b: float, config: Optional[ScoringConfig] = None) -> float:
    """Camouflage score of a single RGB sample (0..255 channels)."""
    config = config or SCORING_CONFIG
    stats = pixel_stats(float(r), float(g), float(b))
    return float(
        _brightness_term(stats.brightness, config)
        * _texture_term(stats.variance, config)
        * _saturation_term(stats.saturation, config)
    )


def _brightness_term(brightness, config: ScoringConfig):
    return np.where(
        (brightness > config.brightness_low) & (brightness < config.brightness_high),
        config.brightness_in_weight,
        config.brightness_out_weight,
    )


def _texture_term(variance, config: ScoringConfig):
    return np.where(variance > config.variance_threshold,
                    config.textured_weight, config.flat_weight)


def _saturation_term(saturation, config: ScoringConfig):
    return np.where(saturation < config.saturation_threshold,
                    config.muted_weight, config.vivid_weight)


def score_samples(samples: np.ndarray, config: Optional[ScoringConfig] = None) -> np.ndarray:
    """Vectorised score_pixel over an [..., 3] array."""
    config = config or SCORING_CONFIG
    s = samples.astype(np.float64)
    brightness = s.mean(axis=-1)
    saturation = s.max(axis=-1) - s.min(axis=-1)
    variance = np.sqrt(((s - brightness[..., None]) ** 2).sum(axis=-1) / 3.0)
    return (
        _brightness_term(brightness, config)
        * _texture_term(variance, config)
        * _saturation_term(saturation, config)
    )


def analyze_pixels(
    rgb: np.ndarray,
    source_size: Optional[Tuple[int, int]] = None,
    *,
    sampling: Optional[SamplingConfig] = None,
    scoring: Optional[ScoringConfig] = None,
) -> List[CandidateSpot]:
    """
    Score the sample grid of an already-downsampled buffer.

    rgb: uint8 [h,w,3] working image
    source_size: (width, height) of the original image; defaults to rgb's own
    """
    sampling = sampling or SAMPLING_CONFIG
    h, w = rgb.shape[:2]
    if source_size is None:
        source_size = (w, h)

    step = sampling.step
    ys = np.arange(step, h - step, step)
    xs = np.arange(step, w - step, step)
    if ys.size == 0 or xs.size == 0:
        return []

    scores = score_samples(rgb[np.ix_(ys, xs)], scoring)

    lo = sampling.margin_percent
    hi = 100.0 - sampling.margin_percent
    spots: List[CandidateSpot] = []
    for i, y in enumerate(ys):
        for j, x in enumerate(xs):
            px, py = pixel_to_percent(int(x), int(y), (w, h), source_size)
            if lo <= px <= hi and lo <= py <= hi:
                spots.append(CandidateSpot(px, py, float(scores[i, j])))

    # sorted() is stable: equal scores keep row-major scan order
    return sorted(spots, key=lambda c: -c.blend_score)


def analyze_image(
    img: Image.Image,
    *,
    sampling: Optional[SamplingConfig] = None,
    scoring: Optional[ScoringConfig] = None,
) -> List[CandidateSpot]:
    """Downsample a decoded image and score it."""
    sampling = sampling or SAMPLING_CONFIG
    rgb = downsample(img, sampling.max_dim)
    spots = analyze_pixels(rgb, (img.width, img.height), sampling=sampling, scoring=scoring)
    logger.camo(
        f"{len(spots)} candidates from {img.width}x{img.height}",
        details=f"working {rgb.shape[1]}x{rgb.shape[0]}",
    )
    return spots


async def analyze(
    source: ImageSource,
    *,
    sampling: Optional[SamplingConfig] = None,
    scoring: Optional[ScoringConfig] = None,
) -> List[CandidateSpot]:
    """
    Analyze a background, best-first.

    Decoding and scoring both run in a worker thread. A background that
    cannot be decoded yields [] instead of an exception; the planner then
    places objects uniformly at random.
    """
    try:
        img = await asyncio.to_thread(load_rgb, source)
    except DECODE_ERRORS as e:
        logger.warning("Background could not be decoded", component="CAMO", details=str(e))
        return []
    return await asyncio.to_thread(analyze_image, img, sampling=sampling, scoring=scoring)


def background_fingerprint(source: ImageSource) -> Optional[str]:
    """
    Fingerprint of an encoded background (bytes or a file path).

    Decoded images have no canonical encoding and return None, as does a
    path that cannot be read.
    """
    if isinstance(source, (bytes, bytearray)):
        return input_fingerprint(bytes(source))
    if isinstance(source, (str, Path)):
        try:
            return input_fingerprint(Path(source).read_bytes())
        except OSError:
            return None
    return None


def score_summary(spots: List[CandidateSpot]) -> dict:
    """Aggregate stats for reports and the CLI."""
    if not spots:
        return {"count": 0, "mean": 0.0, "max": 0.0, "best_fraction": 0.0}
    scores = np.array([s.blend_score for s in spots], dtype=np.float64)
    best = float(scores.max())
    return {
        "count": len(spots),
        "mean": float(scores.mean()),
        "max": best,
        "best_fraction": float(np.mean(np.isclose(scores, best))),
    }
