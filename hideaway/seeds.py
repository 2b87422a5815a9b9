"""
hideaway/seeds.py
Deterministic seed generation and the per-level random sequence

CRITICAL: Do NOT use the `random` module or Python's built-in hash() here.
hash() is salted per-process and `random` is shared process state. Every
level generation owns its own SeededRandom so concurrent generations never
disturb each other, and the same seed replays the same level everywhere.
"""

import hashlib

# Linear congruential constants (period 233280)
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

U32_MASK = 0xFFFFFFFF

# Seed composition weights
LEVEL_WEIGHT = 10000
TIER_WEIGHT = 1000
TIME_WINDOW_MS = 100000


class SeededRandom:
    """
    Reproducible pseudo-random stream from a 32-bit seed.

    state = (state * 9301 + 49297) mod 233280, next() = state / 233280

    Example:
        rng = SeededRandom(42)
        rng.next_float(0, 360)  -> same value on every run and platform
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int):
        self._state = int(seed) & U32_MASK

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> float:
        """Advance the recurrence and return a float in [0, 1)."""
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def next_int(self, bound: int) -> int:
        """
        Integer in [0, bound).

        Raises:
            ValueError: bound is not positive (caller bug)
        """
        if bound <= 0:
            raise ValueError(f"next_int bound must be positive, got {bound}")
        return int(self.next() * bound)

    def next_float(self, lo: float, hi: float) -> float:
        """Float in [lo, hi)."""
        return lo + self.next() * (hi - lo)


def compose_seed(level: int, tier_multiplier: int, timestamp_ms: int) -> int:
    """
    Build the level seed from level, tier multiplier and wall-clock time.

    Only the last TIME_WINDOW_MS milliseconds of the timestamp are used, so
    two calls inside the same millisecond agree and later replays differ.
    """
    base = (
        level * LEVEL_WEIGHT
        + tier_multiplier * TIER_WEIGHT
        + (timestamp_ms % TIME_WINDOW_MS)
    )
    return base & U32_MASK


def input_fingerprint(data: bytes) -> str:
    """
    Generate SHA-256 fingerprint for a background image.

    Used to identify the background in generation reports.
    """
    return f"sha256:{hashlib.sha256(data).hexdigest()}"
