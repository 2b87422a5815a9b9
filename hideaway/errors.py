"""
hideaway/errors.py
Exception types raised by the level engine

Only caller bugs are raised. A background that fails to decode or a level
that comes up short of its target count are outcomes, not errors.
"""


class HideawayError(Exception):
    """Base class for level engine errors."""
    pass


class UnknownDifficultyError(HideawayError, ValueError):
    """Raised when a difficulty tier name is not recognised."""

    def __init__(self, tier):
        self.tier = tier
        super().__init__(f"Unknown difficulty tier: {tier!r}")
