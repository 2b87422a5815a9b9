"""
hideaway/hints.py
Per-level hint allowance

Each level grants a fixed number of free hints. After those, hints come out
of the player's premium balance, which the caller owns and persists.
"""

import time
from enum import Enum
from typing import Callable, Optional

from .config import HINT_CONFIG, HintConfig
from .logger import logger


class HintOutcome(Enum):
    FREE = "free"
    PREMIUM = "premium"
    ALREADY_SHOWING = "already_showing"
    EXHAUSTED = "exhausted"


class HintLedger:
    """
    Tracks hint use within one level.

    A hint shows for config.reveal_seconds on the ledger's clock; while it
    is showing, use() costs nothing and returns ALREADY_SHOWING. hide()
    ends the reveal early.
    """

    def __init__(
        self,
        premium_balance: int = 0,
        config: Optional[HintConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if premium_balance < 0:
            raise ValueError(f"premium balance cannot be negative: {premium_balance}")
        self.config = config or HINT_CONFIG
        self.premium_balance = premium_balance
        self.used_in_level = 0
        self._clock = clock
        self._shown_until: Optional[float] = None

    @property
    def free_hints_remaining(self) -> int:
        return max(0, self.config.free_hints_per_level - self.used_in_level)

    @property
    def has_premium_hints(self) -> bool:
        return self.premium_balance > 0

    @property
    def showing(self) -> bool:
        return self._shown_until is not None and self._clock() < self._shown_until

    def _reveal(self):
        self._shown_until = self._clock() + self.config.reveal_seconds

    def use(self) -> HintOutcome:
        if self.showing:
            return HintOutcome.ALREADY_SHOWING

        if self.free_hints_remaining > 0:
            self.used_in_level += 1
            self._reveal()
            return HintOutcome.FREE

        if self.has_premium_hints:
            self.premium_balance -= 1
            self._reveal()
            logger.debug(f"Premium hint used, {self.premium_balance} left", component="HINT")
            return HintOutcome.PREMIUM

        return HintOutcome.EXHAUSTED

    def hide(self):
        self._shown_until = None

    def reset(self):
        """Start a new level. The premium balance carries over."""
        self.used_in_level = 0
        self._shown_until = None
