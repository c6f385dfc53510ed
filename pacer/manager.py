"""Difficulty manager -- combine modifier contributions into a bounded difficulty.

The manager holds only configuration. It never owns the current difficulty,
so one instance can serve any number of players.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pacer.config import ConfigBundle, DifficultyTier, tier_for
from pacer.modifiers import ModifierContribution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DifficultyResult:
    """Outcome of one update cycle, kept for diagnostics."""

    previous: float
    new: float
    tier: DifficultyTier
    contributions: List[ModifierContribution] = field(default_factory=list)
    primary_reason: str = "No change"
    calculated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def change(self) -> float:
        return self.new - self.previous


class DifficultyManager:
    """Pure difficulty calculations over a fixed configuration.

    Raises:
        ValueError: If the configuration's bounds are malformed.
    """

    def __init__(self, config: Optional[ConfigBundle] = None):
        config = config or ConfigBundle()
        errors = config.validate()
        if errors:
            raise ValueError(f"Invalid difficulty config: {'; '.join(errors)}")
        self._config = config

    @property
    def config(self) -> ConfigBundle:
        return self._config

    def calculate_difficulty(
        self,
        current: float,
        contributions: Sequence[ModifierContribution],
    ) -> float:
        """Apply summed contributions to ``current``.

        The net change is capped at ``max_change_per_session`` (sign kept),
        then the result is clamped to the global bounds. An empty
        contribution list returns ``current`` unchanged.
        """
        if not contributions:
            return current

        total = sum(c.value for c in contributions)
        cap = self._config.max_change_per_session
        change = total
        if abs(change) > cap:
            change = math.copysign(cap, change)
            logger.debug("Change %+.2f capped to %+.2f", total, change)

        new = self.clamp_difficulty(current + change)
        if new != current + change:
            logger.debug("Difficulty %.2f clamped to %.2f", current + change, new)
        return new

    def clamp_difficulty(self, value: float) -> float:
        return max(self._config.min_difficulty, min(self._config.max_difficulty, value))

    def get_difficulty_level(self, value: float) -> DifficultyTier:
        return tier_for(value, self._config.easy_max, self._config.medium_max)

    def get_default_difficulty(self) -> float:
        return self._config.default_difficulty

    def is_valid_difficulty(self, value: float) -> bool:
        return self._config.min_difficulty <= value <= self._config.max_difficulty

    def get_difficulty_percentage(self, value: float) -> float:
        """Position of ``value`` within the difficulty range (0.0 - 1.0)."""
        low = self._config.min_difficulty
        high = self._config.max_difficulty
        return (self.clamp_difficulty(value) - low) / (high - low)

    @staticmethod
    def primary_reason(contributions: Sequence[ModifierContribution]) -> str:
        """Reason of the largest non-zero contribution, or 'No change'."""
        active = [c for c in contributions if c.value != 0]
        if not active:
            return "No change"
        top = max(active, key=lambda c: abs(c.value))
        return top.reason or top.name
