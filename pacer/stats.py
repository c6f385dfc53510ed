"""Game statistics -- designer-supplied aggregates that drive config generation."""

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List


class InvalidGameStatsError(ValueError):
    """Raised when game statistics fail validation.

    Attributes:
        errors: Every violated invariant, in the order they were checked.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid game stats: {'; '.join(self.errors)}")


@dataclass(frozen=True)
class GameStats:
    """Aggregate numbers describing how players typically behave in a game.

    The first eight fields are required. The remaining fields refine the
    rage-quit, completion-rate, level-progress and session-pattern bundles
    and default to values typical of a casual mobile game.

    Attributes:
        avg_consecutive_wins: Average wins in a row before a loss.
        avg_consecutive_losses: Average losses in a row before a win.
        difficulty_min: Lowest difficulty the game supports.
        difficulty_default: Starting difficulty for new players.
        difficulty_max: Highest difficulty the game supports.
        max_difficulty_change_per_session: Largest change allowed in one update.
        target_retention_days: Days over which returning players should be kept.
        avg_hours_between_sessions: Typical gap between play sessions.
        win_rate_percentage: Overall win rate, 0-100.
        avg_attempts_per_level: Attempts a level usually takes.
        avg_session_duration_minutes: Typical session length.
        avg_levels_per_session: Levels usually completed per session.
        rage_quit_percentage: Share of sessions ending in a rage quit, 0-100.
        avg_level_completion_time_seconds: Typical time to beat a level.
    """

    avg_consecutive_wins: float
    avg_consecutive_losses: float
    difficulty_min: float
    difficulty_default: float
    difficulty_max: float
    max_difficulty_change_per_session: float
    target_retention_days: float
    avg_hours_between_sessions: float
    win_rate_percentage: float = 65.0
    avg_attempts_per_level: float = 2.5
    avg_session_duration_minutes: float = 15.0
    avg_levels_per_session: float = 5.0
    rage_quit_percentage: float = 10.0
    avg_level_completion_time_seconds: float = 60.0

    def validate(self) -> List[str]:
        """Validate the statistics and return a list of errors (empty = valid)."""
        errors = []
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(f"{f.name} must be a number, got {value!r}.")
            elif not math.isfinite(value):
                errors.append(f"{f.name} must be finite, got {value!r}.")
        if errors:
            return errors

        for name in (
            "avg_consecutive_wins",
            "avg_consecutive_losses",
            "max_difficulty_change_per_session",
            "target_retention_days",
            "avg_attempts_per_level",
            "avg_session_duration_minutes",
            "avg_levels_per_session",
            "avg_level_completion_time_seconds",
        ):
            value = getattr(self, name)
            if value <= 0:
                errors.append(f"{name} must be greater than 0, got {value}.")

        if self.avg_hours_between_sessions < 0:
            errors.append(
                f"avg_hours_between_sessions must not be negative, "
                f"got {self.avg_hours_between_sessions}."
            )

        if self.difficulty_min >= self.difficulty_max:
            errors.append(
                f"difficulty_min ({self.difficulty_min}) must be less than "
                f"difficulty_max ({self.difficulty_max})."
            )
        elif not self.difficulty_min < self.difficulty_default < self.difficulty_max:
            errors.append(
                f"difficulty_default ({self.difficulty_default}) must lie strictly "
                f"between {self.difficulty_min} and {self.difficulty_max}."
            )

        for name in ("win_rate_percentage", "rage_quit_percentage"):
            value = getattr(self, name)
            if value < 0 or value > 100:
                errors.append(f"{name} must be 0-100, got {value}.")
        return errors

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameStats":
        """Build statistics from a plain dict, ignoring unknown keys.

        Raises:
            TypeError: If a required field is missing.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def default_game_stats() -> GameStats:
    """Return statistics for a typical casual mobile game."""
    return GameStats(
        avg_consecutive_wins=3.5,
        avg_consecutive_losses=2.0,
        difficulty_min=1.0,
        difficulty_default=3.0,
        difficulty_max=10.0,
        max_difficulty_change_per_session=2.0,
        target_retention_days=7.0,
        avg_hours_between_sessions=24.0,
    )
