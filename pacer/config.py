"""Central configuration -- difficulty bounds, modifier parameter bundles, and tiers.

Every tunable number lives here so the generator, the modifiers and the tests
rely on one source. Bundle defaults are the hand-tuned values used when no
game statistics have been supplied.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple, Union

# Difficulty range
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
DEFAULT_DIFFICULTY = 3.0
DEFAULT_MAX_CHANGE_PER_SESSION = 2.0

# Tier thresholds
# Easy: value < EASY_MAX
# Medium: EASY_MAX <= value < MEDIUM_MAX
# Hard: value >= MEDIUM_MAX
EASY_MAX = 4.0
MEDIUM_MAX = 7.0

HOURS_IN_DAY = 24.0
MAX_RECENT_SESSIONS = 10
MIN_SESSIONS_FOR_TREND = 3

# Modifier names, in evaluation order
WIN_STREAK = "win_streak"
LOSS_STREAK = "loss_streak"
TIME_DECAY = "time_decay"
RAGE_QUIT = "rage_quit"
COMPLETION_RATE = "completion_rate"
LEVEL_PROGRESS = "level_progress"
SESSION_PATTERN = "session_pattern"

MODIFIER_NAMES = (
    WIN_STREAK,
    LOSS_STREAK,
    TIME_DECAY,
    RAGE_QUIT,
    COMPLETION_RATE,
    LEVEL_PROGRESS,
    SESSION_PATTERN,
)


class DifficultyTier(str, Enum):
    """Discrete classification of a difficulty value."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def tier_for(value: float, easy_max: float = EASY_MAX, medium_max: float = MEDIUM_MAX) -> DifficultyTier:
    """Map a difficulty value to its tier. Boundary values land on the upper tier."""
    if value < easy_max:
        return DifficultyTier.EASY
    if value < medium_max:
        return DifficultyTier.MEDIUM
    return DifficultyTier.HARD


# --- Modifier parameter bundles ---


@dataclass(frozen=True)
class WinStreakParams:
    threshold: int = 3
    step_size: float = 0.5
    max_bonus: float = 2.0
    enabled: bool = True


@dataclass(frozen=True)
class LossStreakParams:
    threshold: int = 2
    step_size: float = 0.3
    max_reduction: float = 1.5
    enabled: bool = True


@dataclass(frozen=True)
class TimeDecayParams:
    decay_per_day: float = 0.5
    max_decay: float = 2.0
    grace_hours: float = 6.0
    enabled: bool = True


@dataclass(frozen=True)
class RageQuitParams:
    rage_quit_threshold_seconds: float = 30.0
    rage_quit_reduction: float = 1.0
    quit_reduction: float = 0.5
    mid_play_reduction: float = 0.3
    enabled: bool = True


@dataclass(frozen=True)
class CompletionRateParams:
    low_threshold: float = 0.4
    high_threshold: float = 0.7
    low_completion_decrease: float = 0.5
    high_completion_increase: float = 0.5
    min_attempts_required: int = 10
    total_stats_weight: float = 0.3
    enabled: bool = True


@dataclass(frozen=True)
class LevelProgressParams:
    high_attempts_threshold: int = 5
    decrease_per_attempt: float = 0.2
    fast_completion_ratio: float = 0.7
    slow_completion_ratio: float = 1.5
    fast_completion_bonus: float = 0.3
    slow_completion_penalty: float = 0.3
    expected_completion_seconds: float = 60.0
    expected_levels_per_session: float = 5.0
    progression_factor: float = 0.1
    max_progression_adjustment: float = 0.5
    enabled: bool = True


@dataclass(frozen=True)
class SessionPatternParams:
    min_normal_session_seconds: float = 180.0
    very_short_session_seconds: float = 60.0
    very_short_session_decrease: float = 0.5
    consistent_short_sessions_decrease: float = 0.8
    mid_level_quit_decrease: float = 0.4
    rage_quit_pattern_decrease: float = 1.0
    rage_quit_count_threshold: int = 2
    rage_quit_penalty_multiplier: float = 0.5
    enabled: bool = True


ModifierParams = Union[
    WinStreakParams,
    LossStreakParams,
    TimeDecayParams,
    RageQuitParams,
    CompletionRateParams,
    LevelProgressParams,
    SessionPatternParams,
]

# Safe (low, high) range of every numeric bundle field. Generated values are
# always clamped into these, whatever the input statistics.
PARAMETER_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    WIN_STREAK: {
        "threshold": (2, 10),
        "step_size": (0.1, 2.0),
        "max_bonus": (0.5, 5.0),
    },
    LOSS_STREAK: {
        "threshold": (2, 10),
        "step_size": (0.1, 2.0),
        "max_reduction": (0.5, 5.0),
    },
    TIME_DECAY: {
        "decay_per_day": (0.1, 2.0),
        "max_decay": (0.5, 5.0),
        "grace_hours": (0.0, 48.0),
    },
    RAGE_QUIT: {
        "rage_quit_threshold_seconds": (5.0, 120.0),
        "rage_quit_reduction": (0.5, 3.0),
        "quit_reduction": (0.1, 2.0),
        "mid_play_reduction": (0.1, 1.0),
    },
    COMPLETION_RATE: {
        "low_threshold": (0.05, 0.6),
        "high_threshold": (0.4, 0.95),
        "low_completion_decrease": (0.1, 2.0),
        "high_completion_increase": (0.1, 2.0),
        "min_attempts_required": (5, 50),
        "total_stats_weight": (0.0, 1.0),
    },
    LEVEL_PROGRESS: {
        "high_attempts_threshold": (3, 10),
        "decrease_per_attempt": (0.1, 0.5),
        "fast_completion_ratio": (0.3, 0.9),
        "slow_completion_ratio": (1.1, 2.0),
        "fast_completion_bonus": (0.1, 1.0),
        "slow_completion_penalty": (0.1, 1.0),
        "expected_completion_seconds": (5.0, 3600.0),
        "expected_levels_per_session": (1.0, 30.0),
        "progression_factor": (0.05, 0.2),
        "max_progression_adjustment": (0.2, 1.0),
    },
    SESSION_PATTERN: {
        "min_normal_session_seconds": (60.0, 600.0),
        "very_short_session_seconds": (30.0, 120.0),
        "very_short_session_decrease": (0.2, 1.0),
        "consistent_short_sessions_decrease": (0.3, 1.5),
        "mid_level_quit_decrease": (0.2, 1.0),
        "rage_quit_pattern_decrease": (0.5, 2.0),
        "rage_quit_count_threshold": (1, 5),
        "rage_quit_penalty_multiplier": (0.1, 1.0),
    },
}


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# --- Config bundle ---


@dataclass(frozen=True)
class ConfigBundle:
    """Global difficulty bounds plus one parameter bundle per modifier."""

    min_difficulty: float = MIN_DIFFICULTY
    max_difficulty: float = MAX_DIFFICULTY
    default_difficulty: float = DEFAULT_DIFFICULTY
    max_change_per_session: float = DEFAULT_MAX_CHANGE_PER_SESSION
    win_streak: WinStreakParams = field(default_factory=WinStreakParams)
    loss_streak: LossStreakParams = field(default_factory=LossStreakParams)
    time_decay: TimeDecayParams = field(default_factory=TimeDecayParams)
    rage_quit: RageQuitParams = field(default_factory=RageQuitParams)
    completion_rate: CompletionRateParams = field(default_factory=CompletionRateParams)
    level_progress: LevelProgressParams = field(default_factory=LevelProgressParams)
    session_pattern: SessionPatternParams = field(default_factory=SessionPatternParams)
    easy_max: float = EASY_MAX
    medium_max: float = MEDIUM_MAX

    def params_for(self, name: str) -> ModifierParams:
        """Look up a modifier's parameter bundle by name.

        Raises:
            KeyError: If the modifier name is not recognized.
        """
        if name not in MODIFIER_NAMES:
            valid = ", ".join(MODIFIER_NAMES)
            raise KeyError(f"Unknown modifier {name!r}. Valid: {valid}")
        return getattr(self, name)

    def validate(self) -> List[str]:
        """Validate the bounds and return a list of errors (empty = valid)."""
        errors = []
        if self.min_difficulty >= self.max_difficulty:
            errors.append(
                f"min_difficulty ({self.min_difficulty}) must be less than "
                f"max_difficulty ({self.max_difficulty})."
            )
        elif not self.min_difficulty <= self.default_difficulty <= self.max_difficulty:
            errors.append(
                f"default_difficulty ({self.default_difficulty}) must be within "
                f"[{self.min_difficulty}, {self.max_difficulty}]."
            )
        if self.max_change_per_session <= 0:
            errors.append(
                f"max_change_per_session must be greater than 0, got {self.max_change_per_session}."
            )
        if self.easy_max >= self.medium_max:
            errors.append(
                f"easy_max ({self.easy_max}) must be less than medium_max ({self.medium_max})."
            )
        return errors

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["modifiers"] = {name: data.pop(name) for name in MODIFIER_NAMES}
        return data
