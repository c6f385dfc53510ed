"""Config generator -- derive every modifier's parameters from game statistics.

The formulas are pure and deterministic: the same statistics always produce
the same bundle. Each derived field is clamped into its range from
``PARAMETER_RANGES`` so that extreme statistics can neither disable a modifier
nor let it run away.
"""

import logging
import math

from pacer.config import (
    COMPLETION_RATE,
    LEVEL_PROGRESS,
    LOSS_STREAK,
    PARAMETER_RANGES,
    RAGE_QUIT,
    SESSION_PATTERN,
    TIME_DECAY,
    WIN_STREAK,
    CompletionRateParams,
    ConfigBundle,
    LevelProgressParams,
    LossStreakParams,
    RageQuitParams,
    SessionPatternParams,
    TimeDecayParams,
    WinStreakParams,
    clamp,
)
from pacer.stats import GameStats, InvalidGameStatsError

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    # round() would send 2.5 to 2
    return int(math.floor(value + 0.5))


def _bounded(modifier: str, name: str, value: float) -> float:
    low, high = PARAMETER_RANGES[modifier][name]
    return clamp(value, low, high)


def _bounded_int(modifier: str, name: str, value: float) -> int:
    return int(_bounded(modifier, name, value))


def generate_win_streak(stats: GameStats) -> WinStreakParams:
    diff_range = stats.difficulty_max - stats.difficulty_min
    wins = stats.avg_consecutive_wins
    return WinStreakParams(
        threshold=_bounded_int(WIN_STREAK, "threshold", max(2, _round_half_up(wins * 0.75))),
        step_size=_bounded(WIN_STREAK, "step_size", diff_range / (wins * 2)),
        max_bonus=_bounded(WIN_STREAK, "max_bonus", diff_range * 0.3),
    )


def generate_loss_streak(stats: GameStats) -> LossStreakParams:
    diff_range = stats.difficulty_max - stats.difficulty_min
    losses = stats.avg_consecutive_losses
    return LossStreakParams(
        threshold=_bounded_int(LOSS_STREAK, "threshold", max(2, _round_half_up(losses * 0.8))),
        step_size=_bounded(LOSS_STREAK, "step_size", diff_range / (losses * 3)),
        max_reduction=_bounded(LOSS_STREAK, "max_reduction", diff_range * 0.25),
    )


def generate_time_decay(stats: GameStats) -> TimeDecayParams:
    max_change = stats.max_difficulty_change_per_session
    return TimeDecayParams(
        # reach the full session change over the retention window
        decay_per_day=_bounded(TIME_DECAY, "decay_per_day", max_change / stats.target_retention_days),
        max_decay=_bounded(TIME_DECAY, "max_decay", max_change),
        # regular players never decay
        grace_hours=_bounded(TIME_DECAY, "grace_hours", stats.avg_hours_between_sessions),
    )


def generate_rage_quit(stats: GameStats) -> RageQuitParams:
    max_change = stats.max_difficulty_change_per_session
    reduction = _bounded(
        RAGE_QUIT,
        "rage_quit_reduction",
        max_change * (0.3 + stats.rage_quit_percentage / 100),
    )
    return RageQuitParams(
        rage_quit_threshold_seconds=_bounded(
            RAGE_QUIT,
            "rage_quit_threshold_seconds",
            stats.avg_session_duration_minutes * 60 * 0.1,
        ),
        rage_quit_reduction=reduction,
        quit_reduction=_bounded(RAGE_QUIT, "quit_reduction", reduction * 0.5),
        mid_play_reduction=_bounded(RAGE_QUIT, "mid_play_reduction", reduction * 0.3),
    )


def generate_completion_rate(stats: GameStats) -> CompletionRateParams:
    diff_range = stats.difficulty_max - stats.difficulty_min
    win_rate = stats.win_rate_percentage / 100
    step = diff_range * 0.05
    return CompletionRateParams(
        low_threshold=_bounded(COMPLETION_RATE, "low_threshold", win_rate - 0.2),
        high_threshold=_bounded(COMPLETION_RATE, "high_threshold", win_rate + 0.1),
        low_completion_decrease=_bounded(COMPLETION_RATE, "low_completion_decrease", step),
        high_completion_increase=_bounded(COMPLETION_RATE, "high_completion_increase", step),
        min_attempts_required=_bounded_int(
            COMPLETION_RATE,
            "min_attempts_required",
            _round_half_up(stats.avg_attempts_per_level * 4),
        ),
        total_stats_weight=0.3,
    )


def generate_level_progress(stats: GameStats) -> LevelProgressParams:
    diff_range = stats.difficulty_max - stats.difficulty_min
    max_change = stats.max_difficulty_change_per_session
    completion_step = max_change * 0.15
    return LevelProgressParams(
        high_attempts_threshold=_bounded_int(
            LEVEL_PROGRESS,
            "high_attempts_threshold",
            math.ceil(stats.avg_attempts_per_level * 2),
        ),
        decrease_per_attempt=_bounded(LEVEL_PROGRESS, "decrease_per_attempt", max_change * 0.1),
        fast_completion_ratio=0.7,
        slow_completion_ratio=1.5,
        fast_completion_bonus=_bounded(LEVEL_PROGRESS, "fast_completion_bonus", completion_step),
        slow_completion_penalty=_bounded(LEVEL_PROGRESS, "slow_completion_penalty", completion_step),
        expected_completion_seconds=_bounded(
            LEVEL_PROGRESS,
            "expected_completion_seconds",
            stats.avg_level_completion_time_seconds,
        ),
        expected_levels_per_session=_bounded(
            LEVEL_PROGRESS,
            "expected_levels_per_session",
            stats.avg_levels_per_session,
        ),
        progression_factor=_bounded(LEVEL_PROGRESS, "progression_factor", diff_range / 90),
        max_progression_adjustment=_bounded(
            LEVEL_PROGRESS, "max_progression_adjustment", max_change * 0.25
        ),
    )


def generate_session_pattern(stats: GameStats) -> SessionPatternParams:
    max_change = stats.max_difficulty_change_per_session
    min_normal = _bounded(
        SESSION_PATTERN,
        "min_normal_session_seconds",
        stats.avg_session_duration_minutes * 60 * 0.5,
    )
    return SessionPatternParams(
        min_normal_session_seconds=min_normal,
        very_short_session_seconds=_bounded(
            SESSION_PATTERN, "very_short_session_seconds", min_normal / 3
        ),
        very_short_session_decrease=_bounded(
            SESSION_PATTERN, "very_short_session_decrease", max_change * 0.25
        ),
        consistent_short_sessions_decrease=_bounded(
            SESSION_PATTERN, "consistent_short_sessions_decrease", max_change * 0.4
        ),
        mid_level_quit_decrease=_bounded(
            SESSION_PATTERN, "mid_level_quit_decrease", max_change * 0.2
        ),
        rage_quit_pattern_decrease=_bounded(
            SESSION_PATTERN, "rage_quit_pattern_decrease", max_change * 0.5
        ),
        rage_quit_count_threshold=2,
        rage_quit_penalty_multiplier=0.5,
    )


def generate_all_configs_from_stats(stats: GameStats) -> ConfigBundle:
    """Validate the statistics and derive a complete configuration bundle.

    Raises:
        InvalidGameStatsError: If the statistics fail validation. Nothing is
            generated in that case.
    """
    errors = stats.validate()
    if errors:
        raise InvalidGameStatsError(errors)

    bundle = ConfigBundle(
        min_difficulty=float(stats.difficulty_min),
        max_difficulty=float(stats.difficulty_max),
        default_difficulty=float(stats.difficulty_default),
        max_change_per_session=float(stats.max_difficulty_change_per_session),
        win_streak=generate_win_streak(stats),
        loss_streak=generate_loss_streak(stats),
        time_decay=generate_time_decay(stats),
        rage_quit=generate_rage_quit(stats),
        completion_rate=generate_completion_rate(stats),
        level_progress=generate_level_progress(stats),
        session_pattern=generate_session_pattern(stats),
    )
    logger.debug(
        "Generated config: range %.2f-%.2f, default %.2f, max change %.2f",
        bundle.min_difficulty,
        bundle.max_difficulty,
        bundle.default_difficulty,
        bundle.max_change_per_session,
    )
    return bundle


def preview_generated_config(stats: GameStats) -> str:
    """Format the bundle the statistics would generate for terminal display.

    Raises:
        InvalidGameStatsError: If the statistics fail validation.
    """
    bundle = generate_all_configs_from_stats(stats)
    lines = [
        "Difficulty range:",
        f"  Min: {bundle.min_difficulty:.1f}",
        f"  Max: {bundle.max_difficulty:.1f}",
        f"  Default: {bundle.default_difficulty:.1f}",
        f"  Max change/session: {bundle.max_change_per_session:.1f}",
    ]
    for name, params in bundle.to_dict()["modifiers"].items():
        lines.append(f"{name}:")
        for key, value in params.items():
            if key == "enabled":
                continue
            if isinstance(value, float):
                lines.append(f"  {key}: {value:.2f}")
            else:
                lines.append(f"  {key}: {value}")
    return "\n".join(lines)
