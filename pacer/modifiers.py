"""Difficulty modifiers -- rules that turn player behaviour into difficulty deltas.

Each modifier reads the session data and its own parameter bundle and returns
a signed contribution. Modifiers hold no state of their own and never mutate
the session data they are given.
"""

import abc
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pacer.config import (
    COMPLETION_RATE,
    LEVEL_PROGRESS,
    LOSS_STREAK,
    MIN_SESSIONS_FOR_TREND,
    RAGE_QUIT,
    SESSION_PATTERN,
    TIME_DECAY,
    WIN_STREAK,
    CompletionRateParams,
    LevelProgressParams,
    LossStreakParams,
    RageQuitParams,
    SessionPatternParams,
    TimeDecayParams,
    WinStreakParams,
    clamp,
)
from pacer.session import PlayerSessionData, QuitType

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ModifierContribution:
    """One modifier's signed difficulty delta for a single calculation pass."""

    name: str
    value: float
    reason: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def no_change(cls, name: str, reason: str = "No change", **metadata) -> "ModifierContribution":
        return cls(name=name, value=0.0, reason=reason, metadata=metadata)


class DifficultyModifier(abc.ABC):
    """Abstract base class for difficulty modifiers."""

    name: str = ""

    @abc.abstractmethod
    def evaluate(self, session_data: PlayerSessionData, params) -> ModifierContribution:
        """Compute this modifier's contribution for the given session data."""


class WinStreakModifier(DifficultyModifier):
    """Raise difficulty once the player wins several games in a row."""

    name = WIN_STREAK

    def evaluate(self, session_data: PlayerSessionData, params: WinStreakParams) -> ModifierContribution:
        streak = session_data.win_streak
        if streak < params.threshold:
            return ModifierContribution.no_change(self.name, "No win streak", streak=streak)
        value = min(params.max_bonus, (streak - params.threshold + 1) * params.step_size)
        return ModifierContribution(
            name=self.name,
            value=value,
            reason=f"Win streak: {streak} consecutive wins",
            metadata={"streak": streak, "threshold": params.threshold},
        )


class LossStreakModifier(DifficultyModifier):
    """Lower difficulty once the player loses several games in a row."""

    name = LOSS_STREAK

    def evaluate(self, session_data: PlayerSessionData, params: LossStreakParams) -> ModifierContribution:
        streak = session_data.loss_streak
        if streak < params.threshold:
            return ModifierContribution.no_change(self.name, "No loss streak", streak=streak)
        value = -min(params.max_reduction, (streak - params.threshold + 1) * params.step_size)
        return ModifierContribution(
            name=self.name,
            value=value,
            reason=f"Loss streak: {streak} consecutive losses",
            metadata={"streak": streak, "threshold": params.threshold},
        )


class TimeDecayModifier(DifficultyModifier):
    """Ease difficulty for players returning after a long break.

    Args:
        clock: Returns the current time as an aware datetime.
    """

    name = TIME_DECAY

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now

    def evaluate(self, session_data: PlayerSessionData, params: TimeDecayParams) -> ModifierContribution:
        now = self._clock()
        hours = session_data.hours_since_last_activity(now)
        if hours is None:
            return ModifierContribution.no_change(self.name, "No previous session")
        if hours <= params.grace_hours:
            return ModifierContribution.no_change(self.name, "Recently played", hours_away=hours)

        days = session_data.days_since_last_activity(now)
        value = -min(params.max_decay, params.decay_per_day * days)
        if days < 1:
            reason = f"Away for {hours:.1f} hours"
        else:
            reason = f"Away for {days:.1f} days"
        return ModifierContribution(
            name=self.name,
            value=value,
            reason=reason,
            metadata={"hours_away": hours, "grace_hours": params.grace_hours},
        )


class RageQuitModifier(DifficultyModifier):
    """Lower difficulty after the player quits in frustration."""

    name = RAGE_QUIT

    def evaluate(self, session_data: PlayerSessionData, params: RageQuitParams) -> ModifierContribution:
        quit_type = session_data.last_quit_type
        length = session_data.session_length_seconds
        if quit_type is None:
            return ModifierContribution.no_change(self.name, "No quit recorded")

        if quit_type == QuitType.RAGE_QUIT:
            value = -params.rage_quit_reduction
            reason = "Rage quit"
        elif quit_type == QuitType.MID_PLAY:
            value = -params.mid_play_reduction
            reason = "Quit during play"
        elif session_data.loss_streak > 0:
            if 0 < length < params.rage_quit_threshold_seconds:
                value = -params.rage_quit_reduction
                reason = f"Rage quit detected (played only {length:.0f}s)"
            else:
                value = -params.quit_reduction
                reason = "Quit after losing"
        else:
            return ModifierContribution.no_change(self.name, "Normal session end")

        return ModifierContribution(
            name=self.name,
            value=value,
            reason=reason,
            metadata={"quit_type": quit_type.value, "session_length": length},
        )


class CompletionRateModifier(DifficultyModifier):
    """Nudge difficulty toward a target band of win rate."""

    name = COMPLETION_RATE

    def evaluate(self, session_data: PlayerSessionData, params: CompletionRateParams) -> ModifierContribution:
        attempts = session_data.total_wins + session_data.total_losses
        if attempts < params.min_attempts_required:
            return ModifierContribution.no_change(
                self.name,
                f"Not enough attempts ({attempts}/{params.min_attempts_required})",
                attempts=attempts,
            )

        overall = session_data.completion_rate()
        recent = session_data.recent_completion_rate()
        if recent is None:
            recent = overall
        weight = params.total_stats_weight
        rate = overall * (1 - weight) + recent * weight

        if rate < params.low_threshold:
            value = -params.low_completion_decrease
            reason = f"Low completion rate ({rate:.0%})"
        elif rate > params.high_threshold:
            value = params.high_completion_increase
            reason = f"High completion rate ({rate:.0%})"
        else:
            return ModifierContribution.no_change(self.name, "Completion rate normal", rate=rate)

        return ModifierContribution(
            name=self.name,
            value=value,
            reason=reason,
            metadata={"rate": rate, "overall": overall, "recent": recent},
        )


class LevelProgressModifier(DifficultyModifier):
    """Adjust difficulty from attempts per level, completion speed, and progression pace."""

    name = LEVEL_PROGRESS

    def evaluate(self, session_data: PlayerSessionData, params: LevelProgressParams) -> ModifierContribution:
        value = 0.0
        reasons: List[str] = []

        attempts = session_data.attempts_on_current_level
        if attempts > params.high_attempts_threshold:
            value -= (attempts - params.high_attempts_threshold) * params.decrease_per_attempt
            reasons.append(f"High attempts ({attempts})")

        last = session_data.last_result()
        if last is not None and last.won and last.duration_seconds > 0:
            ratio = last.duration_seconds / params.expected_completion_seconds
            if ratio < params.fast_completion_ratio:
                value += params.fast_completion_bonus
                reasons.append(f"Fast completion ({ratio:.0%} of expected)")
            elif ratio > params.slow_completion_ratio:
                value -= params.slow_completion_penalty
                reasons.append(f"Slow completion ({ratio:.0%} of expected)")

        if session_data.session_count >= MIN_SESSIONS_FOR_TREND:
            expected = session_data.session_count * params.expected_levels_per_session
            difference = session_data.total_wins - expected
            adjustment = clamp(
                difference * params.progression_factor,
                -params.max_progression_adjustment,
                params.max_progression_adjustment,
            )
            if abs(adjustment) > 0.01:
                value += adjustment
                pace = "Fast" if difference > 0 else "Slow"
                reasons.append(f"{pace} progression ({session_data.total_wins} vs expected {expected:.0f})")

        if not reasons:
            return ModifierContribution.no_change(self.name, "Normal level progression")
        return ModifierContribution(
            name=self.name,
            value=value,
            reason=", ".join(reasons),
            metadata={"attempts": attempts, "level": session_data.current_level},
        )


class SessionPatternModifier(DifficultyModifier):
    """Lower difficulty when session lengths and quits suggest frustration."""

    name = SESSION_PATTERN

    def evaluate(self, session_data: PlayerSessionData, params: SessionPatternParams) -> ModifierContribution:
        value = 0.0
        reasons: List[str] = []

        length = session_data.session_length_seconds
        if 0 < length < params.very_short_session_seconds:
            value -= params.very_short_session_decrease
            reasons.append(f"Very short session ({length:.0f}s)")

        average = session_data.average_session_seconds()
        if 0 < average < params.min_normal_session_seconds:
            ratio = average / params.min_normal_session_seconds
            value -= (1 - ratio) * params.consistent_short_sessions_decrease
            reasons.append(f"Short average sessions ({average:.0f}s)")

        rage_quits = session_data.recent_rage_quit_count()
        if rage_quits >= params.rage_quit_count_threshold:
            value -= params.rage_quit_pattern_decrease * params.rage_quit_penalty_multiplier
            reasons.append(f"Recent rage quits ({rage_quits})")

        if session_data.last_quit_type == QuitType.MID_PLAY:
            value -= params.mid_level_quit_decrease
            reasons.append("Mid-level quit")

        if not reasons:
            return ModifierContribution.no_change(self.name, "Normal session patterns")
        return ModifierContribution(
            name=self.name,
            value=value,
            reason=", ".join(reasons),
            metadata={"average_session": average, "rage_quits": rage_quits},
        )


def default_modifiers(clock: Optional[Clock] = None) -> List[DifficultyModifier]:
    """Return the built-in modifiers in evaluation order."""
    return [
        WinStreakModifier(),
        LossStreakModifier(),
        TimeDecayModifier(clock),
        RageQuitModifier(),
        CompletionRateModifier(),
        LevelProgressModifier(),
        SessionPatternModifier(),
    ]
