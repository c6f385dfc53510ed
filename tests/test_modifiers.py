"""Tests for pacer.modifiers -- each built-in rule in isolation."""

import pytest

from pacer.config import (
    MODIFIER_NAMES,
    CompletionRateParams,
    ConfigBundle,
    LevelProgressParams,
    LossStreakParams,
    RageQuitParams,
    SessionPatternParams,
    TimeDecayParams,
    WinStreakParams,
)
from pacer.modifiers import (
    CompletionRateModifier,
    DifficultyModifier,
    LevelProgressModifier,
    LossStreakModifier,
    ModifierContribution,
    RageQuitModifier,
    SessionPatternModifier,
    TimeDecayModifier,
    WinStreakModifier,
    default_modifiers,
)
from pacer.session import LevelResult, PlayerSessionData, QuitType


def test_default_modifiers_order():
    assert [m.name for m in default_modifiers()] == list(MODIFIER_NAMES)


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        DifficultyModifier()


def test_no_change_contribution():
    c = ModifierContribution.no_change("win_streak", "Idle", streak=1)
    assert c.value == 0.0
    assert c.reason == "Idle"
    assert c.metadata == {"streak": 1}


# --- Win / loss streak ---


def test_win_streak_bonus():
    data = PlayerSessionData(win_streak=3)
    params = WinStreakParams(threshold=2, step_size=0.5, max_bonus=2.0)
    assert WinStreakModifier().evaluate(data, params).value == pytest.approx(1.0)


def test_win_streak_below_threshold():
    data = PlayerSessionData(win_streak=2)
    assert WinStreakModifier().evaluate(data, WinStreakParams(threshold=3)).value == 0.0


def test_win_streak_capped():
    data = PlayerSessionData(win_streak=50)
    params = WinStreakParams(threshold=3, step_size=0.5, max_bonus=2.0)
    assert WinStreakModifier().evaluate(data, params).value == pytest.approx(2.0)


def test_loss_streak_reduction():
    data = PlayerSessionData(loss_streak=4)
    params = LossStreakParams(threshold=2, step_size=0.3, max_reduction=1.5)
    assert LossStreakModifier().evaluate(data, params).value == pytest.approx(-0.9)


def test_loss_streak_capped():
    data = PlayerSessionData(loss_streak=40)
    params = LossStreakParams(threshold=2, step_size=0.3, max_reduction=1.5)
    assert LossStreakModifier().evaluate(data, params).value == pytest.approx(-1.5)


def test_evaluate_does_not_mutate():
    data = PlayerSessionData(win_streak=5, loss_streak=0, total_wins=5)
    before = data.to_dict()
    for modifier in default_modifiers():
        modifier.evaluate(data, ConfigBundle().params_for(modifier.name))
    assert data.to_dict() == before


# --- Time decay ---


def test_time_decay_no_history(clock):
    result = TimeDecayModifier(clock).evaluate(PlayerSessionData(), TimeDecayParams())
    assert result.value == 0.0


def test_time_decay_within_grace(clock):
    data = PlayerSessionData(last_session_end=clock().isoformat())
    clock.advance(hours=5)
    result = TimeDecayModifier(clock).evaluate(data, TimeDecayParams(grace_hours=6.0))
    assert result.value == 0.0


def test_time_decay_after_days(clock):
    data = PlayerSessionData(last_session_end=clock().isoformat())
    clock.advance(days=3)
    params = TimeDecayParams(decay_per_day=0.5, max_decay=2.0, grace_hours=6.0)
    result = TimeDecayModifier(clock).evaluate(data, params)
    assert result.value == pytest.approx(-1.5)
    assert "3.0 days" in result.reason


def test_time_decay_capped(clock):
    data = PlayerSessionData(last_played_at=clock().isoformat())
    clock.advance(days=30)
    params = TimeDecayParams(decay_per_day=0.5, max_decay=2.0)
    assert TimeDecayModifier(clock).evaluate(data, params).value == pytest.approx(-2.0)


# --- Rage quit ---


def test_rage_quit_none():
    assert RageQuitModifier().evaluate(PlayerSessionData(), RageQuitParams()).value == 0.0


def test_explicit_rage_quit():
    data = PlayerSessionData(last_quit_type=QuitType.RAGE_QUIT)
    params = RageQuitParams(rage_quit_reduction=1.0)
    assert RageQuitModifier().evaluate(data, params).value == pytest.approx(-1.0)


def test_mid_play_quit():
    data = PlayerSessionData(last_quit_type=QuitType.MID_PLAY)
    params = RageQuitParams(mid_play_reduction=0.3)
    assert RageQuitModifier().evaluate(data, params).value == pytest.approx(-0.3)


def test_short_session_after_loss_is_rage_quit():
    data = PlayerSessionData(
        last_quit_type=QuitType.NORMAL, loss_streak=1, session_length_seconds=10.0
    )
    params = RageQuitParams(rage_quit_threshold_seconds=30.0, rage_quit_reduction=1.0)
    assert RageQuitModifier().evaluate(data, params).value == pytest.approx(-1.0)


def test_quit_after_loss():
    data = PlayerSessionData(
        last_quit_type=QuitType.NORMAL, loss_streak=1, session_length_seconds=100.0
    )
    params = RageQuitParams(rage_quit_threshold_seconds=30.0, quit_reduction=0.5)
    assert RageQuitModifier().evaluate(data, params).value == pytest.approx(-0.5)


def test_normal_quit_after_win():
    data = PlayerSessionData(last_quit_type=QuitType.NORMAL, win_streak=2)
    assert RageQuitModifier().evaluate(data, RageQuitParams()).value == 0.0


# --- Completion rate ---


def test_completion_rate_needs_attempts():
    data = PlayerSessionData(total_wins=0, total_losses=5)
    params = CompletionRateParams(min_attempts_required=10)
    assert CompletionRateModifier().evaluate(data, params).value == 0.0


def test_low_completion_rate():
    data = PlayerSessionData(total_wins=2, total_losses=8)
    params = CompletionRateParams(min_attempts_required=10, low_completion_decrease=0.5)
    assert CompletionRateModifier().evaluate(data, params).value == pytest.approx(-0.5)


def test_high_completion_rate():
    data = PlayerSessionData(total_wins=9, total_losses=1)
    params = CompletionRateParams(min_attempts_required=10, high_completion_increase=0.5)
    assert CompletionRateModifier().evaluate(data, params).value == pytest.approx(0.5)


def test_recent_results_weighted():
    # overall 0.5 is normal, but every recent attempt was won: 0.5 * 0.7 + 1.0 * 0.3 = 0.65
    data = PlayerSessionData(
        total_wins=10,
        total_losses=10,
        recent_results=[LevelResult(level_id=None, won=True) for _ in range(10)],
    )
    params = CompletionRateParams(min_attempts_required=10, high_threshold=0.6)
    result = CompletionRateModifier().evaluate(data, params)
    assert result.value == pytest.approx(params.high_completion_increase)
    assert result.metadata["rate"] == pytest.approx(0.65)


# --- Level progress ---


def test_many_attempts_on_level():
    data = PlayerSessionData(current_level=4, attempts_on_current_level=7)
    params = LevelProgressParams(high_attempts_threshold=5, decrease_per_attempt=0.2)
    assert LevelProgressModifier().evaluate(data, params).value == pytest.approx(-0.4)


def test_fast_completion():
    data = PlayerSessionData(recent_results=[LevelResult(1, True, 30.0)])
    params = LevelProgressParams(expected_completion_seconds=60.0, fast_completion_bonus=0.3)
    assert LevelProgressModifier().evaluate(data, params).value == pytest.approx(0.3)


def test_slow_completion():
    data = PlayerSessionData(recent_results=[LevelResult(1, True, 120.0)])
    params = LevelProgressParams(expected_completion_seconds=60.0, slow_completion_penalty=0.3)
    assert LevelProgressModifier().evaluate(data, params).value == pytest.approx(-0.3)


def test_lost_level_ignores_speed():
    data = PlayerSessionData(recent_results=[LevelResult(1, False, 5.0)])
    assert LevelProgressModifier().evaluate(data, LevelProgressParams()).value == 0.0


def test_progression_needs_sessions():
    data = PlayerSessionData(session_count=2, total_wins=40)
    assert LevelProgressModifier().evaluate(data, LevelProgressParams()).value == 0.0


def test_fast_progression():
    data = PlayerSessionData(session_count=3, total_wins=20)
    params = LevelProgressParams(
        expected_levels_per_session=5.0, progression_factor=0.1, max_progression_adjustment=0.5
    )
    # 20 wins vs 15 expected: 5 * 0.1 = 0.5
    assert LevelProgressModifier().evaluate(data, params).value == pytest.approx(0.5)


def test_slow_progression_capped():
    data = PlayerSessionData(session_count=10, total_wins=0)
    params = LevelProgressParams(max_progression_adjustment=0.5)
    assert LevelProgressModifier().evaluate(data, params).value == pytest.approx(-0.5)


# --- Session pattern ---


def test_normal_session_pattern():
    data = PlayerSessionData(session_length_seconds=600.0, recent_session_lengths=[600.0])
    assert SessionPatternModifier().evaluate(data, SessionPatternParams()).value == 0.0


def test_very_short_session():
    data = PlayerSessionData(session_length_seconds=30.0)
    params = SessionPatternParams(very_short_session_seconds=60.0, very_short_session_decrease=0.5)
    assert SessionPatternModifier().evaluate(data, params).value == pytest.approx(-0.5)


def test_short_average_sessions():
    data = PlayerSessionData(recent_session_lengths=[90.0, 90.0])
    params = SessionPatternParams(
        min_normal_session_seconds=180.0, consistent_short_sessions_decrease=0.8
    )
    assert SessionPatternModifier().evaluate(data, params).value == pytest.approx(-0.4)


def test_repeated_rage_quits():
    data = PlayerSessionData(recent_quits=[QuitType.RAGE_QUIT, QuitType.RAGE_QUIT])
    params = SessionPatternParams(
        rage_quit_count_threshold=2,
        rage_quit_pattern_decrease=1.0,
        rage_quit_penalty_multiplier=0.5,
    )
    assert SessionPatternModifier().evaluate(data, params).value == pytest.approx(-0.5)


def test_mid_level_quit_pattern():
    data = PlayerSessionData(last_quit_type=QuitType.MID_PLAY)
    params = SessionPatternParams(mid_level_quit_decrease=0.4)
    result = SessionPatternModifier().evaluate(data, params)
    assert result.value == pytest.approx(-0.4)
    assert "Mid-level quit" in result.reason
