"""Tests for pacer.service -- the full record/update cycle for one player."""

import dataclasses

import pytest

from pacer.config import MODIFIER_NAMES, ConfigBundle, DifficultyTier, WinStreakParams
from pacer.modifiers import WinStreakModifier
from pacer.service import DifficultyService
from pacer.session import QuitType
from pacer.stats import InvalidGameStatsError, default_game_stats


def test_new_player_gets_default(service, provider):
    assert service.current_difficulty == 3.0
    assert provider.load_difficulty() == 3.0
    assert service.get_difficulty_level() == DifficultyTier.EASY


def test_stored_difficulty_kept(provider, clock):
    provider.save_difficulty(6.0)
    assert DifficultyService(provider, clock=clock).current_difficulty == 6.0


def test_invalid_stored_difficulty_replaced(provider, clock):
    provider.save_difficulty(50.0)
    assert DifficultyService(provider, clock=clock).current_difficulty == 3.0


def test_update_without_events_is_stable(service):
    assert service.update_difficulty() == pytest.approx(3.0)
    assert service.last_result.primary_reason == "No change"


def test_win_streak_raises_difficulty(service):
    for _ in range(3):
        service.record_win()
    assert service.update_difficulty() == pytest.approx(3.5)
    result = service.last_result
    assert result.previous == 3.0
    assert result.new == pytest.approx(3.5)
    assert result.primary_reason.startswith("Win streak")
    assert len(result.contributions) == 7


def test_loss_streak_lowers_difficulty(service):
    service.record_loss()
    service.record_loss()
    assert service.update_difficulty() == pytest.approx(2.7)


def test_change_capped_per_session(service):
    # win streak (+2.0) and completion rate (+0.5) together exceed the cap
    for _ in range(10):
        service.record_win()
    assert service.update_difficulty() == pytest.approx(5.0)


def test_rage_quit_lowers_difficulty(service, provider):
    provider.save_difficulty(5.0)
    service.record_quit(QuitType.RAGE_QUIT)
    assert service.update_difficulty() == pytest.approx(4.0)


def test_time_decay_after_break(service, clock):
    service.record_session_start()
    service.record_session_end()
    clock.advance(days=3)
    assert service.update_difficulty() == pytest.approx(1.5)
    assert service.last_result.primary_reason == "Away for 3.0 days"


def test_repeated_updates_stay_in_bounds(service):
    for _ in range(20):
        service.record_loss()
        new = service.update_difficulty()
        assert 1.0 <= new <= 10.0
    assert service.current_difficulty == 1.0


def test_disabled_modifier_skipped(provider, clock):
    config = ConfigBundle(win_streak=WinStreakParams(enabled=False))
    service = DifficultyService(provider, config=config, clock=clock)
    for _ in range(5):
        service.record_win()
    contributions = service.evaluate_modifiers()
    assert "win_streak" not in [c.name for c in contributions]
    assert service.update_difficulty() == pytest.approx(3.0)


def test_custom_modifier_list(provider, clock):
    service = DifficultyService(provider, modifiers=[WinStreakModifier()], clock=clock)
    assert [c.name for c in service.evaluate_modifiers()] == ["win_streak"]


def test_events_are_persisted(service, provider, clock):
    service.record_session_start()
    service.record_win(level_id=1, duration_seconds=40.0)
    service.record_quit(QuitType.NORMAL)
    stored = provider.load_session_data()
    assert stored.session_count == 1
    assert stored.total_wins == 1
    assert stored.last_quit_type == QuitType.NORMAL

    reopened = DifficultyService(provider, clock=clock)
    assert reopened.session_data == service.session_data


def test_session_end_without_start(service, provider):
    service.record_session_end()
    assert service.session_data.session_length_seconds == 0.0
    assert provider.load_session_data() is None


def test_session_length_recorded(service, clock):
    service.record_session_start()
    clock.advance(minutes=4)
    service.record_session_end()
    assert service.session_data.session_length_seconds == pytest.approx(240.0)


def test_reset_difficulty(service, provider):
    provider.save_difficulty(8.0)
    service.reset_difficulty()
    assert service.current_difficulty == 3.0


def test_difficulty_stats(service):
    service.record_win()
    service.record_win()
    stats = service.get_difficulty_stats()
    assert stats == {
        "current_difficulty": 3.0,
        "tier": "easy",
        "win_streak": 2,
        "loss_streak": 0,
        "total_wins": 2,
        "total_losses": 0,
        "session_count": 0,
    }


def test_clear_data(service, provider):
    service.record_win()
    service.update_difficulty()
    service.clear_data()
    assert provider.load_session_data() is None
    assert provider.load_difficulty() is None
    assert service.session_data.total_wins == 0
    assert service.last_result is None
    assert service.current_difficulty == 3.0


def test_save_and_load_data(service, provider):
    service.record_win()
    provider.clear_data()
    service.save_data()
    assert provider.load_session_data().total_wins == 1
    assert provider.load_difficulty() == 3.0

    service.session_data.reset()
    service.load_data()
    assert service.session_data.total_wins == 1


def test_apply_invalid_config_keeps_old(service):
    old = service.config
    with pytest.raises(ValueError):
        service.apply_config(ConfigBundle(max_change_per_session=0.0))
    assert service.config is old


def test_regenerate_config(service):
    stats = dataclasses.replace(default_game_stats(), max_difficulty_change_per_session=1.0)
    config = service.regenerate_config(stats)
    assert service.config is config
    assert service.config.max_change_per_session == 1.0


def test_regenerate_invalid_stats_keeps_old(service):
    old = service.config
    stats = dataclasses.replace(default_game_stats(), avg_consecutive_wins=-2.0)
    with pytest.raises(InvalidGameStatsError):
        service.regenerate_config(stats)
    assert service.config is old


def _all_disabled(**bounds):
    config = ConfigBundle(**bounds)
    disabled = {
        name: dataclasses.replace(config.params_for(name), enabled=False)
        for name in MODIFIER_NAMES
    }
    return dataclasses.replace(config, **disabled)


def test_regenerate_narrower_bounds_clamps_stored(service, provider):
    provider.save_difficulty(9.0)
    stats = dataclasses.replace(
        default_game_stats(), difficulty_min=1.0, difficulty_default=2.0, difficulty_max=5.0
    )
    service.regenerate_config(stats)
    assert service.current_difficulty == 5.0
    assert provider.load_difficulty() == 5.0
    assert service.get_difficulty_stats()["current_difficulty"] == 5.0


def test_apply_config_clamps_up_to_new_min(service, provider):
    provider.save_difficulty(2.0)
    service.apply_config(ConfigBundle(min_difficulty=4.0, default_difficulty=5.0))
    assert service.current_difficulty == 4.0
    assert service.get_difficulty_level() == DifficultyTier.MEDIUM


def test_update_after_narrowing_stays_in_bounds(service, provider):
    provider.save_difficulty(9.0)
    service.apply_config(_all_disabled(max_difficulty=5.0, default_difficulty=2.0))
    assert service.evaluate_modifiers() == []
    assert service.update_difficulty() == 5.0
    assert provider.load_difficulty() == 5.0


def test_apply_config_after_clear(service, provider):
    service.clear_data()
    service.apply_config(ConfigBundle(max_difficulty=5.0, default_difficulty=2.0))
    assert provider.load_difficulty() is None
    assert service.current_difficulty == 2.0
