"""Difficulty service -- records gameplay events and runs the update cycle.

One ``DifficultyService`` serves one player. It owns that player's
``PlayerSessionData`` and is not safe for concurrent use: callers that share
it across threads must serialize access themselves.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pacer.config import ConfigBundle, DifficultyTier
from pacer.generator import generate_all_configs_from_stats
from pacer.manager import DifficultyManager, DifficultyResult
from pacer.modifiers import (
    Clock,
    DifficultyModifier,
    ModifierContribution,
    default_modifiers,
    utc_now,
)
from pacer.providers import DifficultyDataProvider
from pacer.session import PlayerSessionData, QuitType
from pacer.stats import GameStats

logger = logging.getLogger(__name__)


class DifficultyService:
    """Binds the modifiers, the manager and a data provider for one player.

    Args:
        provider: Where difficulty and session data are persisted.
        config: Configuration bundle (hand-tuned defaults if omitted).
        modifiers: Modifiers in evaluation order (the built-ins if omitted).
        clock: Returns the current time as an aware datetime.
    """

    def __init__(
        self,
        provider: DifficultyDataProvider,
        config: Optional[ConfigBundle] = None,
        modifiers: Optional[Sequence[DifficultyModifier]] = None,
        clock: Optional[Clock] = None,
    ):
        self._provider = provider
        self._clock = clock or utc_now
        self._manager = DifficultyManager(config)
        self._modifiers: List[DifficultyModifier] = (
            list(modifiers) if modifiers is not None else default_modifiers(self._clock)
        )
        self._session = provider.load_session_data() or PlayerSessionData()
        self.last_result: Optional[DifficultyResult] = None

        stored = provider.load_difficulty()
        if stored is None or not self._manager.is_valid_difficulty(stored):
            provider.save_difficulty(self._manager.get_default_difficulty())

    # --- Properties ---

    @property
    def config(self) -> ConfigBundle:
        return self._manager.config

    @property
    def manager(self) -> DifficultyManager:
        return self._manager

    @property
    def session_data(self) -> PlayerSessionData:
        return self._session

    @property
    def current_difficulty(self) -> float:
        value = self._provider.load_difficulty()
        if value is None:
            return self._manager.get_default_difficulty()
        return value

    # --- Event recording ---

    def record_win(self, level_id: Optional[int] = None, duration_seconds: float = 0.0) -> None:
        self._session.record_win(level_id, duration_seconds, now=self._clock())
        self._provider.save_session_data(self._session)

    def record_loss(self, level_id: Optional[int] = None, duration_seconds: float = 0.0) -> None:
        self._session.record_loss(level_id, duration_seconds, now=self._clock())
        self._provider.save_session_data(self._session)

    def record_session_start(self) -> None:
        self._session.start_session(self._clock())
        self._provider.save_session_data(self._session)

    def record_session_end(self) -> None:
        """Store the length of the open session. Does nothing if none is open."""
        length = self._session.end_session(self._clock())
        if length is None:
            logger.debug("Session end recorded without an open session")
            return
        self._provider.save_session_data(self._session)

    def record_quit(self, quit_type: QuitType) -> None:
        self._session.record_quit(quit_type)
        self._provider.save_session_data(self._session)

    # --- Update cycle ---

    def evaluate_modifiers(self) -> List[ModifierContribution]:
        """Run every enabled modifier against the current session data."""
        contributions = []
        for modifier in self._modifiers:
            params = self.config.params_for(modifier.name)
            if not params.enabled:
                continue
            contributions.append(modifier.evaluate(self._session, params))
        return contributions

    def update_difficulty(self) -> float:
        """Recalculate, persist and return the player's difficulty."""
        current = self.current_difficulty
        contributions = self.evaluate_modifiers()
        new = self._manager.calculate_difficulty(current, contributions)
        self._provider.save_difficulty(new)

        self.last_result = DifficultyResult(
            previous=current,
            new=new,
            tier=self._manager.get_difficulty_level(new),
            contributions=contributions,
            primary_reason=self._manager.primary_reason(contributions),
        )
        for c in contributions:
            if c.value:
                logger.debug("%s: %+.2f (%s)", c.name, c.value, c.reason)
        logger.debug(
            "Difficulty %.2f -> %.2f (%s)", current, new, self.last_result.primary_reason
        )
        return new

    def reset_difficulty(self) -> None:
        default = self._manager.get_default_difficulty()
        self._provider.save_difficulty(default)
        logger.info("Difficulty reset to default %.2f", default)

    def get_difficulty_level(self) -> DifficultyTier:
        return self._manager.get_difficulty_level(self.current_difficulty)

    def get_difficulty_stats(self) -> Dict[str, Any]:
        """Diagnostic snapshot. Derived on every call, never stored."""
        current = self.current_difficulty
        return {
            "current_difficulty": current,
            "tier": self._manager.get_difficulty_level(current).value,
            "win_streak": self._session.win_streak,
            "loss_streak": self._session.loss_streak,
            "total_wins": self._session.total_wins,
            "total_losses": self._session.total_losses,
            "session_count": self._session.session_count,
        }

    # --- Persistence delegation ---

    def save_data(self) -> None:
        self._provider.save_session_data(self._session)
        self._provider.save_difficulty(self.current_difficulty)

    def load_data(self) -> None:
        self._session = self._provider.load_session_data() or PlayerSessionData()

    def clear_data(self) -> None:
        self._provider.clear_data()
        self._session.reset()
        self.last_result = None
        logger.info("Player data cleared")

    # --- Configuration ---

    def apply_config(self, config: ConfigBundle) -> None:
        """Swap in a new configuration.

        The stored difficulty is clamped into the new bounds.

        Raises:
            ValueError: If the bundle's bounds are malformed. The current
                configuration is kept in that case.
        """
        self._manager = DifficultyManager(config)
        logger.info(
            "Config applied: range %.2f-%.2f, max change %.2f",
            config.min_difficulty,
            config.max_difficulty,
            config.max_change_per_session,
        )
        stored = self._provider.load_difficulty()
        if stored is not None:
            clamped = self._manager.clamp_difficulty(stored)
            if clamped != stored:
                self._provider.save_difficulty(clamped)
                logger.info("Stored difficulty %.2f clamped to %.2f", stored, clamped)

    def regenerate_config(self, stats: GameStats) -> ConfigBundle:
        """Regenerate every modifier bundle from game statistics and apply it.

        Raises:
            InvalidGameStatsError: If the statistics are invalid. The current
                configuration is kept in that case.
        """
        config = generate_all_configs_from_stats(stats)
        self.apply_config(config)
        return config
