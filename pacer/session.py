"""Session data -- per-player record of streaks, session timing, and quits."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pacer.config import HOURS_IN_DAY, MAX_RECENT_SESSIONS


class QuitType(str, Enum):
    """How the player's last session ended."""

    NORMAL = "normal"
    MID_PLAY = "mid_play"
    RAGE_QUIT = "rage_quit"


@dataclass
class LevelResult:
    """Outcome of one level attempt."""

    level_id: Optional[int]
    won: bool
    duration_seconds: float = 0.0


def _push(items: list, item) -> None:
    items.append(item)
    if len(items) > MAX_RECENT_SESSIONS:
        del items[: len(items) - MAX_RECENT_SESSIONS]


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _checked_time(name: str, value: Optional[str]) -> Optional[str]:
    parsed = _parse_time(value)
    if parsed is not None and parsed.tzinfo is None:
        raise ValueError(f"{name} must carry a UTC offset, got {value!r}")
    return value


@dataclass
class PlayerSessionData:
    """Mutable behaviour record consumed by the difficulty modifiers.

    Win and loss streaks are mutually exclusive: recording one resets the
    other. Timestamps are stored as ISO-8601 strings so the record can be
    written to JSON as-is.
    """

    win_streak: int = 0
    loss_streak: int = 0
    total_wins: int = 0
    total_losses: int = 0
    session_count: int = 0
    session_length_seconds: float = 0.0
    last_quit_type: Optional[QuitType] = None
    session_started_at: Optional[str] = None
    last_session_end: Optional[str] = None
    last_played_at: Optional[str] = None
    current_level: Optional[int] = None
    attempts_on_current_level: int = 0
    recent_results: List[LevelResult] = field(default_factory=list)
    recent_session_lengths: List[float] = field(default_factory=list)
    recent_quits: List[QuitType] = field(default_factory=list)

    # --- Event recording ---

    def record_win(
        self,
        level_id: Optional[int] = None,
        duration_seconds: float = 0.0,
        now: Optional[datetime] = None,
    ) -> None:
        self.win_streak += 1
        self.loss_streak = 0
        self.total_wins += 1
        self._record_level(level_id, True, duration_seconds, now)

    def record_loss(
        self,
        level_id: Optional[int] = None,
        duration_seconds: float = 0.0,
        now: Optional[datetime] = None,
    ) -> None:
        self.loss_streak += 1
        self.win_streak = 0
        self.total_losses += 1
        self._record_level(level_id, False, duration_seconds, now)

    def _record_level(
        self,
        level_id: Optional[int],
        won: bool,
        duration_seconds: float,
        now: Optional[datetime],
    ) -> None:
        if level_id is not None:
            if level_id != self.current_level:
                self.current_level = level_id
                self.attempts_on_current_level = 0
            self.attempts_on_current_level += 1
            if won:
                # Beating a level moves the player on to the next one
                self.current_level = level_id + 1
                self.attempts_on_current_level = 0
        _push(self.recent_results, LevelResult(level_id, won, max(0.0, duration_seconds)))
        if now is not None:
            self.last_played_at = now.isoformat()

    def start_session(self, now: datetime) -> None:
        self.session_count += 1
        self.session_started_at = now.isoformat()

    def end_session(self, now: datetime) -> Optional[float]:
        """Close the open session and return its length in seconds.

        Returns None (and changes nothing) if no session is open.
        """
        started = _parse_time(self.session_started_at)
        if started is None:
            return None
        length = max(0.0, (now - started).total_seconds())
        self.session_length_seconds = length
        _push(self.recent_session_lengths, length)
        self.last_session_end = now.isoformat()
        self.session_started_at = None
        return length

    def record_quit(self, quit_type: QuitType) -> None:
        quit_type = QuitType(quit_type)
        self.last_quit_type = quit_type
        _push(self.recent_quits, quit_type)

    def reset(self) -> None:
        """Reset every field to its default."""
        for key, value in asdict(PlayerSessionData()).items():
            setattr(self, key, value)

    # --- Derived values ---

    def completion_rate(self) -> float:
        """Overall share of attempts won (0.0 with no attempts)."""
        attempts = self.total_wins + self.total_losses
        if attempts == 0:
            return 0.0
        return self.total_wins / attempts

    def recent_completion_rate(self) -> Optional[float]:
        """Share of recent level attempts won, or None with no recent attempts."""
        if not self.recent_results:
            return None
        return sum(1 for r in self.recent_results if r.won) / len(self.recent_results)

    def average_session_seconds(self) -> float:
        if not self.recent_session_lengths:
            return 0.0
        return sum(self.recent_session_lengths) / len(self.recent_session_lengths)

    def recent_rage_quit_count(self) -> int:
        return sum(1 for q in self.recent_quits if q == QuitType.RAGE_QUIT)

    def last_result(self) -> Optional[LevelResult]:
        return self.recent_results[-1] if self.recent_results else None

    def last_activity(self) -> Optional[datetime]:
        """Latest of the last session end and the last recorded game outcome."""
        times = [
            t
            for t in (_parse_time(self.last_session_end), _parse_time(self.last_played_at))
            if t is not None
        ]
        return max(times) if times else None

    def hours_since_last_activity(self, now: datetime) -> Optional[float]:
        last = self.last_activity()
        if last is None:
            return None
        return max(0.0, (now - last).total_seconds() / 3600)

    def days_since_last_activity(self, now: datetime) -> Optional[float]:
        hours = self.hours_since_last_activity(now)
        return None if hours is None else hours / HOURS_IN_DAY

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_quit_type"] = self.last_quit_type.value if self.last_quit_type else None
        data["recent_quits"] = [q.value for q in self.recent_quits]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerSessionData":
        """Rebuild a record from ``to_dict`` output.

        Raises:
            ValueError: If the data is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a session data object, got {type(data).__name__}")
        try:
            last_quit = data.get("last_quit_type")
            return cls(
                win_streak=int(data.get("win_streak", 0)),
                loss_streak=int(data.get("loss_streak", 0)),
                total_wins=int(data.get("total_wins", 0)),
                total_losses=int(data.get("total_losses", 0)),
                session_count=int(data.get("session_count", 0)),
                session_length_seconds=float(data.get("session_length_seconds", 0.0)),
                last_quit_type=QuitType(last_quit) if last_quit else None,
                session_started_at=_checked_time(
                    "session_started_at", data.get("session_started_at")
                ),
                last_session_end=_checked_time("last_session_end", data.get("last_session_end")),
                last_played_at=_checked_time("last_played_at", data.get("last_played_at")),
                current_level=data.get("current_level"),
                attempts_on_current_level=int(data.get("attempts_on_current_level", 0)),
                recent_results=[LevelResult(**r) for r in data.get("recent_results", [])],
                recent_session_lengths=[float(s) for s in data.get("recent_session_lengths", [])],
                recent_quits=[QuitType(q) for q in data.get("recent_quits", [])],
            )
        except (TypeError, KeyError, ValueError) as e:
            raise ValueError(f"Malformed session data: {e}") from e
