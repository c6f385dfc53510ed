"""Data providers -- where a player's difficulty and session data are kept.

The service only talks to ``DifficultyDataProvider``. Two implementations
ship here: an in-memory one for tests and embedding, and a JSON file store
with atomic, locked writes.
"""

import abc
import copy
import os
from typing import Any, Dict, Optional

from pacer.session import PlayerSessionData
from pacer.storage import load_json, save_json, update_lock


class DifficultyDataProvider(abc.ABC):
    """Abstract base class for difficulty persistence backends."""

    @abc.abstractmethod
    def load_session_data(self) -> Optional[PlayerSessionData]:
        """Return the stored session data, or None if nothing is stored."""

    @abc.abstractmethod
    def save_session_data(self, data: PlayerSessionData) -> None:
        ...

    @abc.abstractmethod
    def load_difficulty(self) -> Optional[float]:
        """Return the stored difficulty, or None if nothing is stored."""

    @abc.abstractmethod
    def save_difficulty(self, value: float) -> None:
        ...

    @abc.abstractmethod
    def clear_data(self) -> None:
        """Forget everything stored for this player."""


class InMemoryDataProvider(DifficultyDataProvider):
    """Keeps data in process memory. Stored session data is copied both ways."""

    def __init__(self):
        self._session: Optional[PlayerSessionData] = None
        self._difficulty: Optional[float] = None

    def load_session_data(self) -> Optional[PlayerSessionData]:
        return copy.deepcopy(self._session)

    def save_session_data(self, data: PlayerSessionData) -> None:
        self._session = copy.deepcopy(data)

    def load_difficulty(self) -> Optional[float]:
        return self._difficulty

    def save_difficulty(self, value: float) -> None:
        self._difficulty = float(value)

    def clear_data(self) -> None:
        self._session = None
        self._difficulty = None


class JsonFileDataProvider(DifficultyDataProvider):
    """One JSON document per player::

        {"difficulty": 4.5, "session": {...PlayerSessionData.to_dict()...}}

    Every save re-reads the document, changes one key and replaces the file
    atomically, all under the sidecar lock from ``pacer.storage``, so
    concurrent processes neither see a half-written file nor drop each
    other's updates. Clearing leaves the empty ``.lock`` sidecar behind.
    """

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, Any]:
        data = load_json(self.path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return data

    def _update(self, key: str, value: Any) -> None:
        with update_lock(self.path):
            data = self._read()
            data[key] = value
            save_json(self.path, data)

    def load_session_data(self) -> Optional[PlayerSessionData]:
        raw = self._read().get("session")
        if raw is None:
            return None
        return PlayerSessionData.from_dict(raw)

    def save_session_data(self, data: PlayerSessionData) -> None:
        self._update("session", data.to_dict())

    def load_difficulty(self) -> Optional[float]:
        value = self._read().get("difficulty")
        return None if value is None else float(value)

    def save_difficulty(self, value: float) -> None:
        self._update("difficulty", float(value))

    def clear_data(self) -> None:
        with update_lock(self.path):
            if os.path.exists(self.path):
                os.unlink(self.path)
