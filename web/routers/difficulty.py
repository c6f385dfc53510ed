"""Difficulty router -- per-player event recording, updates, and config generation."""

import os
import re
from typing import Dict, Optional

from fastapi import APIRouter

from pacer.config import ConfigBundle
from pacer.generator import generate_all_configs_from_stats
from pacer.providers import JsonFileDataProvider
from pacer.service import DifficultyService
from pacer.session import QuitType
from pacer.stats import GameStats, InvalidGameStatsError

router = APIRouter()

_PLAYER_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

_config = ConfigBundle()
_services: Dict[str, DifficultyService] = {}


def data_dir() -> str:
    """Directory holding one JSON file per player."""
    return os.environ.get(
        "PACER_DATA_DIR", os.path.join(os.path.expanduser("~"), ".pacer", "players")
    )


def active_players() -> int:
    return len(_services)


def reset_state() -> None:
    """Drop cached services and restore the default configuration."""
    global _config
    _config = ConfigBundle()
    _services.clear()


def _get_service(player_id: str) -> Optional[DifficultyService]:
    """Return the player's service, creating it on first use. None for bad IDs."""
    if not _PLAYER_ID.match(player_id):
        return None
    service = _services.get(player_id)
    if service is None:
        provider = JsonFileDataProvider(os.path.join(data_dir(), f"{player_id}.json"))
        service = DifficultyService(provider, config=_config)
        _services[player_id] = service
    return service


def _level_args(data: Optional[dict]):
    data = data or {}
    level_id = data.get("level_id")
    duration = data.get("duration_seconds", 0.0)
    if level_id is not None and (isinstance(level_id, bool) or not isinstance(level_id, int)):
        return None, None, "level_id must be an integer"
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
        return None, None, "duration_seconds must be a non-negative number"
    return level_id, float(duration), None


_INVALID_PLAYER = {"error": "Invalid player ID"}


# --- Events ---

@router.post("/api/players/{player_id}/win")
async def record_win(player_id: str, data: Optional[dict] = None):
    """Record a won level."""
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    level_id, duration, error = _level_args(data)
    if error:
        return {"error": error}
    service.record_win(level_id, duration)
    return service.get_difficulty_stats()


@router.post("/api/players/{player_id}/loss")
async def record_loss(player_id: str, data: Optional[dict] = None):
    """Record a lost level."""
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    level_id, duration, error = _level_args(data)
    if error:
        return {"error": error}
    service.record_loss(level_id, duration)
    return service.get_difficulty_stats()


@router.post("/api/players/{player_id}/session/start")
async def session_start(player_id: str):
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    service.record_session_start()
    return {"ok": True, "session_count": service.session_data.session_count}


@router.post("/api/players/{player_id}/session/end")
async def session_end(player_id: str):
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    service.record_session_end()
    return {"ok": True, "session_length_seconds": service.session_data.session_length_seconds}


@router.post("/api/players/{player_id}/quit")
async def record_quit(player_id: str, data: dict):
    """Record how the last session ended (normal, mid_play, rage_quit)."""
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    raw = data.get("quit_type", "")
    try:
        quit_type = QuitType(raw)
    except ValueError:
        valid = ", ".join(q.value for q in QuitType)
        return {"error": f"Unknown quit type {raw!r}. Valid: {valid}"}
    service.record_quit(quit_type)
    return {"ok": True, "quit_type": quit_type.value}


# --- Difficulty ---

@router.post("/api/players/{player_id}/update")
async def update_difficulty(player_id: str):
    """Run the modifiers and return the new difficulty with its breakdown."""
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    service.update_difficulty()
    result = service.last_result
    return {
        "previous": result.previous,
        "difficulty": result.new,
        "tier": result.tier.value,
        "primary_reason": result.primary_reason,
        "contributions": [
            {"name": c.name, "value": c.value, "reason": c.reason}
            for c in result.contributions
        ],
    }


@router.post("/api/players/{player_id}/reset")
async def reset_difficulty(player_id: str):
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    service.reset_difficulty()
    return {"ok": True, "difficulty": service.current_difficulty}


@router.get("/api/players/{player_id}/stats")
async def get_stats(player_id: str):
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    return service.get_difficulty_stats()


@router.delete("/api/players/{player_id}")
async def clear_player(player_id: str):
    """Delete everything stored for a player."""
    service = _get_service(player_id)
    if service is None:
        return _INVALID_PLAYER
    service.clear_data()
    _services.pop(player_id, None)
    return {"ok": True}


# --- Configuration ---

@router.get("/api/config")
async def get_config():
    return _config.to_dict()


@router.post("/api/config/generate")
async def generate_config(data: dict):
    """Regenerate the configuration from game statistics and apply it to every player."""
    global _config
    try:
        stats = GameStats.from_dict(data)
    except TypeError as e:
        return {"error": [str(e)]}
    try:
        config = generate_all_configs_from_stats(stats)
    except InvalidGameStatsError as e:
        return {"error": e.errors}
    _config = config
    for service in _services.values():
        service.apply_config(config)
    return config.to_dict()
