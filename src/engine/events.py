"""
Farkle Engine - Game Event Definitions

Event types and payloads emitted while a match is played. The match keeps
them as an ordered log and forwards each one to an optional listener.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable


class GameEvent(Enum):
    """Events that can occur during a game."""

    GAME_STARTED = auto()
    DICE_ROLLED = auto()
    DICE_KEPT = auto()
    HOT_DICE = auto()
    PLAYER_FARKLED = auto()
    TURN_BANKED = auto()
    POINTS_FORFEITED = auto()
    FINAL_ROUND_STARTED = auto()
    TURN_ADVANCED = auto()
    GAME_WON = auto()


@dataclass(frozen=True)
class EventPayload:
    """Wrapper for event data."""

    event: GameEvent
    player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


EventListener = Callable[[EventPayload], None]
