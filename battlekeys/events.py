"""
Game events and player input events for Battle Keys.

GameEvent records what happened during a game (for the event log, replay
and observers). InputEvent carries keystrokes and menu commands from the
input thread to the tick.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional


# =============================================================================
# GAME EVENTS
# =============================================================================

class GameEventType(Enum):
    """Types of events that can occur during a game."""
    # Game flow
    GAME_STARTED = auto()
    GAME_WON = auto()
    GAME_LOST = auto()
    GAME_QUIT = auto()
    GAME_RESTARTED = auto()
    TICK_HALTED = auto()

    # Waves
    WAVE_STARTED = auto()
    WAVE_COMPLETE = auto()
    SHIPS_DEPLOYED = auto()

    # Enemy actions
    TORPEDOES_RELEASED = auto()
    TORPEDOES_LOADED = auto()

    # Player actions
    GROUP_DESTROYED = auto()
    CLEARALL_TRIGGERED = auto()
    COMBO_CLEARED = auto()

    # Home ship
    HOME_DAMAGED = auto()
    HOME_DESTROYED = auto()


@dataclass
class GameEvent:
    """
    An event that occurs during a game.

    Attributes:
        event_type: The type of event.
        timestamp_ms: Clock time when the event occurred.
        wave: Wave number at the time (0 before the first wave).
        data: Additional event-specific data.
    """
    event_type: GameEventType
    timestamp_ms: int
    wave: int = 0
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type.name,
            "timestamp_ms": self.timestamp_ms,
            "wave": self.wave,
            "data": self.data,
        }

    def __str__(self) -> str:
        detail = " ".join(f"{k}={v}" for k, v in self.data.items())
        return f"T+{self.timestamp_ms / 1000:.2f}s [W{self.wave}] {self.event_type.name} {detail}".rstrip()


# =============================================================================
# INPUT EVENTS
# =============================================================================

class InputKind(Enum):
    """Kinds of input posted to the tick."""
    KEY = auto()
    QUIT = auto()
    RESTART = auto()


@dataclass(frozen=True)
class InputEvent:
    """A keystroke or menu command waiting to be applied by the tick."""
    kind: InputKind
    char: Optional[str] = None

    @classmethod
    def key(cls, char: str) -> InputEvent:
        return cls(InputKind.KEY, char)

    @classmethod
    def quit(cls) -> InputEvent:
        return cls(InputKind.QUIT)

    @classmethod
    def restart(cls) -> InputEvent:
        return cls(InputKind.RESTART)


# =============================================================================
# ERRORS
# =============================================================================

class BattleKeysError(Exception):
    """Base class for Battle Keys errors."""


class InvariantViolation(BattleKeysError):
    """
    Simulation state broke an invariant during a tick.

    Attributes:
        group: The torpedo group holding the offending entity, if known.
    """

    def __init__(self, message: str, group: Any = None) -> None:
        super().__init__(message)
        self.group = group
