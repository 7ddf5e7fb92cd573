"""Battle Keys real-time typing battle engine package."""

from .clock import ManualClock, SystemClock

from .config import GameConfig

from .events import (
    # Game events
    GameEvent,
    GameEventType,
    # Input
    InputEvent,
    InputKind,
    # Errors
    BattleKeysError,
    InvariantViolation,
)

from .flightpath import (
    FPt,
    FlightPath,
    PathAction,
    TRACKS,
    classify_track,
    track_path,
)

from .torpedo import (
    GroupRegistry,
    TorpedoGroup,
    TorpedoState,
    TxTorpedo,
)

from .enemy import EnemyShip
from .pulse import Pulse, PulseType
from .homeship import HomeShip
from .stats import GameStat, GameSummary
from .wave import AttackWave
from .view import BattleView
from .vecmath import Vector2D

from .game import Game, GamePhase, load_phrases
from .snapshot import FrameSnapshot

__all__ = [
    # Clock and config
    "ManualClock",
    "SystemClock",
    "GameConfig",
    # Events
    "GameEvent",
    "GameEventType",
    "InputEvent",
    "InputKind",
    "BattleKeysError",
    "InvariantViolation",
    # Flight paths
    "FPt",
    "FlightPath",
    "PathAction",
    "TRACKS",
    "classify_track",
    "track_path",
    # Entities
    "GroupRegistry",
    "TorpedoGroup",
    "TorpedoState",
    "TxTorpedo",
    "EnemyShip",
    "Pulse",
    "PulseType",
    "HomeShip",
    "AttackWave",
    # Statistics
    "GameStat",
    "GameSummary",
    # Geometry
    "BattleView",
    "Vector2D",
    # Director
    "Game",
    "GamePhase",
    "FrameSnapshot",
    "load_phrases",
]
