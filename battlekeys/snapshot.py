"""
Read-only frame snapshots for renderers.

The tick builds one FrameSnapshot after it finishes; a renderer on another
thread only ever sees these immutable copies, never live game objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .enemy import EnemyShip
    from .homeship import HomeShip
    from .pulse import Pulse
    from .stats import GameSummary
    from .torpedo import TorpedoGroup, TxTorpedo

Point = tuple[float, float]


@dataclass(frozen=True)
class HomePose:
    position: Point
    angle: float
    health: int
    shaking: bool


@dataclass(frozen=True)
class PulseView:
    center: Point
    radius: float
    age_ms: int
    type: str


@dataclass(frozen=True)
class ShipView:
    ship_id: int
    position: Point
    velocity: Point
    exploded: bool


@dataclass(frozen=True)
class TorpedoView:
    char: str
    position: Point
    angle: float
    state: str


@dataclass(frozen=True)
class GroupView:
    group_id: int
    seq: str
    match_ct: int
    locked: bool
    ship: Optional[ShipView]
    torpedoes: tuple[TorpedoView, ...]


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything a renderer needs to draw one frame."""
    time_ms: int
    phase: str
    home: Optional[HomePose]
    pulses: tuple[PulseView, ...]
    groups: tuple[GroupView, ...]
    active_pulse_str: str
    wave_banner: Optional[tuple[int, int]]
    combo: str
    points: int
    summary: Optional[GameSummary] = None
    error: Optional[str] = None


def home_pose(home: HomeShip, now: int) -> HomePose:
    return HomePose(home.position.to_tuple(), home.angle, home.health, home.is_shaking(now))


def pulse_view(pulse: Pulse, now: int) -> PulseView:
    return PulseView(pulse.center.to_tuple(), pulse.rad, pulse.age_ms(now), pulse.type.name)


def ship_view(ship: EnemyShip) -> ShipView:
    return ShipView(ship.ship_id, ship.position.to_tuple(), ship.velocity.to_tuple(), ship.exploded)


def torpedo_view(torp: TxTorpedo) -> TorpedoView:
    return TorpedoView(torp.char, torp.position.to_tuple(), torp.angle, torp.state.name)


def group_view(group: TorpedoGroup) -> GroupView:
    ship = ship_view(group.parent_ship) if group.parent_ship is not None else None
    return GroupView(
        group_id=group.group_id,
        seq=group.seq,
        match_ct=group.match_ct,
        locked=group.locked is not None,
        ship=ship,
        torpedoes=tuple(torpedo_view(t) for t in group.torps),
    )
