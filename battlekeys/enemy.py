#!/usr/bin/env python3
"""
Enemy Ship Module for Battle Keys

Implements enemy ship kinematics:
- Following a flight path at a preferred cruising speed
- Acceleration-limited steering with braking before each waypoint
- Torpedo launch when the flight path proposes it and the nose points at
  the home ship
- Refilling an empty chain with a new word at FILL vertices
- Flying away from the home ship once destroyed by a pulse

An enemy ship owns exactly one current torpedo group. Launching detaches
that group and gives the ship a fresh empty one; refilling replaces the
empty group with a loaded one.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Optional

from .events import GameEventType
from .flightpath import FlightPath, PathAction
from .torpedo import FIRST_MIN_DIST, MIN_DIST, TorpedoGroup, TorpedoState, TxTorpedo
from .vecmath import Vector2D

if TYPE_CHECKING:
    from .game import Game
    from .pulse import Pulse
    from .view import BattleView


# =============================================================================
# CONSTANTS
# =============================================================================

SHIP_MAX_SPEED = 0.5  # bsu/s
PREFERRED_SPEED = 0.4  # bsu/s, also sets the path cycle time
SHIP_ACCEL = 0.8  # bsu/s^2
LOCKED_SPEED = 0.6  # bsu/s, flying off after being destroyed

ARRIVAL_RADIUS = 0.1  # bsu, "at the waypoint"
BRAKING_MARGIN = 0.8  # Brake once stopping distance exceeds this share of the gap

MIN_LAUNCH_SPEED = 0.3  # bsu/s
MIN_LAUNCH_TIME_MS = 5000  # No launches in the first 5 s of a ship's life
LAUNCH_ALIGNMENT = 0.95  # Cosine between velocity and the line to home

_ship_ids = itertools.count(1)


# =============================================================================
# ENEMY SHIP
# =============================================================================

class EnemyShip:
    """
    An enemy ship towing a chain of letter torpedoes.

    Attributes:
        ship_id: Stable identifier for snapshots and logs.
        seq: Engine sequence currently loaded.
        position: Current position (bsu).
        velocity: Current velocity (bsu/s).
        target_pos: Point on the flight path the ship is steering toward.
        start_time: Time the ship starts flying (creation + delay), ms.
        cycle_time: Time for one lap at the preferred speed, ms.
        max_speed: Current speed cap.
        has_torps: False once the chain has been launched.
        locked: Pulse that destroyed this ship, if any.
        exploded: True once destroyed.
        explode_time: When the ship was destroyed (ms).
        group: The ship's current torpedo group.
    """

    def __init__(self, seq: str, game: Game, flight_path: FlightPath,
                 start_delay_ms: int = 0) -> None:
        self.ship_id = next(_ship_ids)
        self.game = game
        self.flight_path = flight_path
        self.seq = seq

        now = game.clock.now_ms()
        self.start_time = now + start_delay_ms
        self.cycle_time = flight_path.total_dist / PREFERRED_SPEED * 1000.0

        self.position = flight_path.target_pos(0.0)
        self.velocity = Vector2D.zero()
        self.target_pos = Vector2D.zero()
        self.max_speed = SHIP_MAX_SPEED

        self.has_torps = True
        self.locked: Optional[Pulse] = None
        self.exploded = False
        self.explode_time: Optional[int] = None

        self.group: Optional[TorpedoGroup] = None
        self.load_torpedoes()

    @property
    def match_ct(self) -> int:
        return self.group.match_ct if self.group is not None else 0

    def path_frac(self, elapsed_ms: float) -> float:
        """Fraction of the path for a given time since start."""
        if elapsed_ms < 0:
            return 0.0
        return (elapsed_ms / self.cycle_time) % 1.0

    def load_torpedoes(self) -> TorpedoGroup:
        """
        Build a fresh torpedo chain for the current sequence.

        The previous group, if still attached, is detached so the ship is
        only ever advanced by one group.
        """
        old = self.group
        if old is not None and old.parent_ship is self:
            old.detach()

        torps: list[TxTorpedo] = []
        leader: object = self
        for i, ch in enumerate(self.seq):
            torp = TxTorpedo(
                char=ch,
                position=self.position.copy(),
                velocity=self.velocity.copy(),
                leader=leader,
                home=self.game.home,
                min_dist=FIRST_MIN_DIST if i == 0 else MIN_DIST,
            )
            torps.append(torp)
            leader = torp

        self.group = TorpedoGroup(self.seq, torps, self, self.game.groups,
                                  self.game.clock.now_ms())
        return self.group

    def lock(self, pulse: Pulse) -> None:
        """Destroyed by pulse: explode and fly away from the home ship."""
        self.locked = pulse
        self.exploded = True
        self.explode_time = self.game.clock.now_ms()
        self.max_speed = LOCKED_SPEED

    def try_launch(self, now: int) -> bool:
        """
        Release the loaded torpedoes at the home ship if lined up.

        The pending LAUNCH is only consumed while the ship points at the
        home ship; the speed and age checks can still veto it afterwards.

        Returns:
            True if torpedoes were released.
        """
        speed = self.velocity.magnitude
        to_home = self.game.home.position - self.position
        dist_home = to_home.magnitude
        if speed == 0 or dist_home == 0:
            return False
        if to_home.dot(self.velocity) / speed / dist_home <= LAUNCH_ALIGNMENT:
            return False

        self.flight_path.action_taken()
        if speed < MIN_LAUNCH_SPEED or now - self.start_time < MIN_LAUNCH_TIME_MS:
            return False
        if not self.has_torps or self.group is None:
            return False

        released = 0
        for torp in self.group.torps:
            if torp.state is TorpedoState.FOLLOW:
                torp.launch(to_home * speed)
                released += 1

        launched_seq = self.group.seq
        self.group.detach()
        self.has_torps = False
        self.seq = ""
        self.group = TorpedoGroup("", [], self, self.game.groups, now)

        self.game.log_event(GameEventType.TORPEDOES_RELEASED, {
            "ship": self.ship_id,
            "seq": launched_seq,
            "count": released,
        })
        return True

    def try_fill(self) -> bool:
        """
        Load a new word from the wave if the chain is empty.

        Returns:
            True if a new chain was loaded.
        """
        if self.has_torps:
            return False
        self.seq = self.game.wave.get_word()
        self.load_torpedoes()
        self.flight_path.action_taken()
        self.has_torps = True
        self.game.log_event(GameEventType.TORPEDOES_LOADED, {
            "ship": self.ship_id,
            "seq": self.seq,
        })
        return True

    def move_fwd(self, view: BattleView, delta_ms: float) -> bool:
        """
        Advance the ship one tick.

        Returns:
            True if the ship should be removed (destroyed and off view).
        """
        dt = delta_ms / 1000.0

        if self.locked is not None:
            away = (self.position - self.game.home.position).normalized()
            self.position = self.position + away * (self.max_speed * dt)
            return not view.in_view(self.position)

        now = self.game.clock.now_ms()
        elapsed = now - self.start_time
        if elapsed < 0:
            return False

        frac = self.path_frac(elapsed)
        self.position = self.position + self.velocity * dt
        self.target_pos = self.flight_path.target_pos(frac)

        action = self.flight_path.action(frac)
        if action is PathAction.LAUNCH:
            self.try_launch(now)
        elif action is PathAction.FILL:
            self.try_fill()

        self._steer(dt)
        return False

    def _steer(self, dt: float) -> None:
        diff = self.target_pos - self.position
        dist = diff.magnitude
        speed = self.velocity.magnitude
        max_dv = SHIP_ACCEL * dt

        if speed > PREFERRED_SPEED and dist < ARRIVAL_RADIUS:
            # Slow back to cruising speed near the waypoint
            self.velocity = self.velocity - self.velocity.normalized() * max_dv
            if PREFERRED_SPEED - self.velocity.magnitude > 0.01:
                self.velocity = diff.normalized() * PREFERRED_SPEED
        elif dist > ARRIVAL_RADIUS and speed * (speed / SHIP_ACCEL) / 2 > dist * BRAKING_MARGIN:
            self.velocity = self.velocity - self.velocity.normalized() * max_dv
        elif dist > ARRIVAL_RADIUS:
            self.velocity = self.velocity + diff.normalized() * max_dv

        if self.velocity.magnitude > self.max_speed:
            self.velocity = self.velocity.normalized() * self.max_speed

    def __repr__(self) -> str:
        return f"EnemyShip(#{self.ship_id} {self.seq!r} at {self.position})"
