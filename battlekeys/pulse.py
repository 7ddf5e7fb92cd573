#!/usr/bin/env python3
"""
Pulse Module for Battle Keys

Every keystroke emits an expanding ring from the home ship. A pulse that
was created while the active typed buffer ended in a live engine sequence
destroys the first matching group its front touches. A CLEARALL pulse
(master phrase typed) destroys everything it reaches and ends the wave.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from .vecmath import Vector2D

if TYPE_CHECKING:
    from .game import Game
    from .torpedo import TorpedoGroup, TxTorpedo
    from .view import BattleView


# =============================================================================
# CONSTANTS
# =============================================================================

PULSE_SPEED = 1.5  # bsu/s
CLEAR_TIME_MS = 10000  # Lifetime of any pulse


class PulseType(Enum):
    NORMAL = auto()
    CLEARALL = auto()


# =============================================================================
# PULSE
# =============================================================================

class Pulse:
    """
    Expanding ring emitted by the home ship.

    Creating a pulse runs the home ship's match accounting, so by the time
    the constructor returns the keystroke has been fully applied.

    Attributes:
        center: Origin of the ring.
        rad: Current radius (bsu), never decreases.
        speed: Growth rate (bsu/s).
        start_time: Creation time (ms).
        target_groups: Groups whose full sequence was typed for this pulse.
        contacted: True once this pulse has destroyed a group.
        pending_remove: Set to cull the pulse on its next update.
        type: NORMAL or CLEARALL.
    """

    def __init__(self, center: Vector2D, game: Game) -> None:
        self.game = game
        self.center = center.copy()
        self.rad = 0.0
        self.speed = PULSE_SPEED
        self.start_time = game.clock.now_ms()
        self.target_groups: list[TorpedoGroup] = []
        self.contacted = False
        self.pending_remove = False
        self.type = PulseType.NORMAL
        game.home.update_all_match_cts(True, self)

    def age_ms(self, now: int) -> int:
        return now - self.start_time

    def in_range(self, point: Vector2D) -> bool:
        """True if point is inside the current ring."""
        return point.distance_to(self.center) < self.rad

    def check_full_match(self) -> bool:
        """
        Find groups whose whole sequence is a suffix of the typed buffer.

        Every such group becomes a target of this pulse and has its match
        count set to the full sequence length.

        Returns:
            True if at least one group matched.
        """
        active = self.game.home.active_pulse_str
        groups = self.game.groups
        for start in range(len(active)):
            for group in groups.lookup(active[start:]):
                if not any(g is group for g in self.target_groups):
                    self.target_groups.append(group)
                group.match_ct = len(group.seq)
        return bool(self.target_groups)

    def matched_word(self) -> str:
        """Longest sequence among this pulse's targets."""
        return max((g.seq for g in self.target_groups), key=len, default="")

    def _first_torp_in_range(self, group: TorpedoGroup) -> Optional[TxTorpedo]:
        for torp in group.torps:
            if self.in_range(torp.position):
                return torp
        return None

    def move_fwd(self, view: BattleView, delta_ms: float) -> bool:
        """
        Grow the ring and destroy whatever it reaches.

        Returns:
            True if the pulse should be removed.
        """
        game = self.game
        if self.pending_remove:
            return True
        if self.age_ms(game.clock.now_ms()) > CLEAR_TIME_MS:
            return True

        if self.type is PulseType.CLEARALL:
            edge = Vector2D(self.rad, self.rad)
            if not view.in_view(self.center + edge) and game.groups.is_empty():
                game.wave.ships_left = 0
                return True

        if self.rad < view.max_dim:
            if self.type is PulseType.CLEARALL:
                self._sweep_all()
            elif not self.contacted:
                self._hit_target()

        self.rad += self.speed * delta_ms / 1000.0
        return False

    def _sweep_all(self) -> None:
        for group in list(self.game.groups):
            if group.locked is not None:
                continue
            if not group.torps:
                # Nothing to score, just take down the ship still flying
                if group.parent_ship is not None and group.parent_ship.locked is None:
                    group.parent_ship.lock(self)
                continue
            if self.in_range(group.torps[0].position):
                self.game.record_destroyed(group)
                group.lock(self, group.torps[0])

    def _hit_target(self) -> None:
        for group in self.target_groups:
            if group.locked is not None or not self.game.groups.is_live(group):
                continue
            torp = self._first_torp_in_range(group)
            if torp is None:
                continue
            self.game.record_destroyed(group)
            self.contacted = True
            group.lock(self, torp)
            break

    def __repr__(self) -> str:
        return f"Pulse({self.type.name} rad={self.rad:.2f} targets={len(self.target_groups)})"
