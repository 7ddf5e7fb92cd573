#!/usr/bin/env python3
"""
Home Ship Module for Battle Keys

The player's stationary ship at the centre of battle space:
- Turns each keystroke into a pulse and keeps the active typed buffer
- Runs match accounting (highlights, points, combo, CLEARALL trigger)
- Aims at the focused torpedo group with a bounded turn rate
- Takes torpedo hits, shakes, explodes at zero health

Character removal from the active buffer is FIFO: each expired pulse takes
away the oldest typed character.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from .events import GameEventType
from .pulse import Pulse, PulseType
from .vecmath import Vector2D, delta_angle, normalize_angle

if TYPE_CHECKING:
    from .game import Game
    from .torpedo import TorpedoGroup, TxTorpedo
    from .view import BattleView


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_HEALTH = 5
CONTACT_RADIUS = 0.06  # bsu, torpedo hit distance

TURN_RATE = 0.003  # rad/ms toward the focused group
IDLE_TURN_RATE = 0.001  # rad/ms with nothing to aim at

EXPLODE_ANIM_MS = 1000
GAME_OVER_FADE_MS = 2000
DAMAGE_SHAKE_MS = 1000
EXPLOSION_RENEW_MIN_MS = 500  # Hits this far into an explosion restart it

ALLOWED_SYMBOLS = "!@#$%^&*()-=_+[]\\{}|;':\",./<>?"


class HomeShip:
    """
    The player's ship.

    Attributes:
        position: Fixed position (the view centre).
        angle: Heading in radians, normalised to (-pi, pi].
        health: Remaining hit points.
        pulses: Live pulses in creation order.
        active_pulse_str: Characters of the live pulses, oldest first.
        explode_time: When the explosion started (ms), None if intact.
        damage_time: Time of the last hit (ms), None if never hit.
        hit_torps: Torpedoes that already caused damage.
    """

    contact_radius = CONTACT_RADIUS

    def __init__(self, position: Vector2D, game: Game, health: int = DEFAULT_HEALTH) -> None:
        self.game = game
        self.position = position.copy()
        self.angle = math.pi / 2
        self.health = health
        self.pulses: list[Pulse] = []
        self.active_pulse_str = ""
        self.explode_time: Optional[int] = None
        self.damage_time: Optional[int] = None
        self.hit_torps: set[TxTorpedo] = set()

    # =========================================================================
    # Typing
    # =========================================================================

    @staticmethod
    def is_valid_char(ch: str) -> bool:
        """Letters, digits and ALLOWED_SYMBOLS can be typed."""
        if len(ch) != 1:
            return False
        return ch.isalpha() or ch.isdigit() or ch in ALLOWED_SYMBOLS

    def pulse(self, ch: str) -> bool:
        """
        Type one character.

        Returns:
            True if a pulse was emitted, False if the character was dropped.
        """
        if self.health <= 0 or not self.is_valid_char(ch):
            return False
        self.active_pulse_str += ch
        self.pulses.append(Pulse(self.position, self.game))
        return True

    def pulse_expiry(self) -> None:
        """Forget the oldest typed character after its pulse is culled."""
        self.active_pulse_str = self.active_pulse_str[1:]
        self.update_all_match_cts(False, None)

    def update_all_match_cts(self, letter_added: bool, pulse: Optional[Pulse]) -> bool:
        """
        Re-evaluate every group against the active buffer and score.

        Args:
            letter_added: True when called for a new keystroke.
            pulse: The keystroke's pulse (None on expiry).

        Returns:
            True if the buffer affects at least one group.
        """
        game = self.game
        stat = game.stat
        wave = game.wave

        full_match = bool(letter_added and pulse is not None and pulse.check_full_match())

        had_effect = False
        combo_continues = False
        for group in list(game.groups):
            previous = group.match_ct
            if group.update_match_ct(self.active_pulse_str):
                had_effect = True
            if group.match_ct > previous:
                combo_continues = True

        if letter_added:
            if combo_continues or full_match:
                if full_match:
                    word = pulse.matched_word()
                    stat.points += len(word)
                    if wave is not None and (stat.combo_str + word).endswith(wave.phrase):
                        self._clear_all(pulse)
                else:
                    stat.points += 1
                if (pulse is not None and wave is not None
                        and self.active_pulse_str.endswith(wave.phrase.replace(" ", ""))):
                    self._clear_all(pulse)
            elif not had_effect:
                game.clear_combo()
            elif not stat.can_start_word:
                game.clear_combo()
            stat.can_start_word = full_match

        if not self.active_pulse_str:
            game.clear_combo()
        return had_effect

    def _clear_all(self, pulse: Pulse) -> None:
        if pulse.type is PulseType.CLEARALL:
            return
        pulse.type = PulseType.CLEARALL
        self.game.wave.can_add = False
        self.game.log_event(GameEventType.CLEARALL_TRIGGERED, {
            "phrase": self.game.wave.phrase,
        })

    # =========================================================================
    # Damage
    # =========================================================================

    def cause_damage(self, torp: TxTorpedo) -> None:
        """Apply one torpedo hit. Each torpedo can only hit once."""
        if torp in self.hit_torps:
            return
        self.hit_torps.add(torp)
        if self.health <= 0:
            self.explode()
            return

        self.health -= 1
        self.damage_time = self.game.clock.now_ms()
        self.game.log_event(GameEventType.HOME_DAMAGED, {
            "char": torp.char,
            "health": self.health,
        })
        if self.health <= 0:
            self.game.log_event(GameEventType.HOME_DESTROYED)
            self.explode()

    def explode(self) -> None:
        """Start (or restart) the explosion and stop new ships arriving."""
        now = self.game.clock.now_ms()
        if self.game.wave is not None:
            self.game.wave.can_add = False
        if self.explode_time is None:
            self.explode_time = now
        elif EXPLOSION_RENEW_MIN_MS < now - self.explode_time < EXPLODE_ANIM_MS:
            self.explode_time = now

    def ship_status(self) -> int:
        """
        Health for display.

        Returns:
            Remaining health while alive, -1 while the explosion and the
            game over fade play, 0 once they are done.
        """
        if self.health <= 0 and self.explode_time is not None:
            if self.game.clock.now_ms() - self.explode_time > EXPLODE_ANIM_MS + GAME_OVER_FADE_MS:
                return 0
            return -1
        return self.health

    def is_shaking(self, now: Optional[int] = None) -> bool:
        if self.damage_time is None:
            return False
        now = self.game.clock.now_ms() if now is None else now
        return now - self.damage_time < DAMAGE_SHAKE_MS

    # =========================================================================
    # Update
    # =========================================================================

    def move_fwd(self, view: BattleView, target: Optional[TorpedoGroup], delta_ms: float) -> None:
        """Turn toward the target group and advance every pulse."""
        target_pt = target.first_pos() if target is not None else None
        if target_pt is not None:
            target_angle = math.atan2(target_pt.y - self.position.y, target_pt.x - self.position.x)
            diff = delta_angle(target_angle, self.angle)
            step = TURN_RATE * delta_ms
            if abs(diff) <= step:
                self.angle = target_angle
            else:
                self.angle += step if diff > 0 else -step
        else:
            self.angle += IDLE_TURN_RATE * delta_ms
        self.angle = normalize_angle(self.angle)

        for pulse in list(self.pulses):
            if pulse.move_fwd(view, delta_ms):
                self.pulses.remove(pulse)
                self.pulse_expiry()
