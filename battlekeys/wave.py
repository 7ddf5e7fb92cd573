#!/usr/bin/env python3
"""
Attack Wave Module for Battle Keys

One wave is the squadron sent for one master phrase:
- Pacing: a grace period, then ships on a timer, in a batch when the
  field is empty, or on demand when the phrase could not be finished
- Word supply: shuffled phrase words, except that the next expected
  phrase word is handed out whenever no live group carries it
- Phrase progress: destroyed words in phrase order advance the match
  count, anything else resets it

Each batch shares one track, rotated about the home ship by a random
base angle plus a small fan offset per ship, with ship starts staggered.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from .enemy import EnemyShip
from .events import GameEventType
from .flightpath import FlightPath, track_path
from .vecmath import normalize_angle

if TYPE_CHECKING:
    from .game import Game
    from .view import BattleView


# =============================================================================
# CONSTANTS
# =============================================================================

SHIP_STAGGER_MS = 1000  # Start delay between ships of one batch
SHIP_FAN_ANGLE = 0.2  # rad between ships of one batch
EMPTY_FIELD_BATCH = 5  # Ships added at once when no group is alive
BANNER_FADE_MS = 500  # Banner stays this long after the grace period


class AttackWave:
    """
    Squadron for one phrase.

    Attributes:
        phrase: The master phrase, words joined by single spaces.
        phrase_words: Words of the phrase in order.
        shuffled_words: Permutation of phrase_words handed out to ships.
        curr_word_idx: Next index into shuffled_words.
        phrase_match_ct: Phrase words destroyed in order so far.
        ships_left: Ships still to be deployed.
        can_add: False once no more ships may be deployed.
        wave_number: 1-based wave number.
        start_time: Wave creation time (ms).
        last_ship_added_time: Time of the last deployment (ms).
    """

    def __init__(self, game: Game, phrase: str, wave_number: int) -> None:
        words = phrase.split()
        if not words:
            raise ValueError("AttackWave needs a phrase with at least one word")

        self.game = game
        for pulse in game.home.pulses:
            pulse.pending_remove = True

        self.phrase_words = words
        self.phrase = " ".join(words)
        self.shuffled_words = list(words)
        game.rng.shuffle(self.shuffled_words)
        self.curr_word_idx = 0
        self.phrase_match_ct = 0

        self.ships_left = game.config.ships_per_wave
        self.can_add = True
        self.wave_number = wave_number

        now = game.clock.now_ms()
        self.start_time = now
        self.last_ship_added_time = now
        self._track_idx = -1

        game.stat.on_next_wave()

    # =========================================================================
    # Words
    # =========================================================================

    def can_continue_phrase(self) -> bool:
        """True if the phrase is collected or its next word is on the field."""
        if self.phrase_match_ct >= len(self.phrase_words):
            return True
        return self.phrase_words[self.phrase_match_ct] in self.game.groups

    def get_word(self) -> str:
        """Word for the next ship to carry."""
        if self.can_continue_phrase():
            word = self.shuffled_words[self.curr_word_idx]
            self.curr_word_idx = (self.curr_word_idx + 1) % len(self.shuffled_words)
            return word
        return self.phrase_words[self.phrase_match_ct]

    def submit_word(self, word: str) -> None:
        """Advance phrase progress with a destroyed word, or reset it."""
        if (self.phrase_match_ct < len(self.phrase_words)
                and word == self.phrase_words[self.phrase_match_ct]):
            self.phrase_match_ct += 1
        else:
            self.phrase_match_ct = 0

    # =========================================================================
    # Deployment
    # =========================================================================

    def make_flight_path(self, ship_idx: int, base_angle: float) -> FlightPath:
        """Path for ship ship_idx of a batch. Ship 0 moves on to the next track."""
        if ship_idx == 0:
            self._track_idx += 1
        home = self.game.home.position
        base = track_path(self._track_idx, rng=self.game.rng, home=home)
        return base.rotated(normalize_angle(base_angle + ship_idx * SHIP_FAN_ANGLE), home)

    def add_enemy_group(self, count: int) -> bool:
        """
        Deploy up to count ships.

        Returns:
            True if no ships are left to deploy.
        """
        if self.ships_left <= 0:
            return True
        if not self.can_add:
            return False

        now = self.game.clock.now_ms()
        self.last_ship_added_time = now
        base_angle = self.game.rng.random() * 2 * math.pi

        seqs = []
        for idx in range(count):
            if self.ships_left <= 0:
                break
            self.ships_left -= 1
            word = self.get_word()
            EnemyShip(word, self.game, self.make_flight_path(idx, base_angle),
                      start_delay_ms=idx * SHIP_STAGGER_MS)
            seqs.append(word)

        self.game.log_event(GameEventType.SHIPS_DEPLOYED, {
            "seqs": seqs,
            "ships_left": self.ships_left,
        })
        return self.ships_left <= 0

    def update(self, view: Optional[BattleView] = None) -> bool:
        """
        Pace the wave for one tick.

        Returns:
            True if a deployment this tick found no ships left.
        """
        config = self.game.config
        now = self.game.clock.now_ms()
        if now - self.start_time < config.wave_pause_ms:
            return False
        if now - self.last_ship_added_time > config.add_interval_ms:
            return self.add_enemy_group(1)
        if self.game.groups.is_empty():
            return self.add_enemy_group(EMPTY_FIELD_BATCH)
        if not self.can_continue_phrase():
            return self.add_enemy_group(1)
        return False

    def banner(self, now: int) -> Optional[tuple[int, int]]:
        """(wave_number, age_ms) while the wave banner is showing, else None."""
        age = now - self.start_time
        if age < self.game.config.wave_pause_ms + BANNER_FADE_MS:
            return self.wave_number, age
        return None

    def __repr__(self) -> str:
        return (f"AttackWave(#{self.wave_number} {self.phrase!r} "
                f"match={self.phrase_match_ct}/{len(self.phrase_words)} left={self.ships_left})")
