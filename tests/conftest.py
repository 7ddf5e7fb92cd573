"""
Shared fixtures for the Battle Keys tests.

Every game here runs on a ManualClock with a fixed seed, so time only
moves when a test advances it.
"""

import pytest

from battlekeys.clock import ManualClock
from battlekeys.config import GameConfig
from battlekeys.enemy import EnemyShip
from battlekeys.flightpath import FlightPath, PathAction
from battlekeys.game import Game


PARKED_DELAY_MS = 10 ** 9  # Start delay that keeps a ship parked for the whole test


@pytest.fixture
def clock():
    """Virtual clock starting at 0 ms."""
    return ManualClock()


@pytest.fixture
def config():
    """Default configuration with a fixed seed."""
    return GameConfig(seed=1234)


@pytest.fixture
def make_game(clock, config):
    """
    Factory for started games.

    New ships are disabled by default so tests control every group on the
    field; pass can_add=True to let the wave deploy ships.
    """
    def _make(phrases=("go home",), can_add=False):
        game = Game(config, clock=clock)
        game.start_game(list(phrases))
        if game.wave is not None:
            game.wave.can_add = can_add
        return game
    return _make


@pytest.fixture
def game(make_game):
    """Started game for the phrase "go home" with deployment disabled."""
    return make_game()


@pytest.fixture
def spawn():
    """
    Factory for enemy ships at a fixed point.

    The ship sits at (x, y) on a small triangular loop. By default its start
    is delayed far into the future, so the ship stays parked and its
    torpedoes stay bunched on it.
    """
    def _spawn(game, seq, x=0.5, y=0.0, delay_ms=PARKED_DELAY_MS):
        path = FlightPath(
            [(x, y, PathAction.FILL), (x + 0.1, y, PathAction.NONE), (x, y + 0.1, PathAction.NONE)],
            rng=game.rng,
        )
        return EnemyShip(seq, game, path, start_delay_ms=delay_ms)
    return _spawn


def tick_until(game, condition, max_ms=15000, step_ms=16):
    """Advance the clock and tick until condition() holds. Returns elapsed ms."""
    elapsed = 0
    while not condition():
        if elapsed >= max_ms:
            raise AssertionError(f"condition not met within {max_ms} ms")
        game.clock.advance(step_ms)
        game.tick()
        elapsed += step_ms
    return elapsed


def type_keys(game, keys, step_ms=16):
    """Post one key per tick."""
    for ch in keys:
        game.post_key(ch)
        game.clock.advance(step_ms)
        game.tick()
