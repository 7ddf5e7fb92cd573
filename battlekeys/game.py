#!/usr/bin/env python3
"""
Game Director for Battle Keys

Top-level director of a game:
- Owns the home ship, the statistics, the current attack wave and the
  registry of torpedo groups
- Runs the fixed-step tick (wave pacing, group advance, aiming, pulses)
- Drains typed input from a bounded queue at the top of each tick
- Moves between title, play, summary and error phases
- Keeps an event log with observer callbacks
- Publishes an immutable frame snapshot after every tick

Usage:
    game = Game(GameConfig(seed=1), clock=ManualClock())
    game.start_game(["go home"])
    game.post_key("g")
    game.run_for(1000)
    frame = game.latest_frame()

All gameplay state is mutated only inside tick(). Other threads post input
with post_key / post_quit / post_restart and read latest_frame().
"""

from __future__ import annotations

import math
import queue
import random
import threading
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional, Union

from .clock import ManualClock, SystemClock
from .config import GameConfig
from .events import (
    GameEvent,
    GameEventType,
    InputEvent,
    InputKind,
    InvariantViolation,
)
from .homeship import HomeShip
from .snapshot import FrameSnapshot, HomePose, GroupView, PulseView, group_view, home_pose, pulse_view
from .stats import GameStat, GameSummary
from .torpedo import GroupRegistry, TorpedoGroup
from .vecmath import Vector2D
from .view import BattleView
from .wave import AttackWave


SPEED_EPSILON = 1e-9  # Float slack on the ship speed cap check


class GamePhase(Enum):
    TITLE = auto()
    PLAYING = auto()
    SUMMARY = auto()
    ERROR = auto()


def load_phrases(path: Union[str, Path]) -> list[str]:
    """
    Read one phrase per line from a UTF-8 text file.

    Blank lines are skipped and surrounding whitespace stripped. A missing
    file yields no phrases.
    """
    phrase_path = Path(path)
    if not phrase_path.is_file():
        return []
    with open(phrase_path, encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


class Game:
    """
    Game director and fixed-step ticker.

    Attributes:
        config: Game configuration.
        clock: Time source for every time read in the game.
        rng: The single random generator (shuffles, launch coin flips,
            batch angles).
        phase: Current GamePhase.
        view: Battle view centred on the home ship.
        home: The home ship (None before the first start_game).
        stat: Points and combo statistics.
        wave: Current attack wave.
        groups: Registry of live torpedo groups.
        wave_ct: Number of waves started.
        win_time: When the last wave completed (ms).
        events: Full event log.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        clock: Optional[Union[SystemClock, ManualClock]] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.config = config if config is not None else GameConfig()
        self.config.validate()
        self.clock = clock if clock is not None else SystemClock()
        self.rng = random.Random(seed if seed is not None else self.config.seed)

        self.phase = GamePhase.TITLE
        self.view = BattleView(self.config.view_size)
        self.home: Optional[HomeShip] = None
        self.stat = GameStat()
        self.wave: Optional[AttackWave] = None
        self.groups = GroupRegistry()
        self.wave_ct = 0
        self.win_time: Optional[int] = None
        self.summary: Optional[GameSummary] = None
        self.error: Optional[str] = None
        self._phrases: list[str] = []

        # Event log
        self.events: list[GameEvent] = []
        self._event_callbacks: list[Callable[[GameEvent], None]] = []

        # Input and ticker
        self._inputs: queue.Queue[InputEvent] = queue.Queue(maxsize=self.config.input_queue_size)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_tick_ms: Optional[int] = None

        # Latest published frame
        self._frame_lock = threading.Lock()
        self._frame: Optional[FrameSnapshot] = None

    # -------------------------------------------------------------------------
    # Game lifecycle
    # -------------------------------------------------------------------------

    def start_game(self, phrases: Optional[list[str]] = None) -> None:
        """
        Reset all game state and start the first wave.

        Args:
            phrases: Wave phrases in order. Read from config.phrase_file
                when omitted. With no phrases the game goes straight to the
                summary.
        """
        if phrases is None:
            phrases = load_phrases(self.config.phrase_file)
        self._phrases = [p for p in phrases if p.split()]

        self.wave_ct = 0
        self.win_time = None
        self.summary = None
        self.error = None
        self.stat = GameStat()
        self.groups = GroupRegistry()
        self.home = HomeShip(Vector2D.zero(), self, health=self.config.home_health)
        self.view = BattleView(self.config.view_size, self.home.position)
        self.wave = None
        self.phase = GamePhase.PLAYING
        self._last_tick_ms = self.clock.now_ms()

        self.log_event(GameEventType.GAME_STARTED, {"waves": len(self._phrases)})
        if not self._phrases:
            self._finish("win")
        else:
            self._next_wave()
        self._publish_frame()

    def _next_wave(self) -> None:
        phrase = self._phrases[self.wave_ct]
        self.wave_ct += 1
        self.wave = AttackWave(self, phrase, self.wave_ct)
        self.log_event(GameEventType.WAVE_STARTED, {"words": len(self.wave.phrase_words)})

    def has_next_phrase(self) -> bool:
        return self.wave_ct < len(self._phrases)

    def _finish(self, status: str) -> None:
        self.summary = self.stat.summary(status)
        self.phase = GamePhase.SUMMARY
        event_type = GameEventType.GAME_WON if status == "win" else GameEventType.GAME_LOST
        self.log_event(event_type, {"points": self.stat.points})

    # -------------------------------------------------------------------------
    # Scoring hooks
    # -------------------------------------------------------------------------

    def record_destroyed(self, group: TorpedoGroup) -> None:
        """A pulse destroyed group: extend the combo and phrase progress."""
        self.stat.add_combo(group.seq, self.wave_ct)
        if self.wave is not None:
            self.wave.submit_word(group.seq)
        self.log_event(GameEventType.GROUP_DESTROYED, {
            "seq": group.seq,
            "combo": self.stat.combo_str,
        })

    def clear_combo(self) -> None:
        """Break the combo: reset phrase progress and bank the combo."""
        if self.wave is not None:
            self.wave.submit_word("")
        combo = self.stat.combo_str
        banked = self.stat.clear_combo()
        if banked:
            self.log_event(GameEventType.COMBO_CLEARED, {"combo": combo, "points": banked})

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self) -> None:
        """
        Run one fixed step.

        Input is applied first, then wave pacing, group advance, focus
        selection, home ship aim and pulses. Ends by publishing a frame.

        Any error raised while ticking halts the game in the ERROR phase;
        nothing propagates out of tick().
        """
        now = self.clock.now_ms()
        delta = 0 if self._last_tick_ms is None else max(0, now - self._last_tick_ms)
        self._last_tick_ms = now

        try:
            self._drain_inputs()
            if self.phase is GamePhase.PLAYING:
                self._advance(now, delta)
                if self.phase is GamePhase.PLAYING:
                    self._check_invariants()
        except InvariantViolation as e:
            self._halt(e)
        except Exception as e:
            self._halt(InvariantViolation(f"{type(e).__name__}: {e}"))
        self._publish_frame()

    def _advance(self, now: int, delta: int) -> None:
        if self.wave.update(self.view):
            if self.has_next_phrase():
                self.log_event(GameEventType.WAVE_COMPLETE)
                self._next_wave()
            elif self.win_time is None:
                self.win_time = now
                self.log_event(GameEventType.WAVE_COMPLETE)
            elif now - self.win_time > self.config.win_wait_ms:
                self._finish("win")
                return

        TorpedoGroup.move_all(self.groups, self.view, delta)
        focused = TorpedoGroup.get_focused(self.groups, self.home.position)
        self.home.move_fwd(self.view, focused, delta)

        if self.home.ship_status() == 0:
            self._finish("loss")

    def _check_invariants(self) -> None:
        if self.wave.ships_left < 0:
            raise InvariantViolation(f"negative ships_left ({self.wave.ships_left})")
        for group in self.groups:
            if not 0 <= group.match_ct <= len(group.seq):
                raise InvariantViolation(
                    f"match_ct {group.match_ct} out of range for {group.seq!r}", group)
            ship = group.parent_ship
            if ship is not None:
                if not (ship.position.is_finite() and ship.velocity.is_finite()):
                    raise InvariantViolation(f"non-finite ship state for {group.seq!r}", group)
                if ship.velocity.magnitude > ship.max_speed + SPEED_EPSILON:
                    raise InvariantViolation(
                        f"ship speed {ship.velocity.magnitude:.3f} above cap {ship.max_speed}", group)
            for torp in group.torps:
                if not (torp.position.is_finite() and torp.velocity.is_finite()):
                    raise InvariantViolation(f"non-finite torpedo state in {group.seq!r}", group)
        for pulse in self.home.pulses:
            if not math.isfinite(pulse.rad):
                raise InvariantViolation("non-finite pulse radius")

    def _halt(self, error: InvariantViolation) -> None:
        if error.group is not None:
            self.groups.discard(error.group)
        self.error = str(error)
        self.phase = GamePhase.ERROR
        self.log_event(GameEventType.TICK_HALTED, {"error": self.error})

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def _post(self, event: InputEvent) -> bool:
        try:
            self._inputs.put_nowait(event)
        except queue.Full:
            return False
        return True

    def post_key(self, char: str) -> bool:
        """Queue a keystroke for the next tick. False if the queue is full."""
        return self._post(InputEvent.key(char))

    def post_quit(self) -> bool:
        return self._post(InputEvent.quit())

    def post_restart(self) -> bool:
        return self._post(InputEvent.restart())

    def _drain_inputs(self) -> None:
        while True:
            try:
                event = self._inputs.get_nowait()
            except queue.Empty:
                return
            if event.kind is InputKind.KEY:
                if self.phase is GamePhase.PLAYING and self.home is not None:
                    self.home.pulse(event.char)
            elif event.kind is InputKind.QUIT:
                self._to_title()
            elif event.kind is InputKind.RESTART:
                self.log_event(GameEventType.GAME_RESTARTED)
                self.start_game(list(self._phrases))

    def _to_title(self) -> None:
        self.phase = GamePhase.TITLE
        self.log_event(GameEventType.GAME_QUIT)

    # -------------------------------------------------------------------------
    # Ticker
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the ticker thread at config.tick_hz. It ticks in every phase until stop()."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Ticker already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="battlekeys-tick", daemon=True)
        self._thread.start()

    def _run_loop(self) -> None:
        # Keeps ticking outside PLAYING so quit/restart posted from the
        # summary or error screen are still drained.
        interval = self.config.tick_interval_s
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(interval)

    def stop(self) -> None:
        """Signal the ticker to exit and wait for it."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def quit(self) -> None:
        """Stop ticking and return to the title."""
        self.stop()
        self._to_title()
        self._publish_frame()

    def restart(self) -> None:
        """Tear down the ticker, rebuild the game with the same phrases, tick again."""
        self.stop()
        self.log_event(GameEventType.GAME_RESTARTED)
        self.start_game(list(self._phrases))
        self.start()

    def run_for(self, duration_ms: int, step_ms: int = 16) -> GamePhase:
        """
        Drive a ManualClock for duration_ms in steps of step_ms.

        Stops early once the game leaves the PLAYING phase.

        Returns:
            The phase after the last tick.
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("run_for needs a ManualClock")
        if step_ms <= 0:
            raise ValueError("step_ms must be positive")
        elapsed = 0
        while elapsed < duration_ms and self.phase is GamePhase.PLAYING:
            step = min(step_ms, duration_ms - elapsed)
            self.clock.advance(step)
            elapsed += step
            self.tick()
        return self.phase

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def add_event_callback(self, callback: Callable[[GameEvent], None]) -> None:
        """
        Register a callback to be called for each game event.

        Args:
            callback: Function that takes a GameEvent.
        """
        self._event_callbacks.append(callback)

    def remove_event_callback(self, callback: Callable[[GameEvent], None]) -> None:
        """Remove an event callback."""
        if callback in self._event_callbacks:
            self._event_callbacks.remove(callback)

    def log_event(self, event_type: GameEventType, data: Optional[dict] = None) -> GameEvent:
        """Log a game event and notify callbacks."""
        event = GameEvent(
            event_type=event_type,
            timestamp_ms=self.clock.now_ms(),
            wave=self.wave_ct,
            data=data or {},
        )
        self.events.append(event)

        for callback in self._event_callbacks:
            try:
                callback(event)
            except Exception as e:
                print(f"[GAME] Event callback error: {e}")

        return event

    # -------------------------------------------------------------------------
    # Renderer queries
    # -------------------------------------------------------------------------

    def get_home_pose(self) -> Optional[HomePose]:
        if self.home is None:
            return None
        return home_pose(self.home, self.clock.now_ms())

    def get_pulses(self) -> list[PulseView]:
        if self.home is None:
            return []
        now = self.clock.now_ms()
        return [pulse_view(p, now) for p in self.home.pulses]

    def get_groups(self) -> list[GroupView]:
        return [group_view(g) for g in self.groups]

    def get_wave_banner(self) -> Optional[tuple[int, int]]:
        if self.wave is None or self.phase is not GamePhase.PLAYING:
            return None
        return self.wave.banner(self.clock.now_ms())

    def get_combo(self) -> str:
        return self.stat.combo_str

    def get_points(self) -> int:
        return self.stat.points

    def get_summary(self) -> Optional[GameSummary]:
        return self.summary

    def get_error(self) -> Optional[str]:
        return self.error

    def snapshot(self) -> FrameSnapshot:
        """Immutable copy of everything drawn in a frame."""
        return FrameSnapshot(
            time_ms=self.clock.now_ms(),
            phase=self.phase.name,
            home=self.get_home_pose(),
            pulses=tuple(self.get_pulses()),
            groups=tuple(self.get_groups()),
            active_pulse_str=self.home.active_pulse_str if self.home is not None else "",
            wave_banner=self.get_wave_banner(),
            combo=self.get_combo(),
            points=self.get_points(),
            summary=self.summary,
            error=self.error,
        )

    def _publish_frame(self) -> None:
        frame = self.snapshot()
        with self._frame_lock:
            self._frame = frame

    def latest_frame(self) -> Optional[FrameSnapshot]:
        """Frame published by the most recent tick, safe to read from any thread."""
        with self._frame_lock:
            return self._frame
