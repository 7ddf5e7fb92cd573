#!/usr/bin/env python3
"""
Run a Battle Keys game without a window.

The game runs on a virtual clock, so a full game finishes in seconds. Keys
come from a fixed script or from a simple autopilot typist.

Usage:
    python scripts/run_headless.py --phrase "go home" --keys gohome --seed 3
    python scripts/run_headless.py --autopilot --json --events-out events.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from battlekeys import Game, GameConfig, GamePhase, ManualClock, TorpedoGroup, load_phrases


class Autopilot:
    """Types the sequence of the focused group, one key per interval."""

    def __init__(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms
        self._next_ms = 0
        self._target: Optional[TorpedoGroup] = None
        self._pos = 0
        self._done: set[int] = set()

    def _pick(self, game: Game) -> Optional[TorpedoGroup]:
        home = game.home.position
        candidates = [
            g for g in game.groups
            if g.seq and g.locked is None and g.group_id not in self._done
            and g.first_pos() is not None and game.view.in_view(g.first_pos())
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda g: (len(g.seq), g.first_pos().distance_to(home)))

    def next_key(self, game: Game, now: int) -> Optional[str]:
        if now < self._next_ms:
            return None
        target = self._target
        if target is None or target.locked is not None or not game.groups.is_live(target):
            target = self._target = self._pick(game)
            self._pos = 0
            if target is None:
                return None

        ch = target.seq[self._pos]
        self._pos += 1
        if self._pos >= len(target.seq):
            self._done.add(target.group_id)
            self._target = None
        self._next_ms = now + self.interval_ms
        return ch


def run(game: Game, keys: str, autopilot: Optional[Autopilot], start_ms: int,
        interval_ms: int, step_ms: int, max_ms: int) -> GamePhase:
    clock = game.clock
    pending = list(keys)
    next_key_ms = start_ms
    elapsed = 0

    while game.phase is GamePhase.PLAYING and elapsed < max_ms:
        now = clock.now_ms()
        if pending and now >= next_key_ms:
            game.post_key(pending.pop(0))
            next_key_ms = now + interval_ms
        elif autopilot is not None and now >= start_ms:
            ch = autopilot.next_key(game, now)
            if ch is not None:
                game.post_key(ch)
        clock.advance(step_ms)
        elapsed += step_ms
        game.tick()
    return game.phase


def main():
    parser = argparse.ArgumentParser(
        description="Run a headless Battle Keys game on a virtual clock",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/run_headless.py --phrase "go home" --keys gohome
    python scripts/run_headless.py --autopilot --seed 7 --json
    python scripts/run_headless.py --config game.json --autopilot --events-out events.json
        """,
    )

    # Game settings
    parser.add_argument(
        "--config",
        help="GameConfig JSON file (default: environment / .env)",
    )
    parser.add_argument(
        "--phrase-file",
        help="Phrase file, one wave per line (overrides config)",
    )
    parser.add_argument(
        "--phrase",
        action="append",
        help="Wave phrase (repeatable, overrides the phrase file)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: from config)",
    )

    # Typing
    parser.add_argument(
        "--keys",
        default="",
        help="Fixed key script typed from --start-ms",
    )
    parser.add_argument(
        "--autopilot",
        action="store_true",
        help="Type the focused group's sequence automatically",
    )
    parser.add_argument(
        "--start-ms",
        type=int,
        default=3500,
        help="Time of the first key (default: 3500)",
    )
    parser.add_argument(
        "--type-interval-ms",
        type=int,
        default=150,
        help="Time between keys (default: 150)",
    )

    # Run length
    parser.add_argument(
        "--step-ms",
        type=int,
        default=16,
        help="Virtual tick length (default: 16)",
    )
    parser.add_argument(
        "--max-seconds",
        type=float,
        default=600.0,
        help="Stop after this much game time (default: 600)",
    )

    # Output
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON",
    )
    parser.add_argument(
        "--events-out",
        help="Write the event log to this JSON file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print every game event as it happens",
    )

    args = parser.parse_args()

    try:
        config = GameConfig.from_json(args.config) if args.config else GameConfig.from_env()
        if args.phrase_file:
            config.phrase_file = args.phrase_file
        if args.seed is not None:
            config.seed = args.seed

        phrases = args.phrase if args.phrase else load_phrases(config.phrase_file)

        game = Game(config, clock=ManualClock())
        if args.verbose:
            game.add_event_callback(lambda event: print(f"  {event}"))

        game.start_game(phrases)
        autopilot = Autopilot(args.type_interval_ms) if args.autopilot else None
        phase = run(
            game,
            keys=args.keys,
            autopilot=autopilot,
            start_ms=args.start_ms,
            interval_ms=args.type_interval_ms,
            step_ms=args.step_ms,
            max_ms=int(args.max_seconds * 1000),
        )

        if args.events_out:
            with open(args.events_out, "w", encoding="utf-8") as f:
                json.dump([e.to_dict() for e in game.events], f, indent=2)

        if phase is GamePhase.ERROR:
            print(f"Tick halted: {game.get_error()}", file=sys.stderr)
            return 2

        summary = game.get_summary()
        if summary is None:
            if args.json:
                print(json.dumps({"status": "timeout", "points": game.get_points()}, indent=2))
            else:
                print(f"Time limit reached. Points: {game.get_points()}")
            return 0

        if args.json:
            print(json.dumps(summary.to_dict(), indent=2))
        else:
            print(summary.format_text())
        return 0

    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
