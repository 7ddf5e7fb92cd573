"""
Game configuration for Battle Keys.

Holds the game-level tunables (pacing, health, tick rate, phrase file).
Per-entity kinematic constants live next to the entity that uses them.

Configuration can come from defaults, a JSON file, or environment
variables (optionally loaded from a .env file).
"""

import json
import os
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


DEFAULT_PHRASE_FILE = str(Path(__file__).parent / "data" / "master_phrases.txt")
ENV_PREFIX = "BATTLEKEYS_"


@dataclass
class GameConfig:
    """Game-level configuration."""
    phrase_file: str = DEFAULT_PHRASE_FILE
    seed: Optional[int] = None  # None = nondeterministic
    tick_hz: int = 60
    ships_per_wave: int = 20
    wave_pause_ms: int = 3000  # Grace period before a wave starts adding ships
    add_interval_ms: int = 5000  # One ship every add_interval_ms
    win_wait_ms: int = 10000  # Delay between winning and the summary
    home_health: int = 5
    view_size: float = 2.0  # Side of the square view, in bsu
    input_queue_size: int = 256

    @property
    def tick_interval_s(self) -> float:
        return 1.0 / self.tick_hz

    def validate(self) -> None:
        """Raise ValueError if any field is out of range."""
        if self.tick_hz <= 0:
            raise ValueError(f"tick_hz must be positive, got {self.tick_hz}")
        if self.ships_per_wave <= 0:
            raise ValueError(f"ships_per_wave must be positive, got {self.ships_per_wave}")
        if self.home_health <= 0:
            raise ValueError(f"home_health must be positive, got {self.home_health}")
        if self.view_size <= 0:
            raise ValueError(f"view_size must be positive, got {self.view_size}")
        if self.input_queue_size <= 0:
            raise ValueError(f"input_queue_size must be positive, got {self.input_queue_size}")
        for name in ("wave_pause_ms", "add_interval_ms", "win_wait_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameConfig':
        """Create configuration from a dictionary. Unknown keys are ignored."""
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            kwargs[f.name] = _coerce(f.name, data[f.name])
        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def from_json(cls, path: str) -> 'GameConfig':
        """Load configuration from JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Game config not found: {path}")

        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, dotenv_path: Optional[str] = None) -> 'GameConfig':
        """
        Create configuration from environment variables.

        A .env file is loaded first (existing variables win). Each field maps
        to PREFIX + FIELD_NAME in upper case, e.g. BATTLEKEYS_TICK_HZ.
        """
        load_dotenv(dotenv_path)
        data: Dict[str, Any] = {}
        for f in fields(cls):
            value = os.getenv(prefix + f.name.upper())
            if value is not None and value != "":
                data[f.name] = value
        return cls.from_dict(data)


_INT_FIELDS = {
    "tick_hz", "ships_per_wave", "wave_pause_ms", "add_interval_ms",
    "win_wait_ms", "home_health", "input_queue_size",
}


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name == "seed":
        return int(value)
    if name in _INT_FIELDS:
        return int(value)
    if name == "view_size":
        return float(value)
    return str(value)
