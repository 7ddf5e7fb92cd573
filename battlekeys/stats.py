"""
Game statistics for Battle Keys.

Tracks points, the running combo, the best combo of every wave and how
often each engine sequence was destroyed, and builds the end-of-game
summary.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


SUMMARY_WORD_LIMIT = 20  # Most common words listed in the summary


@dataclass
class GameSummary:
    """
    Structured end-of-game summary.

    Attributes:
        status: "win" or "loss".
        points: Final score.
        most_common_words: (word, count) pairs, most destroyed first.
        best_combo_per_wave: Best combo string of each wave, in wave order.
    """
    status: str
    points: int
    most_common_words: List[Tuple[str, int]] = field(default_factory=list)
    best_combo_per_wave: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "points": self.points,
            "most_common_words": [[w, c] for w, c in self.most_common_words],
            "best_combo_per_wave": list(self.best_combo_per_wave),
        }

    def format_text(self) -> str:
        """Plain-text rendition of the summary screen."""
        lines = ["YOU WIN" if self.status == "win" else "GAME OVER",
                 f"Score: {self.points}",
                 "Most common torpedoes destroyed:"]
        for i, (word, count) in enumerate(self.most_common_words, start=1):
            lines.append(f"  #{i}. {count}x {word}")
        lines.append("Longest combo sequences:")
        for i, combo in enumerate(self.best_combo_per_wave, start=1):
            shown = f"({len(combo.split())}) {combo.strip()}" if combo else "(None)"
            lines.append(f"  Wave {i}: {shown}")
        return "\n".join(lines)


class GameStat:
    """
    Points and combo bookkeeping.

    The combo string is every destroyed word followed by one space.
    Clearing the combo banks its length (spaces included) into points.
    """

    def __init__(self) -> None:
        self.points = 0
        self.combo_str = ""
        self.can_start_word = False
        self.best_combo: List[str] = []
        self.seen_words: Counter[str] = Counter()

    def on_next_wave(self) -> None:
        self.best_combo.append("")

    def add_word(self, word: str) -> None:
        self.seen_words[word] += 1

    def add_combo(self, word: str, wave_number: int) -> None:
        """Record a destroyed word and extend the combo."""
        self.add_word(word)
        self.combo_str += word + " "
        self.update_best_combo(wave_number)

    def clear_combo(self) -> int:
        """
        Bank the combo into points and reset it.

        Returns:
            The number of points banked.
        """
        banked = len(self.combo_str)
        self.points += banked
        self.combo_str = ""
        return banked

    def update_best_combo(self, wave_number: int) -> None:
        if wave_number < 1:
            return
        while len(self.best_combo) < wave_number:
            self.best_combo.append("")
        if len(self.best_combo[wave_number - 1]) < len(self.combo_str):
            self.best_combo[wave_number - 1] = self.combo_str

    def most_common_words(self, limit: int = SUMMARY_WORD_LIMIT) -> List[Tuple[str, int]]:
        """Destroyed words by count, ties broken by word, both descending."""
        ranked = sorted(self.seen_words.items(), key=lambda item: (item[1], item[0]), reverse=True)
        return ranked[:limit]

    def summary(self, status: str) -> GameSummary:
        return GameSummary(
            status=status,
            points=self.points,
            most_common_words=self.most_common_words(),
            best_combo_per_wave=list(self.best_combo),
        )
