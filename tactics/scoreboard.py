"""
Session Scoreboard

Pure accumulator for one sitting: the UI reports every solved outcome
and every forfeited puzzle, the scoreboard keeps the totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .puzzle_types import Puzzle
from .solution_engine import MoveOutcome


@dataclass
class ThemeProgress:
    solved: int = 0
    total: int = 0

    @property
    def percentage(self) -> float:
        return (self.solved / self.total * 100) if self.total else 0.0


@dataclass
class SessionScoreboard:
    """Score and streaks across the puzzles attempted in one sitting."""
    total_score: int = 0
    solved_count: int = 0
    attempted_count: int = 0
    current_streak: int = 0
    best_streak: int = 0
    solved_ids: List[str] = field(default_factory=list)
    theme_progress: Dict[str, ThemeProgress] = field(default_factory=dict)

    def _theme(self, theme: str) -> ThemeProgress:
        if theme not in self.theme_progress:
            self.theme_progress[theme] = ThemeProgress()
        return self.theme_progress[theme]

    def record(self, outcome: MoveOutcome) -> None:
        """Add a solved outcome. Raises ValueError for any other outcome."""
        if not outcome.is_solved or outcome.score is None:
            raise ValueError(f"Only solved outcomes can be recorded, got {outcome.kind.value}")

        self.total_score += outcome.score
        self.solved_count += 1
        self.attempted_count += 1
        self.current_streak += 1
        self.best_streak = max(self.best_streak, self.current_streak)
        if outcome.puzzle_id not in self.solved_ids:
            self.solved_ids.append(outcome.puzzle_id)

        progress = self._theme(outcome.theme.value)
        progress.solved += 1
        progress.total += 1

    def record_forfeit(self, puzzle: Puzzle) -> None:
        """A revealed or abandoned puzzle: no score, streak broken."""
        self.attempted_count += 1
        self.current_streak = 0
        self._theme(puzzle.theme.value).total += 1

    def is_solved(self, puzzle_id: str) -> bool:
        return puzzle_id in self.solved_ids

    @property
    def success_rate(self) -> float:
        if self.attempted_count == 0:
            return 0.0
        return self.solved_count / self.attempted_count * 100

    def reset(self) -> None:
        self.total_score = 0
        self.solved_count = 0
        self.attempted_count = 0
        self.current_streak = 0
        self.best_streak = 0
        self.solved_ids = []
        self.theme_progress = {}

    def get_stats(self) -> dict:
        return {
            "total_score": self.total_score,
            "puzzles_solved": self.solved_count,
            "puzzles_attempted": self.attempted_count,
            "success_rate": round(self.success_rate, 1),
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
        }

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "solved_count": self.solved_count,
            "attempted_count": self.attempted_count,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "solved_ids": list(self.solved_ids),
            "theme_progress": {
                theme: {"solved": p.solved, "total": p.total}
                for theme, p in self.theme_progress.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionScoreboard":
        return cls(
            total_score=int(data.get("total_score", 0)),
            solved_count=int(data.get("solved_count", 0)),
            attempted_count=int(data.get("attempted_count", 0)),
            current_streak=int(data.get("current_streak", 0)),
            best_streak=int(data.get("best_streak", 0)),
            solved_ids=list(data.get("solved_ids", [])),
            theme_progress={
                theme: ThemeProgress(solved=int(p.get("solved", 0)), total=int(p.get("total", 0)))
                for theme, p in (data.get("theme_progress") or {}).items()
            },
        )
