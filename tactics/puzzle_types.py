"""
Puzzle Data Types and Schemas

Defines the data structures shared by the catalog, the solution engine
and the UI. Puzzles and solution steps are immutable; the solution
session is the only mutable record and belongs to one engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import time

from .errors import PuzzleDataError


class Theme(str, Enum):
    """Tactical motif a puzzle is classified under."""
    FORK = "fork"
    PIN = "pin"
    SKEWER = "skewer"
    MATE_IN_1 = "mateIn1"
    MATE_IN_2 = "mateIn2"
    MATE_IN_3 = "mateIn3"
    SACRIFICE = "sacrifice"
    DEFLECTION = "deflection"
    DECOY = "decoy"
    DISCOVERED_ATTACK = "discoveredAttack"
    ENDGAME = "endgame"
    MIDDLEGAME = "middlegame"
    OPENING = "opening"
    SHORT = "short"
    LONG = "long"
    CRUSHING = "crushing"
    QUIET = "quiet"
    BRILLIANT = "brilliant"
    ATTRACTION = "attraction"
    CLEARANCE = "clearance"
    INTERFERENCE = "interference"
    REMOVE_DEFENDER = "removeDefender"
    DOUBLE_CHECK = "doubleCheck"
    EXPOSED_KING = "exposedKing"
    BACK_RANK_MATE = "backRankMate"
    SMOTHERED_MATE = "smotheredMate"


class Difficulty(str, Enum):
    """Puzzle difficulty levels."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SessionPhase(str, Enum):
    """
    Lifecycle of a solution session.

    AWAITING_PLAYER_MOVE is the only non-terminal phase. There is no
    "awaiting opponent" phase: scripted replies are played inside the
    same submit call that accepted the player's move.
    """
    AWAITING_PLAYER_MOVE = "awaiting_player_move"
    SOLVED = "solved"
    REVEALED = "revealed"


@dataclass(frozen=True)
class SolutionStep:
    """
    One player move of a solution, plus the scripted reply that follows it.

    The reply is trusted puzzle data and is played without validation.
    """
    expected_move: str
    opponent_reply: Optional[str] = None
    explanation: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"move": self.expected_move}
        if self.opponent_reply:
            data["opponentResponse"] = self.opponent_reply
        if self.explanation:
            data["explanation"] = self.explanation
        return data


@dataclass(frozen=True)
class Puzzle:
    """
    A single tactical puzzle as served by the catalog.

    Construction enforces the solution shape: at least one step, and
    every step except the last carries an opponent reply.
    """
    id: str
    theme: Theme
    difficulty: Difficulty
    rating: int
    points: int
    starting_position: str  # FEN
    solution: Tuple[SolutionStep, ...]
    hints: Tuple[str, ...] = ()
    title: str = ""
    description: str = ""
    tags: Tuple[str, ...] = ()
    source: str = "Curated"
    url: str = ""
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.solution:
            raise PuzzleDataError("solution must contain at least one step", self.id)
        for index, step in enumerate(self.solution[:-1]):
            if not step.opponent_reply:
                raise PuzzleDataError(
                    f"step {index + 1} of {len(self.solution)} has no opponent reply",
                    self.id,
                )
        if not self.starting_position or not self.starting_position.strip():
            raise PuzzleDataError("starting position is empty", self.id)

    @property
    def side_to_move(self) -> str:
        """'white' or 'black', read from the FEN active-colour field."""
        fields = self.starting_position.split()
        if len(fields) > 1 and fields[1] == "b":
            return "black"
        return "white"

    @property
    def player_moves(self) -> Tuple[str, ...]:
        return tuple(step.expected_move for step in self.solution)

    @property
    def total_plies(self) -> int:
        return sum(2 if step.opponent_reply else 1 for step in self.solution)

    def to_dict(self) -> dict:
        """Convert to the record shape accepted by the catalog."""
        return {
            "id": self.id,
            "theme": self.theme.value,
            "difficulty": self.difficulty.value,
            "rating": self.rating,
            "points": self.points,
            "fen": self.starting_position,
            "solution": [step.to_dict() for step in self.solution],
            "hints": list(self.hints),
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "source": self.source,
            "lichessUrl": self.url,
            "createdAt": self.created_at,
        }


@dataclass
class SolutionSession:
    """
    Mutable progress through one puzzle.

    Owned by exactly one SolutionEngine and replaced whenever a new
    puzzle is loaded; nothing carries over between puzzles.
    """
    puzzle: Puzzle
    step_index: int = 0
    phase: SessionPhase = SessionPhase.AWAITING_PLAYER_MOVE
    attempts: int = 0
    hints_used: int = 0
    # SAN of every ply applied so far, player moves and replies alike
    history: List[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)
    revealed_steps: Optional[Tuple[SolutionStep, ...]] = None

    @property
    def current_step(self) -> Optional[SolutionStep]:
        if 0 <= self.step_index < len(self.puzzle.solution):
            return self.puzzle.solution[self.step_index]
        return None

    @property
    def remaining_steps(self) -> Tuple[SolutionStep, ...]:
        return tuple(self.puzzle.solution[self.step_index:])

    @property
    def is_terminal(self) -> bool:
        return self.phase != SessionPhase.AWAITING_PLAYER_MOVE

    @property
    def elapsed_seconds(self) -> float:
        return max(0.0, time.monotonic() - self.started_at)

    def get_stats(self) -> dict:
        return {
            "puzzle_id": self.puzzle.id,
            "phase": self.phase.value,
            "step_index": self.step_index,
            "total_steps": len(self.puzzle.solution),
            "attempts": self.attempts,
            "hints_used": self.hints_used,
            "elapsed_seconds": round(self.elapsed_seconds, 1),
        }
