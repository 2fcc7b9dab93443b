"""
Chess Tactics Trainer

Curated tactics puzzles solved move by move against a scripted line.
Move legality comes from python-chess; the solution engine is a small
synchronous state machine and the catalog is the only async component.
"""

from .puzzle_types import Difficulty, Puzzle, SessionPhase, SolutionSession, SolutionStep, Theme
from .errors import (
    CatalogLoadError,
    EmptyCatalogError,
    EngineBusyError,
    NoPuzzleLoadedError,
    NoPuzzlesAvailable,
    PuzzleDataError,
    TacticsError,
)
from .difficulty import classify_difficulty
from .orientation import Orientation, resolve
from .hints import HintProvider, NO_MORE_HINTS
from .rules import RulesEngine
from .solution_engine import (
    MoveOutcome,
    OpponentReplied,
    OutcomeKind,
    SolutionEngine,
    flat_score,
    get_score_policy,
    graded_score,
)
from .scoreboard import SessionScoreboard
from .puzzle_store import parse_database, record_to_puzzle, verify_solution_line
from .catalog import PuzzleCatalog, PuzzleFilter

__all__ = [
    # Types
    "Difficulty",
    "Puzzle",
    "SessionPhase",
    "SolutionSession",
    "SolutionStep",
    "Theme",
    # Errors
    "CatalogLoadError",
    "EmptyCatalogError",
    "EngineBusyError",
    "NoPuzzleLoadedError",
    "NoPuzzlesAvailable",
    "PuzzleDataError",
    "TacticsError",
    # Components
    "classify_difficulty",
    "Orientation",
    "resolve",
    "HintProvider",
    "NO_MORE_HINTS",
    "RulesEngine",
    "MoveOutcome",
    "OpponentReplied",
    "OutcomeKind",
    "SolutionEngine",
    "flat_score",
    "graded_score",
    "get_score_policy",
    "SessionScoreboard",
    "parse_database",
    "record_to_puzzle",
    "verify_solution_line",
    "PuzzleCatalog",
    "PuzzleFilter",
]
