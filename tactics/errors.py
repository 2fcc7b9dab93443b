"""
Error taxonomy for the tactics trainer.

Only data-integrity and usage faults are exceptions. Gameplay results
(illegal move, wrong move) are returned as MoveOutcome values and never
raised, so a user's mistake is never confused with a corrupt puzzle.
"""

from __future__ import annotations

from typing import Optional


class TacticsError(Exception):
    """Base class for every fault raised by this package."""


class PuzzleDataError(TacticsError):
    """A puzzle record is malformed (solution, position or required fields)."""

    def __init__(self, message: str, puzzle_id: Optional[str] = None):
        self.puzzle_id = puzzle_id
        if puzzle_id:
            message = f"Puzzle {puzzle_id}: {message}"
        super().__init__(message)


class CatalogLoadError(TacticsError):
    """The puzzle source is unreachable or unparsable. Safe to retry."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)


class EmptyCatalogError(TacticsError):
    """The catalog has nothing to serve."""


class NoPuzzlesAvailable(EmptyCatalogError):
    """A filter matched no puzzles."""


class EngineBusyError(TacticsError, RuntimeError):
    """The solution engine was re-entered while evaluating a move."""


class NoPuzzleLoadedError(TacticsError, RuntimeError):
    """An engine operation needs a loaded puzzle."""
