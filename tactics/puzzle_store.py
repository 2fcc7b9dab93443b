"""
Puzzle record schema and normalization.

Raw records from a puzzle database are validated with pydantic and
turned into immutable Puzzle objects exactly once, at load time. Both
solution shapes found in real data (bare move strings and move objects
with an embedded opponent reply) end up as SolutionStep tuples, so the
engine never branches on shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

import chess
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from .difficulty import DEFAULT_RATING, classify_difficulty, default_points
from .errors import CatalogLoadError, PuzzleDataError
from .puzzle_types import Difficulty, Puzzle, SolutionStep, Theme
from .rules import RulesEngine

_LOGGER = logging.getLogger(__name__)


# =============================================================================
# RECORD SCHEMA
# =============================================================================


class SolutionMoveRecord(BaseModel):
    move: str
    opponent_reply: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("opponentResponse", "opponentReply", "opponent_reply"),
    )
    explanation: Optional[str] = None

    model_config = {"extra": "ignore"}


class PuzzleRecord(BaseModel):
    id: Union[str, int]
    theme: str
    fen: str = Field(validation_alias=AliasChoices("fen", "startingPosition", "starting_position"))
    solution: List[Union[str, SolutionMoveRecord]]
    difficulty: Optional[str] = None
    rating: Optional[int] = None
    points: Optional[int] = None
    hint: Optional[str] = None
    hints: List[str] = []
    title: str = ""
    description: str = ""
    tags: List[str] = []
    source: str = "Curated"
    url: str = Field(default="", validation_alias=AliasChoices("lichessUrl", "url"))
    created_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))

    model_config = {"extra": "ignore"}


# =============================================================================
# NORMALIZATION
# =============================================================================


def split_ply_line(moves: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Split a flat ply line into player moves and opponent responses.

    [p1, o1, p2, o2, p3] -> ([p1, p2, p3], [o1, o2]); player_moves[i] is
    followed by opponent_responses[i] when it exists.
    """
    return list(moves[::2]), list(moves[1::2])


def normalize_solution(
    entries: Sequence[Union[str, SolutionMoveRecord]],
    puzzle_id: Optional[str] = None,
) -> Tuple[SolutionStep, ...]:
    """
    Turn a raw solution list into SolutionSteps.

    A list made only of bare strings and longer than one entry is a
    legacy ply line and gets paired. Elsewhere a bare string is a step
    with no reply.
    """
    if not entries:
        raise PuzzleDataError("solution is empty", puzzle_id)

    def _clean(move: Optional[str], what: str) -> Optional[str]:
        if move is None:
            return None
        move = move.strip()
        if not move:
            raise PuzzleDataError(f"solution contains an empty {what}", puzzle_id)
        return move

    if len(entries) > 1 and all(isinstance(e, str) for e in entries):
        player_moves, replies = split_ply_line(entries)
        return tuple(
            SolutionStep(
                expected_move=_clean(move, "move"),
                opponent_reply=_clean(replies[i], "reply") if i < len(replies) else None,
            )
            for i, move in enumerate(player_moves)
        )

    steps = []
    for entry in entries:
        if isinstance(entry, str):
            steps.append(SolutionStep(expected_move=_clean(entry, "move")))
        else:
            steps.append(
                SolutionStep(
                    expected_move=_clean(entry.move, "move"),
                    opponent_reply=_clean(entry.opponent_reply, "reply") if entry.opponent_reply else None,
                    explanation=entry.explanation or None,
                )
            )
    return tuple(steps)


def _describe_validation_error(exc: ValidationError) -> str:
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
    return "missing or invalid fields: " + ", ".join(fields)


def record_to_puzzle(raw: Any) -> Puzzle:
    """
    Validate one raw record and build the Puzzle.

    Raises PuzzleDataError for missing fields, an unknown theme or
    difficulty, an unusable starting position or a malformed solution.
    """
    raw_id = raw.get("id") if isinstance(raw, dict) else None
    puzzle_id = str(raw_id) if raw_id is not None else None

    if not isinstance(raw, dict):
        raise PuzzleDataError(f"record is {type(raw).__name__}, expected an object")

    try:
        record = PuzzleRecord.model_validate(raw)
    except ValidationError as exc:
        raise PuzzleDataError(_describe_validation_error(exc), puzzle_id) from exc

    puzzle_id = str(record.id)

    try:
        theme = Theme(record.theme)
    except ValueError:
        raise PuzzleDataError(f"unknown theme {record.theme!r}", puzzle_id) from None

    rating = record.rating if record.rating is not None else DEFAULT_RATING
    if record.difficulty:
        try:
            difficulty = Difficulty(record.difficulty.strip().lower())
        except ValueError:
            raise PuzzleDataError(f"unknown difficulty {record.difficulty!r}", puzzle_id) from None
    else:
        difficulty = classify_difficulty(rating)

    points = record.points if record.points is not None else default_points(difficulty)
    if points < 0:
        raise PuzzleDataError(f"points must not be negative, got {points}", puzzle_id)

    fen = record.fen.strip()
    try:
        board = chess.Board(fen)
    except ValueError as exc:
        raise PuzzleDataError(f"invalid starting position: {exc}", puzzle_id) from exc
    if not board.is_valid():
        raise PuzzleDataError(f"impossible starting position: {fen}", puzzle_id)

    hints = list(record.hints)
    if record.hint and record.hint not in hints:
        hints.insert(0, record.hint)

    return Puzzle(
        id=puzzle_id,
        theme=theme,
        difficulty=difficulty,
        rating=rating,
        points=points,
        starting_position=fen,
        solution=normalize_solution(record.solution, puzzle_id),
        hints=tuple(h.strip() for h in hints if h and h.strip()),
        title=record.title,
        description=record.description,
        tags=tuple(record.tags),
        source=record.source,
        url=record.url,
        created_at=record.created_at,
    )


# =============================================================================
# VERIFICATION
# =============================================================================


def _undecorated(san: str) -> str:
    return san.rstrip("+#")


def verify_solution_line(puzzle: Puzzle) -> None:
    """
    Replay the whole solution on a scratch board.

    Raises PuzzleDataError on the first move or reply that is not legal
    in sequence, or on an expected move not written in SAN. A stored
    move whose only difference from the played SAN is the +/# suffix is
    logged, not rejected: exact matching will refuse it at play time.
    """
    try:
        rules = RulesEngine(puzzle.starting_position)
    except ValueError as exc:
        raise PuzzleDataError(f"invalid starting position: {exc}", puzzle.id) from exc

    for number, step in enumerate(puzzle.solution, 1):
        if step.expected_move.rstrip("+#") != step.expected_move.rstrip("+#!?"):
            raise PuzzleDataError(
                f"step {number} move {step.expected_move!r} carries an annotation",
                puzzle.id,
            )
        played = rules.san(step.expected_move)
        if played is None:
            raise PuzzleDataError(
                f"step {number} move {step.expected_move!r} is not legal",
                puzzle.id,
            )
        if _undecorated(played) != _undecorated(step.expected_move):
            raise PuzzleDataError(
                f"step {number} move {step.expected_move!r} is not in SAN (played as {played!r})",
                puzzle.id,
            )
        if played != step.expected_move:
            _LOGGER.warning(
                "Puzzle %s step %d stores %r but the move plays as %r",
                puzzle.id,
                number,
                step.expected_move,
                played,
            )
        rules.apply_move(step.expected_move)

        if step.opponent_reply:
            try:
                rules.apply_move(step.opponent_reply)
            except ValueError as exc:
                raise PuzzleDataError(
                    f"step {number} reply {step.opponent_reply!r} is not legal",
                    puzzle.id,
                ) from exc


# =============================================================================
# DATABASE HELPERS
# =============================================================================


def extract_records(payload: Any, source: Optional[str] = None) -> List[Any]:
    """Find the record list in a database payload."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("puzzles", "problems"):
            records = payload.get(key)
            if isinstance(records, list):
                return records
    raise CatalogLoadError("Invalid data format: puzzles/problems array not found", source=source)


def remove_duplicates(puzzles: Sequence[Puzzle]) -> Tuple[List[Puzzle], List[PuzzleDataError]]:
    """Keep the first puzzle per id."""
    seen = set()
    unique: List[Puzzle] = []
    errors: List[PuzzleDataError] = []
    for puzzle in puzzles:
        if puzzle.id in seen:
            errors.append(PuzzleDataError("duplicate id", puzzle.id))
            continue
        seen.add(puzzle.id)
        unique.append(puzzle)
    return unique, errors


def parse_database(
    payload: Any,
    *,
    source: Optional[str] = None,
    verify: bool = True,
) -> Tuple[List[Puzzle], List[PuzzleDataError]]:
    """
    Build puzzles from a database payload.

    Bad records are skipped and returned as errors. Raises
    CatalogLoadError when the payload has no record list, or when it has
    records but none of them is usable.
    """
    records = extract_records(payload, source)

    puzzles: List[Puzzle] = []
    errors: List[PuzzleDataError] = []
    for index, raw in enumerate(records):
        try:
            puzzle = record_to_puzzle(raw)
            if verify:
                verify_solution_line(puzzle)
        except PuzzleDataError as exc:
            _LOGGER.warning("Skipping record %d from %s: %s", index, source or "payload", exc)
            errors.append(exc)
            continue
        puzzles.append(puzzle)

    puzzles, duplicates = remove_duplicates(puzzles)
    for exc in duplicates:
        _LOGGER.warning("Skipping record from %s: %s", source or "payload", exc)
    errors.extend(duplicates)

    if records and not puzzles:
        raise CatalogLoadError(
            f"No valid puzzles among {len(records)} records ({len(errors)} rejected)",
            source=source,
        )
    return puzzles, errors


def catalog_statistics(puzzles: Sequence[Puzzle]) -> Dict[str, Any]:
    """Counts by theme and difficulty plus the rating spread."""
    if not puzzles:
        return {"total": 0, "by_theme": {}, "by_difficulty": {}, "ratings": None}

    by_theme: Dict[str, int] = {}
    by_difficulty: Dict[str, int] = {}
    for p in puzzles:
        by_theme[p.theme.value] = by_theme.get(p.theme.value, 0) + 1
        by_difficulty[p.difficulty.value] = by_difficulty.get(p.difficulty.value, 0) + 1

    ratings = [p.rating for p in puzzles]
    return {
        "total": len(puzzles),
        "by_theme": by_theme,
        "by_difficulty": by_difficulty,
        "ratings": {
            "min": min(ratings),
            "max": max(ratings),
            "avg": round(sum(ratings) / len(ratings)),
        },
    }
