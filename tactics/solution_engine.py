"""
Solution Engine - the puzzle-solving state machine

Accepts candidate moves, checks them against the expected solution
line, plays the scripted opponent replies and reports typed outcomes.

States: idle (no puzzle) -> awaiting player move -> solved | revealed.
Every call runs to completion before returning, opponent reply
included. The engine is meant for a single-threaded host such as a UI
event loop; re-entering it mid-call raises EngineBusyError.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple
import logging

from .difficulty import difficulty_bonus
from .errors import EngineBusyError, NoPuzzleLoadedError, PuzzleDataError
from .hints import HintProvider, HintResult, NO_MORE_HINTS
from .orientation import Orientation, resolve
from .puzzle_store import verify_solution_line
from .puzzle_types import Puzzle, SessionPhase, SolutionSession, SolutionStep, Theme
from .rules import RulesEngine

_LOGGER = logging.getLogger(__name__)


# =============================================================================
# OUTCOMES
# =============================================================================


class OutcomeKind(str, Enum):
    ILLEGAL = "illegal"
    WRONG_MOVE = "wrong_move"
    CORRECT = "correct"
    SOLVED = "solved"


@dataclass(frozen=True)
class OpponentReplied:
    """The scripted reply the engine played after an accepted move."""
    move: str  # as stored in the puzzle
    san: str   # as played, with decoration
    uci: str


@dataclass(frozen=True)
class MoveOutcome:
    """
    Result of one submit_move call.

    ILLEGAL and WRONG_MOVE leave the session and the position untouched;
    the board widget should snap the piece back. CORRECT means the line
    continues, SOLVED carries the awarded score.
    """
    kind: OutcomeKind
    candidate: str
    puzzle_id: str
    theme: Theme
    step_index: int
    played_san: Optional[str] = None
    score: Optional[int] = None
    opponent_reply: Optional[OpponentReplied] = None
    reason: str = ""

    @property
    def is_solved(self) -> bool:
        return self.kind == OutcomeKind.SOLVED

    @property
    def accepted(self) -> bool:
        return self.kind in (OutcomeKind.CORRECT, OutcomeKind.SOLVED)

    @property
    def requires_snapback(self) -> bool:
        return self.kind in (OutcomeKind.ILLEGAL, OutcomeKind.WRONG_MOVE)


# =============================================================================
# SCORE POLICIES
# =============================================================================

ScorePolicy = Callable[[SolutionSession], int]


def flat_score(session: SolutionSession) -> int:
    """Full puzzle points, regardless of attempts or hints."""
    return session.puzzle.points


def graded_score(session: SolutionSession) -> int:
    """
    Points adjusted for speed, difficulty and rejected moves.

    max(1, points + time_bonus + difficulty_bonus - 10 * attempts), with
    time_bonus = max(0, 100 - elapsed seconds).
    """
    puzzle = session.puzzle
    time_bonus = max(0, 100 - int(session.elapsed_seconds))
    attempt_penalty = 10 * session.attempts
    return max(1, puzzle.points + time_bonus + difficulty_bonus(puzzle.difficulty) - attempt_penalty)


SCORE_POLICIES: Dict[str, ScorePolicy] = {
    "flat": flat_score,
    "graded": graded_score,
}


def get_score_policy(name: str) -> ScorePolicy:
    try:
        return SCORE_POLICIES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown score policy {name!r}; expected one of {sorted(SCORE_POLICIES)}"
        ) from None


# =============================================================================
# ENGINE
# =============================================================================


class SolutionEngine:
    """Drives one puzzle at a time through its solution line."""

    def __init__(
        self,
        rules: Optional[RulesEngine] = None,
        score_policy: ScorePolicy = flat_score,
    ):
        self.rules = rules or RulesEngine()
        self.hints = HintProvider()
        self.score_policy = score_policy
        self._session: Optional[SolutionSession] = None
        self._busy = False
        self._reply_listeners: List[Callable[[OpponentReplied], None]] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[SolutionSession]:
        return self._session

    @property
    def is_idle(self) -> bool:
        return self._session is None

    @property
    def phase(self) -> Optional[SessionPhase]:
        return self._session.phase if self._session else None

    @property
    def puzzle(self) -> Optional[Puzzle]:
        return self._session.puzzle if self._session else None

    @property
    def position(self) -> str:
        return self.rules.current_position()

    @property
    def orientation(self) -> Orientation:
        """Board facing for the solver; fixed for the whole puzzle."""
        if self._session is None:
            return resolve(self.rules.side_to_move())
        return resolve(self._session.puzzle.side_to_move)

    def on_opponent_reply(self, listener: Callable[[OpponentReplied], None]) -> None:
        """Register a callback fired when a scripted reply is played."""
        self._reply_listeners.append(listener)

    @contextmanager
    def _evaluating(self) -> Iterator[None]:
        if self._busy:
            raise EngineBusyError("SolutionEngine is already evaluating a call")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _require_session(self) -> SolutionSession:
        if self._session is None:
            raise NoPuzzleLoadedError("No puzzle loaded")
        return self._session

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def load(self, puzzle: Puzzle) -> SolutionSession:
        """
        Start a fresh session on a puzzle.

        The whole solution line is replayed first; a malformed puzzle
        raises PuzzleDataError and the previous session stays in place.
        """
        with self._evaluating():
            verify_solution_line(puzzle)
            try:
                self.rules.load_position(puzzle.starting_position)
            except ValueError as exc:
                raise PuzzleDataError(f"invalid starting position: {exc}", puzzle.id) from exc

            self._session = SolutionSession(puzzle=puzzle)
            self.hints.reset(puzzle.hints)
            _LOGGER.info(
                "Loaded puzzle %s (%s, %d steps)",
                puzzle.id,
                puzzle.theme.value,
                len(puzzle.solution),
            )
            return self._session

    def submit_move(self, candidate: str) -> MoveOutcome:
        session = self._require_session()
        with self._evaluating():
            if session.is_terminal:
                return self._outcome(
                    session,
                    OutcomeKind.ILLEGAL,
                    candidate,
                    reason=f"puzzle already {session.phase.value}",
                )

            played_san = self.rules.san(candidate)
            if played_san is None:
                _LOGGER.debug("Illegal move %r in puzzle %s", candidate, session.puzzle.id)
                return self._outcome(session, OutcomeKind.ILLEGAL, candidate, reason="illegal move")

            step = session.current_step
            if played_san != step.expected_move:
                session.attempts += 1
                _LOGGER.debug(
                    "Wrong move %s in puzzle %s (attempt %d)",
                    played_san,
                    session.puzzle.id,
                    session.attempts,
                )
                return self._outcome(
                    session,
                    OutcomeKind.WRONG_MOVE,
                    candidate,
                    played_san=played_san,
                    reason="not the solution move",
                )

            applied = self.rules.apply_move(candidate)
            session.history.append(applied.san)
            session.step_index += 1

            reply = None
            if step.opponent_reply:
                reply = self._play_reply(session, step)

            if session.step_index >= len(session.puzzle.solution):
                session.phase = SessionPhase.SOLVED
                score = self.score_policy(session)
                _LOGGER.info(
                    "Solved puzzle %s for %d points (%d wrong, %d hints)",
                    session.puzzle.id,
                    score,
                    session.attempts,
                    session.hints_used,
                )
                outcome = self._outcome(
                    session,
                    OutcomeKind.SOLVED,
                    candidate,
                    played_san=applied.san,
                    score=score,
                    opponent_reply=reply,
                )
            else:
                outcome = self._outcome(
                    session,
                    OutcomeKind.CORRECT,
                    candidate,
                    played_san=applied.san,
                    opponent_reply=reply,
                )

            if reply is not None:
                for listener in self._reply_listeners:
                    listener(reply)
            return outcome

    def request_hint(self) -> HintResult:
        session = self._require_session()
        with self._evaluating():
            hint = self.hints.next()
            if hint is not NO_MORE_HINTS:
                session.hints_used += 1
            return hint

    def reveal_solution(self) -> Tuple[SolutionStep, ...]:
        """
        Give up on the puzzle and return the steps not yet played.

        Forfeits the score. On a session that is already revealed this
        returns the same steps again; on a solved one it returns nothing.
        """
        session = self._require_session()
        with self._evaluating():
            if session.phase == SessionPhase.REVEALED:
                return session.revealed_steps or ()
            if session.phase == SessionPhase.SOLVED:
                return ()
            session.revealed_steps = session.remaining_steps
            session.phase = SessionPhase.REVEALED
            _LOGGER.info(
                "Revealed puzzle %s at step %d",
                session.puzzle.id,
                session.step_index,
            )
            return session.revealed_steps

    def reset(self) -> None:
        """Drop the current session and return to idle."""
        with self._evaluating():
            self._session = None
            self.hints.reset()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _play_reply(self, session: SolutionSession, step: SolutionStep) -> OpponentReplied:
        try:
            applied = self.rules.apply_move(step.opponent_reply)
        except ValueError as exc:
            raise PuzzleDataError(
                f"opponent reply {step.opponent_reply!r} cannot be played",
                session.puzzle.id,
            ) from exc
        session.history.append(applied.san)
        return OpponentReplied(move=step.opponent_reply, san=applied.san, uci=applied.uci)

    @staticmethod
    def _outcome(
        session: SolutionSession,
        kind: OutcomeKind,
        candidate: str,
        **extra,
    ) -> MoveOutcome:
        return MoveOutcome(
            kind=kind,
            candidate=candidate,
            puzzle_id=session.puzzle.id,
            theme=session.puzzle.theme,
            step_index=session.step_index,
            **extra,
        )
