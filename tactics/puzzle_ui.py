"""
Puzzle Trainer UI for Streamlit

Renders the active position with python-chess SVG and forwards typed
moves to the SolutionEngine. The page makes no decisions of its own:
feedback text is chosen from the outcome kind the engine returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import chess
import chess.svg
import streamlit as st

from .catalog import PuzzleCatalog, PuzzleFilter
from .config import get_settings
from .difficulty import get_difficulty_description, get_difficulty_emoji
from .errors import EmptyCatalogError, PuzzleDataError
from .hints import NO_MORE_HINTS
from .orientation import Orientation
from .puzzle_types import Difficulty, Puzzle, SessionPhase, SolutionStep, Theme
from .scoreboard import SessionScoreboard
from .solution_engine import MoveOutcome, OutcomeKind, SolutionEngine, get_score_policy


# =============================================================================
# CONSTANTS
# =============================================================================

BOARD_SIZE = 400

HIGHLIGHT_CORRECT = "#4ade8088"


# =============================================================================
# UI STATE MANAGEMENT
# =============================================================================


@dataclass
class TrainerState:
    """
    Engine and scoreboard kept in st.session_state across reruns.

    One engine per browser session; nothing lives at module level.
    """
    engine_key: str = "tactics_engine"
    scoreboard_key: str = "tactics_scoreboard"
    feedback_key: str = "tactics_feedback"
    hints_key: str = "tactics_hints"
    revealed_key: str = "tactics_revealed"

    @classmethod
    def engine(cls) -> SolutionEngine:
        key = cls.engine_key
        if key not in st.session_state:
            policy = get_score_policy(get_settings().score_policy)
            st.session_state[key] = SolutionEngine(score_policy=policy)
        return st.session_state[key]

    @classmethod
    def scoreboard(cls) -> SessionScoreboard:
        key = cls.scoreboard_key
        if key not in st.session_state:
            st.session_state[key] = SessionScoreboard()
        return st.session_state[key]

    @classmethod
    def get_feedback(cls) -> Optional[Tuple[str, str]]:
        return st.session_state.get(cls.feedback_key)

    @classmethod
    def set_feedback(cls, level: str, text: str) -> None:
        st.session_state[cls.feedback_key] = (level, text)

    @classmethod
    def shown_hints(cls) -> List[str]:
        return st.session_state.setdefault(cls.hints_key, [])

    @classmethod
    def revealed_steps(cls) -> Optional[Tuple[SolutionStep, ...]]:
        return st.session_state.get(cls.revealed_key)

    @classmethod
    def set_revealed_steps(cls, steps: Tuple[SolutionStep, ...]) -> None:
        st.session_state[cls.revealed_key] = steps

    @classmethod
    def clear_puzzle_state(cls) -> None:
        for key in (cls.feedback_key, cls.hints_key, cls.revealed_key):
            if key in st.session_state:
                del st.session_state[key]


# =============================================================================
# PURE HELPERS
# =============================================================================


def render_board_svg(
    board: chess.Board,
    orientation: Orientation = Orientation.WHITE_BOTTOM,
    size: int = BOARD_SIZE,
    last_move: Optional[chess.Move] = None,
    highlight_squares: Optional[dict] = None,
) -> str:
    """Render the board as SVG from the solver's side."""
    return chess.svg.board(
        board,
        size=size,
        flipped=orientation.flipped,
        lastmove=last_move,
        fill=dict(highlight_squares or {}),
    )


def feedback_message(outcome: MoveOutcome) -> Tuple[str, str]:
    """
    Map an outcome to (level, text) for display.

    level is one of "success", "info", "warning", "error".
    """
    if outcome.kind == OutcomeKind.ILLEGAL:
        if outcome.reason.startswith("puzzle already"):
            return "info", "This puzzle is finished. Load the next one."
        return "error", f"Illegal move: {outcome.candidate}"
    if outcome.kind == OutcomeKind.WRONG_MOVE:
        return "warning", f"{outcome.played_san} is not the solution. Try again."
    if outcome.kind == OutcomeKind.SOLVED:
        return "success", f"Solved! +{outcome.score} points"

    text = f"Correct: {outcome.played_san}."
    if outcome.opponent_reply is not None:
        text += f" Opponent replied {outcome.opponent_reply.san}. Keep going!"
    return "success", text


def format_steps(steps: Iterable[SolutionStep]) -> List[str]:
    """One display line per step: 'Re8+ ... Kh7'."""
    lines = []
    for step in steps:
        line = step.expected_move
        if step.opponent_reply:
            line += f" ... {step.opponent_reply}"
        lines.append(line)
    return lines


def _show(level: str, text: str) -> None:
    {
        "success": st.success,
        "info": st.info,
        "warning": st.warning,
        "error": st.error,
    }.get(level, st.info)(text)


# =============================================================================
# PAGE SECTIONS
# =============================================================================


def _load_into_engine(puzzle: Puzzle) -> None:
    engine = TrainerState.engine()
    try:
        engine.load(puzzle)
    except PuzzleDataError as exc:
        # Shown on the next run; the caller reruns the script
        TrainerState.set_feedback("error", f"Could not load puzzle: {exc}")
        return
    TrainerState.clear_puzzle_state()


def _forfeit_if_unfinished(engine: SolutionEngine) -> None:
    session = engine.session
    if session is None or session.phase != SessionPhase.AWAITING_PLAYER_MOVE:
        return
    # Skipping an untouched puzzle is not a forfeit
    if session.history or session.attempts:
        TrainerState.scoreboard().record_forfeit(session.puzzle)


def render_puzzle_info(puzzle: Puzzle) -> None:
    st.subheader(puzzle.title or f"Puzzle {puzzle.id}")
    if puzzle.description:
        st.caption(puzzle.description)

    col1, col2, col3 = st.columns(3)
    with col1:
        emoji = get_difficulty_emoji(puzzle.difficulty)
        st.metric("Difficulty", f"{emoji} {puzzle.difficulty.value.title()}")
    with col2:
        st.metric("Rating", puzzle.rating)
    with col3:
        st.metric("Points", puzzle.points)

    st.caption(
        f"{puzzle.theme.value} | {puzzle.side_to_move.title()} to move | "
        f"{get_difficulty_description(puzzle.difficulty)}"
    )


def render_filter_sidebar(catalog: PuzzleCatalog) -> None:
    with st.sidebar:
        st.header("Filter")
        themes = sorted({p.theme.value for p in catalog.puzzles})
        theme = st.selectbox("Theme", ["any"] + themes, key="tactics_filter_theme")
        difficulty = st.selectbox(
            "Difficulty",
            ["any"] + [d.value for d in Difficulty],
            key="tactics_filter_difficulty",
        )
        if st.button("Apply filter", key="tactics_apply_filter"):
            criteria = PuzzleFilter(
                theme=Theme(theme) if theme != "any" else None,
                difficulty=Difficulty(difficulty) if difficulty != "any" else None,
            )
            try:
                catalog.use_filter(criteria)
            except EmptyCatalogError as exc:
                st.warning(str(exc))
        if st.button("Clear filter", key="tactics_clear_filter"):
            catalog.clear_filter()
        st.caption(f"{catalog.rotation_size} of {len(catalog)} puzzles in rotation")


def render_scoreboard(scoreboard: SessionScoreboard) -> None:
    stats = scoreboard.get_stats()
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Score", stats["total_score"])
    with col2:
        st.metric("Solved", f"{stats['puzzles_solved']} / {stats['puzzles_attempted']}")
    with col3:
        st.metric("Success Rate", f"{stats['success_rate']:.0f}%")
    with col4:
        st.metric("Streak", f"{stats['current_streak']} (best {stats['best_streak']})")


def render_navigation(catalog: PuzzleCatalog) -> None:
    engine = TrainerState.engine()
    col1, col2, col3 = st.columns(3)
    choice = None
    with col1:
        if st.button("⬅️ Previous", key="tactics_prev"):
            choice = catalog.previous_puzzle
    with col2:
        if st.button("🎲 Random", key="tactics_random"):
            choice = catalog.random_puzzle
    with col3:
        if st.button("Next ➡️", key="tactics_next"):
            choice = catalog.next_puzzle

    if choice is not None:
        _forfeit_if_unfinished(engine)
        _load_into_engine(choice())
        st.rerun()


# =============================================================================
# MAIN PAGE
# =============================================================================


def render_trainer_page(catalog: PuzzleCatalog) -> None:
    """Main entry point: board, move input, hints, reveal and scoreboard."""
    st.header("♟️ Tactics Trainer")

    if len(catalog) == 0:
        st.info("No puzzles loaded.")
        return

    render_filter_sidebar(catalog)

    engine = TrainerState.engine()
    scoreboard = TrainerState.scoreboard()

    if engine.is_idle:
        _load_into_engine(catalog.next_puzzle())
    puzzle = engine.puzzle
    session = engine.session
    if puzzle is None or session is None:
        return

    col_board, col_info = st.columns([2, 1])

    with col_info:
        render_puzzle_info(puzzle)

        if st.button("💡 Hint", key="tactics_hint", disabled=session.is_terminal):
            hint = engine.request_hint()
            if hint is NO_MORE_HINTS:
                TrainerState.set_feedback("info", "No more hints for this puzzle.")
            else:
                TrainerState.shown_hints().append(hint)
        for hint in TrainerState.shown_hints():
            st.info(f"💡 {hint}")

        if st.button("🏳️ Show solution", key="tactics_reveal", disabled=session.is_terminal):
            TrainerState.set_revealed_steps(engine.reveal_solution())
            scoreboard.record_forfeit(puzzle)
            st.rerun()
        revealed = TrainerState.revealed_steps()
        if revealed:
            st.markdown("**Solution:** " + ", ".join(format_steps(revealed)))

    with col_board:
        move_input = st.text_input(
            "Enter move (e.g., Nf3 or g1f3)",
            key=f"tactics_move_{puzzle.id}_{session.step_index}",
            placeholder="Type your move...",
            disabled=session.is_terminal,
        )
        if st.button("Submit", type="primary", key="tactics_submit") and move_input:
            outcome = engine.submit_move(move_input)
            TrainerState.set_feedback(*feedback_message(outcome))
            if outcome.is_solved:
                scoreboard.record(outcome)

        highlights = {}
        last_move = engine.rules.last_move()
        if last_move is not None and session.phase == SessionPhase.SOLVED:
            highlights = {last_move.from_square: HIGHLIGHT_CORRECT, last_move.to_square: HIGHLIGHT_CORRECT}
        svg = render_board_svg(
            engine.rules.board(),
            orientation=engine.orientation,
            last_move=last_move,
            highlight_squares=highlights,
        )
        st.markdown(
            f'<div style="display: flex; justify-content: center; margin: 1rem 0;">{svg}</div>',
            unsafe_allow_html=True,
        )

        feedback = TrainerState.get_feedback()
        if feedback:
            _show(*feedback)

    st.divider()
    render_navigation(catalog)

    st.divider()
    render_scoreboard(scoreboard)
