"""
Difficulty Classification Module

Deterministic mapping between puzzle rating, difficulty band and the
default reward. Used when a puzzle record omits difficulty or points,
and by the UI for display.
"""

from __future__ import annotations

from .puzzle_types import Difficulty


# =============================================================================
# RATING BANDS
# =============================================================================
# A rating below the threshold falls into the named band

BEGINNER_RATING_CEILING = 1400
INTERMEDIATE_RATING_CEILING = 1800

DEFAULT_RATING = 1500

# Points awarded for an unaided solve when the record has none
DEFAULT_POINTS = {
    Difficulty.BEGINNER: 10,
    Difficulty.INTERMEDIATE: 15,
    Difficulty.ADVANCED: 25,
}

# Bonus used by the graded score policy
DIFFICULTY_BONUS = {
    Difficulty.BEGINNER: 0,
    Difficulty.INTERMEDIATE: 50,
    Difficulty.ADVANCED: 100,
}


def classify_difficulty(rating: int) -> Difficulty:
    """
    Classify a puzzle by its rating.

    BEGINNER:     rating < 1400
    INTERMEDIATE: 1400 <= rating < 1800
    ADVANCED:     rating >= 1800
    """
    if rating < BEGINNER_RATING_CEILING:
        return Difficulty.BEGINNER
    if rating < INTERMEDIATE_RATING_CEILING:
        return Difficulty.INTERMEDIATE
    return Difficulty.ADVANCED


def default_points(difficulty: Difficulty) -> int:
    return DEFAULT_POINTS.get(difficulty, DEFAULT_POINTS[Difficulty.BEGINNER])


def difficulty_bonus(difficulty: Difficulty) -> int:
    return DIFFICULTY_BONUS.get(difficulty, 0)


# =============================================================================
# DIFFICULTY UTILITIES
# =============================================================================


def get_difficulty_description(difficulty: Difficulty) -> str:
    """Get human-readable description of difficulty level."""
    descriptions = {
        Difficulty.BEGINNER: "One forcing idea - the key move is visible at a glance",
        Difficulty.INTERMEDIATE: "Short calculation - a two or three move combination",
        Difficulty.ADVANCED: "Deep or quiet solution - calculate the whole line first",
    }
    return descriptions.get(difficulty, "Unknown difficulty")


def get_difficulty_emoji(difficulty: Difficulty) -> str:
    """Get emoji representation of difficulty."""
    emojis = {
        Difficulty.BEGINNER: "🟢",
        Difficulty.INTERMEDIATE: "🟡",
        Difficulty.ADVANCED: "🔴",
    }
    return emojis.get(difficulty, "⚪")


def estimate_solve_time_seconds(difficulty: Difficulty) -> tuple[int, int]:
    """
    Estimate time range to solve puzzle based on difficulty.

    Returns (min_seconds, max_seconds) range.
    """
    times = {
        Difficulty.BEGINNER: (5, 30),
        Difficulty.INTERMEDIATE: (20, 90),
        Difficulty.ADVANCED: (45, 180),
    }
    return times.get(difficulty, (30, 120))
