"""Board orientation for the side the player solves with."""

from __future__ import annotations

from enum import Enum
from typing import Union

import chess


class Orientation(str, Enum):
    WHITE_BOTTOM = "white"
    BLACK_BOTTOM = "black"

    @property
    def flipped(self) -> bool:
        """True when the board must be drawn from Black's side."""
        return self is Orientation.BLACK_BOTTOM


def resolve(side_to_move: Union[chess.Color, str, None]) -> Orientation:
    """
    Map the side to move onto a board orientation.

    Accepts a python-chess colour, a FEN active-colour field ("w"/"b") or
    "white"/"black". Anything unrecognised faces White.
    """
    if side_to_move is chess.BLACK:
        return Orientation.BLACK_BOTTOM
    if isinstance(side_to_move, str) and side_to_move.strip().lower() in ("b", "black"):
        return Orientation.BLACK_BOTTOM
    return Orientation.WHITE_BOTTOM
