"""
Rules engine adapter over python-chess.

Legality, notation and position bookkeeping all come from chess.Board;
this module only shapes them into the calls the solution engine makes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import chess


@dataclass(frozen=True)
class AppliedMove:
    san: str
    uci: str
    fen_before: str
    fen_after: str


class RulesEngine:
    """Holds one position and answers rules questions about it."""

    def __init__(self, fen: str = chess.STARTING_FEN):
        self._board = chess.Board()
        self.load_position(fen)

    def load_position(self, fen: str) -> None:
        """
        Replace the current position.

        Raises ValueError if the FEN cannot be parsed or describes an
        impossible position.
        """
        board = chess.Board(fen)
        if not board.is_valid():
            raise ValueError(f"invalid position ({board.status()!r}): {fen}")
        self._board = board

    def parse(self, candidate: str) -> Optional[chess.Move]:
        """
        Parse a candidate in SAN first, then UCI.

        Returns None for empty, unparsable, ambiguous or illegal input.
        """
        text = (candidate or "").strip()
        if not text:
            return None

        try:
            move = self._board.parse_san(text)
        except ValueError:
            pass
        else:
            # parse_san accepts "--" and "0000" as null moves
            if move and move in self._board.legal_moves:
                return move
            return None

        try:
            move = chess.Move.from_uci(text.lower())
        except ValueError:
            return None
        if not move:
            return None
        if move in self._board.legal_moves:
            return move

        # Board widgets send e7e8 for promotions; default to a queen
        piece = self._board.piece_at(move.from_square)
        if piece and piece.piece_type == chess.PAWN and move.promotion is None:
            promoted = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
            if promoted in self._board.legal_moves:
                return promoted
        return None

    def is_legal(self, candidate: str) -> bool:
        return self.parse(candidate) is not None

    def san(self, candidate: str) -> Optional[str]:
        """Notation of the candidate as played, including +/# decoration."""
        move = self.parse(candidate)
        if move is None:
            return None
        return self._board.san(move)

    def apply_move(self, candidate: str) -> AppliedMove:
        """Play a move. Raises ValueError if it is not legal here."""
        move = self.parse(candidate)
        if move is None:
            raise ValueError(f"illegal move {candidate!r} in {self._board.fen()}")
        fen_before = self._board.fen()
        san = self._board.san(move)
        self._board.push(move)
        return AppliedMove(san=san, uci=move.uci(), fen_before=fen_before, fen_after=self._board.fen())

    def current_position(self) -> str:
        return self._board.fen()

    def side_to_move(self) -> chess.Color:
        return self._board.turn

    def last_move(self) -> Optional[chess.Move]:
        return self._board.peek() if self._board.move_stack else None

    def is_check(self) -> bool:
        return self._board.is_check()

    def is_checkmate(self) -> bool:
        return self._board.is_checkmate()

    def is_stalemate(self) -> bool:
        return self._board.is_stalemate()

    def is_draw(self) -> bool:
        board = self._board
        return (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.is_seventyfive_moves()
            or board.is_fivefold_repetition()
            or board.can_claim_draw()
        )

    def legal_moves_uci(self) -> List[str]:
        return [m.uci() for m in self._board.legal_moves]

    def board(self) -> chess.Board:
        """A copy of the current board, for rendering."""
        return self._board.copy()
