"""Progressive disclosure of a puzzle's hints."""

from __future__ import annotations

from typing import Iterable, List, Tuple, Union


class NoMoreHints:
    """Terminal signal returned once every hint has been shown."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MORE_HINTS"


NO_MORE_HINTS = NoMoreHints()

HintResult = Union[str, NoMoreHints]


class HintProvider:
    """
    Hands out hints one at a time, in stored order.

    next() never fails: past the end of the list it keeps returning
    NO_MORE_HINTS, so callers need no guard.
    """

    def __init__(self, hints: Iterable[str] = ()):
        self._hints: Tuple[str, ...] = ()
        self._cursor = 0
        self.reset(hints)

    def next(self) -> HintResult:
        if self._cursor >= len(self._hints):
            return NO_MORE_HINTS
        hint = self._hints[self._cursor]
        self._cursor += 1
        return hint

    def reset(self, hints: Iterable[str] = ()) -> None:
        """Re-arm with the hint list of a new puzzle."""
        self._hints = tuple(h for h in hints if h and h.strip())
        self._cursor = 0

    @property
    def revealed(self) -> List[str]:
        return list(self._hints[: self._cursor])

    @property
    def remaining(self) -> int:
        return len(self._hints) - self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._hints)

    def __len__(self) -> int:
        return len(self._hints)
