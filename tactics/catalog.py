"""
Puzzle Catalog

Owns the loaded puzzle collection and hands puzzles out one at a time.
Loading is the only asynchronous operation in the package: remote
databases are fetched with httpx, local files are read off the event
loop. Everything after loading is synchronous index bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import asyncio
import json
import logging
import random

import httpx

from .config import Settings, get_settings
from .errors import CatalogLoadError, EmptyCatalogError, NoPuzzlesAvailable, PuzzleDataError
from .puzzle_cache import load_cached_catalog, save_cached_catalog
from .puzzle_store import catalog_statistics, parse_database
from .puzzle_types import Difficulty, Puzzle, Theme

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PuzzleFilter:
    """Selection criteria. Unset fields match everything."""
    theme: Optional[Theme] = None
    difficulty: Optional[Difficulty] = None
    min_rating: Optional[int] = None
    max_rating: Optional[int] = None
    tags: Tuple[str, ...] = ()
    limit: Optional[int] = None
    offset: int = 0

    def matches(self, puzzle: Puzzle) -> bool:
        if self.theme is not None and puzzle.theme != self.theme:
            return False
        if self.difficulty is not None and puzzle.difficulty != self.difficulty:
            return False
        if self.min_rating is not None and puzzle.rating < self.min_rating:
            return False
        if self.max_rating is not None and puzzle.rating > self.max_rating:
            return False
        if self.tags and not set(self.tags) & set(puzzle.tags):
            return False
        return True

    def apply(self, puzzles: Sequence[Puzzle]) -> List[Puzzle]:
        selected = [p for p in puzzles if self.matches(p)]
        if self.offset:
            selected = selected[self.offset:]
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected


def is_remote(source: str) -> bool:
    return source.strip().lower().startswith(("http://", "https://"))


class PuzzleCatalog:
    """
    The full puzzle collection plus a rotation cursor.

    The rotation is the whole collection, or the subset chosen with
    use_filter(). next_puzzle() and previous_puzzle() wrap around it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._rng = random.Random(self.settings.random_seed)
        self._puzzles: List[Puzzle] = []
        self._by_id: Dict[str, Puzzle] = {}
        self._rotation: List[Puzzle] = []
        self._index = -1
        self._current: Optional[Puzzle] = None
        self.load_errors: List[PuzzleDataError] = []
        self.source: Optional[str] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, source: Union[str, Path, None] = None) -> List[Puzzle]:
        """
        Load puzzles from a path or URL, or from the configured sources.

        Configured sources are tried in order and the first that loads
        wins. Raises CatalogLoadError when nothing could be loaded; the
        previously loaded collection is kept in that case.
        """
        sources = [str(source)] if source is not None else self.settings.catalog_source_list
        if not sources:
            raise CatalogLoadError("No catalog source configured")

        failures: List[CatalogLoadError] = []
        for candidate in sources:
            _LOGGER.info("Loading puzzles from %s", candidate)
            try:
                if is_remote(candidate):
                    puzzles, errors = await self._load_remote(candidate)
                else:
                    puzzles, errors = self._parse(await self._read_local(candidate), candidate)
            except CatalogLoadError as exc:
                _LOGGER.warning("Could not load %s: %s", candidate, exc)
                failures.append(exc)
                continue

            self._install(puzzles, errors, candidate)
            return list(self._puzzles)

        if len(failures) == 1:
            raise failures[0]
        raise CatalogLoadError(
            f"Could not load puzzles from any source. Tried: {', '.join(sources)}",
            source=sources[-1],
        )

    def _parse(self, payload: Any, source: str) -> Tuple[List[Puzzle], List[PuzzleDataError]]:
        return parse_database(payload, source=source, verify=self.settings.verify_solutions)

    async def _read_local(self, source: str) -> Any:
        path = Path(source).expanduser()
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as exc:
            raise CatalogLoadError(f"Cannot read {path}: {exc}", source=source) from exc
        try:
            return json.loads(text)
        except ValueError as exc:
            raise CatalogLoadError(f"{path} is not valid JSON: {exc}", source=source) from exc

    async def _load_remote(self, url: str) -> Tuple[List[Puzzle], List[PuzzleDataError]]:
        """
        Fetch and parse a remote database.

        Only a payload that parsed is written to the disk cache. When the
        fetch fails or the payload does not parse, the cached copy is used.
        """
        try:
            payload = await self._download(url)
            parsed = self._parse(payload, url)
        except (httpx.HTTPError, ValueError, CatalogLoadError) as exc:
            cached = load_cached_catalog(
                url,
                self.settings.resolved_cache_dir,
                max_age_hours=self.settings.cache_max_age_hours,
            )
            if cached is None:
                if isinstance(exc, CatalogLoadError):
                    raise
                raise CatalogLoadError(f"Failed to fetch puzzle data from {url}: {exc}", source=url) from exc
            _LOGGER.warning("Loading %s failed (%s); using cached copy", url, exc)
            return self._parse(cached, url)

        save_cached_catalog(url, payload, self.settings.resolved_cache_dir)
        return parsed

    async def _download(self, url: str) -> Any:
        if self._client is not None:
            response = await self._client.get(url, timeout=self.settings.fetch_timeout)
        else:
            async with httpx.AsyncClient(timeout=self.settings.fetch_timeout) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response.json()

    def _install(self, puzzles: List[Puzzle], errors: List[PuzzleDataError], source: str) -> None:
        self._puzzles = list(puzzles)
        self._by_id = {p.id: p for p in self._puzzles}
        self._rotation = list(self._puzzles)
        self._index = -1
        self._current = None
        self.load_errors = list(errors)
        self.source = source
        _LOGGER.info(
            "Loaded %d puzzles from %s (%d rejected)",
            len(self._puzzles),
            source,
            len(errors),
        )

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def puzzles(self) -> List[Puzzle]:
        return list(self._puzzles)

    @property
    def current_puzzle(self) -> Optional[Puzzle]:
        return self._current

    @property
    def rotation_size(self) -> int:
        return len(self._rotation)

    def __len__(self) -> int:
        return len(self._puzzles)

    def get(self, puzzle_id: str) -> Optional[Puzzle]:
        return self._by_id.get(str(puzzle_id))

    def filter(self, criteria: PuzzleFilter) -> List[Puzzle]:
        """Puzzles matching the criteria; an empty list is a valid answer."""
        return criteria.apply(self._puzzles)

    def statistics(self) -> Dict[str, Any]:
        return catalog_statistics(self._puzzles)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _require_loaded(self) -> None:
        if not self._puzzles:
            raise EmptyCatalogError("No puzzles loaded")

    def _select(self, puzzle: Puzzle) -> Puzzle:
        self._current = puzzle
        return puzzle

    def _rotation_index(self, puzzle: Puzzle) -> int:
        for i, candidate in enumerate(self._rotation):
            if candidate.id == puzzle.id:
                return i
        return -1

    def use_filter(self, criteria: PuzzleFilter) -> List[Puzzle]:
        """Restrict the rotation to the puzzles matching criteria."""
        self._require_loaded()
        selected = self.filter(criteria)
        if not selected:
            raise NoPuzzlesAvailable(f"No puzzles match {criteria}")
        self._rotation = selected
        self._index = self._rotation_index(self._current) if self._current else -1
        return list(selected)

    def clear_filter(self) -> None:
        self._rotation = list(self._puzzles)
        self._index = self._rotation_index(self._current) if self._current else -1

    def random_puzzle(self, criteria: Optional[PuzzleFilter] = None) -> Puzzle:
        self._require_loaded()
        if criteria is None:
            pool = self._rotation
        else:
            pool = self.filter(criteria)
            if not pool:
                raise NoPuzzlesAvailable(f"No puzzles match {criteria}")
        puzzle = self._rng.choice(pool)
        index = self._rotation_index(puzzle)
        # A pick outside the rotation leaves the cursor where it was
        if index >= 0:
            self._index = index
        return self._select(puzzle)

    def next_puzzle(self) -> Puzzle:
        self._require_loaded()
        self._index = (self._index + 1) % len(self._rotation)
        return self._select(self._rotation[self._index])

    def previous_puzzle(self) -> Puzzle:
        self._require_loaded()
        if self._index < 0:
            self._index = len(self._rotation) - 1
        else:
            self._index = (self._index - 1) % len(self._rotation)
        return self._select(self._rotation[self._index])
