"""
Tests for PuzzleCatalog loading and selection.

Remote loading runs against httpx.MockTransport; nothing touches the
network.
"""

import asyncio
import json
import tempfile
import unittest
from pathlib import Path

import httpx
import pytest

from tactics.catalog import PuzzleCatalog, PuzzleFilter, is_remote
from tactics.config import DEFAULT_CATALOG_PATH, Settings
from tactics.errors import CatalogLoadError, EmptyCatalogError, NoPuzzlesAvailable
from tactics.puzzle_types import Difficulty, Theme


BACK_RANK_FEN = "6k1/5ppp/8/8/8/8/5PPP/4R1K1 w - - 0 1"
URL = "https://puzzles.example.com/problems.json"


def record(puzzle_id, theme="backRankMate", rating=900, tags=()):
    return {
        "id": puzzle_id,
        "theme": theme,
        "fen": BACK_RANK_FEN,
        "solution": ["Re8#"],
        "rating": rating,
        "tags": list(tags),
    }


PAYLOAD = {
    "puzzles": [
        record("a", rating=900, tags=["mate"]),
        record("b", theme="mateIn1", rating=1500, tags=["rook"]),
        record("c", theme="mateIn1", rating=1900, tags=["mate", "rook"]),
    ]
}


def make_settings(tmp_path, **overrides):
    values = {
        "catalog_sources": str(tmp_path / "missing.json"),
        "cache_dir": str(tmp_path / "cache"),
        "random_seed": 7,
    }
    values.update(overrides)
    return Settings(**values)


def write_db(tmp_path, payload, name="problems.json"):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def loaded_catalog(tmp_path):
    catalog = PuzzleCatalog(make_settings(tmp_path))
    asyncio.run(catalog.load(write_db(tmp_path, PAYLOAD)))
    return catalog


# =============================================================================
# LOADING
# =============================================================================


def test_load_local_file(tmp_path):
    catalog = loaded_catalog(tmp_path)
    assert len(catalog) == 3
    assert catalog.get("b").theme == Theme.MATE_IN_1
    assert catalog.get("zzz") is None
    assert catalog.load_errors == []
    assert catalog.source.endswith("problems.json")


def test_load_records_bad_puzzles(tmp_path):
    payload = {"problems": PAYLOAD["puzzles"] + [dict(record("d"), solution=[])]}
    catalog = PuzzleCatalog(make_settings(tmp_path))
    asyncio.run(catalog.load(write_db(tmp_path, payload)))

    assert len(catalog) == 3
    assert [e.puzzle_id for e in catalog.load_errors] == ["d"]


def test_load_missing_file(tmp_path):
    catalog = PuzzleCatalog(make_settings(tmp_path))
    with pytest.raises(CatalogLoadError):
        asyncio.run(catalog.load())


def test_load_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    catalog = PuzzleCatalog(make_settings(tmp_path))
    with pytest.raises(CatalogLoadError) as exc_info:
        asyncio.run(catalog.load(path))
    assert exc_info.value.source == str(path)


def test_configured_sources_are_tried_in_order(tmp_path):
    good = write_db(tmp_path, PAYLOAD)
    settings = make_settings(tmp_path, catalog_sources=f"{tmp_path / 'nope.json'}, {good}")
    catalog = PuzzleCatalog(settings)
    asyncio.run(catalog.load())
    assert catalog.source == str(good)
    assert len(catalog) == 3


def test_all_sources_failing(tmp_path):
    settings = make_settings(tmp_path, catalog_sources=f"{tmp_path / 'a.json'},{tmp_path / 'b.json'}")
    with pytest.raises(CatalogLoadError, match="any source"):
        asyncio.run(PuzzleCatalog(settings).load())


def test_failed_reload_keeps_previous_puzzles(tmp_path):
    catalog = loaded_catalog(tmp_path)
    with pytest.raises(CatalogLoadError):
        asyncio.run(catalog.load(tmp_path / "gone.json"))
    assert len(catalog) == 3


def test_bundled_database_loads(tmp_path):
    catalog = PuzzleCatalog(make_settings(tmp_path, catalog_sources=str(DEFAULT_CATALOG_PATH)))
    asyncio.run(catalog.load())
    assert len(catalog) >= 4
    assert catalog.load_errors == []


def test_is_remote():
    assert is_remote(URL)
    assert is_remote("HTTP://example.com/x.json")
    assert not is_remote("/tmp/problems.json")


# =============================================================================
# REMOTE LOADING
# =============================================================================


def test_load_remote(tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json=PAYLOAD)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            catalog = PuzzleCatalog(make_settings(tmp_path), client=client)
            await catalog.load(URL)
            return catalog

    catalog = asyncio.run(run())
    assert seen == [URL]
    assert len(catalog) == 3
    # a successful fetch is cached
    assert list((tmp_path / "cache").glob("catalog_*.json"))


def test_remote_failure_falls_back_to_cache(tmp_path):
    responses = [httpx.Response(200, json=PAYLOAD), httpx.Response(503)]

    def handler(request):
        return responses.pop(0)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            first = PuzzleCatalog(make_settings(tmp_path), client=client)
            await first.load(URL)
            second = PuzzleCatalog(make_settings(tmp_path), client=client)
            await second.load(URL)
            return second

    catalog = asyncio.run(run())
    assert len(catalog) == 3


def test_remote_failure_without_cache(tmp_path):
    def handler(request):
        return httpx.Response(500)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await PuzzleCatalog(make_settings(tmp_path), client=client).load(URL)

    with pytest.raises(CatalogLoadError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.source == URL


def test_remote_unexpected_shape(tmp_path):
    def handler(request):
        return httpx.Response(200, json={"items": []})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await PuzzleCatalog(make_settings(tmp_path), client=client).load(URL)

    with pytest.raises(CatalogLoadError, match="puzzles/problems"):
        asyncio.run(run())


def test_unparsable_payload_keeps_cached_copy(tmp_path):
    responses = [
        httpx.Response(200, json=PAYLOAD),
        httpx.Response(200, json={"items": []}),
        httpx.Response(503),
    ]

    def handler(request):
        return responses.pop(0)

    async def run():
        counts = []
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            for _ in range(3):
                catalog = PuzzleCatalog(make_settings(tmp_path), client=client)
                await catalog.load(URL)
                counts.append(len(catalog))
        return counts

    assert asyncio.run(run()) == [3, 3, 3]
    [cache_file] = (tmp_path / "cache").glob("catalog_*.json")
    assert json.loads(cache_file.read_text(encoding="utf-8"))["payload"] == PAYLOAD


# =============================================================================
# SELECTION
# =============================================================================


class TestSelection(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.catalog = loaded_catalog(Path(self._tmp.name))

    def tearDown(self):
        self._tmp.cleanup()

    def test_empty_catalog_raises(self):
        catalog = PuzzleCatalog(Settings(random_seed=1))
        for pick in (catalog.next_puzzle, catalog.previous_puzzle, catalog.random_puzzle):
            with self.assertRaises(EmptyCatalogError):
                pick()

    def test_next_wraps_around(self):
        ids = [self.catalog.next_puzzle().id for _ in range(4)]
        self.assertEqual(ids, ["a", "b", "c", "a"])
        self.assertEqual(self.catalog.current_puzzle.id, "a")

    def test_previous_wraps_around(self):
        self.assertEqual(self.catalog.previous_puzzle().id, "c")
        self.assertEqual(self.catalog.previous_puzzle().id, "b")
        self.catalog.next_puzzle()
        self.assertEqual(self.catalog.current_puzzle.id, "c")

    def test_filter_by_theme_and_rating(self):
        selected = self.catalog.filter(PuzzleFilter(theme=Theme.MATE_IN_1, max_rating=1600))
        self.assertEqual([p.id for p in selected], ["b"])

    def test_filter_by_difficulty_and_tags(self):
        self.assertEqual(
            [p.id for p in self.catalog.filter(PuzzleFilter(difficulty=Difficulty.ADVANCED))],
            ["c"],
        )
        self.assertEqual(
            [p.id for p in self.catalog.filter(PuzzleFilter(tags=("rook",)))],
            ["b", "c"],
        )

    def test_filter_paging(self):
        selected = self.catalog.filter(PuzzleFilter(offset=1, limit=1))
        self.assertEqual([p.id for p in selected], ["b"])

    def test_empty_filter_result_is_valid(self):
        self.assertEqual(self.catalog.filter(PuzzleFilter(theme=Theme.PIN)), [])

    def test_use_filter_restricts_rotation(self):
        self.catalog.use_filter(PuzzleFilter(theme=Theme.MATE_IN_1))
        ids = [self.catalog.next_puzzle().id for _ in range(3)]
        self.assertEqual(ids, ["b", "c", "b"])

        self.catalog.clear_filter()
        self.assertEqual(self.catalog.rotation_size, 3)
        # the cursor stays on the current puzzle
        self.assertEqual(self.catalog.next_puzzle().id, "c")

    def test_use_filter_with_no_match(self):
        with self.assertRaises(NoPuzzlesAvailable):
            self.catalog.use_filter(PuzzleFilter(theme=Theme.PIN))
        self.assertEqual(self.catalog.rotation_size, 3)

    def test_random_puzzle_is_reproducible_with_seed(self):
        picks = [self.catalog.random_puzzle().id for _ in range(10)]
        again = loaded_catalog_with_same_seed(self.catalog)
        self.assertEqual(picks, [again.random_puzzle().id for _ in range(10)])

    def test_random_puzzle_with_criteria(self):
        for _ in range(5):
            self.assertEqual(self.catalog.random_puzzle(PuzzleFilter(min_rating=1800)).id, "c")
        with self.assertRaises(NoPuzzlesAvailable):
            self.catalog.random_puzzle(PuzzleFilter(theme=Theme.SKEWER))

    def test_random_pick_outside_rotation_keeps_cursor(self):
        self.catalog.use_filter(PuzzleFilter(theme=Theme.MATE_IN_1))
        self.assertEqual(self.catalog.next_puzzle().id, "b")
        self.assertEqual(self.catalog.random_puzzle(PuzzleFilter(max_rating=1000)).id, "a")
        self.assertEqual(self.catalog.next_puzzle().id, "c")

    def test_statistics(self):
        stats = self.catalog.statistics()
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["by_theme"], {"backRankMate": 1, "mateIn1": 2})


def loaded_catalog_with_same_seed(catalog):
    clone = PuzzleCatalog(catalog.settings)
    asyncio.run(clone.load(catalog.source))
    return clone
