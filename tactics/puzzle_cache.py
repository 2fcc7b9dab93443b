"""Disk cache for remote puzzle databases, keyed by source URL."""
from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Optional

_LOGGER = logging.getLogger(__name__)


def _cache_key_for_source(source: str) -> str:
    """Generate a stable cache key from the source URL."""
    return hashlib.sha256(source.strip().encode("utf-8")).hexdigest()[:24]


def _cache_file(cache_dir: Path, source: str) -> Path:
    return Path(cache_dir) / f"catalog_{_cache_key_for_source(source)}.json"


def load_cached_catalog(source: str, cache_dir: Path, max_age_hours: int = 24) -> Optional[Any]:
    """Return the cached payload for a source, or None.

    If max_age_hours <= 0, the cache never expires.
    """
    cache_file = _cache_file(cache_dir, source)
    if not cache_file.exists():
        return None

    # Check age (unless configured to never expire)
    if int(max_age_hours) > 0:
        age_hours = (time.time() - cache_file.stat().st_mtime) / 3600
        if age_hours > max_age_hours:
            _LOGGER.info("Cached catalog for %s is %.1fh old, ignoring", source, age_hours)
            return None

    try:
        with cache_file.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Unreadable catalog cache %s: %s", cache_file, exc)
        return None

    if not isinstance(data, dict) or data.get("source") != source or "payload" not in data:
        return None
    return data["payload"]


def save_cached_catalog(source: str, payload: Any, cache_dir: Path) -> None:
    """Save a fetched payload to the disk cache."""
    cache_file = _cache_file(cache_dir, source)
    data = {
        "source": source,
        "timestamp": int(time.time()),
        "payload": payload,
    }
    try:
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        with cache_file.open("w", encoding="utf-8") as f:
            json.dump(data, f)
    except OSError as exc:
        # Caching is optional; the fetched payload is still used
        _LOGGER.warning("Could not write catalog cache %s: %s", cache_file, exc)
