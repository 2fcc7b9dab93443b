from __future__ import annotations

import asyncio
import logging

import streamlit as st

from tactics.catalog import PuzzleCatalog
from tactics.config import get_settings
from tactics.errors import CatalogLoadError
from tactics.puzzle_ui import render_trainer_page

_LOGGER = logging.getLogger(__name__)

CATALOG_KEY = "tactics_catalog"


def _configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _get_catalog() -> PuzzleCatalog | None:
    """Load the catalog once per browser session."""
    catalog = st.session_state.get(CATALOG_KEY)
    if catalog is not None:
        return catalog

    catalog = PuzzleCatalog(get_settings())
    try:
        with st.spinner("Loading puzzles..."):
            asyncio.run(catalog.load())
    except CatalogLoadError as exc:
        _LOGGER.error("Catalog load failed: %s", exc)
        st.error(f"Could not load puzzles: {exc}")
        if st.button("Retry"):
            st.rerun()
        return None

    if catalog.load_errors:
        st.warning(f"{len(catalog.load_errors)} puzzle records were skipped.")
    st.session_state[CATALOG_KEY] = catalog
    return catalog


def main() -> None:
    st.set_page_config(page_title="Tactics Trainer", page_icon="♟️", layout="wide")
    _configure_logging()

    catalog = _get_catalog()
    if catalog is None:
        return
    render_trainer_page(catalog)


if __name__ == "__main__":
    main()
