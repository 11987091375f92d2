# src/whistle_notify/prefs/interest_prefs.py

"""
Local persistence of the user's selected genres.

A small JSON file ({"my_genres": [...]}) written atomically.
Loading is best-effort: a missing or corrupt file yields an empty selection.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from .genres import find_genre

logger = logging.getLogger(__name__)

PREFS_KEY = "my_genres"


class InterestPrefs:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[str]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to load genre selection from %s", self._path)
            return []

        raw = data.get(PREFS_KEY) if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return []

        out: list[str] = []
        for item in raw:
            if isinstance(item, str) and item.strip() and item not in out:
                out.append(item)
        logger.info("Loaded genre selection: %d genres from %s", len(out), self._path)
        return out

    def save(self, genres: list[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps({PREFS_KEY: list(genres)}, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)
        logger.info("Saved genre selection: %d genres to %s", len(genres), self._path)


def select_genre(selection: list[str], name: str) -> tuple[str | None, bool]:
    """
    Add a catalog genre to the selection in place.

    Selection only grows: picking an already selected genre is a no-op.
    Returns (canonical_genre or None if unknown, added).
    """
    genre = find_genre(name)
    if genre is None:
        return None, False
    if genre in selection:
        return genre, False
    selection.append(genre)
    return genre, True
