# src/whistle_notify/prefs/genres.py

from __future__ import annotations

GENRES: tuple[str, ...] = (
    "Unknown",
    "Blues",
    "Classical",
    "Electronic",
    "Jazz",
    "Metal",
    "Pop",
    "Reggae",
    "RnB",
    "Rock",
    "Soul",
)


def find_genre(name: str) -> str | None:
    """Case-insensitive catalog lookup; returns the canonical spelling."""
    needle = (name or "").strip().lower()
    if not needle:
        return None
    for genre in GENRES:
        if genre.lower() == needle:
            return genre
    return None
