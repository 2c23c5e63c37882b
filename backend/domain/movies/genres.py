from __future__ import annotations

import unicodedata
from typing import Iterable


def normalize_genres(raw: Iterable[str]) -> list[str]:
    """Trim + lowercase genre tokens, dropping empties and repeats (first wins)."""
    out: list[str] = []
    seen: set[str] = set()
    for g in raw or []:
        v = str(g or "").strip().lower()
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


def display_genre(genre: str) -> str:
    # Only the first letter changes: "ficção científica" -> "Ficção científica".
    return genre[:1].upper() + genre[1:]


def _base_key(value: str) -> str:
    """Accent/case-insensitive key ("Ação" and "acao" compare equal)."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def sort_genres(genres: Iterable[str]) -> list[str]:
    """Locale-style sort with base sensitivity; ties keep a deterministic order."""
    return sorted(genres, key=lambda g: (_base_key(g), g))


def format_genre_listing(raw: Iterable[str]) -> list[str]:
    """Dedupe case-insensitively, sort, and capitalize for display."""
    return [display_genre(g) for g in sort_genres(normalize_genres(raw))]
