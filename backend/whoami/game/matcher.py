from __future__ import annotations

from typing import Iterable


DEFAULT_THRESHOLD = 0.8


def _normalize(text: str) -> str:
    return (text or "").strip().casefold()


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (single-character insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        row = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                row.append(prev[j - 1])
            else:
                row.append(1 + min(prev[j], row[j - 1], prev[j - 1]))
        prev = row
    return prev[-1]


def similarity(a: str, b: str) -> float:
    a, b = _normalize(a), _normalize(b)
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - edit_distance(a, b) / longest


def matches(guess: str, candidate: str, threshold: float = DEFAULT_THRESHOLD) -> bool:
    g, c = _normalize(guess), _normalize(candidate)
    if g == c:
        return True
    return similarity(g, c) >= threshold


def matches_any(guess: str, candidates: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> bool:
    return any(matches(guess, c, threshold) for c in candidates)
